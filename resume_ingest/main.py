import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

from resume_ingest.api.routes.parse import router as parse_router
from resume_ingest.core.config import get_settings
from resume_ingest.core.ocr_engine import OcrEngine

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """One OCR engine per process; initialized on first scanned upload, released on shutdown."""
    engine = OcrEngine(language=settings.OCR_LANGUAGE, tesseract_cmd=settings.TESSERACT_CMD)
    app.state.ocr_engine = engine
    logger.info("Resume ingest service starting (OCR language=%s)", settings.OCR_LANGUAGE)
    try:
        yield
    finally:
        await engine.terminate()
        logger.info("Resume ingest service stopped")


app = FastAPI(
    title=settings.API_TITLE,
    description="Resume ingestion service that turns PDF/DOCX resumes into structured records, with OCR fallback for scanned PDFs",
    version=settings.API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.include_router(parse_router)

@app.get("/", tags=["health"])
def root():
    return {"service": "resume-ingest", "status": "running"}

@app.get("/health", tags=["health"])
def health():
    engine = getattr(app.state, "ocr_engine", None)
    return {"status": "ok", "ocr": engine.state.value if engine else "unavailable"}

def custom_openapi():
    """Generate OpenAPI schema with custom settings."""
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title="Resume Ingest API",
        version=settings.API_VERSION,
        description="Resume ingestion API with text-layer extraction, OCR fallback and heuristic field extraction",
        routes=app.routes,
    )
    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi
