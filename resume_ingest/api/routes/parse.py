import logging

from fastapi import APIRouter, File, HTTPException, Request, UploadFile

from resume_ingest.core.config import get_settings
from resume_ingest.core.errors import DecodeError, UnsupportedFormat
from resume_ingest.core.ingestion import ResumeIngestor
from resume_ingest.core.schemas import IngestionResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["parse"])


@router.post(
    "/parse",
    response_model=IngestionResponse,
    summary="Parse Resume",
    description="Extract a structured resume record from a PDF or DOCX file. Scanned PDFs fall back to OCR. Returns the record plus extraction diagnostics.",
    responses={
        200: {
            "description": "Successfully parsed resume",
            "content": {
                "application/json": {
                    "example": {
                        "record": {
                            "name": "张三",
                            "title": "软件工程师",
                            "summary": "",
                            "contact": {
                                "email": "zhangsan@example.com",
                                "phone": "13800138000",
                                "website": "",
                                "github": "https://github.com/zhangsan"
                            },
                            "skills": ["Java", "Python", "React"],
                            "education": [
                                {"school": "清华大学", "degree": "学士", "start_date": "", "end_date": "", "description": ""}
                            ],
                            "experience": [],
                            "projects": [],
                            "certificates": []
                        },
                        "metadata": {
                            "file_name": "resume.pdf",
                            "source": "pdf",
                            "page_count": 1,
                            "text_extraction_success": True,
                            "has_images": False,
                            "ocr_processing": False,
                            "ocr_progress": 0,
                            "ocr_complete": False,
                            "warnings": []
                        }
                    }
                }
            }
        },
        400: {"description": "Empty file uploaded"},
        413: {"description": "File too large"},
        415: {"description": "Unsupported file format"},
        422: {"description": "File could not be decoded"}
    }
)
async def parse_resume(
    request: Request,
    file: UploadFile = File(..., description="Resume file (PDF or DOCX format)"),
):
    """
    Parse a resume file and extract a structured record.

    **Supported formats:**
    - PDF (.pdf) - text layer first, OCR on the first pages when the PDF is scanned
    - DOCX (.docx)

    **Returns:**
    - **record**: name, title, summary, contact, skills, education, experience, projects, certificates
    - **metadata**: page count, extracted text (full and per page), timing, OCR status and warnings
    """
    settings = get_settings()
    raw = await file.read()
    if not raw:
        raise HTTPException(status_code=400, detail="Empty file uploaded.")
    if len(raw) > settings.MAX_FILE_SIZE_MB * 1024 * 1024:
        raise HTTPException(status_code=413, detail=f"File exceeds {settings.MAX_FILE_SIZE_MB} MB.")

    ingestor = ResumeIngestor(
        ocr_engine=getattr(request.app.state, "ocr_engine", None),
        settings=settings,
    )
    try:
        return await ingestor.ingest(
            raw,
            file_name=file.filename or "",
            content_type=file.content_type or "",
        )
    except UnsupportedFormat as e:
        raise HTTPException(status_code=415, detail=str(e))
    except DecodeError as e:
        logger.warning("Failed to decode %r: %s", file.filename, e)
        raise HTTPException(status_code=422, detail=f"Unable to read document: {e}")
