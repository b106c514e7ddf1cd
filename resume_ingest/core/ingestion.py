"""
Ingestion orchestrator: file bytes in, ResumeRecord plus diagnostics out.

Decision policy:
1) PDF -> text layer; DOCX -> paragraph text (chosen by declared type)
2) Text layer good enough -> analyze it
3) Text layer too short but pages paint images -> OCR the rendered pages, analyze the OCR text
4) Text layer too short and nothing to recognize -> empty record plus diagnostic text

Blocking work (decoding, rendering, recognition) runs in worker threads.
"""

import asyncio
import logging
import time
from typing import Callable, List, Literal, Optional

from resume_ingest.core.config import Settings, get_settings
from resume_ingest.core.docx_extractor import extract_docx_text
from resume_ingest.core.errors import DecodeError, OcrInitError, UnsupportedFormat
from resume_ingest.core.ocr_engine import OcrEngine
from resume_ingest.core.ocr_processor import process_pages_with_ocr
from resume_ingest.core.pdf_extractor import extract_pdf_text
from resume_ingest.core.pdf_rasterizer import load_raw_pages
from resume_ingest.core.resume_analyzer import analyze_resume_text
from resume_ingest.core.schemas import (
    ExtractionResult,
    IngestionMetadata,
    IngestionResponse,
    ResumeRecord,
)

logger = logging.getLogger(__name__)

DocumentKind = Literal["pdf", "docx"]
ProgressCallback = Callable[[int], None]

PDF_CONTENT_TYPES = {"application/pdf", "application/x-pdf"}
# Legacy binary .doc (application/msword) is not readable by python-docx
WORD_CONTENT_TYPES = {
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}
GENERIC_CONTENT_TYPES = {"", "application/octet-stream", "binary/octet-stream"}
PDF_EXTENSIONS = (".pdf",)
WORD_EXTENSIONS = (".docx",)


def detect_document_kind(file_name: str, content_type: str) -> DocumentKind:
    """
    Choose the extractor from the declared content type.

    The file extension is only consulted when the declared type is missing or
    generic. Anything else (images included) is rejected before decoding.
    """
    ct = (content_type or "").split(";")[0].strip().lower()
    name = (file_name or "").lower()

    if ct in PDF_CONTENT_TYPES:
        return "pdf"
    if ct in WORD_CONTENT_TYPES:
        return "docx"
    if ct in GENERIC_CONTENT_TYPES:
        if name.endswith(PDF_EXTENSIONS):
            return "pdf"
        if name.endswith(WORD_EXTENSIONS):
            return "docx"
    raise UnsupportedFormat(content_type, file_name)


class ResumeIngestor:
    """
    Runs one ingestion per call to ingest().

    The OCR engine is borrowed, not owned: whoever created it terminates it.
    """

    def __init__(self, ocr_engine: Optional[OcrEngine] = None, settings: Optional[Settings] = None):
        self.ocr_engine = ocr_engine
        self.settings = settings or get_settings()

    async def ingest(
        self,
        data: bytes,
        file_name: str = "",
        content_type: str = "",
        progress_callback: Optional[ProgressCallback] = None,
    ) -> IngestionResponse:
        """
        Raises:
            UnsupportedFormat: declared type is not PDF or word-processor
            DecodeError: the document cannot be opened
        """
        started = time.perf_counter()
        kind = detect_document_kind(file_name, content_type)
        if not data:
            raise DecodeError("Empty file uploaded")

        metadata = IngestionMetadata(file_name=file_name, source=kind)
        warnings: List[str] = []

        result = await self._extract(kind, data)
        if result.failed_pages:
            warnings.append(
                "Text could not be extracted from page(s): "
                + ", ".join(str(p) for p in result.failed_pages)
            )

        if result.success:
            record = analyze_resume_text(result.full_text, max_skills=self.settings.MAX_SKILLS)
        elif result.needs_ocr:
            ocr_result = await self._run_ocr(data, result, metadata, warnings, progress_callback)
            if ocr_result is None:
                record = ResumeRecord()
                warnings.append(result.full_text)
            else:
                result = ocr_result
                metadata.source = "ocr"
                record = analyze_resume_text(result.full_text, max_skills=self.settings.MAX_SKILLS)
                if not result.success:
                    warnings.append("OCR produced too little text; extracted fields are unreliable")
        else:
            logger.info("No usable text and nothing to recognize in %r", file_name)
            record = ResumeRecord()
            warnings.append(result.full_text)

        metadata.page_count = result.page_count
        metadata.extracted_text = result.full_text
        metadata.text_by_page = list(result.text_by_page)
        metadata.text_extraction_success = result.success
        metadata.has_images = result.has_images
        metadata.warnings = warnings
        metadata.processing_time_seconds = round(time.perf_counter() - started, 3)

        logger.info(
            "Ingested %r (%s): %d page(s), success=%s, %.3fs",
            file_name, metadata.source, metadata.page_count,
            metadata.text_extraction_success, metadata.processing_time_seconds,
        )
        return IngestionResponse(record=record, metadata=metadata)

    async def _extract(self, kind: DocumentKind, data: bytes) -> ExtractionResult:
        if kind == "docx":
            return await asyncio.to_thread(
                extract_docx_text, data, self.settings.MIN_TEXT_LENGTH
            )
        return await asyncio.to_thread(
            extract_pdf_text, data, self.settings.MIN_TEXT_LENGTH, self.settings.LINE_Y_TOLERANCE
        )

    async def _run_ocr(
        self,
        data: bytes,
        text_layer: ExtractionResult,
        metadata: IngestionMetadata,
        warnings: List[str],
        progress_callback: Optional[ProgressCallback],
    ) -> Optional[ExtractionResult]:
        """OCR the rendered pages. Returns None when OCR is unavailable for this run."""
        if self.ocr_engine is None:
            logger.warning("Text layer insufficient but no OCR engine is configured")
            warnings.append("OCR is not configured; scanned pages were not recognized")
            return None

        try:
            await self.ocr_engine.ensure_ready()
        except OcrInitError as e:
            logger.error("OCR unavailable: %s", e)
            warnings.append(f"OCR unavailable: {e}")
            return None

        pages = await asyncio.to_thread(
            load_raw_pages, data, text_layer.text_by_page, self.settings.RENDER_SCALE
        )

        def on_progress(percent: int) -> None:
            metadata.ocr_progress = percent
            if progress_callback is not None:
                progress_callback(percent)

        metadata.ocr_processing = True
        try:
            result = await process_pages_with_ocr(
                self.ocr_engine,
                [page.image for page in pages],
                progress_callback=on_progress,
                max_pages=self.settings.OCR_MAX_PAGES,
                min_text_length=self.settings.MIN_TEXT_LENGTH,
                retry_min_length=self.settings.OCR_RETRY_MIN_LENGTH,
                retry_min_confidence=self.settings.OCR_RETRY_MIN_CONFIDENCE,
            )
        finally:
            metadata.ocr_processing = False

        metadata.ocr_complete = True
        if result.failed_pages:
            warnings.append(
                "OCR failed on page(s): " + ", ".join(str(p) for p in result.failed_pages)
            )
        if result.page_count > self.settings.OCR_MAX_PAGES:
            warnings.append(
                f"Only the first {self.settings.OCR_MAX_PAGES} of {result.page_count} pages were recognized"
            )
        return result


async def ingest_document(
    data: bytes,
    file_name: str = "",
    content_type: str = "",
    ocr_engine: Optional[OcrEngine] = None,
    progress_callback: Optional[ProgressCallback] = None,
    settings: Optional[Settings] = None,
) -> IngestionResponse:
    """One-shot ingestion with a borrowed (or no) OCR engine."""
    ingestor = ResumeIngestor(ocr_engine=ocr_engine, settings=settings)
    return await ingestor.ingest(
        data, file_name=file_name, content_type=content_type, progress_callback=progress_callback
    )
