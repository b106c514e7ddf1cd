import logging
from io import BytesIO
from typing import List, Tuple

from docx import Document

from resume_ingest.core.config import DEFAULT_MIN_TEXT_LENGTH
from resume_ingest.core.errors import DecodeError
from resume_ingest.core.schemas import ExtractionResult
from resume_ingest.core.text_normalization import clean_extracted_text

logger = logging.getLogger(__name__)

NO_DOCX_TEXT_MESSAGE = "Unable to extract text from this document. It appears to be empty."


def extract_docx_lines(docx_bytes: bytes) -> List[Tuple[int, str]]:
    """
    Deterministically extract non-empty paragraph text from a DOCX.
    Body paragraphs come first, then paragraphs inside table cells
    (resume templates often put contact details in a layout table).
    Returns list of (paragraph_index, text).
    """
    try:
        doc = Document(BytesIO(docx_bytes))
    except Exception as e:
        raise DecodeError(f"Unable to open word-processor document: {e}") from e

    out: List[Tuple[int, str]] = []
    i = 0
    for p in doc.paragraphs:
        t = (p.text or "").strip()
        if t:
            out.append((i, t))
        i += 1

    for table in doc.tables:
        for row in table.rows:
            for cell in row.cells:
                for p in cell.paragraphs:
                    t = (p.text or "").strip()
                    if t:
                        out.append((i, t))
                    i += 1
    return out


def extract_docx_text(docx_bytes: bytes, min_text_length: int = DEFAULT_MIN_TEXT_LENGTH) -> ExtractionResult:
    """
    Convert a DOCX into an ExtractionResult with a single logical page.

    Word documents carry no raster pages, so OCR is never requested here.
    """
    lines = extract_docx_lines(docx_bytes)
    full_text = clean_extracted_text("\n".join(t for _, t in lines))
    success = len(full_text) > min_text_length
    logger.info("DOCX: %d paragraph(s), %d chars, success=%s", len(lines), len(full_text), success)

    if not full_text:
        full_text = NO_DOCX_TEXT_MESSAGE
    return ExtractionResult(
        full_text=full_text,
        text_by_page=[full_text],
        success=success,
        has_images=False,
        needs_ocr=False,
        page_count=1,
    )
