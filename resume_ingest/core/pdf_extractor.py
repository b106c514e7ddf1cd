"""
Text-layer extraction for PDF resumes.

Reads positioned word runs from each page, rebuilds reading-order lines by
clustering on the vertical coordinate, and classifies the document as having a
usable text layer or not. Documents without one are flagged for OCR when their
pages paint images.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Sequence

from resume_ingest.core.config import DEFAULT_LINE_Y_TOLERANCE, DEFAULT_MIN_TEXT_LENGTH
from resume_ingest.core.errors import PageExtractionError
from resume_ingest.core.pdf_rasterizer import open_pdf
from resume_ingest.core.schemas import ExtractionResult
from resume_ingest.core.text_normalization import clean_extracted_text

logger = logging.getLogger(__name__)

SCANNED_PDF_MESSAGE = (
    "This PDF appears to be a scanned or image-based document, so no text could be "
    "extracted directly. Trying OCR..."
)
NO_TEXT_LAYER_MESSAGE = (
    "Unable to extract text from this PDF. The file may be encrypted or use "
    "unsupported fonts."
)


def page_sentinel(page_index: int) -> str:
    return f"[unable to extract page {page_index}]"


@dataclass(frozen=True)
class GlyphRun:
    """A positioned run of text. y grows upward, as in PDF user space."""
    text: str
    x: float
    y: float


def page_glyph_runs(page: Any, x_tolerance: float = 3) -> List[GlyphRun]:
    """
    Convert a pdfplumber page's words into glyph runs.

    pdfplumber measures 'top'/'bottom' down from the top edge; the runs flip that
    so larger y means higher on the page.
    """
    words = page.extract_words(
        x_tolerance=x_tolerance,
        keep_blank_chars=False,
        use_text_flow=False,
    )
    height = float(page.height)
    return [
        GlyphRun(text=w["text"], x=float(w["x0"]), y=height - float(w["bottom"]))
        for w in words
        if w["text"].strip()
    ]


def reconstruct_lines(runs: Sequence[GlyphRun], y_tolerance: float = DEFAULT_LINE_Y_TOLERANCE) -> List[str]:
    """
    Group glyph runs into reading-order lines.

    Strategy:
    1) Sort runs top of page first (descending y)
    2) A run joins the current line while its y is within y_tolerance of the
       previous run in that line; otherwise it starts a new line
    3) Each line is ordered left to right and joined with single spaces

    Examples:
    - runs at (x=50, y=700) "World" and (x=10, y=702) "Hello" -> ["Hello World"]
    - runs at y=700 and y=680 -> two lines
    """
    if not runs:
        return []

    ordered = sorted(runs, key=lambda r: -r.y)
    lines: List[List[GlyphRun]] = []
    current_line = [ordered[0]]

    for run in ordered[1:]:
        prev = current_line[-1]
        if abs(run.y - prev.y) < y_tolerance:
            current_line.append(run)
        else:
            lines.append(current_line)
            current_line = [run]
    lines.append(current_line)

    return [" ".join(r.text for r in sorted(line, key=lambda r: r.x)) for line in lines]


def page_has_images(page: Any) -> bool:
    """True when the page paints an image XObject or inline image."""
    return len(page.images) > 0


def extract_page_text(page: Any, page_index: int, y_tolerance: float = DEFAULT_LINE_Y_TOLERANCE) -> str:
    try:
        runs = page_glyph_runs(page)
    except Exception as e:
        raise PageExtractionError(page_index, f"Unable to extract page {page_index}: {e}") from e
    return "\n".join(reconstruct_lines(runs, y_tolerance=y_tolerance))


def extract_pdf_text(
    pdf_bytes: bytes,
    min_text_length: int = DEFAULT_MIN_TEXT_LENGTH,
    y_tolerance: float = DEFAULT_LINE_Y_TOLERANCE,
) -> ExtractionResult:
    """
    Extract the text layer of a PDF.

    One page's failure never aborts the document: the page gets a sentinel
    string and extraction moves on. Sentinel pages do not count toward the
    full text, so a document made only of failed pages cannot pass the
    length threshold.

    Raises:
        DecodeError: the document itself cannot be opened
    """
    text_by_page: List[str] = []
    failed_pages: List[int] = []
    has_images = False

    with open_pdf(pdf_bytes) as pdf:
        page_count = len(pdf.pages)
        for page_i, page in enumerate(pdf.pages, start=1):
            try:
                text_by_page.append(extract_page_text(page, page_i, y_tolerance=y_tolerance))
            except PageExtractionError as e:
                logger.warning("%s", e)
                text_by_page.append(page_sentinel(page_i))
                failed_pages.append(page_i)

            try:
                has_images = has_images or page_has_images(page)
            except Exception as e:
                logger.warning("Unable to inspect images on page %d: %s", page_i, e)
            finally:
                page.close()

    good_pages = [t for i, t in enumerate(text_by_page, start=1) if i not in failed_pages]
    full_text = clean_extracted_text("\n\n".join(good_pages))
    success = len(full_text) > min_text_length

    logger.info(
        "Text layer: %d page(s), %d chars, success=%s, has_images=%s",
        page_count, len(full_text), success, has_images,
    )

    if success:
        return ExtractionResult(
            full_text=full_text,
            text_by_page=text_by_page,
            success=True,
            has_images=has_images,
            needs_ocr=False,
            page_count=page_count,
            failed_pages=failed_pages,
        )

    message = SCANNED_PDF_MESSAGE if has_images else NO_TEXT_LAYER_MESSAGE
    return ExtractionResult(
        full_text=message,
        text_by_page=[message] * page_count,
        success=False,
        has_images=has_images,
        needs_ocr=has_images,
        page_count=page_count,
        failed_pages=failed_pages,
    )
