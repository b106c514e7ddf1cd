"""
Page rasterization for PDF resumes.

Renders each page to a bitmap at a fixed scale. The images feed OCR when the
text layer is missing, so the scale must keep small glyphs legible.
"""

import logging
from contextlib import contextmanager
from io import BytesIO
from typing import Iterator, List, Optional, Sequence

import pdfplumber
from PIL import Image

from resume_ingest.core.config import DEFAULT_RENDER_SCALE, MIN_RENDER_SCALE
from resume_ingest.core.errors import DecodeError
from resume_ingest.core.schemas import RawPage

logger = logging.getLogger(__name__)

PDF_POINTS_PER_INCH = 72


@contextmanager
def open_pdf(pdf_bytes: bytes) -> Iterator["pdfplumber.PDF"]:
    """
    Open a PDF from bytes, converting any structural failure into DecodeError.

    pdfplumber parses lazily, so the page tree is touched here to surface
    corrupt headers and unsupported encryption before any page work starts.
    """
    if not pdf_bytes:
        raise DecodeError("Empty PDF payload")
    try:
        pdf = pdfplumber.open(BytesIO(pdf_bytes))
    except Exception as e:
        raise DecodeError(f"Unable to open PDF: {e}") from e
    try:
        try:
            _ = len(pdf.pages)
        except Exception as e:
            raise DecodeError(f"Unable to read PDF page tree: {e}") from e
        yield pdf
    finally:
        pdf.close()


def get_page_count(pdf_bytes: bytes) -> int:
    with open_pdf(pdf_bytes) as pdf:
        return len(pdf.pages)


def render_page(page, scale: float = DEFAULT_RENDER_SCALE) -> Image.Image:
    """Render one pdfplumber page to an RGB PIL image detached from the document."""
    page_image = page.to_image(resolution=PDF_POINTS_PER_INCH * scale)
    # copy() so the bitmap outlives the page image wrapper
    return page_image.original.convert("RGB").copy()


def rasterize_pdf(pdf_bytes: bytes, scale: float = DEFAULT_RENDER_SCALE) -> List[Optional[Image.Image]]:
    """
    Render every page of a PDF to a bitmap.

    A page that fails to render yields None in its slot, so the list stays
    index-aligned with the document's pages.

    Args:
        pdf_bytes: Raw PDF file content
        scale: Render scale relative to 72 DPI (must be >= 1.5)

    Returns:
        One RGB image (or None) per page, in page order

    Raises:
        DecodeError: the bytes are not a readable PDF
        ValueError: scale is too small for OCR
    """
    if scale < MIN_RENDER_SCALE:
        raise ValueError(f"Render scale {scale} is below the minimum of {MIN_RENDER_SCALE}")

    images: List[Optional[Image.Image]] = []
    with open_pdf(pdf_bytes) as pdf:
        for page_i, page in enumerate(pdf.pages, start=1):
            try:
                images.append(render_page(page, scale=scale))
            except Exception as e:
                logger.warning("Unable to render page %d: %s", page_i, e)
                images.append(None)
            finally:
                page.close()
    logger.debug("Rasterized %d page(s) at scale %.2f", len(images), scale)
    return images


def load_raw_pages(
    pdf_bytes: bytes,
    text_by_page: Optional[Sequence[str]] = None,
    scale: float = DEFAULT_RENDER_SCALE,
) -> List[RawPage]:
    """
    Pair each rendered page with its text-layer text.

    Pages without a matching entry in text_by_page get an empty string.
    """
    images = rasterize_pdf(pdf_bytes, scale=scale)
    texts = list(text_by_page or [])
    return [
        RawPage(index=i, text=texts[i - 1] if i <= len(texts) else "", image=img)
        for i, img in enumerate(images, start=1)
    ]
