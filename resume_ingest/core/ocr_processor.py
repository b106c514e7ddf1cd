"""
OCR over rasterized PDF pages.

Recognition is expensive, so only the first few pages are processed. Each page
gets one retry with alternate segmentation parameters when the first pass is
short or low-confidence; the better of the two attempts is kept.
"""

import logging
from typing import Any, Callable, List, Optional, Sequence

from resume_ingest.core.config import (
    DEFAULT_MIN_TEXT_LENGTH,
    DEFAULT_OCR_MAX_PAGES,
    DEFAULT_OCR_RETRY_MIN_CONFIDENCE,
    DEFAULT_OCR_RETRY_MIN_LENGTH,
)
from resume_ingest.core.errors import OcrPageError
from resume_ingest.core.ocr_engine import DEFAULT_PARAMETERS, RETRY_PARAMETERS, OcrEngine
from resume_ingest.core.schemas import ExtractionResult, OcrAttempt
from resume_ingest.core.text_normalization import clean_extracted_text

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


def ocr_page_sentinel(page_index: int) -> str:
    return f"[unable to recognize page {page_index}]"


def truncated_page_sentinel(page_index: int, processed: int, total: int) -> str:
    return f"[page {page_index} not processed: only the first {processed} of {total} pages were recognized]"


def truncation_note(processed: int, total: int) -> str:
    return f"[only the first {processed} of {total} pages were processed]"


def needs_retry(
    text: str,
    confidence: float,
    min_length: int = DEFAULT_OCR_RETRY_MIN_LENGTH,
    min_confidence: float = DEFAULT_OCR_RETRY_MIN_CONFIDENCE,
) -> bool:
    return len(text) < min_length or confidence < min_confidence


def select_better_attempt(first: OcrAttempt, retry: OcrAttempt) -> OcrAttempt:
    """
    Pick the attempt that becomes the page's text.

    The retry wins when it is longer OR more confident; otherwise the first
    attempt stands. Example: first (conf 60, 40 chars) vs retry (conf 80,
    35 chars) -> retry, because its confidence is higher.
    """
    if len(retry.text) > len(first.text) or retry.confidence > first.confidence:
        return retry
    return first


async def recognize_page(
    engine: OcrEngine,
    image: Any,
    page_index: int,
    min_length: int = DEFAULT_OCR_RETRY_MIN_LENGTH,
    min_confidence: float = DEFAULT_OCR_RETRY_MIN_CONFIDENCE,
) -> OcrAttempt:
    """
    Recognize one page, retrying once with RETRY_PARAMETERS when needed.

    Both passes hand their parameters to the engine per call; the engine's
    own parameters are never changed. The retry is judged on the raw
    recognition (before cleanup), the winner's text is returned cleaned.
    """
    first = await engine.recognize(image, parameters=DEFAULT_PARAMETERS)
    logger.info(
        "OCR page %d: confidence %.1f, %d chars",
        page_index, first.confidence, len(first.text),
    )
    best = OcrAttempt(page_index=page_index, text=first.text, confidence=first.confidence)

    if needs_retry(first.text, first.confidence, min_length, min_confidence):
        logger.info("OCR page %d below threshold, retrying with psm %d", page_index, RETRY_PARAMETERS.page_seg_mode)
        retry = await engine.recognize(image, parameters=RETRY_PARAMETERS)
        logger.info(
            "OCR page %d retry: confidence %.1f, %d chars",
            page_index, retry.confidence, len(retry.text),
        )
        best = select_better_attempt(
            best, OcrAttempt(page_index=page_index, text=retry.text, confidence=retry.confidence)
        )

    return OcrAttempt(page_index=page_index, text=clean_extracted_text(best.text), confidence=best.confidence)


def _report(progress_callback: Optional[ProgressCallback], percent: int) -> None:
    if progress_callback is None:
        return
    progress_callback(max(0, min(100, int(percent))))


async def process_pages_with_ocr(
    engine: OcrEngine,
    images: Sequence[Any],
    progress_callback: Optional[ProgressCallback] = None,
    max_pages: int = DEFAULT_OCR_MAX_PAGES,
    min_text_length: int = DEFAULT_MIN_TEXT_LENGTH,
    retry_min_length: int = DEFAULT_OCR_RETRY_MIN_LENGTH,
    retry_min_confidence: float = DEFAULT_OCR_RETRY_MIN_CONFIDENCE,
) -> ExtractionResult:
    """
    Run OCR over page images in index order.

    Args:
        engine: A READY OCR engine
        images: One raster image per PDF page (None where rendering failed)
        progress_callback: Receives integer percentages as pages complete
        max_pages: Only the first max_pages pages are recognized

    Returns:
        ExtractionResult whose text_by_page has one entry per input image.
        Failed pages hold a recognition sentinel; pages past the cap hold a
        truncation sentinel.

    Raises:
        ValueError: no images were supplied
        OcrNotReadyError: the engine is not ready
    """
    if not images:
        raise ValueError("No page images available for OCR")

    total_pages = len(images)
    pages_to_process = min(total_pages, max_pages)
    logger.info("OCR: processing %d of %d page(s)", pages_to_process, total_pages)

    text_by_page: List[str] = []
    recognized: List[str] = []
    failed_pages: List[int] = []
    _report(progress_callback, 0)

    for i in range(pages_to_process):
        page_index = i + 1
        image = images[i]
        if image is None:
            logger.warning("OCR page %d has no raster image", page_index)
            text_by_page.append(ocr_page_sentinel(page_index))
            failed_pages.append(page_index)
        else:
            try:
                attempt = await recognize_page(
                    engine, image, page_index,
                    min_length=retry_min_length, min_confidence=retry_min_confidence,
                )
                text_by_page.append(attempt.text)
                recognized.append(attempt.text)
            except OcrPageError as e:
                logger.warning("OCR page %d failed: %s", page_index, e)
                text_by_page.append(ocr_page_sentinel(page_index))
                failed_pages.append(page_index)
        _report(progress_callback, round(page_index * 100 / pages_to_process))

    full_text = "\n\n".join(recognized)
    if pages_to_process < total_pages:
        for page_index in range(pages_to_process + 1, total_pages + 1):
            text_by_page.append(truncated_page_sentinel(page_index, pages_to_process, total_pages))
        full_text += "\n\n" + truncation_note(pages_to_process, total_pages)

    full_text = clean_extracted_text(full_text)
    success = len(full_text) > min_text_length
    logger.info("OCR complete: %d chars, success=%s", len(full_text), success)

    return ExtractionResult(
        full_text=full_text,
        text_by_page=text_by_page,
        success=success,
        has_images=True,
        needs_ocr=True,
        page_count=total_pages,
        ocr_processed=True,
        failed_pages=failed_pages,
    )
