"""
Error taxonomy for the ingestion pipeline.

Document-level errors (DecodeError, UnsupportedFormat) are fatal to a run.
Page-level errors (PageExtractionError, OcrPageError) are recovered where they
occur and replaced by a sentinel string. OcrInitError only disables OCR for the
run; any text-layer result is still returned.
"""
from typing import Optional


class ResumeIngestError(Exception):
    """Base class for every error raised by the ingestion pipeline."""


class DecodeError(ResumeIngestError):
    """The uploaded bytes are not a readable document (corrupt, encrypted, truncated)."""


class UnsupportedFormat(ResumeIngestError):
    """The declared file type is not handled by the pipeline."""

    def __init__(self, content_type: str, file_name: str = ""):
        self.content_type = content_type
        self.file_name = file_name
        super().__init__(f"Unsupported content type: {content_type or 'unknown'} ({file_name or 'unnamed'})")


class PageExtractionError(ResumeIngestError):
    """A single PDF page could not be decoded."""

    def __init__(self, page_index: int, message: str = ""):
        self.page_index = page_index
        super().__init__(message or f"Unable to extract page {page_index}")


class OcrInitError(ResumeIngestError):
    """The OCR engine could not be initialized (missing binary or language data)."""


class OcrNotReadyError(ResumeIngestError):
    """An OCR operation was requested while the engine was not in the Ready state."""


class OcrPageError(ResumeIngestError):
    """Recognition failed for a single page image."""

    def __init__(self, message: str = "", page_index: Optional[int] = None):
        self.page_index = page_index
        super().__init__(message or f"Unable to recognize page {page_index}")
