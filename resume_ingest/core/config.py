"""
Configuration for the resume ingestion service.

Values are read from the environment (prefix RESUME_INGEST_) or a local .env file.
The DEFAULT_* constants are the single source for both the Settings defaults and
the keyword defaults of the core extraction functions.
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MIN_TEXT_LENGTH = 50
DEFAULT_LINE_Y_TOLERANCE = 5.0
MIN_RENDER_SCALE = 1.5
DEFAULT_RENDER_SCALE = 2.0
DEFAULT_OCR_MAX_PAGES = 3
DEFAULT_OCR_RETRY_MIN_LENGTH = 50
DEFAULT_OCR_RETRY_MIN_CONFIDENCE = 70.0
DEFAULT_MAX_SKILLS = 10


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(
        env_prefix="RESUME_INGEST_",
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # API Settings
    API_TITLE: str = "Resume Ingest (Resume Extraction Service)"
    API_VERSION: str = "0.1.0"

    # Logging Settings
    LOG_LEVEL: str = "INFO"

    # Extraction Settings
    MIN_TEXT_LENGTH: int = DEFAULT_MIN_TEXT_LENGTH
    LINE_Y_TOLERANCE: float = DEFAULT_LINE_Y_TOLERANCE
    RENDER_SCALE: float = Field(default=DEFAULT_RENDER_SCALE, ge=MIN_RENDER_SCALE)
    MAX_FILE_SIZE_MB: int = 10

    # OCR Settings
    OCR_LANGUAGE: str = "eng"
    OCR_MAX_PAGES: int = Field(default=DEFAULT_OCR_MAX_PAGES, ge=1)
    OCR_RETRY_MIN_LENGTH: int = DEFAULT_OCR_RETRY_MIN_LENGTH
    OCR_RETRY_MIN_CONFIDENCE: float = DEFAULT_OCR_RETRY_MIN_CONFIDENCE
    TESSERACT_CMD: Optional[str] = None

    # Analyzer Settings
    MAX_SKILLS: int = DEFAULT_MAX_SKILLS


@lru_cache
def get_settings() -> Settings:
    return Settings()
