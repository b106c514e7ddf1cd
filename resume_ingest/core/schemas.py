from dataclasses import dataclass
from typing import Any, List, Literal

from pydantic import BaseModel, Field


ExtractionSource = Literal["pdf", "docx", "ocr"]
Confidence = float  # 0.0 to 100.0, as reported by the OCR engine


@dataclass(frozen=True)
class RawPage:
    """A decoded PDF page: its text-layer text and its raster image."""
    index: int  # 1-indexed
    text: str
    image: Any  # PIL.Image.Image, or None when the page failed to render


@dataclass(frozen=True)
class OcrAttempt:
    """One recognition pass over a page image."""
    page_index: int
    text: str
    confidence: Confidence


class ExtractionResult(BaseModel):
    full_text: str = ""
    text_by_page: List[str] = Field(default_factory=list, description="Index-aligned with page numbers; failed pages hold a sentinel string")
    success: bool = False
    has_images: bool = False
    needs_ocr: bool = False
    page_count: int = 0
    ocr_processed: bool = False
    failed_pages: List[int] = Field(default_factory=list)


class ContactInfo(BaseModel):
    email: str = ""
    phone: str = ""
    website: str = ""
    github: str = ""


class EducationEntry(BaseModel):
    """Education entry in the resume record."""
    school: str = ""
    degree: str = ""
    start_date: str = ""
    end_date: str = ""
    description: str = ""


class ExperienceEntry(BaseModel):
    company: str = ""
    position: str = ""
    start_date: str = ""
    end_date: str = ""
    description: str = ""


class ProjectEntry(BaseModel):
    name: str = ""
    development_cycle: str = ""
    project_scale: str = ""
    frontend_tech: str = ""
    backend_tech: str = ""
    tools: str = ""
    description: str = ""


class ResumeRecord(BaseModel):
    name: str = ""
    title: str = ""
    summary: str = ""
    contact: ContactInfo = Field(default_factory=ContactInfo)
    skills: List[str] = Field(default_factory=list)
    education: List[EducationEntry] = Field(default_factory=list)
    experience: List[ExperienceEntry] = Field(default_factory=list)
    projects: List[ProjectEntry] = Field(default_factory=list)
    certificates: List[str] = Field(default_factory=list)


class IngestionMetadata(BaseModel):
    """Diagnostics delivered alongside the record so callers can judge extraction quality."""
    file_name: str = ""
    source: ExtractionSource = "pdf"
    page_count: int = 0
    extracted_text: str = ""
    text_by_page: List[str] = Field(default_factory=list)
    processing_time_seconds: float = 0.0
    text_extraction_success: bool = False
    has_images: bool = False
    ocr_processing: bool = False
    ocr_progress: int = Field(default=0, ge=0, le=100)
    ocr_complete: bool = False
    warnings: List[str] = Field(default_factory=list)


class IngestionResponse(BaseModel):
    record: ResumeRecord
    metadata: IngestionMetadata
