"""
Orchestrator tests: format detection, text-layer path, OCR fallback and the
no-text diagnostic path.
"""

import pytest

from resume_ingest.core.config import Settings
from resume_ingest.core.errors import DecodeError, OcrInitError, UnsupportedFormat
from resume_ingest.core import pdf_rasterizer
from resume_ingest.core.ingestion import ResumeIngestor, detect_document_kind, ingest_document
from resume_ingest.core.ocr_engine import DEFAULT_PARAMETERS, OcrRecognition
from resume_ingest.core.ocr_processor import ocr_page_sentinel
from resume_ingest.core.pdf_extractor import NO_TEXT_LAYER_MESSAGE, SCANNED_PDF_MESSAGE
from resume_ingest.core.schemas import ResumeRecord

DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

OCR_PAGE = "李四\n数据工程师\nlisi@example.com\n技能\nPython, Spark, Airflow\n教育\n北京大学\n硕士"


class FakeEngine:
    """Ready-to-go OCR engine returning the same page text for every image."""

    def __init__(self, text=OCR_PAGE, confidence=91.0, init_error=None):
        self.text = text
        self.confidence = confidence
        self.init_error = init_error
        self.parameters = DEFAULT_PARAMETERS
        self.is_ready = False
        self.recognized = 0

    async def ensure_ready(self):
        if self.init_error is not None:
            raise self.init_error
        self.is_ready = True

    async def recognize(self, image, parameters=None):
        self.recognized += 1
        return OcrRecognition(text=self.text, confidence=self.confidence)


class TestDetectDocumentKind:

    def test_declared_type_wins(self):
        assert detect_document_kind("resume.docx", "application/pdf") == "pdf"
        assert detect_document_kind("resume.pdf", DOCX_TYPE) == "docx"

    def test_extension_used_for_generic_type(self):
        assert detect_document_kind("resume.pdf", "application/octet-stream") == "pdf"
        assert detect_document_kind("Resume.DOCX", "") == "docx"

    def test_content_type_parameters_ignored(self):
        assert detect_document_kind("x", "application/pdf; charset=binary") == "pdf"

    @pytest.mark.parametrize("name,ctype", [
        ("scan.png", "image/png"),
        ("resume.txt", "text/plain"),
        ("resume.pdf", "text/plain"),
        ("archive.zip", "application/octet-stream"),
        ("resume.doc", "application/msword"),
        ("resume.doc", "application/octet-stream"),
    ])
    def test_unsupported(self, name, ctype):
        with pytest.raises(UnsupportedFormat):
            detect_document_kind(name, ctype)


@pytest.mark.asyncio
async def test_text_layer_pdf(resume_pdf):
    engine = FakeEngine()
    response = await ResumeIngestor(ocr_engine=engine).ingest(
        resume_pdf, file_name="resume.pdf", content_type="application/pdf"
    )

    assert response.record.name == "Jane Doe"
    assert response.record.title == "Software Engineer"
    assert response.record.contact.email == "jane.doe@example.com"
    assert response.record.contact.website == "https://janedoe.dev"
    assert response.record.skills == ["Python", "FastAPI", "Docker"]
    assert response.record.education[0].school == "State University"

    meta = response.metadata
    assert meta.source == "pdf"
    assert meta.page_count == 1
    assert meta.text_extraction_success is True
    assert meta.ocr_complete is False
    assert meta.warnings == []
    assert meta.processing_time_seconds >= 0
    assert engine.recognized == 0


@pytest.mark.asyncio
async def test_docx(resume_docx):
    response = await ingest_document(resume_docx, file_name="resume.docx", content_type=DOCX_TYPE)

    assert response.metadata.source == "docx"
    assert response.metadata.page_count == 1
    assert response.record.name == "Jane Doe"
    assert response.record.title == "Backend Developer"
    assert response.record.skills == ["Python", "FastAPI", "PostgreSQL"]


@pytest.mark.asyncio
async def test_scanned_pdf_uses_ocr(scanned_pdf):
    engine = FakeEngine()
    progress = []
    response = await ResumeIngestor(ocr_engine=engine).ingest(
        scanned_pdf, file_name="scan.pdf", content_type="application/pdf", progress_callback=progress.append
    )

    meta = response.metadata
    assert meta.source == "ocr"
    assert meta.page_count == 2
    assert len(meta.text_by_page) == 2
    assert meta.has_images is True
    assert meta.text_extraction_success is True
    assert meta.ocr_complete is True
    assert meta.ocr_processing is False
    assert meta.ocr_progress == 100
    assert progress == [0, 50, 100]
    assert engine.recognized == 2

    record = response.record
    assert record.name == "李四"
    assert record.title == "数据工程师"
    assert record.contact.email == "lisi@example.com"
    assert record.skills == ["Python", "Spark", "Airflow"]
    assert record.education[0].school == "北京大学"
    assert record.education[0].degree == "硕士"


@pytest.mark.asyncio
async def test_ocr_limited_to_first_pages(scanned_pdf):
    engine = FakeEngine()
    settings = Settings(OCR_MAX_PAGES=1)
    response = await ResumeIngestor(ocr_engine=engine, settings=settings).ingest(
        scanned_pdf, file_name="scan.pdf", content_type="application/pdf"
    )

    assert engine.recognized == 1
    assert len(response.metadata.text_by_page) == 2
    assert any("Only the first 1 of 2" in w for w in response.metadata.warnings)


@pytest.mark.asyncio
async def test_ocr_init_failure_keeps_diagnostic(scanned_pdf):
    engine = FakeEngine(init_error=OcrInitError("tesseract not found"))
    response = await ResumeIngestor(ocr_engine=engine).ingest(
        scanned_pdf, file_name="scan.pdf", content_type="application/pdf"
    )

    assert response.record == ResumeRecord()
    assert response.metadata.source == "pdf"
    assert response.metadata.extracted_text == SCANNED_PDF_MESSAGE
    assert response.metadata.ocr_complete is False
    assert any("tesseract not found" in w for w in response.metadata.warnings)


@pytest.mark.asyncio
async def test_scanned_pdf_without_engine(scanned_pdf):
    response = await ResumeIngestor().ingest(scanned_pdf, file_name="scan.pdf", content_type="application/pdf")
    assert response.record == ResumeRecord()
    assert SCANNED_PDF_MESSAGE in response.metadata.warnings


@pytest.mark.asyncio
async def test_weak_ocr_still_analyzed(scanned_pdf):
    engine = FakeEngine(text="李四", confidence=40.0)
    response = await ResumeIngestor(ocr_engine=engine).ingest(
        scanned_pdf, file_name="scan.pdf", content_type="application/pdf"
    )

    assert response.metadata.source == "ocr"
    assert response.metadata.text_extraction_success is False
    assert response.record.name == "李四"
    assert any("too little text" in w for w in response.metadata.warnings)


@pytest.mark.asyncio
async def test_no_text_and_no_images(blank_pdf):
    engine = FakeEngine()
    response = await ResumeIngestor(ocr_engine=engine).ingest(
        blank_pdf, file_name="blank.pdf", content_type="application/pdf"
    )

    assert response.record == ResumeRecord()
    assert response.metadata.text_extraction_success is False
    assert response.metadata.has_images is False
    assert response.metadata.warnings == [NO_TEXT_LAYER_MESSAGE]
    assert engine.recognized == 0


@pytest.mark.asyncio
async def test_unsupported_format_rejected_before_decoding():
    with pytest.raises(UnsupportedFormat):
        await ingest_document(b"\x89PNG\r\n", file_name="scan.png", content_type="image/png")


@pytest.mark.asyncio
async def test_corrupt_pdf():
    with pytest.raises(DecodeError):
        await ingest_document(b"not a pdf", file_name="resume.pdf", content_type="application/pdf")


@pytest.mark.asyncio
async def test_empty_upload():
    with pytest.raises(DecodeError):
        await ingest_document(b"", file_name="resume.pdf", content_type="application/pdf")


@pytest.mark.asyncio
async def test_page_render_failure_degrades_to_sentinel(scanned_pdf, monkeypatch):
    original = pdf_rasterizer.render_page

    def flaky(page, *args, **kwargs):
        if page.page_number == 2:
            raise RuntimeError("render boom")
        return original(page, *args, **kwargs)

    monkeypatch.setattr(pdf_rasterizer, "render_page", flaky)
    engine = FakeEngine()
    response = await ResumeIngestor(ocr_engine=engine).ingest(
        scanned_pdf, file_name="scan.pdf", content_type="application/pdf"
    )

    meta = response.metadata
    assert meta.source == "ocr"
    assert meta.page_count == 2
    assert meta.text_by_page[1] == ocr_page_sentinel(2)
    assert engine.recognized == 1
    assert any("OCR failed on page(s): 2" in w for w in meta.warnings)
    assert response.record.name == "李四"
