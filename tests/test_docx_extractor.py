from io import BytesIO

import pytest
from docx import Document

from conftest import build_docx
from resume_ingest.core.docx_extractor import (
    NO_DOCX_TEXT_MESSAGE,
    extract_docx_lines,
    extract_docx_text,
)
from resume_ingest.core.errors import DecodeError


def test_paragraphs_in_order(resume_docx):
    lines = extract_docx_lines(resume_docx)
    texts = [t for _, t in lines]
    assert texts[0] == "Jane Doe"
    assert texts[-1] == "Python, FastAPI, PostgreSQL"


def test_empty_paragraphs_skipped_but_indices_advance():
    lines = extract_docx_lines(build_docx(["Jane Doe", "", "Engineer"]))
    assert lines == [(0, "Jane Doe"), (2, "Engineer")]


def test_table_cells_follow_body():
    doc = Document()
    doc.add_paragraph("Jane Doe")
    table = doc.add_table(rows=1, cols=2)
    table.cell(0, 0).text = "jane.doe@example.com"
    table.cell(0, 1).text = "13800138000"
    buf = BytesIO()
    doc.save(buf)

    texts = [t for _, t in extract_docx_lines(buf.getvalue())]
    assert texts == ["Jane Doe", "jane.doe@example.com", "13800138000"]


def test_single_logical_page(resume_docx):
    result = extract_docx_text(resume_docx)

    assert result.page_count == 1
    assert result.text_by_page == [result.full_text]
    assert result.needs_ocr is False
    assert result.has_images is False
    assert result.success is True
    assert "jane.doe@example.com" in result.full_text


def test_short_document_not_successful():
    result = extract_docx_text(build_docx(["Jane Doe"]))
    assert result.success is False
    assert result.full_text == "Jane Doe"
    assert result.needs_ocr is False


def test_empty_document_reports_diagnostic():
    result = extract_docx_text(build_docx([]))
    assert result.success is False
    assert result.full_text == NO_DOCX_TEXT_MESSAGE


def test_garbage_raises_decode_error():
    with pytest.raises(DecodeError):
        extract_docx_text(b"PK\x03\x04 not really a zip")
