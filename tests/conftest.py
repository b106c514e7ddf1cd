"""
Shared fixtures: minimal hand-assembled PDFs and DOCX files.

The PDF builder writes a valid file (correct xref offsets) using the standard
Helvetica font, so pdfplumber reads the text layer and pypdfium2 can render it.
"""

from io import BytesIO
from typing import List, Optional, Sequence, Tuple

import pytest
from docx import Document


TextRun = Tuple[float, float, str]  # (x, y, text) in PDF points, y up


def _escape_pdf_text(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def _content_stream(runs: Sequence[TextRun], with_image: bool) -> bytes:
    ops: List[str] = []
    if with_image:
        ops.append("q 400 0 0 400 100 200 cm /Im1 Do Q")
    for x, y, text in runs:
        ops.append(f"BT /F1 12 Tf {x} {y} Td ({_escape_pdf_text(text)}) Tj ET")
    return "\n".join(ops).encode("latin-1")


def build_pdf(pages: Sequence[Sequence[TextRun]], image_pages: Optional[Sequence[int]] = None) -> bytes:
    """
    Build a letter-size PDF.

    Args:
        pages: text runs for each page
        image_pages: 1-indexed pages that also paint an image XObject
    """
    image_pages = set(image_pages or [])
    objects: List[bytes] = []

    n_pages = len(pages)
    first_page_obj = 5
    page_ids = [first_page_obj + 2 * i for i in range(n_pages)]

    objects.append(b"<< /Type /Catalog /Pages 2 0 R >>")
    kids = " ".join(f"{pid} 0 R" for pid in page_ids)
    objects.append(f"<< /Type /Pages /Kids [{kids}] /Count {n_pages} >>".encode())
    objects.append(b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica /Encoding /WinAnsiEncoding >>")
    pixels = bytes([0, 255, 255, 0])
    objects.append(
        b"<< /Type /XObject /Subtype /Image /Width 2 /Height 2 /ColorSpace /DeviceGray "
        b"/BitsPerComponent 8 /Length " + str(len(pixels)).encode() + b" >>\nstream\n"
        + pixels + b"\nendstream"
    )

    for i, runs in enumerate(pages, start=1):
        content_id = page_ids[i - 1] + 1
        resources = "/Font << /F1 3 0 R >>"
        if i in image_pages:
            resources += " /XObject << /Im1 4 0 R >>"
        objects.append(
            (
                f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Resources << {resources} >> /Contents {content_id} 0 R >>"
            ).encode()
        )
        stream = _content_stream(runs, i in image_pages)
        objects.append(
            b"<< /Length " + str(len(stream)).encode() + b" >>\nstream\n" + stream + b"\nendstream"
        )

    out = BytesIO()
    out.write(b"%PDF-1.4\n")
    offsets = []
    for num, body in enumerate(objects, start=1):
        offsets.append(out.tell())
        out.write(f"{num} 0 obj\n".encode() + body + b"\nendobj\n")
    xref_at = out.tell()
    out.write(f"xref\n0 {len(objects) + 1}\n".encode())
    out.write(b"0000000000 65535 f \n")
    for off in offsets:
        out.write(f"{off:010d} 00000 n \n".encode())
    out.write(
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_at}\n%%EOF\n".encode()
    )
    return out.getvalue()


def build_docx(paragraphs: Sequence[str]) -> bytes:
    doc = Document()
    for p in paragraphs:
        doc.add_paragraph(p)
    buf = BytesIO()
    doc.save(buf)
    return buf.getvalue()


RESUME_RUNS: List[TextRun] = [
    (72, 720, "Jane Doe"),
    (72, 700, "Software Engineer"),
    (72, 680, "jane.doe@example.com"),
    (72, 660, "https://janedoe.dev"),
    (72, 630, "SKILLS"),
    (72, 610, "Python, FastAPI, Docker"),
    (72, 580, "EDUCATION"),
    (72, 560, "State University"),
    (72, 540, "BSc Computer Science"),
]


@pytest.fixture
def resume_pdf() -> bytes:
    return build_pdf([RESUME_RUNS])


@pytest.fixture
def scanned_pdf() -> bytes:
    """Two image-only pages with no text layer."""
    return build_pdf([[], []], image_pages=[1, 2])


@pytest.fixture
def blank_pdf() -> bytes:
    """A short text layer and no images: nothing to recognize."""
    return build_pdf([[(72, 720, "Hi")]])


@pytest.fixture
def resume_docx() -> bytes:
    return build_docx([
        "Jane Doe",
        "Backend Developer",
        "jane.doe@example.com",
        "Skills:",
        "Python, FastAPI, PostgreSQL",
    ])
