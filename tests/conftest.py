import io
from pathlib import Path

import docx
import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF containing an email address."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Contact: test@example.com")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF with PII on each page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Patient John Smith")
    c.showPage()
    c.drawString(72, 720, "SSN 123-45-6789")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def sample_pdf_path(tmp_path: Path, sample_pdf_bytes: bytes) -> Path:
    path = tmp_path / "sample.pdf"
    path.write_bytes(sample_pdf_bytes)
    return path


@pytest.fixture()
def multi_page_pdf_path(tmp_path: Path, multi_page_pdf_bytes: bytes) -> Path:
    path = tmp_path / "multi.pdf"
    path.write_bytes(multi_page_pdf_bytes)
    return path


@pytest.fixture()
def sample_docx_path(tmp_path: Path) -> Path:
    """DOCX with PII in the body, a table, and the primary header."""
    document = docx.Document()
    document.add_paragraph("Contact test@example.com for details.")
    paragraph = document.add_paragraph("Name: ")
    paragraph.add_run("John ")
    paragraph.add_run("Smith").bold = True
    table = document.add_table(rows=1, cols=2)
    table.cell(0, 0).text = "SSN"
    table.cell(0, 1).text = "123-45-6789"
    header = document.sections[0].header
    header.is_linked_to_previous = False
    header.paragraphs[0].text = "Prepared by John Smith"
    path = tmp_path / "sample.docx"
    document.save(str(path))
    return path
