import io

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Hello PDF World")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def authored_pdf_bytes() -> bytes:
    """Generate a PDF whose info dictionary identifies its author."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.setAuthor("Jane Doe")
    c.setTitle("Quarterly report")
    c.setCreator("cleanshare tests")
    c.drawString(72, 720, "Confidential")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def sample_text_bytes() -> bytes:
    """A 2 KB plain-text payload."""
    return b"abcdefghijklmnop" * 128
