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
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF with known text on each page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Page one content")
    c.showPage()
    c.drawString(72, 720, "Page two content")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Generate a valid PDF with no text content (blank page)."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def rent_roll_pdf_bytes() -> bytes:
    """Generate a two-page PDF: a cover page, then a rent roll table."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Annual report 2024")
    c.showPage()
    c.drawString(72, 720, "Rent roll")
    rows = [
        "Unit Address Zip Floor Door Sqm Rent",
        "1 Vesterbrogade 12 1620 st tv 72 9500",
        "2 Vesterbrogade 12 1620 1 th 85 11200",
    ]
    for offset, row in enumerate(rows):
        c.drawString(72, 690 - offset * 20, row)
    c.save()
    return buf.getvalue()
