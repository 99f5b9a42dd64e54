"""
Text Extractor Tests
"""

import io

import pytest
from docx import Document as DocxDocument

from prose_counsel.core.errors import EmptyContent, ExtractionFailed, UnsupportedMediaType
from prose_counsel.services import text_extractor
from prose_counsel.services.text_extractor import MIME_DOCX, MIME_PDF, TextExtractor

pytestmark = pytest.mark.anyio


def _docx_bytes(*paragraphs: str, table: list[list[str]] | None = None) -> bytes:
    doc = DocxDocument()
    for text in paragraphs:
        doc.add_paragraph(text)
    if table:
        grid = doc.add_table(rows=len(table), cols=len(table[0]))
        for r, row in enumerate(table):
            for c, value in enumerate(row):
                grid.cell(r, c).text = value
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


class _FakePage:
    def __init__(self, text):
        self._text = text

    def extract_text(self):
        return self._text


class _FakePDF:
    def __init__(self, *texts):
        self.pages = [_FakePage(t) for t in texts]

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


# =============================================================================
# Format Detection
# =============================================================================

async def test_detects_by_mime_type():
    extractor = TextExtractor()
    assert extractor.detect_format("application/pdf") == "pdf"
    assert extractor.detect_format(MIME_DOCX) == "docx"
    assert extractor.detect_format("text/plain; charset=utf-8") == "txt"


async def test_detects_by_extension_when_mime_is_generic():
    extractor = TextExtractor()
    assert extractor.detect_format("application/octet-stream", "Complaint.PDF") == "pdf"
    assert extractor.detect_format("application/octet-stream", "motion.docx") == "docx"
    assert extractor.detect_format(None, "notes.txt") == "txt"


async def test_legacy_word_and_images_unsupported():
    extractor = TextExtractor()
    assert not extractor.is_supported("application/msword", "old.doc")
    assert not extractor.is_supported("image/png", "scan.png")
    assert not extractor.is_supported(None, None)


# =============================================================================
# Extraction
# =============================================================================

async def test_plain_text_decoded_as_utf8():
    text = TextExtractor().extract("§ 1983 claim".encode("utf-8"), "text/plain", "claim.txt")
    assert text == "§ 1983 claim"


async def test_invalid_utf8_bytes_are_replaced():
    text = TextExtractor().extract(b"Plaintiff \xff alleges", "text/plain", "claim.txt")
    assert text.startswith("Plaintiff ")
    assert "alleges" in text


async def test_docx_paragraphs_and_tables():
    data = _docx_bytes(
        "COMPLAINT FOR DAMAGES",
        "Plaintiff Jane Doe alleges as follows.",
        table=[["Exhibit", "Description"], ["A", "Police report"]],
    )
    text = TextExtractor().extract(data, MIME_DOCX, "complaint.docx")

    assert "COMPLAINT FOR DAMAGES" in text
    assert "Plaintiff Jane Doe alleges as follows." in text
    assert "A | Police report" in text


async def test_pdf_pages_joined_with_newlines(monkeypatch):
    monkeypatch.setattr(
        text_extractor.pdfplumber, "open", lambda stream: _FakePDF("Page one", None, "Page three")
    )
    text = TextExtractor().extract(b"%PDF-1.4", MIME_PDF, "complaint.pdf")
    assert text == "Page one\n\nPage three"


async def test_unsupported_type_raises():
    with pytest.raises(UnsupportedMediaType):
        TextExtractor().extract(b"\x89PNG", "image/png", "scan.png")


async def test_corrupt_pdf_raises_extraction_failed():
    with pytest.raises(ExtractionFailed) as exc_info:
        TextExtractor().extract(b"this is not a pdf", MIME_PDF, "broken.pdf")
    assert exc_info.value.message == "Failed to extract text from file"
    assert exc_info.value.details


async def test_corrupt_docx_raises_extraction_failed():
    with pytest.raises(ExtractionFailed):
        TextExtractor().extract(b"PK not really a zip", MIME_DOCX, "broken.docx")


async def test_whitespace_only_file_raises_empty_content():
    with pytest.raises(EmptyContent):
        TextExtractor().extract(b"   \n\t  ", "text/plain", "blank.txt")


async def test_empty_docx_raises_empty_content():
    with pytest.raises(EmptyContent):
        TextExtractor().extract(_docx_bytes(), MIME_DOCX, "blank.docx")
