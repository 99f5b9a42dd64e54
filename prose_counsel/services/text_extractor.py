"""
ProSe Counsel - Text Extraction Service
Pulls plain text out of uploaded filings.

Supported formats (checked in this order):
1. PDF  - pdfplumber, every page's text joined with newlines
2. DOCX - python-docx, paragraphs followed by table cells
3. TXT  - UTF-8 decode, undecodable bytes replaced

Each format matches on the declared MIME type first and on the file
extension second, since browsers often send application/octet-stream.
Legacy .doc files are not supported.
"""

import io
import logging
from pathlib import PurePath
from typing import Optional

import pdfplumber
from docx import Document as DocxDocument

from prose_counsel.core.errors import EmptyContent, ExtractionFailed, UnsupportedMediaType

logger = logging.getLogger(__name__)

MIME_TXT = "text/plain"
MIME_PDF = "application/pdf"
MIME_DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

# (format name, MIME type, extension)
FORMATS = [
    ("pdf", MIME_PDF, ".pdf"),
    ("docx", MIME_DOCX, ".docx"),
    ("txt", MIME_TXT, ".txt"),
]


def _extension(filename: Optional[str]) -> str:
    if not filename:
        return ""
    return PurePath(filename).suffix.lower()


def _base_mime(mime_type: Optional[str]) -> str:
    # "text/plain; charset=utf-8" -> "text/plain"
    return (mime_type or "").split(";")[0].strip().lower()


class TextExtractor:
    """Format sniffing plus one extraction pass per file."""

    def detect_format(self, mime_type: Optional[str], filename: Optional[str] = None) -> Optional[str]:
        """Return "pdf", "docx", "txt", or None when the file is not supported."""
        mime = _base_mime(mime_type)
        ext = _extension(filename)
        for name, fmt_mime, fmt_ext in FORMATS:
            if mime == fmt_mime or ext == fmt_ext:
                return name
        return None

    def is_supported(self, mime_type: Optional[str], filename: Optional[str] = None) -> bool:
        return self.detect_format(mime_type, filename) is not None

    def extract(self, data: bytes, mime_type: Optional[str], filename: Optional[str] = None) -> str:
        """
        Extract text from an uploaded file.

        Raises:
            UnsupportedMediaType: neither MIME type nor extension is TXT/PDF/DOCX
            ExtractionFailed: the PDF or DOCX parser raised
            EmptyContent: the file yielded only whitespace
        """
        fmt = self.detect_format(mime_type, filename)
        if fmt is None:
            raise UnsupportedMediaType(
                "Unsupported file type. Please upload TXT, PDF, or DOCX files.",
                details={"mimeType": mime_type, "fileName": filename},
            )

        logger.info("Extracting %s text from %s (%d bytes)", fmt, filename or "<upload>", len(data))

        if fmt == "txt":
            text = data.decode("utf-8", errors="replace")
        else:
            try:
                text = self._extract_pdf(data) if fmt == "pdf" else self._extract_docx(data)
            except Exception as e:
                logger.warning("%s extraction failed for %s: %s", fmt, filename or "<upload>", e)
                raise ExtractionFailed("Failed to extract text from file", details=str(e)) from e

        if not text.strip():
            raise EmptyContent("No text content could be extracted from the file")
        return text

    def _extract_pdf(self, data: bytes) -> str:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            pages = [page.extract_text() or "" for page in pdf.pages]
            logger.debug("pdfplumber read %d pages", len(pages))
        return "\n".join(pages)

    def _extract_docx(self, data: bytes) -> str:
        doc = DocxDocument(io.BytesIO(data))
        lines = [p.text for p in doc.paragraphs]
        for table in doc.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    lines.append(" | ".join(cells))
        return "\n".join(lines)


# Singleton instance
_extractor: Optional[TextExtractor] = None


def get_text_extractor() -> TextExtractor:
    global _extractor
    if _extractor is None:
        _extractor = TextExtractor()
    return _extractor
