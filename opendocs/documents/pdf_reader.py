"""PDF reading module using pypdf.

Reads PDF files from disk and extracts the text used as chat context,
for the whole document or a page range.
"""

import io
import logging
from pathlib import Path

from pydantic import BaseModel, Field
from pypdf import PdfReader
from pypdf.errors import PdfReadError

logger = logging.getLogger(__name__)

# Constants
MAX_FILE_SIZE = 50 * 1024 * 1024  # 50MB
PDF_MAGIC_BYTES = b"%PDF"


class PDFDocument(BaseModel):
    """An opened PDF document.

    Attributes:
        pages: Total number of pages in the document.
        metadata: Document metadata (title, author, etc.).
    """

    pages: int = Field(ge=1)
    metadata: dict[str, str]

    @property
    def title(self) -> str | None:
        return self.metadata.get("title")


class PDFParseError(Exception):
    """Raised when PDF parsing fails."""

    pass


def read_pdf_file(file_path: str | Path) -> bytes | None:
    """Read a PDF file from disk.

    Args:
        file_path: Path of the file chosen by the user.

    Returns:
        Raw file bytes, or None if the file could not be read.
    """
    try:
        return Path(file_path).read_bytes()
    except OSError as e:
        logger.error(f"Error reading PDF file {file_path}: {e}")
        return None


def _validate_pdf_bytes(file_content: bytes) -> None:
    """Validate PDF file content before parsing.

    Raises:
        PDFParseError: If validation fails.
    """
    if not file_content:
        raise PDFParseError("Empty file provided")

    if len(file_content) > MAX_FILE_SIZE:
        size_mb = len(file_content) / (1024 * 1024)
        raise PDFParseError(f"File size ({size_mb:.1f}MB) exceeds maximum allowed (50MB)")

    if not file_content.lstrip()[:10].startswith(PDF_MAGIC_BYTES):
        raise PDFParseError("Invalid PDF: file does not start with PDF header")


def _open_reader(file_content: bytes) -> PdfReader:
    _validate_pdf_bytes(file_content)

    try:
        reader = PdfReader(io.BytesIO(file_content))
        page_count = len(reader.pages)
    except PdfReadError as e:
        raise PDFParseError(f"Corrupt or invalid PDF: {e}") from e
    except Exception as e:
        raise PDFParseError(f"Failed to read PDF: {e}") from e

    if page_count == 0:
        raise PDFParseError("PDF contains no pages")
    return reader


def _extract_metadata(reader: PdfReader) -> dict[str, str]:
    """Extract metadata from PDF reader."""
    metadata: dict[str, str | None] = {}

    try:
        if reader.metadata:
            metadata["title"] = reader.metadata.get("/Title")
            metadata["author"] = reader.metadata.get("/Author")
            metadata["subject"] = reader.metadata.get("/Subject")
    except Exception as e:
        logger.warning(f"Failed to extract some metadata: {e}")

    return {k: str(v) for k, v in metadata.items() if v}


def load_document(file_content: bytes) -> PDFDocument:
    """Open a PDF and report its page count and metadata.

    Args:
        file_content: Raw bytes of the PDF file.

    Returns:
        PDFDocument describing the file.

    Raises:
        PDFParseError: If the file is invalid, too large, empty, or corrupt.
    """
    reader = _open_reader(file_content)
    return PDFDocument(pages=len(reader.pages), metadata=_extract_metadata(reader))


def extract_context(
    file_content: bytes,
    first_page: int | None = None,
    last_page: int | None = None,
) -> str:
    """Extract the text of a page range to use as chat context.

    Pages are numbered from 1 and both ends are inclusive. Leaving both
    ends out selects the whole document.

    Args:
        file_content: Raw bytes of the PDF file.
        first_page: First page of the range (default: 1).
        last_page: Last page of the range (default: last page).

    Returns:
        The pages' text joined by blank lines.

    Raises:
        PDFParseError: If the file is invalid or the range is out of bounds.
    """
    reader = _open_reader(file_content)
    pages = len(reader.pages)

    start = first_page if first_page is not None else 1
    end = last_page if last_page is not None else pages
    if start < 1 or end > pages or start > end:
        raise PDFParseError(f"Invalid page range {start}-{end} for a {pages}-page document")

    text_parts: list[str] = []
    for number in range(start, end + 1):
        try:
            page_text = reader.pages[number - 1].extract_text()
            if page_text:
                text_parts.append(page_text)
        except Exception as e:
            logger.warning(f"Failed to extract text from page {number}: {e}")
            continue

    text = "\n\n".join(text_parts)
    if not text.strip():
        logger.warning(f"Pages {start}-{end} contain no extractable text (may be scanned/image-based)")
    return text
