"""PDF reading utilities for the reader.

Responsibilities:
    - Reading the chosen file from disk without raising
    - Validation (size, header, corrupt files)
    - Page-range text extraction with pypdf for chat context
"""

from opendocs.documents.pdf_reader import (
    PDFDocument,
    PDFParseError,
    extract_context,
    load_document,
    read_pdf_file,
)

__all__ = ["PDFDocument", "PDFParseError", "extract_context", "load_document", "read_pdf_file"]
