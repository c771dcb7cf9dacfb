"""Reader state for one browser tab or desktop window.

Kept free of NiceGUI imports so the page logic can be tested directly.
"""

import logging
from enum import Enum
from pathlib import Path

from opendocs.documents.pdf_reader import (
    PDFDocument,
    PDFParseError,
    extract_context,
    load_document,
    read_pdf_file,
)
from opendocs.models.schemas import ChatMessage, ChatRequest, Role
from opendocs.transport.bridge import Subscription

logger = logging.getLogger(__name__)


class ContextScope(str, Enum):
    """Which part of the open document is sent as context."""

    DOCUMENT = "document"
    PAGE = "page"
    RANGE = "range"


SCOPE_LABELS = {
    ContextScope.DOCUMENT.value: "Whole document",
    ContextScope.PAGE.value: "Current page",
    ContextScope.RANGE.value: "Page range",
}


def _page_number(value: float | None) -> int:
    # Cleared number inputs bind None
    if value is None:
        raise PDFParseError("Select a page")
    return int(value)


class ReaderSession:
    """Manages document and chat state for a user session."""

    def __init__(self) -> None:
        self.messages: list[ChatMessage] = []
        self.file_path: str | None = None
        self.document: PDFDocument | None = None
        self.scope: str = ContextScope.DOCUMENT.value
        self.current_page: float | None = 1
        self.first_page: float | None = 1
        self.last_page: float | None = 1
        self.send_file: bool = False
        self.subscription: Subscription | None = None
        self._data: bytes | None = None

    @property
    def is_streaming(self) -> bool:
        return self.subscription is not None and not self.subscription.closed

    @property
    def document_label(self) -> str:
        if self.document is None or self.file_path is None:
            return "No document open"
        name = self.document.title or Path(self.file_path).name
        return f"{name} ({self.document.pages} pages)"

    def open_document(self, file_path: str) -> PDFDocument:
        """Load a PDF and reset the page selection.

        Raises:
            PDFParseError: If the file cannot be read or is not a valid PDF.
        """
        data = read_pdf_file(file_path)
        if data is None:
            raise PDFParseError(f"Could not read {file_path}")

        document = load_document(data)
        self.file_path = file_path
        self.document = document
        self._data = data
        self.current_page = 1
        self.first_page = 1
        self.last_page = document.pages
        logger.info(f"Opened {file_path} ({document.pages} pages)")
        return document

    def page_range(self) -> tuple[int, int] | None:
        """Return the inclusive page range for the selected scope.

        Raises:
            PDFParseError: If a page field of the selected scope is empty.
        """
        if self.document is None:
            return None
        if self.scope == ContextScope.PAGE:
            page = _page_number(self.current_page)
            return page, page
        if self.scope == ContextScope.RANGE:
            return _page_number(self.first_page), _page_number(self.last_page)
        return 1, self.document.pages

    def document_context(self) -> str | None:
        """Extract the text of the selected pages.

        Raises:
            PDFParseError: If the selected range is invalid.
        """
        page_range = self.page_range()
        if self._data is None or page_range is None:
            return None
        return extract_context(self._data, *page_range) or None

    def add_message(self, role: Role, content: str) -> None:
        self.messages.append(ChatMessage(role=role, content=content))

    def build_request(
        self,
        api_key: str,
        model: str | None = None,
        custom_instructions: str | None = None,
    ) -> ChatRequest:
        """Build the chat request for the current history and document."""
        return ChatRequest(
            messages=list(self.messages),
            api_key=api_key,
            document_context=self.document_context(),
            file_path=self.file_path if self.send_file else None,
            model=model or None,
            custom_instructions=custom_instructions or None,
        )

    async def reset_chat(self) -> None:
        """Clear the conversation, stopping any exchange still streaming."""
        subscription, self.subscription = self.subscription, None
        if subscription is not None and not subscription.closed:
            await subscription.abandon()
        self.messages.clear()
