"""Message assembly for a chat exchange.

Turns the raw chat history, the document context and the user's custom
instructions into the system instruction and message list handed to a
provider adapter.
"""

import base64
import logging
import mimetypes
from collections.abc import Sequence
from pathlib import Path

from opendocs.models.schemas import Attachment, ChatMessage, Role
from opendocs.relay import prompts

logger = logging.getLogger(__name__)

# Gemini accepts inline request payloads up to 20MB
DEFAULT_MAX_ATTACHMENT_BYTES = 20 * 1024 * 1024
DEFAULT_CONTENT_TYPE = "application/pdf"


def build_system_message(document_context: str | None, custom_instructions: str | None = None) -> str:
    """Build the system instruction for an exchange.

    Args:
        document_context: Text of the document or page range, if any.
        custom_instructions: User-defined instructions from settings.

    Returns:
        The context-grounded instruction block when a context is present,
        otherwise the fixed default system message.
    """
    if document_context:
        return prompts.system_message_with_context(document_context, custom_instructions)
    return prompts.DEFAULT_SYSTEM_MESSAGE


def read_attachment(
    file_path: str | Path,
    max_bytes: int = DEFAULT_MAX_ATTACHMENT_BYTES,
) -> Attachment | None:
    """Read a file and encode it as a data URI attachment.

    Read failures are logged and reported as None so the exchange can go on
    without the file.

    Args:
        file_path: Path of the file to attach.
        max_bytes: Files larger than this are not attached.

    Returns:
        The attachment, or None if the file could not be used.
    """
    path = Path(file_path)
    try:
        data = path.read_bytes()
    except OSError as e:
        logger.error(f"Error reading file for chat: {path}: {e}")
        return None

    if len(data) > max_bytes:
        size_mb = len(data) / (1024 * 1024)
        logger.warning(
            f"Not attaching {path.name}: {size_mb:.1f}MB exceeds the "
            f"{max_bytes / (1024 * 1024):.0f}MB attachment limit"
        )
        return None

    content_type = mimetypes.guess_type(path.name)[0] or DEFAULT_CONTENT_TYPE
    encoded = base64.b64encode(data).decode("ascii")
    return Attachment(
        name=path.name or "document.pdf",
        content_type=content_type,
        payload=f"data:{content_type};base64,{encoded}",
    )


def _last_user_index(messages: Sequence[ChatMessage]) -> int | None:
    for index in range(len(messages) - 1, -1, -1):
        if messages[index].role == Role.USER:
            return index
    return None


def build_messages(
    history: Sequence[ChatMessage],
    file_path: str | Path | None = None,
    max_bytes: int = DEFAULT_MAX_ATTACHMENT_BYTES,
) -> list[ChatMessage]:
    """Build the final message list for the provider.

    The history is copied unchanged. When a file path is given, the file is
    attached to the most recent user message; if there is no user message
    the file is not attached.

    Args:
        history: The conversation so far, in order.
        file_path: Optional file to attach.
        max_bytes: Size limit for the attached file.

    Returns:
        A new list of messages.
    """
    messages = list(history)
    if not file_path:
        return messages

    index = _last_user_index(messages)
    if index is None:
        logger.warning("No user message found to attach file")
        return messages

    attachment = read_attachment(file_path, max_bytes)
    if attachment is None:
        return messages

    target = messages[index]
    logger.info(f"Attaching {attachment.name} to message {index}")
    messages[index] = target.model_copy(update={"attachments": (*target.attachments, attachment)})
    return messages
