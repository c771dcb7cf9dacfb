"""Pydantic models for chat requests, messages and stream events.

Provides type safety and validation on both sides of the transport bridge.

Models:
    - ChatMessage: Individual message in conversation
    - Attachment: File attached to a message as a data URI
    - ChatRequest: Payload of one chat send
    - FragmentEvent / DoneEvent / ErrorEvent: Events of one exchange
"""

from opendocs.models.schemas import (
    Attachment,
    CancelResponse,
    ChatMessage,
    ChatRequest,
    DoneEvent,
    ErrorEvent,
    FragmentEvent,
    Role,
    StreamEvent,
    is_terminal,
    stream_event_adapter,
)

__all__ = [
    "Attachment",
    "CancelResponse",
    "ChatMessage",
    "ChatRequest",
    "DoneEvent",
    "ErrorEvent",
    "FragmentEvent",
    "Role",
    "StreamEvent",
    "is_terminal",
    "stream_event_adapter",
]
