import base64
import uuid
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class Role(str, Enum):
    """Speaker of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Attachment(BaseModel):
    """A file attached to a chat message.

    Attributes:
        name: Display name of the attached file.
        content_type: MIME type of the file.
        payload: The file encoded as a base64 data URI.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    content_type: str = Field(..., alias="contentType")
    payload: str

    def decode(self) -> bytes:
        """Decode the data URI payload back into raw bytes."""
        _, _, data = self.payload.partition(",")
        return base64.b64decode(data)


class ChatMessage(BaseModel):
    """A single chat message in the conversation.

    Attributes:
        role: The speaker (user, assistant, or system).
        content: The message text.
        attachments: Files attached to this message, in order.
    """

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str
    attachments: tuple[Attachment, ...] = ()


class ChatRequest(BaseModel):
    """Payload of one user-initiated chat send.

    Field aliases match the JSON payload the reader UI sends.

    Attributes:
        messages: Ordered chat history, ending with the new user turn.
        api_key: Provider credential, passed per request and never stored.
        document_context: Text of the document or page range in view.
        file_path: Optional path of a file to attach to the last user turn.
        model: Model identifier overriding the configured default.
        custom_instructions: User-defined additions to the system message.
        exchange_id: Correlation id shared by every event of this exchange.
    """

    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessage]
    api_key: str = Field("", alias="apiKey", repr=False)
    document_context: str | None = Field(None, alias="context")
    file_path: str | None = Field(None, alias="filePath")
    model: str | None = None
    custom_instructions: str | None = Field(None, alias="customInstructions")
    exchange_id: str = Field(default_factory=lambda: uuid.uuid4().hex, alias="exchangeId")


class FragmentEvent(BaseModel):
    """The next piece of the assistant's reply."""

    type: Literal["fragment"] = "fragment"
    exchange_id: str
    text: str


class DoneEvent(BaseModel):
    """Successful end of the reply stream."""

    type: Literal["done"] = "done"
    exchange_id: str


class ErrorEvent(BaseModel):
    """Failed end of the reply stream, with a user-facing message."""

    type: Literal["error"] = "error"
    exchange_id: str
    message: str


StreamEvent = Annotated[FragmentEvent | DoneEvent | ErrorEvent, Field(discriminator="type")]

stream_event_adapter: TypeAdapter[StreamEvent] = TypeAdapter(StreamEvent)


def is_terminal(event: StreamEvent) -> bool:
    """Return True for events that end an exchange."""
    return isinstance(event, DoneEvent | ErrorEvent)


class CancelResponse(BaseModel):
    """Response of the cancel endpoint.

    Attributes:
        exchange_id: The exchange the caller asked to stop.
        cancelled: Whether an active exchange with that id was signalled.
    """

    exchange_id: str
    cancelled: bool
