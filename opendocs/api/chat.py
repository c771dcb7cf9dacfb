"""Chat streaming endpoints.

Serves the relay side of the transport bridge: each exchange is streamed
as Server-Sent Events, one JSON-encoded event per ``data:`` line.
"""

import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from opendocs.models.schemas import CancelResponse, ChatRequest
from opendocs.relay.relay import ChatRelay

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def get_relay(request: Request) -> ChatRelay:
    """Return the relay owned by the application."""
    return request.app.state.relay


@router.post("/stream")
async def chat_stream(
    chat_request: ChatRequest,
    relay: ChatRelay = Depends(get_relay),
) -> StreamingResponse:
    """Stream one chat exchange as Server-Sent Events.

    Args:
        chat_request: Chat history, API key and optional document context.

    Returns:
        A text/event-stream response of fragment events followed by one
        done or error event.

    Raises:
        422: Missing messages or malformed JSON.
    """
    exchange_id = chat_request.exchange_id

    async def event_stream() -> AsyncGenerator[str]:
        async for event in relay.handle_chat_request(chat_request):
            yield f"data: {event.model_dump_json()}\n\n"

    logger.info(f"Opening event stream for exchange {exchange_id}")
    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={**SSE_HEADERS, "X-Exchange-Id": exchange_id},
    )


@router.post("/cancel/{exchange_id}", response_model=CancelResponse)
async def cancel_chat(
    exchange_id: str,
    relay: ChatRelay = Depends(get_relay),
) -> CancelResponse:
    """Stop generating for an active exchange.

    Returns:
        CancelResponse telling whether the exchange was active and signalled.
    """
    cancelled = relay.cancel(exchange_id)
    return CancelResponse(exchange_id=exchange_id, cancelled=cancelled)
