"""HTTP transport: consumes the relay's SSE endpoint with httpx."""

import logging
from collections.abc import AsyncIterator

import httpx

from opendocs.models.schemas import CancelResponse, ChatRequest, StreamEvent, stream_event_adapter
from opendocs.transport.bridge import Transport

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0


class HttpTransport(Transport):
    """Transport to a relay served by the FastAPI application.

    Args:
        base_url: Root URL of the API, e.g. http://localhost:8000.
        client: Optional preconfigured client (tests pass an ASGI client).
        timeout: Request timeout in seconds for clients created here.
    """

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client
        self._timeout = timeout

    def _make_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout)

    async def send(self, request: ChatRequest) -> AsyncIterator[StreamEvent]:
        """Post the request to /chat/stream and yield the SSE events."""
        payload = request.model_dump(mode="json", by_alias=True)
        client = self._client or self._make_client()
        try:
            async with client.stream(
                "POST",
                f"{self._base_url}/chat/stream",
                json=payload,
                headers={"Accept": "text/event-stream"},
            ) as response:
                response.raise_for_status()
                async for line in response.aiter_lines():
                    if not line.startswith("data: "):
                        continue
                    yield stream_event_adapter.validate_json(line[6:])
        finally:
            if self._client is None:
                await client.aclose()

    async def cancel(self, exchange_id: str) -> bool:
        """Post to /chat/cancel/{exchange_id}."""
        client = self._client or self._make_client()
        try:
            response = await client.post(f"{self._base_url}/chat/cancel/{exchange_id}")
            response.raise_for_status()
            return CancelResponse.model_validate(response.json()).cancelled
        finally:
            if self._client is None:
                await client.aclose()
