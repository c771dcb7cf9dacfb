"""Streaming chat relay.

Core of the assistant: runs one chat exchange at a time, from request to
terminal event.

Contract:

1. **Events, not exceptions** - every exchange yields zero or more fragment
   events followed by exactly one done or error event. No exception raised
   while assembling messages or streaming crosses this boundary; it is
   classified and turned into an error event.

2. **One exchange at a time** - a request arriving while another is active
   is rejected with an error event instead of being interleaved.

3. **Per-request credentials** - the API key travels with the request and
   goes straight into the adapter built for that exchange.

4. **Cancellation** - every wait for the next fragment races a per-exchange
   cancellation token, so a stop request ends the exchange without waiting
   for the provider's next chunk.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field

from opendocs.models.schemas import (
    ChatRequest,
    DoneEvent,
    ErrorEvent,
    FragmentEvent,
    StreamEvent,
)
from opendocs.providers.base import ProviderAdapter
from opendocs.providers.factory import create_adapter
from opendocs.relay import prompts
from opendocs.relay.assembler import build_messages, build_system_message
from opendocs.relay.config import RelayConfig, get_relay_config
from opendocs.relay.errors import classify_error, user_message_for

logger = logging.getLogger(__name__)

AdapterFactory = Callable[[RelayConfig, str], ProviderAdapter]


@dataclass
class _Exchange:
    exchange_id: str
    cancel: asyncio.Event = field(default_factory=asyncio.Event)


async def _next_chunk(stream: AsyncIterator[object]) -> object:
    return await stream.__anext__()


async def _until_cancelled(
    stream: AsyncIterator[object],
    cancel: asyncio.Event,
) -> AsyncIterator[object]:
    """Yield from stream until it ends or cancel is set.

    The outstanding chunk task is always reaped before returning, including
    when the consuming task itself is cancelled, so the stream is idle by
    the time its owner closes it.
    """
    cancelled = asyncio.ensure_future(cancel.wait())
    pending: asyncio.Future[object] | None = None
    try:
        while True:
            pending = asyncio.ensure_future(_next_chunk(stream))
            done, _ = await asyncio.wait({pending, cancelled}, return_when=asyncio.FIRST_COMPLETED)
            if pending not in done:
                return
            try:
                chunk = pending.result()
            except StopAsyncIteration:
                return
            pending = None
            yield chunk
    finally:
        cancelled.cancel()
        if pending is not None and not pending.done():
            pending.cancel()
            with contextlib.suppress(asyncio.CancelledError, StopAsyncIteration):
                await pending


class ChatRelay:
    """Relays one chat exchange from the provider to the caller.

    Hidden design decisions:
    - Adapter construction per exchange (credentials are never cached)
    - Off-loop file reading for attachments
    - Error classification into user-facing messages
    """

    def __init__(
        self,
        config: RelayConfig | None = None,
        adapter_factory: AdapterFactory = create_adapter,
    ) -> None:
        """Initialize the relay.

        Args:
            config: Optional relay configuration.
                    Loads from environment if not provided.
            adapter_factory: Builds the provider adapter for an exchange.
        """
        self._config = config or get_relay_config()
        self._adapter_factory = adapter_factory
        self._active: _Exchange | None = None

    @property
    def config(self) -> RelayConfig:
        return self._config

    @property
    def busy(self) -> bool:
        """Whether an exchange is in progress."""
        return self._active is not None

    @property
    def active_exchange_id(self) -> str | None:
        return self._active.exchange_id if self._active else None

    def cancel(self, exchange_id: str) -> bool:
        """Ask the active exchange to stop.

        Args:
            exchange_id: Correlation id of the exchange to stop.

        Returns:
            True if an active exchange with that id was signalled.
        """
        if self._active is None or self._active.exchange_id != exchange_id:
            logger.info(f"Cancel ignored, no active exchange {exchange_id}")
            return False
        logger.info(f"Cancelling exchange {exchange_id}")
        self._active.cancel.set()
        return True

    async def handle_chat_request(self, request: ChatRequest) -> AsyncIterator[StreamEvent]:
        """Run one exchange and yield its events.

        Args:
            request: The chat request. Consumed by this exchange only.

        Yields:
            FragmentEvent per text fragment, then one DoneEvent or ErrorEvent.
        """
        exchange_id = request.exchange_id

        if self._active is not None:
            logger.warning(
                f"Rejecting exchange {exchange_id}: {self._active.exchange_id} is still active"
            )
            yield ErrorEvent(exchange_id=exchange_id, message=prompts.EXCHANGE_IN_PROGRESS_MESSAGE)
            return

        if not request.api_key or not request.api_key.strip():
            logger.warning(f"Exchange {exchange_id} has no API key")
            yield ErrorEvent(exchange_id=exchange_id, message=prompts.API_KEY_MISSING_MESSAGE)
            return

        exchange = _Exchange(exchange_id)
        self._active = exchange
        try:
            async for event in self._run(request, exchange):
                yield event
        finally:
            self._active = None

    async def _run(self, request: ChatRequest, exchange: _Exchange) -> AsyncIterator[StreamEvent]:
        exchange_id = exchange.exchange_id
        model = request.model or self._config.model_name
        chunk_count = 0

        try:
            system_message = build_system_message(
                request.document_context, request.custom_instructions
            )
            messages = await asyncio.to_thread(
                build_messages,
                request.messages,
                request.file_path,
                self._config.max_attachment_bytes,
            )
            logger.info(
                f"Exchange {exchange_id}: model={model}, messages={len(messages)}, "
                f"context={'yes' if request.document_context else 'no'}, "
                f"file={'yes' if request.file_path else 'no'}"
            )

            async with self._adapter_factory(self._config, request.api_key.strip()) as adapter:
                stream = adapter.stream(model, system_message, messages)
                try:
                    async with contextlib.aclosing(_until_cancelled(stream, exchange.cancel)) as chunks:
                        async for chunk in chunks:
                            if not isinstance(chunk, str):
                                continue
                            chunk_count += 1
                            yield FragmentEvent(exchange_id=exchange_id, text=chunk)
                finally:
                    aclose = getattr(stream, "aclose", None)
                    if aclose is not None:
                        await aclose()

        except Exception as e:
            category = classify_error(e)
            logger.error(f"Chat stream error in exchange {exchange_id} ({category.value}): {e}")
            yield ErrorEvent(exchange_id=exchange_id, message=user_message_for(e))
            return

        if exchange.cancel.is_set():
            logger.info(f"Exchange {exchange_id} stopped by user after {chunk_count} chunks")
        else:
            logger.info(f"Streamed {chunk_count} chunks")
        yield DoneEvent(exchange_id=exchange_id)
