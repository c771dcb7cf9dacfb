"""UI-side half of the transport bridge.

A ChatChannel sends one chat request at a time and routes the resulting
events to a per-exchange Subscription holding the caller's three listeners
(fragment, done, error). The subscription tears its listeners down on the
first terminal event, so repeated exchanges never accumulate listeners.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable

from opendocs.models.schemas import (
    ChatRequest,
    DoneEvent,
    ErrorEvent,
    FragmentEvent,
    StreamEvent,
    is_terminal,
)
from opendocs.relay.errors import user_message_for
from opendocs.relay.relay import ChatRelay

logger = logging.getLogger(__name__)

FragmentListener = Callable[[str], None]
DoneListener = Callable[[], None]
ErrorListener = Callable[[str], None]

STREAM_ENDED_MESSAGE = "Connection closed before the response was complete."


class ExchangeInProgressError(Exception):
    """Raised when a channel is asked to send while an exchange is open."""


class Transport(ABC):
    """Carries requests to a relay and events back."""

    @abstractmethod
    def send(self, request: ChatRequest) -> AsyncIterator[StreamEvent]:
        """Send a request and iterate over the events of its exchange."""

    @abstractmethod
    async def cancel(self, exchange_id: str) -> bool:
        """Ask the relay to stop an exchange."""


class LocalTransport(Transport):
    """Transport to a relay running in the same process."""

    def __init__(self, relay: ChatRelay) -> None:
        self._relay = relay

    def send(self, request: ChatRequest) -> AsyncIterator[StreamEvent]:
        return self._relay.handle_chat_request(request)

    async def cancel(self, exchange_id: str) -> bool:
        return self._relay.cancel(exchange_id)


class Subscription:
    """Listeners registered for a single exchange.

    Holds the fragment, done and error listeners until the exchange ends.
    close() removes all three at once and may be called any number of times.
    """

    def __init__(
        self,
        channel: "ChatChannel",
        exchange_id: str,
        on_fragment: FragmentListener,
        on_done: DoneListener,
        on_error: ErrorListener,
    ) -> None:
        self.exchange_id = exchange_id
        self._channel = channel
        self._on_fragment: FragmentListener | None = on_fragment
        self._on_done: DoneListener | None = on_done
        self._on_error: ErrorListener | None = on_error
        self._task: asyncio.Task[None] | None = None

    @property
    def listener_count(self) -> int:
        return sum(
            listener is not None for listener in (self._on_fragment, self._on_done, self._on_error)
        )

    @property
    def closed(self) -> bool:
        return self.listener_count == 0

    def deliver(self, event: StreamEvent) -> None:
        """Pass one event to the matching listener.

        Terminal events close the subscription before the listener runs.
        Events arriving after that are dropped.
        """
        if self.closed:
            logger.debug(f"Dropping {event.type} event for closed exchange {self.exchange_id}")
            return

        if isinstance(event, FragmentEvent):
            self._on_fragment(event.text)
        elif isinstance(event, DoneEvent):
            on_done = self._on_done
            self.close()
            on_done()
        elif isinstance(event, ErrorEvent):
            on_error = self._on_error
            self.close()
            on_error(event.message)

    def close(self) -> None:
        """Remove all listeners of this exchange."""
        if self.closed:
            return
        self._on_fragment = None
        self._on_done = None
        self._on_error = None
        self._channel._discard(self)

    async def cancel(self) -> bool:
        """Ask the relay to stop generating for this exchange."""
        if self.closed:
            return False
        return await self._channel.cancel(self.exchange_id)

    async def abandon(self) -> None:
        """Stop the exchange, drop its listeners and wait for it to wind down.

        Once this returns the relay is free for the next exchange.
        """
        await self.cancel()
        self.close()
        if self._task is not None:
            await self._task


class ChatChannel:
    """Sends chat requests and dispatches their events to subscriptions.

    At most one exchange is in flight per channel.
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport
        self._subscriptions: dict[str, Subscription] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def listener_count(self) -> int:
        """Number of listeners currently registered across all exchanges."""
        return sum(sub.listener_count for sub in self._subscriptions.values())

    @property
    def busy(self) -> bool:
        return bool(self._subscriptions)

    def stream_chat(
        self,
        request: ChatRequest,
        on_fragment: FragmentListener,
        on_done: DoneListener,
        on_error: ErrorListener,
    ) -> Subscription:
        """Send a chat request and register listeners for its events.

        The request is sent in the background; this returns immediately.

        Args:
            request: The chat request.
            on_fragment: Called with each text fragment, in order.
            on_done: Called once when the reply is complete.
            on_error: Called once with a user-facing message on failure.

        Returns:
            The subscription for this exchange.

        Raises:
            ExchangeInProgressError: If another exchange is still open.
        """
        if self._subscriptions:
            raise ExchangeInProgressError(
                f"Exchange {next(iter(self._subscriptions))} is still in progress"
            )

        subscription = Subscription(self, request.exchange_id, on_fragment, on_done, on_error)
        self._subscriptions[request.exchange_id] = subscription

        task = asyncio.get_running_loop().create_task(self._pump(request))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        subscription._task = task
        return subscription

    def dispatch(self, event: StreamEvent) -> None:
        """Route an event to the subscription of its exchange."""
        subscription = self._subscriptions.get(event.exchange_id)
        if subscription is None:
            logger.debug(f"No subscription for exchange {event.exchange_id}, dropping {event.type}")
            return
        subscription.deliver(event)

    async def cancel(self, exchange_id: str) -> bool:
        """Ask the relay to stop an exchange."""
        try:
            return await self._transport.cancel(exchange_id)
        except Exception as e:
            logger.error(f"Failed to cancel exchange {exchange_id}: {e}")
            return False

    async def wait_idle(self) -> None:
        """Wait until every background send has finished."""
        if self._tasks:
            await asyncio.gather(*self._tasks)

    async def _pump(self, request: ChatRequest) -> None:
        exchange_id = request.exchange_id
        stop_requested = False
        try:
            async for event in self._transport.send(request):
                # Drained to the end so the relay's exchange is released
                if is_terminal(event):
                    logger.debug(f"Exchange {exchange_id} finished with {event.type}")
                elif exchange_id not in self._subscriptions and not stop_requested:
                    # Listeners dropped before the relay picked the exchange up
                    stop_requested = True
                    await self.cancel(exchange_id)
                self.dispatch(event)
        except Exception as e:
            logger.error(f"Transport error in exchange {exchange_id}: {e}")
            self.dispatch(ErrorEvent(exchange_id=exchange_id, message=user_message_for(e)))
            return

        if exchange_id in self._subscriptions:
            logger.warning(f"Exchange {exchange_id} ended without a terminal event")
            self.dispatch(ErrorEvent(exchange_id=exchange_id, message=STREAM_ENDED_MESSAGE))

    def _discard(self, subscription: Subscription) -> None:
        self._subscriptions.pop(subscription.exchange_id, None)
