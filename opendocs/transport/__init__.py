"""Transport bridge between the reader UI and the chat relay.

Responsibilities:
    - Sending one chat request per exchange (fire-and-forget)
    - Delivering fragment, done and error events in emission order
    - Tearing down an exchange's listeners on its terminal event
    - Forwarding stop requests to the relay

Transports:
    - HttpTransport: SSE over HTTP to the FastAPI relay endpoint
    - LocalTransport: direct calls into an in-process ChatRelay
"""

from opendocs.transport.bridge import (
    ChatChannel,
    ExchangeInProgressError,
    LocalTransport,
    Subscription,
    Transport,
)
from opendocs.transport.http import HttpTransport

__all__ = [
    "ChatChannel",
    "ExchangeInProgressError",
    "HttpTransport",
    "LocalTransport",
    "Subscription",
    "Transport",
]
