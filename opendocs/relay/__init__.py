"""Chat relay: prompt templating, message assembly and streaming.

Responsibilities:
    - System message construction from document context and custom instructions
    - Attaching the open PDF to the most recent user turn
    - Driving a provider adapter and relaying its fragments as events
    - Translating provider failures into user-facing messages

Import ChatRelay from opendocs.relay.relay; provider adapters import this
package's error types, so it must not import them back.
"""

from opendocs.relay.assembler import build_messages, build_system_message, read_attachment
from opendocs.relay.config import RelayConfig, get_relay_config
from opendocs.relay.errors import (
    CredentialError,
    ErrorCategory,
    ProviderError,
    ProviderNetworkError,
    ProviderTimeoutError,
    RateLimitError,
    classify_error,
    user_message_for,
)

__all__ = [
    "CredentialError",
    "ErrorCategory",
    "ProviderError",
    "ProviderNetworkError",
    "ProviderTimeoutError",
    "RateLimitError",
    "RelayConfig",
    "build_messages",
    "build_system_message",
    "classify_error",
    "get_relay_config",
    "read_attachment",
    "user_message_for",
]
