"""Provider error types and their translation into user-facing messages.

Adapters raise the typed errors below; anything else that escapes an
exchange is classified by inspecting its message text.
"""

import logging
from enum import Enum

import httpx

from opendocs.relay import prompts

logger = logging.getLogger(__name__)


class ErrorCategory(str, Enum):
    """What went wrong, as far as the user needs to know."""

    CREDENTIAL = "credential"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    TIMEOUT = "timeout"
    OTHER = "other"


class ProviderError(Exception):
    """Raised when the remote model provider fails."""

    category = ErrorCategory.OTHER

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CredentialError(ProviderError):
    """The API key was rejected or is missing."""

    category = ErrorCategory.CREDENTIAL


class RateLimitError(ProviderError):
    """The account is over quota or being rate limited."""

    category = ErrorCategory.RATE_LIMIT


class ProviderNetworkError(ProviderError):
    """The provider could not be reached."""

    category = ErrorCategory.NETWORK


class ProviderTimeoutError(ProviderError):
    """The provider did not answer in time."""

    category = ErrorCategory.TIMEOUT


_USER_MESSAGES = {
    ErrorCategory.CREDENTIAL: prompts.CREDENTIAL_ERROR_MESSAGE,
    ErrorCategory.RATE_LIMIT: prompts.RATE_LIMIT_ERROR_MESSAGE,
    ErrorCategory.NETWORK: prompts.NETWORK_ERROR_MESSAGE,
    ErrorCategory.TIMEOUT: prompts.TIMEOUT_ERROR_MESSAGE,
}

# Checked in order; the first match wins.
_MESSAGE_MARKERS: list[tuple[ErrorCategory, tuple[str, ...]]] = [
    (ErrorCategory.CREDENTIAL, ("api key", "api_key")),
    (ErrorCategory.RATE_LIMIT, ("quota", "rate limit", "resource_exhausted")),
    (ErrorCategory.TIMEOUT, ("timeout", "timed out")),
    (ErrorCategory.NETWORK, ("network", "enotfound", "getaddrinfo", "connection")),
]


def classify_error(error: BaseException) -> ErrorCategory:
    """Map an exception to an error category.

    Typed provider errors carry their category. Other exceptions fall back
    to a case-insensitive search of their message text.
    """
    if isinstance(error, ProviderError) and error.category is not ErrorCategory.OTHER:
        return error.category

    text = str(error).lower()
    for category, markers in _MESSAGE_MARKERS:
        if any(marker in text for marker in markers):
            return category
    return ErrorCategory.OTHER


def user_message_for(error: BaseException) -> str:
    """Return the message shown to the user for a failed exchange."""
    category = classify_error(error)
    if category in _USER_MESSAGES:
        return _USER_MESSAGES[category]

    text = getattr(error, "message", None) or str(error)
    if not text:
        return prompts.GENERIC_ERROR_MESSAGE
    return f"Error: {text}"


def _status_code_of(error: BaseException) -> int | None:
    for attr in ("status_code", "code"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(error, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def translate_provider_error(error: Exception) -> ProviderError:
    """Convert an SDK or transport exception into a typed provider error.

    Args:
        error: Exception raised by a provider SDK or by httpx underneath it.

    Returns:
        The matching ProviderError subclass, carrying the original message.
    """
    if isinstance(error, ProviderError):
        return error

    message = str(error) or error.__class__.__name__

    if isinstance(error, httpx.TimeoutException):
        return ProviderTimeoutError(message)
    if isinstance(error, httpx.TransportError):
        return ProviderNetworkError(message)

    status_code = _status_code_of(error)
    if status_code in (401, 403) or "api key" in message.lower():
        return CredentialError(message, status_code)
    if status_code == 429:
        return RateLimitError(message, status_code)
    if status_code in (408, 504):
        return ProviderTimeoutError(message, status_code)

    logger.debug(f"Untyped provider error ({error.__class__.__name__}, status={status_code})")
    return ProviderError(message, status_code)
