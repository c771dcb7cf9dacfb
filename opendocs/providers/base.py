from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from typing import Any

from opendocs.models.schemas import ChatMessage


class ProviderAdapter(ABC):
    """Abstract base class for remote generative-model adapters.

    This module hides the design decision of which provider answers the chat.
    Implementations must handle:
    - Client setup and authentication with the per-request API key
    - Conversion of messages and attachments to the provider's format
    - Translation of SDK failures into typed ProviderError subclasses

    Adapters never retry. A failure surfaces on the first attempt.

    Supports async context manager protocol for proper resource cleanup:
        async with adapter:
            async for fragment in adapter.stream(model, system, messages):
                ...
    """

    @abstractmethod
    def stream(
        self,
        model: str,
        system_instruction: str,
        messages: Sequence[ChatMessage],
    ) -> AsyncIterator[str]:
        """Stream the assistant's reply as text fragments.

        Args:
            model: Model identifier to generate with.
            system_instruction: System message for this exchange.
            messages: Conversation history, attachments included.

        Returns:
            Async iterator yielding text fragments as they arrive.

        Raises:
            ProviderError: Typed by cause (credential, rate limit, network, timeout).
        """

    async def close(self) -> None:
        """Close any open connections or resources."""

    async def __aenter__(self) -> "ProviderAdapter":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup."""
        await self.close()
