"""Google Gemini adapter.

Uses the official Google GenAI SDK for async streaming completions.
Reference: https://github.com/googleapis/python-genai
"""

import logging
from collections.abc import AsyncIterator, Sequence
from typing import Any

from google import genai
from google.genai import types

from opendocs.models.schemas import ChatMessage, Role
from opendocs.providers.base import ProviderAdapter
from opendocs.relay.errors import translate_provider_error

logger = logging.getLogger(__name__)


class GeminiAdapter(ProviderAdapter):
    """Google Gemini adapter.

    Hidden design decisions:
    - Google GenAI client initialization per API key
    - Message format conversion (assistant -> model, system -> instruction)
    - Attachments sent as inline byte parts
    """

    def __init__(
        self,
        api_key: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **client_kwargs: Any,
    ) -> None:
        """Initialize the Gemini adapter.

        Args:
            api_key: Google AI API key
            temperature: Sampling temperature
            max_tokens: Maximum output tokens (None for the model default)
            **client_kwargs: Additional kwargs for Client
        """
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._client = genai.Client(api_key=api_key, **client_kwargs)

    def _convert_messages(
        self,
        system_instruction: str,
        messages: Sequence[ChatMessage],
    ) -> tuple[str, list[types.Content]]:
        """Convert ChatMessage list to Gemini format.

        Returns:
            Tuple of (system_instruction, contents)
        """
        instructions = [system_instruction] if system_instruction else []
        contents = []

        for msg in messages:
            if msg.role == Role.SYSTEM:
                instructions.append(msg.content)
                continue

            parts = [types.Part.from_text(text=msg.content)]
            for attachment in msg.attachments:
                parts.append(
                    types.Part.from_bytes(data=attachment.decode(), mime_type=attachment.content_type)
                )
            role = "model" if msg.role == Role.ASSISTANT else "user"
            contents.append(types.Content(role=role, parts=parts))

        return "\n\n".join(instructions), contents

    def _build_config(self, system_instruction: str) -> types.GenerateContentConfig:
        config = types.GenerateContentConfig(
            temperature=self._temperature,
            system_instruction=system_instruction or None,
        )
        if self._max_tokens is not None:
            config.max_output_tokens = self._max_tokens
        return config

    async def stream(
        self,
        model: str,
        system_instruction: str,
        messages: Sequence[ChatMessage],
    ) -> AsyncIterator[str]:
        """Stream a Gemini completion as text fragments."""
        system_text, contents = self._convert_messages(system_instruction, messages)
        config = self._build_config(system_text)

        try:
            response_stream = await self._client.aio.models.generate_content_stream(
                model=model, contents=contents, config=config
            )
            async for chunk in response_stream:
                text = chunk.text
                if text:
                    yield text
        except Exception as e:
            raise translate_provider_error(e) from e

    async def close(self) -> None:
        """Close the async client's HTTP connections."""
        await self._client.aio.aclose()
