"""OpenAI-compatible adapter built on an Agno agent.

Any API that speaks the OpenAI chat protocol works through LLM_BASE_URL.
"""

import logging
from collections.abc import AsyncIterator, Sequence

from agno.agent import Agent
from agno.media import File
from agno.models.message import Message
from agno.models.openai import OpenAIChat

from opendocs.models.schemas import ChatMessage, Role
from opendocs.providers.base import ProviderAdapter
from opendocs.relay.errors import translate_provider_error

logger = logging.getLogger(__name__)


class OpenAIAdapter(ProviderAdapter):
    """Adapter for OpenAI and OpenAI-compatible APIs.

    Wraps a stateless Agno Agent:
    - One agent per exchange, built with the request's API key
    - No storage or history of its own; the caller sends the history
    - Attachments of the final user turn passed as Agno File media
    """

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._temperature = temperature
        self._max_tokens = max_tokens

    def _create_agent(self, model: str, system_instruction: str, history: list[Message]) -> Agent:
        """Create the Agno agent for one exchange.

        Returns:
            Agent with the system message set and earlier turns as input.
        """
        chat_model = OpenAIChat(
            id=model,
            api_key=self._api_key,
            base_url=self._base_url,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )

        return Agent(
            model=chat_model,
            system_message=system_instruction,
            additional_input=history or None,
            add_history_to_context=False,
            markdown=False,
        )

    @staticmethod
    def _split_messages(
        messages: Sequence[ChatMessage],
    ) -> tuple[list[Message], ChatMessage | None]:
        """Separate the final user turn from the history before it."""
        last_user = None
        history = list(messages)
        if history and history[-1].role == Role.USER:
            last_user = history.pop()
        converted = [Message(role=msg.role.value, content=msg.content) for msg in history]
        return converted, last_user

    async def stream(
        self,
        model: str,
        system_instruction: str,
        messages: Sequence[ChatMessage],
    ) -> AsyncIterator[str]:
        """Stream an agent run as text fragments."""
        history, last_user = self._split_messages(messages)
        agent = self._create_agent(model, system_instruction, history)

        run_input = last_user.content if last_user else ""
        files = None
        if last_user and last_user.attachments:
            files = [
                File(
                    content=attachment.decode(),
                    mime_type=attachment.content_type,
                    filename=attachment.name,
                )
                for attachment in last_user.attachments
            ]

        try:
            response_stream = agent.arun(run_input, stream=True, files=files)
            async for chunk in response_stream:
                if hasattr(chunk, "content") and chunk.content:
                    yield chunk.content
        except Exception as e:
            raise translate_provider_error(e) from e
