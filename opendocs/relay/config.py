"""Relay configuration with environment variable loading.

Pydantic-based configuration for the chat relay and its provider adapters.
The API key is deliberately absent: it arrives with every request.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

# Load environment variables from .env file
load_dotenv()

SUPPORTED_PROVIDERS = ("gemini", "openai")

DEFAULT_MODELS = {
    "gemini": "gemini-2.0-flash-lite",
    "openai": "gpt-4o-mini",
}


def _env_attachment_limit() -> int:
    return int(float(os.getenv("MAX_ATTACHMENT_MB", "20")) * 1024 * 1024)


class RelayConfig(BaseModel):
    """Configuration for the chat relay.

    Attributes:
        provider: Which provider adapter to use (gemini or openai).
        model_name: Default model, used when a request names none.
        base_url: API base URL for OpenAI-compatible providers.
        temperature: Sampling temperature (0.0 = deterministic, 2.0 = creative).
        max_tokens: Maximum tokens in generated response (None = provider default).
        max_attachment_bytes: Largest file that will be attached to a message.
    """

    provider: str = Field(
        default_factory=lambda: os.getenv("LLM_PROVIDER", "gemini"),
        validate_default=True,
        description="LLM provider adapter",
    )
    model_name: str = Field(
        default_factory=lambda: os.getenv("LLM_MODEL", ""),
        description="Default model to use",
    )
    base_url: str | None = Field(
        default_factory=lambda: os.getenv("LLM_BASE_URL") or None,
        description="API base URL (None for the provider default)",
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for response generation",
    )
    max_tokens: int | None = Field(
        default=None,
        ge=1,
        le=128000,
        description="Maximum tokens in generated response",
    )
    max_attachment_bytes: int = Field(
        default_factory=_env_attachment_limit,
        ge=1,
        description="Maximum size of a file attached to a message",
    )

    @field_validator("provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        """Normalize the provider name and reject unknown ones."""
        provider = v.strip().lower()
        if provider not in SUPPORTED_PROVIDERS:
            raise ValueError(
                f"Unsupported provider: {v}. Set LLM_PROVIDER to one of {', '.join(SUPPORTED_PROVIDERS)}"
            )
        return provider

    @model_validator(mode="after")
    def default_model_for_provider(self) -> "RelayConfig":
        """Fill in the provider's default model when none is configured."""
        if not self.model_name.strip():
            self.model_name = DEFAULT_MODELS[self.provider]
        return self


def get_relay_config() -> RelayConfig:
    """Create relay configuration from environment.

    Returns:
        Configured RelayConfig instance.

    Raises:
        ValueError: If LLM_PROVIDER names an unsupported provider.
    """
    return RelayConfig()
