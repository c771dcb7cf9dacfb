"""Unit tests for RelayConfig.

Tests configuration validation and environment loading.
"""

import pytest
from pydantic import ValidationError

from opendocs.relay.config import DEFAULT_MODELS, RelayConfig, get_relay_config

ENV_VARS = ("LLM_PROVIDER", "LLM_MODEL", "LLM_BASE_URL", "MAX_ATTACHMENT_MB")


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestRelayConfig:
    """Tests for RelayConfig validation."""

    def test_valid_config_with_all_fields(self) -> None:
        """Config accepts valid values for all fields."""
        config = RelayConfig(
            provider="openai",
            model_name="gpt-4o",
            base_url="http://localhost:11434/v1",
            temperature=0.5,
            max_tokens=2048,
            max_attachment_bytes=1024,
        )

        assert config.provider == "openai"
        assert config.model_name == "gpt-4o"
        assert config.base_url == "http://localhost:11434/v1"
        assert config.temperature == 0.5
        assert config.max_tokens == 2048
        assert config.max_attachment_bytes == 1024

    def test_config_with_default_values(self, clean_env) -> None:
        """Config uses sensible defaults when nothing is set."""
        config = RelayConfig()

        assert config.provider == "gemini"
        assert config.model_name == DEFAULT_MODELS["gemini"]
        assert config.base_url is None
        assert config.temperature == 0.7
        assert config.max_tokens is None
        assert config.max_attachment_bytes == 20 * 1024 * 1024

    def test_default_model_follows_provider(self, clean_env) -> None:
        """Each provider gets its own default model."""
        assert RelayConfig(provider="openai").model_name == "gpt-4o-mini"

    def test_blank_model_name_uses_default(self) -> None:
        config = RelayConfig(provider="gemini", model_name="   ")

        assert config.model_name == DEFAULT_MODELS["gemini"]

    def test_provider_normalized(self) -> None:
        """Provider names are case-insensitive."""
        assert RelayConfig(provider="  Gemini ").provider == "gemini"

    def test_config_fails_with_unknown_provider(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            RelayConfig(provider="anthropic")

        assert "Unsupported provider" in str(exc_info.value)

    def test_config_fails_with_temperature_too_low(self) -> None:
        """Config rejects temperature below 0.0."""
        with pytest.raises(ValidationError) as exc_info:
            RelayConfig(temperature=-0.1)

        assert "temperature" in str(exc_info.value).lower()

    def test_config_fails_with_temperature_too_high(self) -> None:
        """Config rejects temperature above 2.0."""
        with pytest.raises(ValidationError) as exc_info:
            RelayConfig(temperature=2.5)

        assert "temperature" in str(exc_info.value).lower()

    def test_config_accepts_boundary_temperatures(self) -> None:
        """Config accepts temperature at boundaries (0.0 and 2.0)."""
        assert RelayConfig(temperature=0.0).temperature == 0.0
        assert RelayConfig(temperature=2.0).temperature == 2.0

    @pytest.mark.parametrize("max_tokens", [0, 200000])
    def test_config_fails_with_max_tokens_out_of_range(self, max_tokens: int) -> None:
        """Config rejects max_tokens below 1 or above 128000."""
        with pytest.raises(ValidationError) as exc_info:
            RelayConfig(max_tokens=max_tokens)

        assert "max_tokens" in str(exc_info.value).lower()


class TestGetRelayConfig:
    """Tests for get_relay_config factory function."""

    def test_get_config_from_environment(self, clean_env) -> None:
        """get_relay_config reads provider settings from the environment."""
        clean_env.setenv("LLM_PROVIDER", "openai")
        clean_env.setenv("LLM_MODEL", "llama3.1")
        clean_env.setenv("LLM_BASE_URL", "http://localhost:11434/v1")
        clean_env.setenv("MAX_ATTACHMENT_MB", "2.5")

        config = get_relay_config()

        assert config.provider == "openai"
        assert config.model_name == "llama3.1"
        assert config.base_url == "http://localhost:11434/v1"
        assert config.max_attachment_bytes == int(2.5 * 1024 * 1024)

    def test_provider_from_environment_normalized(self, clean_env) -> None:
        """LLM_PROVIDER is validated like an explicit value."""
        clean_env.setenv("LLM_PROVIDER", "OpenAI")

        config = get_relay_config()

        assert config.provider == "openai"
        assert config.model_name == DEFAULT_MODELS["openai"]

    def test_get_config_fails_with_unknown_provider(self, clean_env) -> None:
        clean_env.setenv("LLM_PROVIDER", "bogus")

        with pytest.raises(ValidationError):
            get_relay_config()

    def test_no_api_key_in_config(self) -> None:
        """The API key travels with each request, never in configuration."""
        assert not any("key" in name for name in RelayConfig.model_fields)
