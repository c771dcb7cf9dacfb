from opendocs.providers.base import ProviderAdapter
from opendocs.providers.gemini import GeminiAdapter
from opendocs.providers.openai import OpenAIAdapter
from opendocs.relay.config import RelayConfig


def create_adapter(config: RelayConfig, api_key: str) -> ProviderAdapter:
    """Create a provider adapter for one exchange.

    This factory function hides the instantiation logic for different providers.

    Args:
        config: Relay configuration naming the provider and its settings.
        api_key: The API key that came with the request.

    Returns:
        Initialized adapter instance.

    Raises:
        ValueError: If the configured provider is not supported.
    """
    provider = config.provider.lower()

    if provider == "gemini":
        return GeminiAdapter(
            api_key=api_key,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )

    if provider == "openai":
        return OpenAIAdapter(
            api_key=api_key,
            base_url=config.base_url,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )

    raise ValueError(
        f"Unsupported provider: {config.provider}. Supported providers: 'gemini', 'openai'"
    )
