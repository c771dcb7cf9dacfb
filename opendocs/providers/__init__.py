from opendocs.providers.base import ProviderAdapter
from opendocs.providers.factory import create_adapter
from opendocs.providers.gemini import GeminiAdapter
from opendocs.providers.openai import OpenAIAdapter

__all__ = [
    "GeminiAdapter",
    "OpenAIAdapter",
    "ProviderAdapter",
    "create_adapter",
]
