"""LLM provider implementations of the ``Provider`` protocol."""

from .anthropic import AnthropicProvider
from .errors import ProviderError

__all__ = ["AnthropicProvider", "ProviderError"]
