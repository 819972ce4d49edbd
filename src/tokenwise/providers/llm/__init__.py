"""LLM provider abstractions and implementations."""

from .base import (
    AuthenticationError,
    BaseLLMProvider,
    InvalidRequestError,
    LLMProviderError,
    LLMResponse,
    RateLimitError,
)
from .litellm_provider import LiteLLMProvider

__all__ = [
    # Base classes and types
    "BaseLLMProvider",
    "LLMResponse",
    "LLMProviderError",
    "RateLimitError",
    "AuthenticationError",
    "InvalidRequestError",
    # Provider implementations
    "LiteLLMProvider",
]
