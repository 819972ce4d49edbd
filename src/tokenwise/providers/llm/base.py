"""Base class for LLM providers."""

from abc import ABC, abstractmethod
from typing import Any


class LLMResponse:
    """Represents a response from an LLM provider."""

    def __init__(
        self,
        content: str | None = None,
        finish_reason: str | None = None,
        usage: dict[str, int] | None = None,
        model: str | None = None,
    ):
        """
        Initialize LLM response.

        Args:
            content: Text content of the response
            finish_reason: Reason the LLM stopped generating (e.g., 'stop', 'length')
            usage: Token usage information
            model: Model that served the request
        """
        self.content = content
        self.finish_reason = finish_reason
        self.usage = usage or {}
        self.model = model

    @property
    def text(self) -> str:
        """Response content, empty string if the model returned none."""
        return self.content or ""


class BaseLLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    The token engine only needs plain chat completions, used to summarize
    conversation history during compaction.
    """

    @abstractmethod
    async def chat(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Send chat messages to the LLM and get a response.

        Args:
            messages: List of message dictionaries with 'role' and 'content'
            model: Model to use instead of the provider default
            **kwargs: Additional provider-specific parameters

        Returns:
            LLMResponse object

        Raises:
            LLMProviderError: If the LLM request fails
        """
        pass

    async def summarize(self, system_prompt: str, user_text: str, model: str) -> str:
        """Run a single system + user turn and return the reply text."""
        response = await self.chat(
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_text},
            ],
            model=model,
        )
        return response.text


class LLMProviderError(Exception):
    """Base exception for LLM provider errors."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize LLM provider error.

        Args:
            message: Error message
            provider: Name of the provider (e.g., 'anthropic', 'openai')
            error_code: Provider-specific error code
            details: Additional error details
        """
        self.message = message
        self.provider = provider
        self.error_code = error_code
        self.details = details or {}
        super().__init__(f"LLM Provider Error ({provider}): {message}")


class RateLimitError(LLMProviderError):
    """Raised when the LLM provider rate limit is exceeded."""

    pass


class AuthenticationError(LLMProviderError):
    """Raised when authentication with the LLM provider fails."""

    pass


class InvalidRequestError(LLMProviderError):
    """Raised when the request to the LLM provider is invalid."""

    pass
