"""LiteLLM provider used for summarization calls."""

import asyncio
import logging
from typing import Any

import litellm

from tokenwise.config.settings import TokenEngineSettings
from tokenwise.core.compaction.cheap_tier import cheap_model_for
from tokenwise.core.compaction.models import SendFn
from tokenwise.core.usage.reporter import TokenUsage

from .base import (
    AuthenticationError,
    BaseLLMProvider,
    InvalidRequestError,
    LLMProviderError,
    LLMResponse,
    RateLimitError,
)

logger = logging.getLogger(__name__)

SUMMARY_TEMPERATURE = 0.2


class LiteLLMProvider(BaseLLMProvider):
    """
    LiteLLM provider implementation.

    Gives the compaction engine one interface to Anthropic, OpenAI and
    Ollama models.
    """

    def __init__(
        self,
        provider: str,
        api_key: str,
        model: str,
        temperature: float = SUMMARY_TEMPERATURE,
        max_tokens: int | None = None,
        api_base: str | None = None,
    ):
        """
        Initialize LiteLLM provider.

        Args:
            provider: Provider name ('anthropic', 'openai', or 'ollama')
            api_key: API key for the provider (empty string for Ollama)
            model: Default model name (e.g., 'claude-haiku-4-5-20251001', 'llama3.2')
            temperature: Sampling temperature (0.0 to 1.0)
            max_tokens: Maximum tokens to generate (None for default)
            api_base: Base URL for API (used by Ollama)
        """
        self.provider = provider
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.api_base = api_base

    @classmethod
    def from_settings(cls, settings: TokenEngineSettings) -> "LiteLLMProvider":
        """
        Create a provider for the preferred provider's cheap model.

        Args:
            settings: Engine settings

        Returns:
            Configured LiteLLMProvider instance
        """
        provider = settings.preferred_provider
        return cls(
            provider=provider,
            api_key=settings.current_llm_api_key,
            model=cheap_model_for(provider),
            api_base=settings.ollama_base_url if provider == "ollama" else None,
        )

    async def chat(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Send chat messages to the LLM.

        Args:
            messages: List of message dictionaries
            model: Model override
            **kwargs: Additional parameters (temperature)

        Returns:
            LLMResponse

        Raises:
            LLMProviderError: If request fails
        """
        try:
            params: dict[str, Any] = {
                "model": self._get_model_name(model),
                "messages": messages,
                "temperature": kwargs.get("temperature", self.temperature),
            }

            if self.api_base:
                params["api_base"] = self.api_base

            # Ollama doesn't need a key
            if self.api_key:
                params["api_key"] = self.api_key

            if self.max_tokens:
                params["max_tokens"] = self.max_tokens

            logger.debug(f"LiteLLM request: model={params['model']}, messages={len(messages)}")

            # litellm.completion is synchronous
            loop = asyncio.get_running_loop()
            response = await loop.run_in_executor(None, lambda: litellm.completion(**params))

            choice = response.choices[0]
            content = choice.message.content if hasattr(choice.message, "content") else None

            usage = {}
            if hasattr(response, "usage") and response.usage:
                usage = {
                    "prompt_tokens": response.usage.prompt_tokens,
                    "completion_tokens": response.usage.completion_tokens,
                    "total_tokens": response.usage.total_tokens,
                }
                cache_read = getattr(response.usage, "cache_read_input_tokens", None)
                cache_write = getattr(response.usage, "cache_creation_input_tokens", None)
                if isinstance(cache_read, int):
                    usage["cache_read_input_tokens"] = cache_read
                if isinstance(cache_write, int):
                    usage["cache_creation_input_tokens"] = cache_write

            return LLMResponse(
                content=content,
                finish_reason=choice.finish_reason,
                usage=usage,
                model=model or self.model,
            )

        except Exception as e:
            self._handle_error(e)

    def as_send_fn(self) -> SendFn:
        """Expose summarize() as the send function the cheap tier expects."""
        return self.summarize

    @staticmethod
    def usage_from_response(response: LLMResponse) -> TokenUsage:
        """Map a response's usage block onto TokenUsage."""
        usage = response.usage
        return TokenUsage(
            input_tokens=usage.get("prompt_tokens", 0),
            output_tokens=usage.get("completion_tokens", 0),
            cache_creation_tokens=usage.get("cache_creation_input_tokens"),
            cache_read_tokens=usage.get("cache_read_input_tokens"),
        )

    def _get_model_name(self, model: str | None = None) -> str:
        """
        Get the full model name for LiteLLM.

        Returns:
            Model name in the format expected by LiteLLM
        """
        name = model or self.model
        if self.provider == "anthropic":
            return f"anthropic/{name}"
        elif self.provider == "openai":
            return f"openai/{name}"
        elif self.provider == "ollama":
            return f"ollama_chat/{name}"
        else:
            return name

    def _handle_error(self, error: Exception) -> None:
        """
        Convert litellm errors to our error types.

        Args:
            error: Exception from litellm

        Raises:
            Appropriate LLMProviderError subclass
        """
        error_str = str(error)
        error_type = type(error).__name__

        if any(
            phrase in error_str.lower()
            for phrase in ["authentication", "api key", "unauthorized", "invalid_api_key"]
        ):
            raise AuthenticationError(
                message=f"Authentication failed: {error_str}",
                provider=self.provider,
                error_code="auth_error",
                details={"original_error": error_type},
            ) from error

        if any(
            phrase in error_str.lower() for phrase in ["rate limit", "too many requests", "429"]
        ):
            raise RateLimitError(
                message=f"Rate limit exceeded: {error_str}",
                provider=self.provider,
                error_code="rate_limit",
                details={"original_error": error_type},
            ) from error

        if any(
            phrase in error_str.lower()
            for phrase in ["invalid request", "bad request", "400", "invalid parameter"]
        ):
            raise InvalidRequestError(
                message=f"Invalid request: {error_str}",
                provider=self.provider,
                error_code="invalid_request",
                details={"original_error": error_type},
            ) from error

        raise LLMProviderError(
            message=f"LLM request failed: {error_str}",
            provider=self.provider,
            error_code="unknown_error",
            details={"original_error": error_type},
        ) from error
