"""Token counting utilities for context management."""

import json
import logging
import math
import re
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tokenwise.core.context.messages import Message

logger = logging.getLogger(__name__)

# CJK ideographs, kana, CJK punctuation and Hangul syllables
_CJK_PATTERN = re.compile("[\u3000-\u9fff\uac00-\ud7af]")

# Per-message overhead: role markers and separators
MESSAGE_OVERHEAD = 4
# Start/end tokens wrapped around a whole conversation
CONVERSATION_OVERHEAD = 2


def estimate_tokens(text: str) -> int:
    """
    Fast locale-aware token estimate.

    Roughly 4 characters per token for Latin text and 2 per token for CJK
    and Hangul, in a single pass with no tokenizer.

    Args:
        text: Text to estimate

    Returns:
        Estimated token count (0 for empty text)
    """
    if not text:
        return 0
    cjk_count = len(_CJK_PATTERN.findall(text))
    other_count = len(text) - cjk_count
    return math.ceil(other_count / 4 + cjk_count / 2)


def _message_text(message: "Message | dict[str, Any]") -> str:
    if isinstance(message, dict):
        content = message.get("content", "")
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            return "\n".join(
                part["text"] for part in content if isinstance(part, dict) and "text" in part
            )
        return "" if content is None else str(content)
    return message.content.as_text()


def estimate_message_tokens(messages: "list[Message] | list[dict[str, Any]]") -> int:
    """
    Heuristic token count for a message list, including wrapper overhead.

    Args:
        messages: Messages (Message objects or provider-style dicts)

    Returns:
        Sum of content estimates + 4 per message + 2
    """
    total = 0
    for msg in messages:
        if isinstance(msg, dict):
            total += estimate_tokens(_message_text(msg))
        else:
            total += msg.estimate_size()
        total += MESSAGE_OVERHEAD
    return total + CONVERSATION_OVERHEAD


class TokenCounter:
    """
    Precise token counting backed by tiktoken.

    Encoders are resolved from the model name and cached per encoding on the
    instance. When tiktoken is missing or fails, counting falls back to
    estimate_tokens so callers always get a number.

    Thread Safety: the encoder cache is a plain dict; concurrent first use
    may load the same encoding twice, which is harmless.
    """

    # Model name (or prefix) to tiktoken encoding
    MODEL_ENCODINGS: dict[str, str] = {
        # Anthropic models use cl100k_base as an approximation
        "claude-3-opus": "cl100k_base",
        "claude-3-sonnet": "cl100k_base",
        "claude-3-haiku": "cl100k_base",
        "claude-3.5-sonnet": "cl100k_base",
        "claude-sonnet-4": "cl100k_base",
        "claude-opus-4": "cl100k_base",
        # OpenAI models
        "gpt-4o": "o200k_base",
        "gpt-4o-mini": "o200k_base",
        "gpt-4-turbo": "cl100k_base",
        "gpt-4": "cl100k_base",
        "gpt-3.5-turbo": "cl100k_base",
    }

    DEFAULT_ENCODING = "cl100k_base"

    def __init__(self) -> None:
        self._encoders: dict[str, Any] = {}
        self._tiktoken_missing = False

    @classmethod
    def resolve_encoding(cls, model: str) -> str:
        """
        Resolve the tiktoken encoding name for a model.

        Exact match first, then prefix match, then the default encoding.

        Args:
            model: Model name or identifier

        Returns:
            Encoding name
        """
        if model in cls.MODEL_ENCODINGS:
            return cls.MODEL_ENCODINGS[model]

        for prefix, encoding in cls.MODEL_ENCODINGS.items():
            if model.startswith(prefix):
                return encoding

        return cls.DEFAULT_ENCODING

    def _get_encoder(self, encoding_name: str) -> Any:
        if encoding_name in self._encoders:
            return self._encoders[encoding_name]
        if self._tiktoken_missing:
            return None

        try:
            import tiktoken

            encoder = tiktoken.get_encoding(encoding_name)
        except ImportError:
            logger.warning("tiktoken not installed, using character-based estimation")
            self._tiktoken_missing = True
            return None

        self._encoders[encoding_name] = encoder
        return encoder

    def count_tokens(self, text: str, model: str = "claude-sonnet-4") -> int:
        """
        Count tokens in text for a specific model.

        Args:
            text: Text to count tokens for
            model: Model name (used to select the encoding)

        Returns:
            Token count, or the heuristic estimate if tiktoken is unavailable
        """
        if not text:
            return 0

        try:
            encoder = self._get_encoder(self.resolve_encoding(model))
            if encoder is not None:
                return len(encoder.encode(text))
        except Exception as e:
            logger.warning(f"tiktoken failed for {model}, using estimation: {e}")

        return estimate_tokens(text)

    def count_message_tokens(
        self,
        messages: "list[Message] | list[dict[str, Any]]",
        model: str | None = None,
    ) -> int:
        """
        Count total tokens in a list of messages.

        Accounts for per-message overhead (role tokens, separators) and the
        start/end tokens of the conversation.

        Args:
            messages: Messages (Message objects or provider-style dicts)
            model: Model name; None uses the heuristic estimator

        Returns:
            Total token count
        """
        if model is None:
            return estimate_message_tokens(messages)

        total = 0
        for msg in messages:
            total += self.count_tokens(_message_text(msg), model) + MESSAGE_OVERHEAD
        return total + CONVERSATION_OVERHEAD

    def estimate_json_tokens(self, data: Any, model: str | None = None) -> int:
        """
        Estimate tokens for JSON-serializable data.

        Args:
            data: Data to estimate
            model: Model name; None uses the heuristic estimator

        Returns:
            Estimated token count
        """
        try:
            json_str = json.dumps(data, separators=(",", ":"))
        except (TypeError, ValueError) as e:
            logger.warning(f"JSON serialization failed: {e}")
            json_str = str(data)

        if model is None:
            return estimate_tokens(json_str)
        return self.count_tokens(json_str, model)
