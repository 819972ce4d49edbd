"""Result types and callables shared by the compaction tiers."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Literal

from tokenwise.core.context.messages import Message

CompactionTier = Literal["free", "cheap", "full"]
CompactionStrategyName = Literal["tiered", "always-llm"]

# (system_prompt, user_text, model) -> summary text
SendFn = Callable[[str, str, str], Awaitable[str]]


@dataclass(frozen=True)
class FreeTierResult:
    """Outcome of the structural (no LLM) compaction pipeline."""

    messages: list[Message]
    freed_tokens: int
    strategies: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CheapTierResult:
    """Outcome of LLM-assisted summarization."""

    messages: list[Message]
    freed_tokens: int
    summarized_count: int
    model: str | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class CompactionResult:
    """Outcome of one compaction invocation."""

    tier: CompactionTier
    original_tokens: int
    compacted_tokens: int
    saved_tokens: int
    strategy: str
    messages: tuple[Message, ...] = ()
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe summary without the message payload."""
        return {
            "tier": self.tier,
            "original_tokens": self.original_tokens,
            "compacted_tokens": self.compacted_tokens,
            "saved_tokens": self.saved_tokens,
            "strategy": self.strategy,
            "message_count": len(self.messages),
            "error": self.error,
        }
