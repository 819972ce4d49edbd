"""Two-tier compaction strategy.

Tier 1 (free) runs first; if it cannot cover the deficit, tier 2 (cheap LLM)
summarizes what is left. The "always-llm" strategy goes straight to tier 2.
Compaction may return with the deficit unmet; whether to send an oversized
request or refuse the turn is the caller's decision. A tiered run is labelled
"cheap" only when summarization actually freed tokens.
"""

import logging
from typing import Any

from tokenwise.core.compaction.cheap_tier import run_cheap_tier_compaction
from tokenwise.core.compaction.free_tier import run_free_tier_compaction
from tokenwise.core.compaction.models import (
    CompactionResult,
    CompactionStrategyName,
    CompactionTier,
    SendFn,
)
from tokenwise.core.context.messages import Message, to_messages
from tokenwise.core.context.pre_truncation import DEFAULT_MAX_TOOL_RESULT_CHARS
from tokenwise.core.context.token_counter import estimate_message_tokens

logger = logging.getLogger(__name__)


async def compact_messages(
    messages: list[Message] | list[dict[str, Any]],
    tokens_to_free: int,
    *,
    send_fn: SendFn,
    strategy: CompactionStrategyName = "tiered",
    preferred_provider: str = "anthropic",
    max_tool_result_chars: int = DEFAULT_MAX_TOOL_RESULT_CHARS,
) -> CompactionResult:
    """
    Compact a conversation history to free the requested number of tokens.

    Args:
        messages: Conversation history, oldest first (Message objects or dicts)
        tokens_to_free: Deficit reported by the budget allocator
        send_fn: Async summarize capability used by the cheap tier
        strategy: "tiered" (free first) or "always-llm"
        preferred_provider: Provider whose cheap model summarizes
        max_tool_result_chars: Hard cap for plain-text tool results

    Returns:
        CompactionResult carrying the new history
    """
    history = to_messages(list(messages))
    original_tokens = estimate_message_tokens(history)

    if strategy == "always-llm":
        cheap = await run_cheap_tier_compaction(
            history, tokens_to_free, send_fn, preferred_provider
        )
        return _build_result(
            tier="cheap",
            messages=cheap.messages,
            original_tokens=original_tokens,
            saved_tokens=cheap.freed_tokens,
            strategy=f"cheap-llm ({cheap.summarized_count} messages summarized)",
            error=cheap.error,
        )

    logger.info(f"Starting tiered compaction: tokens_to_free={tokens_to_free}")
    free = run_free_tier_compaction(history, tokens_to_free, max_tool_result_chars)

    if free.freed_tokens >= tokens_to_free:
        logger.info(f"Free tier sufficient: freed={free.freed_tokens}")
        return _build_result(
            tier="free",
            messages=free.messages,
            original_tokens=original_tokens,
            saved_tokens=free.freed_tokens,
            strategy=f"free ({', '.join(free.strategies) or 'no-op'})",
        )

    remaining = tokens_to_free - free.freed_tokens
    logger.info(
        f"Free tier insufficient, running cheap tier: freed={free.freed_tokens}, "
        f"remaining={remaining}"
    )
    cheap = await run_cheap_tier_compaction(
        free.messages, remaining, send_fn, preferred_provider
    )

    cheap_note = f"{cheap.summarized_count} summarized"
    if cheap.failed:
        cheap_note = f"failed: {cheap.error}"

    return _build_result(
        tier="cheap" if cheap.freed_tokens > 0 else "free",
        messages=cheap.messages,
        original_tokens=original_tokens,
        saved_tokens=free.freed_tokens + cheap.freed_tokens,
        strategy=f"tiered (free: {','.join(free.strategies) or 'none'}; cheap: {cheap_note})",
        error=cheap.error,
    )


def _build_result(
    tier: CompactionTier,
    messages: list[Message],
    original_tokens: int,
    saved_tokens: int,
    strategy: str,
    error: str | None = None,
) -> CompactionResult:
    return CompactionResult(
        tier=tier,
        original_tokens=original_tokens,
        compacted_tokens=max(0, original_tokens - saved_tokens),
        saved_tokens=saved_tokens,
        strategy=strategy,
        messages=tuple(messages),
        error=error,
    )
