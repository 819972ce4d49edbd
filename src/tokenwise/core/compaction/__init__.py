"""Conversation compaction: free structural edits, then LLM summarization."""

from tokenwise.core.compaction.cheap_tier import (
    CHEAP_MODELS,
    SUMMARIZER_SYSTEM_PROMPT,
    SUMMARY_PREFIX,
    run_cheap_tier_compaction,
)
from tokenwise.core.compaction.free_tier import run_free_tier_compaction
from tokenwise.core.compaction.models import (
    CheapTierResult,
    CompactionResult,
    CompactionTier,
    FreeTierResult,
    SendFn,
)
from tokenwise.core.compaction.strategy import compact_messages

__all__ = [
    "compact_messages",
    "run_free_tier_compaction",
    "run_cheap_tier_compaction",
    "CompactionResult",
    "CompactionTier",
    "FreeTierResult",
    "CheapTierResult",
    "SendFn",
    "CHEAP_MODELS",
    "SUMMARIZER_SYSTEM_PROMPT",
    "SUMMARY_PREFIX",
]
