"""Safety margin calculations for context windows."""

import math

DEFAULT_SAFETY_MARGIN_PERCENT = 0.05
DEFAULT_NEAR_LIMIT_THRESHOLD = 0.90


def effective_context_window(
    total_tokens: int, margin_percent: float = DEFAULT_SAFETY_MARGIN_PERCENT
) -> int:
    """Context window left after holding back the safety margin."""
    return math.floor(total_tokens * (1 - margin_percent))


def safety_margin_tokens(
    total_tokens: int, margin_percent: float = DEFAULT_SAFETY_MARGIN_PERCENT
) -> int:
    """Number of tokens held back as safety margin."""
    return total_tokens - effective_context_window(total_tokens, margin_percent)


def is_near_limit(
    used_tokens: int,
    total_tokens: int,
    threshold_percent: float = DEFAULT_NEAR_LIMIT_THRESHOLD,
) -> bool:
    """Check if usage is at or beyond the given fraction of the window."""
    return used_tokens >= total_tokens * threshold_percent
