"""Validation functions for configuration values.

The token engine trusts whatever it is handed; these checks are meant to run
once, where configuration enters the process.
"""

import logging
import math
from dataclasses import dataclass

from tokenwise.core.context.budget import BudgetRatios

logger = logging.getLogger(__name__)

# Hard floor below which compaction cannot keep a conversation usable
HARD_MIN_CONTEXT = 16_384
# Soft floor that only produces a warning
WARN_MIN_CONTEXT = 32_768


@dataclass(frozen=True)
class ContextWindowValidation:
    """Outcome of validating a context window size."""

    valid: bool
    warning: str | None = None


def validate_budget_ratios(ratios: BudgetRatios, tolerance: float = 1e-6) -> bool:
    """
    Validate that a ratio table is usable for budget allocation.

    Args:
        ratios: Budget ratios to check
        tolerance: Allowed deviation from an exact sum of 1.0

    Returns:
        True if every ratio is in [0, 1] and they sum to 1.0
    """
    values = ratios.as_dict().values()
    if any(v < 0 or v > 1 for v in values):
        return False
    return math.isclose(sum(values), 1.0, abs_tol=tolerance)


def validate_context_window(max_tokens: int) -> ContextWindowValidation:
    """
    Validate a proposed context window size against hard and soft limits.

    Args:
        max_tokens: Nominal context window in tokens

    Returns:
        ContextWindowValidation; invalid below HARD_MIN_CONTEXT, valid with a
        warning below WARN_MIN_CONTEXT
    """
    if max_tokens < HARD_MIN_CONTEXT:
        msg = f"Context window {max_tokens} is below hard minimum {HARD_MIN_CONTEXT}"
        logger.error(msg)
        return ContextWindowValidation(valid=False, warning=msg)

    if max_tokens < WARN_MIN_CONTEXT:
        msg = f"Context window {max_tokens} is below recommended minimum {WARN_MIN_CONTEXT}"
        logger.warning(msg)
        return ContextWindowValidation(valid=True, warning=msg)

    return ContextWindowValidation(valid=True)


def validate_margin_percent(margin_percent: float) -> bool:
    """
    Validate a safety margin fraction.

    Args:
        margin_percent: Fraction of the window to hold back

    Returns:
        True if 0 <= margin_percent < 1
    """
    return 0.0 <= margin_percent < 1.0


def validate_ttl(ttl_ms: int) -> bool:
    """
    Validate a result-cache TTL is within reasonable bounds.

    Args:
        ttl_ms: TTL in milliseconds

    Returns:
        True if valid, False otherwise
    """
    # Minimum 1 second, maximum 24 hours
    return 1_000 <= ttl_ms <= 24 * 60 * 60 * 1000
