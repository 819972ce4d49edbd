"""Proportional token budget allocation.

The effective window (nominal window minus safety margin) is split into five
buckets by fixed ratios. Each bucket is floored independently, so the buckets
may sum to a few tokens less than the effective window; that slack is kept.
"""

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any

from tokenwise.core.context.safety_margin import (
    DEFAULT_SAFETY_MARGIN_PERCENT,
    effective_context_window,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BudgetRatios:
    """Share of the effective window given to each bucket (sums to 1.0)."""

    system: float = 0.05
    tools: float = 0.10
    history: float = 0.65
    response: float = 0.15
    reserve: float = 0.05

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


DEFAULT_BUDGET_RATIOS = BudgetRatios()


@dataclass(frozen=True)
class TokenBudget:
    """Token budget for one request. Derive a new one rather than patching."""

    total: int
    system: int
    tools: int
    history: int
    response: int
    reserve: int

    @property
    def allocated(self) -> int:
        """Sum of all buckets (at most `total`)."""
        return self.system + self.tools + self.history + self.response + self.reserve

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)


def calculate_budget(
    total_context_tokens: int,
    ratios: BudgetRatios | None = None,
    margin_percent: float = DEFAULT_SAFETY_MARGIN_PERCENT,
) -> TokenBudget:
    """
    Calculate the token budget for a model's context window.

    Ratios are trusted as given; validate them where configuration is loaded.

    Args:
        total_context_tokens: Nominal context window of the model
        ratios: Bucket ratios (defaults to 5/10/65/15/5)
        margin_percent: Safety margin held back before allocation

    Returns:
        TokenBudget with each bucket = floor(effective * ratio)
    """
    ratios = ratios or DEFAULT_BUDGET_RATIOS
    effective = effective_context_window(total_context_tokens, margin_percent)

    budget = TokenBudget(
        total=effective,
        system=math.floor(effective * ratios.system),
        tools=math.floor(effective * ratios.tools),
        history=math.floor(effective * ratios.history),
        response=math.floor(effective * ratios.response),
        reserve=math.floor(effective * ratios.reserve),
    )

    logger.debug(
        f"Token budget calculated: context={total_context_tokens}, "
        f"effective={effective}, history={budget.history}"
    )
    return budget


def history_fits_budget(history_tokens: int, budget: TokenBudget) -> bool:
    """Check if a message history fits within the history bucket."""
    return history_tokens <= budget.history


def tokens_to_free(history_tokens: int, budget: TokenBudget) -> int:
    """Tokens that compaction must free for the history to fit."""
    return max(0, history_tokens - budget.history)


def remaining_history_tokens(history_tokens: int, budget: TokenBudget) -> int:
    """Tokens still available in the history bucket."""
    return max(0, budget.history - history_tokens)
