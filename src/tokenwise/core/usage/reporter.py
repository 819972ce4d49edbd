"""Cost calculation and token reports."""

import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import Any

from tokenwise.utils.time import now_ms

logger = logging.getLogger(__name__)

TOKENS_PER_MILLION = 1_000_000
DEFAULT_PRICING_MODEL = "claude-sonnet-4"


@dataclass
class TokenUsage:
    """Raw token counts reported by a provider for one call."""

    input_tokens: int
    output_tokens: int
    cache_creation_tokens: int | None = None
    cache_read_tokens: int | None = None


@dataclass(frozen=True)
class TokenReport:
    """A priced, timestamped usage record."""

    input_tokens: int
    output_tokens: int
    cache_read_tokens: int
    cache_write_tokens: int
    estimated_cost: float
    model: str
    provider: str
    timestamp: int
    session_key: str | None = None
    compaction: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ModelPricing:
    """USD per million tokens."""

    input_per_1m: float
    output_per_1m: float
    cache_read_per_1m: float | None = None
    cache_write_per_1m: float | None = None


MODEL_PRICING: dict[str, ModelPricing] = {
    "claude-opus-4": ModelPricing(15, 75, 1.5, 18.75),
    "claude-sonnet-4": ModelPricing(3, 15, 0.3, 3.75),
    "claude-haiku-4": ModelPricing(0.8, 4, 0.08, 1.0),
    "claude-3.5-sonnet": ModelPricing(3, 15, 0.3, 3.75),
    "claude-3.5-haiku": ModelPricing(0.8, 4, 0.08, 1.0),
    "gpt-4o": ModelPricing(2.5, 10),
    "gpt-4o-mini": ModelPricing(0.15, 0.6),
    "gpt-4-turbo": ModelPricing(10, 30),
}


def resolve_pricing(model: str) -> ModelPricing:
    """
    Pricing row for a model.

    Exact match first, then the longest key the model ID starts with, then
    the claude-sonnet-4 row.
    """
    if model in MODEL_PRICING:
        return MODEL_PRICING[model]

    prefixes = [key for key in MODEL_PRICING if model.startswith(key)]
    if prefixes:
        return MODEL_PRICING[max(prefixes, key=len)]

    logger.debug(f"No pricing for {model}, using {DEFAULT_PRICING_MODEL} pricing")
    return MODEL_PRICING[DEFAULT_PRICING_MODEL]


def calculate_cost(usage: TokenUsage, model: str) -> float:
    """
    Estimated USD cost of one API call.

    Cache read/write tokens are only charged when the pricing row has a
    price for them.
    """
    pricing = resolve_pricing(model)

    cost = usage.input_tokens / TOKENS_PER_MILLION * pricing.input_per_1m
    cost += usage.output_tokens / TOKENS_PER_MILLION * pricing.output_per_1m

    if usage.cache_read_tokens and pricing.cache_read_per_1m:
        cost += usage.cache_read_tokens / TOKENS_PER_MILLION * pricing.cache_read_per_1m
    if usage.cache_creation_tokens and pricing.cache_write_per_1m:
        cost += usage.cache_creation_tokens / TOKENS_PER_MILLION * pricing.cache_write_per_1m

    return cost


def create_token_report(
    usage: TokenUsage,
    model: str,
    provider: str,
    session_key: str | None = None,
    *,
    clock: Callable[[], int] | None = None,
    compaction: dict[str, Any] | None = None,
) -> TokenReport:
    """
    Price a usage record and stamp it with the current time.

    Args:
        usage: Raw token counts
        model: Model that served the call
        provider: Provider that served the call
        session_key: Optional session the call belongs to
        clock: Returns epoch ms; defaults to wall-clock time
        compaction: Optional compaction summary attached to the report

    Returns:
        TokenReport
    """
    return TokenReport(
        input_tokens=usage.input_tokens,
        output_tokens=usage.output_tokens,
        cache_read_tokens=usage.cache_read_tokens or 0,
        cache_write_tokens=usage.cache_creation_tokens or 0,
        estimated_cost=calculate_cost(usage, model),
        model=model,
        provider=provider,
        timestamp=(clock or now_ms)(),
        session_key=session_key,
        compaction=compaction,
    )
