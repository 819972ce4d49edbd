"""Complexity-based model routing.

Simple requests go to the cheapest model of a provider, medium ones to its
balanced model and complex ones to its most capable model.
"""

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

from tokenwise.core.context.token_counter import estimate_tokens
from tokenwise.core.errors import UnknownProviderError

logger = logging.getLogger(__name__)

SIMPLE_MAX_TOKENS = 500
MEDIUM_MAX_TOKENS = 2_000
SIMPLE_MAX_TURNS = 3
COMPLEX_MIN_TURNS = 20


class ModelComplexity(str, Enum):
    """Estimated difficulty of a request."""

    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"


# Model tiers by complexity, per provider
MODEL_TIERS: dict[str, dict[ModelComplexity, str]] = {
    "anthropic": {
        ModelComplexity.SIMPLE: "claude-haiku-4-5-20251001",
        ModelComplexity.MEDIUM: "claude-sonnet-4-20250514",
        ModelComplexity.COMPLEX: "claude-opus-4-20250514",
    },
    "openai": {
        ModelComplexity.SIMPLE: "gpt-4o-mini",
        ModelComplexity.MEDIUM: "gpt-4o",
        ModelComplexity.COMPLEX: "gpt-4o",
    },
    "ollama": {
        ModelComplexity.SIMPLE: "llama3.2",
        ModelComplexity.MEDIUM: "llama3.1:8b",
        ModelComplexity.COMPLEX: "llama3.1:70b",
    },
}


@dataclass(frozen=True)
class ModelRoutingDecision:
    """Model chosen for a request and why."""

    selected_model: str
    selected_provider: str
    complexity: ModelComplexity
    reason: str

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["complexity"] = self.complexity.value
        return data


def analyze_complexity(message_text: str, has_tools: bool, turn_count: int) -> ModelComplexity:
    """
    Classify a request by estimated size, tool usage and conversation length.

    Simple is checked first, then complex; medium is the residual.

    Args:
        message_text: Text of the request
        has_tools: Whether tools are offered for this turn
        turn_count: Number of turns so far

    Returns:
        ModelComplexity
    """
    tokens = estimate_tokens(message_text)

    if tokens <= SIMPLE_MAX_TOKENS and not has_tools and turn_count <= SIMPLE_MAX_TURNS:
        return ModelComplexity.SIMPLE

    if (
        tokens > MEDIUM_MAX_TOKENS
        or turn_count > COMPLEX_MIN_TURNS
        or (has_tools and tokens > SIMPLE_MAX_TOKENS)
    ):
        return ModelComplexity.COMPLEX

    return ModelComplexity.MEDIUM


def route_to_model(
    message_text: str,
    has_tools: bool,
    turn_count: int,
    preferred_provider: str = "anthropic",
) -> ModelRoutingDecision:
    """
    Pick a model for a request based on its complexity.

    Args:
        message_text: Text of the request
        has_tools: Whether tools are offered for this turn
        turn_count: Number of turns so far
        preferred_provider: Provider whose model table is used

    Returns:
        ModelRoutingDecision with a human-readable reason

    Raises:
        UnknownProviderError: If the provider has no model table
    """
    tiers = MODEL_TIERS.get(preferred_provider)
    if tiers is None:
        raise UnknownProviderError(preferred_provider, sorted(MODEL_TIERS))

    complexity = analyze_complexity(message_text, has_tools, turn_count)
    selected_model = tiers[complexity]

    decision = ModelRoutingDecision(
        selected_model=selected_model,
        selected_provider=preferred_provider,
        complexity=complexity,
        reason=f"{complexity.value} complexity -> {selected_model}",
    )

    logger.debug(f"Model routing decision: {decision.reason} (provider={preferred_provider})")
    return decision
