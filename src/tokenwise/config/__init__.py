"""Configuration management for Tokenwise."""

from .settings import TokenEngineSettings, get_settings, reload_settings
from .validation import (
    HARD_MIN_CONTEXT,
    WARN_MIN_CONTEXT,
    ContextWindowValidation,
    validate_budget_ratios,
    validate_context_window,
    validate_margin_percent,
    validate_ttl,
)

__all__ = [
    "TokenEngineSettings",
    "get_settings",
    "reload_settings",
    "HARD_MIN_CONTEXT",
    "WARN_MIN_CONTEXT",
    "ContextWindowValidation",
    "validate_budget_ratios",
    "validate_context_window",
    "validate_margin_percent",
    "validate_ttl",
]
