"""Prompt caching markers and the tool result cache."""

from tokenwise.core.cache.prompt_cache import (
    CACHE_ELIGIBLE_PREFIXES,
    CacheControlResult,
    inject_cache_control,
    inject_system_cache_control,
    inject_tools_cache_control,
    model_supports_caching,
)
from tokenwise.core.cache.result_cache import DEFAULT_TTL_MS, CacheEntry, ResultCache

__all__ = [
    "CACHE_ELIGIBLE_PREFIXES",
    "CacheControlResult",
    "model_supports_caching",
    "inject_cache_control",
    "inject_system_cache_control",
    "inject_tools_cache_control",
    "CacheEntry",
    "ResultCache",
    "DEFAULT_TTL_MS",
]
