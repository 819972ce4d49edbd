"""Provider-side prompt caching markers.

Marks the system prompt and the tool definitions so that providers which
support prompt caching can reuse a stable prefix. Callers must keep the
prompt and tools identical across calls for the upstream cache to hit.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

EPHEMERAL_CACHE_CONTROL: dict[str, str] = {"type": "ephemeral"}

# Model ID prefixes of cache-eligible model families
CACHE_ELIGIBLE_PREFIXES: tuple[str, ...] = (
    "claude-3",
    "claude-3.5",
    "claude-sonnet-4",
    "claude-opus-4",
    "claude-haiku-4",
)


@dataclass
class CacheControlResult:
    """System prompt blocks and tool definitions ready for a wire request."""

    system: list[dict[str, Any]] = field(default_factory=list)
    tools: list[Any] = field(default_factory=list)


def model_supports_caching(model_id: str, extra_prefixes: tuple[str, ...] = ()) -> bool:
    """
    Check if a model belongs to a cache-eligible family.

    Args:
        model_id: Model identifier, e.g. "claude-sonnet-4-20250514"
        extra_prefixes: Additional eligible prefixes

    Returns:
        True if the model ID starts with an eligible prefix
    """
    return model_id.startswith(CACHE_ELIGIBLE_PREFIXES + tuple(extra_prefixes))


def inject_system_cache_control(
    system_prompt: str | list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """
    Wrap a system prompt as content blocks with a cache marker on the last one.

    Block lists are copied; the input is never mutated.
    """
    if isinstance(system_prompt, str):
        blocks = [{"type": "text", "text": system_prompt}]
    else:
        blocks = [dict(block) for block in system_prompt]

    if not blocks:
        return blocks

    if "cache_control" not in blocks[-1]:
        blocks[-1]["cache_control"] = dict(EPHEMERAL_CACHE_CONTROL)
        logger.debug(f"Injected cache_control on system prompt ({len(blocks)} blocks)")
    return blocks


def inject_tools_cache_control(tools: list[Any]) -> list[Any]:
    """Copy tool definitions and stamp a cache marker on the last one."""
    if not tools:
        return list(tools)

    cloned = [dict(tool) if isinstance(tool, dict) else tool for tool in tools]
    if isinstance(cloned[-1], dict):
        cloned[-1]["cache_control"] = dict(EPHEMERAL_CACHE_CONTROL)
        logger.debug(f"Injected cache_control on tool definitions ({len(cloned)} tools)")
    return cloned


def inject_cache_control(
    model_id: str,
    system_prompt: str | None,
    tools: list[Any] | None,
    extra_prefixes: tuple[str, ...] = (),
) -> CacheControlResult:
    """
    Prepare the system prompt and tools for a request to model_id.

    Eligible models get cache markers; others get a plain text block and the
    tools unchanged.

    Args:
        model_id: Target model
        system_prompt: System prompt text, if any
        tools: Tool definitions, if any
        extra_prefixes: Additional cache-eligible model prefixes

    Returns:
        CacheControlResult
    """
    if not model_supports_caching(model_id, extra_prefixes):
        return CacheControlResult(
            system=[{"type": "text", "text": system_prompt}] if system_prompt else [],
            tools=list(tools or []),
        )

    return CacheControlResult(
        system=inject_system_cache_control(system_prompt) if system_prompt else [],
        tools=inject_tools_cache_control(tools) if tools else [],
    )
