"""Tool result pre-truncation.

Hard limit: 50K characters. Soft limit: 10% of the context window.
"""

import logging
import math

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOOL_RESULT_CHARS = 50_000
TRUNCATION_SUFFIX = "…[truncated]"
PRE_TRUNCATION_SUFFIX = "\n\n…[result truncated to fit context window]"

# Rough characters-per-token ratio used to turn token limits into char limits
CHARS_PER_TOKEN = 4


def truncate(text: str, max_len: int, suffix: str = TRUNCATION_SUFFIX) -> str:
    """
    Cut text to at most max_len characters, ending with suffix.

    Args:
        text: Text to truncate
        max_len: Maximum length of the result, suffix included
        suffix: Marker appended to truncated text

    Returns:
        The original text if short enough, otherwise the truncated text
    """
    if len(text) <= max_len:
        return text
    return text[: max(0, max_len - len(suffix))] + suffix


def pre_truncate_tool_result(result: str, max_chars: int = DEFAULT_MAX_TOOL_RESULT_CHARS) -> str:
    """Truncate a tool result before it enters the conversation."""
    if len(result) <= max_chars:
        return result

    logger.debug(f"Pre-truncating tool result: {len(result)} chars -> {max_chars}")
    return truncate(result, max_chars, PRE_TRUNCATION_SUFFIX)


def context_relative_limit(total_context_tokens: int, context_percentage: float = 0.10) -> int:
    """
    Character limit for a tool result relative to the context window.

    Args:
        total_context_tokens: Nominal context window
        context_percentage: Share of the window a single result may take

    Returns:
        min(window * 4 * percentage, hard limit) in characters
    """
    char_limit = math.floor(total_context_tokens * CHARS_PER_TOKEN * context_percentage)
    return min(char_limit, DEFAULT_MAX_TOOL_RESULT_CHARS)
