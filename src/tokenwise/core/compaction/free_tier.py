"""Tier 1: free compaction, no LLM calls.

Structural edits applied in order, each only while the deficit is unmet:
tool result truncation, old image dropping, consecutive message merging and
oldest message removal.
"""

import logging
from dataclasses import dataclass

from tokenwise.core.compaction.models import FreeTierResult
from tokenwise.core.context.messages import (
    IMAGE_TOKEN_ESTIMATE,
    Blocks,
    ImageBlock,
    Message,
    PlainText,
    TextBlock,
    ToolResultBlock,
)
from tokenwise.core.context.pre_truncation import DEFAULT_MAX_TOOL_RESULT_CHARS, truncate
from tokenwise.core.context.token_counter import MESSAGE_OVERHEAD, estimate_tokens

logger = logging.getLogger(__name__)

# Most recent block-content messages that keep their images
KEEP_RECENT_IMAGE_MESSAGES = 3
# Messages (about 5 user/assistant pairs) never removed by the free tier
KEEP_RECENT_MESSAGES = 10
# Trailing messages whose boundaries merging must not change
MERGE_PROTECTED_TAIL = 6
# Flat credit for removing a block-content message
BLOCK_MESSAGE_REMOVAL_TOKENS = 50

IMAGES_REMOVED_PLACEHOLDER = "[images removed for compaction]"


@dataclass(frozen=True)
class _StepResult:
    messages: list[Message]
    freed: int


def run_free_tier_compaction(
    messages: list[Message],
    target_tokens_to_free: int,
    max_tool_result_chars: int = DEFAULT_MAX_TOOL_RESULT_CHARS,
) -> FreeTierResult:
    """
    Run the free compaction strategies until the target is met.

    Args:
        messages: Conversation history, oldest first
        target_tokens_to_free: Deficit to cover; <= 0 means nothing to do
        max_tool_result_chars: Hard cap for plain-text tool results

    Returns:
        FreeTierResult with the new history, tokens freed and fired steps
    """
    if target_tokens_to_free <= 0:
        return FreeTierResult(messages=list(messages), freed_tokens=0, strategies=[])

    current = list(messages)
    total_freed = 0
    strategies: list[str] = []

    steps = (
        ("tool_truncation", lambda msgs: truncate_tool_results(msgs, max_tool_result_chars)),
        ("image_drop", drop_old_images),
        ("merge_consecutive", merge_consecutive),
        (
            "old_pair_removal",
            lambda msgs: remove_oldest_messages(msgs, target_tokens_to_free - total_freed),
        ),
    )

    for name, step in steps:
        if total_freed >= target_tokens_to_free:
            break
        result = step(current)
        if result.freed > 0:
            current = result.messages
            total_freed += result.freed
            strategies.append(f"{name}(-{result.freed})")

    logger.info(
        f"Free-tier compaction complete: freed={total_freed}, "
        f"target={target_tokens_to_free}, strategies={strategies}"
    )
    return FreeTierResult(messages=current, freed_tokens=total_freed, strategies=strategies)


def truncate_tool_results(
    messages: list[Message], max_chars: int = DEFAULT_MAX_TOOL_RESULT_CHARS
) -> _StepResult:
    """Truncate plain-text tool messages longer than max_chars."""
    freed = 0
    result: list[Message] = []

    for msg in messages:
        content = msg.content
        if msg.role == "tool" and isinstance(content, PlainText) and len(content.text) > max_chars:
            truncated = truncate(content.text, max_chars)
            freed += estimate_tokens(content.text) - estimate_tokens(truncated)
            result.append(msg.with_content(PlainText(truncated)))
        else:
            result.append(msg)

    return _StepResult(messages=result, freed=freed)


def drop_old_images(messages: list[Message]) -> _StepResult:
    """Strip image blocks from all but the most recent block-content messages.

    The window counts every block-content message, including tool turns that
    carry no images.
    """
    block_indices = [i for i, msg in enumerate(messages) if isinstance(msg.content, Blocks)]
    if len(block_indices) <= KEEP_RECENT_IMAGE_MESSAGES:
        return _StepResult(messages=messages, freed=0)

    to_strip = set(block_indices[:-KEEP_RECENT_IMAGE_MESSAGES])
    freed = 0
    result: list[Message] = []

    for i, msg in enumerate(messages):
        content = msg.content
        if i not in to_strip or not isinstance(content, Blocks) or content.image_count == 0:
            result.append(msg)
            continue

        kept = [b for b in content.blocks if not isinstance(b, ImageBlock)]
        freed += content.image_count * IMAGE_TOKEN_ESTIMATE
        if not any(isinstance(b, (TextBlock, ToolResultBlock)) for b in kept):
            kept.append(TextBlock(text=IMAGES_REMOVED_PLACEHOLDER))
        result.append(msg.with_content(Blocks(tuple(kept))))

    return _StepResult(messages=result, freed=freed)


def merge_consecutive(messages: list[Message]) -> _StepResult:
    """Merge adjacent plain-text messages that share a role.

    The last MERGE_PROTECTED_TAIL messages are left as they are.
    """
    split = max(0, len(messages) - MERGE_PROTECTED_TAIL)
    head, tail = messages[:split], messages[split:]

    merged: list[Message] = []
    freed = 0
    for msg in head:
        prev = merged[-1] if merged else None
        if (
            prev is not None
            and prev.role == msg.role
            and isinstance(prev.content, PlainText)
            and isinstance(msg.content, PlainText)
        ):
            merged[-1] = prev.with_content(PlainText(prev.content.text + "\n" + msg.content.text))
            freed += MESSAGE_OVERHEAD
        else:
            merged.append(msg)

    return _StepResult(messages=merged + tail, freed=freed)


def remove_oldest_messages(messages: list[Message], tokens_to_free: int) -> _StepResult:
    """Remove messages from the front, never touching the last KEEP_RECENT_MESSAGES."""
    if len(messages) <= KEEP_RECENT_MESSAGES or tokens_to_free <= 0:
        return _StepResult(messages=messages, freed=0)

    removable = messages[:-KEEP_RECENT_MESSAGES]
    freed = 0
    remove_count = 0
    for msg in removable:
        if freed >= tokens_to_free:
            break
        if isinstance(msg.content, PlainText):
            freed += msg.estimate_size() + MESSAGE_OVERHEAD
        else:
            freed += BLOCK_MESSAGE_REMOVAL_TOKENS
        remove_count += 1

    return _StepResult(messages=messages[remove_count:], freed=freed)
