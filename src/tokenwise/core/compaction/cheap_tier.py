"""Tier 2: cheap LLM compaction.

Older messages are summarized by a low-cost model through an injected
send function, so this module never talks to a provider itself.
"""

import logging

from tokenwise.core.compaction.models import CheapTierResult, SendFn
from tokenwise.core.context.messages import Message
from tokenwise.core.context.token_counter import estimate_tokens
from tokenwise.core.errors import UnknownProviderError

logger = logging.getLogger(__name__)

# Summarization model per provider
CHEAP_MODELS: dict[str, str] = {
    "anthropic": "claude-haiku-4-5-20251001",
    "openai": "gpt-4o-mini",
    "ollama": "llama3.2",
}

# Last 3 user/assistant pairs stay unsummarized
KEEP_RECENT_MESSAGES = 6

SUMMARY_PREFIX = "[Conversation Summary]"

SUMMARIZER_SYSTEM_PROMPT = (
    "You are a conversation summarizer. Summarize the following conversation history "
    "into a concise summary that preserves all key information, decisions, and context "
    "needed for the conversation to continue naturally. Be thorough but concise."
)


def cheap_model_for(provider: str) -> str:
    """
    Summarization model for a provider.

    Raises:
        UnknownProviderError: If the provider has no cheap model
    """
    try:
        return CHEAP_MODELS[provider]
    except KeyError:
        raise UnknownProviderError(provider, sorted(CHEAP_MODELS)) from None


def render_transcript(messages: list[Message]) -> str:
    """Render messages as 'role: text' lines for the summarizer."""
    lines = []
    for msg in messages:
        text = msg.content.as_text() or "[non-text content]"
        lines.append(f"{msg.role}: {text}")
    return "\n".join(lines)


async def run_cheap_tier_compaction(
    messages: list[Message],
    target_tokens_to_free: int,
    send_fn: SendFn,
    preferred_provider: str = "anthropic",
) -> CheapTierResult:
    """
    Replace everything but the most recent messages with an LLM summary.

    A failing send_fn or an unknown provider leaves the history unchanged;
    the error is logged and reported on the result instead of raised.

    Args:
        messages: Conversation history, oldest first
        target_tokens_to_free: Deficit the caller hopes to cover (informational)
        send_fn: Async (system_prompt, user_text, model) -> summary
        preferred_provider: Provider whose cheap model is requested

    Returns:
        CheapTierResult
    """
    if len(messages) <= KEEP_RECENT_MESSAGES:
        return CheapTierResult(messages=list(messages), freed_tokens=0, summarized_count=0)

    to_summarize = messages[:-KEEP_RECENT_MESSAGES]
    recent = messages[-KEEP_RECENT_MESSAGES:]

    conversation_text = render_transcript(to_summarize)
    before_tokens = estimate_tokens(conversation_text)

    model: str | None = None
    try:
        model = cheap_model_for(preferred_provider)
        summary = await send_fn(SUMMARIZER_SYSTEM_PROMPT, conversation_text, model)
    except Exception as e:
        logger.error(
            f"Cheap-tier compaction failed with {model or preferred_provider}, "
            f"keeping original history: {e}",
            exc_info=True,
        )
        return CheapTierResult(
            messages=list(messages),
            freed_tokens=0,
            summarized_count=0,
            model=model,
            error=str(e) or type(e).__name__,
        )

    summary_message = Message.text("system", f"{SUMMARY_PREFIX}\n{summary}")
    freed = max(0, before_tokens - summary_message.estimate_size())

    logger.info(
        f"Cheap-tier compaction complete: model={model}, summarized={len(to_summarize)}, "
        f"freed={freed}, target={target_tokens_to_free}"
    )

    return CheapTierResult(
        messages=[summary_message, *recent],
        freed_tokens=freed,
        summarized_count=len(to_summarize),
        model=model,
    )
