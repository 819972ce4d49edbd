"""Unit tests for cheap LLM compaction."""

from unittest.mock import AsyncMock

import pytest

from tokenwise.core.compaction.cheap_tier import (
    CHEAP_MODELS,
    SUMMARIZER_SYSTEM_PROMPT,
    SUMMARY_PREFIX,
    cheap_model_for,
    render_transcript,
    run_cheap_tier_compaction,
)
from tokenwise.core.context.messages import ImageBlock, Message
from tokenwise.core.errors import UnknownProviderError


class TestCheapModel:
    """Tests for summarization model selection."""

    def test_known_providers(self):
        """Test the cheap model of each provider."""
        assert cheap_model_for("anthropic") == "claude-haiku-4-5-20251001"
        assert cheap_model_for("openai") == "gpt-4o-mini"
        assert cheap_model_for("ollama") == "llama3.2"

    def test_unknown_provider(self):
        """Test that unknown providers are rejected."""
        with pytest.raises(UnknownProviderError) as exc_info:
            cheap_model_for("mystery")

        assert exc_info.value.provider == "mystery"
        assert exc_info.value.known == sorted(CHEAP_MODELS)


class TestRenderTranscript:
    """Tests for transcript rendering."""

    def test_role_prefixed_lines(self):
        """Test one 'role: text' line per message."""
        messages = [Message.text("user", "hi"), Message.text("assistant", "hello")]
        assert render_transcript(messages) == "user: hi\nassistant: hello"

    def test_non_text_placeholder(self):
        """Test that messages without text are labelled."""
        messages = [Message.from_blocks("user", [ImageBlock()])]
        assert render_transcript(messages) == "user: [non-text content]"


class TestRunCheapTier:
    """Tests for cheap-tier compaction."""

    @pytest.mark.asyncio
    async def test_summarizes_all_but_last_six(self, long_history):
        """Test that older messages are replaced by one summary message."""
        send_fn = AsyncMock(return_value="short summary")

        result = await run_cheap_tier_compaction(long_history, 5_000, send_fn)

        assert len(result.messages) == 7
        assert result.messages[0].role == "system"
        assert result.messages[0].content.as_text() == f"{SUMMARY_PREFIX}\nshort summary"
        assert result.messages[1:] == long_history[-6:]
        assert result.summarized_count == 24
        assert result.model == "claude-haiku-4-5-20251001"
        assert result.freed_tokens > 0
        assert not result.failed

    @pytest.mark.asyncio
    async def test_send_fn_arguments(self, long_history):
        """Test the summarizer receives the prompt, transcript and cheap model."""
        send_fn = AsyncMock(return_value="summary")

        await run_cheap_tier_compaction(long_history, 5_000, send_fn, "openai")

        system_prompt, user_text, model = send_fn.await_args.args
        assert system_prompt == SUMMARIZER_SYSTEM_PROMPT
        assert user_text == render_transcript(long_history[:-6])
        assert model == "gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_short_history_not_summarized(self):
        """Test that six or fewer messages skip the LLM call."""
        messages = [Message.text("user", "hi")] * 6
        send_fn = AsyncMock()

        result = await run_cheap_tier_compaction(messages, 1_000, send_fn)

        send_fn.assert_not_awaited()
        assert result.freed_tokens == 0
        assert result.messages == messages

    @pytest.mark.asyncio
    async def test_failure_keeps_original_history(self, long_history):
        """Test that a failing summarizer degrades to a no-op."""
        send_fn = AsyncMock(side_effect=RuntimeError("provider down"))

        result = await run_cheap_tier_compaction(long_history, 5_000, send_fn)

        assert result.messages == long_history
        assert result.freed_tokens == 0
        assert result.failed
        assert result.error == "provider down"

    @pytest.mark.asyncio
    async def test_long_summary_frees_nothing(self):
        """Test that freed tokens never go negative."""
        messages = [Message.text("user", "hi")] * 8
        send_fn = AsyncMock(return_value="x" * 10_000)

        result = await run_cheap_tier_compaction(messages, 1_000, send_fn)

        assert result.freed_tokens == 0
        assert len(result.messages) == 7

    @pytest.mark.asyncio
    async def test_unknown_provider_reported_on_result(self, long_history):
        """Test that an unknown provider leaves the history unchanged with an error."""
        send_fn = AsyncMock()

        result = await run_cheap_tier_compaction(long_history, 5_000, send_fn, "mystery")

        send_fn.assert_not_awaited()
        assert result.messages == long_history
        assert result.freed_tokens == 0
        assert result.model is None
        assert result.error == str(UnknownProviderError("mystery", sorted(CHEAP_MODELS)))
