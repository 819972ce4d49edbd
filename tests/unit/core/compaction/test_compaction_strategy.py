"""Unit tests for the two-tier compaction strategy."""

from unittest.mock import AsyncMock

import pytest

from tokenwise.core.compaction.cheap_tier import SUMMARY_PREFIX
from tokenwise.core.compaction.strategy import compact_messages
from tokenwise.core.context.budget import calculate_budget, tokens_to_free
from tokenwise.core.context.messages import Message
from tokenwise.core.context.token_counter import estimate_message_tokens


async def echo_summary(system_prompt: str, user_text: str, model: str) -> str:
    """Summarizer stub returning a fixed 50 character summary."""
    return "s" * 50


class TestCompactMessages:
    """Tests for compact_messages."""

    @pytest.mark.asyncio
    async def test_free_tier_sufficient(self):
        """Test that the cheap tier is skipped when the free tier covers the deficit."""
        messages = [Message.text("tool", "x" * 60_000)] + [
            Message.text("user", "hello")
        ] * 5
        send_fn = AsyncMock()

        result = await compact_messages(messages, 1_000, send_fn=send_fn)

        send_fn.assert_not_awaited()
        assert result.tier == "free"
        assert result.saved_tokens == 2_500
        assert result.original_tokens == estimate_message_tokens(messages)
        assert result.compacted_tokens == result.original_tokens - 2_500
        assert result.error is None
        assert "tool_truncation" in result.strategy

    @pytest.mark.asyncio
    async def test_falls_through_to_cheap_tier(self, long_history):
        """Test that an unmet deficit escalates to summarization."""
        send_fn = AsyncMock(return_value="summary")

        result = await compact_messages(long_history, 26_500, send_fn=send_fn)

        send_fn.assert_awaited_once()
        assert result.tier == "cheap"
        assert result.messages[0].content.as_text().startswith(SUMMARY_PREFIX)
        assert result.strategy.startswith("tiered (free: old_pair_removal")

    @pytest.mark.asyncio
    async def test_always_llm_skips_free_tier(self, long_history):
        """Test that the always-llm strategy summarizes directly."""
        send_fn = AsyncMock(return_value="summary")

        result = await compact_messages(
            long_history, 10, send_fn=send_fn, strategy="always-llm"
        )

        assert result.tier == "cheap"
        assert len(result.messages) == 7
        assert result.strategy == "cheap-llm (24 messages summarized)"

    @pytest.mark.asyncio
    async def test_cheap_tier_failure_is_reported(self, long_history):
        """Test that summarizer failure keeps the free tier result and label."""
        send_fn = AsyncMock(side_effect=TimeoutError("slow"))

        result = await compact_messages(long_history, 26_500, send_fn=send_fn)

        assert result.tier == "free"
        assert result.error == "slow"
        assert "failed: slow" in result.strategy
        # Free tier removal still applied
        assert len(result.messages) == 10

    @pytest.mark.asyncio
    async def test_cheap_tier_freeing_nothing_is_labelled_free(self):
        """Test that a short history the cheap tier cannot shrink stays on the free tier."""
        messages = [Message.text("user", "x" * 400)] * 6
        send_fn = AsyncMock()

        result = await compact_messages(messages, 10_000, send_fn=send_fn)

        send_fn.assert_not_awaited()
        assert result.tier == "free"
        assert result.saved_tokens == 0
        assert result.error is None

    @pytest.mark.asyncio
    async def test_unknown_provider_degrades(self, long_history):
        """Test that a provider without a cheap model is reported, not raised."""
        send_fn = AsyncMock()

        result = await compact_messages(
            long_history, 26_500, send_fn=send_fn, preferred_provider="mystery"
        )

        send_fn.assert_not_awaited()
        assert result.tier == "free"
        assert "Unknown provider 'mystery'" in result.error
        assert len(result.messages) == 10

    @pytest.mark.asyncio
    async def test_accepts_message_dicts(self):
        """Test that provider-style dicts are accepted."""
        messages = [{"role": "user", "content": "hi"}]

        result = await compact_messages(messages, 0, send_fn=AsyncMock())

        assert result.tier == "free"
        assert result.messages == (Message.text("user", "hi"),)

    @pytest.mark.asyncio
    async def test_end_to_end_keeps_recent_messages(self, long_history):
        """Test budget to compaction for a 150k history on a 200k model."""
        budget = calculate_budget(200_000)
        deficit = tokens_to_free(150_000, budget)
        assert deficit == 26_500

        result = await compact_messages(long_history, deficit, send_fn=echo_summary)

        assert result.tier in {"free", "cheap"}
        assert list(result.messages[-6:]) == long_history[-6:]

    @pytest.mark.asyncio
    async def test_result_to_dict(self, long_history):
        """Test the JSON-safe summary of a result."""
        result = await compact_messages(long_history, 26_500, send_fn=echo_summary)

        data = result.to_dict()

        assert data["tier"] == "cheap"
        assert data["message_count"] == len(result.messages)
        assert "messages" not in data
