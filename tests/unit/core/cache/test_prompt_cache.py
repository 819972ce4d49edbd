"""Unit tests for prompt cache markers."""

import pytest

from tokenwise.core.cache.prompt_cache import (
    EPHEMERAL_CACHE_CONTROL,
    CacheControlResult,
    inject_cache_control,
    inject_system_cache_control,
    inject_tools_cache_control,
    model_supports_caching,
)


@pytest.fixture
def tools() -> list[dict]:
    """Two tool definitions."""
    return [
        {"name": "search", "description": "Search", "input_schema": {"type": "object"}},
        {"name": "fetch", "description": "Fetch", "input_schema": {"type": "object"}},
    ]


class TestModelSupportsCaching:
    """Tests for cache eligibility."""

    @pytest.mark.parametrize(
        "model",
        [
            "claude-3-haiku-20240307",
            "claude-3.5-sonnet",
            "claude-sonnet-4-20250514",
            "claude-opus-4-20250514",
            "claude-haiku-4-5-20251001",
        ],
    )
    def test_claude_families_eligible(self, model):
        """Test that Claude 3+ families support caching."""
        assert model_supports_caching(model)

    @pytest.mark.parametrize("model", ["gpt-4o", "llama3.2", "claude-2.1"])
    def test_other_models_not_eligible(self, model):
        """Test that other models do not support caching."""
        assert not model_supports_caching(model)

    def test_extra_prefixes(self):
        """Test that callers can extend the eligible families."""
        assert model_supports_caching("my-proxy-model", extra_prefixes=("my-proxy",))


class TestInjectSystemCacheControl:
    """Tests for system prompt markers."""

    def test_string_prompt_becomes_marked_block(self):
        """Test that a string prompt is wrapped into one marked block."""
        blocks = inject_system_cache_control("You are helpful.")

        assert blocks == [
            {
                "type": "text",
                "text": "You are helpful.",
                "cache_control": EPHEMERAL_CACHE_CONTROL,
            }
        ]

    def test_only_last_block_marked(self):
        """Test that the marker goes on the last block only."""
        original = [{"type": "text", "text": "a"}, {"type": "text", "text": "b"}]

        blocks = inject_system_cache_control(original)

        assert "cache_control" not in blocks[0]
        assert blocks[1]["cache_control"] == {"type": "ephemeral"}
        # Input untouched
        assert "cache_control" not in original[1]

    def test_empty_block_list(self):
        """Test that an empty prompt stays empty."""
        assert inject_system_cache_control([]) == []


class TestInjectToolsCacheControl:
    """Tests for tool definition markers."""

    def test_marks_last_tool_without_mutating(self, tools):
        """Test that only the last tool is marked on a copy."""
        marked = inject_tools_cache_control(tools)

        assert "cache_control" not in marked[0]
        assert marked[1]["cache_control"] == {"type": "ephemeral"}
        assert "cache_control" not in tools[1]

    def test_empty_tools(self):
        """Test that no tools means no markers."""
        assert inject_tools_cache_control([]) == []


class TestInjectCacheControl:
    """Tests for the combined entry point."""

    def test_eligible_model(self, tools):
        """Test that eligible models get markers on prompt and tools."""
        result = inject_cache_control("claude-sonnet-4-20250514", "Be brief.", tools)

        assert isinstance(result, CacheControlResult)
        assert result.system[-1]["cache_control"] == {"type": "ephemeral"}
        assert result.tools[-1]["cache_control"] == {"type": "ephemeral"}

    def test_ineligible_model_passthrough(self, tools):
        """Test that other models get the prompt and tools unmarked."""
        result = inject_cache_control("gpt-4o", "Be brief.", tools)

        assert result.system == [{"type": "text", "text": "Be brief."}]
        assert result.tools == tools
        assert all("cache_control" not in t for t in result.tools)

    def test_missing_prompt_and_tools(self):
        """Test that absent inputs produce empty outputs."""
        result = inject_cache_control("claude-opus-4", None, None)

        assert result.system == []
        assert result.tools == []
