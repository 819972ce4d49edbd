"""Unit tests for tool result truncation."""

from tokenwise.core.context.pre_truncation import (
    DEFAULT_MAX_TOOL_RESULT_CHARS,
    PRE_TRUNCATION_SUFFIX,
    TRUNCATION_SUFFIX,
    context_relative_limit,
    pre_truncate_tool_result,
    truncate,
)


class TestTruncate:
    """Tests for truncate."""

    def test_short_text_unchanged(self):
        """Test that text within the limit is returned as is."""
        assert truncate("abcdef", 10) == "abcdef"
        assert truncate("abcdef", 6) == "abcdef"

    def test_long_text_cut_to_limit(self):
        """Test that truncated text ends with the marker and fits the limit."""
        result = truncate("a" * 100, 30)

        assert len(result) == 30
        assert result.endswith(TRUNCATION_SUFFIX)

    def test_custom_suffix(self):
        """Test a custom truncation marker."""
        assert truncate("abcdefghij", 6, suffix="..") == "abcd.."


class TestPreTruncation:
    """Tests for pre-truncation of tool results."""

    def test_oversized_result_truncated(self):
        """Test the hard 50K character cap."""
        result = pre_truncate_tool_result("x" * 60_000)

        assert len(result) == DEFAULT_MAX_TOOL_RESULT_CHARS
        assert result.endswith(PRE_TRUNCATION_SUFFIX)

    def test_small_result_unchanged(self):
        """Test that results under the cap pass through."""
        assert pre_truncate_tool_result("ok") == "ok"

    def test_context_relative_limit(self):
        """Test the 10% of context soft limit and its hard cap."""
        assert context_relative_limit(100_000) == 40_000
        assert context_relative_limit(200_000) == DEFAULT_MAX_TOOL_RESULT_CHARS
        assert context_relative_limit(100_000, context_percentage=0.05) == 20_000
