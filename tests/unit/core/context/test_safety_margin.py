"""Unit tests for safety margin helpers."""

from tokenwise.core.context.safety_margin import (
    effective_context_window,
    is_near_limit,
    safety_margin_tokens,
)


class TestSafetyMargin:
    """Tests for safety margin calculations."""

    def test_effective_context_window(self):
        """Test the default 5% margin."""
        assert effective_context_window(100_000) == 95_000
        assert effective_context_window(100_000, 0.10) == 90_000

    def test_effective_window_is_floored(self):
        """Test that fractional windows are floored."""
        assert effective_context_window(1_001) == 950

    def test_safety_margin_tokens(self):
        """Test that margin and effective window add up to the total."""
        assert safety_margin_tokens(100_000) == 5_000
        assert safety_margin_tokens(1_001) + effective_context_window(1_001) == 1_001

    def test_is_near_limit(self):
        """Test the 90% near-limit threshold."""
        assert is_near_limit(90_000, 100_000)
        assert not is_near_limit(89_999, 100_000)
        assert is_near_limit(50_000, 100_000, threshold_percent=0.5)
