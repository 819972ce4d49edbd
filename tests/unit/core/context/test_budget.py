"""Unit tests for token budget allocation."""

import pytest

from tokenwise.core.context.budget import (
    DEFAULT_BUDGET_RATIOS,
    BudgetRatios,
    TokenBudget,
    calculate_budget,
    history_fits_budget,
    remaining_history_tokens,
    tokens_to_free,
)


class TestCalculateBudget:
    """Tests for calculate_budget."""

    def test_default_budget_for_200k_model(self):
        """Test the default split of a 200k context window."""
        budget = calculate_budget(200_000)

        assert budget == TokenBudget(
            total=190_000,
            system=9_500,
            tools=19_000,
            history=123_500,
            response=28_500,
            reserve=9_500,
        )

    def test_buckets_never_exceed_total(self):
        """Test that floored buckets never over-allocate."""
        for context in (16_384, 32_768, 100_003, 128_000, 1_000_000):
            budget = calculate_budget(context)
            assert budget.allocated <= budget.total

    def test_flooring_under_allocates(self):
        """Test that flooring can leave a few tokens unallocated."""
        budget = calculate_budget(100_003)
        assert budget.total == 95_002
        assert budget.allocated < budget.total

    def test_custom_ratios_and_margin(self):
        """Test custom ratio tables and margins."""
        ratios = BudgetRatios(system=0.1, tools=0.1, history=0.5, response=0.2, reserve=0.1)
        budget = calculate_budget(100_000, ratios=ratios, margin_percent=0.0)

        assert budget.total == 100_000
        assert budget.history == 50_000
        assert budget.response == 20_000

    def test_budget_is_frozen(self):
        """Test that budgets cannot be mutated."""
        budget = calculate_budget(200_000)
        with pytest.raises(AttributeError):
            budget.history = 0  # type: ignore[misc]

    def test_to_dict(self):
        """Test serialization of a budget."""
        data = calculate_budget(200_000).to_dict()
        assert data["history"] == 123_500
        assert set(data) == {"total", "system", "tools", "history", "response", "reserve"}

    def test_default_ratios_sum_to_one(self):
        """Test the default ratio table."""
        assert sum(DEFAULT_BUDGET_RATIOS.as_dict().values()) == pytest.approx(1.0)


class TestHistoryChecks:
    """Tests for history fit and deficit helpers."""

    def test_tokens_to_free_for_oversized_history(self):
        """Test the deficit for a 150k history against a 200k model."""
        budget = calculate_budget(200_000)

        assert not history_fits_budget(150_000, budget)
        assert tokens_to_free(150_000, budget) == 26_500

    def test_fitting_history_needs_nothing_freed(self):
        """Test that a fitting history has no deficit."""
        budget = calculate_budget(200_000)

        assert history_fits_budget(123_500, budget)
        assert tokens_to_free(123_500, budget) == 0
        assert tokens_to_free(0, budget) == 0

    def test_remaining_history_tokens(self):
        """Test remaining headroom in the history bucket."""
        budget = calculate_budget(200_000)

        assert remaining_history_tokens(100_000, budget) == 23_500
        assert remaining_history_tokens(150_000, budget) == 0
