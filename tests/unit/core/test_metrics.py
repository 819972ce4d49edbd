"""Tests for metrics collection."""

import time

import pytest

from tokenwise.core.metrics import MetricsCollector, MetricsTimer, MetricType


class TestMetricsCollector:
    """Tests for MetricsCollector."""

    def test_initialization(self):
        """Test metrics collector initialization."""
        collector = MetricsCollector()
        assert collector.is_enabled()
        assert len(collector.get_events()) == 0

    def test_increment_counter(self):
        """Test incrementing counter metrics."""
        collector = MetricsCollector()

        collector.increment("compactions")
        assert collector.get_counter_value("compactions") == 1.0

        collector.increment("compactions", value=5.0)
        assert collector.get_counter_value("compactions") == 6.0

    def test_counter_labels(self):
        """Test filtering counters by label."""
        collector = MetricsCollector()
        collector.increment("compactions", labels={"tier": "free"})
        collector.increment("compactions", labels={"tier": "free"})
        collector.increment("compactions", labels={"tier": "cheap"})

        assert collector.get_counter_value("compactions") == 3.0
        assert collector.get_counter_value("compactions", {"tier": "free"}) == 2.0
        assert collector.get_counter_value("compactions", {"tier": "full"}) == 0.0

    def test_record_histogram(self):
        """Test recording histogram values."""
        collector = MetricsCollector()
        collector.record_histogram("compaction_saved_tokens", 100)
        collector.record_histogram("compaction_saved_tokens", 300)

        assert collector.get_histogram_values("compaction_saved_tokens") == [100, 300]

    def test_counters_and_histograms_do_not_mix(self):
        """Test that a name used for both types is kept apart."""
        collector = MetricsCollector()
        collector.increment("x")
        collector.record_histogram("x", 42)

        assert collector.get_counter_value("x") == 1.0
        assert collector.get_histogram_values("x") == [42]

    def test_events_are_timestamped(self):
        """Test that events carry type and timestamp."""
        collector = MetricsCollector()
        collector.increment("usage_reports")

        event = collector.get_events()[0]
        assert event.type == MetricType.COUNTER
        assert event.timestamp.tzinfo is not None

    def test_clear(self):
        """Test clearing all metrics."""
        collector = MetricsCollector()
        collector.increment("a")
        collector.clear()

        assert collector.get_events() == []

    def test_enable_disable(self):
        """Test that a disabled collector records nothing."""
        collector = MetricsCollector()
        collector.disable()
        collector.increment("a")
        assert not collector.is_enabled()
        assert collector.get_counter_value("a") == 0.0

        collector.enable()
        collector.increment("a")
        assert collector.get_counter_value("a") == 1.0

    def test_export_summary(self):
        """Test exporting metric summary."""
        collector = MetricsCollector()
        collector.increment("compactions", labels={"tier": "free"})
        collector.increment("compactions", labels={"tier": "cheap"})
        collector.record_histogram("compaction_seconds", 1.0)
        collector.record_histogram("compaction_seconds", 3.0)

        summary = collector.export_summary()

        assert summary["total_events"] == 4
        assert summary["counters"]["compactions"]["total"] == 2.0
        assert summary["counters"]["compactions"]["by_labels"] == {
            "tier=free": 1.0,
            "tier=cheap": 1.0,
        }
        assert summary["histograms"]["compaction_seconds"] == {
            "count": 2,
            "min": 1.0,
            "max": 3.0,
            "avg": 2.0,
        }


class TestMetricsTimer:
    """Tests for MetricsTimer context manager."""

    def test_timer_records_duration(self):
        """Test that timer records operation duration."""
        collector = MetricsCollector()

        with MetricsTimer(collector, "compaction_seconds"):
            time.sleep(0.01)

        values = collector.get_histogram_values("compaction_seconds")
        assert len(values) == 1
        assert values[0] >= 0.01

    def test_timer_with_labels(self):
        """Test that timer labels are recorded."""
        collector = MetricsCollector()

        with MetricsTimer(collector, "compaction_seconds", labels={"strategy": "tiered"}):
            pass

        assert len(collector.get_histogram_values("compaction_seconds", {"strategy": "tiered"})) == 1

    def test_timer_records_even_on_exception(self):
        """Test that timer records duration even if the block raises."""
        collector = MetricsCollector()

        with pytest.raises(ValueError):
            with MetricsTimer(collector, "failing_operation"):
                raise ValueError("boom")

        assert len(collector.get_histogram_values("failing_operation")) == 1
