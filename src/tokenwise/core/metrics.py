"""Metrics collection for the token engine.

Counts cache hits and misses, compactions and their failures, and recorded
usage reports, and keeps histograms of compaction savings and latency. The
collector is in-memory; exporting to Prometheus or similar is a caller concern.
"""

import threading
import time
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

# Metric names emitted by the engine
RESULT_CACHE_HITS = "result_cache_hits"
RESULT_CACHE_MISSES = "result_cache_misses"
COMPACTIONS = "compactions"
COMPACTION_FAILURES = "compaction_failures"
COMPACTION_SAVED_TOKENS = "compaction_saved_tokens"
COMPACTION_SECONDS = "compaction_seconds"
USAGE_REPORTS = "usage_reports"


class MetricType(Enum):
    """Types of metrics that can be collected."""

    COUNTER = "counter"  # Monotonically increasing value
    HISTOGRAM = "histogram"  # Distribution of values over time


@dataclass
class MetricEvent:
    """A single recorded metric value.

    Attributes:
        name: Metric name (e.g., "compactions", "result_cache_hits")
        type: Counter or histogram
        value: The metric value
        labels: Labels for filtering/grouping (e.g., {"tier": "free"})
        timestamp: When the metric was recorded
    """

    name: str
    type: MetricType
    value: float
    labels: dict[str, str] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def matches(self, name: str, metric_type: MetricType, labels: dict[str, str] | None) -> bool:
        if self.type != metric_type or self.name != name:
            return False
        if labels is None:
            return True
        return all(self.labels.get(k) == v for k, v in labels.items())


class MetricsCollector:
    """Collects counters and histograms in memory.

    Recording appends under a lock so an engine shared between threads keeps
    a consistent event list.
    """

    def __init__(self) -> None:
        self._events: list[MetricEvent] = []
        self._enabled: bool = True
        self._lock = threading.Lock()

    def _record(
        self, name: str, metric_type: MetricType, value: float, labels: dict[str, str] | None
    ) -> None:
        if not self._enabled:
            return
        event = MetricEvent(name=name, type=metric_type, value=value, labels=labels or {})
        with self._lock:
            self._events.append(event)

    def increment(
        self, name: str, value: float = 1.0, labels: dict[str, str] | None = None
    ) -> None:
        """Increment a counter metric.

        Example:
            metrics.increment("compactions", labels={"tier": "cheap"})
        """
        self._record(name, MetricType.COUNTER, value, labels)

    def record_histogram(
        self, name: str, value: float, labels: dict[str, str] | None = None
    ) -> None:
        """Record one observation of a histogram metric.

        Example:
            metrics.record_histogram("compaction_saved_tokens", 26500)
        """
        self._record(name, MetricType.HISTOGRAM, value, labels)

    def get_events(self) -> list[MetricEvent]:
        """Get all recorded metric events in chronological order."""
        with self._lock:
            return self._events.copy()

    def get_counter_value(self, name: str, labels: dict[str, str] | None = None) -> float:
        """Sum of all increments of a counter, optionally filtered by labels."""
        return sum(
            e.value for e in self.get_events() if e.matches(name, MetricType.COUNTER, labels)
        )

    def get_histogram_values(self, name: str, labels: dict[str, str] | None = None) -> list[float]:
        """All recorded values of a histogram, optionally filtered by labels."""
        return [e.value for e in self.get_events() if e.matches(name, MetricType.HISTOGRAM, labels)]

    def clear(self) -> None:
        """Clear all recorded metrics."""
        with self._lock:
            self._events.clear()

    def enable(self) -> None:
        """Enable metrics collection."""
        self._enabled = True

    def disable(self) -> None:
        """Disable metrics collection; recording becomes a no-op."""
        self._enabled = False

    def is_enabled(self) -> bool:
        """Check if metrics collection is enabled."""
        return self._enabled

    def export_summary(self) -> dict[str, Any]:
        """Export counters and histograms aggregated by name.

        Returns:
            Dictionary with "counters", "histograms" and "total_events"
        """
        events = self.get_events()
        counters: dict[str, dict[str, Any]] = {}
        histogram_values: dict[str, list[float]] = defaultdict(list)

        for event in events:
            label_key = ",".join(f"{k}={v}" for k, v in sorted(event.labels.items()))
            if event.type == MetricType.COUNTER:
                entry = counters.setdefault(event.name, {"total": 0.0, "by_labels": {}})
                entry["total"] += event.value
                entry["by_labels"][label_key] = entry["by_labels"].get(label_key, 0.0) + event.value
            else:
                histogram_values[event.name].append(event.value)

        histograms = {
            name: {
                "count": len(values),
                "min": min(values),
                "max": max(values),
                "avg": sum(values) / len(values),
            }
            for name, values in histogram_values.items()
        }

        return {"counters": counters, "histograms": histograms, "total_events": len(events)}


class MetricsTimer:
    """Context manager that records the duration of a block as a histogram.

    Example:
        with MetricsTimer(metrics, "compaction_seconds", {"strategy": "tiered"}):
            result = await compact_messages(...)
    """

    def __init__(
        self, collector: MetricsCollector, metric_name: str, labels: dict[str, str] | None = None
    ):
        self.collector = collector
        self.metric_name = metric_name
        self.labels = labels or {}
        self.start_time: float | None = None

    def __enter__(self) -> "MetricsTimer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.start_time is not None:
            duration = time.perf_counter() - self.start_time
            self.collector.record_histogram(self.metric_name, duration, self.labels)
