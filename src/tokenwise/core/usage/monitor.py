"""In-memory token usage monitoring per model and per session."""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from pendulum import DateTime

from tokenwise.core.usage.reporter import TokenReport
from tokenwise.utils.time import (
    days_in_month,
    local_now,
    now_ms,
    start_of_day_ms,
    start_of_month_ms,
    to_ms,
)

logger = logging.getLogger(__name__)


@dataclass
class UsageBucket:
    """Token and cost totals for one model or session."""

    input: int = 0
    output: int = 0
    cost: float = 0.0

    def add(self, report: TokenReport) -> None:
        self.input += report.input_tokens
        self.output += report.output_tokens
        self.cost += report.estimated_cost

    def to_dict(self) -> dict[str, Any]:
        return {"input": self.input, "output": self.output, "cost": self.cost}


@dataclass
class UsageSummary:
    """Aggregated usage over a time window."""

    total_input: int = 0
    total_output: int = 0
    total_cache_read: int = 0
    total_cost: float = 0.0
    by_model: dict[str, UsageBucket] = field(default_factory=dict)
    by_session: dict[str, UsageBucket] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-safe dictionary."""
        return {
            "total_input": self.total_input,
            "total_output": self.total_output,
            "total_cache_read": self.total_cache_read,
            "total_cost": self.total_cost,
            "by_model": {k: v.to_dict() for k, v in self.by_model.items()},
            "by_session": {k: v.to_dict() for k, v in self.by_session.items()},
        }

    def to_api_dict(self, period: str) -> dict[str, Any]:
        """
        Dashboard shape: per-model and per-session lists instead of maps.

        Model keys are split on the first "/" into provider and model.
        """
        by_model = []
        for key, bucket in self.by_model.items():
            provider, _, model = key.partition("/")
            by_model.append(
                {
                    "model": model or key,
                    "provider": provider if model else "unknown",
                    "input_tokens": bucket.input,
                    "output_tokens": bucket.output,
                    "cost": bucket.cost,
                }
            )

        by_session = [
            {
                "session_key": key,
                "input_tokens": bucket.input,
                "output_tokens": bucket.output,
                "cost": bucket.cost,
            }
            for key, bucket in self.by_session.items()
        ]

        return {
            "period": period,
            "input_tokens": self.total_input,
            "output_tokens": self.total_output,
            "cache_read_tokens": self.total_cache_read,
            "estimated_cost": self.total_cost,
            "by_model": by_model,
            "by_session": by_session,
        }


class UsageMonitor:
    """
    Append-only store of token reports with time-window queries.

    The store is unbounded; `size` lets callers watch it.

    Args:
        clock: Returns the current time in epoch ms, used as the default
            end of a query window
    """

    def __init__(self, clock: Callable[[], int] | None = None):
        self._clock = clock or now_ms
        self._reports: list[TokenReport] = []
        self._lock = threading.Lock()

    def record_usage(self, report: TokenReport) -> None:
        """Append a report to the store."""
        with self._lock:
            self._reports.append(report)
        logger.debug(
            f"Token usage recorded: model={report.model}, input={report.input_tokens}, "
            f"output={report.output_tokens}, cost={report.estimated_cost:.6f}"
        )

    def get_usage_summary(self, start_ms: int, end_ms: int | None = None) -> UsageSummary:
        """
        Aggregate reports with start_ms <= timestamp <= end_ms.

        Args:
            start_ms: Window start (inclusive), epoch ms
            end_ms: Window end (inclusive); defaults to now

        Returns:
            UsageSummary
        """
        end = self._clock() if end_ms is None else end_ms
        with self._lock:
            reports = [r for r in self._reports if start_ms <= r.timestamp <= end]

        summary = UsageSummary()
        for report in reports:
            summary.total_input += report.input_tokens
            summary.total_output += report.output_tokens
            summary.total_cache_read += report.cache_read_tokens
            summary.total_cost += report.estimated_cost

            model_key = f"{report.provider}/{report.model}"
            summary.by_model.setdefault(model_key, UsageBucket()).add(report)

            if report.session_key:
                summary.by_session.setdefault(report.session_key, UsageBucket()).add(report)

        return summary

    def get_today_usage(self, now: DateTime | None = None) -> UsageSummary:
        """Usage from local midnight up to `now` (defaults to the clock)."""
        return self.get_usage_summary(start_of_day_ms(now), _end_ms(now))

    def get_month_usage(self, now: DateTime | None = None) -> UsageSummary:
        """Usage from the first of the month up to `now` (defaults to the clock)."""
        return self.get_usage_summary(start_of_month_ms(now), _end_ms(now))

    def get_all_reports(self) -> list[TokenReport]:
        """Copy of every stored report, oldest first."""
        with self._lock:
            return list(self._reports)

    def clear(self) -> None:
        """Drop all stored reports."""
        with self._lock:
            self._reports.clear()

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._reports)


def _end_ms(now: DateTime | None) -> int | None:
    return None if now is None else to_ms(now)


def project_month_end(current_spend: float, now: DateTime | None = None) -> float:
    """
    Linear projection of month-to-date spend to the end of the month.

    Args:
        current_spend: Spend so far this month (USD)
        now: Reference time; defaults to local now

    Returns:
        Projected month-end spend (USD)
    """
    moment = now or local_now()
    return current_spend / moment.day * days_in_month(moment)
