"""Utility functions for tokenwise."""

from .time import days_in_month, local_now, now_ms, start_of_day_ms, start_of_month_ms, to_ms

__all__ = [
    "now_ms",
    "to_ms",
    "local_now",
    "start_of_day_ms",
    "start_of_month_ms",
    "days_in_month",
]
