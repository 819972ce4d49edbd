"""Wall-clock helpers for usage periods, in epoch milliseconds."""

import pendulum
from pendulum import DateTime


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(pendulum.now().timestamp() * 1000)


def to_ms(moment: DateTime) -> int:
    """Convert a pendulum DateTime to epoch milliseconds."""
    return int(moment.timestamp() * 1000)


def local_now(tz: str | None = None) -> DateTime:
    """
    Current time in the given timezone.

    Args:
        tz: IANA timezone name; None uses the local timezone

    Returns:
        Timezone-aware DateTime
    """
    return pendulum.now(tz) if tz else pendulum.now()


def start_of_day_ms(now: DateTime | None = None) -> int:
    """Epoch ms of local midnight for the day containing `now`."""
    moment = now or local_now()
    return to_ms(moment.start_of("day"))


def start_of_month_ms(now: DateTime | None = None) -> int:
    """Epoch ms of local midnight on the first of the month containing `now`."""
    moment = now or local_now()
    return to_ms(moment.start_of("month"))


def days_in_month(now: DateTime | None = None) -> int:
    """Number of days in the month containing `now`."""
    moment = now or local_now()
    return moment.days_in_month
