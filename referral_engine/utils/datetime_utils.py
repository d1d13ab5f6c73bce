"""
Datetime utilities.

Provides timezone-aware datetime functions and task-day windows.
"""

from datetime import UTC, date, datetime, time, timedelta, tzinfo


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def ensure_aware(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


def local_date(moment: datetime, tz: tzinfo) -> date:
    """
    Calendar date of a moment in the given timezone.

    Args:
        moment: Point in time
        tz: Timezone defining the calendar day

    Returns:
        Local calendar date
    """
    return ensure_aware(moment).astimezone(tz).date()


def start_of_day(moment: datetime, tz: tzinfo) -> datetime:
    """
    Start of the local calendar day containing moment, as UTC.

    Args:
        moment: Point in time
        tz: Timezone defining the calendar day

    Returns:
        Local midnight converted to UTC
    """
    day = local_date(moment, tz)
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(UTC)


def task_day_window(moment: datetime, tz: tzinfo) -> tuple[datetime, datetime]:
    """
    Window used to count a day's completed tasks.

    The window is [local start of day, moment), open-ended at moment rather
    than the full calendar day, so a bonus can be computed mid-day once the
    quota is met.

    Args:
        moment: End of the window (usually now)
        tz: Timezone defining the calendar day

    Returns:
        Tuple of (window_start_utc, window_end_utc)
    """
    end = ensure_aware(moment).astimezone(UTC)
    return start_of_day(end, tz), end


def end_of_previous_day(moment: datetime, tz: tzinfo) -> datetime:
    """
    Last instant of the local day before moment, as UTC.

    Passing the result to task_day_window() covers the whole previous day.
    """
    return start_of_day(moment, tz) - timedelta(microseconds=1)
