"""Mapping of wall-clock instants onto logical days.

A logical day starts at ``reset_hour`` o'clock instead of midnight, so an
instant at 02:00 with a reset hour of 5 still belongs to the previous
calendar date.
"""

from datetime import date, datetime, time, timedelta, tzinfo

HOURS_PER_DAY = 24


def validate_reset_hour(reset_hour: int) -> int:
    """Check that a reset hour is a whole hour of the day.

    Args:
        reset_hour: Candidate value.

    Returns:
        The value unchanged.

    Raises:
        ValueError: If the value is not an integer in 0-23.
    """
    if isinstance(reset_hour, bool) or not isinstance(reset_hour, int):
        raise ValueError(f"reset_hour must be an integer, got {reset_hour!r}")
    if not 0 <= reset_hour < HOURS_PER_DAY:
        raise ValueError(f"reset_hour must be between 0 and 23, got {reset_hour}")
    return reset_hour


def logical_day(instant: datetime, reset_hour: int) -> date:
    """Return the logical day an instant belongs to.

    The instant's own wall clock is used; callers normalise instants into
    the zone the day boundary is defined in.

    Args:
        instant: Point in time.
        reset_hour: Hour (0-23) at which a new logical day begins.

    Returns:
        Calendar date of the logical day.
    """
    if instant.hour < reset_hour:
        return instant.date() - timedelta(days=1)
    return instant.date()


def same_logical_day(a: datetime, b: datetime, reset_hour: int) -> bool:
    return logical_day(a, reset_hour) == logical_day(b, reset_hour)


def day_boundary(day: date, reset_hour: int, tz: tzinfo | None = None) -> datetime:
    """Return the instant at which the logical day ``day`` begins."""
    return datetime.combine(day, time(hour=reset_hour), tzinfo=tz)


def day_key(day: date) -> str:
    return day.isoformat()


def week_start(day: date) -> date:
    """Monday on or before ``day``."""
    return day - timedelta(days=day.weekday())


def month_key(day: date) -> str:
    return day.strftime("%Y-%m")
