"""Worked-duration aggregation over an attendance log.

Replays an ascending log into worked intervals, credits each interval to
the logical day it started on, and rolls the per-day totals up into
weekly and monthly buckets.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from ..utils.logger import setup_logger
from .logical_day import (
    day_boundary,
    day_key,
    logical_day,
    month_key,
    validate_reset_hour,
    week_start,
)
from .models import AttendanceLogEntry, LogKind

logger = setup_logger(__name__)

ONE_MS = timedelta(milliseconds=1)


def to_ms(delta: timedelta) -> int:
    return delta // ONE_MS


@dataclass(frozen=True)
class Anomaly:
    """An entry ignored while replaying a log."""

    kind: LogKind
    timestamp: datetime
    reason: str

    def to_dict(self) -> dict:
        return {
            "type": self.kind.value,
            "timestamp": self.timestamp.isoformat(),
            "reason": self.reason,
        }


@dataclass
class Replay:
    """Result of a single pass over a log.

    Attributes:
        daily: Closed worked milliseconds per logical day.
        open_start: Start of the interval still open at the end, if any.
        anomalies: Entries ignored because they did not fit the lifecycle.
    """

    daily: dict[date, int] = field(default_factory=dict)
    open_start: datetime | None = None
    anomalies: list[Anomaly] = field(default_factory=list)


@dataclass
class Summary:
    """Daily, weekly and monthly worked totals in milliseconds."""

    daily: list[dict]
    weekly: list[dict]
    monthly: list[dict]
    total_ms: int
    open_since: datetime | None = None
    anomalies: list[Anomaly] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "daily": self.daily,
            "weekly": self.weekly,
            "monthly": self.monthly,
            "total": self.total_ms,
            "open_since": self.open_since.isoformat() if self.open_since else None,
            "anomalies": [a.to_dict() for a in self.anomalies],
        }


class DurationAggregator:
    """Aggregate attendance logs into worked-time totals.

    Args:
        reset_hour: Hour (0-23) at which a new logical day begins.
    """

    def __init__(self, reset_hour: int = 5) -> None:
        self.reset_hour = validate_reset_hour(reset_hour)

    def replay(self, entries: Iterable[AttendanceLogEntry]) -> Replay:
        """Pair entries into intervals and credit them to their start day.

        Entries must be sorted by timestamp, oldest first. A closing entry
        without an open interval, or a second opening entry on the same
        logical day, is ignored and reported as an anomaly. An opening entry
        on a later logical day while an interval is still open is the
        rollover anchor written by reconciliation: it closes the running
        interval and starts a new one.

        Args:
            entries: Ascending attendance log.

        Returns:
            Replay with per-day totals, the open start and anomalies.
        """
        result = Replay()
        open_start: datetime | None = None
        previous: LogKind | None = None

        for entry in entries:
            entry_day = logical_day(entry.timestamp, self.reset_hour)
            result.daily.setdefault(entry_day, 0)

            if entry.kind.opens:
                if open_start is None:
                    open_start = entry.timestamp
                elif entry_day > logical_day(open_start, self.reset_hour):
                    self._credit(result, open_start, entry.timestamp)
                    open_start = entry.timestamp
                else:
                    self._flag(result, entry, "interval already open")
            elif open_start is not None:
                self._credit(result, open_start, entry.timestamp)
                open_start = None
            elif not (entry.kind is LogKind.WORK_END and previous is LogKind.BREAK_START):
                self._flag(result, entry, "no open interval to close")

            previous = entry.kind

        result.open_start = open_start
        return result

    def daily_totals(self, entries: Iterable[AttendanceLogEntry]) -> dict[str, int]:
        """Closed worked milliseconds keyed by ``YYYY-MM-DD``."""
        replay = self.replay(entries)
        return {day_key(day): ms for day, ms in replay.daily.items()}

    def summarize(
        self,
        entries: Iterable[AttendanceLogEntry],
        now: datetime | None = None,
    ) -> Summary:
        """Build daily, weekly and monthly totals.

        Only closed intervals count unless ``now`` is given, in which case
        an interval still open is credited up to ``now`` on the current
        logical day, starting no earlier than that day's reset boundary.

        Args:
            entries: Ascending attendance log.
            now: Optional instant for the "as of now" view.

        Returns:
            Summary with lists sorted newest first.
        """
        replay = self.replay(entries)
        daily = dict(replay.daily)

        if now is not None and replay.open_start is not None:
            today = logical_day(now, self.reset_hour)
            start = max(replay.open_start, day_boundary(today, self.reset_hour, now.tzinfo))
            daily[today] = daily.get(today, 0) + max(0, to_ms(now - start))

        weekly: dict[date, int] = {}
        monthly: dict[str, int] = {}
        for day, ms in daily.items():
            monday = week_start(day)
            weekly[monday] = weekly.get(monday, 0) + ms
            month = month_key(day)
            monthly[month] = monthly.get(month, 0) + ms

        return Summary(
            daily=[
                {"date": day_key(day), "total_ms": ms}
                for day, ms in sorted(daily.items(), reverse=True)
            ],
            weekly=[
                {"week_start": day_key(monday), "total_ms": ms}
                for monday, ms in sorted(weekly.items(), reverse=True)
            ],
            monthly=[
                {"month": month, "total_ms": ms}
                for month, ms in sorted(monthly.items(), reverse=True)
            ],
            total_ms=sum(daily.values()),
            open_since=replay.open_start,
            anomalies=replay.anomalies,
        )

    def worked_on(
        self,
        entries: Iterable[AttendanceLogEntry],
        day: date,
        now: datetime | None = None,
    ) -> int:
        """Worked milliseconds credited to one logical day."""
        summary = self.summarize(entries, now=now)
        key = day_key(day)
        return next((row["total_ms"] for row in summary.daily if row["date"] == key), 0)

    def _credit(self, result: Replay, start: datetime, end: datetime) -> None:
        start_day = logical_day(start, self.reset_hour)
        result.daily[start_day] = result.daily.get(start_day, 0) + to_ms(end - start)

    @staticmethod
    def _flag(result: Replay, entry: AttendanceLogEntry, reason: str) -> None:
        logger.warning(
            "Ignoring %s at %s: %s", entry.kind.value, entry.timestamp.isoformat(), reason
        )
        result.anomalies.append(Anomaly(entry.kind, entry.timestamp, reason))
