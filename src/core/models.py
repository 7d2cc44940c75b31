"""Attendance data model: statuses, log entries and transitions."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Status(str, Enum):
    """Current attendance status of an actor."""

    UNREGISTERED = "unregistered"
    WORKING = "working"
    ON_BREAK = "on_break"

    @property
    def is_open(self) -> bool:
        """Whether the actor is clocked in (working or on break)."""
        return self is not Status.UNREGISTERED


class LogKind(str, Enum):
    """Kind of an attendance log entry."""

    WORK_START = "work_start"
    WORK_END = "work_end"
    BREAK_START = "break_start"
    BREAK_END = "break_end"

    @property
    def opens(self) -> bool:
        """Whether this entry starts a worked interval."""
        return self in (LogKind.WORK_START, LogKind.BREAK_END)

    @property
    def closes(self) -> bool:
        """Whether this entry ends a worked interval."""
        return self in (LogKind.WORK_END, LogKind.BREAK_START)


@dataclass(frozen=True)
class AttendanceLogEntry:
    """Single append-only log entry."""

    kind: LogKind
    timestamp: datetime

    def to_dict(self) -> dict:
        return {"type": self.kind.value, "timestamp": self.timestamp.isoformat()}

    @classmethod
    def from_dict(cls, data: dict) -> "AttendanceLogEntry":
        """Build an entry from ``{"type": ..., "timestamp": ...}``.

        Timestamps ending in ``Z`` are accepted as UTC.
        """
        raw = data["timestamp"]
        if isinstance(raw, str):
            timestamp = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        else:
            timestamp = raw
        return cls(kind=LogKind(data["type"]), timestamp=timestamp)


@dataclass
class Actor:
    """Registered actor with display fields from the identity provider."""

    id: str
    username: str
    avatar: str | None = None
    status: Status = Status.UNREGISTERED


@dataclass(frozen=True)
class Transition:
    """Outcome of one state-machine step.

    Attributes:
        status: Status after the step.
        appended: Entries the step adds to the log, oldest first.
        message: Human-readable description of the step.
    """

    status: Status
    appended: tuple[AttendanceLogEntry, ...] = field(default_factory=tuple)
    message: str = ""

    @property
    def changed(self) -> bool:
        return bool(self.appended)
