"""Attendance state machine with logical-day rollover reconciliation.

The machine is pure: it reads a status and a log and returns a
:class:`Transition` describing the new status and the entries to append.
Persisting the transition is the caller's job.
"""

from collections.abc import Sequence
from datetime import datetime
from enum import Enum

from ..utils.logger import setup_logger
from .exceptions import InvalidTransition
from .logical_day import day_boundary, logical_day, validate_reset_hour
from .models import AttendanceLogEntry, LogKind, Status, Transition

logger = setup_logger(__name__)


class Action(str, Enum):
    """Actions an actor can trigger."""

    STATUS = "status"
    STAMP = "stamp"
    CLOCK_OUT = "clock_out"


# current status -> (entry emitted, next status, message)
STAMP_TRANSITIONS: dict[Status, tuple[LogKind, Status, str]] = {
    Status.UNREGISTERED: (LogKind.WORK_START, Status.WORKING, "Clocked in."),
    Status.WORKING: (LogKind.BREAK_START, Status.ON_BREAK, "Break started."),
    Status.ON_BREAK: (LogKind.BREAK_END, Status.WORKING, "Break ended."),
}

CLOCK_OUT_MESSAGE = "Clocked out."


class AttendanceStateMachine:
    """Stamp / clock-out lifecycle of a single actor.

    Args:
        reset_hour: Hour (0-23) at which a new logical day begins.
    """

    def __init__(self, reset_hour: int = 5) -> None:
        self.reset_hour = validate_reset_hour(reset_hour)

    def reconcile(
        self,
        status: Status,
        log: Sequence[AttendanceLogEntry],
        now: datetime,
        actor_id: str | None = None,
    ) -> Transition:
        """Bring a stale status forward to the logical day of ``now``.

        When the last entry lies on an earlier logical day and the actor
        was still clocked in, a single ``WORK_START`` is synthesised at the
        reset boundary of today's logical day, however many days passed.
        A clocked-out actor simply stays unregistered.

        Args:
            status: Persisted status.
            log: Attendance log of the actor.
            now: Current instant.
            actor_id: Used for logging only.

        Returns:
            Transition with at most one appended entry.
        """
        if not log:
            return Transition(status=status)

        last = max(log, key=lambda entry: entry.timestamp)
        last_day = logical_day(last.timestamp, self.reset_hour)
        today = logical_day(now, self.reset_hour)

        if last_day == today:
            return Transition(status=status)
        if last_day > today:
            logger.warning(
                "Actor %s: last entry %s is later than now %s, skipping rollover",
                actor_id,
                last.timestamp.isoformat(),
                now.isoformat(),
            )
            return Transition(status=status)

        if status.is_open:
            anchor = day_boundary(today, self.reset_hour, now.tzinfo)
            logger.info(
                "Actor %s: new logical day %s, work continues from %s",
                actor_id,
                today.isoformat(),
                anchor.isoformat(),
            )
            return Transition(
                status=Status.WORKING,
                appended=(AttendanceLogEntry(LogKind.WORK_START, anchor),),
                message="New day started while clocked in.",
            )

        logger.info("Actor %s: new logical day %s, status reset", actor_id, today.isoformat())
        return Transition(status=Status.UNREGISTERED)

    def stamp(self, status: Status, now: datetime) -> Transition:
        """Advance the stamp cycle: clock in, start break, end break."""
        kind, next_status, message = STAMP_TRANSITIONS[status]
        return Transition(
            status=next_status,
            appended=(AttendanceLogEntry(kind, now),),
            message=message,
        )

    def clock_out(self, status: Status, now: datetime) -> Transition:
        """End the working day.

        Raises:
            InvalidTransition: If the actor is not clocked in.
        """
        if not status.is_open:
            raise InvalidTransition(status, Action.CLOCK_OUT.value)
        return Transition(
            status=Status.UNREGISTERED,
            appended=(AttendanceLogEntry(LogKind.WORK_END, now),),
            message=CLOCK_OUT_MESSAGE,
        )

    def apply(
        self,
        action: Action,
        status: Status,
        log: Sequence[AttendanceLogEntry],
        now: datetime,
        actor_id: str | None = None,
    ) -> Transition:
        """Reconcile, then perform ``action``.

        Returns:
            Combined transition whose ``appended`` holds the reconciliation
            entry (if any) followed by the action's entry.

        Raises:
            InvalidTransition: If the action is not allowed.
        """
        reconciled = self.reconcile(status, log, now, actor_id=actor_id)
        if action is Action.STATUS:
            return reconciled

        if action is Action.STAMP:
            step = self.stamp(reconciled.status, now)
        else:
            step = self.clock_out(reconciled.status, now)

        return Transition(
            status=step.status,
            appended=reconciled.appended + step.appended,
            message=step.message,
        )
