"""Attendance operations exposed to the host application.

Each operation runs as one read-reconcile-write cycle under a per-actor
lock: load status and log, let the state machine compute the transition,
then commit status and new entries together.
"""

import threading
import weakref
from dataclasses import dataclass
from datetime import datetime, tzinfo

from ..core.aggregator import DurationAggregator, Summary
from ..core.exceptions import ActorNotFound
from ..core.logical_day import logical_day
from ..core.models import AttendanceLogEntry, Status
from ..core.state_machine import Action, AttendanceStateMachine
from ..database.actor_db import ActorDatabase
from ..database.attendance_db import AttendanceDatabase
from ..reporting.report_generator import ReportGenerator
from ..utils.logger import setup_logger

logger = setup_logger(__name__)


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a stamp or clock-out."""

    message: str
    status: Status


class AttendanceService:
    """Serialised attendance operations for many actors.

    Args:
        actor_db: Actor registry.
        attendance_db: Status and log store.
        reset_hour: Hour (0-23) at which a new logical day begins.
        tz: Zone in which logical days are evaluated.
        notifier: Optional object with ``send(message) -> bool`` called
            after a clock-out.
    """

    def __init__(
        self,
        actor_db: ActorDatabase,
        attendance_db: AttendanceDatabase,
        reset_hour: int = 5,
        tz: tzinfo | None = None,
        notifier=None,
    ) -> None:
        self.actor_db = actor_db
        self.attendance_db = attendance_db
        self.tz = tz
        self.notifier = notifier
        self.machine = AttendanceStateMachine(reset_hour)
        self.aggregator = DurationAggregator(reset_hour)
        self.reports = ReportGenerator()
        # Entries vanish once no operation holds the actor's lock.
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._locks_guard = threading.Lock()

    @property
    def reset_hour(self) -> int:
        return self.machine.reset_hour

    def now(self) -> datetime:
        if self.tz is None:
            return datetime.now().astimezone()
        return datetime.now(self.tz)

    def _lock_for(self, actor_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(actor_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[actor_id] = lock
            return lock

    def _localize(self, instant: datetime | None) -> datetime:
        """Express an instant in the service zone.

        Naive instants are read as wall time in that zone. Without a zone
        the host's local offset at that instant is used.
        """
        if instant is None:
            return self.now()
        if self.tz is None:
            return instant.astimezone()
        if instant.tzinfo is None:
            return instant.replace(tzinfo=self.tz)
        return instant.astimezone(self.tz)

    def _localize_log(self, log: list[AttendanceLogEntry]) -> list[AttendanceLogEntry]:
        localized = [AttendanceLogEntry(e.kind, self._localize(e.timestamp)) for e in log]
        return sorted(localized, key=lambda e: e.timestamp)

    def _run(
        self, actor_id: str, action: Action, now: datetime | None
    ) -> tuple[str, Status, list[AttendanceLogEntry]]:
        now = self._localize(now)
        with self._lock_for(actor_id):
            status, log = self.attendance_db.load(actor_id)
            log = self._localize_log(log)
            transition = self.machine.apply(action, status, log, now, actor_id=actor_id)
            if transition.changed or transition.status is not status:
                self.attendance_db.commit(actor_id, transition.status, transition.appended)
            return transition.message, transition.status, log + list(transition.appended)

    def get_status(
        self, actor_id: str, now: datetime | None = None
    ) -> tuple[Status, list[AttendanceLogEntry]]:
        """Return the reconciled status and log of an actor.

        Raises:
            ActorNotFound: If the actor is not registered.
            PersistenceFailure: If the store fails.
        """
        _, status, log = self._run(actor_id, Action.STATUS, now)
        return status, log

    def stamp(self, actor_id: str, now: datetime | None = None) -> ActionResult:
        """Clock in, start a break or end a break depending on the status.

        Raises:
            ActorNotFound: If the actor is not registered.
            PersistenceFailure: If the store fails.
        """
        message, status, _ = self._run(actor_id, Action.STAMP, now)
        logger.info("Actor %s stamped: %s", actor_id, status.value)
        return ActionResult(message=message, status=status)

    def clock_out(self, actor_id: str, now: datetime | None = None) -> ActionResult:
        """End the working day and send the daily report.

        Raises:
            InvalidTransition: If the actor is not clocked in.
            ActorNotFound: If the actor is not registered.
            PersistenceFailure: If the store fails.
        """
        now = self._localize(now)
        message, status, log = self._run(actor_id, Action.CLOCK_OUT, now)
        logger.info("Actor %s clocked out", actor_id)

        if self.notifier is not None:
            try:
                worked = self.aggregator.worked_on(log, logical_day(now, self.reset_hour))
                self.send_report(actor_id, worked, final=True)
            except Exception:
                logger.exception("Daily report for actor %s failed after clock-out", actor_id)
        return ActionResult(message=message, status=status)

    def summarize(
        self,
        actor_id: str,
        now: datetime | None = None,
        include_open: bool = False,
    ) -> Summary:
        """Aggregate an actor's log into daily, weekly and monthly totals.

        Args:
            actor_id: ID of the actor.
            now: Current instant.
            include_open: Also count the interval still running up to ``now``.
        """
        now = self._localize(now)
        _, _, log = self._run(actor_id, Action.STATUS, now)
        return self.aggregator.summarize(log, now=now if include_open else None)

    def today_worked_ms(self, actor_id: str, now: datetime | None = None) -> int:
        """Worked milliseconds on the current logical day, including open work."""
        now = self._localize(now)
        _, _, log = self._run(actor_id, Action.STATUS, now)
        return self.aggregator.worked_on(log, logical_day(now, self.reset_hour), now=now)

    def send_report(self, actor_id: str, worked_ms: int, final: bool = False) -> bool:
        """Deliver the daily report through the notifier.

        Returns:
            Whether the notifier accepted the report.
        """
        actor = self.actor_db.get_actor(actor_id)
        if actor is None:
            raise ActorNotFound(actor_id)
        if self.notifier is None:
            logger.warning("No notifier configured, report for %s not sent", actor_id)
            return False
        message = self.reports.daily_report(actor.username, worked_ms, final=final)
        delivered = self.notifier.send(message)
        if not delivered:
            logger.error("Daily report for actor %s was not delivered", actor_id)
        return delivered
