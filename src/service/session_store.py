"""Time-bounded login sessions.

Sessions map an opaque token to an actor id for a fixed lifetime. The
store never expires entries on its own timer; :class:`SessionJanitor`
runs :meth:`SessionStore.purge_expired` from an APScheduler job.
"""

import secrets
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..utils.logger import setup_logger

logger = setup_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Session:
    token: str
    actor_id: str
    expires_at: datetime


class SessionStore:
    """Thread-safe token -> actor mapping with expiry.

    Args:
        ttl: Lifetime of a session.
        clock: Source of the current time.
    """

    def __init__(
        self,
        ttl: timedelta = timedelta(minutes=60),
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def issue(self, actor_id: str) -> Session:
        """Create a new session for an actor."""
        session = Session(
            token=secrets.token_urlsafe(32),
            actor_id=actor_id,
            expires_at=self._clock() + self.ttl,
        )
        with self._lock:
            self._sessions[session.token] = session
        logger.info("Session issued for actor %s", actor_id)
        return session

    def resolve(self, token: str) -> str | None:
        """Return the actor id of a live session, or None."""
        with self._lock:
            session = self._sessions.get(token)
        if session is None or session.expires_at <= self._clock():
            return None
        return session.actor_id

    def revoke(self, token: str) -> bool:
        with self._lock:
            return self._sessions.pop(token, None) is not None

    def purge_expired(self) -> int:
        """Drop expired sessions.

        Returns:
            Number of sessions removed.
        """
        now = self._clock()
        with self._lock:
            expired = [t for t, s in self._sessions.items() if s.expires_at <= now]
            for token in expired:
                del self._sessions[token]
        if expired:
            logger.info("Purged %d expired sessions", len(expired))
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


class SessionJanitor:
    """Periodic session expiry driven by APScheduler."""

    def __init__(self, store: SessionStore, interval_minutes: int) -> None:
        self._interval = interval_minutes
        self._scheduler = BackgroundScheduler()
        self._scheduler.add_job(
            store.purge_expired,
            trigger=IntervalTrigger(minutes=self._interval),
            id="session_purge",
            replace_existing=True,
        )

    def start(self) -> None:
        self._scheduler.start()

    def stop(self) -> None:
        self._scheduler.shutdown(wait=False)
