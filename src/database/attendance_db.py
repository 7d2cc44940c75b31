"""Attendance status and log persistence.

Reads and writes an actor's status together with its append-only
attendance log. Status and new entries are always committed in one
transaction so a failed write leaves no partial state behind.
"""

import sqlite3
from collections.abc import Iterable
from datetime import datetime

from ..core.exceptions import ActorNotFound, PersistenceFailure
from ..core.models import AttendanceLogEntry, LogKind, Status
from ..utils.logger import setup_logger

logger = setup_logger(__name__)


def epoch_ms(timestamp: datetime) -> int:
    return int(timestamp.timestamp() * 1000)


class AttendanceDatabase:
    """SQLite-backed store of attendance status and logs.

    Args:
        db_path: Path to the SQLite database file.
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with row factory.

        Returns:
            SQLite connection with Row factory.
        """
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def load(self, actor_id: str) -> tuple[Status, list[AttendanceLogEntry]]:
        """Read an actor's status and full log.

        Args:
            actor_id: ID of the actor.

        Returns:
            Tuple of (status, log) with the log sorted oldest first.

        Raises:
            ActorNotFound: If the actor is not registered.
            PersistenceFailure: If the read fails.
        """
        conn = self._get_connection()
        try:
            row = conn.execute("SELECT status FROM actors WHERE id = ?", (actor_id,)).fetchone()
            if row is None:
                raise ActorNotFound(actor_id)

            rows = conn.execute(
                """
                SELECT type, timestamp FROM attendance_log
                WHERE actor_id = ?
                ORDER BY epoch_ms, id
            """,
                (actor_id,),
            ).fetchall()
            log = [
                AttendanceLogEntry(LogKind(r["type"]), datetime.fromisoformat(r["timestamp"]))
                for r in rows
            ]
            return Status(row["status"]), log
        except sqlite3.Error as e:
            logger.error("Failed to load attendance for actor %s: %s", actor_id, e)
            raise PersistenceFailure(f"Could not read attendance for {actor_id}") from e
        finally:
            conn.close()

    def commit(
        self,
        actor_id: str,
        status: Status,
        appended: Iterable[AttendanceLogEntry] = (),
    ) -> None:
        """Persist a new status and append entries atomically.

        Args:
            actor_id: ID of the actor.
            status: Status after the operation.
            appended: Entries to add to the log.

        Raises:
            ActorNotFound: If the actor is not registered.
            PersistenceFailure: If the write fails; nothing is written.
        """
        entries = list(appended)
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                "UPDATE actors SET status = ? WHERE id = ?",
                (status.value, actor_id),
            )
            if cursor.rowcount == 0:
                conn.rollback()
                raise ActorNotFound(actor_id)

            conn.executemany(
                """
                INSERT INTO attendance_log (actor_id, type, timestamp, epoch_ms)
                VALUES (?, ?, ?, ?)
            """,
                [
                    (actor_id, e.kind.value, e.timestamp.isoformat(), epoch_ms(e.timestamp))
                    for e in entries
                ],
            )
            conn.commit()
            logger.debug(
                "Committed actor %s: status=%s, %d new entries",
                actor_id,
                status.value,
                len(entries),
            )
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Failed to commit attendance for actor %s: %s", actor_id, e)
            raise PersistenceFailure(f"Could not write attendance for {actor_id}") from e
        finally:
            conn.close()

    def entry_exists(self, actor_id: str, entry: AttendanceLogEntry) -> bool:
        """Check whether an identical entry is already logged."""
        conn = self._get_connection()
        try:
            row = conn.execute(
                """
                SELECT 1 FROM attendance_log
                WHERE actor_id = ? AND type = ? AND epoch_ms = ?
                LIMIT 1
            """,
                (actor_id, entry.kind.value, epoch_ms(entry.timestamp)),
            ).fetchone()
            return row is not None
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Could not read attendance for {actor_id}") from e
        finally:
            conn.close()
