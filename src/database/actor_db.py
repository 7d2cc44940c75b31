"""Actor registry backed by SQLite.

Stores the identity and display fields handed over by the identity
provider together with each actor's current attendance status.
"""

import sqlite3
from datetime import datetime
from pathlib import Path

from ..core.exceptions import PersistenceFailure
from ..core.models import Actor, Status
from ..utils.logger import setup_logger

logger = setup_logger(__name__)


def row_to_actor(row: sqlite3.Row) -> Actor:
    return Actor(
        id=row["id"],
        username=row["username"],
        avatar=row["avatar"],
        status=Status(row["status"]),
    )


class ActorDatabase:
    """SQLite-backed actor registry.

    Args:
        db_path: Path to the SQLite database file.
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._ensure_db_exists()

    def _ensure_db_exists(self) -> None:
        """Initialize database if it doesn't exist."""
        from . import init_database

        if not Path(self.db_path).exists():
            init_database(self.db_path)

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with row factory enabled.

        Returns:
            SQLite connection with Row factory.
        """
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def upsert_actor(self, actor_id: str, username: str, avatar: str | None = None) -> Actor:
        """Register an actor or refresh its display fields.

        New actors start out unregistered. The status of an existing actor
        is left untouched.

        Args:
            actor_id: Identity provider user id.
            username: Display name.
            avatar: Avatar hash or URL.

        Returns:
            The stored actor.

        Raises:
            PersistenceFailure: If the write fails.
        """
        now = datetime.now().isoformat()
        conn = self._get_connection()
        try:
            conn.execute(
                """
                INSERT INTO actors (id, username, avatar, status, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    username = excluded.username,
                    avatar = excluded.avatar,
                    updated_at = excluded.updated_at
            """,
                (actor_id, username, avatar, Status.UNREGISTERED.value, now, now),
            )
            conn.commit()
            row = conn.execute("SELECT * FROM actors WHERE id = ?", (actor_id,)).fetchone()
            logger.info("Upserted actor '%s' (%s)", username, actor_id)
            return row_to_actor(row)
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Failed to upsert actor %s: %s", actor_id, e)
            raise PersistenceFailure(f"Could not save actor {actor_id}") from e
        finally:
            conn.close()

    def get_actor(self, actor_id: str) -> Actor | None:
        """Get actor by ID.

        Returns:
            Actor or None if unknown.
        """
        conn = self._get_connection()
        try:
            row = conn.execute("SELECT * FROM actors WHERE id = ?", (actor_id,)).fetchone()
            return row_to_actor(row) if row else None
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Could not read actor {actor_id}") from e
        finally:
            conn.close()

    def list_actors(self) -> list[Actor]:
        conn = self._get_connection()
        try:
            rows = conn.execute("SELECT * FROM actors ORDER BY username").fetchall()
            return [row_to_actor(row) for row in rows]
        except sqlite3.Error as e:
            raise PersistenceFailure("Could not list actors") from e
        finally:
            conn.close()
