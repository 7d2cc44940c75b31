"""Import of legacy single-file JSON attendance state.

Older deployments kept one actor's state in a JSON file shaped like::

    {
        "discordUser": {"id": "...", "username": "...", "avatar": "..."},
        "currentUserStatus": "working",
        "attendanceLog": [{"type": "work_start", "timestamp": "..."}]
    }

Files without a user cannot be attributed to an actor and are skipped.
Entries already present for the actor are not imported twice. Timestamps
without an offset are read as wall time in the configured zone.
"""

import json
from datetime import datetime, tzinfo
from pathlib import Path

from ..core.models import AttendanceLogEntry, Status
from ..utils.logger import setup_logger
from .actor_db import ActorDatabase
from .attendance_db import AttendanceDatabase

logger = setup_logger(__name__)


def _attach_zone(timestamp: datetime, tz: tzinfo | None) -> datetime:
    if timestamp.tzinfo is not None:
        return timestamp
    if tz is None:
        return timestamp.astimezone()
    return timestamp.replace(tzinfo=tz)


def import_state_file(
    path: Path,
    actor_db: ActorDatabase,
    attendance_db: AttendanceDatabase,
    tz: tzinfo | None = None,
) -> int | None:
    """Import one legacy state file.

    Args:
        path: JSON file to read.
        actor_db: Actor registry to upsert the user into.
        attendance_db: Store receiving status and log entries.
        tz: Zone for timestamps without an offset; the host zone when None.

    Returns:
        Number of newly imported entries, or None if the file was skipped.
    """
    if not path.exists():
        logger.info("Skipping %s: file not found", path)
        return None

    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    user = data.get("discordUser")
    if not user:
        logger.info("Skipping %s: no user recorded, cannot attribute entries", path)
        return None

    actor = actor_db.upsert_actor(user["id"], user["username"], user.get("avatar"))
    status = Status(data.get("currentUserStatus") or Status.UNREGISTERED.value)

    new_entries: list[AttendanceLogEntry] = []
    seen: set[AttendanceLogEntry] = set()
    for raw in data.get("attendanceLog") or []:
        entry = AttendanceLogEntry.from_dict(raw)
        entry = AttendanceLogEntry(entry.kind, _attach_zone(entry.timestamp, tz))
        if entry in seen or attendance_db.entry_exists(actor.id, entry):
            continue
        seen.add(entry)
        new_entries.append(entry)

    new_entries.sort(key=lambda e: e.timestamp)
    attendance_db.commit(actor.id, status, new_entries)
    logger.info("Imported %d new entries for %s from %s", len(new_entries), actor.username, path)
    return len(new_entries)
