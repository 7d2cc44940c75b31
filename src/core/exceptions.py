"""Error kinds raised by the attendance engine and its store."""


class AttendanceError(Exception):
    """Base exception for attendance operations."""


class ActorNotFound(AttendanceError):
    """Raised when an actor id is unknown to the store."""

    def __init__(self, actor_id: str) -> None:
        super().__init__(f"Actor not found: {actor_id}")
        self.actor_id = actor_id


class InvalidTransition(AttendanceError):
    """Raised when an action is not allowed from the current status."""

    def __init__(self, status, action: str) -> None:
        super().__init__(f"Cannot {action} while {status.value}")
        self.status = status
        self.action = action


class PersistenceFailure(AttendanceError):
    """Raised when the store cannot read or write attendance data."""
