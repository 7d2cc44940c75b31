"""Logical-day attendance engine.

Pure logic over a status and an append-only log: the logical-day mapper,
the stamp / clock-out state machine and the duration aggregator.
"""

from .aggregator import Anomaly, DurationAggregator, Summary
from .exceptions import ActorNotFound, AttendanceError, InvalidTransition, PersistenceFailure
from .logical_day import logical_day
from .models import Actor, AttendanceLogEntry, LogKind, Status, Transition
from .state_machine import Action, AttendanceStateMachine

__all__ = [
    "Action",
    "Actor",
    "ActorNotFound",
    "Anomaly",
    "AttendanceError",
    "AttendanceLogEntry",
    "AttendanceStateMachine",
    "DurationAggregator",
    "InvalidTransition",
    "LogKind",
    "PersistenceFailure",
    "Status",
    "Summary",
    "Transition",
    "logical_day",
]
