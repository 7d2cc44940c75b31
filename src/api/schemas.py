"""Pydantic schemas for API request/response validation."""

from pydantic import BaseModel, Field

from ..core.models import LogKind, Status


class RegisterRequest(BaseModel):
    """Actor details supplied by the identity provider."""

    id: str = Field(min_length=1)
    username: str = Field(min_length=1)
    avatar: str | None = None


class ActorResponse(BaseModel):
    """Actor information response."""

    id: str
    username: str
    avatar: str | None = None
    status: Status


class RegisterResponse(BaseModel):
    """Response for registration / login."""

    user: ActorResponse
    session_token: str
    expires_at: str


class LogEntryResponse(BaseModel):
    """Single attendance log entry."""

    type: LogKind
    timestamp: str


class StatusResponse(BaseModel):
    """Reconciled status of an actor."""

    current_status: Status
    attendance_log: list[LogEntryResponse]
    user: ActorResponse
    last_log_timestamp: str | None = None


class ActionResponse(BaseModel):
    """Response for stamp and clock-out."""

    message: str
    new_status: Status


class DailyTotal(BaseModel):
    date: str
    total_ms: int


class WeeklyTotal(BaseModel):
    week_start: str
    total_ms: int


class MonthlyTotal(BaseModel):
    month: str
    total_ms: int


class AnomalyResponse(BaseModel):
    """Log entry ignored during aggregation."""

    type: LogKind
    timestamp: str
    reason: str


class SummaryResponse(BaseModel):
    """Worked-time summary."""

    daily: list[DailyTotal]
    weekly: list[WeeklyTotal]
    monthly: list[MonthlyTotal]
    total: int
    open_since: str | None = None
    anomalies: list[AnomalyResponse] = []


class NotifyResponse(BaseModel):
    """Response for an on-demand report."""

    message: str
    worked_ms: int


class HealthResponse(BaseModel):
    """Response for health check."""

    status: str
    version: str
    database: str
    reset_hour: int | None = None
