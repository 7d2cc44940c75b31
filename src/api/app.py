"""FastAPI application for the attendance tracker.

Provides REST endpoints for registration, stamping, clock-out, status,
worked-time summaries, on-demand reports and health checks.
"""

from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from ..core.exceptions import ActorNotFound, InvalidTransition, PersistenceFailure
from ..core.models import Actor
from ..database import init_database
from ..database.actor_db import ActorDatabase
from ..database.attendance_db import AttendanceDatabase
from ..notify import build_notifier
from ..reporting.report_generator import ReportGenerator
from ..service.attendance_service import AttendanceService
from ..service.session_store import SessionJanitor, SessionStore
from ..utils.config import get_settings, resolve_timezone
from ..utils.logger import setup_logger
from .schemas import (
    ActionResponse,
    ActorResponse,
    HealthResponse,
    LogEntryResponse,
    NotifyResponse,
    RegisterRequest,
    RegisterResponse,
    StatusResponse,
    SummaryResponse,
)

logger = setup_logger(__name__)

VERSION = "1.0.0"

_state: dict = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and clean up application components."""
    settings = get_settings()
    config = settings.load_config()

    db_path = config["database"]["path"]
    init_database(db_path)

    _state["actor_db"] = ActorDatabase(db_path)
    _state["attendance_db"] = AttendanceDatabase(db_path)
    _state["notifier"] = build_notifier(settings, config)
    _state["service"] = AttendanceService(
        _state["actor_db"],
        _state["attendance_db"],
        reset_hour=config["attendance"]["reset_hour"],
        tz=resolve_timezone(config),
        notifier=_state["notifier"],
    )
    _state["sessions"] = SessionStore(ttl=timedelta(minutes=config["sessions"]["ttl_minutes"]))
    _state["janitor"] = SessionJanitor(
        _state["sessions"],
        interval_minutes=config["sessions"]["purge_interval_minutes"],
    )
    _state["report_generator"] = ReportGenerator()
    _state["config"] = config

    _state["janitor"].start()
    logger.info("Application started (reset hour %d)", config["attendance"]["reset_hour"])
    try:
        yield
    finally:
        _state["janitor"].stop()
        _state["notifier"].close()
        logger.info("Application shutting down")


app = FastAPI(
    title="Attendance Tracker API",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ActorNotFound)
async def actor_not_found_handler(request: Request, exc: ActorNotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"message": "User not found"})


@app.exception_handler(InvalidTransition)
async def invalid_transition_handler(request: Request, exc: InvalidTransition) -> JSONResponse:
    return JSONResponse(status_code=400, content={"message": "Not clocked in yet."})


@app.exception_handler(PersistenceFailure)
async def persistence_failure_handler(request: Request, exc: PersistenceFailure) -> JSONResponse:
    logger.error("Persistence failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"message": "Database error"})


def _get_actor_id(request: Request) -> str:
    """Resolve the calling actor from a session token or an explicit id."""
    token = request.headers.get("x-session-token")
    if token:
        sessions: SessionStore = _state["sessions"]
        actor_id = sessions.resolve(token)
        if actor_id is None:
            raise HTTPException(status_code=401, detail="Session expired or unknown")
        return actor_id

    actor_id = request.headers.get("x-user-id") or request.query_params.get("userId")
    if not actor_id:
        raise HTTPException(status_code=400, detail="User ID is required")
    return actor_id


def _actor_response(actor: Actor) -> ActorResponse:
    return ActorResponse(
        id=actor.id,
        username=actor.username,
        avatar=actor.avatar,
        status=actor.status,
    )


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check API health and component status."""
    service: AttendanceService | None = _state.get("service")
    return HealthResponse(
        status="healthy",
        version=VERSION,
        database="connected" if "attendance_db" in _state else "unavailable",
        reset_hour=service.reset_hour if service else None,
    )


@app.post("/users", response_model=RegisterResponse)
def register(payload: RegisterRequest) -> RegisterResponse:
    """Register or refresh an actor and open a session."""
    actor_db: ActorDatabase = _state["actor_db"]
    actor = actor_db.upsert_actor(payload.id, payload.username, payload.avatar)

    sessions: SessionStore = _state["sessions"]
    session = sessions.issue(actor.id)

    return RegisterResponse(
        user=_actor_response(actor),
        session_token=session.token,
        expires_at=session.expires_at.isoformat(),
    )


@app.get("/auth/session/{token}", response_model=ActorResponse)
def resolve_session(token: str) -> ActorResponse:
    """Return the actor behind a session token."""
    sessions: SessionStore = _state["sessions"]
    actor_id = sessions.resolve(token)
    if actor_id is None:
        raise HTTPException(status_code=404, detail="Session expired or unknown")

    actor_db: ActorDatabase = _state["actor_db"]
    actor = actor_db.get_actor(actor_id)
    if actor is None:
        raise ActorNotFound(actor_id)
    return _actor_response(actor)


@app.get("/users")
def list_users():
    """List all registered actors."""
    actor_db: ActorDatabase = _state["actor_db"]
    return {"users": [_actor_response(a) for a in actor_db.list_actors()]}


@app.get("/status", response_model=StatusResponse)
def get_status(request: Request) -> StatusResponse:
    """Get the reconciled status and attendance log."""
    actor_id = _get_actor_id(request)
    service: AttendanceService = _state["service"]
    status, log = service.get_status(actor_id)

    actor = service.actor_db.get_actor(actor_id)
    if actor is None:
        raise ActorNotFound(actor_id)

    return StatusResponse(
        current_status=status,
        attendance_log=[
            LogEntryResponse(type=e.kind, timestamp=e.timestamp.isoformat()) for e in log
        ],
        user=_actor_response(actor),
        last_log_timestamp=log[-1].timestamp.isoformat() if log else None,
    )


@app.post("/stamp", response_model=ActionResponse)
def stamp(request: Request) -> ActionResponse:
    """Clock in, start a break or end a break."""
    actor_id = _get_actor_id(request)
    service: AttendanceService = _state["service"]
    result = service.stamp(actor_id)
    return ActionResponse(message=result.message, new_status=result.status)


@app.post("/clock_out", response_model=ActionResponse)
def clock_out(request: Request) -> ActionResponse:
    """End the working day."""
    actor_id = _get_actor_id(request)
    service: AttendanceService = _state["service"]
    result = service.clock_out(actor_id)
    return ActionResponse(message=result.message, new_status=result.status)


@app.get("/summary")
def get_summary(
    request: Request,
    include_open: bool = Query(False, description="Count work still in progress"),
    format: str = Query("json", description="Output format: json, csv, or markdown"),
):
    """Get daily, weekly and monthly worked totals."""
    actor_id = _get_actor_id(request)
    service: AttendanceService = _state["service"]
    summary = service.summarize(actor_id, include_open=include_open)

    report_gen: ReportGenerator = _state["report_generator"]
    if format == "csv":
        return PlainTextResponse(report_gen.summary_csv(summary), media_type="text/csv")
    elif format == "markdown":
        return PlainTextResponse(report_gen.summary_markdown(summary), media_type="text/markdown")
    return SummaryResponse(**summary.to_dict())


@app.post("/notify", response_model=NotifyResponse)
def notify(request: Request) -> NotifyResponse:
    """Send today's worked time, including work in progress, as a report."""
    actor_id = _get_actor_id(request)
    service: AttendanceService = _state["service"]
    worked_ms = service.today_worked_ms(actor_id)

    if not service.send_report(actor_id, worked_ms):
        raise HTTPException(status_code=502, detail="Failed to send notification")
    return NotifyResponse(message="Notification sent!", worked_ms=worked_ms)
