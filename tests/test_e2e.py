"""End-to-end tests covering a working day across the logical-day reset."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from src.api.app import _state, app
from src.database import init_database
from src.database.actor_db import ActorDatabase
from src.database.attendance_db import AttendanceDatabase
from src.reporting.report_generator import ReportGenerator
from src.service.attendance_service import AttendanceService
from src.service.session_store import SessionStore

JST = timezone(timedelta(hours=9))
HOUR_MS = 60 * 60 * 1000


class Clock:
    """Settable clock used as the service's notion of now."""

    def __init__(self) -> None:
        self.now = datetime(2026, 3, 10, 9, 0, tzinfo=JST)

    def __call__(self) -> datetime:
        return self.now

    def set(self, day: int, hour: int, minute: int = 0) -> None:
        self.now = datetime(2026, 3, day, hour, minute, tzinfo=JST)


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def e2e_client(tmp_path, clock: Clock) -> TestClient:
    """Provide a test client whose service runs on a controlled clock."""
    db_path = str(tmp_path / "e2e.db")
    init_database(db_path)
    actor_db = ActorDatabase(db_path)
    attendance_db = AttendanceDatabase(db_path)

    service = AttendanceService(actor_db, attendance_db, reset_hour=5, tz=JST)
    service.now = clock

    _state["actor_db"] = actor_db
    _state["attendance_db"] = attendance_db
    _state["service"] = service
    _state["sessions"] = SessionStore()
    _state["report_generator"] = ReportGenerator()
    _state["config"] = {"attendance": {"reset_hour": 5}}

    return TestClient(app, raise_server_exceptions=False)


class TestWorkingDay:
    """Full register -> stamp -> clock out -> summary workflow."""

    def test_regular_day(self, e2e_client: TestClient, clock: Clock) -> None:
        """Test a day with one break is summarized without the break."""
        token = e2e_client.post("/users", json={"id": "1001", "username": "alice"}).json()[
            "session_token"
        ]
        headers = {"x-session-token": token}

        for hour, minute in [(9, 0), (12, 0), (13, 0)]:
            clock.set(10, hour, minute)
            assert e2e_client.post("/stamp", headers=headers).status_code == 200

        clock.set(10, 18)
        assert e2e_client.post("/clock_out", headers=headers).status_code == 200

        summary = e2e_client.get("/summary", headers=headers).json()
        assert summary["daily"] == [{"date": "2026-03-10", "total_ms": 8 * HOUR_MS}]
        assert summary["weekly"] == [{"week_start": "2026-03-09", "total_ms": 8 * HOUR_MS}]
        assert summary["monthly"] == [{"month": "2026-03", "total_ms": 8 * HOUR_MS}]
        assert summary["total"] == 8 * HOUR_MS
        assert summary["anomalies"] == []

    def test_overnight_shift(self, e2e_client: TestClient, clock: Clock) -> None:
        """Test work across the reset hour is split between logical days."""
        e2e_client.post("/users", json={"id": "1001", "username": "alice"})
        headers = {"x-user-id": "1001"}

        clock.set(10, 22)
        e2e_client.post("/stamp", headers=headers)

        clock.set(11, 7)
        status = e2e_client.get("/status", headers=headers).json()
        assert status["current_status"] == "working"
        assert status["last_log_timestamp"] == "2026-03-11T05:00:00+09:00"

        e2e_client.post("/clock_out", headers=headers)
        summary = e2e_client.get("/summary", headers=headers).json()
        totals = {row["date"]: row["total_ms"] for row in summary["daily"]}
        assert totals == {"2026-03-10": 7 * HOUR_MS, "2026-03-11": 2 * HOUR_MS}
        assert summary["total"] == 9 * HOUR_MS

    def test_notify_counts_open_work(self, e2e_client: TestClient, clock: Clock) -> None:
        """Test the on-demand report counts running work of today."""
        e2e_client.post("/users", json={"id": "1001", "username": "alice"})
        headers = {"x-user-id": "1001"}

        clock.set(10, 9)
        e2e_client.post("/stamp", headers=headers)
        clock.set(10, 11, 30)

        _state["service"].notifier = None
        response = e2e_client.post("/notify", headers=headers)
        assert response.status_code == 502

        summary = e2e_client.get("/summary?include_open=true", headers=headers).json()
        assert summary["daily"][0]["total_ms"] == int(2.5 * HOUR_MS)
