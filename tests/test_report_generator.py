"""Tests for report generation."""

import csv
import io
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from src.core.aggregator import DurationAggregator, Summary
from src.core.models import AttendanceLogEntry, LogKind
from src.reporting.report_generator import ReportGenerator, format_duration

JST = timezone(timedelta(hours=9))
HOUR_MS = 60 * 60 * 1000


def _entry(kind: LogKind, day: int, hour: int, minute: int = 0) -> AttendanceLogEntry:
    return AttendanceLogEntry(kind, datetime(2026, 3, day, hour, minute, tzinfo=JST))


@pytest.fixture
def summary() -> Summary:
    """Two worked days in the same week and month."""
    log = [
        _entry(LogKind.WORK_START, 9, 9),
        _entry(LogKind.WORK_END, 9, 17),
        _entry(LogKind.WORK_START, 10, 9),
        _entry(LogKind.BREAK_START, 10, 12),
        _entry(LogKind.BREAK_END, 10, 12, 45),
        _entry(LogKind.WORK_END, 10, 18),
    ]
    return DurationAggregator(reset_hour=5).summarize(log)


@pytest.fixture
def report_gen() -> ReportGenerator:
    return ReportGenerator()


class TestFormatDuration:
    """Tests for format_duration."""

    def test_hours_and_minutes(self) -> None:
        assert format_duration(8 * HOUR_MS + 30 * 60 * 1000) == "8h 30m"

    def test_truncates_seconds(self) -> None:
        assert format_duration(59 * 1000) == "0h 0m"

    def test_negative_is_zero(self) -> None:
        assert format_duration(-5) == "0h 0m"


class TestDailyReport:
    """Tests for the daily report message."""

    def test_final_report(self, report_gen: ReportGenerator) -> None:
        """Test the clock-out report wording."""
        message = report_gen.daily_report("alice", 8 * HOUR_MS, final=True)
        assert "Automatic daily report" in message
        assert "**alice** has finished work." in message
        assert "**8h 0m**" in message

    def test_on_demand_report(self, report_gen: ReportGenerator) -> None:
        """Test the on-demand report wording."""
        message = report_gen.daily_report("alice", 90 * 60 * 1000)
        assert message.endswith("**alice** worked today: **1h 30m**")


class TestSummaryExports:
    """Tests for CSV and Markdown exports."""

    def test_csv_sections(self, report_gen: ReportGenerator, summary: Summary) -> None:
        """Test the CSV export holds every section and the total."""
        rows = list(csv.reader(io.StringIO(report_gen.summary_csv(summary))))

        assert rows[0] == ["Worked Time Summary"]
        assert ["Date", "Worked", "Milliseconds"] in rows
        assert ["2026-03-10", "8h 15m", str(int(8.25 * HOUR_MS))] in rows
        assert ["2026-03-09", "8h 0m", str(8 * HOUR_MS)] in rows
        assert ["Week Starting", "Worked", "Milliseconds"] in rows
        assert rows[-1] == ["Total", "16h 15m", str(int(16.25 * HOUR_MS))]

    def test_csv_newest_first(self, report_gen: ReportGenerator, summary: Summary) -> None:
        """Test daily rows keep the summary order."""
        rows = list(csv.reader(io.StringIO(report_gen.summary_csv(summary))))
        dates = [r[0] for r in rows if r and r[0].startswith("2026-03-")]
        assert dates == ["2026-03-10", "2026-03-09"]

    def test_markdown(self, report_gen: ReportGenerator, summary: Summary) -> None:
        """Test the Markdown export tables."""
        md = report_gen.summary_markdown(summary, title="Worked Time: alice")

        assert md.startswith("# Worked Time: alice")
        assert "- **Total:** 16h 15m" in md
        assert "| 2026-03 | 16h 15m |" in md
        assert "| 2026-03-09 | 16h 15m |" in md
        assert "| 2026-03-10 | 8h 15m |" in md
        assert "Open since" not in md

    def test_markdown_open_and_anomalies(self, report_gen: ReportGenerator) -> None:
        """Test open intervals and ignored entries are called out."""
        log = [
            _entry(LogKind.WORK_END, 10, 8),
            _entry(LogKind.WORK_START, 10, 9),
        ]
        summary = DurationAggregator(reset_hour=5).summarize(log)
        md = report_gen.summary_markdown(summary)

        assert "- **Open since:** 2026-03-10T09:00:00+09:00" in md
        assert "- **Ignored log entries:** 1" in md

    def test_save_report(self, report_gen: ReportGenerator, tmp_path: Path) -> None:
        """Test reports are written, creating parent directories."""
        target = tmp_path / "out" / "report.md"
        report_gen.save_report("# Report", target)
        assert target.read_text(encoding="utf-8") == "# Report"
