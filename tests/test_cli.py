"""Tests for the maintenance CLI."""

import json
from pathlib import Path

import pytest
import yaml

from src.cli import main
from src.database.attendance_db import AttendanceDatabase


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Config pointing at a temporary database in Tokyo time."""
    config = {
        "attendance": {"reset_hour": 5, "timezone": "Asia/Tokyo"},
        "database": {"path": str(tmp_path / "kintai.db")},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config), encoding="utf-8")
    return path


@pytest.fixture
def state_file(tmp_path: Path) -> Path:
    data = {
        "discordUser": {"id": "1001", "username": "alice"},
        "currentUserStatus": "unregistered",
        "attendanceLog": [
            {"type": "work_start", "timestamp": "2026-03-10T00:00:00Z"},
            {"type": "work_end", "timestamp": "2026-03-10T08:00:00Z"},
        ],
    }
    path = tmp_path / "state.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestCli:
    """Tests for CLI subcommands."""

    def test_import_json(self, config_file: Path, state_file: Path, tmp_path: Path) -> None:
        """Test legacy files are imported into the configured database."""
        assert main(["--config", str(config_file), "import-json", str(state_file)]) == 0

        _, log = AttendanceDatabase(str(tmp_path / "kintai.db")).load("1001")
        assert len(log) == 2

    def test_report_markdown(self, config_file: Path, state_file: Path, tmp_path: Path) -> None:
        """Test a Markdown summary is written for an imported actor."""
        main(["--config", str(config_file), "import-json", str(state_file)])
        output = tmp_path / "reports" / "alice.md"

        code = main(
            ["--config", str(config_file), "report", "--user", "1001", "--output", str(output)]
        )

        assert code == 0
        content = output.read_text(encoding="utf-8")
        assert content.startswith("# Worked Time: 1001")
        assert "| 2026-03-10 | 8h 0m |" in content

    def test_report_csv(self, config_file: Path, state_file: Path, tmp_path: Path) -> None:
        main(["--config", str(config_file), "import-json", str(state_file)])
        output = tmp_path / "alice.csv"

        main(
            [
                "--config",
                str(config_file),
                "report",
                "--user",
                "1001",
                "--format",
                "csv",
                "--output",
                str(output),
            ]
        )

        assert "Total,8h 0m,28800000" in output.read_text(encoding="utf-8")

    def test_report_unknown_user(self, config_file: Path, state_file: Path, tmp_path: Path) -> None:
        """Test reporting on an unknown actor fails cleanly."""
        main(["--config", str(config_file), "import-json", str(state_file)])
        output = tmp_path / "missing.md"

        code = main(
            ["--config", str(config_file), "report", "--user", "nobody", "--output", str(output)]
        )

        assert code == 1
        assert not output.exists()

    def test_requires_command(self) -> None:
        with pytest.raises(SystemExit):
            main([])
