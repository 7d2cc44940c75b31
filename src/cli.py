"""Command-line maintenance tools.

``import-json`` migrates legacy JSON state files into the database and
``report`` writes an actor's worked-time summary to a file.
"""

import argparse
import sys
from pathlib import Path

from .core.exceptions import AttendanceError
from .database import init_database
from .database.actor_db import ActorDatabase
from .database.attendance_db import AttendanceDatabase
from .database.json_import import import_state_file
from .reporting.report_generator import ReportGenerator
from .service.attendance_service import AttendanceService
from .utils.config import Settings, resolve_timezone
from .utils.logger import setup_logger

logger = setup_logger(__name__)


def _import_json(args: argparse.Namespace, config: dict) -> int:
    db_path = config["database"]["path"]
    init_database(db_path)
    actor_db = ActorDatabase(db_path)
    attendance_db = AttendanceDatabase(db_path)
    tz = resolve_timezone(config)

    for path in args.files:
        import_state_file(Path(path), actor_db, attendance_db, tz=tz)
    return 0


def _report(args: argparse.Namespace, config: dict) -> int:
    db_path = config["database"]["path"]
    service = AttendanceService(
        ActorDatabase(db_path),
        AttendanceDatabase(db_path),
        reset_hour=config["attendance"]["reset_hour"],
        tz=resolve_timezone(config),
    )
    try:
        summary = service.summarize(args.user, include_open=args.include_open)
    except AttendanceError as e:
        logger.error("Cannot build report: %s", e)
        return 1

    generator = ReportGenerator()
    if args.format == "csv":
        content = generator.summary_csv(summary)
    else:
        content = generator.summary_markdown(summary, title=f"Worked Time: {args.user}")
    generator.save_report(content, Path(args.output))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for the maintenance CLI."""
    parser = argparse.ArgumentParser(description="Attendance tracker maintenance")
    parser.add_argument("--config", type=str, default="configs/config.yaml")
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_parser = subparsers.add_parser("import-json", help="Import legacy JSON state files")
    import_parser.add_argument("files", nargs="+", help="JSON files to import")

    report_parser = subparsers.add_parser("report", help="Export a worked-time summary")
    report_parser.add_argument("--user", required=True, help="Actor id")
    report_parser.add_argument("--format", choices=["csv", "markdown"], default="markdown")
    report_parser.add_argument("--output", required=True, help="Output file path")
    report_parser.add_argument("--include-open", action="store_true")

    args = parser.parse_args(argv)
    config = Settings(config_path=Path(args.config)).load_config()

    if args.command == "import-json":
        return _import_json(args, config)
    return _report(args, config)


if __name__ == "__main__":
    sys.exit(main())  # pragma: no cover
