"""Worked-time report generation in text, CSV and Markdown formats.

Turns aggregated summaries into the daily report posted after clock-out
and into exportable CSV and Markdown tables.
"""

import csv
import io
from pathlib import Path

from ..core.aggregator import Summary
from ..utils.logger import setup_logger

logger = setup_logger(__name__)

MS_PER_MINUTE = 60 * 1000
MS_PER_HOUR = 60 * MS_PER_MINUTE


def format_duration(ms: int) -> str:
    """Format milliseconds as ``"<hours>h <minutes>m"``.

    Args:
        ms: Duration in milliseconds.

    Returns:
        Human-readable duration, minutes truncated.
    """
    hours, remainder = divmod(max(ms, 0), MS_PER_HOUR)
    return f"{hours}h {remainder // MS_PER_MINUTE}m"


class ReportGenerator:
    """Generate worked-time reports."""

    def daily_report(self, username: str, worked_ms: int, final: bool = False) -> str:
        """Build the daily report message.

        Args:
            username: Display name of the actor.
            worked_ms: Worked milliseconds for the current logical day.
            final: True when sent on clock-out.

        Returns:
            Message text.
        """
        duration = format_duration(worked_ms)
        if final:
            return (
                "📊 **Automatic daily report**\n"
                f"**{username}** has finished work.\n"
                f"Total worked today: **{duration}**"
            )
        return f"📊 **Daily report**\n**{username}** worked today: **{duration}**"

    def summary_csv(self, summary: Summary) -> str:
        """Generate a CSV export of a summary.

        Args:
            summary: Aggregated summary.

        Returns:
            CSV-formatted string with daily, weekly and monthly sections.
        """
        output = io.StringIO()
        writer = csv.writer(output)

        writer.writerow(["Worked Time Summary"])
        writer.writerow([])
        writer.writerow(["Date", "Worked", "Milliseconds"])
        for row in summary.daily:
            writer.writerow([row["date"], format_duration(row["total_ms"]), row["total_ms"]])

        writer.writerow([])
        writer.writerow(["Week Starting", "Worked", "Milliseconds"])
        for row in summary.weekly:
            writer.writerow([row["week_start"], format_duration(row["total_ms"]), row["total_ms"]])

        writer.writerow([])
        writer.writerow(["Month", "Worked", "Milliseconds"])
        for row in summary.monthly:
            writer.writerow([row["month"], format_duration(row["total_ms"]), row["total_ms"]])

        writer.writerow([])
        writer.writerow(["Total", format_duration(summary.total_ms), summary.total_ms])

        return output.getvalue()

    def summary_markdown(self, summary: Summary, title: str = "Worked Time Summary") -> str:
        """Generate a Markdown report of a summary.

        Args:
            summary: Aggregated summary.
            title: Report heading.

        Returns:
            Markdown-formatted string.
        """
        lines = [
            f"# {title}",
            "",
            f"- **Total:** {format_duration(summary.total_ms)}",
        ]
        if summary.open_since is not None:
            lines.append(f"- **Open since:** {summary.open_since.isoformat()}")
        if summary.anomalies:
            lines.append(f"- **Ignored log entries:** {len(summary.anomalies)}")

        lines += ["", "## Monthly", "", "| Month | Worked |", "|-------|--------|"]
        lines += [f"| {r['month']} | {format_duration(r['total_ms'])} |" for r in summary.monthly]

        lines += ["", "## Weekly", "", "| Week Starting | Worked |", "|---------------|--------|"]
        lines += [
            f"| {r['week_start']} | {format_duration(r['total_ms'])} |" for r in summary.weekly
        ]

        lines += ["", "## Daily", "", "| Date | Worked |", "|------|--------|"]
        lines += [f"| {r['date']} | {format_duration(r['total_ms'])} |" for r in summary.daily]

        return "\n".join(lines)

    def save_report(self, content: str, filepath: Path) -> None:
        """Save report content to a file.

        Args:
            content: Report content string.
            filepath: Output file path.
        """
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(content)
        logger.info("Report saved to %s", filepath)
