"""Report writing for uiscript runs.

This module persists an ExecutionReport to disk:
- screenshots/<name>_screenshot_<n>.png for every captured screenshot
- <name>.json with the statement records and run flags
- <name>.html rendered through a recording rich console
"""

import json
from io import StringIO
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table
from rich.text import Text

from uiscript.core.protocols import ExecutionReport


class ReportWriter:
    """Writes an execution report to an output directory.

    Attributes:
        output_dir: Directory the report files are written to.
        name: Base name for every report file.
    """

    def __init__(self, output_dir: Path, name: str) -> None:
        """Initialize the writer.

        Args:
            output_dir: Directory for report files. Created if missing.
            name: Base name for report files, usually the script's stem.
        """
        self.output_dir = output_dir
        self.name = name

    @property
    def screenshots_dir(self) -> Path:
        return self.output_dir / "screenshots"

    @property
    def json_path(self) -> Path:
        return self.output_dir / f"{self.name}.json"

    @property
    def html_path(self) -> Path:
        return self.output_dir / f"{self.name}.html"

    def write(self, report: ExecutionReport) -> list[Path]:
        """Write screenshots, JSON and HTML for a report.

        Args:
            report: The report to persist.

        Returns:
            Every file written.
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        screenshot_names = self._save_screenshots(report)
        data = self.to_dict(report, screenshot_names)

        with open(self.json_path, "w") as f:
            json.dump(data, f, indent=2)

        self.html_path.write_text(self.render_html(report, screenshot_names))

        written = [
            self.screenshots_dir / name for names in screenshot_names for name in names
        ]
        return [*written, self.json_path, self.html_path]

    def _save_screenshots(self, report: ExecutionReport) -> list[list[str]]:
        names: list[list[str]] = []
        count = 0
        if report.num_screenshots:
            self.screenshots_dir.mkdir(parents=True, exist_ok=True)
        for record in report.records:
            record_names = []
            for image in record.screenshots:
                count += 1
                filename = f"{self.name}_screenshot_{count}.png"
                (self.screenshots_dir / filename).write_bytes(image)
                record_names.append(filename)
            names.append(record_names)
        return names

    def to_dict(
        self, report: ExecutionReport, screenshot_names: list[list[str]]
    ) -> dict[str, Any]:
        """Build the JSON representation of a report."""
        return {
            "name": self.name,
            "date_time": report.started_at.isoformat(),
            "num_screenshots": report.num_screenshots,
            "exited_early": report.exited_early,
            "halted": report.halted,
            "executed_stmts": [
                record.to_dict([f"screenshots/{n}" for n in names])
                for record, names in zip(report.records, screenshot_names)
            ],
        }

    def render_html(
        self, report: ExecutionReport, screenshot_names: list[list[str]]
    ) -> str:
        """Render the report as a standalone HTML page."""
        console = Console(record=True, file=StringIO(), width=120)

        if report.halted:
            status = Text("HALTED", style="bold red")
        elif report.exited_early:
            status = Text("FAILED", style="bold red")
        else:
            status = Text("PASSED", style="bold green")

        console.print(Text(f"uiscript report: {self.name}", style="bold"))
        console.print(Text(f"Run at {report.started_at:%Y-%m-%d %H:%M:%S}"))
        console.print(Text("Result: ").append(status))

        table = Table(show_lines=True)
        table.add_column("#", justify="right", style="dim")
        table.add_column("Statement")
        table.add_column("Result")
        table.add_column("Screenshots")

        for index, (record, names) in enumerate(
            zip(report.records, screenshot_names), start=1
        ):
            if record.error is None:
                outcome = Text("ok", style="green")
            else:
                outcome = Text(record.error, style="red")
            table.add_row(
                str(index),
                Text(record.text),
                outcome,
                "\n".join(f"screenshots/{n}" for n in names),
            )

        console.print(table)
        return console.export_html(inline_styles=True)
