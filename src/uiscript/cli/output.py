"""CLI output formatting utilities for uiscript.

This module provides the OutputFormatter class for displaying run results,
syntax errors and summaries with rich.
"""

from pathlib import Path

from rich.console import Console
from rich.table import Table
from rich.text import Text

from uiscript.core.engine import RunResult
from uiscript.utils.exceptions import ScriptSyntaxError


class OutputFormatter:
    """Formats and displays CLI output.

    Attributes:
        console: The rich console output goes to.
        verbose: Whether to show every statement of every run.
    """

    def __init__(self, console: Console | None = None, verbose: bool = False):
        """Initialize the output formatter.

        Args:
            console: Console to print to. Defaults to a new stdout console.
            verbose: Enable verbose output mode. Defaults to False.
        """
        self.console = console or Console()
        self.verbose = verbose

    def show_result(self, result: RunResult) -> None:
        """Show the outcome of one script.

        Failed statements are always listed. Successful ones only in
        verbose mode.
        """
        name = result.path.name
        if result.error is not None:
            self.console.print(
                Text.assemble((f"✗ {name}", "bold red"), f": {result.error}")
            )
            return

        report = result.report
        assert report is not None
        if report.success:
            self.console.print(Text(f"✓ {name}", style="bold green"))
        elif report.halted:
            self.console.print(Text(f"✗ {name} (halted)", style="bold red"))
        else:
            self.console.print(
                Text(f"✗ {name} (uncaught error)", style="bold red")
            )

        for record in report.records:
            if record.error is not None:
                self.console.print(
                    Text.assemble("  ", (record.text, "yellow"), f"  {record.error}")
                )
            elif self.verbose:
                self.console.print(Text(f"  {record.text}", style="dim"))

        if result.report_files and self.verbose:
            self.console.print(
                Text(f"  report: {result.report_files[-1]}", style="dim")
            )

    def show_summary(self, results: list[RunResult]) -> None:
        """Show a table of every script's outcome."""
        table = Table(title="uiscript results")
        table.add_column("Script")
        table.add_column("Statements", justify="right")
        table.add_column("Result")

        for result in results:
            if result.report is None:
                count = "-"
            else:
                count = str(len(result.report.records))
            outcome = (
                Text("passed", style="green")
                if result.success
                else Text("failed", style="red")
            )
            table.add_row(result.path.name, count, outcome)

        self.console.print(table)
        passed = sum(1 for result in results if result.success)
        self.console.print(f"{passed}/{len(results)} scripts passed")

    def show_syntax_errors(self, path: Path, error: ScriptSyntaxError) -> None:
        """List every line error found in a script."""
        self.console.print(Text(f"✗ {path}", style="bold red"))
        for line_error in error.errors:
            self.console.print(Text(f"  {line_error}"))

    def show_check_ok(self, path: Path, statements: int) -> None:
        """Confirm a script compiled."""
        self.console.print(
            Text.assemble((f"✓ {path}", "bold green"), f" ({statements} statements)")
        )

    def show_error(self, message: str) -> None:
        """Show an error message."""
        self.console.print(Text(f"Error: {message}", style="red"))
