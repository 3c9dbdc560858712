"""Main CLI application entry point."""

import asyncio
import dataclasses
import logging
import os
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from uiscript import __version__
from uiscript.cli.output import OutputFormatter
from uiscript.core.engine import (
    SCRIPT_EXTENSION,
    compile_script,
    find_scripts,
    run_directory,
    run_file,
)
from uiscript.utils.config import AppConfig, ConfigLoader
from uiscript.utils.exceptions import ConfigurationError, ScriptSyntaxError

console = Console()

app = typer.Typer(
    name="uiscript",
    help="Run human-readable browser UI acceptance tests.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"uiscript v{__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Send log records through rich.

    UISCRIPT_LOG_LEVEL wins over --verbose when set.
    """
    level_name = os.environ.get("UISCRIPT_LOG_LEVEL")
    if level_name:
        level = logging.getLevelName(level_name.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    else:
        level = logging.DEBUG if verbose else logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def load_config(
    output_dir: Path | None,
    headless: bool,
    browser: str | None,
    demo: bool,
) -> AppConfig:
    """Load configuration from the environment and apply CLI overrides.

    Raises:
        ConfigurationError: If the resulting configuration is invalid.
    """
    config = ConfigLoader.load()
    overrides: dict[str, object] = {}
    if output_dir:
        overrides["output_dir"] = output_dir
    if headless:
        overrides["headless"] = True
    if browser:
        overrides["browser"] = browser.lower()
    if demo:
        overrides["demo_mode"] = True
    # replace() re-runs validation
    return dataclasses.replace(config, **overrides)


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """uiscript - human-readable browser UI acceptance tests."""
    pass


@app.command()
def run(
    path: Path = typer.Argument(
        ...,
        exists=True,
        help=f"A {SCRIPT_EXTENSION} script, or a directory of scripts to run "
        "concurrently",
    ),
    datatable: Path | None = typer.Option(
        None,
        "--datatable",
        "-d",
        exists=True,
        dir_okay=False,
        help="CSV file; the script runs once per row with <header> substituted",
    ),
    output_dir: Path | None = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Directory for reports and screenshots",
    ),
    headless: bool = typer.Option(
        False,
        "--headless",
        help="Run browser in headless mode (no visible window)",
    ),
    browser: str | None = typer.Option(
        None,
        "--browser",
        "-b",
        help="Browser engine: chromium, firefox or webkit",
    ),
    demo: bool = typer.Option(
        False,
        "--demo",
        help="Highlight each located element",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-V",
        help="Show every statement and debug logging",
    ),
) -> None:
    """Run a script or a directory of scripts."""
    configure_logging(verbose)
    formatter = OutputFormatter(console=console, verbose=verbose)

    try:
        config = load_config(output_dir, headless, browser, demo)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(code=4)

    if path.is_dir():
        if datatable is not None:
            formatter.show_error("--datatable can only be used with a single script")
            raise typer.Exit(code=4)
        results = asyncio.run(run_directory(path, config))
    else:
        results = [asyncio.run(run_file(path, config, datatable=datatable))]

    if not results:
        formatter.show_error(f"No {SCRIPT_EXTENSION} scripts found in {path}")
        raise typer.Exit(code=1)

    for result in results:
        formatter.show_result(result)
    if len(results) > 1:
        formatter.show_summary(results)

    raise typer.Exit(code=0 if all(r.success for r in results) else 1)


@app.command()
def check(
    path: Path = typer.Argument(
        ...,
        exists=True,
        help=f"A {SCRIPT_EXTENSION} script or a directory of scripts",
    ),
) -> None:
    """Check scripts for syntax errors without running them."""
    formatter = OutputFormatter(console=console)
    scripts = find_scripts(path) if path.is_dir() else [path]
    if not scripts:
        formatter.show_error(f"No {SCRIPT_EXTENSION} scripts found in {path}")
        raise typer.Exit(code=1)

    failed = False
    for script in scripts:
        try:
            statements = compile_script(script.read_text(encoding="utf-8"))
        except ScriptSyntaxError as e:
            formatter.show_syntax_errors(script, e)
            failed = True
        else:
            formatter.show_check_ok(script, len(statements))

    raise typer.Exit(code=1 if failed else 0)


if __name__ == "__main__":
    app()
