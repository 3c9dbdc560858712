"""Script engine for uiscript.

This module ties the pipeline together: scan and parse a script, launch a
driver, interpret, and write the report. It runs single scripts, files
(optionally expanded by a datatable) and whole directories concurrently.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from uiscript.core.browser import PlaywrightDriver
from uiscript.core.interpreter import Interpreter
from uiscript.core.parser import parse
from uiscript.core.protocols import DriverProtocol, ExecutionReport
from uiscript.core.scanner import scan
from uiscript.core.statements import Stmt
from uiscript.utils.config import AppConfig
from uiscript.utils.datatable import preprocess, read_csv
from uiscript.utils.exceptions import UIScriptError
from uiscript.utils.report import ReportWriter

logger = logging.getLogger(__name__)

SCRIPT_EXTENSION = ".uis"

DriverFactory = Callable[[AppConfig], Awaitable[DriverProtocol]]


@dataclass
class RunResult:
    """Outcome of running one script file.

    Attributes:
        path: The script file.
        report: The execution report, if the script got to run.
        error: Why the script could not run or its report was not written.
        report_files: Files written by the report writer.
    """

    path: Path
    report: ExecutionReport | None = None
    error: UIScriptError | None = None
    report_files: list[Path] | None = None

    @property
    def success(self) -> bool:
        return self.error is None and self.report is not None and self.report.success


async def launch_playwright(config: AppConfig) -> DriverProtocol:
    """Default driver factory: launch a Playwright browser from config."""
    driver = PlaywrightDriver.from_config(config)
    await driver.launch()
    return driver


def compile_script(source: str) -> list[Stmt]:
    """Scan and parse a script.

    Args:
        source: Script text.

    Returns:
        The parsed statements.

    Raises:
        LexicalError: If the script has unterminated strings.
        ParseError: If any line is not a valid statement.
    """
    return parse(scan(source))


async def run_script(
    source: str,
    driver: DriverProtocol,
    config: AppConfig | None = None,
    name: str = "script",
) -> ExecutionReport:
    """Compile and run a script against an already launched driver.

    Args:
        source: Script text.
        driver: The driver to run against. Not closed here.
        config: Application configuration. Defaults to AppConfig().
        name: Script name for the report.

    Returns:
        The execution report.

    Raises:
        ScriptSyntaxError: If the script does not compile.
    """
    statements = compile_script(source)
    logger.info(f"Running {name} ({len(statements)} statements)")
    report = await Interpreter(driver, statements, config, name).run()
    logger.info(f"Finished {name}: {'passed' if report.success else 'failed'}")
    return report


async def run_file(
    path: Path,
    config: AppConfig,
    driver_factory: DriverFactory | None = None,
    datatable: Path | None = None,
    write_report: bool = True,
) -> RunResult:
    """Run a script file in its own browser session.

    The script is compiled before a browser is launched, so syntax errors
    never cost a browser start.

    Args:
        path: The script file.
        config: Application configuration.
        driver_factory: Creates a launched driver. Defaults to Playwright.
        datatable: Optional CSV whose rows expand the script.
        write_report: Write screenshots, JSON and HTML to config.output_dir.

    Returns:
        The run result. Errors that stop the script from running are
        captured in ``RunResult.error`` rather than raised.
    """
    factory = driver_factory or launch_playwright
    name = path.stem
    try:
        source = path.read_text(encoding="utf-8")
        if datatable is not None:
            source = preprocess(source, read_csv(datatable))
        compile_script(source)
    except OSError as e:
        logger.error(f"Could not read {path}: {e}")
        return RunResult(path=path, error=UIScriptError(f"Could not read {path}: {e}"))
    except UIScriptError as e:
        logger.error(f"{path} did not compile")
        return RunResult(path=path, error=e)

    try:
        driver = await factory(config)
    except UIScriptError as e:
        logger.error(f"Could not start a driver for {path}: {e}")
        return RunResult(path=path, error=e)

    try:
        report = await run_script(source, driver, config, name)
    finally:
        await driver.close()

    result = RunResult(path=path, report=report)
    if write_report:
        try:
            result.report_files = ReportWriter(config.output_dir, name).write(report)
        except OSError as e:
            logger.error(f"Could not write report for {path}: {e}")
            result.error = UIScriptError(f"Could not write report: {e}")
    return result


async def run_directory(
    path: Path,
    config: AppConfig,
    driver_factory: DriverFactory | None = None,
) -> list[RunResult]:
    """Run every script in a directory concurrently.

    At most ``config.max_concurrency`` browser sessions run at once.

    Args:
        path: Directory holding ``.uis`` files.
        config: Application configuration.
        driver_factory: Creates a launched driver. Defaults to Playwright.

    Returns:
        One result per script, in file name order.
    """
    scripts = find_scripts(path)
    semaphore = asyncio.Semaphore(config.max_concurrency)

    async def run_one(script: Path) -> RunResult:
        async with semaphore:
            return await run_file(script, config, driver_factory)

    logger.info(f"Running {len(scripts)} scripts from {path}")
    return list(await asyncio.gather(*(run_one(script) for script in scripts)))


def find_scripts(path: Path) -> list[Path]:
    """Return the script files in a directory, sorted by name."""
    return sorted(p for p in path.iterdir() if p.suffix == SCRIPT_EXTENSION)
