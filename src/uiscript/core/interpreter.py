"""Statement interpreter for uiscript.

This module runs parsed statements against a browser driver. It owns all
per-run state: the pending queue, the variable environment, the focused
element and scope base, the error-recovery modes and the report.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable
from pathlib import Path
from typing import TypeVar, Union

from uiscript.core.environment import Environment
from uiscript.core.locator import LocatorStrategy, Query, locate_queries
from uiscript.core.protocols import (
    DriverProtocol,
    ElementProtocol,
    ExecutedStmtRecord,
    ExecutionReport,
)
from uiscript.core.states import ExecutionStateMachine
from uiscript.core.statements import (
    CatchErrorStmt,
    Cmd,
    CmdParam,
    CmdStmt,
    CommandType,
    CommentStmt,
    IfStmt,
    SetVariableStmt,
    Stmt,
    UnderActiveElementStmt,
    UnderStmt,
)
from uiscript.utils.config import AppConfig
from uiscript.utils.exceptions import (
    CommandError,
    DriverError,
    ElementNotFound,
    ExecutionError,
    NoElementLocated,
    UndefinedVariable,
    UnsupportedKey,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

SUPPORTED_KEYS = ("Enter",)


class ResumeNormalExecution:
    """Control instruction queued after a try-again replay.

    Reaching it means the replay finished, so the retry flag is cleared.
    It is never recorded and renders as an empty string.
    """

    def __str__(self) -> str:
        return ""

    def __repr__(self) -> str:
        return "ResumeNormalExecution()"


PendingItem = Union[Stmt, ResumeNormalExecution]


class Interpreter:
    """Executes statements one at a time against a driver.

    A failing statement moves the interpreter into error_sync, where
    statements are skipped until a ``catch-error:`` line runs its handler.
    A ``try-again`` in the handler replays everything since the previous
    recovery line, once. Failing again during that replay halts the run.

    Attributes:
        driver: The browser driver.
        config: Application configuration (delays, backoff, bounds).
        environment: Variables saved or read during the run.
        modes: The error-recovery state machine.
        report: Records of every attempted statement.

    Example:
        >>> interpreter = Interpreter(driver, parse(scan(source)), config)
        >>> report = await interpreter.run()
        >>> report.exited_early
        False
    """

    def __init__(
        self,
        driver: DriverProtocol,
        statements: list[Stmt],
        config: AppConfig | None = None,
        name: str = "script",
    ) -> None:
        """Initialize the interpreter.

        Args:
            driver: The browser driver to run against.
            statements: Parsed statements, in source order.
            config: Application configuration. Defaults to AppConfig().
            name: Script name recorded in the report.
        """
        self.driver = driver
        self.config = config or AppConfig()
        self.environment = Environment()
        self.modes = ExecutionStateMachine()
        self.report = ExecutionReport(name=name)
        self._pending: deque[PendingItem] = deque(statements)
        self._replay: list[Stmt] = []
        self._focused: ElementProtocol | None = None
        self._scope: ElementProtocol | None = None
        self._last_locator: str | None = None
        self._screenshots: list[bytes] = []

    @property
    def tried_again(self) -> bool:
        return self.modes.tried_again

    @property
    def focused_element(self) -> ElementProtocol | None:
        return self._focused

    @property
    def scope(self) -> ElementProtocol | None:
        return self._scope

    @property
    def replay_buffer(self) -> list[Stmt]:
        return list(self._replay)

    async def run(self) -> ExecutionReport:
        """Run until the pending queue drains or execution halts.

        Returns:
            The execution report. ``exited_early`` is set if the run halted
            or ended in error_sync with an uncaught failure.
        """
        while self._pending and not self.modes.is_halted:
            item = self._pending.popleft()

            if isinstance(item, ResumeNormalExecution):
                self.modes.tried_again = False
                self._replay.clear()
                continue

            if self.modes.is_error_sync:
                await self._synchronize(item)
            else:
                await self._execute(item)

        self.report.halted = self.modes.is_halted
        self.report.exited_early = self.modes.is_halted or self.modes.is_error_sync
        if self.report.halted:
            logger.error(f"{self.report.name}: execution halted")
        elif self.report.exited_early:
            logger.warning(f"{self.report.name}: finished with an uncaught error")
        return self.report

    # Modes

    async def _execute(self, stmt: Stmt) -> None:
        """Run a statement in normal mode."""
        self._replay.append(stmt)
        logger.debug(f"Executing: {stmt}")

        try:
            await self._dispatch(stmt)
        except ExecutionError as e:
            self._record(stmt, str(e))
            if self.modes.tried_again:
                logger.error(f"Failed again after try-again: {stmt} ({e})")
                self.modes.halt()
            else:
                logger.warning(f"Statement failed: {stmt} ({e})")
                self.modes.fail()
            return

        self._record(stmt)

    async def _synchronize(self, stmt: Stmt) -> None:
        """Handle a statement while an error is outstanding."""
        if not isinstance(stmt, CatchErrorStmt):
            logger.debug(f"Skipping: {stmt}")
            self._replay.append(stmt)
            return

        logger.debug(f"Running error handler: {stmt}")
        try:
            await self._run_chain(stmt.body)
        except ExecutionError as e:
            self._record(stmt, str(e))
            logger.error(f"Error handler failed: {stmt} ({e})")
            self.modes.halt()
            return

        self._record(stmt)
        self._replay.clear()
        self.modes.recover()

    async def _dispatch(self, stmt: Stmt) -> None:
        if isinstance(stmt, CmdStmt):
            await self._run_chain(stmt)
        elif isinstance(stmt, IfStmt):
            try:
                await self._run_command(stmt.condition)
            except ExecutionError as e:
                logger.debug(f"Condition not met, skipping branch: {e}")
                return
            await self._run_chain(stmt.then_branch)
        elif isinstance(stmt, SetVariableStmt):
            self.environment.set(stmt.name, stmt.value)
        elif isinstance(stmt, CommentStmt):
            pass
        elif isinstance(stmt, CatchErrorStmt):
            # Nothing to catch; start a fresh replay window
            self._replay.clear()
        elif isinstance(stmt, UnderStmt):
            base = await self._locate(self._resolve(stmt.base), scroll=True)
            await self._run_scoped(base, stmt.body)
        elif isinstance(stmt, UnderActiveElementStmt):
            base = await self._active_element()
            await self._run_scoped(base, stmt.body)
        else:
            raise TypeError(f"Unknown statement type: {type(stmt).__name__}")

    async def _run_scoped(self, base: ElementProtocol, body: CmdStmt) -> None:
        self._scope = base
        try:
            await self._run_chain(body)
        finally:
            self._scope = None

    async def _run_chain(self, chain: CmdStmt) -> None:
        for cmd in chain.commands():
            await self._run_command(cmd)

    def _record(self, stmt: Stmt, error: str | None = None) -> None:
        self.report.records.append(
            ExecutedStmtRecord(
                text=str(stmt),
                error=error,
                screenshots=tuple(self._screenshots),
            )
        )
        self._screenshots = []

    # Commands

    async def _run_command(self, cmd: Cmd) -> None:
        """Run one primitive command.

        Raises:
            ExecutionError: If the command fails.
        """
        if self.config.command_delay > 0:
            await asyncio.sleep(self.config.command_delay)

        command = cmd.type
        if command == CommandType.LOCATE:
            await self._locate(self._resolve(cmd.param), scroll=True)
        elif command == CommandType.LOCATE_NO_SCROLL:
            await self._locate(self._resolve(cmd.param), scroll=False)
        elif command == CommandType.TYPE:
            await self._type(self._resolve(cmd.param))
        elif command == CommandType.CLICK:
            await self._click()
        elif command == CommandType.REFRESH:
            await self._driver_call(self.driver.refresh(), "Error refreshing page")
        elif command == CommandType.TRY_AGAIN:
            self._try_again()
        elif command == CommandType.SCREENSHOT:
            image = await self._driver_call(
                self.driver.screenshot(), "Error taking screenshot."
            )
            self._screenshots.append(image)
        elif command == CommandType.READ_TO:
            await self._read_to(cmd.variable or "")
        elif command == CommandType.URL:
            url = self._resolve(cmd.param)
            await self._driver_call(
                self.driver.navigate(url), "Error navigating to page."
            )
        elif command == CommandType.PRESS:
            await self._press(self._resolve(cmd.param))
        elif command == CommandType.CHILL:
            await self._chill(self._resolve(cmd.param))
        elif command == CommandType.SELECT:
            await self._select(self._resolve(cmd.param))
        elif command == CommandType.DRAG_TO:
            await self._drag_to(self._resolve(cmd.param))
        elif command == CommandType.UPLOAD:
            await self._upload(self._resolve(cmd.param))
        elif command == CommandType.ACCEPT_ALERT:
            await self._driver_call(
                self.driver.accept_alert(), "Error accepting alert"
            )
        elif command == CommandType.DISMISS_ALERT:
            await self._driver_call(
                self.driver.dismiss_alert(), "Error dismissing alert"
            )
        else:
            raise CommandError(f"Unsupported command: {command.value}")

    def _try_again(self) -> None:
        """Schedule the replay buffer, once, ahead of everything pending."""
        if self.modes.tried_again:
            raise CommandError("Already trying again, giving up")

        self.modes.tried_again = True
        replay = self._replay
        self._replay = []
        logger.info(f"Trying again: replaying {len(replay)} statement(s)")

        self._pending.appendleft(ResumeNormalExecution())
        self._pending.extendleft(reversed(replay))

    async def _type(self, text: str) -> None:
        await self._click()

        if self.config.type_settle_delay > 0:
            await asyncio.sleep(self.config.type_settle_delay)

        target = await self._active_element()
        try:
            await target.clear()
        except DriverError as e:
            logger.debug(f"Could not clear element before typing: {e}")
        await self._driver_call(target.send_keys(text), "Error typing into element")

    async def _click(self) -> None:
        element = await self._resolve_label()
        try:
            await self.driver.wait_until_clickable(element)
        except DriverError as e:
            logger.debug(f"Element not reported clickable, clicking anyway: {e}")
        await self._driver_call(self.driver.click(element), "Error clicking element")

    async def _read_to(self, variable: str) -> None:
        element = await self._current_element()
        text = await self._driver_call(
            element.text(), "Error getting text from element"
        )
        self.environment.set(variable, text)

    async def _press(self, key: str) -> None:
        if key not in SUPPORTED_KEYS:
            raise UnsupportedKey(f"Unsupported Key: {key}")
        element = await self._current_element()
        await self._driver_call(element.press(key), f"Error pressing {key}")

    async def _chill(self, value: str) -> None:
        try:
            seconds = int(value)
        except ValueError:
            seconds = -1
        if seconds < 0:
            raise CommandError("Could not parse time to wait as integer.")
        await asyncio.sleep(seconds)

    async def _select(self, text: str) -> None:
        element = await self._resolve_label()
        tag = await self._driver_call(element.tag_name(), "Error reading element")

        if tag == "option":
            parent = await self._driver_call(element.parent(), "Error reading element")
            if parent is not None:
                element = parent
                await self._focus(element)
                tag = await self._driver_call(
                    element.tag_name(), "Error reading element"
                )

        if tag != "select":
            raise CommandError("Element is not a <select> element")

        try:
            await element.select_by_visible_text(text)
        except DriverError as e:
            raise CommandError(f"Could not select text {text}") from e

    async def _drag_to(self, locator: str) -> None:
        source = await self._current_element()
        target = await self._locate(locator, scroll=False)
        await self._driver_call(
            self.driver.drag(source, target), "Error dragging element."
        )

    async def _upload(self, path: str) -> None:
        element = await self._current_element()
        try:
            resolved = Path(path).resolve(strict=True)
        except OSError as e:
            raise CommandError(f"Error uploading file: {path} not found") from e
        await self._driver_call(element.upload(str(resolved)), "Error uploading file")

    # Element resolution

    def _resolve(self, param: CmdParam | None) -> str:
        """Resolve a command parameter to its string value.

        Raises:
            UndefinedVariable: If a referenced variable was never set.
        """
        if param is None:
            raise CommandError("Missing command parameter")
        if not param.is_variable:
            return param.value
        value = self.environment.get(param.value)
        if value is None:
            raise UndefinedVariable(param.value)
        return value

    async def _locate(self, locator: str, scroll: bool) -> ElementProtocol:
        """Resolve a locator to an element and focus it.

        Tries the whole chain once per backoff entry, sleeping that many
        seconds first.

        Args:
            locator: The human-readable locator.
            scroll: Scroll the element into view once found.

        Returns:
            The located element, now focused.

        Raises:
            ElementNotFound: If every attempt failed.
        """
        element: ElementProtocol | None = None
        for attempt, wait in enumerate(self.config.locate_backoff, start=1):
            if wait > 0:
                logger.debug(f"Waiting {wait}s before locate attempt {attempt}")
                await asyncio.sleep(wait)
            element = await self._search(locator)
            if element is not None:
                break

        if element is None:
            raise ElementNotFound(f"Could not locate the element: {locator}")

        if scroll:
            try:
                await element.scroll_into_view()
            except DriverError as e:
                logger.debug(f"Could not scroll to element: {e}")

        await self._focus(element)
        self._last_locator = locator
        return element

    async def _search(self, locator: str) -> ElementProtocol | None:
        """One pass of the chain, climbing the scope base when scoped."""
        if self._scope is None:
            return await self._search_in(locator, None)

        base: ElementProtocol | None = self._scope
        for _ in range(self.config.max_scope_climb + 1):
            assert base is not None
            element = await self._search_in(locator, base)
            if element is not None:
                return element
            try:
                base = await base.parent()
            except DriverError as e:
                logger.debug(f"Could not climb scope: {e}")
                return None
            if base is None:
                return None
        return None

    async def _search_in(
        self, locator: str, scope: ElementProtocol | None
    ) -> ElementProtocol | None:
        for query in locate_queries(locator, scoped=scope is not None):
            try:
                if query.strategy == LocatorStrategy.CONTENTS:
                    # Deepest match comes last in document order
                    matches = await self.driver.find_all(query)
                    element = matches[-1] if matches else None
                else:
                    element = await self.driver.find(query, scope)
            except DriverError as e:
                logger.debug(f"{query.strategy.name} query failed: {e}")
                continue
            if element is not None:
                logger.debug(f"Located '{locator}' by {query.strategy.name}")
                return element
        return None

    async def _focus(self, element: ElementProtocol) -> None:
        if self.config.demo_mode:
            if self._focused is not None:
                try:
                    await self.driver.highlight(self._focused, False)
                except DriverError as e:
                    logger.debug(f"Could not remove highlight: {e}")
            try:
                await self.driver.highlight(element, True)
            except DriverError as e:
                logger.debug(f"Could not highlight element: {e}")
        self._focused = element

    async def _current_element(self) -> ElementProtocol:
        """Return the focused element, re-locating it once if stale.

        Raises:
            NoElementLocated: If nothing has been located yet.
            ElementNotFound: If a stale element cannot be found again.
        """
        if self._focused is None:
            raise NoElementLocated(
                "No element currently located. Try using the locate command"
            )

        try:
            present = await self._focused.is_present()
        except DriverError:
            present = False

        if not present and self._last_locator is not None:
            logger.debug(
                f"Focused element went stale, re-locating '{self._last_locator}'"
            )
            await self._locate(self._last_locator, scroll=False)

        return self._focused

    async def _active_element(self) -> ElementProtocol:
        return await self._driver_call(
            self.driver.active_element(), "Error getting active element."
        )

    async def _resolve_label(self) -> ElementProtocol:
        """Return the focused element, swapping a label for its control."""
        element = await self._current_element()
        try:
            tag = await element.tag_name()
        except DriverError:
            return element
        if tag != "label":
            return element

        control = await self._label_control(element)
        if control is None:
            logger.debug("No control found for label, using the label itself")
            return element

        await self._focus(control)
        return control

    async def _label_control(self, label: ElementProtocol) -> ElementProtocol | None:
        control = await self._find_quietly(Query(LocatorStrategy.CONTROL), label)
        if control is not None:
            return control

        target = await label.attribute("for")
        if target:
            for strategy in (LocatorStrategy.ID, LocatorStrategy.NAME):
                control = await self._find_quietly(
                    Query(strategy, target, displayed=False)
                )
                if control is not None:
                    return control

        control = await self._find_quietly(
            Query(LocatorStrategy.FOLLOWING_CONTROL), label
        )
        if control is not None:
            return control

        ancestor: ElementProtocol | None = label
        for _ in range(self.config.label_search_depth):
            assert ancestor is not None
            ancestor = await ancestor.parent()
            if ancestor is None:
                break
            control = await self._find_quietly(
                Query(LocatorStrategy.CONTROL), ancestor
            )
            if control is not None:
                return control
        return None

    async def _find_quietly(
        self, query: Query, scope: ElementProtocol | None = None
    ) -> ElementProtocol | None:
        try:
            return await self.driver.find(query, scope)
        except DriverError as e:
            logger.debug(f"{query.strategy.name} query failed: {e}")
            return None

    async def _driver_call(self, call: Awaitable[T], message: str) -> T:
        """Await a driver coroutine, translating driver errors.

        Args:
            call: The coroutine to await.
            message: Message for the CommandError raised on failure.

        Raises:
            CommandError: If the driver raised a DriverError.
        """
        try:
            return await call
        except DriverError as e:
            raise CommandError(f"{message}: {e}") from e
