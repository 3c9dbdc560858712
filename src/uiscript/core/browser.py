"""Playwright-based driver for uiscript.

This module implements DriverProtocol and ElementProtocol on top of
Playwright's async API. Every query is rendered to XPath, and every
Playwright failure is translated into a DriverError subclass.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, cast

from playwright.async_api import (
    Browser,
    Dialog,
    ElementHandle,
    Page,
    Playwright,
    async_playwright,
)
from playwright.async_api import (
    Error as PlaywrightError,
)
from playwright_stealth import Stealth

from uiscript.core.locator import Query, to_xpath
from uiscript.utils.exceptions import (
    AlertError,
    DriverError,
    DriverLaunchError,
    NavigationError,
)

if TYPE_CHECKING:
    from uiscript.core.protocols import ElementProtocol
    from uiscript.utils.config import AppConfig

logger = logging.getLogger(__name__)

HIGHLIGHT_SCRIPT = """(el, enabled) => {
    el.style.border = enabled ? '5px solid purple' : '';
}"""


class PlaywrightElement:
    """ElementProtocol implementation wrapping a Playwright ElementHandle.

    Attributes:
        handle: The underlying element handle.
        timeout: Timeout for element actions in milliseconds.
    """

    def __init__(self, handle: ElementHandle, timeout: int = 30000) -> None:
        self.handle = handle
        self.timeout = timeout

    async def tag_name(self) -> str:
        try:
            tag = await self.handle.evaluate("el => el.tagName.toLowerCase()")
        except PlaywrightError as e:
            raise DriverError(f"Failed to read tag name: {e}") from e
        return cast(str, tag)

    async def text(self) -> str:
        try:
            return await self.handle.inner_text()
        except PlaywrightError as e:
            raise DriverError(f"Failed to read text: {e}") from e

    async def attribute(self, name: str) -> str | None:
        try:
            return await self.handle.get_attribute(name)
        except PlaywrightError as e:
            raise DriverError(f"Failed to read attribute {name}: {e}") from e

    async def is_present(self) -> bool:
        try:
            return bool(await self.handle.evaluate("el => el.isConnected"))
        except PlaywrightError:
            # Handle disposed with its execution context
            return False

    async def is_visible(self) -> bool:
        try:
            return await self.handle.is_visible()
        except PlaywrightError:
            return False

    async def parent(self) -> PlaywrightElement | None:
        try:
            js_handle = await self.handle.evaluate_handle("el => el.parentElement")
        except PlaywrightError as e:
            raise DriverError(f"Failed to read parent element: {e}") from e
        parent = js_handle.as_element()
        if parent is None:
            return None
        return PlaywrightElement(parent, self.timeout)

    async def scroll_into_view(self) -> None:
        try:
            await self.handle.scroll_into_view_if_needed(timeout=self.timeout)
        except PlaywrightError as e:
            raise DriverError(f"Failed to scroll element into view: {e}") from e

    async def clear(self) -> None:
        try:
            await self.handle.fill("", timeout=self.timeout)
        except PlaywrightError as e:
            raise DriverError(f"Failed to clear element: {e}") from e

    async def send_keys(self, text: str) -> None:
        try:
            await self.handle.type(text, timeout=self.timeout)
        except PlaywrightError as e:
            raise DriverError(f"Failed to type into element: {e}") from e

    async def press(self, key: str) -> None:
        try:
            await self.handle.press(key, timeout=self.timeout)
        except PlaywrightError as e:
            raise DriverError(f"Failed to press {key}: {e}") from e

    async def select_by_visible_text(self, text: str) -> None:
        try:
            await self.handle.select_option(label=text, timeout=self.timeout)
        except PlaywrightError as e:
            raise DriverError(f"Failed to select '{text}': {e}") from e

    async def upload(self, path: str) -> None:
        try:
            await self.handle.set_input_files(path, timeout=self.timeout)
        except PlaywrightError as e:
            raise DriverError(f"Failed to upload {path}: {e}") from e

    async def center(self) -> tuple[float, float]:
        """Return the element's center in page coordinates."""
        try:
            box = await self.handle.bounding_box()
        except PlaywrightError as e:
            raise DriverError(f"Failed to measure element: {e}") from e
        if box is None:
            raise DriverError("Element is not visible")
        return box["x"] + box["width"] / 2, box["y"] + box["height"] / 2


class PlaywrightDriver:
    """DriverProtocol implementation backed by Playwright.

    Browser dialogs (alert, confirm, prompt) are held open until the script
    accepts or dismisses them. A click that opens a dialog returns as soon
    as the dialog appears.

    Attributes:
        browser: Browser engine name (chromium, firefox or webkit).
        headless: Whether to run without a visible window.
        timeout: Default timeout for page operations in milliseconds.
        stealth: Whether to apply playwright-stealth evasions.

    Example:
        >>> driver = PlaywrightDriver(browser="firefox", headless=True)
        >>> await driver.launch()
        >>> await driver.navigate("https://example.com")
        >>> await driver.close()
    """

    def __init__(
        self,
        browser: str = "chromium",
        headless: bool = False,
        timeout: int = 30000,
        stealth: bool = False,
    ) -> None:
        """Initialize the driver.

        Args:
            browser: Browser engine to launch. Defaults to chromium.
            headless: Whether to run in headless mode. Defaults to False.
            timeout: Default timeout in milliseconds. Defaults to 30000.
            stealth: Apply anti-detection evasions. Defaults to False.
        """
        self.browser = browser
        self.headless = headless
        self.timeout = timeout
        self.stealth = stealth
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._page: Page | None = None
        self._dialog: Dialog | None = None
        self._dialog_opened = asyncio.Event()
        self._blocked_click: asyncio.Task[None] | None = None

    @classmethod
    def from_config(cls, config: AppConfig) -> PlaywrightDriver:
        """Create a driver from application configuration."""
        return cls(
            browser=config.browser,
            headless=config.headless,
            timeout=config.page_timeout,
            stealth=config.stealth,
        )

    async def launch(self) -> None:
        """Start Playwright and open a page.

        Raises:
            DriverLaunchError: If the browser engine cannot be started.
        """
        self._playwright = await async_playwright().start()
        engine = getattr(self._playwright, self.browser)
        try:
            self._browser = await engine.launch(headless=self.headless)
        except PlaywrightError as e:
            await self._playwright.stop()
            self._playwright = None
            raise DriverLaunchError(self.browser) from e

        self._page = await self._browser.new_page()
        self._page.set_default_timeout(self.timeout)
        if self.stealth:
            await Stealth().apply_stealth_async(self._page)
        self._page.on("dialog", self._on_dialog)
        logger.info(f"Launched {self.browser} (headless={self.headless})")

    async def __aenter__(self) -> PlaywrightDriver:
        await self.launch()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _on_dialog(self, dialog: Dialog) -> None:
        logger.debug(f"Dialog opened: {dialog.type} '{dialog.message}'")
        self._dialog = dialog
        self._dialog_opened.set()

    def _require_page(self) -> Page:
        if not self._page:
            raise RuntimeError("Browser not launched")
        return self._page

    def _wrap(self, element: ElementHandle) -> PlaywrightElement:
        return PlaywrightElement(element, self.timeout)

    async def navigate(self, url: str) -> None:
        """Navigate to URL and wait for load.

        Raises:
            RuntimeError: If browser not launched.
            NavigationError: If navigation fails.
        """
        page = self._require_page()
        try:
            await page.goto(url, timeout=self.timeout)
        except PlaywrightError as e:
            raise NavigationError(f"Failed to navigate to {url}: {e}") from e

    async def refresh(self) -> None:
        page = self._require_page()
        try:
            await page.reload(timeout=self.timeout)
        except PlaywrightError as e:
            raise NavigationError(f"Failed to reload page: {e}") from e

    async def find(
        self, query: Query, scope: ElementProtocol | None = None
    ) -> PlaywrightElement | None:
        """Return the first matching element, or None.

        Raises:
            DriverError: If the query is not a valid selector.
        """
        for element in await self._query(query, scope):
            if not query.displayed or await element.is_visible():
                return element
        return None

    async def find_all(
        self, query: Query, scope: ElementProtocol | None = None
    ) -> list[PlaywrightElement]:
        """Return every matching element in document order."""
        matches = []
        for element in await self._query(query, scope):
            if not query.displayed or await element.is_visible():
                matches.append(element)
        return matches

    async def _query(
        self, query: Query, scope: ElementProtocol | None
    ) -> list[PlaywrightElement]:
        page = self._require_page()
        selector = "xpath=" + to_xpath(query, scoped=scope is not None)
        try:
            if scope is None:
                handles = await page.query_selector_all(selector)
            else:
                root = cast(PlaywrightElement, scope).handle
                handles = await root.query_selector_all(selector)
        except PlaywrightError as e:
            raise DriverError(f"Query {query.strategy.name} failed: {e}") from e
        return [self._wrap(handle) for handle in handles]

    async def active_element(self) -> PlaywrightElement:
        page = self._require_page()
        try:
            js_handle = await page.evaluate_handle("() => document.activeElement")
        except PlaywrightError as e:
            raise DriverError(f"Failed to read active element: {e}") from e
        element = js_handle.as_element()
        if element is None:
            raise DriverError("No element has focus")
        return self._wrap(element)

    async def wait_until_clickable(self, element: ElementProtocol) -> None:
        handle = cast(PlaywrightElement, element).handle
        try:
            await handle.wait_for_element_state("visible", timeout=self.timeout)
            await handle.wait_for_element_state("enabled", timeout=self.timeout)
        except PlaywrightError as e:
            raise DriverError(f"Element never became clickable: {e}") from e

    async def click(self, element: ElementProtocol) -> None:
        """Click the element's center.

        If the click opens a dialog, Playwright keeps the click pending until
        the dialog is handled, so the click is left running and settled by
        accept_alert or dismiss_alert.

        Raises:
            DriverError: If the click fails.
        """
        self._require_page()
        handle = cast(PlaywrightElement, element).handle
        click_task = asyncio.ensure_future(handle.click(timeout=self.timeout))
        dialog_task = asyncio.ensure_future(self._dialog_opened.wait())

        done, _ = await asyncio.wait(
            {click_task, dialog_task}, return_when=asyncio.FIRST_COMPLETED
        )
        if click_task not in done:
            logger.debug("Click opened a dialog, leaving it pending")
            self._blocked_click = click_task
            return

        dialog_task.cancel()
        try:
            click_task.result()
        except PlaywrightError as e:
            raise DriverError(f"Failed to click element: {e}") from e

    async def drag(self, source: ElementProtocol, target: ElementProtocol) -> None:
        page = self._require_page()
        start = await cast(PlaywrightElement, source).center()
        end = await cast(PlaywrightElement, target).center()
        try:
            await page.mouse.move(*start)
            await page.mouse.down()
            await page.mouse.move(*end, steps=10)
            await page.mouse.up()
        except PlaywrightError as e:
            raise DriverError(f"Failed to drag element: {e}") from e

    async def screenshot(self) -> bytes:
        page = self._require_page()
        try:
            return await page.screenshot(type="png")
        except PlaywrightError as e:
            raise DriverError(f"Failed to take screenshot: {e}") from e

    async def accept_alert(self) -> None:
        dialog = self._take_dialog()
        try:
            await dialog.accept()
        except PlaywrightError as e:
            raise AlertError(f"Failed to accept alert: {e}") from e
        await self._settle_click()

    async def dismiss_alert(self) -> None:
        dialog = self._take_dialog()
        try:
            await dialog.dismiss()
        except PlaywrightError as e:
            raise AlertError(f"Failed to dismiss alert: {e}") from e
        await self._settle_click()

    def _take_dialog(self) -> Dialog:
        self._require_page()
        if self._dialog is None:
            raise AlertError("No alert is open")
        dialog = self._dialog
        self._dialog = None
        self._dialog_opened.clear()
        return dialog

    async def _settle_click(self) -> None:
        if self._blocked_click is None:
            return
        task = self._blocked_click
        self._blocked_click = None
        try:
            await task
        except PlaywrightError as e:
            logger.debug(f"Click behind dialog finished with error: {e}")

    async def highlight(self, element: ElementProtocol, enabled: bool) -> None:
        handle = cast(PlaywrightElement, element).handle
        try:
            await handle.evaluate(HIGHLIGHT_SCRIPT, enabled)
        except PlaywrightError as e:
            raise DriverError(f"Failed to highlight element: {e}") from e

    async def close(self) -> None:
        """Close browser and clean up resources."""
        if self._blocked_click is not None:
            self._blocked_click.cancel()
            self._blocked_click = None

        if self._browser:
            await self._browser.close()

        if self._playwright:
            await self._playwright.stop()

        if self._page is not None:
            logger.info(f"Closed {self.browser}")

        self._browser = None
        self._page = None
        self._playwright = None
        self._dialog = None
