"""Core protocols and data types for uiscript.

This module defines the driver capability surface the interpreter runs
against, and the report types the interpreter produces. It includes:
- ElementProtocol and DriverProtocol, implemented by browser adapters
- ExecutedStmtRecord and ExecutionReport, the execution report
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from uiscript.core.locator import Query


class ElementProtocol(Protocol):
    """A handle to one element on the page.

    Handles may go stale when the page changes; ``is_present`` reports
    whether the handle still refers to an attached element.
    """

    async def tag_name(self) -> str:
        """Return the lowercase tag name."""
        ...

    async def text(self) -> str:
        """Return the element's visible text."""
        ...

    async def attribute(self, name: str) -> str | None:
        """Return an attribute value, or None if absent."""
        ...

    async def is_present(self) -> bool:
        """Return whether the element is still attached to the document."""
        ...

    async def parent(self) -> ElementProtocol | None:
        """Return the parent element, or None at the document root."""
        ...

    async def scroll_into_view(self) -> None:
        """Scroll the element into the viewport."""
        ...

    async def clear(self) -> None:
        """Clear an editable element's value."""
        ...

    async def send_keys(self, text: str) -> None:
        """Type text into the element."""
        ...

    async def press(self, key: str) -> None:
        """Press a named key while the element has focus."""
        ...

    async def select_by_visible_text(self, text: str) -> None:
        """Select the ``<option>`` of a ``<select>`` showing ``text``."""
        ...

    async def upload(self, path: str) -> None:
        """Set a file input's file."""
        ...


class DriverProtocol(Protocol):
    """Protocol for browser drivers.

    Every method may raise ``DriverError`` (or a subclass) on failure.
    """

    async def navigate(self, url: str) -> None:
        """Navigate to a URL."""
        ...

    async def refresh(self) -> None:
        """Reload the current page."""
        ...

    async def find(
        self, query: Query, scope: ElementProtocol | None = None
    ) -> ElementProtocol | None:
        """Return the first element matching the query, or None.

        Args:
            query: What to look for.
            scope: Restrict the search to this element's descendants.
        """
        ...

    async def find_all(
        self, query: Query, scope: ElementProtocol | None = None
    ) -> list[ElementProtocol]:
        """Return every element matching the query, in document order."""
        ...

    async def active_element(self) -> ElementProtocol:
        """Return the element that currently has focus."""
        ...

    async def wait_until_clickable(self, element: ElementProtocol) -> None:
        """Wait until the element can receive a click."""
        ...

    async def click(self, element: ElementProtocol) -> None:
        """Move to the element's center and click it."""
        ...

    async def drag(self, source: ElementProtocol, target: ElementProtocol) -> None:
        """Drag ``source`` onto ``target``."""
        ...

    async def screenshot(self) -> bytes:
        """Capture the viewport as PNG bytes."""
        ...

    async def accept_alert(self) -> None:
        """Accept the open alert."""
        ...

    async def dismiss_alert(self) -> None:
        """Dismiss the open alert."""
        ...

    async def highlight(self, element: ElementProtocol, enabled: bool) -> None:
        """Add or remove the demo-mode highlight on an element."""
        ...

    async def close(self) -> None:
        """Release the browser session."""
        ...


@dataclass(frozen=True)
class ExecutedStmtRecord:
    """Record of one attempted statement.

    Attributes:
        text: The statement rendered back to source.
        error: The failure message, or None if the statement succeeded.
        screenshots: PNG images captured while running the statement.
    """

    text: str
    error: str | None = None
    screenshots: tuple[bytes, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_dict(self, screenshot_names: list[str] | None = None) -> dict[str, Any]:
        """Convert to dictionary representation.

        Args:
            screenshot_names: File names the screenshots were saved under.
                Defaults to a count-only entry.

        Returns:
            Dictionary with text, error and screenshots keys.
        """
        return {
            "text": self.text,
            "error": self.error,
            "screenshots": (
                screenshot_names
                if screenshot_names is not None
                else len(self.screenshots)
            ),
        }


@dataclass
class ExecutionReport:
    """Result of running one script.

    Attributes:
        name: Script name, used for report file names.
        started_at: When execution began.
        records: One record per attempted statement, in execution order.
        exited_early: The run halted or finished with an uncaught error.
        halted: The run was stopped by a terminal failure.
    """

    name: str
    started_at: datetime = field(default_factory=datetime.now)
    records: list[ExecutedStmtRecord] = field(default_factory=list)
    exited_early: bool = False
    halted: bool = False

    @property
    def success(self) -> bool:
        return not self.exited_early

    @property
    def num_screenshots(self) -> int:
        return sum(len(record.screenshots) for record in self.records)

    @property
    def errors(self) -> list[ExecutedStmtRecord]:
        return [record for record in self.records if record.error is not None]
