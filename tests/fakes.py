"""In-memory DOM implementing the driver protocols for tests.

FakeDriver answers every locator query by walking a tree of FakeElement
nodes, so the interpreter and the locate chain run without a browser.
"""

from __future__ import annotations

from collections.abc import Iterator

from uiscript.core.locator import CONTROL_TAGS, LocatorStrategy, Query
from uiscript.utils.exceptions import AlertError, DriverError, NavigationError


class FakeElement:
    """A node in the fake DOM.

    Attributes:
        tag: Lowercase tag name.
        own_text: Text directly inside this element.
        attrs: HTML attributes.
        children: Child elements in document order.
        visible: Whether the element counts as displayed.
        present: Whether the element is attached to the document.
    """

    def __init__(
        self,
        tag: str,
        text: str = "",
        children: list[FakeElement] | None = None,
        visible: bool = True,
        **attrs: str,
    ) -> None:
        self.tag = tag
        self.own_text = text
        self.attrs = {key.rstrip("_").replace("_", "-"): v for key, v in attrs.items()}
        self.children: list[FakeElement] = []
        self.parent_node: FakeElement | None = None
        self.visible = visible
        self.present = True
        self.value = ""
        self.selected: str | None = None
        self.uploaded: str | None = None
        self.pressed: list[str] = []
        self.highlighted = False
        self.fail_typing = False
        self.fail_clear = False
        for child in children or []:
            self.append(child)

    def __repr__(self) -> str:
        return f"<{self.tag} {self.attrs} {self.own_text!r}>"

    def append(self, child: FakeElement) -> FakeElement:
        child.parent_node = self
        self.children.append(child)
        return child

    def detach(self) -> None:
        """Remove the element from the tree, making handles stale."""
        if self.parent_node is not None:
            self.parent_node.children.remove(self)
            self.parent_node = None
        for node in self.walk():
            node.present = False

    def walk(self) -> Iterator[FakeElement]:
        """Yield this element and its descendants in document order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def full_text(self) -> str:
        parts = [self.own_text] + [child.full_text() for child in self.children]
        return " ".join(part for part in parts if part)

    # ElementProtocol

    async def tag_name(self) -> str:
        return self.tag

    async def text(self) -> str:
        if not self.present:
            raise DriverError("stale element")
        return self.full_text()

    async def attribute(self, name: str) -> str | None:
        return self.attrs.get(name)

    async def is_present(self) -> bool:
        return self.present

    async def parent(self) -> FakeElement | None:
        return self.parent_node

    async def scroll_into_view(self) -> None:
        if not self.visible:
            raise DriverError("cannot scroll to hidden element")

    async def clear(self) -> None:
        if self.fail_clear:
            raise DriverError("element is not editable")
        self.value = ""

    async def send_keys(self, text: str) -> None:
        if self.fail_typing:
            raise DriverError("element is not editable")
        self.value += text

    async def press(self, key: str) -> None:
        self.pressed.append(key)

    async def select_by_visible_text(self, text: str) -> None:
        if self.tag != "select":
            raise DriverError("not a select")
        for option in self.children:
            if option.tag == "option" and option.full_text() == text:
                self.selected = text
                return
        raise DriverError(f"no option {text}")

    async def upload(self, path: str) -> None:
        if self.attrs.get("type") != "file":
            raise DriverError("not a file input")
        self.uploaded = path


def el(tag: str, text: str = "", *children: FakeElement, **attrs: str) -> FakeElement:
    """Shorthand for building fake elements.

    Attribute names use underscores for dashes (``aria_label``) and a
    trailing underscore for keywords (``class_``, ``for_``).
    """
    return FakeElement(tag, text, list(children), **attrs)


class FakeDriver:
    """DriverProtocol implementation over a FakeElement tree.

    Attributes:
        root: The document's root element.
        xpaths: Raw XPath locators the driver understands, mapped to results.
        alert_open: Whether a dialog is waiting to be handled.
    """

    def __init__(self, root: FakeElement) -> None:
        self.root = root
        self.xpaths: dict[str, FakeElement] = {}
        self.alert_open = False
        self.alerts: list[str] = []
        self.urls: list[str] = []
        self.refreshes = 0
        self.clicks: list[FakeElement] = []
        self.drags: list[tuple[FakeElement, FakeElement]] = []
        self.queries: list[Query] = []
        self.focused: FakeElement | None = None
        self.unclickable: set[int] = set()
        self.clickable_checks: list[FakeElement] = []
        self.click_failures = 0
        self.click_attempts = 0
        self.fail_navigation = False
        self.fail_screenshots = False
        self.closed = False

    # Query evaluation

    def _candidates(self, scope: FakeElement | None) -> Iterator[FakeElement]:
        if scope is None:
            yield from self.root.walk()
        else:
            nodes = scope.walk()
            next(nodes)
            yield from nodes

    def _matches(self, node: FakeElement, query: Query) -> bool:
        value = query.value
        strategy = query.strategy
        if strategy == LocatorStrategy.PLACEHOLDER:
            return node.tag == "input" and node.attrs.get("placeholder") == value
        if strategy == LocatorStrategy.PLACEHOLDER_CONTAINS:
            return node.tag == "input" and value in node.attrs.get("placeholder", "\0")
        if strategy == LocatorStrategy.TEXT:
            return bool(node.own_text) and node.own_text == value
        if strategy == LocatorStrategy.TEXT_CONTAINS:
            return bool(node.own_text) and value in node.own_text
        if strategy == LocatorStrategy.TITLE:
            return node.attrs.get("title") == value
        if strategy == LocatorStrategy.ARIA_LABEL:
            return node.attrs.get("aria-label") == value
        if strategy == LocatorStrategy.ID:
            return node.attrs.get("id") == value
        if strategy == LocatorStrategy.NAME:
            return node.attrs.get("name") == value
        if strategy == LocatorStrategy.CLASS:
            return value in node.attrs.get("class", "").split()
        if strategy == LocatorStrategy.TAG:
            return node.tag == value.lower()
        if strategy == LocatorStrategy.CONTENTS:
            return value in node.full_text()
        if strategy == LocatorStrategy.CONTROL:
            return node.tag in CONTROL_TAGS
        return False

    def _evaluate(self, query: Query, scope: FakeElement | None) -> list[FakeElement]:
        self.queries.append(query)

        if query.strategy == LocatorStrategy.XPATH:
            if not query.value.startswith(("/", "(", ".")):
                raise DriverError(f"invalid xpath: {query.value}")
            match = self.xpaths.get(query.value)
            if match is None or not match.present:
                return []
            if scope is not None and match not in list(self._candidates(scope)):
                return []
            return [match]

        if query.strategy == LocatorStrategy.FOLLOWING_CONTROL:
            if scope is None or scope.parent_node is None:
                return []
            siblings = scope.parent_node.children
            index = siblings.index(scope)
            if index + 1 < len(siblings) and siblings[index + 1].tag in CONTROL_TAGS:
                return [siblings[index + 1]]
            return []

        return [
            node
            for node in self._candidates(scope)
            if self._matches(node, query) and (not query.displayed or node.visible)
        ]

    # DriverProtocol

    async def navigate(self, url: str) -> None:
        if self.fail_navigation:
            raise NavigationError(f"Failed to navigate to {url}")
        self.urls.append(url)

    async def refresh(self) -> None:
        if self.fail_navigation:
            raise NavigationError("Failed to reload page")
        self.refreshes += 1

    async def find(
        self, query: Query, scope: FakeElement | None = None
    ) -> FakeElement | None:
        matches = self._evaluate(query, scope)
        return matches[0] if matches else None

    async def find_all(
        self, query: Query, scope: FakeElement | None = None
    ) -> list[FakeElement]:
        return self._evaluate(query, scope)

    async def active_element(self) -> FakeElement:
        return self.focused or self.root

    async def wait_until_clickable(self, element: FakeElement) -> None:
        self.clickable_checks.append(element)
        if id(element) in self.unclickable:
            raise DriverError("element is covered")

    async def click(self, element: FakeElement) -> None:
        self.click_attempts += 1
        if self.click_failures > 0:
            self.click_failures -= 1
            raise DriverError("click intercepted")
        if not element.present:
            raise DriverError("element is detached")
        self.clicks.append(element)
        self.focused = element

    async def drag(self, source: FakeElement, target: FakeElement) -> None:
        self.drags.append((source, target))

    async def screenshot(self) -> bytes:
        if self.fail_screenshots:
            raise DriverError("screenshot failed")
        return b"\x89PNG fake"

    async def accept_alert(self) -> None:
        if not self.alert_open:
            raise AlertError("No alert is open")
        self.alert_open = False
        self.alerts.append("accepted")

    async def dismiss_alert(self) -> None:
        if not self.alert_open:
            raise AlertError("No alert is open")
        self.alert_open = False
        self.alerts.append("dismissed")

    async def highlight(self, element: FakeElement, enabled: bool) -> None:
        element.highlighted = enabled

    async def close(self) -> None:
        self.closed = True
