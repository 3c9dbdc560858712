"""Locator strategies and their XPath rendering.

A human-readable locator such as ``"Log In"`` is resolved by trying a fixed
chain of queries, first match wins. Drivers receive semantic ``Query``
objects; browser-backed drivers render them to XPath with ``to_xpath``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

# Tags a label may stand in for.
CONTROL_TAGS = ("input", "textarea", "select")


class LocatorStrategy(Enum):
    """How a locator string is matched against the page."""

    PLACEHOLDER = auto()
    PLACEHOLDER_CONTAINS = auto()
    TEXT = auto()
    TEXT_CONTAINS = auto()
    TITLE = auto()
    ARIA_LABEL = auto()
    ID = auto()
    NAME = auto()
    CLASS = auto()
    TAG = auto()
    XPATH = auto()
    CONTENTS = auto()
    # Used for label redirection, never by the locate chain
    CONTROL = auto()
    FOLLOWING_CONTROL = auto()


@dataclass(frozen=True)
class Query:
    """A single element query.

    Attributes:
        strategy: How ``value`` is matched.
        value: The locator text (ignored by CONTROL and FOLLOWING_CONTROL).
        displayed: Only match elements that are visible.
    """

    strategy: LocatorStrategy
    value: str = ""
    displayed: bool = True


# The locate chain, in precedence order: (strategy, displayed, document_only).
LOCATE_CHAIN: tuple[tuple[LocatorStrategy, bool, bool], ...] = (
    (LocatorStrategy.PLACEHOLDER, True, False),
    (LocatorStrategy.PLACEHOLDER_CONTAINS, True, False),
    (LocatorStrategy.TEXT, True, False),
    (LocatorStrategy.TEXT_CONTAINS, True, False),
    (LocatorStrategy.TITLE, True, False),
    (LocatorStrategy.ARIA_LABEL, True, False),
    (LocatorStrategy.ID, True, False),
    (LocatorStrategy.NAME, True, False),
    (LocatorStrategy.CLASS, True, False),
    (LocatorStrategy.TAG, True, False),
    (LocatorStrategy.XPATH, False, False),
    (LocatorStrategy.CONTENTS, True, True),
)


def locate_queries(locator: str, scoped: bool) -> list[Query]:
    """Build the ordered queries for one pass of the locate chain.

    Args:
        locator: The human-readable locator.
        scoped: Whether the search runs under a scope base. The document-wide
            contents search is dropped when scoped.

    Returns:
        Queries in precedence order.
    """
    return [
        Query(strategy=strategy, value=locator, displayed=displayed)
        for strategy, displayed, document_only in LOCATE_CHAIN
        if not (scoped and document_only)
    ]


def xpath_literal(value: str) -> str:
    """Quote a string as an XPath 1.0 literal.

    XPath 1.0 has no escape sequences, so a value holding both quote kinds
    is built with ``concat()``.

    Example:
        >>> xpath_literal("it's")
        '"it\\'s"'
    """
    if "'" not in value:
        return f"'{value}'"
    if '"' not in value:
        return f'"{value}"'
    parts = value.split("'")
    pieces = []
    for index, part in enumerate(parts):
        if part:
            pieces.append(f"'{part}'")
        if index < len(parts) - 1:
            pieces.append('"\'"')
    return f"concat({', '.join(pieces)})"


def to_xpath(query: Query, scoped: bool = False) -> str:
    """Render a query as an XPath expression.

    Args:
        query: The query to render.
        scoped: Render relative to a context node instead of the document.

    Returns:
        The XPath expression.
    """
    literal = xpath_literal(query.value)
    strategy = query.strategy
    prefix = "." if scoped else ""

    if strategy == LocatorStrategy.PLACEHOLDER:
        return f"{prefix}//input[@placeholder={literal}]"
    if strategy == LocatorStrategy.PLACEHOLDER_CONTAINS:
        return f"{prefix}//input[contains(@placeholder, {literal})]"
    if strategy == LocatorStrategy.TEXT:
        return f"{prefix}//*[text()={literal}]"
    if strategy == LocatorStrategy.TEXT_CONTAINS:
        return f"{prefix}//*[contains(text(), {literal})]"
    if strategy == LocatorStrategy.TITLE:
        return f"{prefix}//*[@title={literal}]"
    if strategy == LocatorStrategy.ARIA_LABEL:
        return f"{prefix}//*[@aria-label={literal}]"
    if strategy == LocatorStrategy.ID:
        return f"{prefix}//*[@id={literal}]"
    if strategy == LocatorStrategy.NAME:
        return f"{prefix}//*[@name={literal}]"
    if strategy == LocatorStrategy.CLASS:
        return (
            f"{prefix}//*[contains(concat(' ', normalize-space(@class), ' '), "
            f"concat(' ', {literal}, ' '))]"
        )
    if strategy == LocatorStrategy.TAG:
        return f"{prefix}//*[local-name()={xpath_literal(query.value.lower())}]"
    if strategy == LocatorStrategy.XPATH:
        if scoped and query.value.startswith("/"):
            return f".{query.value}"
        return query.value
    if strategy == LocatorStrategy.CONTENTS:
        return f"{prefix}//*[contains(., {literal})]"
    if strategy == LocatorStrategy.CONTROL:
        return " | ".join(f".//{tag}" for tag in CONTROL_TAGS)
    if strategy == LocatorStrategy.FOLLOWING_CONTROL:
        condition = " or ".join(f"self::{tag}" for tag in CONTROL_TAGS)
        return f"following-sibling::*[1][{condition}]"
    raise ValueError(f"Unknown locator strategy: {strategy}")
