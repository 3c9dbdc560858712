"""Statement and command types produced by the parser.

Every type renders (``str()``) to source text that scans and parses back
to an equal value.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Union


class CommandType(Enum):
    """The primitive browser commands, valued by their keyword."""

    LOCATE = "locate"
    LOCATE_NO_SCROLL = "locate-no-scroll"
    TYPE = "type"
    CLICK = "click"
    REFRESH = "refresh"
    TRY_AGAIN = "try-again"
    SCREENSHOT = "screenshot"
    READ_TO = "read-to"
    URL = "url"
    PRESS = "press"
    CHILL = "chill"
    SELECT = "select"
    DRAG_TO = "drag-to"
    UPLOAD = "upload"
    ACCEPT_ALERT = "accept-alert"
    DISMISS_ALERT = "dismiss-alert"


# Commands taking exactly one CmdParam.
PARAM_COMMANDS = frozenset(
    {
        CommandType.LOCATE,
        CommandType.LOCATE_NO_SCROLL,
        CommandType.TYPE,
        CommandType.URL,
        CommandType.PRESS,
        CommandType.CHILL,
        CommandType.SELECT,
        CommandType.DRAG_TO,
        CommandType.UPLOAD,
    }
)

# Commands taking a bare variable name.
VARIABLE_COMMANDS = frozenset({CommandType.READ_TO})


@dataclass(frozen=True)
class CmdParam:
    """An argument to a command: a string literal or a variable reference.

    Variables are resolved against the environment at execution time.

    Attributes:
        kind: "string" for a quoted literal, "variable" for a reference.
        value: The literal text or the variable name.
    """

    kind: Literal["string", "variable"]
    value: str

    @classmethod
    def string(cls, value: str) -> CmdParam:
        return cls(kind="string", value=value)

    @classmethod
    def variable(cls, name: str) -> CmdParam:
        return cls(kind="variable", value=name)

    @property
    def is_variable(self) -> bool:
        return self.kind == "variable"

    def __str__(self) -> str:
        if self.is_variable:
            return self.value
        return f'"{self.value}"'


@dataclass(frozen=True)
class Cmd:
    """A single primitive command.

    Attributes:
        type: Which command this is.
        param: The argument for parameter-taking commands.
        variable: The target variable name for ``read-to``.
    """

    type: CommandType
    param: CmdParam | None = None
    variable: str | None = None

    def __post_init__(self) -> None:
        """Validate that the command carries exactly what it needs."""
        needs_param = self.type in PARAM_COMMANDS
        needs_variable = self.type in VARIABLE_COMMANDS
        if needs_param != (self.param is not None):
            raise ValueError(
                f"{self.type.value} "
                + ("requires a parameter" if needs_param else "takes no parameter")
            )
        if needs_variable != (self.variable is not None):
            detail = (
                "requires a variable name" if needs_variable else "takes no variable"
            )
            raise ValueError(f"{self.type.value} {detail}")

    def __str__(self) -> str:
        if self.param is not None:
            return f"{self.type.value} {self.param}"
        if self.variable is not None:
            return f"{self.type.value} {self.variable}"
        return self.type.value


@dataclass(frozen=True)
class CmdStmt:
    """One or more commands joined by ``and``.

    Attributes:
        head: The leading command.
        tail: The rest of the chain, if any.
    """

    head: Cmd
    tail: CmdStmt | None = None

    @classmethod
    def of(cls, *cmds: Cmd) -> CmdStmt:
        """Build a chain from commands in order."""
        if not cmds:
            raise ValueError("a command statement needs at least one command")
        chain: CmdStmt | None = None
        for cmd in reversed(cmds):
            chain = cls(head=cmd, tail=chain)
        assert chain is not None
        return chain

    def commands(self) -> list[Cmd]:
        """Return the chain's commands in execution order."""
        result = []
        node: CmdStmt | None = self
        while node is not None:
            result.append(node.head)
            node = node.tail
        return result

    def __str__(self) -> str:
        if self.tail is None:
            return str(self.head)
        return f"{self.head} and {self.tail}"


@dataclass(frozen=True)
class IfStmt:
    """Run ``then_branch`` only if ``condition`` succeeds.

    A failing condition is swallowed.
    """

    condition: Cmd
    then_branch: CmdStmt

    def __str__(self) -> str:
        return f"if {self.condition} then {self.then_branch}"


@dataclass(frozen=True)
class SetVariableStmt:
    """Create or overwrite a variable: ``save "value" as name``."""

    name: str
    value: str

    def __str__(self) -> str:
        return f'save "{self.value}" as {self.name}'


@dataclass(frozen=True)
class CommentStmt:
    """A ``#`` comment line. Kept so it shows up in reports."""

    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class CatchErrorStmt:
    """A recovery line: ``catch-error: <commands>``."""

    body: CmdStmt

    def __str__(self) -> str:
        return f"catch-error: {self.body}"


@dataclass(frozen=True)
class UnderStmt:
    """Run ``body`` with locate searches scoped under the located ``base``."""

    base: CmdParam
    body: CmdStmt

    def __str__(self) -> str:
        return f"under {self.base} {self.body}"


@dataclass(frozen=True)
class UnderActiveElementStmt:
    """Run ``body`` with locate searches scoped under the active element."""

    body: CmdStmt

    def __str__(self) -> str:
        return f"under-active-element {self.body}"


Stmt = Union[
    CmdStmt,
    IfStmt,
    SetVariableStmt,
    CommentStmt,
    CatchErrorStmt,
    UnderStmt,
    UnderActiveElementStmt,
]
