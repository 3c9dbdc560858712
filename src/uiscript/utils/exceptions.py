"""Exception hierarchy for uiscript."""

from dataclasses import dataclass


@dataclass(frozen=True)
class LineError:
    """A problem found on a single script line.

    Attributes:
        line: 1-based line number in the script.
        lexeme: The offending token text (empty at end of line).
        message: Human-readable description of the problem.
    """

    line: int
    lexeme: str
    message: str

    def __str__(self) -> str:
        if self.lexeme:
            return f"Line {self.line}: {self.message} (at `{self.lexeme}`)"
        return f"Line {self.line}: {self.message}"


class UIScriptError(Exception):
    """Base exception for all uiscript errors."""


class ScriptSyntaxError(UIScriptError):
    """A script could not be turned into statements.

    Carries every line error found, not just the first one.
    """

    def __init__(self, errors: list[LineError]) -> None:
        """Initialize with the collected line errors.

        Args:
            errors: Every line error found, in line order.
        """
        self.errors = list(errors)
        super().__init__("\n".join(str(e) for e in self.errors))


class LexicalError(ScriptSyntaxError):
    """Script text could not be tokenized (e.g. unterminated string)."""


class ParseError(ScriptSyntaxError):
    """One or more lines are not valid statements."""


class ExecutionError(UIScriptError):
    """A statement failed while running. Recoverable via catch-error."""


class UndefinedVariable(ExecutionError):  # noqa: N818
    """A variable was referenced before being saved or read."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Variable is not yet defined: {name}")


class NoElementLocated(ExecutionError):  # noqa: N818
    """A command needs a located element but none is in focus."""


class ElementNotFound(ExecutionError):  # noqa: N818
    """The locator chain exhausted its retry budget."""


class UnsupportedKey(ExecutionError):  # noqa: N818
    """The press command was given a key name it does not know."""


class CommandError(ExecutionError):
    """A primitive command failed."""


class DriverError(ExecutionError):
    """The browser driver reported a failure."""


class NavigationError(DriverError):
    """Page navigation or reload failed."""


class AlertError(DriverError):
    """No alert was open when one was expected."""


class ConfigurationError(UIScriptError):
    """Invalid or missing configuration."""


class DatatableError(UIScriptError):
    """A datatable CSV file is missing or malformed."""


class DriverLaunchError(UIScriptError):
    """The browser could not be started.

    This error occurs when Playwright cannot launch the requested browser
    engine, usually because its binaries are not installed.
    """

    def __init__(self, browser: str) -> None:
        """Initialize DriverLaunchError with the browser name.

        Args:
            browser: The browser engine that failed to launch.
        """
        self.browser = browser
        super().__init__(
            f"Could not launch {browser}. "
            f"Is it installed? Try: playwright install {browser}"
        )
