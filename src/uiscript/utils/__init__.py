"""Utilities module for uiscript."""

from .config import AppConfig, ConfigLoader
from .datatable import preprocess, read_csv
from .exceptions import (
    AlertError,
    CommandError,
    ConfigurationError,
    DatatableError,
    DriverError,
    DriverLaunchError,
    ElementNotFound,
    ExecutionError,
    LexicalError,
    LineError,
    NavigationError,
    NoElementLocated,
    ParseError,
    ScriptSyntaxError,
    UIScriptError,
    UndefinedVariable,
    UnsupportedKey,
)

__all__ = [
    "AlertError",
    "AppConfig",
    "CommandError",
    "ConfigLoader",
    "ConfigurationError",
    "DatatableError",
    "DriverError",
    "DriverLaunchError",
    "ElementNotFound",
    "ExecutionError",
    "LexicalError",
    "LineError",
    "NavigationError",
    "NoElementLocated",
    "ParseError",
    "ScriptSyntaxError",
    "UIScriptError",
    "UndefinedVariable",
    "UnsupportedKey",
    "preprocess",
    "read_csv",
]
