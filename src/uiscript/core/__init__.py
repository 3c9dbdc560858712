"""Core module for the uiscript language.

This module exports the language pipeline: tokens, statements, the parser,
the interpreter and the driver protocols it runs against. The Playwright
driver and the engine live in ``uiscript.core.browser`` and
``uiscript.core.engine``.
"""

from uiscript.core.environment import Environment
from uiscript.core.interpreter import Interpreter, ResumeNormalExecution
from uiscript.core.locator import LocatorStrategy, Query, locate_queries, to_xpath
from uiscript.core.parser import Parser, parse
from uiscript.core.protocols import (
    DriverProtocol,
    ElementProtocol,
    ExecutedStmtRecord,
    ExecutionReport,
)
from uiscript.core.scanner import Scanner, Token, TokenKind, scan
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

__all__ = [
    "CatchErrorStmt",
    "Cmd",
    "CmdParam",
    "CmdStmt",
    "CommandType",
    "CommentStmt",
    "DriverProtocol",
    "ElementProtocol",
    "Environment",
    "ExecutedStmtRecord",
    "ExecutionReport",
    "ExecutionStateMachine",
    "IfStmt",
    "Interpreter",
    "LocatorStrategy",
    "Parser",
    "Query",
    "ResumeNormalExecution",
    "Scanner",
    "SetVariableStmt",
    "Stmt",
    "Token",
    "TokenKind",
    "UnderActiveElementStmt",
    "UnderStmt",
    "locate_queries",
    "parse",
    "scan",
    "to_xpath",
]
