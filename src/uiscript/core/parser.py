"""Recursive-descent parser for uiscript.

The token stream is split into lines at EOL tokens and each line is parsed on
its own, so a bad line never stops the lines after it from being checked.
"""

from __future__ import annotations

import logging

from uiscript.core.scanner import Token, TokenKind
from uiscript.core.statements import (
    PARAM_COMMANDS,
    VARIABLE_COMMANDS,
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
from uiscript.utils.exceptions import LineError, ParseError

logger = logging.getLogger(__name__)

# Token kinds that start a command, mapped to their command type.
COMMAND_TOKENS: dict[TokenKind, CommandType] = {
    TokenKind[command.name]: command for command in CommandType
}


class _LineFailed(Exception):
    """Internal signal: the current line cannot be parsed."""

    def __init__(self, error: LineError) -> None:
        self.error = error
        super().__init__(str(error))


class _LineCursor:
    """Walks the tokens of a single line."""

    def __init__(self, tokens: list[Token], line: int) -> None:
        self.tokens = tokens
        self.line = line
        self.pos = 0

    def peek(self) -> Token | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None

    def at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    def advance(self) -> Token:
        token = self.peek()
        if token is None:
            raise self.error("Unexpected end of line")
        self.pos += 1
        return token

    def check(self, kind: TokenKind) -> bool:
        token = self.peek()
        return token is not None and token.kind == kind

    def expect(self, kind: TokenKind, message: str) -> Token:
        if not self.check(kind):
            raise self.error(message)
        return self.advance()

    def error(self, message: str) -> _LineFailed:
        token = self.peek()
        lexeme = token.describe() if token is not None else ""
        return _LineFailed(LineError(line=self.line, lexeme=lexeme, message=message))


class Parser:
    """Turns scanned tokens into statements.

    Attributes:
        tokens: The token list, terminated by EOF.

    Example:
        >>> statements = Parser(scan('locate "Search" and type "cats"')).parse()
        >>> str(statements[0])
        'locate "Search" and type "cats"'
    """

    def __init__(self, tokens: list[Token]) -> None:
        """Initialize the parser.

        Args:
            tokens: Tokens produced by the scanner.

        Raises:
            ValueError: If the token list is empty or does not end with EOF.
        """
        if not tokens or tokens[-1].kind != TokenKind.EOF:
            raise ValueError("token list must be non-empty and end with EOF")
        self.tokens = tokens

    def parse(self) -> list[Stmt]:
        """Parse every line.

        Returns:
            The statements in source order. Blank lines produce nothing.

        Raises:
            ParseError: If any line is malformed. Carries every line error.
        """
        statements: list[Stmt] = []
        errors: list[LineError] = []

        for line_number, line_tokens in self._split_lines():
            if not line_tokens:
                continue
            cursor = _LineCursor(line_tokens, line_number)
            try:
                statements.append(self._statement(cursor))
            except _LineFailed as failure:
                errors.append(failure.error)

        if errors:
            logger.debug(f"Parse failed with {len(errors)} line error(s)")
            raise ParseError(errors)
        return statements

    def _split_lines(self) -> list[tuple[int, list[Token]]]:
        lines: list[tuple[int, list[Token]]] = []
        current: list[Token] = []
        for token in self.tokens:
            if token.kind == TokenKind.EOF:
                break
            if token.kind == TokenKind.EOL:
                lines.append((token.line, current))
                current = []
            else:
                current.append(token)
        if current:
            lines.append((current[0].line, current))
        return lines

    def _statement(self, cursor: _LineCursor) -> Stmt:
        stmt = self._dispatch(cursor)
        if not cursor.at_end():
            raise cursor.error("Unexpected token after end of statement")
        return stmt

    def _dispatch(self, cursor: _LineCursor) -> Stmt:
        token = cursor.peek()
        assert token is not None

        if token.kind == TokenKind.IF:
            cursor.advance()
            condition = self._command(cursor)
            cursor.expect(TokenKind.THEN, "Expected `then` after if condition")
            return IfStmt(condition=condition, then_branch=self._cmd_stmt(cursor))

        if token.kind == TokenKind.UNDER:
            cursor.advance()
            base = self._param(cursor, "under")
            return UnderStmt(base=base, body=self._cmd_stmt(cursor))

        if token.kind == TokenKind.UNDER_ACTIVE_ELEMENT:
            cursor.advance()
            return UnderActiveElementStmt(body=self._cmd_stmt(cursor))

        if token.kind == TokenKind.COMMENT:
            cursor.advance()
            return CommentStmt(text=token.lexeme)

        if token.kind == TokenKind.CATCH_ERROR:
            cursor.advance()
            return CatchErrorStmt(body=self._cmd_stmt(cursor))

        if token.kind == TokenKind.SAVE:
            cursor.advance()
            value = cursor.expect(TokenKind.STRING, "Expected a string after `save`")
            cursor.expect(TokenKind.AS, "Expected `as` after saved value")
            name = cursor.expect(
                TokenKind.VARIABLE, "Expected a variable name after `as`"
            )
            return SetVariableStmt(name=name.lexeme, value=value.lexeme)

        return self._cmd_stmt(cursor)

    def _cmd_stmt(self, cursor: _LineCursor) -> CmdStmt:
        head = self._command(cursor)
        if cursor.check(TokenKind.AND):
            cursor.advance()
            return CmdStmt(head=head, tail=self._cmd_stmt(cursor))
        return CmdStmt(head=head)

    def _command(self, cursor: _LineCursor) -> Cmd:
        token = cursor.peek()
        if token is None or token.kind not in COMMAND_TOKENS:
            raise cursor.error("Expected a command")
        cursor.advance()

        command = COMMAND_TOKENS[token.kind]
        if command in PARAM_COMMANDS:
            return Cmd(type=command, param=self._param(cursor, command.value))
        if command in VARIABLE_COMMANDS:
            name = cursor.expect(
                TokenKind.VARIABLE,
                f"Expected a variable name after `{command.value}`",
            )
            return Cmd(type=command, variable=name.lexeme)
        return Cmd(type=command)

    def _param(self, cursor: _LineCursor, keyword: str) -> CmdParam:
        token = cursor.peek()
        if token is not None and token.kind == TokenKind.STRING:
            cursor.advance()
            return CmdParam.string(token.lexeme)
        if token is not None and token.kind == TokenKind.VARIABLE:
            cursor.advance()
            return CmdParam.variable(token.lexeme)
        raise cursor.error(f"Expected a string or variable after `{keyword}`")


def parse(tokens: list[Token]) -> list[Stmt]:
    """Parse scanned tokens into statements.

    Args:
        tokens: Tokens produced by the scanner, ending with EOF.

    Returns:
        The parsed statements.

    Raises:
        ValueError: If the token list is empty or not EOF-terminated.
        ParseError: If any line is malformed.
    """
    return Parser(tokens).parse()
