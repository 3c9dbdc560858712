"""Lexical scanner for uiscript.

Turns script text into a flat list of tokens, one line at a time. Every line
ends with an EOL token and the whole stream ends with a single EOF token.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from uiscript.utils.exceptions import LexicalError, LineError


class TokenKind(Enum):
    """Kinds of tokens produced by the scanner.

    Keyword kinds carry their exact source spelling as value. STRING,
    VARIABLE and COMMENT carry their payload in the token lexeme.
    """

    # Commands
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

    # Combinators and statement keywords
    AND = "and"
    IF = "if"
    THEN = "then"
    SAVE = "save"
    AS = "as"
    CATCH_ERROR = "catch-error:"
    UNDER = "under"
    UNDER_ACTIVE_ELEMENT = "under-active-element"

    # Payload-bearing
    STRING = "<string>"
    VARIABLE = "<variable>"
    COMMENT = "<comment>"

    # Markers
    EOL = "<end of line>"
    EOF = "<end of file>"

    @property
    def is_keyword(self) -> bool:
        """Whether this kind is spelled literally in source."""
        return self in KEYWORDS.values()


KEYWORDS: dict[str, TokenKind] = {
    kind.value: kind
    for kind in TokenKind
    if not kind.value.startswith("<")
}


@dataclass(frozen=True)
class Token:
    """A single scanned token.

    Attributes:
        kind: The token kind.
        line: 1-based source line the token came from.
        lexeme: Keyword spelling, dequoted string text, variable name or
            comment text. Empty for EOL and EOF.
    """

    kind: TokenKind
    line: int
    lexeme: str = ""

    def describe(self) -> str:
        """Return the token as it would appear in source, for error messages."""
        if self.kind == TokenKind.STRING:
            return f'"{self.lexeme}"'
        if self.kind in (TokenKind.EOL, TokenKind.EOF):
            return self.kind.value
        return self.lexeme


class Scanner:
    """Converts script source into tokens.

    String literals are split by the space splitting (``"Log In"`` becomes
    ``"Log`` and ``In"``), so pieces are buffered while inside quotes and
    reassembled with single spaces.

    Example:
        >>> tokens = Scanner('locate "Log In" and click').scan()
        >>> [t.kind.name for t in tokens]
        ['LOCATE', 'STRING', 'AND', 'CLICK', 'EOL', 'EOF']
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self._tokens: list[Token] = []
        self._errors: list[LineError] = []
        self._line = 0

    def scan(self) -> list[Token]:
        """Scan the whole source.

        Returns:
            The token list, always terminated by exactly one EOF token.

        Raises:
            LexicalError: If any line holds an unterminated string literal.
                Every such line is reported.
        """
        self._tokens = []
        self._errors = []
        self._line = 0

        for raw_line in self.source.splitlines():
            self._line += 1
            self._scan_line(raw_line)
            self._add(TokenKind.EOL)

        self._add(TokenKind.EOF)

        if self._errors:
            raise LexicalError(self._errors)
        return list(self._tokens)

    def _scan_line(self, raw_line: str) -> None:
        line = raw_line.strip()
        if line.startswith("#"):
            self._add(TokenKind.COMMENT, line)
            return

        buffer: list[str] = []
        in_quotes = False

        for piece in line.split(" "):
            if in_quotes:
                if piece.endswith('"'):
                    buffer.append(piece[:-1])
                    self._add(TokenKind.STRING, " ".join(buffer))
                    buffer = []
                    in_quotes = False
                else:
                    # Empty pieces are kept so runs of spaces survive.
                    buffer.append(piece)
                continue

            if not piece:
                continue

            if piece in KEYWORDS:
                self._add(KEYWORDS[piece])
            elif piece.startswith('"'):
                if len(piece) >= 2 and piece.endswith('"'):
                    self._add(TokenKind.STRING, piece[1:-1])
                else:
                    buffer = [piece[1:]]
                    in_quotes = True
            else:
                self._add(TokenKind.VARIABLE, piece)

        if in_quotes:
            partial = " ".join(buffer)
            self._errors.append(
                LineError(
                    line=self._line,
                    lexeme=f'"{partial}',
                    message="Unterminated string literal",
                )
            )

    def _add(self, kind: TokenKind, lexeme: str | None = None) -> None:
        if lexeme is None:
            lexeme = kind.value if kind.is_keyword else ""
        self._tokens.append(Token(kind=kind, line=self._line, lexeme=lexeme))


def scan(source: str) -> list[Token]:
    """Scan script source into tokens.

    Args:
        source: The script text.

    Returns:
        Tokens terminated by a single EOF token.

    Raises:
        LexicalError: If the source holds unterminated string literals.
    """
    return Scanner(source).scan()
