"""Unit tests for the scanner.

Tests cover:
- Keyword, string and variable tokens
- Quoted strings spanning several spaces
- Comment lines
- EOL/EOF structure and line numbers
- Unterminated strings
"""

import pytest

from uiscript.core.scanner import KEYWORDS, Scanner, Token, TokenKind, scan
from uiscript.utils.exceptions import LexicalError


def kinds(tokens: list[Token]) -> list[TokenKind]:
    return [token.kind for token in tokens]


class TestTokenStructure:
    """Tests for EOL and EOF placement."""

    def test_empty_source_is_single_eof(self) -> None:
        """Empty input should produce exactly one EOF token."""
        assert kinds(scan("")) == [TokenKind.EOF]

    def test_every_line_ends_with_eol(self) -> None:
        """Each line, blank or not, should end with EOL."""
        tokens = scan("click\n\nrefresh")
        assert kinds(tokens) == [
            TokenKind.CLICK,
            TokenKind.EOL,
            TokenKind.EOL,
            TokenKind.REFRESH,
            TokenKind.EOL,
            TokenKind.EOF,
        ]

    def test_exactly_one_eof(self) -> None:
        """The stream should end with a single EOF."""
        tokens = scan('locate "a"\nclick\n')
        assert kinds(tokens).count(TokenKind.EOF) == 1
        assert tokens[-1].kind == TokenKind.EOF

    def test_line_numbers_are_one_based(self) -> None:
        """Tokens should carry the line they came from."""
        tokens = scan("click\nrefresh")
        assert tokens[0].line == 1
        assert tokens[2].line == 2


class TestKeywords:
    """Tests for keyword recognition."""

    @pytest.mark.parametrize("spelling", sorted(KEYWORDS))
    def test_keyword_is_recognized(self, spelling: str) -> None:
        """Every keyword spelling should scan to its own kind."""
        token = scan(spelling)[0]
        assert token.kind == KEYWORDS[spelling]
        assert token.lexeme == spelling

    def test_keywords_are_case_sensitive(self) -> None:
        """Capitalized keywords should be variables."""
        token = scan("Click")[0]
        assert token.kind == TokenKind.VARIABLE
        assert token.lexeme == "Click"

    def test_catch_error_includes_colon(self) -> None:
        """catch-error without a colon is not the keyword."""
        assert scan("catch-error")[0].kind == TokenKind.VARIABLE
        assert scan("catch-error:")[0].kind == TokenKind.CATCH_ERROR

    def test_payload_kinds_are_not_keywords(self) -> None:
        """STRING, VARIABLE and markers should not be keyword kinds."""
        assert not TokenKind.STRING.is_keyword
        assert not TokenKind.EOF.is_keyword
        assert TokenKind.LOCATE.is_keyword


class TestStrings:
    """Tests for string literal handling."""

    def test_single_word_string(self) -> None:
        """A quoted word should be a dequoted STRING token."""
        token = scan('locate "Search"')[1]
        assert token.kind == TokenKind.STRING
        assert token.lexeme == "Search"

    def test_multi_word_string_is_reassembled(self) -> None:
        """Pieces inside quotes should join with single spaces."""
        tokens = scan('locate "Log In Now" and click')
        assert kinds(tokens)[:4] == [
            TokenKind.LOCATE,
            TokenKind.STRING,
            TokenKind.AND,
            TokenKind.CLICK,
        ]
        assert tokens[1].lexeme == "Log In Now"

    def test_runs_of_spaces_inside_string_survive(self) -> None:
        """Double spaces inside a literal should be preserved."""
        assert scan('type "a  b"')[1].lexeme == "a  b"

    def test_extra_spaces_outside_strings_are_ignored(self) -> None:
        """Runs of spaces between tokens should produce no tokens."""
        assert kinds(scan("locate   x   and  click")) == [
            TokenKind.LOCATE,
            TokenKind.VARIABLE,
            TokenKind.AND,
            TokenKind.CLICK,
            TokenKind.EOL,
            TokenKind.EOF,
        ]

    def test_keywords_inside_string_are_text(self) -> None:
        """Keywords inside quotes should stay part of the string."""
        token = scan('type "click and then save"')[1]
        assert token.kind == TokenKind.STRING
        assert token.lexeme == "click and then save"

    def test_empty_string(self) -> None:
        """Two quotes should be an empty STRING."""
        token = scan('type ""')[1]
        assert token.kind == TokenKind.STRING
        assert token.lexeme == ""

    def test_unterminated_string_raises(self) -> None:
        """A string open at end of line should be a lexical error."""
        with pytest.raises(LexicalError) as exc_info:
            scan('locate "Log In\nclick')
        errors = exc_info.value.errors
        assert len(errors) == 1
        assert errors[0].line == 1
        assert "Unterminated" in errors[0].message
        assert errors[0].lexeme == '"Log In'

    def test_every_unterminated_line_is_reported(self) -> None:
        """All lines with unterminated strings should be collected."""
        with pytest.raises(LexicalError) as exc_info:
            scan('type "a\nclick\ntype "b c')
        assert [e.line for e in exc_info.value.errors] == [1, 3]


class TestComments:
    """Tests for comment lines."""

    def test_comment_line_is_single_token(self) -> None:
        """A # line should be one COMMENT token with the trimmed line."""
        tokens = scan('   # locate "x" and click  ')
        assert kinds(tokens) == [TokenKind.COMMENT, TokenKind.EOL, TokenKind.EOF]
        assert tokens[0].lexeme == '# locate "x" and click'

    def test_unbalanced_quote_in_comment_is_fine(self) -> None:
        """Comments are not tokenized, so quotes do not matter."""
        assert scan('# say "hi')[0].kind == TokenKind.COMMENT


class TestScannerInstance:
    """Tests for the Scanner class."""

    def test_scan_can_be_repeated(self) -> None:
        """Scanning twice should give the same tokens."""
        scanner = Scanner("click")
        assert scanner.scan() == scanner.scan()

    def test_describe_quotes_strings(self) -> None:
        """describe() should show strings as they appear in source."""
        assert Token(TokenKind.STRING, 1, "a b").describe() == '"a b"'
        assert Token(TokenKind.EOF, 1).describe() == "<end of file>"
