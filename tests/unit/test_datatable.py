"""Tests for datatable expansion."""

from pathlib import Path

import pytest

from uiscript.core.engine import compile_script
from uiscript.utils.datatable import preprocess, read_csv, substitute
from uiscript.utils.exceptions import DatatableError


@pytest.fixture
def users_csv(tmp_path: Path) -> Path:
    path = tmp_path / "users.csv"
    path.write_text("user , password\nada, secret1\n\ngrace ,secret2\n")
    return path


class TestReadCsv:
    """Tests for read_csv."""

    def test_reads_trimmed_rows(self, users_csv: Path) -> None:
        """Headers and values should be trimmed and blank rows skipped."""
        assert read_csv(users_csv) == [
            {"user": "ada", "password": "secret1"},
            {"user": "grace", "password": "secret2"},
        ]

    def test_empty_file(self, tmp_path: Path) -> None:
        """An empty file should have no rows."""
        path = tmp_path / "empty.csv"
        path.write_text("")
        assert read_csv(path) == []

    def test_header_only(self, tmp_path: Path) -> None:
        """A header with no data should have no rows."""
        path = tmp_path / "header.csv"
        path.write_text("user,password\n")
        assert read_csv(path) == []

    def test_row_length_mismatch(self, tmp_path: Path) -> None:
        """A short row should be rejected."""
        path = tmp_path / "bad.csv"
        path.write_text("user,password\nada\n")
        with pytest.raises(DatatableError, match="not the same length"):
            read_csv(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file should raise DatatableError."""
        with pytest.raises(DatatableError, match="Could not read datatable"):
            read_csv(tmp_path / "nope.csv")


class TestSubstitute:
    """Tests for placeholder substitution."""

    def test_replaces_every_occurrence(self) -> None:
        """Each placeholder should be replaced everywhere it appears."""
        code = 'type "<user>"\nsave "<user>" as name'
        assert substitute(code, {"user": "ada"}) == 'type "ada"\nsave "ada" as name'

    def test_unknown_placeholders_are_left(self) -> None:
        """Placeholders without a column should stay as written."""
        assert substitute('type "<other>"', {"user": "ada"}) == 'type "<other>"'


class TestPreprocess:
    """Tests for script expansion."""

    def test_one_section_per_row(self) -> None:
        """Each row should produce a numbered copy of the script."""
        code = 'locate "Username" and type "<user>"'
        expanded = preprocess(code, [{"user": "ada"}, {"user": "grace"}])
        assert expanded == (
            '\n\n# Test Run 0\n\nlocate "Username" and type "ada"\n\n'
            '\n\n# Test Run 1\n\nlocate "Username" and type "grace"\n\n'
        )

    def test_no_rows(self) -> None:
        """No rows should produce an empty script."""
        assert preprocess("click", []) == ""

    def test_expanded_script_compiles(self) -> None:
        """The section comments should parse as comment statements."""
        code = 'url "<site>"\nrefresh'
        expanded = preprocess(code, [{"site": "a"}, {"site": "b"}])
        statements = compile_script(expanded)
        assert [str(s) for s in statements] == [
            "# Test Run 0",
            'url "a"',
            "refresh",
            "# Test Run 1",
            'url "b"',
            "refresh",
        ]
