"""Datatable support: run one script once per CSV row.

The header row names placeholders. Every ``<header>`` in the script is
replaced by that row's value, and the copies are joined into one script
with a ``# Test Run <i>`` comment before each.
"""

import csv
from pathlib import Path

from uiscript.utils.exceptions import DatatableError


def read_csv(path: Path) -> list[dict[str, str]]:
    """Read a datatable file.

    Headers and values are trimmed of surrounding whitespace.

    Args:
        path: Path to the CSV file.

    Returns:
        One mapping of header to value per data row.

    Raises:
        DatatableError: If the file cannot be read or a row's length does
            not match the header row.
    """
    try:
        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
    except OSError as e:
        raise DatatableError(f"Could not read datatable {path}: {e}") from e

    if not rows:
        return []

    headers = [header.strip() for header in rows[0]]
    records = []
    for line_number, row in enumerate(rows[1:], start=2):
        if not row:
            continue
        if len(row) != len(headers):
            raise DatatableError(
                f"This record is not the same length as the header row "
                f"(line {line_number}: {len(row)} fields, expected {len(headers)})"
            )
        records.append(
            {header: value.strip() for header, value in zip(headers, row)}
        )
    return records


def substitute(code: str, row: dict[str, str]) -> str:
    """Replace every ``<header>`` placeholder with the row's value."""
    for header, value in row.items():
        code = code.replace(f"<{header}>", value)
    return code


def preprocess(code: str, rows: list[dict[str, str]]) -> str:
    """Expand a script into one section per datatable row.

    Args:
        code: The script source with ``<header>`` placeholders.
        rows: Rows returned by read_csv.

    Returns:
        The expanded script. Each section starts with ``# Test Run <i>``,
        counting from 0.
    """
    sections = []
    for index, row in enumerate(rows):
        sections.append(f"\n\n# Test Run {index}\n\n{substitute(code, row)}\n\n")
    return "".join(sections)
