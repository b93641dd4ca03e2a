"""Row parsing, matrix helpers, header/data split and CSV assembly — pure functions."""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import NamedTuple, TypeVar

from xlsx_to_csv.cells import try_parse_number
from xlsx_to_csv.models import ColumnName, Row, SplitTable, Table

T = TypeVar("T")

QUOTE = '"'
SEPARATOR = ","
_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


class ColumnCountError(ValueError):
    """Number of column names does not match the width of the table."""

    def __init__(self, expected: int, actual: int, sheet: str = "") -> None:
        where = f" for sheet {sheet!r}" if sheet else ""
        super().__init__(
            f"Got {actual} column names{where} but the table has {expected} columns"
        )
        self.expected = expected
        self.actual = actual
        self.sheet = sheet


# ── Row parsing ──────────────────────────────────────────────────


class ParsedRow(NamedTuple):
    cells: Row
    balanced: bool
    """``False`` when the line ended inside an open quote."""


def scan_row(line: str) -> ParsedRow:
    """Split one CSV *line* into cells.

    Quotation marks toggle quoting and are never emitted; a comma outside
    quotes starts a new cell. An unterminated quote is tolerated.
    """
    cells: Row = []
    current: list[str] = []
    within_quotes = False
    for char in line:
        if char == QUOTE:
            within_quotes = not within_quotes
            continue
        if char == SEPARATOR and not within_quotes:
            cells.append("".join(current))
            current = []
            continue
        current.append(char)
    if line:
        cells.append("".join(current))
    return ParsedRow(cells, not within_quotes)


def parse_row(line: str) -> Row:
    return scan_row(line).cells


def parse_lines(text: str) -> Table:
    return [parse_row(line) for line in _LINE_BREAK_RE.split(text)]


# ── Matrix helpers ───────────────────────────────────────────────


def transpose(table: list[list[T]]) -> list[list[T]]:
    """Swap rows and columns of a rectangular *table*.

    The shape is taken from the first row; an empty table is returned as is.
    """
    if not table:
        return table
    n_rows = len(table)
    n_cols = len(table[0])
    return [[table[i][j] for i in range(n_rows)] for j in range(n_cols)]


def has_entry(row: Sequence[object]) -> bool:
    return any(row)


def pad_rows(table: Table, fill: str = "") -> Table:
    width = max((len(row) for row in table), default=0)
    return [row + [fill] * (width - len(row)) for row in table]


def drop_empty(table: Table) -> Table:
    """Remove rows and columns that contain no entry at all."""
    table = [row for row in table if has_entry(row)]
    return transpose([col for col in transpose(table) if has_entry(col)])


# ── Header / data split ──────────────────────────────────────────


def is_number(text: str) -> bool:
    return try_parse_number(text) is not None


def _is_complete(row: Row, n_cols: int, require_number: bool) -> bool:
    if sum(1 for cell in row if cell) != n_cols:
        return False
    return not require_number or any(is_number(cell) for cell in row)


def _first_complete(table: Table, n_cols: int, require_number: bool = False) -> int | None:
    for idx, row in enumerate(table):
        if _is_complete(row, n_cols, require_number):
            return idx
    return None


def split_table(table: Table, require_number: bool = True) -> SplitTable:
    """Separate the lead-in header rows from the contiguous data body.

    The body runs from the first to the last *complete* row (every column
    filled). With *require_number* the first complete row must also hold a
    numeric cell, so fully populated title rows stay in the header. Header
    and body are never empty: a blank row of the table's width stands in.
    """
    if not table:
        return SplitTable(header=[], data=[])

    n_rows = len(table)
    n_cols = len(table[0])

    first_row = _first_complete(table, n_cols, require_number) or 0
    last_row = n_rows - 1 - (_first_complete(table[::-1], n_cols) or 0)

    header = [list(row) for row in table[:first_row]]
    data = [list(row) for row in table[first_row : last_row + 1]]

    if not header:
        header = [[""] * n_cols]
    if not data:
        data = [[""] * n_cols]
    return SplitTable(header=header, data=data)


# ── Assembly ─────────────────────────────────────────────────────


def assemble(data: Table, column_names: Sequence[ColumnName], sheet: str = "") -> Table:
    """Prepend *column_names* to *data* and drop the ignored columns.

    Raises
    ------
    ColumnCountError
        If the number of names differs from the width of *data*.
    """
    width = len(data[0]) if data else len(column_names)
    if len(column_names) != width:
        raise ColumnCountError(width, len(column_names), sheet)

    names = list(column_names)
    table: list[list[str | ColumnName]] = [names, *data]
    kept = [col for col in transpose(table) if not _is_ignored(col[0])]
    return [[str(cell) for cell in row] for row in transpose(kept)]


def _is_ignored(name: str | ColumnName) -> bool:
    return isinstance(name, ColumnName) and name.ignored


def to_csv(table: Table) -> str:
    """Serialise *table*: every cell quoted, no escaping, no trailing newline."""
    return "\n".join(",".join(f'"{cell}"' for cell in row) for row in table)
