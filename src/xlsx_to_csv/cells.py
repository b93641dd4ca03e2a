"""Cell normalisation + rendering a cell grid to CSV text — pure functions."""

from __future__ import annotations

import math
import re
from dataclasses import replace
from datetime import date, datetime, time

from xlsx_to_csv.models import Cell, CellKind, Grid

# ── Display text ─────────────────────────────────────────────────


_DECIMALS_RE = re.compile(r"\.(0+)")
_FIXED_FORMAT_RE = re.compile(r"^0(\.0+)?$")
_PLACEHOLDER = "@"


def format_general(value: float | int) -> str:
    """Render *value* the way a ``General`` number format shows it."""
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return str(value)
        if value.is_integer():
            return str(int(value))
    return str(value)


def format_number(value: float | int, number_format: str | None = None) -> str:
    """Return the display text of *value* under an Excel *number_format*.

    Only the separators and the number of decimals are honoured; everything
    else falls back to :func:`format_general`.
    """
    section = (number_format or "General").split(";", 1)[0]
    decimals_match = _DECIMALS_RE.search(section)
    decimals = len(decimals_match.group(1)) if decimals_match else 0
    if "#,##0" in section:
        return f"{value:,.{decimals}f}"
    if _FIXED_FORMAT_RE.match(section):
        return f"{value:.{decimals}f}"
    return format_general(value)


def format_temporal(value: date | datetime | time) -> str:
    if isinstance(value, datetime) and value.time() == time(0, 0):
        return value.date().isoformat()
    return value.isoformat()


# ── Normalisation ────────────────────────────────────────────────


def remove_line_breaks(text: str) -> str:
    """Return *text* on a single line: ``\\n`` becomes a space, ``\\r`` is dropped."""
    return text.replace("\n", " ").replace("\r", "")


def to_english_format(text: str) -> str:
    """Swap the roles of ``,`` and ``.`` (``1.234,56`` -> ``1,234.56``)."""
    return text.replace(",", _PLACEHOLDER).replace(".", ",").replace(_PLACEHOLDER, ".")


def try_parse_number(text: str) -> float | None:
    """Parse *text* as a number after removing thousands commas.

    Returns ``None`` when *text* is not numeric.
    """
    cleaned = text.replace(",", "").strip()
    if not cleaned:
        return None
    try:
        result = float(cleaned)
    except ValueError:
        return None
    if math.isnan(result):
        return None
    return result


def parse_number(text: str) -> float:
    """Lenient variant of :func:`try_parse_number`: failures become NaN."""
    result = try_parse_number(text)
    return math.nan if result is None else result


def normalize_cell(cell: Cell | None, german_format: bool = False) -> Cell | None:
    """Flatten line breaks in text cells and optionally convert German numbers."""
    if cell is None or cell.is_empty:
        return cell

    if cell.kind is CellKind.string:
        value = remove_line_breaks(cell.value) if isinstance(cell.value, str) else cell.value
        return replace(cell, text=remove_line_breaks(cell.text), value=value)

    if german_format and cell.kind is CellKind.number and cell.text:
        text = to_english_format(cell.text)
        return replace(cell, text=text, value=parse_number(text))

    return cell


def normalize_grid(grid: Grid, german_format: bool = False) -> Grid:
    return [[normalize_cell(cell, german_format) for cell in row] for row in grid]


# ── Rendering ────────────────────────────────────────────────────


def render_cell(cell: Cell | None) -> str:
    """Return the CSV field text of *cell* (unquoted).

    Numbers are rendered from their raw value; a number whose value could not
    be parsed keeps its display text.
    """
    if cell is None or cell.is_empty:
        return ""
    if cell.kind is CellKind.number and isinstance(cell.value, (int, float)):
        if isinstance(cell.value, float) and math.isnan(cell.value):
            return cell.text
        return format_general(cell.value)
    if cell.kind is CellKind.boolean and isinstance(cell.value, bool):
        return "TRUE" if cell.value else "FALSE"
    if cell.kind is CellKind.date and isinstance(cell.value, (date, datetime, time)):
        return format_temporal(cell.value)
    return cell.text


def quote_field(text: str) -> str:
    if any(char in text for char in (",", '"', "\n", "\r")):
        return '"' + text.replace('"', '""') + '"'
    return text


def grid_to_csv(grid: Grid) -> str:
    """Render *grid* as CSV text, one line per non-blank row."""
    lines: list[str] = []
    for row in grid:
        fields = [render_cell(cell) for cell in row]
        if not any(fields):
            continue
        lines.append(",".join(quote_field(text) for text in fields))
    return "\n".join(lines)
