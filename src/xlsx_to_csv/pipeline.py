"""Per-sheet pipeline — pure functions, no side effects.

Grid of cells -> normalised CSV text -> rows -> trimmed table -> header/data
split -> column names -> assembled table -> CSV text.
"""

from __future__ import annotations

from collections.abc import Sequence

from xlsx_to_csv.cells import grid_to_csv, normalize_grid
from xlsx_to_csv.models import ColumnName, Grid, SheetReport, SheetResult, Table
from xlsx_to_csv.naming import AskName, ConfirmReuse, resolve_column_names
from xlsx_to_csv.tabular import assemble, drop_empty, pad_rows, parse_lines, split_table, to_csv


def extract_table(grid: Grid, *, german_format: bool = False) -> Table:
    """Return the trimmed, rectangular string table of one sheet."""
    text = grid_to_csv(normalize_grid(grid, german_format))
    return drop_empty(pad_rows(parse_lines(text)))


def process_sheet(
    sheet_name: str,
    grid: Grid,
    *,
    ask_name: AskName,
    german_format: bool = False,
    confirm_reuse: ConfirmReuse | None = None,
    default_names: Sequence[ColumnName | None] | None = None,
    previous_names: Sequence[ColumnName] | None = None,
) -> SheetResult:
    """Turn one sheet's *grid* into a finished CSV table.

    The returned ``column_names`` are meant to be passed back in as
    *previous_names* for the next sheet.
    """
    table = extract_table(grid, german_format=german_format)
    if not table:
        report = SheetReport(sheet=sheet_name, warnings=["Sheet has no data"])
        return SheetResult(
            sheet=sheet_name, table=[], column_names=[], csv_text="", report=report
        )

    parts = split_table(table)
    names = resolve_column_names(
        sheet_name,
        parts.header,
        ask_name,
        default_names=default_names,
        previous_names=previous_names,
        confirm_reuse=confirm_reuse,
    )
    result_table = assemble(parts.data, names, sheet_name)

    ignored = [f"#{j + 1}" for j, name in enumerate(names) if name.ignored]
    warnings: list[str] = []
    if not any(parts.header[0]) and len(parts.header) == 1:
        warnings.append("No header rows detected above the data")
    if len(ignored) == len(names):
        warnings.append("All columns are ignored; the CSV holds no data")

    report = SheetReport(
        sheet=sheet_name,
        rows_in=len(table),
        header_rows=sum(1 for row in parts.header if any(row)),
        data_rows=sum(1 for row in parts.data if any(row)),
        columns_in=len(names),
        columns_out=len(names) - len(ignored),
        ignored_columns=ignored,
        warnings=warnings,
    )
    return SheetResult(
        sheet=sheet_name,
        table=result_table,
        column_names=names,
        csv_text=to_csv(result_table),
        report=report,
    )
