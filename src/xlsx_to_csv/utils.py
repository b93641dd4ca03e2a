"""Shared helpers — output file naming."""

from __future__ import annotations

from pathlib import Path


def replace_extension(filename: str | Path, suffix: str) -> str:
    """Return *filename* with its extension replaced by *suffix*.

    >>> replace_extension("data/report.xlsx", "_Sheet1.csv")
    'data/report_Sheet1.csv'
    """
    path = Path(filename)
    return str(path.with_name(path.stem + suffix))


def safe_sheet_name(name: str) -> str:
    """Make a sheet name usable inside a file name."""
    return name.replace("/", "-").replace(" - ", "-").replace(" ", "-")


def default_output_path(workbook: str | Path, sheet: str) -> str:
    return replace_extension(workbook, f"_{safe_sheet_name(sheet)}.csv")
