"""I/O helpers — load workbooks and configurations, write CSV / JSON artifacts."""

from __future__ import annotations

import json
import zipfile
from datetime import date, datetime, time
from numbers import Real
from pathlib import Path
from typing import Any, Callable, cast

import openpyxl
import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from xlsx_to_csv.cells import format_number, format_temporal
from xlsx_to_csv.models import Cell, CellKind, Grid, RunConfig

EXCEL_SUFFIXES = (".xlsx", ".xlsm", ".xltx", ".xltm")
SUPPORTED_SUFFIXES = (*EXCEL_SUFFIXES, ".xls", ".csv")

# ── Cells ────────────────────────────────────────────────────────


def cell_from_value(
    value: Any, number_format: str | None = None, *, is_error: bool = False
) -> Cell | None:
    """Build a :class:`Cell` from a typed value read out of a workbook."""
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    elif not isinstance(value, (str, bytes)):
        try:
            if pd.isna(value):
                return None
        except (TypeError, ValueError):
            pass
        item = getattr(value, "item", None)
        if callable(item):
            value = item()

    if isinstance(value, bool):
        return Cell(text="TRUE" if value else "FALSE", value=value, kind=CellKind.boolean)
    if isinstance(value, Real):
        return Cell(text=format_number(value, number_format), value=value, kind=CellKind.number)
    if isinstance(value, (datetime, date, time)):
        return Cell(text=format_temporal(value), value=value, kind=CellKind.date)
    text = str(value)
    if not text:
        return None
    kind = CellKind.error if is_error else CellKind.string
    return Cell(text=text, value=text, kind=kind)


def _pad_grid(grid: Grid) -> Grid:
    width = max((len(row) for row in grid), default=0)
    return [row + [None] * (width - len(row)) for row in grid]


# ── Loading ──────────────────────────────────────────────────────


def _load_excel(path: Path) -> dict[str, Grid]:
    try:
        workbook = openpyxl.load_workbook(path, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError) as exc:
        raise ValueError(f"Could not read workbook {path}: {exc}") from exc

    sheets: dict[str, Grid] = {}
    try:
        for worksheet in workbook.worksheets:
            grid: Grid = [
                [
                    cell_from_value(
                        cell.value,
                        getattr(cell, "number_format", None),
                        is_error=getattr(cell, "data_type", "") == "e",
                    )
                    for cell in row
                ]
                for row in worksheet.iter_rows()
            ]
            sheets[worksheet.title] = _pad_grid(grid)
    finally:
        workbook.close()
    return sheets


def _frame_to_grid(frame: pd.DataFrame) -> Grid:
    return _pad_grid(
        [[cell_from_value(value) for value in row] for row in frame.itertuples(index=False)]
    )


def _load_xls(path: Path) -> dict[str, Grid]:
    read_excel = cast(Callable[..., dict[str, pd.DataFrame]], getattr(pd, "read_excel"))
    try:
        frames = read_excel(path, sheet_name=None, header=None, engine="xlrd", dtype=object)
    except ImportError as exc:
        raise ValueError(
            "Unsupported .xls input unless 'xlrd' is installed. "
            "Either convert to .xlsx or add dependency: pip install xlrd"
        ) from exc
    return {str(name): _frame_to_grid(frame) for name, frame in frames.items()}


def _load_csv(path: Path, delimiter: str = ",") -> dict[str, Grid]:
    last_exc: Exception | None = None
    for encoding in ("utf-8-sig", "utf-8", "latin-1"):
        try:
            frame = pd.read_csv(
                path,
                header=None,
                dtype="string",
                sep=delimiter,
                engine="c",
                encoding=encoding,
                encoding_errors="strict",
                keep_default_na=False,
                na_filter=False,
            )
        except pd.errors.EmptyDataError:
            return {path.stem: []}
        except (UnicodeDecodeError, pd.errors.ParserError) as exc:
            last_exc = exc
            continue
        return {path.stem: _frame_to_grid(frame)}
    raise ValueError(f"Could not read CSV {path} (decode or parse failed)") from last_exc


def load_workbook(path: Path, delimiter: str = ",") -> dict[str, Grid]:
    """Load every sheet of *path* as a grid of cells, in workbook order.

    A CSV file yields a single sheet named after the file stem.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ValueError
        If *path* is a directory, the extension is not supported, or the
        file cannot be decoded.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    if path.is_dir():
        raise ValueError(f"Input path is a directory, not a file: {path}")

    suffix = path.suffix.lower()
    if suffix in EXCEL_SUFFIXES:
        return _load_excel(path)
    if suffix == ".xls":
        return _load_xls(path)
    if suffix == ".csv":
        return _load_csv(path, delimiter)
    raise ValueError(
        f"Unsupported file type: {suffix!r}. Use {', '.join(SUPPORTED_SUFFIXES)}"
    )


def load_config(path: Path) -> RunConfig:
    """Read a saved :class:`RunConfig` from the JSON file at *path*."""
    path = Path(path)
    if not path.exists():
        raise ValueError(f"Configuration not found: {path}")
    if path.is_dir():
        raise ValueError(f"Configuration is a directory, not a file: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ValueError(f"Cannot read configuration {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in configuration {path}: {exc}") from exc
    try:
        return RunConfig.from_dict(data)
    except TypeError as exc:
        raise ValueError(f"Invalid configuration {path}: {exc}") from exc


# ── Writing ──────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_text(path: Path, text: str) -> Path:
    """Write *text* to *path* in a single atomic replace."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(text, encoding="utf-8", newline="")
    tmp_path.replace(path)
    return path


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    return write_text(path, payload)
