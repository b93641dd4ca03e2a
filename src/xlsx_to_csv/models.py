"""Data models / typed containers used across the package."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from numbers import Integral
from typing import Any

from xlsx_to_csv import IGNORED_MARKER

Row = list[str]
Table = list[Row]


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


# ── Cells ────────────────────────────────────────────────────────


class CellKind(str, Enum):
    string = "s"
    number = "n"
    boolean = "b"
    date = "d"
    error = "e"
    empty = "z"


@dataclass(frozen=True)
class Cell:
    """One spreadsheet cell as handed over by a workbook reader.

    ``text`` is the formatted display text, ``value`` the typed value
    (``str``, ``float``/``int``, ``bool``, ``datetime`` or ``None``).
    """

    text: str = ""
    value: Any = None
    kind: CellKind = CellKind.empty

    @property
    def is_empty(self) -> bool:
        return self.kind is CellKind.empty or (self.value is None and not self.text)


Grid = list[list[Cell | None]]


# ── Column names ─────────────────────────────────────────────────


@dataclass(frozen=True)
class ColumnName:
    """A resolved column name: either kept under ``label`` or ignored."""

    label: str = ""
    ignored: bool = False

    @classmethod
    def kept(cls, label: str) -> ColumnName:
        return cls(label=label)

    @classmethod
    def drop(cls) -> ColumnName:
        return cls(label=IGNORED_MARKER, ignored=True)

    def to_json(self) -> str | None:
        return None if self.ignored else self.label

    @classmethod
    def from_json(cls, value: str | None) -> ColumnName:
        return cls.drop() if value is None else cls.kept(value)

    def __str__(self) -> str:
        return self.label


# ── Split / reports ──────────────────────────────────────────────


@dataclass
class SplitTable:
    """Lead-in header block and contiguous data body of one sheet."""

    header: Table = field(default_factory=list)
    data: Table = field(default_factory=list)


@dataclass
class SheetReport:
    """Per-sheet summary emitted alongside every exported CSV.

    Contract invariant: ``columns_out == columns_in - len(ignored_columns)``.
    """

    sheet: str = ""
    rows_in: int = 0
    header_rows: int = 0
    data_rows: int = 0
    columns_in: int = 0
    columns_out: int = 0
    ignored_columns: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.header_rows = _to_non_negative_int(self.header_rows, "header_rows")
        self.data_rows = _to_non_negative_int(self.data_rows, "data_rows")
        self.columns_in = _to_non_negative_int(self.columns_in, "columns_in")
        self.columns_out = _to_non_negative_int(self.columns_out, "columns_out")
        self.ignored_columns = _to_string_list(self.ignored_columns, "ignored_columns")
        self.warnings = _to_string_list(self.warnings, "warnings")
        if self.columns_out != self.columns_in - len(self.ignored_columns):
            raise ValueError("columns_out must equal columns_in - len(ignored_columns)")


@dataclass
class SheetResult:
    """Everything produced for one sheet by :func:`pipeline.process_sheet`."""

    sheet: str
    table: Table
    column_names: list[ColumnName]
    csv_text: str
    report: SheetReport

    @property
    def is_empty(self) -> bool:
        return not self.column_names


# ── Saved configuration ──────────────────────────────────────────


def _to_name_lists(
    values: Mapping[str, Any] | None, field_name: str
) -> dict[str, list[str | None]]:
    if values is None:
        return {}
    if not isinstance(values, Mapping):
        raise TypeError(f"{field_name} must be a mapping of sheet name to column names")
    result: dict[str, list[str | None]] = {}
    for sheet, names in values.items():
        if isinstance(names, str) or not isinstance(names, Sequence):
            raise TypeError(f"{field_name}[{sheet!r}] must be a list")
        for name in names:
            if name is not None and not isinstance(name, str):
                raise TypeError(f"{field_name}[{sheet!r}] items must be strings or null")
        result[str(sheet)] = list(names)
    return result


def _to_string_map(values: Mapping[str, Any] | None, field_name: str) -> dict[str, str]:
    if values is None:
        return {}
    if not isinstance(values, Mapping):
        raise TypeError(f"{field_name} must be a mapping of sheet name to path")
    result: dict[str, str] = {}
    for key, value in values.items():
        if not isinstance(value, str):
            raise TypeError(f"{field_name}[{key!r}] must be a string")
        result[str(key)] = value
    return result


@dataclass
class RunConfig:
    """Choices of one run, saved as JSON to pre-fill the next run."""

    filename: str = ""
    sheets: list[str] = field(default_factory=list)
    german_format: bool = False
    column_names: dict[str, list[str | None]] = field(default_factory=dict)
    out: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.filename, str):
            raise TypeError("filename must be a string")
        if not isinstance(self.german_format, bool):
            raise TypeError("german_format must be a boolean")
        self.sheets = _to_string_list(self.sheets, "sheets")
        self.column_names = _to_name_lists(self.column_names, "column_names")
        self.out = _to_string_map(self.out, "out")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RunConfig:
        if not isinstance(data, Mapping):
            raise TypeError("configuration must be a JSON object")
        unknown = sorted(set(data) - {"filename", "sheets", "german_format", "column_names", "out"})
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(
            filename=data.get("filename", ""),
            sheets=data.get("sheets"),  # type: ignore[arg-type]
            german_format=data.get("german_format", False),
            column_names=data.get("column_names"),  # type: ignore[arg-type]
            out=data.get("out"),  # type: ignore[arg-type]
        )

    def names_for(self, sheet: str) -> list[ColumnName] | None:
        names = self.column_names.get(sheet)
        if names is None:
            return None
        return [ColumnName.from_json(name) for name in names]

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "sheets": list(self.sheets),
            "german_format": self.german_format,
            "column_names": {sheet: list(names) for sheet, names in self.column_names.items()},
            "out": dict(self.out),
        }
