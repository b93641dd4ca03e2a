from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import pandas as pd
import pytest
from openpyxl import Workbook

from xlsx_to_csv.io import (
    cell_from_value,
    load_config,
    load_workbook,
    write_json,
    write_text,
)
from xlsx_to_csv.models import Cell, CellKind


def _make_workbook(path: Path) -> Path:
    wb = Workbook()
    ws = wb.active
    ws.title = "Sales"
    ws.append(["Region", "Revenue", "Active"])
    ws.append(["North", 1234.5, True])
    ws["B2"].number_format = "#,##0.00"
    ws.append(["South\nEast", 7, False])
    other = wb.create_sheet("Notes")
    other["B3"] = "only cell"
    wb.save(path)
    return path


# ── cell_from_value ──────────────────────────────────────────────


def test_cell_from_value_types() -> None:
    assert cell_from_value(None) is None
    assert cell_from_value("") is None
    assert cell_from_value(float("nan")) is None
    assert cell_from_value("x") == Cell(text="x", value="x", kind=CellKind.string)
    assert cell_from_value(True) == Cell(text="TRUE", value=True, kind=CellKind.boolean)
    assert cell_from_value(1234.5, "#,##0.00") == Cell(
        text="1,234.50", value=1234.5, kind=CellKind.number
    )
    assert cell_from_value("#DIV/0!", is_error=True).kind is CellKind.error  # type: ignore[union-attr]


def test_cell_from_value_unwraps_numpy_and_pandas_scalars() -> None:
    number = cell_from_value(pd.Series([5], dtype="int64").iloc[0])
    stamp = cell_from_value(pd.Timestamp("2024-01-02"))

    assert number == Cell(text="5", value=5, kind=CellKind.number)
    assert stamp is not None
    assert stamp.kind is CellKind.date
    assert stamp.value == datetime(2024, 1, 2)
    assert cell_from_value(pd.NA) is None


# ── load_workbook ────────────────────────────────────────────────


def test_load_workbook_xlsx_reads_sheets_in_order(tmp_path: Path) -> None:
    path = _make_workbook(tmp_path / "book.xlsx")

    sheets = load_workbook(path)

    assert list(sheets) == ["Sales", "Notes"]
    sales = sheets["Sales"]
    assert len(sales) == 3
    assert sales[1][1] == Cell(text="1,234.50", value=1234.5, kind=CellKind.number)
    assert sales[1][2] == Cell(text="TRUE", value=True, kind=CellKind.boolean)
    assert sales[2][0] == Cell(text="South\nEast", value="South\nEast", kind=CellKind.string)


def test_load_workbook_xlsx_pads_to_used_range(tmp_path: Path) -> None:
    path = _make_workbook(tmp_path / "book.xlsx")

    notes = load_workbook(path)["Notes"]

    assert all(len(row) == len(notes[0]) for row in notes)
    assert notes[-1][-1] == Cell(text="only cell", value="only cell", kind=CellKind.string)


def test_load_workbook_csv_yields_single_string_sheet(tmp_path: Path) -> None:
    path = tmp_path / "plain.csv"
    path.write_text('title,\nname,amount\n"Smith, J",12\n', encoding="utf-8")

    sheets = load_workbook(path)

    assert list(sheets) == ["plain"]
    grid = sheets["plain"]
    assert grid[0] == [Cell(text="title", value="title", kind=CellKind.string), None]
    assert grid[2][0] is not None and grid[2][0].text == "Smith, J"
    assert grid[2][1] == Cell(text="12", value="12", kind=CellKind.string)


def test_load_workbook_csv_latin1_fallback(tmp_path: Path) -> None:
    path = tmp_path / "latin1.csv"
    path.write_bytes("name,city\nAndré,Paris\n".encode("latin-1"))

    grid = load_workbook(path)["latin1"]

    assert grid[1][0] is not None and grid[1][0].text == "André"


def test_load_workbook_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="not found"):
        load_workbook(tmp_path / "missing.xlsx")


def test_load_workbook_rejects_directory(tmp_path: Path) -> None:
    directory = tmp_path / "fake.xlsx"
    directory.mkdir()

    with pytest.raises(ValueError, match="not a file"):
        load_workbook(directory)


def test_load_workbook_rejects_unknown_extension(tmp_path: Path) -> None:
    path = tmp_path / "data.ods"
    path.write_bytes(b"x")

    with pytest.raises(ValueError, match="Unsupported file type"):
        load_workbook(path)


def test_load_workbook_rejects_corrupt_xlsx(tmp_path: Path) -> None:
    path = tmp_path / "broken.xlsx"
    path.write_bytes(b"not a zip file")

    with pytest.raises(ValueError, match="Could not read workbook"):
        load_workbook(path)


def test_load_workbook_xls_missing_xlrd_raises_friendly_error(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    xls_path = tmp_path / "legacy.xls"
    xls_path.write_bytes(b"x")

    def _fake_read_excel(path: Path, **kwargs: object) -> pd.DataFrame:
        del path, kwargs
        raise ImportError("No module named xlrd")

    monkeypatch.setattr(pd, "read_excel", _fake_read_excel)

    with pytest.raises(ValueError, match="xlrd"):
        load_workbook(xls_path)


def test_load_workbook_xls_uses_xlrd_for_every_sheet(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    xls_path = tmp_path / "legacy.xls"
    xls_path.write_bytes(b"x")
    calls: list[dict[str, object]] = []

    def _fake_read_excel(path: Path, **kwargs: object) -> dict[str, pd.DataFrame]:
        calls.append({"path": path, **kwargs})
        return {"S1": pd.DataFrame([["a", 1.5], [None, 2]], dtype=object)}

    monkeypatch.setattr(pd, "read_excel", _fake_read_excel)

    sheets = load_workbook(xls_path)

    assert calls[0]["engine"] == "xlrd"
    assert calls[0]["sheet_name"] is None
    assert calls[0]["header"] is None
    assert sheets["S1"][1][0] is None
    assert sheets["S1"][0][1] == Cell(text="1.5", value=1.5, kind=CellKind.number)


# ── load_config ──────────────────────────────────────────────────


def test_load_config_reads_json(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"sheets": ["S1"], "column_names": {"S1": ["a", None]}}))

    config = load_config(path)

    assert config.sheets == ["S1"]
    assert config.column_names == {"S1": ["a", None]}


def test_load_config_errors_are_value_errors(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="not found"):
        load_config(tmp_path / "missing.json")

    bad_json = tmp_path / "bad.json"
    bad_json.write_text("{not json")
    with pytest.raises(ValueError, match="Invalid JSON"):
        load_config(bad_json)

    wrong_type = tmp_path / "wrong.json"
    wrong_type.write_text(json.dumps({"sheets": "S1"}))
    with pytest.raises(ValueError, match="Invalid configuration"):
        load_config(wrong_type)

    with pytest.raises(ValueError, match="directory"):
        load_config(tmp_path)


# ── writing ──────────────────────────────────────────────────────


def test_write_text_is_atomic_and_verbatim(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "out.csv"

    out = write_text(path, '"a","b"\n"1","2"')

    assert out == path
    assert path.read_bytes() == b'"a","b"\n"1","2"'
    assert not path.with_suffix(path.suffix + ".tmp").exists()


def test_write_json_is_deterministic(tmp_path: Path) -> None:
    path = tmp_path / "config.json"

    write_json(path, {"b": 1, "a": Path("x/y"), "when": datetime(2024, 1, 2)})

    text = path.read_text(encoding="utf-8")
    assert text.endswith("\n")
    assert '"a": "x/y"' in text
    assert text.index('"a"') < text.index('"b"') < text.index('"when"')


def test_write_json_raises_on_unknown_type(tmp_path: Path) -> None:
    class Unknown:
        pass

    with pytest.raises(TypeError, match="not JSON serializable"):
        write_json(tmp_path / "x.json", {"x": Unknown()})
