"""CLI entry point for xlsx-to-csv."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table as RichTable

from xlsx_to_csv import __version__
from xlsx_to_csv.io import load_config, load_workbook, write_json, write_text
from xlsx_to_csv.models import ColumnName, Grid, RunConfig, SheetReport
from xlsx_to_csv.naming import default_names_for
from xlsx_to_csv.pipeline import extract_table, process_sheet
from xlsx_to_csv.prompts import Prompter
from xlsx_to_csv.tabular import ColumnCountError, split_table
from xlsx_to_csv.utils import default_output_path, replace_extension

app = typer.Typer(
    name="xlsx-to-csv",
    help="xlsx-to-csv — Export clean CSV tables from spreadsheet sheets.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()

SHEET_COLORS = ("green", "yellow")


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {escape(msg)}")


def _fail(msg: str, code: int = 2) -> NoReturn:
    _err(msg)
    raise typer.Exit(code=code)


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"xlsx-to-csv v{__version__}")
        raise typer.Exit()


def _load_sheets(input_file: Path) -> dict[str, Grid]:
    try:
        sheets = load_workbook(input_file)
    except (FileNotFoundError, ValueError, OSError) as exc:
        _fail(str(exc))
    if not sheets:
        _fail(f"Workbook has no sheets: {input_file}")
    return sheets


def _check_requested_sheets(available: Sequence[str], requested: Sequence[str]) -> list[str]:
    unknown = [name for name in requested if name not in available]
    if unknown:
        raise ValueError(
            f"Unknown sheet(s): {', '.join(unknown)} (available: {', '.join(available)})"
        )
    return list(dict.fromkeys(requested))


def _summary_table(reports: Sequence[SheetReport], out: dict[str, str]) -> RichTable:
    tbl = RichTable(title="Export Summary", show_lines=True)
    tbl.add_column("Sheet", style="bold")
    tbl.add_column("Header rows")
    tbl.add_column("Data rows")
    tbl.add_column("Columns")
    tbl.add_column("Ignored")
    tbl.add_column("Output")
    for report in reports:
        tbl.add_row(
            escape(report.sheet),
            str(report.header_rows),
            str(report.data_rows),
            f"{report.columns_out}/{report.columns_in}",
            ", ".join(report.ignored_columns) or "[green]none[/green]",
            escape(out.get(report.sheet, "[skipped]")),
        )
    return tbl


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """xlsx-to-csv CLI."""


# ── run command ──────────────────────────────────────────────────


@app.command()
def run(
    input_file: Path | None = typer.Option(
        None, "--input", "-i",
        help="Path to the XLSX, XLS or CSV workbook (asked for when omitted).",
    ),
    config_file: Path | None = typer.Option(
        None, "--config", "-c",
        help="JSON configuration of a previous run used to pre-fill answers.",
    ),
    sheet: list[str] | None = typer.Option(
        None, "--sheet", "-s",
        help="Sheet to export (repeatable). Asked for when omitted.",
    ),
    german: bool | None = typer.Option(
        None, "--german/--no-german",
        help=(
            "Number cells show German display text (1.234,56) and are converted to "
            "1,234.56. English display text such as 3.14 is misread as 314."
        ),
    ),
    save_config: Path | None = typer.Option(
        None, "--save-config",
        help="Write the choices of this run to a JSON configuration file.",
    ),
    yes: bool = typer.Option(
        False, "--yes", "-y",
        help="Accept every default without prompting.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; prompts are still shown.",
    ),
) -> None:
    """Export the selected sheets of a workbook as CSV files."""
    echo = _printer(quiet)
    prompter = Prompter(console, assume_defaults=yes)

    if input_file is None:
        if yes:
            _fail("--input is required together with --yes")
        input_file = Path(prompter.ask("Path to the workbook (.xlsx, .xls or .csv)"))

    config = RunConfig()
    try:
        if config_file is None and prompter.confirm(
            "Do you want to use an external configuration to pre-fill fields?"
        ):
            config_file = Path(
                prompter.ask(
                    "Path to the configuration file",
                    default=replace_extension(input_file, ".json"),
                )
            )
        if config_file is not None:
            config = load_config(config_file)
    except ValueError as exc:
        _fail(str(exc))

    if not quiet:
        console.print(Panel(
            f"[bold]xlsx-to-csv[/bold] v{__version__}\n"
            f"Input:  {escape(str(input_file))}"
            + (f"\nConfig: {escape(str(config_file))}" if config_file else ""),
            title="Export Start", border_style="blue",
        ))

    # ── Load ─────────────────────────────────────────────────────
    echo("[blue]>[/blue] Loading workbook …")
    sheets_by_name = _load_sheets(input_file)
    available = list(sheets_by_name)
    echo(f"  {len(available)} sheet(s): {escape(', '.join(available))}")

    try:
        selected = (
            _check_requested_sheets(available, sheet)
            if sheet
            else prompter.choose_sheets(available, config.sheets)
        )
    except ValueError as exc:
        _fail(str(exc))

    german_format = german if german is not None else prompter.confirm(
        "Are numbers formatted in German and do you want them to be converted "
        "to English-style numbers? [dim](English numbers such as 3.14 would be "
        "misread as 314)[/dim]",
        default=config.german_format,
    )

    # ── Export sheets, one at a time ─────────────────────────────
    previous: list[ColumnName] | None = None
    column_names: dict[str, list[str | None]] = {}
    out: dict[str, str] = {}
    reports: list[SheetReport] = []
    try:
        for position, sheet_name in enumerate(selected):
            prompter.color = SHEET_COLORS[position % len(SHEET_COLORS)]
            echo(f"[blue]>[/blue] Sheet [{prompter.color}]{escape(sheet_name)}[/{prompter.color}] …")
            result = process_sheet(
                sheet_name,
                sheets_by_name[sheet_name],
                ask_name=prompter.ask_column_name,
                german_format=german_format,
                confirm_reuse=prompter.confirm_reuse,
                default_names=config.names_for(sheet_name),
                previous_names=previous,
            )
            reports.append(result.report)
            if not quiet:
                for w in result.report.warnings:
                    console.print(f"  [yellow]![/yellow] {escape(w)}")
            if result.is_empty:
                continue

            previous = result.column_names
            column_names[sheet_name] = [name.to_json() for name in result.column_names]
            out_path = Path(
                prompter.ask_output_path(
                    sheet_name,
                    config.out.get(sheet_name) or default_output_path(input_file, sheet_name),
                )
            )
            write_text(out_path, result.csv_text)
            out[sheet_name] = str(out_path)
            echo(f"  {len(result.table)} row(s) -> {escape(str(out_path))}")
    except ColumnCountError as exc:
        _fail(f"{exc}. Check the column names stored in the configuration.")
    except typer.Exit:
        raise
    except OSError as exc:
        _fail(f"Cannot write output: {exc}")
    except Exception as exc:
        _fail(f"Unexpected internal error: {exc}", code=1)

    # ── Configuration ────────────────────────────────────────────
    new_config = RunConfig(
        filename=str(input_file),
        sheets=selected,
        german_format=german_format,
        column_names={**config.column_names, **column_names},
        out={**config.out, **out},
    )
    target = save_config
    if target is None and prompter.confirm("Do you want to save the specified configuration?"):
        target = Path(
            prompter.ask(
                "Name of the config file", default=replace_extension(input_file, ".json")
            )
        )
    if target is not None:
        try:
            write_json(target, new_config.to_dict())
        except OSError as exc:
            _fail(f"Cannot write configuration: {exc}")
        echo(f"  Config -> {escape(str(target))}")

    if not quiet:
        console.print(_summary_table(reports, out))
        console.print(Panel(
            f"[green]Done[/green] — {len(out)} CSV file(s) written",
            title="Export Complete", border_style="green",
        ))


# ── preview command ──────────────────────────────────────────────


@app.command()
def preview(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to the XLSX, XLS or CSV workbook.",
        exists=True, readable=True,
    ),
    sheet: list[str] | None = typer.Option(
        None, "--sheet", "-s",
        help="Sheet to preview (repeatable). Defaults to all sheets.",
    ),
    german: bool = typer.Option(
        False, "--german/--no-german",
        help=(
            "Number cells show German display text (1.234,56) and are converted to "
            "1,234.56. English display text such as 3.14 is misread as 314."
        ),
    ),
) -> None:
    """Show the detected header/data split of each sheet without writing files."""
    sheets_by_name = _load_sheets(input_file)
    available = list(sheets_by_name)
    try:
        selected = _check_requested_sheets(available, sheet) if sheet else available
    except ValueError as exc:
        _fail(str(exc))

    for sheet_name in selected:
        table = extract_table(sheets_by_name[sheet_name], german_format=german)
        if not table:
            console.print(f"[yellow]![/yellow] {escape(sheet_name)}: sheet has no data")
            continue
        parts = split_table(table)
        first_row = parts.data[0]
        tbl = RichTable(
            title=f"{escape(sheet_name)} — {len(parts.data)} data row(s)",
            show_lines=True,
        )
        tbl.add_column("#", style="bold")
        tbl.add_column("Suggested name")
        tbl.add_column("First data row")
        for j, name in enumerate(default_names_for(parts.header)):
            tbl.add_row(f"{j + 1:02d}", escape(name), escape(first_row[j]))
        console.print(tbl)
