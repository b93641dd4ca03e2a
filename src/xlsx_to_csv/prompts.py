"""Interactive prompts (rich) — the only place that talks to the operator."""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from xlsx_to_csv.models import ColumnName


def parse_sheet_selection(answer: str, sheet_names: Sequence[str]) -> list[str]:
    """Parse ``"1, 3"`` or ``"Sales, 3"`` into sheet names, in workbook order.

    Raises
    ------
    ValueError
        If a token is neither a valid 1-based number nor a sheet name.
    """
    picked: set[str] = set()
    for token in answer.split(","):
        token = token.strip()
        if not token:
            continue
        if token in sheet_names:
            picked.add(token)
        elif token.isdigit() and 1 <= int(token) <= len(sheet_names):
            picked.add(sheet_names[int(token) - 1])
        else:
            raise ValueError(f"Unknown sheet: {token!r}")
    return [name for name in sheet_names if name in picked]


class Prompter:
    """Ask the operator through *console*; with *assume_defaults* never ask."""

    def __init__(self, console: Console, *, assume_defaults: bool = False) -> None:
        self.console = console
        self.assume_defaults = assume_defaults
        self.color = "green"

    def confirm(self, message: str, *, default: bool = False) -> bool:
        if self.assume_defaults:
            return default
        return Confirm.ask(message, default=default, console=self.console)

    def ask(self, message: str, *, default: str | None = None) -> str:
        if self.assume_defaults:
            return default or ""
        if default is None:
            return Prompt.ask(message, console=self.console)
        return Prompt.ask(message, default=default, console=self.console)

    def choose_sheets(
        self, sheet_names: Sequence[str], defaults: Sequence[str] | None = None
    ) -> list[str]:
        chosen = [name for name in sheet_names if name in (defaults or ())] or list(sheet_names)
        if self.assume_defaults:
            return chosen

        for idx, name in enumerate(sheet_names, start=1):
            self.console.print(f"  {idx:>2}. {escape(name)}")
        default_answer = ", ".join(str(sheet_names.index(name) + 1) for name in chosen)
        while True:
            answer = self.ask("Select sheets (numbers or names, comma-separated)", default=default_answer)
            try:
                selected = parse_sheet_selection(answer, sheet_names)
            except ValueError as exc:
                self.console.print(f"[red]x[/red] {escape(str(exc))}")
                continue
            if selected:
                return selected
            self.console.print("[red]x[/red] Select at least one sheet")

    def _sheet_prefix(self, sheet: str) -> str:
        return f"[{self.color}]{escape(sheet)}:[/{self.color}]"

    def confirm_reuse(self, sheet: str, previous: Sequence[ColumnName]) -> bool:
        names = ", ".join(escape(str(name)) for name in previous)
        return self.confirm(
            f"{self._sheet_prefix(sheet)} Reuse the column names of the previous table? ({names})",
            default=False,
        )

    def ask_column_name(self, sheet: str, index: int, default: str) -> str:
        return self.ask(
            f"{self._sheet_prefix(sheet)} Name of column #{index + 1:02d} "
            '[dim](type "-" to ignore)[/dim]',
            default=default,
        )

    def ask_output_path(self, sheet: str, default: str) -> str:
        return self.ask(f"{self._sheet_prefix(sheet)} Name of result file", default=default)
