"""Column naming — reconcile operator input, saved defaults and previous names."""

from __future__ import annotations

from collections.abc import Callable, Sequence

from xlsx_to_csv import IGNORE_KEYWORDS
from xlsx_to_csv.models import ColumnName, Table
from xlsx_to_csv.tabular import ColumnCountError, transpose

AskName = Callable[[str, int, str], str]
"""``ask(sheet_name, column_index, default) -> answer``."""

ConfirmReuse = Callable[[str, Sequence[ColumnName]], bool]
"""``confirm(sheet_name, previous_names) -> reuse?``."""

IGNORE_HINT = "-"


def is_ignore_keyword(answer: str) -> bool:
    return answer.strip().lower() in IGNORE_KEYWORDS


def header_width(header: Table) -> int:
    return len(header[0]) if header else 0


def derive_default(heading: Sequence[str]) -> str:
    """Join the non-empty header cells of one column with ``" / "``."""
    parts = [cell.replace("\r", "").strip() for cell in heading if cell]
    return " / ".join(part for part in parts if part)


def placeholder_name(index: int) -> str:
    return f"col_{index + 1}"


def default_names_for(
    header: Table, default_names: Sequence[ColumnName | None] | None = None
) -> list[str]:
    """Return the suggested answer for every column of *header*.

    An explicit default wins, then the joined header cells, then a positional
    placeholder. An ignored default is suggested as ``-``.
    """
    suggestions: list[str] = []
    for j, heading in enumerate(transpose(header)):
        explicit = default_names[j] if default_names and j < len(default_names) else None
        if explicit is not None:
            suggestions.append(IGNORE_HINT if explicit.ignored else explicit.label)
            continue
        suggestions.append(derive_default(heading) or placeholder_name(j))
    return suggestions


def _ignored_defaults(
    width: int, default_names: Sequence[ColumnName | None] | None
) -> list[bool]:
    flags = [False] * width
    for j, name in enumerate(default_names or ()):
        if j < width and name is not None:
            flags[j] = name.ignored
    return flags


def to_column_name(answer: str, default: str, *, default_ignored: bool = False) -> ColumnName:
    """Turn one operator *answer* into a :class:`ColumnName`.

    A blank answer, or one that repeats *default*, accepts the default as it
    stands: kept under its label, or dropped when *default_ignored*. Only a
    typed keyword ignores a column.
    """
    typed = answer.strip()
    if not typed or typed == default.strip():
        return ColumnName.drop() if default_ignored else ColumnName.kept(default)
    if is_ignore_keyword(typed):
        return ColumnName.drop()
    return ColumnName.kept(typed)


def resolve_column_names(
    sheet_name: str,
    header: Table,
    ask_name: AskName,
    *,
    default_names: Sequence[ColumnName | None] | None = None,
    previous_names: Sequence[ColumnName] | None = None,
    confirm_reuse: ConfirmReuse | None = None,
) -> list[ColumnName]:
    """Return one :class:`ColumnName` per column of *header*, in column order.

    When there are no *default_names* but *previous_names* of the same width,
    *confirm_reuse* decides whether to take them verbatim without asking
    per column.

    Raises
    ------
    ColumnCountError
        If *default_names* is given with a length other than the header width.
    """
    width = header_width(header)
    if default_names is not None and len(default_names) != width:
        raise ColumnCountError(width, len(default_names), sheet_name)

    if (
        default_names is None
        and previous_names
        and len(previous_names) == width
        and confirm_reuse is not None
        and confirm_reuse(sheet_name, previous_names)
    ):
        return list(previous_names)

    ignored = _ignored_defaults(width, default_names)
    answers: dict[int, ColumnName] = {}
    for j, default in enumerate(default_names_for(header, default_names)):
        answers[j] = to_column_name(
            ask_name(sheet_name, j, default), default, default_ignored=ignored[j]
        )
    return [answers[j] for j in sorted(answers)]
