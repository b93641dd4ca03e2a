"""xlsx-to-csv — Export clean, rectangular CSV tables from spreadsheet sheets."""

__version__ = "0.2.0"

IGNORE_KEYWORDS: frozenset[str] = frozenset({"no", "-"})
"""Answers (case-insensitive) that mark a column as ignored."""

IGNORED_MARKER = "ignored"
