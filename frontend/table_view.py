from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence

import pandas as pd

Row = dict[str, Any]


@dataclass(frozen=True)
class ColumnDef:
    key: str
    label: str
    sortable: bool = True


@dataclass(frozen=True)
class SortState:
    column: str
    descending: bool = False


def generate_columns(headers: Sequence[str]) -> list[ColumnDef]:
    """One sortable column per header, in header order."""
    return [ColumnDef(key=h, label=h) for h in headers]


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"{value:,}"
    if isinstance(value, float):
        # up to three fraction digits, trailing zeros dropped
        text = f"{value:,.3f}".rstrip("0").rstrip(".")
        return "0" if text in ("-0", "") else text
    return str(value)


def cell_alignment(value: Any) -> str:
    return "right" if is_number(value) else "left"


def next_sort(current: Optional[SortState], column: str) -> SortState:
    """Header click: ascending first, then flip on every further click."""
    if current is not None and current.column == column and not current.descending:
        return SortState(column, descending=True)
    return SortState(column, descending=False)


def sort_rows(rows: Sequence[Row], column: str, descending: bool = False) -> list[Row]:
    # numbers sort before text and compare numerically; empty cells always go last
    present = [r for r in rows if r.get(column) is not None]
    empty = [r for r in rows if r.get(column) is None]

    def key(row: Row):
        value = row[column]
        if is_number(value):
            return (0, value, "")
        return (1, 0, format_cell(value))

    return sorted(present, key=key, reverse=descending) + empty


def to_display_frame(rows: Sequence[Row], columns: Sequence[ColumnDef]) -> pd.DataFrame:
    """Formatted, string-valued frame for st.dataframe."""
    labels = [c.label for c in columns]
    return pd.DataFrame(
        [[format_cell(row.get(c.key)) for c in columns] for row in rows],
        columns=pd.Index(labels, dtype=object),
        dtype=object,
    )


def style_display_frame(rows: Sequence[Row], columns: Sequence[ColumnDef]):
    """Right-align numeric cells of the display frame."""
    frame = to_display_frame(rows, columns)
    alignments = pd.DataFrame(
        [[f"text-align: {cell_alignment(row.get(c.key))}" for c in columns] for row in rows],
        index=frame.index,
        columns=frame.columns,
    )
    return frame.style.apply(lambda _: alignments, axis=None)
