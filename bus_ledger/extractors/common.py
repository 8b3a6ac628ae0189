from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Iterator, Optional, Sequence, Tuple, TypeVar

from bus_ledger.normalization import cell_text, is_blank, parse_date
from bus_ledger.shared import ABSENT, SUMMARY_MARKERS

T = TypeVar("T")


@dataclass(frozen=True)
class FillDown:
    """Values carried from earlier rows to cover visually merged cells."""

    date: str = ""
    driver: str = ""
    route: str = ""

    def advance(self, **changes: str) -> "FillDown":
        return replace(self, **changes)


Step = Callable[[Sequence[Any], FillDown], Tuple[Optional[T], FillDown]]


def walk_rows(rows: Sequence[Sequence[Any]], step: Step, start: FillDown | None = None) -> Iterator[T]:
    """Fold ``step`` over rows in order, yielding each observation it emits."""
    state = start or FillDown()
    for row in rows:
        observation, state = step(row, state)
        if observation is not None:
            yield observation


def cell_at(row: Sequence[Any], index: int) -> Any:
    if index == ABSENT or index >= len(row):
        return None
    return row[index]


def text_at(row: Sequence[Any], index: int) -> str:
    return cell_text(cell_at(row, index))


def row_is_empty(row: Sequence[Any]) -> bool:
    return all(is_blank(cell) for cell in row)


def row_text(row: Sequence[Any]) -> str:
    return " ".join(cell_text(cell) for cell in row).lower()


def has_marker(text: str, markers: Sequence[str] = SUMMARY_MARKERS) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in markers)


def is_summary_row(row: Sequence[Any], identifier_column: int) -> bool:
    """Totals rows: checked on the identifier cell, or the whole row when that cell is empty."""
    identifier = text_at(row, identifier_column)
    if identifier:
        return has_marker(identifier)
    return has_marker(row_text(row))


def scan_row_date(row: Sequence[Any]) -> str:
    for cell in row:
        found = parse_date(cell, lenient=True)
        if found:
            return found
    return ""


def resolve_date(
    row: Sequence[Any],
    column: int,
    state: FillDown,
    *,
    strict_column: bool = False,
) -> tuple[str, FillDown]:
    """Mapped column, then a lenient scan of the row, then the filled-down date."""
    found = parse_date(cell_at(row, column), lenient=not strict_column)
    if not found:
        found = scan_row_date(row)
    if found:
        return found, state.advance(date=found)
    return state.date, state
