"""Input shapes handed to the extractors.

The decoding collaborator decides once whether it has positional rows
(``Matrix``) or keyed row objects (``Records``); extractors only ever see the
list-of-lists produced by :func:`as_rows`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence, Union


@dataclass(frozen=True)
class Matrix:
    rows: Sequence[Any]


@dataclass(frozen=True)
class Records:
    rows: Sequence[Any]


Table = Union[Matrix, Records, Sequence[Any], None]


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _matrix_rows(rows: Sequence[Any]) -> list[list[Any]]:
    return [list(row) if _is_sequence(row) else [] for row in rows]


def _record_rows(rows: Sequence[Any]) -> list[list[Any]]:
    header: list[str] = []
    seen: set[str] = set()
    for row in rows:
        if not isinstance(row, Mapping):
            continue
        for key in row:
            if key not in seen:
                seen.add(key)
                header.append(key)
    if not header:
        return []
    matrix: list[list[Any]] = [list(header)]
    for row in rows:
        if isinstance(row, Mapping):
            matrix.append([row.get(key) for key in header])
        else:
            matrix.append([])
    return matrix


def as_rows(table: Table) -> list[list[Any]]:
    """Normalize any accepted table to a list of row lists.

    Plain sequences count as a Matrix. Anything that is not a sequence yields
    no rows, and a row that is not a sequence becomes an empty row.
    """
    if isinstance(table, Records):
        return _record_rows(table.rows) if _is_sequence(table.rows) else []
    if isinstance(table, Matrix):
        return _matrix_rows(table.rows) if _is_sequence(table.rows) else []
    if _is_sequence(table):
        return _matrix_rows(table)
    return []
