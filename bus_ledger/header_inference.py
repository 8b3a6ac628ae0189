"""Keyword-scored header detection.

Every candidate row in the scan window is matched against a profile of role
rules. A row's score is the sum of the weights of the score groups it
satisfies; the highest-scoring row wins and ties keep the earliest row.
Rows missing a required role are never chosen.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from bus_ledger.normalization import cell_text, identity_key
from bus_ledger.shared import ABSENT

logger = logging.getLogger(__name__)

MATCH_MODES = ("contains", "word", "compact")


@dataclass(frozen=True)
class RoleRule:
    high: tuple[str, ...] = ()
    low: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    # tiered: try every cell against `high` before any cell against `low`.
    # Otherwise a single left-to-right pass accepts either tier.
    tiered: bool = True
    match: str = "contains"

    def __post_init__(self) -> None:
        if self.match not in MATCH_MODES:
            raise ValueError(f"Unknown match mode: {self.match}")


@dataclass(frozen=True)
class ScoreGroup:
    roles: tuple[str, ...]
    weight: int


@dataclass(frozen=True)
class HeaderProfile:
    name: str
    roles: Mapping[str, RoleRule]
    score_groups: tuple[ScoreGroup, ...]
    required: tuple[str, ...] = ()
    scan_rows: int = 20


@dataclass(frozen=True)
class ColumnMapping:
    columns: Mapping[str, int] = field(default_factory=dict)

    def get(self, role: str) -> int:
        return self.columns.get(role, ABSENT)

    def has(self, role: str) -> bool:
        return self.get(role) != ABSENT

    def to_dict(self) -> dict[str, int]:
        return dict(self.columns)


@dataclass(frozen=True)
class HeaderMatch:
    header_index: int
    mapping: ColumnMapping
    score: int

    @property
    def data_start(self) -> int:
        return self.header_index + 1


def _prepare_cell(value: Any, mode: str) -> str:
    if mode == "compact":
        return identity_key(value)
    return cell_text(value).lower()


def _keyword_hit(cell: str, keywords: Sequence[str], mode: str) -> bool:
    if not cell:
        return False
    if mode == "word":
        words = cell.split()
        return any(keyword in words for keyword in keywords)
    return any(keyword == cell or keyword in cell for keyword in keywords)


def find_column(cells: Sequence[Any], rule: RoleRule) -> int:
    prepared = [_prepare_cell(cell, rule.match) for cell in cells]
    high = tuple(_prepare_keyword(keyword, rule.match) for keyword in rule.high)
    low = tuple(_prepare_keyword(keyword, rule.match) for keyword in rule.low)
    exclude = tuple(_prepare_keyword(keyword, rule.match) for keyword in rule.exclude)

    def low_hit(cell: str) -> bool:
        if any(word and word in cell for word in exclude):
            return False
        return _keyword_hit(cell, low, rule.match)

    if rule.tiered:
        for index, cell in enumerate(prepared):
            if _keyword_hit(cell, high, rule.match):
                return index
        for index, cell in enumerate(prepared):
            if low_hit(cell):
                return index
        return ABSENT

    for index, cell in enumerate(prepared):
        if _keyword_hit(cell, high, rule.match) or low_hit(cell):
            return index
    return ABSENT


def _prepare_keyword(keyword: str, mode: str) -> str:
    return identity_key(keyword) if mode == "compact" else keyword.lower()


def score_mapping(columns: Mapping[str, int], groups: Sequence[ScoreGroup]) -> int:
    return sum(
        group.weight
        for group in groups
        if any(columns.get(role, ABSENT) != ABSENT for role in group.roles)
    )


def infer_header(rows: Sequence[Sequence[Any]], profile: HeaderProfile) -> HeaderMatch | None:
    """Return the best header row within the scan window, or None."""
    best: HeaderMatch | None = None
    for index, row in enumerate(rows[: profile.scan_rows]):
        if not row:
            continue
        columns = {role: find_column(row, rule) for role, rule in profile.roles.items()}
        if any(columns[role] == ABSENT for role in profile.required):
            continue
        score = score_mapping(columns, profile.score_groups)
        if score <= 0:
            continue
        if best is None or score > best.score:
            best = HeaderMatch(header_index=index, mapping=ColumnMapping(columns), score=score)

    if best is None:
        logger.debug("%s: no header row found in first %d rows", profile.name, profile.scan_rows)
    else:
        logger.debug(
            "%s: header at row %d (score %d) mapping %s",
            profile.name,
            best.header_index,
            best.score,
            best.mapping.to_dict(),
        )
    return best
