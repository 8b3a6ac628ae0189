"""Self-reported manifests.

Drivers who sell their own seats write a marker such as "KH LXE Hùng" or
"Khách lái xe: Nam" next to each passenger. There is no reliable driver
column, so every cell of every row is searched for the marker.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Sequence

from bus_ledger.aggregation import driver_day_key, join_unique, sort_by_date_then_count
from bus_ledger.extractors.common import FillDown, has_marker, resolve_date, row_is_empty, row_text, walk_rows
from bus_ledger.header_inference import ColumnMapping, HeaderProfile, infer_header
from bus_ledger.inputs import Table, as_rows
from bus_ledger.names import clean_name
from bus_ledger.normalization import cell_text, identity_key, parse_date, prefer_display_name
from bus_ledger.profiles import SELF
from bus_ledger.shared import DEFAULT_PASSENGER_NAME, SelfCustomerStat

logger = logging.getLogger(__name__)

MARKER_RE = re.compile(
    r"(?:KH|KHÁCH|KHACH)[\s._\-]*(?:LXE|LX|LÁI\s*XE|LAI\s*XE|TÀI\s*XẾ|DRIVER)[\s:._\-]*",
    re.IGNORECASE,
)
LETTER_RE = re.compile(r"[^\W\d_]")
PASSENGER_MIN_LENGTH = 3
PASSENGER_MAX_LENGTH = 49


@dataclass(frozen=True)
class SelfRow:
    driver_name: str
    date: str
    passenger: str
    marker_cell: str


@dataclass
class _SelfTotals:
    driver_name: str
    date: str
    count: int = 0
    passengers: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


def find_marker_driver(row: Sequence[Any]) -> tuple[str, str]:
    """Return (driver name, marker cell text) for the first usable marker cell."""
    for cell in row:
        text = cell_text(cell)
        if not text:
            continue
        match = MARKER_RE.search(text)
        if not match:
            continue
        remainder = text[match.end() :].strip()
        if not remainder:
            continue
        name = clean_name(remainder, "self")
        if len(name) > 1 and len(identity_key(name)) >= 2:
            return name, text
    return "", ""


def find_passenger(row: Sequence[Any], marker_cell: str) -> str:
    for cell in row:
        text = cell_text(cell)
        if not PASSENGER_MIN_LENGTH <= len(text) <= PASSENGER_MAX_LENGTH:
            continue
        if text == marker_cell or MARKER_RE.search(text) or parse_date(text, lenient=True):
            continue
        return text
    return ""


def _observe(mapping: ColumnMapping, row: Sequence[Any], state: FillDown) -> tuple[SelfRow | None, FillDown]:
    if row_is_empty(row):
        # A blank row ends a merged driver block.
        return None, state.advance(driver="")

    date, state = resolve_date(row, mapping.get("date"), state)
    driver_name, marker_cell = find_marker_driver(row)
    if driver_name:
        passenger = find_passenger(row, marker_cell) or DEFAULT_PASSENGER_NAME
        return SelfRow(driver_name, date, passenger, marker_cell), state.advance(driver=driver_name)

    if not state.driver or has_marker(row_text(row)):
        return None, state
    passenger = find_passenger(row, "")
    if not LETTER_RE.search(passenger):
        return None, state
    return SelfRow(state.driver, date, passenger, ""), state


def extract_self_customers(table: Table, *, profile: HeaderProfile | None = None) -> list[SelfCustomerStat]:
    rows = as_rows(table)
    header = infer_header(rows, profile or SELF)
    mapping = header.mapping if header else ColumnMapping()
    if header is None:
        logger.debug("self: no date column, relying on row scans")

    totals: dict[str, _SelfTotals] = {}
    for observed in walk_rows(rows, partial(_observe, mapping)):
        key = driver_day_key(observed.date, observed.driver_name)
        entry = totals.setdefault(key, _SelfTotals(driver_name=observed.driver_name, date=observed.date))
        entry.driver_name = prefer_display_name(entry.driver_name, observed.driver_name)
        entry.count += 1
        entry.passengers.append(observed.passenger)
        if observed.marker_cell and observed.marker_cell not in entry.notes:
            entry.notes.append(observed.marker_cell)

    records = [
        SelfCustomerStat(
            driver_name=entry.driver_name,
            date=entry.date,
            customer_count=entry.count,
            customer_names=tuple(entry.passengers),
            notes=join_unique(entry.notes),
        )
        for entry in totals.values()
    ]
    return sort_by_date_then_count(records)
