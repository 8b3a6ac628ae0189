"""Driver roster sheets: trips, distance and notes per driver for a whole period."""

from __future__ import annotations

import numbers
from dataclasses import dataclass, field
from typing import Any, Sequence

from bus_ledger.aggregation import add_numbers, append_unique, join_unique, sort_by_trip_count
from bus_ledger.extractors.common import cell_at, has_marker, row_is_empty, text_at
from bus_ledger.header_inference import ColumnMapping, HeaderProfile, infer_header
from bus_ledger.inputs import Table, as_rows
from bus_ledger.names import clean_name, is_usable_name
from bus_ledger.normalization import cell_text, extract_number, identity_key, is_blank, prefer_display_name
from bus_ledger.profiles import ROSTER
from bus_ledger.shared import DriverStat


@dataclass
class _RosterTotals:
    driver_name: str
    trips: int | float = 0
    distance: str = ""
    notes: list[str] = field(default_factory=list)


def add_distance(current: str, value: Any) -> str:
    """Numeric cells accumulate to one decimal; text replaces what was there."""
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        return f"{extract_number(current) + float(value):.1f}"
    return cell_text(value)


def _trips(row: Sequence[Any], mapping: ColumnMapping) -> int | float:
    if mapping.has("trip"):
        return extract_number(cell_at(row, mapping.get("trip")))
    return 1


def extract_driver_roster(table: Table, *, profile: HeaderProfile | None = None) -> list[DriverStat]:
    rows = as_rows(table)
    header = infer_header(rows, profile or ROSTER)
    if header is None:
        return []
    mapping = header.mapping

    totals: dict[str, _RosterTotals] = {}
    for row in rows[header.data_start :]:
        if row_is_empty(row):
            continue
        raw_driver = text_at(row, mapping.get("driver"))
        if not raw_driver or has_marker(raw_driver):
            continue
        driver_name = clean_name(raw_driver, "roster")
        key = identity_key(driver_name)
        if not is_usable_name(driver_name) or not key:
            continue

        entry = totals.setdefault(key, _RosterTotals(driver_name=driver_name))
        entry.driver_name = prefer_display_name(entry.driver_name, driver_name)
        entry.trips = add_numbers(entry.trips, _trips(row, mapping))
        append_unique(entry.notes, text_at(row, mapping.get("notes")))
        distance = cell_at(row, mapping.get("distance"))
        if not is_blank(distance):
            entry.distance = add_distance(entry.distance, distance)

    records = [
        DriverStat(
            driver_name=entry.driver_name,
            trip_count=entry.trips,
            total_distance=entry.distance,
            notes=join_unique(entry.notes),
        )
        for entry in totals.values()
    ]
    return sort_by_trip_count(records)
