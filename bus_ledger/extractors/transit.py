"""Transit-shuttle logs: every row is one shuttle run for a driver."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Sequence

from bus_ledger.aggregation import add_numbers, driver_day_key, join_unique, sort_by_date_then_name
from bus_ledger.extractors.common import FillDown, cell_at, has_marker, resolve_date, row_is_empty, row_text, text_at, walk_rows
from bus_ledger.header_inference import ColumnMapping, HeaderProfile, infer_header
from bus_ledger.inputs import Table, as_rows
from bus_ledger.names import clean_name, is_usable_name
from bus_ledger.normalization import extract_license_plate, extract_number, is_blank, prefer_display_name
from bus_ledger.profiles import TRANSIT
from bus_ledger.shared import NOTE_SEPARATOR, PLATE_SEPARATOR, TRANSIT_NOISE_MARKERS, TransitStat

PASSENGER_HINT_RE = re.compile(r"(\d+)\s*(?:khách|pax|người)")


@dataclass(frozen=True)
class TransitRow:
    driver_name: str
    date: str
    passengers: int | float
    plate: str
    note: str


@dataclass
class _TransitTotals:
    driver_name: str
    date: str
    passengers: int | float = 0
    trips: int = 0
    plates: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


def passenger_count(row: Sequence[Any], mapping: ColumnMapping, text: str) -> int | float:
    """Mapped count, then '<n> khách' in the row text, then one passenger."""
    cell = cell_at(row, mapping.get("passengers"))
    count = 0 if is_blank(cell) else extract_number(cell)
    if count:
        return count
    hint = PASSENGER_HINT_RE.search(text)
    if hint:
        return int(hint.group(1))
    return 1


def plate_for_row(row: Sequence[Any], mapping: ColumnMapping) -> str:
    plate = extract_license_plate(cell_at(row, mapping.get("plate")))
    if plate:
        return plate
    for cell in row:
        plate = extract_license_plate(cell, allow_loose=False)
        if plate:
            return plate
    return ""


def _observe(mapping: ColumnMapping, row: Sequence[Any], state: FillDown) -> tuple[TransitRow | None, FillDown]:
    if row_is_empty(row):
        return None, state
    text = row_text(row)
    if has_marker(text, TRANSIT_NOISE_MARKERS):
        return None, state

    raw_driver = text_at(row, mapping.get("driver"))
    driver_name = clean_name(raw_driver, "transit") if raw_driver else ""
    if is_usable_name(driver_name):
        state = state.advance(driver=driver_name)
    elif state.driver:
        driver_name = state.driver
    else:
        return None, state

    date, state = resolve_date(row, mapping.get("date"), state)
    observation = TransitRow(
        driver_name=driver_name,
        date=date,
        passengers=passenger_count(row, mapping, text),
        plate=plate_for_row(row, mapping),
        note=text_at(row, mapping.get("notes")),
    )
    return observation, state


def extract_transit(table: Table, *, profile: HeaderProfile | None = None) -> list[TransitStat]:
    rows = as_rows(table)
    header = infer_header(rows, profile or TRANSIT)
    if header is None:
        return []

    totals: dict[str, _TransitTotals] = {}
    for observed in walk_rows(rows[header.data_start :], partial(_observe, header.mapping)):
        key = driver_day_key(observed.date, observed.driver_name)
        entry = totals.setdefault(key, _TransitTotals(driver_name=observed.driver_name, date=observed.date))
        entry.driver_name = prefer_display_name(entry.driver_name, observed.driver_name)
        entry.passengers = add_numbers(entry.passengers, observed.passengers)
        entry.trips += 1
        if observed.plate and observed.plate not in entry.plates:
            entry.plates.append(observed.plate)
        if observed.note and observed.note not in entry.notes:
            entry.notes.append(observed.note)

    records = [
        TransitStat(
            driver_name=entry.driver_name,
            date=entry.date,
            passenger_count=entry.passengers,
            trip_count=entry.trips,
            license_plate=join_unique(entry.plates, PLATE_SEPARATOR),
            notes=join_unique(entry.notes, NOTE_SEPARATOR),
        )
        for entry in totals.values()
    ]
    return sort_by_date_then_name(records)
