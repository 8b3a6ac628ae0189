"""Loyalty sheets keyed by the customer's phone number across the whole file."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from typing import Any, Sequence

from bus_ledger.aggregation import add_numbers, append_unique, sort_by_trip_count
from bus_ledger.extractors.common import FillDown, cell_at, is_summary_row, resolve_date, row_is_empty, text_at, walk_rows
from bus_ledger.header_inference import ColumnMapping, HeaderProfile, infer_header
from bus_ledger.inputs import Table, as_rows
from bus_ledger.normalization import (
    collapse_whitespace,
    date_sort_key,
    extract_number,
    find_phone,
    prefer_display_name,
    title_case,
)
from bus_ledger.profiles import PHONE
from bus_ledger.shared import PhoneRecord


@dataclass(frozen=True)
class PhoneRow:
    phone: str
    name: str
    count: int | float
    date: str
    route: str


@dataclass
class _PhoneTotals:
    phone: str
    name: str = ""
    trips: int | float = 0
    routes: list[str] = field(default_factory=list)
    last_date: str = ""


def phone_for_row(row: Sequence[Any], mapping: ColumnMapping) -> str:
    """Mapped cell when it holds anything, otherwise the first phone-like run in the row."""
    raw = text_at(row, mapping.get("phone"))
    if raw:
        return find_phone(raw)
    for cell in row:
        phone = find_phone(cell)
        if phone:
            return phone
    return ""


def _observe(mapping: ColumnMapping, row: Sequence[Any], state: FillDown) -> tuple[PhoneRow | None, FillDown]:
    if row_is_empty(row) or is_summary_row(row, mapping.get("phone")):
        return None, state
    date, state = resolve_date(row, mapping.get("date"), state)
    phone = phone_for_row(row, mapping)
    if not phone:
        return None, state

    count = 1
    if mapping.has("quantity"):
        quantity = extract_number(cell_at(row, mapping.get("quantity")))
        if quantity > 0:
            count = quantity

    observation = PhoneRow(
        phone=phone,
        name=title_case(collapse_whitespace(text_at(row, mapping.get("name")))),
        count=count,
        date=date,
        route=collapse_whitespace(text_at(row, mapping.get("route"))),
    )
    return observation, state


def extract_phone_records(table: Table, *, profile: HeaderProfile | None = None) -> list[PhoneRecord]:
    rows = as_rows(table)
    header = infer_header(rows, profile or PHONE)
    if header is None:
        return []

    totals: dict[str, _PhoneTotals] = {}
    for observed in walk_rows(rows[header.data_start :], partial(_observe, header.mapping)):
        entry = totals.setdefault(observed.phone, _PhoneTotals(phone=observed.phone))
        if observed.name:
            entry.name = prefer_display_name(entry.name, observed.name)
        entry.trips = add_numbers(entry.trips, observed.count)
        append_unique(entry.routes, observed.route)
        if date_sort_key(observed.date) > date_sort_key(entry.last_date):
            entry.last_date = observed.date

    records = [
        PhoneRecord(
            phone_number=entry.phone,
            customer_name=entry.name,
            trip_count=entry.trips,
            routes=tuple(entry.routes),
            last_date=entry.last_date,
        )
        for entry in totals.values()
    ]
    return sort_by_trip_count(records)
