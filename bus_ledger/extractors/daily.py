"""Daily trip logs: one row per departure or per driver-day, customers per row."""

from __future__ import annotations

import logging
import numbers
from dataclasses import dataclass, field
from datetime import time
from functools import partial
from typing import Any, Sequence

from bus_ledger.aggregation import (
    add_numbers,
    driver_day_key,
    extra_trips,
    sort_by_date_then_name,
    workday_units,
)
from bus_ledger.extractors.common import FillDown, cell_at, has_marker, resolve_date, row_is_empty, text_at, walk_rows
from bus_ledger.header_inference import ColumnMapping, HeaderProfile, infer_header
from bus_ledger.inputs import Table, as_rows
from bus_ledger.names import clean_name, is_usable_name
from bus_ledger.normalization import cell_text, extract_number, identity_key, is_blank, prefer_display_name
from bus_ledger.profiles import DAILY
from bus_ledger.shared import DailyCustomerStat

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class DailyRow:
    driver_name: str
    date: str
    customers: int | float
    tickets: int | float
    trip_key: str


@dataclass
class _DailyTotals:
    driver_name: str
    date: str
    customers: int | float = 0
    tickets: int | float = 0
    trip_keys: set[str] = field(default_factory=set)
    keyless_rows: int = 0

    @property
    def trip_count(self) -> int:
        return len(self.trip_keys) if self.trip_keys else self.keyless_rows


def _time_token(value: Any) -> str:
    if isinstance(value, time):
        return str(value.hour * 60 + value.minute)
    if isinstance(value, numbers.Real) and not isinstance(value, bool) and 0 <= value < 1:
        return str(round(float(value) * MINUTES_PER_DAY))
    return cell_text(value)


def trip_key(row: Sequence[Any], mapping: ColumnMapping) -> str:
    """Trip code and departure time joined; '' when the row names neither."""
    parts = []
    code = text_at(row, mapping.get("trip"))
    if code:
        parts.append(code)
    departure = cell_at(row, mapping.get("time"))
    if not is_blank(departure):
        parts.append(_time_token(departure))
    return "_".join(part for part in parts if part)


def _observe(mapping: ColumnMapping, row: Sequence[Any], state: FillDown) -> tuple[DailyRow | None, FillDown]:
    if row_is_empty(row):
        return None, state

    raw_driver = text_at(row, mapping.get("driver"))
    if has_marker(raw_driver):
        return None, state

    date, state = resolve_date(row, mapping.get("date"), state, strict_column=True)
    if not raw_driver:
        return None, state

    driver_name = clean_name(raw_driver, "daily")
    if not is_usable_name(driver_name) or not identity_key(driver_name):
        logger.debug("daily: rejected driver cell %r", raw_driver)
        return None, state

    customers = extract_number(cell_at(row, mapping.get("customer"))) if mapping.has("customer") else 1
    if mapping.has("ticket") and mapping.get("ticket") != mapping.get("customer"):
        tickets = extract_number(cell_at(row, mapping.get("ticket")))
    else:
        tickets = customers

    observation = DailyRow(
        driver_name=driver_name,
        date=date,
        customers=customers,
        tickets=tickets,
        trip_key=trip_key(row, mapping),
    )
    return observation, state


def extract_daily_customers(table: Table, *, profile: HeaderProfile | None = None) -> list[DailyCustomerStat]:
    rows = as_rows(table)
    header = infer_header(rows, profile or DAILY)
    if header is None:
        return []

    totals: dict[str, _DailyTotals] = {}
    step = partial(_observe, header.mapping)
    for observed in walk_rows(rows[header.data_start :], step):
        key = driver_day_key(observed.date, observed.driver_name)
        entry = totals.setdefault(key, _DailyTotals(driver_name=observed.driver_name, date=observed.date))
        entry.driver_name = prefer_display_name(entry.driver_name, observed.driver_name)
        entry.customers = add_numbers(entry.customers, observed.customers)
        entry.tickets = add_numbers(entry.tickets, observed.tickets)
        if observed.trip_key:
            entry.trip_keys.add(observed.trip_key)
        else:
            entry.keyless_rows += 1

    records = [
        DailyCustomerStat(
            driver_name=entry.driver_name,
            date=entry.date,
            customer_count=entry.customers,
            ticket_count=entry.tickets,
            trip_count=entry.trip_count,
            workday_units=workday_units(entry.trip_count),
            extra_trips=extra_trips(entry.trip_count),
        )
        for entry in totals.values()
    ]
    return sort_by_date_then_name(records)
