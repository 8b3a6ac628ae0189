"""Per-driver monthly rollups over daily and transit records.

Workday units, extra trips and days worked come from daily trip logs only.
Transit runs are reported beside them and never add workday units.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable

from bus_ledger.aggregation import add_numbers, extra_trips, workday_units
from bus_ledger.normalization import identity_key, prefer_display_name
from bus_ledger.shared import DailyCustomerStat, DriverMonthSummary, TransitStat

MONTH_RE = re.compile(r"^(\d{1,2})/(\d{4})$")


@dataclass
class _DriverTotals:
    driver_name: str
    passengers: int | float = 0
    trips: int | float = 0
    units: float = 0.0
    extra: int | float = 0
    days: set[str] = field(default_factory=set)
    transit_passengers: int | float = 0
    transit_trips: int | float = 0
    transit_days: set[str] = field(default_factory=set)


def normalize_month(month: str | None) -> str:
    """'6/2024' -> '06/2024'. Raises ValueError on anything else."""
    if not month:
        return ""
    match = MONTH_RE.match(month.strip())
    if not match or not 1 <= int(match.group(1)) <= 12:
        raise ValueError(f"Month must look like MM/YYYY, got {month!r}")
    return f"{int(match.group(1)):02d}/{match.group(2)}"


def _in_month(date: str, month: str) -> bool:
    return not month or date.endswith("/" + month)


def summarize_drivers(
    daily: Iterable[DailyCustomerStat] = (),
    transit: Iterable[TransitStat] = (),
    *,
    month: str | None = None,
) -> list[DriverMonthSummary]:
    month = normalize_month(month)
    totals: dict[str, _DriverTotals] = {}

    def entry_for(name: str) -> _DriverTotals:
        entry = totals.setdefault(identity_key(name), _DriverTotals(driver_name=name))
        entry.driver_name = prefer_display_name(entry.driver_name, name)
        return entry

    for record in daily:
        if not _in_month(record.date, month):
            continue
        entry = entry_for(record.driver_name)
        entry.passengers = add_numbers(entry.passengers, record.customer_count)
        entry.trips = add_numbers(entry.trips, record.trip_count)
        entry.units += workday_units(record.trip_count)
        entry.extra = add_numbers(entry.extra, extra_trips(record.trip_count))
        if record.date:
            entry.days.add(record.date)

    for record in transit:
        if not _in_month(record.date, month):
            continue
        entry = entry_for(record.driver_name)
        entry.transit_passengers = add_numbers(entry.transit_passengers, record.passenger_count)
        entry.transit_trips = add_numbers(entry.transit_trips, record.trip_count)
        if record.date:
            entry.transit_days.add(record.date)

    summaries = [
        DriverMonthSummary(
            driver_name=entry.driver_name,
            passenger_count=entry.passengers,
            trip_count=entry.trips,
            days_worked=len(entry.days),
            workday_units=round(entry.units, 2),
            extra_trips=entry.extra,
            transit_days=len(entry.transit_days),
            transit_trip_count=entry.transit_trips,
            transit_passenger_count=entry.transit_passengers,
        )
        for entry in totals.values()
    ]
    return sorted(
        summaries,
        key=lambda item: (item.workday_units, item.trip_count, item.transit_trip_count),
        reverse=True,
    )
