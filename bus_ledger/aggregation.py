"""Composite keys, merge helpers, sort orders and the workday rule."""

from __future__ import annotations

from typing import Iterable, Sequence, TypeVar

from bus_ledger.normalization import date_sort_key, identity_key, name_sort_key, ticket_code_key
from bus_ledger.shared import NOTE_SEPARATOR, WORKDAY_TRIP_DIVISOR

T = TypeVar("T")


def driver_day_key(date: str, driver_name: str) -> str:
    return f"{date}_{identity_key(driver_name)}"


def pricing_key(route_group: str, price: int | float, ticket_type: str) -> str:
    return f"{route_group}_{price}_{ticket_type}"


def workday_units(trip_count: int | float) -> float:
    """Four trips make one unit; a single day never earns more than one."""
    if trip_count <= 0:
        return 0.0
    return min(trip_count / WORKDAY_TRIP_DIVISOR, 1.0)


def extra_trips(trip_count: int | float) -> int | float:
    return max(trip_count - WORKDAY_TRIP_DIVISOR, 0)


def append_unique(items: list[str], value: str) -> None:
    if value and value not in items:
        items.append(value)


def join_unique(values: Iterable[str], separator: str = NOTE_SEPARATOR) -> str:
    ordered: list[str] = []
    for value in values:
        append_unique(ordered, value)
    return separator.join(ordered)


def add_numbers(left: int | float, right: int | float) -> int | float:
    total = left + right
    if isinstance(total, float) and total.is_integer():
        return int(total)
    return total


def sort_by_date_then_name(records: Sequence[T]) -> list[T]:
    ordered = sorted(records, key=lambda record: name_sort_key(record.driver_name))
    return sorted(ordered, key=lambda record: date_sort_key(record.date), reverse=True)


def sort_by_date_then_count(records: Sequence[T]) -> list[T]:
    return sorted(
        records,
        key=lambda record: (date_sort_key(record.date), record.customer_count),
        reverse=True,
    )


def sort_by_trip_count(records: Sequence[T]) -> list[T]:
    return sorted(records, key=lambda record: record.trip_count, reverse=True)


def sort_by_revenue(records: Sequence[T]) -> list[T]:
    ordered = sorted(records, key=lambda record: (record.route_group, -record.price))
    return sorted(ordered, key=lambda record: record.total_revenue, reverse=True)


def sort_reconciliation(records: Sequence[T], match_status: str) -> list[T]:
    return sorted(
        records,
        key=lambda record: (record.status == match_status, ticket_code_key(record.ticket_code), record.ticket_code),
    )


def history_key(record) -> str:
    return driver_day_key(record.date or "", record.driver_name)


def remerge_history(previous: Iterable[T], incoming: Iterable[T]) -> list[T]:
    """Combine stored records with a new extraction; new entries win per key."""
    merged: dict[str, T] = {}
    for record in previous:
        merged[history_key(record)] = record
    for record in incoming:
        merged[history_key(record)] = record
    return list(merged.values())
