from __future__ import annotations

import re
from dataclasses import asdict, dataclass, fields
from typing import Any

# 4 completed trips make one workday unit. Payroll rule, never configurable.
WORKDAY_TRIP_DIVISOR = 4

VAT_AMOUNT_TOLERANCE = 100
PRICE_CEILING = 150_000

DEFAULT_PASSENGER_NAME = "Khách lẻ"
FALLBACK_ROUTE = "Tuyến Khác"

ABSENT = -1

SUMMARY_MARKERS = ("tổng", "cộng", "total")
TRANSIT_NOISE_MARKERS = ("tổng", "cộng", "ký tên")
NOTE_SEPARATOR = "; "
PLATE_SEPARATOR = ", "

DATE_FORMAT_RE = re.compile(r"^\d{2}/\d{2}/\d{4}$")

DATASET_KINDS = ("daily", "self", "transit", "phone", "pricing", "roster", "vat")
HISTORY_KINDS = ("daily", "self", "transit")


class Record:
    """Mixin for the immutable output records."""

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        for key, value in payload.items():
            if isinstance(value, tuple):
                payload[key] = list(value)
        return payload

    @classmethod
    def from_dict(cls, payload: dict[str, Any]):
        known = {}
        for item in fields(cls):
            if item.name not in payload:
                continue
            value = payload[item.name]
            if isinstance(value, list):
                value = tuple(value)
            known[item.name] = value
        return cls(**known)


@dataclass(frozen=True)
class DailyCustomerStat(Record):
    driver_name: str
    date: str = ""
    customer_count: int | float = 0
    ticket_count: int | float = 0
    trip_count: int = 0
    workday_units: float = 0.0
    extra_trips: int = 0
    customer_names: tuple[str, ...] = ()
    notes: str = ""


@dataclass(frozen=True)
class SelfCustomerStat(Record):
    driver_name: str
    date: str = ""
    customer_count: int = 0
    customer_names: tuple[str, ...] = ()
    notes: str = ""


@dataclass(frozen=True)
class TransitStat(Record):
    driver_name: str
    date: str = ""
    passenger_count: int | float = 0
    trip_count: int = 0
    license_plate: str = ""
    notes: str = ""


@dataclass(frozen=True)
class PhoneRecord(Record):
    phone_number: str
    customer_name: str = ""
    trip_count: int | float = 0
    routes: tuple[str, ...] = ()
    last_date: str = ""


@dataclass(frozen=True)
class PricingRecord(Record):
    route: str
    route_group: str
    price: int | float
    ticket_type: str
    quantity: int | float = 0
    total_revenue: int | float = 0


@dataclass(frozen=True)
class DriverStat(Record):
    driver_name: str
    trip_count: int | float = 0
    total_distance: str = ""
    notes: str = ""


@dataclass(frozen=True)
class ReconciliationRecord(Record):
    ticket_code: str
    trip_date: str
    real_amount: int | float
    invoice_amount: int | float
    is_invoice_issued: bool
    status: str
    difference: int | float = 0
    real_count: int = 0
    invoice_count: int = 0


@dataclass(frozen=True)
class DriverMonthSummary(Record):
    driver_name: str
    passenger_count: int | float = 0
    trip_count: int | float = 0
    days_worked: int = 0
    workday_units: float = 0.0
    extra_trips: int | float = 0
    transit_days: int = 0
    transit_trip_count: int | float = 0
    transit_passenger_count: int | float = 0


RECORD_TYPES = {
    "daily": DailyCustomerStat,
    "self": SelfCustomerStat,
    "transit": TransitStat,
    "phone": PhoneRecord,
    "pricing": PricingRecord,
    "roster": DriverStat,
    "vat": ReconciliationRecord,
}
