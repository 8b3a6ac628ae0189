from __future__ import annotations

from bus_ledger.extractors.daily import extract_daily_customers
from bus_ledger.extractors.phone import extract_phone_records
from bus_ledger.extractors.pricing import extract_pricing
from bus_ledger.extractors.roster import extract_driver_roster
from bus_ledger.extractors.self_service import extract_self_customers
from bus_ledger.extractors.transit import extract_transit

EXTRACTORS = {
    "daily": extract_daily_customers,
    "self": extract_self_customers,
    "transit": extract_transit,
    "phone": extract_phone_records,
    "pricing": extract_pricing,
    "roster": extract_driver_roster,
}

__all__ = [
    "EXTRACTORS",
    "extract_daily_customers",
    "extract_driver_roster",
    "extract_phone_records",
    "extract_pricing",
    "extract_self_customers",
    "extract_transit",
]
