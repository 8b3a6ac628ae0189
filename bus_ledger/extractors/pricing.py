"""Ticket-pricing sheets grouped by route group, unit price and ticket type."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Sequence

from bus_ledger.aggregation import add_numbers, pricing_key, sort_by_revenue
from bus_ledger.classification import classify_ticket, route_group
from bus_ledger.extractors.common import FillDown, cell_at, is_summary_row, row_is_empty, text_at, walk_rows
from bus_ledger.header_inference import ColumnMapping, HeaderProfile, infer_header
from bus_ledger.inputs import Table, as_rows
from bus_ledger.normalization import collapse_whitespace, extract_amount, extract_number
from bus_ledger.profiles import PRICING
from bus_ledger.shared import FALLBACK_ROUTE, PRICE_CEILING, PricingRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PricingRow:
    route: str
    price: int | float
    quantity: int | float


def _observe(mapping: ColumnMapping, row: Sequence[Any], state: FillDown) -> tuple[PricingRow | None, FillDown]:
    if row_is_empty(row) or is_summary_row(row, mapping.get("route")):
        return None, state

    route = collapse_whitespace(text_at(row, mapping.get("route")))
    if route:
        state = state.advance(route=route)
    else:
        route = state.route or FALLBACK_ROUTE

    price = extract_amount(cell_at(row, mapping.get("price")))
    if price <= 0 or price > PRICE_CEILING:
        logger.debug("pricing: dropped row with price %r", price)
        return None, state

    quantity = 1
    if mapping.has("quantity"):
        counted = extract_number(cell_at(row, mapping.get("quantity")))
        if counted > 0:
            quantity = counted
    return PricingRow(route=route, price=price, quantity=quantity), state


def extract_pricing(table: Table, *, profile: HeaderProfile | None = None) -> list[PricingRecord]:
    """Aggregate fares; prices of 0 or above PRICE_CEILING are header/footer noise."""
    rows = as_rows(table)
    header = infer_header(rows, profile or PRICING)
    if header is None:
        return []

    totals: dict[str, PricingRecord] = {}
    step = partial(_observe, header.mapping)
    for observed in walk_rows(rows[header.data_start :], step):
        group = route_group(observed.route)
        ticket_type = classify_ticket(observed.price, group)
        key = pricing_key(group, observed.price, ticket_type)
        current = totals.get(key) or PricingRecord(
            route=observed.route,
            route_group=group,
            price=observed.price,
            ticket_type=ticket_type,
        )
        totals[key] = PricingRecord(
            route=current.route,
            route_group=group,
            price=current.price,
            ticket_type=ticket_type,
            quantity=add_numbers(current.quantity, observed.quantity),
            total_revenue=add_numbers(current.total_revenue, observed.price * observed.quantity),
        )
    return sort_by_revenue(list(totals.values()))
