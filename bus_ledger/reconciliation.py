"""Match the actual-revenue ledger against the issued-invoice ledger.

Both sides go through the same header inference and row pass, keyed by
ticket code with separators and case stripped ("AB-123" == "ab123"). The
union of both key sets is then classified pair by pair.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Sequence

from bus_ledger.aggregation import add_numbers, sort_reconciliation
from bus_ledger.extractors.common import cell_at, has_marker, row_is_empty, text_at
from bus_ledger.header_inference import ColumnMapping, HeaderProfile, infer_header
from bus_ledger.inputs import Table, as_rows
from bus_ledger.normalization import cell_text, extract_amount, parse_date, ticket_code_key
from bus_ledger.profiles import VAT
from bus_ledger.shared import VAT_AMOUNT_TOLERANCE, ReconciliationRecord

logger = logging.getLogger(__name__)

CODE_LIKE_RE = re.compile(r"^(?=.*[A-Za-z])(?=.*\d)[A-Za-z0-9][A-Za-z0-9._/\-]{2,}$")
MIN_CODE_LENGTH = 2


class ReconciliationStatus(str, Enum):
    MATCH = "MATCH"
    PRICE_MISMATCH = "PRICE MISMATCH"
    MISSING_INVOICE = "MISSING INVOICE"
    EXTRA_INVOICE = "EXTRA INVOICE"


@dataclass
class LedgerEntry:
    display_code: str
    amount: int | float = 0
    date: str = ""
    count: int = 0


def _code_for_row(row: Sequence[Any], mapping: ColumnMapping) -> str:
    if mapping.has("code"):
        return text_at(row, mapping.get("code"))
    for cell in row:
        text = cell_text(cell)
        if CODE_LIKE_RE.match(text):
            return text
    return ""


def extract_ledger(table: Table, *, profile: HeaderProfile | None = None) -> dict[str, LedgerEntry]:
    """One side of the reconciliation: normalized code -> summed entry."""
    rows = as_rows(table)
    header = infer_header(rows, profile or VAT)
    if header is None:
        return {}
    mapping = header.mapping

    ledger: dict[str, LedgerEntry] = {}
    for row in rows[header.data_start :]:
        if row_is_empty(row):
            continue
        raw_code = _code_for_row(row, mapping)
        if len(raw_code) < MIN_CODE_LENGTH or has_marker(raw_code):
            continue
        key = ticket_code_key(raw_code)
        if not key:
            continue
        amount = extract_amount(cell_at(row, mapping.get("amount"))) if mapping.has("amount") else 0
        date = parse_date(cell_at(row, mapping.get("date")), lenient=True)

        entry = ledger.setdefault(key, LedgerEntry(display_code=raw_code))
        entry.amount = add_numbers(entry.amount, amount)
        entry.count += 1
        if not entry.date and date:
            entry.date = date
    return ledger


def classify_pair(
    real: LedgerEntry | None,
    invoice: LedgerEntry | None,
    tolerance: float = VAT_AMOUNT_TOLERANCE,
) -> ReconciliationStatus:
    if real is not None and invoice is not None:
        if abs(real.amount - invoice.amount) > tolerance:
            return ReconciliationStatus.PRICE_MISMATCH
        return ReconciliationStatus.MATCH
    if real is not None:
        return ReconciliationStatus.MISSING_INVOICE
    return ReconciliationStatus.EXTRA_INVOICE


def reconcile_ledgers(
    real: Mapping[str, LedgerEntry],
    invoice: Mapping[str, LedgerEntry],
    *,
    tolerance: float = VAT_AMOUNT_TOLERANCE,
) -> list[ReconciliationRecord]:
    codes = list(real)
    codes.extend(code for code in invoice if code not in real)

    records = []
    for code in codes:
        real_entry = real.get(code)
        invoice_entry = invoice.get(code)
        real_amount = real_entry.amount if real_entry else 0
        invoice_amount = invoice_entry.amount if invoice_entry else 0
        status = classify_pair(real_entry, invoice_entry, tolerance)
        records.append(
            ReconciliationRecord(
                ticket_code=(real_entry or invoice_entry).display_code,
                trip_date=(real_entry.date if real_entry else "") or (invoice_entry.date if invoice_entry else ""),
                real_amount=real_amount,
                invoice_amount=invoice_amount,
                is_invoice_issued=invoice_entry is not None,
                status=status.value,
                difference=add_numbers(real_amount, -invoice_amount),
                real_count=real_entry.count if real_entry else 0,
                invoice_count=invoice_entry.count if invoice_entry else 0,
            )
        )
    return sort_reconciliation(records, ReconciliationStatus.MATCH.value)


def reconcile_vat(
    real_table: Table,
    invoice_table: Table,
    *,
    tolerance: float = VAT_AMOUNT_TOLERANCE,
    profile: HeaderProfile | None = None,
) -> list[ReconciliationRecord]:
    """Discrepancy report for two ledgers; exceptions sort ahead of matches."""
    real = extract_ledger(real_table, profile=profile)
    invoice = extract_ledger(invoice_table, profile=profile)
    logger.debug("vat: %d real codes, %d invoice codes", len(real), len(invoice))
    return reconcile_ledgers(real, invoice, tolerance=tolerance)


def status_counts(records: Sequence[ReconciliationRecord]) -> dict[str, int]:
    counts = {status.value: 0 for status in ReconciliationStatus}
    for record in records:
        counts[record.status] += 1
    return counts
