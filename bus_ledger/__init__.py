"""bus-ledger: normalization and reconciliation for bus-line spreadsheet exports."""

__version__ = "0.1.0"
