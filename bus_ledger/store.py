"""JSON history of driver-day records, owned by the caller.

The extractors never touch this file. A caller loads what was saved before,
re-merges it with a fresh extraction using the same ``date_driverId`` key the
extractors use, and saves the result.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from bus_ledger import __version__ as TOOL_VERSION
from bus_ledger.aggregation import remerge_history, sort_by_date_then_count, sort_by_date_then_name
from bus_ledger.contracts import build_contract, utc_now_iso
from bus_ledger.shared import HISTORY_KINDS, RECORD_TYPES

HISTORY_CONTRACT = "bus_ledger.history"

HISTORY_SORTS = {
    "daily": sort_by_date_then_name,
    "self": sort_by_date_then_count,
    "transit": sort_by_date_then_name,
}


def _check_kind(kind: str) -> None:
    if kind not in HISTORY_KINDS:
        raise ValueError(f"History store keeps {', '.join(HISTORY_KINDS)} records, not '{kind}'")


class JsonFileStore:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read_payload(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ValueError(f"Could not read history store {self.path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise ValueError(f"History store root must be a JSON object: {self.path}")
        return payload

    def load(self) -> dict[str, list]:
        datasets = self._read_payload().get("datasets") or {}
        loaded: dict[str, list] = {}
        for kind in HISTORY_KINDS:
            record_type = RECORD_TYPES[kind]
            loaded[kind] = [
                record_type.from_dict(item)
                for item in datasets.get(kind) or []
                if isinstance(item, dict) and item.get("driver_name")
            ]
        return loaded

    def records(self, kind: str) -> list:
        _check_kind(kind)
        return self.load()[kind]

    def save(self, datasets: dict[str, Iterable]) -> None:
        payload = {
            "contract": build_contract(HISTORY_CONTRACT),
            "tool_version": TOOL_VERSION,
            "updated_at": utc_now_iso(),
            "datasets": {
                kind: [record.to_dict() for record in datasets.get(kind, [])]
                for kind in HISTORY_KINDS
            },
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True), encoding="utf-8")

    def merge(self, kind: str, incoming: Iterable) -> list:
        """Fold ``incoming`` into the stored records for ``kind`` and persist."""
        _check_kind(kind)
        datasets = self.load()
        datasets[kind] = HISTORY_SORTS[kind](remerge_history(datasets[kind], incoming))
        self.save(datasets)
        return datasets[kind]

    def clear(self, kind: str) -> None:
        _check_kind(kind)
        datasets = self.load()
        datasets[kind] = []
        self.save(datasets)
