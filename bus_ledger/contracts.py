"""Shared versioned contracts for bus-ledger outputs."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

CONTRACT_VERSIONS = {
    "bus_ledger.daily": "1.0.0",
    "bus_ledger.self": "1.0.0",
    "bus_ledger.transit": "1.0.0",
    "bus_ledger.phone": "1.0.0",
    "bus_ledger.pricing": "1.0.0",
    "bus_ledger.roster": "1.0.0",
    "bus_ledger.vat": "1.0.0",
    "bus_ledger.summary": "1.0.0",
    "bus_ledger.history": "1.0.0",
}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def build_contract(name: str) -> dict[str, str]:
    version = CONTRACT_VERSIONS[name]
    return {"name": name, "version": version}


def build_run_summary(
    *,
    tool: str,
    command: str,
    input_paths: Sequence[Path],
    status: str = "ok",
    output_path: Path | None = None,
    metrics: dict[str, Any] | None = None,
    warnings: list[str] | None = None,
) -> dict[str, Any]:
    return {
        "tool": tool,
        "command": command,
        "status": status,
        "generated_at": utc_now_iso(),
        "input_files": [str(path) for path in input_paths],
        "output_file": str(output_path) if output_path else None,
        "warnings_count": len(warnings or []),
        "warnings": list(warnings or []),
        "metrics": metrics or {},
    }
