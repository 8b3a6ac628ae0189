from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

from bus_ledger import __version__ as TOOL_VERSION
from bus_ledger.config import ConfigError, EngineSettings, load_settings, starter_config_text
from bus_ledger.contracts import build_contract, build_run_summary
from bus_ledger.extractors import EXTRACTORS
from bus_ledger.loader import load_table
from bus_ledger.reconciliation import ReconciliationStatus, reconcile_vat, status_counts
from bus_ledger.shared import HISTORY_KINDS
from bus_ledger.store import JsonFileStore
from bus_ledger.summary import normalize_month, summarize_drivers

EXIT_SUCCESS = 0
EXIT_COMMAND_ERROR = 1
EXIT_PARSE_FAILED = 2
EXIT_DISCREPANCIES = 3
EXIT_NO_RECORDS = 4

DEFAULT_CONFIG_PATH = "bus-ledger.json"


class CliError(Exception):
    def __init__(self, message: str, code: int = EXIT_COMMAND_ERROR) -> None:
        super().__init__(message)
        self.code = code


class BusLedgerArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise CliError(message, EXIT_COMMAND_ERROR)


def eprint(message: str) -> None:
    print(message, file=sys.stderr)


def emit_human(message: str, *, quiet: bool = False) -> None:
    if not quiet:
        eprint(message)


def json_dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True)


def write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json_dumps(payload), encoding="utf-8")


def configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")


def classify_exception(exc: Exception) -> int:
    if isinstance(exc, CliError):
        return exc.code
    if isinstance(exc, ConfigError):
        return EXIT_COMMAND_ERROR
    if isinstance(exc, FileNotFoundError):
        return EXIT_COMMAND_ERROR
    if isinstance(exc, (ImportError, UnicodeDecodeError, ValueError)):
        return EXIT_PARSE_FAILED
    return EXIT_COMMAND_ERROR


def require_file(path: Path) -> None:
    if not path.exists():
        raise CliError(f"File not found: {path}", EXIT_COMMAND_ERROR)


def build_payload(contract: str, records: Sequence[Any], run_summary: dict[str, Any]) -> dict[str, Any]:
    return {
        "contract": build_contract(contract),
        "tool_version": TOOL_VERSION,
        "records": [record.to_dict() for record in records],
        "run_summary": run_summary,
    }


def deliver(payload: dict[str, Any], args: argparse.Namespace) -> None:
    if args.output:
        write_json(Path(args.output), payload)
        emit_human(f"Output written: {args.output}", quiet=args.quiet)
    if args.json:
        print(json_dumps(payload))


def describe_record(kind: str, record: Any) -> str:
    if kind == "daily":
        return (
            f"- {record.date or '[no date]'} {record.driver_name}: {record.customer_count} customers, "
            f"{record.trip_count} trips, {record.workday_units:g} workday"
        )
    if kind == "self":
        return f"- {record.date or '[no date]'} {record.driver_name}: {record.customer_count} customers"
    if kind == "transit":
        plate = f" [{record.license_plate}]" if record.license_plate else ""
        return (
            f"- {record.date or '[no date]'} {record.driver_name}{plate}: "
            f"{record.passenger_count} passengers, {record.trip_count} trips"
        )
    if kind == "phone":
        return f"- {record.phone_number} {record.customer_name or '[no name]'}: {record.trip_count} trips"
    if kind == "pricing":
        return (
            f"- {record.route_group} @ {record.price}: {record.ticket_type}, "
            f"{record.quantity} tickets, revenue {record.total_revenue}"
        )
    if kind == "roster":
        return f"- {record.driver_name}: {record.trip_count} trips"
    if kind == "vat":
        return (
            f"- {record.ticket_code} {record.status}: real {record.real_amount}, "
            f"invoice {record.invoice_amount}"
        )
    return (
        f"- {record.driver_name}: {record.workday_units:g} workday, {record.trip_count} trips, "
        f"{record.transit_trip_count} transit trips"
    )


def render_records_text(title: str, kind: str, records: Sequence[Any], limit: int = 20) -> str:
    lines = [title, f"Records: {len(records)}"]
    lines.extend(describe_record(kind, record) for record in records[:limit])
    if len(records) > limit:
        lines.append(f"... {len(records) - limit} more")
    return "\n".join(lines)


def run_extract(args: argparse.Namespace) -> int:
    input_path = Path(args.input)
    require_file(input_path)
    settings = load_settings(args.config)
    loaded = load_table(input_path, sheet_name=args.sheet_name)
    extractor = EXTRACTORS[args.kind]
    records = extractor(loaded["table"], profile=settings.profile(args.kind))

    warnings = list(loaded["warnings"])
    if args.store:
        if args.kind not in HISTORY_KINDS:
            raise CliError(f"--store only keeps {', '.join(HISTORY_KINDS)} records", EXIT_COMMAND_ERROR)
        stored = JsonFileStore(args.store).merge(args.kind, records)
        emit_human(f"History updated: {args.store} ({len(stored)} {args.kind} records)", quiet=args.quiet)

    run_summary = build_run_summary(
        tool="bus-ledger",
        command=f"extract {args.kind}",
        input_paths=[input_path],
        output_path=Path(args.output) if args.output else None,
        metrics={"rows_read": loaded["row_count"], "records": len(records)},
        warnings=warnings,
    )
    payload = build_payload(f"bus_ledger.{args.kind}", records, run_summary)
    for warning in warnings:
        emit_human(f"Warning: {warning}", quiet=args.quiet)
    if not args.json:
        emit_human(render_records_text(f"bus-ledger extract {args.kind}", args.kind, records), quiet=args.quiet)
    deliver(payload, args)
    return EXIT_SUCCESS if records else EXIT_NO_RECORDS


def run_reconcile(args: argparse.Namespace) -> int:
    real_path = Path(args.real)
    invoice_path = Path(args.invoice)
    require_file(real_path)
    require_file(invoice_path)
    settings: EngineSettings = load_settings(args.config)
    real = load_table(real_path, sheet_name=args.real_sheet)
    invoice = load_table(invoice_path, sheet_name=args.invoice_sheet)
    records = reconcile_vat(
        real["table"],
        invoice["table"],
        tolerance=settings.vat_tolerance,
        profile=settings.profile("vat"),
    )
    counts = status_counts(records)
    discrepancies = len(records) - counts[ReconciliationStatus.MATCH.value]
    run_summary = build_run_summary(
        tool="bus-ledger",
        command="reconcile",
        input_paths=[real_path, invoice_path],
        output_path=Path(args.output) if args.output else None,
        metrics={"records": len(records), "discrepancies": discrepancies, "by_status": counts},
        warnings=list(real["warnings"]) + list(invoice["warnings"]),
    )
    payload = build_payload("bus_ledger.vat", records, run_summary)
    if not args.json:
        emit_human(render_records_text("bus-ledger reconcile", "vat", records), quiet=args.quiet)
        emit_human(f"Discrepancies: {discrepancies}", quiet=args.quiet)
    deliver(payload, args)
    if discrepancies and args.fail_on_discrepancy:
        return EXIT_DISCREPANCIES
    return EXIT_SUCCESS


def run_driver_summary(args: argparse.Namespace) -> int:
    store_path = Path(args.store)
    require_file(store_path)
    try:
        month = normalize_month(args.month)
    except ValueError as exc:
        raise CliError(str(exc), EXIT_COMMAND_ERROR) from exc
    history = JsonFileStore(store_path).load()
    summaries = summarize_drivers(history["daily"], history["transit"], month=month)
    payload = build_payload(
        "bus_ledger.summary",
        summaries,
        build_run_summary(
            tool="bus-ledger",
            command="summary",
            input_paths=[store_path],
            output_path=Path(args.output) if args.output else None,
            metrics={"drivers": len(summaries), "month": month or None},
        ),
    )
    if not args.json:
        emit_human(render_records_text("bus-ledger summary", "summary", summaries), quiet=args.quiet)
    deliver(payload, args)
    return EXIT_SUCCESS


def run_config_init(args: argparse.Namespace) -> int:
    config_path = Path(args.path)
    if config_path.exists():
        eprint(f"Refusing to overwrite existing config: {config_path}")
        return EXIT_COMMAND_ERROR
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(starter_config_text(), encoding="utf-8")
    emit_human(f"Config written: {config_path}")
    return EXIT_SUCCESS


def run_version() -> int:
    print(TOOL_VERSION)
    return EXIT_SUCCESS


def add_output_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="JSON config with tolerances and keyword overrides")
    parser.add_argument("-o", "--output", help="Write the JSON payload to this path")
    parser.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress human-readable stderr output")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log header detection and skipped rows")


def build_parser() -> argparse.ArgumentParser:
    parser = BusLedgerArgumentParser(
        prog="bus-ledger",
        description="Normalize and reconcile bus-line spreadsheet exports.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract = subparsers.add_parser("extract", help="Extract aggregated records from one export.")
    extract.add_argument("kind", choices=sorted(EXTRACTORS), help="Dataset kind")
    extract.add_argument("input", help="Input file path")
    extract.add_argument("--sheet", dest="sheet_name", help="Workbook sheet to read")
    extract.add_argument("--store", help="Merge daily/self/transit records into this JSON history")
    add_output_flags(extract)

    reconcile = subparsers.add_parser("reconcile", help="Reconcile actual revenue against issued invoices.")
    reconcile.add_argument("real", help="Actual-revenue ledger")
    reconcile.add_argument("invoice", help="Issued-invoice ledger")
    reconcile.add_argument("--real-sheet", help="Sheet to read from the revenue workbook")
    reconcile.add_argument("--invoice-sheet", help="Sheet to read from the invoice workbook")
    reconcile.add_argument(
        "--fail-on-discrepancy",
        action="store_true",
        help="Exit 3 when any ticket is not a MATCH",
    )
    add_output_flags(reconcile)

    summary = subparsers.add_parser("summary", help="Monthly per-driver rollup from a history store.")
    summary.add_argument("--store", required=True, help="JSON history written by extract --store")
    summary.add_argument("--month", help="Restrict to one month, MM/YYYY")
    add_output_flags(summary)

    config = subparsers.add_parser("config", help="Generate configuration.")
    config_subparsers = config.add_subparsers(dest="config_command", required=True)
    config_init = config_subparsers.add_parser("init", help="Write a starter config file.")
    config_init.add_argument("--path", default=DEFAULT_CONFIG_PATH, help="Config output path")

    subparsers.add_parser("version", help="Print the installed version.")
    return parser


def main(argv: list[str] | None = None) -> int:
    try:
        parser = build_parser()
        args = parser.parse_args(argv)
        configure_logging(getattr(args, "verbose", False))
        if args.command == "config":
            if args.config_command == "init":
                return run_config_init(args)
        if args.command == "version":
            return run_version()
        handlers = {"extract": run_extract, "reconcile": run_reconcile, "summary": run_driver_summary}
        handler = handlers.get(args.command)
        if handler is None:
            raise CliError(f"Unknown command: {args.command}", EXIT_COMMAND_ERROR)
        try:
            return handler(args)
        except Exception as exc:
            eprint(str(exc))
            return classify_exception(exc)
    except CliError as exc:
        eprint(str(exc))
        return exc.code


if __name__ == "__main__":
    raise SystemExit(main())
