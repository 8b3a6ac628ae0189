"""
loader.py — turns spreadsheet exports into engine input

Supports: .csv .tsv .txt .xlsx .xlsm .xls .json

Public API:
    result = load_table("path/to/file.xlsx")
    table  = result["table"]          # Matrix or Records

Result dict keys:
    table             — Matrix (positional rows) or Records (row objects)
    detected_format   — "csv", "xlsx", "json", etc.
    detected_encoding — encoding name for text files; None for workbooks
    delimiter         — delimiter char for text files; None otherwise
    sheet_name        — sheet that was read for workbooks; None otherwise
    sheet_names       — all sheet names for workbooks; None otherwise
    row_count         — number of rows handed to the engine
    warnings          — list of warning strings
"""

from __future__ import annotations

import csv
import io
import json
from collections import Counter
from pathlib import Path
from typing import Any, Optional

import chardet
import openpyxl
import pandas as pd

from bus_ledger.inputs import Matrix, Records

# ── Format groups ──────────────────────────────────────────────────────────────
TEXT_FORMATS = {".csv", ".tsv", ".txt"}
MODERN_WORKBOOK_FORMATS = {".xlsx", ".xlsm"}
LEGACY_WORKBOOK_FORMATS = {".xls"}
JSON_FORMATS = {".json"}
ALL_FORMATS = TEXT_FORMATS | MODERN_WORKBOOK_FORMATS | LEGACY_WORKBOOK_FORMATS | JSON_FORMATS


# ══════════════════════════════════════════════════════════════════════════════
# TEXT FILES
# ══════════════════════════════════════════════════════════════════════════════

def _detect_encoding(raw: bytes) -> str:
    result = chardet.detect(raw)
    return result.get("encoding") or "utf-8"


def _read_text_safely(raw: bytes, preferred_encoding: str) -> str:
    """
    Decode raw bytes line-by-line.

    Each line tries UTF-8, then the detected encoding, then CP1258 (the
    Vietnamese Windows code page), and finally CP1252 with replacement.
    """
    decoded_lines: list[str] = []
    for raw_line in raw.split(b"\n"):
        decoded: str | None = None
        for enc in ("utf-8", preferred_encoding, "cp1258"):
            if not enc:
                continue
            try:
                decoded = raw_line.decode(enc)
                break
            except (LookupError, UnicodeDecodeError):
                continue
        if decoded is None:
            decoded = raw_line.decode("cp1252", errors="replace")
        decoded_lines.append(decoded.replace("\x00", "").lstrip("\ufeff"))
    return "\n".join(decoded_lines)


def _detect_delimiter(text: str, suffix: str) -> str:
    """
    Infer the delimiter from sample lines.

    csv.Sniffer first; otherwise the candidate giving the most consistent
    multi-column width wins.
    """
    if suffix == ".tsv":
        return "\t"
    sample_lines = [line for line in text.splitlines() if line.strip()][:50]
    sample = "\n".join(sample_lines[:25])
    if sample:
        try:
            return csv.Sniffer().sniff(sample, delimiters=",;\t|").delimiter
        except csv.Error:
            pass

    best_delim = ","
    best_score = float("-inf")
    for delim in (",", ";", "\t", "|"):
        widths = [len(row) for row in csv.reader(io.StringIO("\n".join(sample_lines)), delimiter=delim) if row]
        if not widths:
            continue
        mode_width, mode_count = Counter(widths).most_common(1)[0]
        score = mode_width * 2.0 + (mode_count / len(widths)) * mode_width
        if mode_width == 1:
            score -= 10.0
        if score > best_score:
            best_score = score
            best_delim = delim
    return best_delim


def _load_text(path: Path, suffix: str) -> dict:
    raw = path.read_bytes()
    encoding = _detect_encoding(raw)
    text = _read_text_safely(raw, encoding)
    delimiter = _detect_delimiter(text, suffix)
    rows = [row for row in csv.reader(io.StringIO(text), delimiter=delimiter)]
    return {
        "table": Matrix(rows),
        "detected_format": suffix.lstrip("."),
        "detected_encoding": encoding,
        "delimiter": delimiter,
        "sheet_name": None,
        "sheet_names": None,
        "row_count": len(rows),
        "warnings": [],
    }


# ══════════════════════════════════════════════════════════════════════════════
# WORKBOOKS
# ══════════════════════════════════════════════════════════════════════════════

def _choose_sheet(all_sheets: list[str], sheet_name: Optional[str], warnings: list[str]) -> str:
    if not all_sheets:
        raise ValueError("Workbook has no sheets")
    if sheet_name is not None:
        if sheet_name not in all_sheets:
            raise ValueError(f"Sheet '{sheet_name}' not found. Available: {all_sheets}")
        return sheet_name
    if len(all_sheets) > 1:
        warnings.append(f"Workbook has {len(all_sheets)} sheets; read the first one ('{all_sheets[0]}')")
    return all_sheets[0]


def _load_modern_workbook(path: Path, suffix: str, sheet_name: Optional[str]) -> dict:
    warnings: list[str] = []
    try:
        workbook = openpyxl.load_workbook(path, read_only=True, data_only=True)
    except Exception as exc:
        raise ValueError(f"Could not read workbook: {exc}") from exc
    try:
        all_sheets = list(workbook.sheetnames)
        chosen = _choose_sheet(all_sheets, sheet_name, warnings)
        rows = [list(row) for row in workbook[chosen].iter_rows(values_only=True)]
    finally:
        workbook.close()
    return {
        "table": Matrix(rows),
        "detected_format": suffix.lstrip("."),
        "detected_encoding": None,
        "delimiter": None,
        "sheet_name": chosen,
        "sheet_names": all_sheets,
        "row_count": len(rows),
        "warnings": warnings,
    }


def _load_legacy_workbook(path: Path, sheet_name: Optional[str]) -> dict:
    try:
        import xlrd  # noqa: F401
    except ImportError:
        raise ImportError(".xls files require xlrd. Run: pip install xlrd")

    warnings: list[str] = []
    try:
        with pd.ExcelFile(path, engine="xlrd") as workbook:
            all_sheets = [str(name) for name in workbook.sheet_names]
            chosen = _choose_sheet(all_sheets, sheet_name, warnings)
            frame = workbook.parse(chosen, header=None)
    except ValueError:
        raise
    except Exception as exc:
        raise ValueError(f"Could not read workbook: {exc}") from exc

    frame = frame.astype(object).where(pd.notna(frame), None)
    rows = frame.values.tolist()
    return {
        "table": Matrix(rows),
        "detected_format": "xls",
        "detected_encoding": None,
        "delimiter": None,
        "sheet_name": chosen,
        "sheet_names": all_sheets,
        "row_count": len(rows),
        "warnings": warnings,
    }


# ══════════════════════════════════════════════════════════════════════════════
# JSON
# ══════════════════════════════════════════════════════════════════════════════

def _load_json(path: Path) -> dict:
    """
    Arrays of arrays become a Matrix, arrays of objects become Records.
    A top-level object is searched for its first array value.
    """
    raw = path.read_bytes()
    encoding = _detect_encoding(raw)
    try:
        data: Any = json.loads(_read_text_safely(raw, encoding))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON: {exc}") from exc

    warnings: list[str] = []
    if isinstance(data, dict):
        list_keys = [key for key, value in data.items() if isinstance(value, list)]
        if not list_keys:
            raise ValueError("JSON object holds no array of rows")
        warnings.append(f"Nested JSON: used array at top-level key '{list_keys[0]}'")
        data = data[list_keys[0]]
    if not isinstance(data, list):
        raise ValueError(f"JSON root must be an array or object, got {type(data).__name__}")

    if data and all(isinstance(item, dict) for item in data):
        table: Matrix | Records = Records(data)
    else:
        table = Matrix(data)
    return {
        "table": table,
        "detected_format": "json",
        "detected_encoding": encoding,
        "delimiter": None,
        "sheet_name": None,
        "sheet_names": None,
        "row_count": len(data),
        "warnings": warnings,
    }


def load_table(path: "str | Path", sheet_name: Optional[str] = None) -> dict:
    """
    Load any supported file as engine input.

    Raises:
        FileNotFoundError  if the file does not exist.
        ValueError         if the format is unsupported or unreadable.
        ImportError        if a required optional dependency is missing.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    if suffix not in ALL_FORMATS:
        supported = ", ".join(sorted(ALL_FORMATS))
        raise ValueError(f"Unsupported format '{suffix or '[missing extension]'}'. Supported: {supported}")

    if suffix in TEXT_FORMATS:
        return _load_text(path, suffix)
    if suffix in MODERN_WORKBOOK_FORMATS:
        return _load_modern_workbook(path, suffix, sheet_name)
    if suffix in LEGACY_WORKBOOK_FORMATS:
        return _load_legacy_workbook(path, sheet_name)
    return _load_json(path)
