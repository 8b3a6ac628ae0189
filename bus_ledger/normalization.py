"""Pure value normalizers shared by every extractor.

Nothing here raises on bad input: a value that cannot be interpreted
normalizes to the empty string (or 0 for numbers) so callers can skip it.
"""

from __future__ import annotations

import calendar
import numbers
import re
import unicodedata
from datetime import date, datetime
from typing import Any

import pandas as pd

EXCEL_ORIGIN = "1899-12-30"
SERIAL_DATE_MIN = 20000
SERIAL_DATE_MAX = 60000
YEAR_MIN = 2000
YEAR_MAX = 2100

STRICT_DATE_RE = re.compile(r"^(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})$")
LENIENT_DATE_RE = re.compile(r"(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})")
NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")
GROUPED_AMOUNT_RE = re.compile(r"(?<![\d.,])-?\d{1,3}(?:([.,])\d{3})(?:\1\d{3})*(?![.,]?\d)")
PHONE_RUN_RE = re.compile(r"\+?\d(?:[\s.\-]?\d)*")
PLATE_RE = re.compile(r"\b(\d{2}[A-Z]{1,2})[\s.\-]*(\d{3,4}\.?\d{0,2})\b")
DIACRITIC_RE = re.compile(r"[À-ỹ]")
WHITESPACE_RE = re.compile(r"\s+")
TITLE_RE = re.compile(r"(^|\s)(\S)")
NON_ALNUM_RE = re.compile(r"[^a-z0-9]")
NON_ALNUM_UPPER_RE = re.compile(r"[^A-Z0-9]")

PHONE_MIN_DIGITS = 9
PHONE_MAX_DIGITS = 11
PHONE_STANDARD_DIGITS = 10
PLATE_LOOSE_MAX_LENGTH = 15


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def cell_text(value: Any) -> str:
    """Render any cell as trimmed text; integral floats lose their '.0'."""
    if is_blank(value):
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, (datetime, date)):
        return parse_date(value) or value.isoformat()
    if isinstance(value, numbers.Real) and float(value).is_integer():
        return str(int(value))
    return unicodedata.normalize("NFC", str(value)).strip()


def collapse_whitespace(text: str) -> str:
    return WHITESPACE_RE.sub(" ", text).strip()


def _format_date(day: int, month: int, year: int) -> str:
    if month < 1 or month > 12:
        return ""
    if year < YEAR_MIN or year > YEAR_MAX:
        return ""
    if day < 1 or day > calendar.monthrange(year, month)[1]:
        return ""
    return f"{day:02d}/{month:02d}/{year}"


def parse_date(value: Any, *, lenient: bool = False) -> str:
    """Normalize a cell to DD/MM/YYYY, or '' when it is not a valid date.

    Accepts native dates, spreadsheet serials in (20000, 60000) counted from
    1899-12-30, and D/M/YYYY text. ``lenient`` lets the text pattern appear
    anywhere in the string instead of spanning all of it.
    """
    if is_blank(value) or isinstance(value, bool):
        return ""
    if isinstance(value, (datetime, date)):
        return _format_date(value.day, value.month, value.year)
    if isinstance(value, numbers.Real):
        serial = float(value)
        if not SERIAL_DATE_MIN < serial < SERIAL_DATE_MAX:
            return ""
        stamp = pd.to_datetime(serial, unit="D", origin=EXCEL_ORIGIN)
        return _format_date(stamp.day, stamp.month, stamp.year)
    if not isinstance(value, str):
        return ""
    text = value.strip()
    match = LENIENT_DATE_RE.search(text) if lenient else STRICT_DATE_RE.match(text)
    if not match:
        return ""
    day, month, year = (int(part) for part in match.groups())
    return _format_date(day, month, year)


def date_sort_key(value: str) -> str:
    """'01/06/2024' -> '20240601'; unknown dates sort as ''."""
    if not value:
        return ""
    return "".join(reversed(value.split("/")))


def _as_number(value: numbers.Real) -> int | float:
    number = float(value)
    if number != number:
        return 0
    if isinstance(value, numbers.Integral) or number.is_integer():
        return int(number)
    return number


def extract_number(value: Any) -> int | float:
    """First signed number in a cell ('5 khách' -> 5); 0 when none is present."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, numbers.Real):
        return _as_number(value)
    text = cell_text(value).replace(",", "")
    match = NUMBER_RE.search(text)
    if not match:
        return 0
    token = match.group(0)
    return float(token) if "." in token else int(token)


def extract_amount(value: Any) -> int | float:
    """Money cell in VND, honouring '.' or ',' thousands grouping ('90.000 đ')."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, numbers.Real):
        return _as_number(value)
    text = cell_text(value)
    match = GROUPED_AMOUNT_RE.search(text)
    if match:
        return int(re.sub(r"[.,]", "", match.group(0)))
    return extract_number(text)


def normalize_phone(value: Any) -> str:
    digits = re.sub(r"\D", "", cell_text(value))
    if digits.startswith("84"):
        digits = "0" + digits[2:]
    if len(digits) < PHONE_MIN_DIGITS or len(digits) > PHONE_MAX_DIGITS:
        return ""
    return digits


def find_phone(value: Any) -> str:
    """Locate a phone number inside free text such as 'Liên hệ: 0912.345.678 (A Hùng)'.

    Digit groups are joined left to right and joining stops at the first
    10-digit number, so a trailing count ('0912345678 2 vé') stays separate.
    """
    text = cell_text(value)
    for run in PHONE_RUN_RE.finditer(text):
        groups = re.findall(r"\d+", run.group(0))
        for start in range(len(groups)):
            digits = ""
            fallback = ""
            for group in groups[start:]:
                digits += group
                if len(digits) > PHONE_MAX_DIGITS + 1:
                    break
                phone = normalize_phone(digits)
                if len(phone) == PHONE_STANDARD_DIGITS:
                    return phone
                if phone:
                    fallback = phone
                elif fallback:
                    break
            if fallback:
                return fallback
    return ""


def extract_license_plate(value: Any, *, allow_loose: bool = True) -> str:
    """Vietnamese plate as PREFIX-SUFFIX ('29b 123.45' -> '29B-12345')."""
    text = cell_text(value).upper()
    if not text:
        return ""
    match = PLATE_RE.search(text)
    if match:
        suffix = re.sub(r"[.\s]", "", match.group(2))
        return f"{match.group(1)}-{suffix}"
    if (
        allow_loose
        and len(text) < PLATE_LOOSE_MAX_LENGTH
        and " " not in text
        and re.search(r"\d", text)
        and re.search(r"[A-Z]", text)
    ):
        return re.sub(r"[.\s]", "", text)
    return ""


def strip_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text.replace("đ", "d").replace("Đ", "D"))
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def identity_key(value: Any) -> str:
    """Merge key for names and ids. Never shown to users."""
    return NON_ALNUM_RE.sub("", strip_diacritics(cell_text(value).lower()))


def ticket_code_key(value: Any) -> str:
    return NON_ALNUM_UPPER_RE.sub("", cell_text(value).upper())


def title_case(text: str) -> str:
    return TITLE_RE.sub(lambda match: match.group(1) + match.group(2).upper(), text.lower())


def has_diacritics(text: str) -> bool:
    return bool(DIACRITIC_RE.search(text))


def prefer_display_name(current: str, candidate: str) -> str:
    """Accented spelling beats unaccented; otherwise the longer one wins."""
    if not current:
        return candidate
    candidate_marked = has_diacritics(candidate)
    current_marked = has_diacritics(current)
    if candidate_marked and not current_marked:
        return candidate
    if candidate_marked == current_marked and len(candidate) > len(current):
        return candidate
    return current


def name_sort_key(name: str) -> tuple[str, str]:
    return identity_key(name), name.lower()
