from __future__ import annotations

import unittest
from datetime import date, datetime

import pandas as pd

from bus_ledger.normalization import (
    cell_text,
    date_sort_key,
    extract_amount,
    extract_license_plate,
    extract_number,
    find_phone,
    identity_key,
    normalize_phone,
    parse_date,
    prefer_display_name,
    ticket_code_key,
    title_case,
)


class ParseDateTests(unittest.TestCase):
    def test_valid_text_dates_round_trip(self):
        for text in ("01/06/2024", "29/02/2024", "31/12/2099"):
            self.assertEqual(parse_date(text), text)
            self.assertEqual(parse_date(parse_date(text)), text)

    def test_single_digit_parts_and_dashes_are_padded(self):
        self.assertEqual(parse_date("1-6-2024"), "01/06/2024")

    def test_impossible_calendar_days_are_rejected(self):
        self.assertEqual(parse_date("31/02/2024"), "")
        self.assertEqual(parse_date("29/02/2023"), "")
        self.assertEqual(parse_date("12/13/2024"), "")

    def test_year_outside_supported_range_is_rejected(self):
        self.assertEqual(parse_date("01/06/1999"), "")
        self.assertEqual(parse_date(datetime(1999, 6, 1)), "")

    def test_strict_mode_requires_whole_cell_lenient_mode_searches(self):
        self.assertEqual(parse_date("Ngày 05/06/2024"), "")
        self.assertEqual(parse_date("Ngày 05/06/2024", lenient=True), "05/06/2024")

    def test_native_dates_and_timestamps(self):
        self.assertEqual(parse_date(datetime(2024, 6, 1, 8, 30)), "01/06/2024")
        self.assertEqual(parse_date(date(2024, 6, 1)), "01/06/2024")
        self.assertEqual(parse_date(pd.Timestamp("2024-06-01")), "01/06/2024")

    def test_spreadsheet_serials_inside_window_only(self):
        self.assertEqual(parse_date(45444), "01/06/2024")
        self.assertEqual(parse_date(45444.75), "01/06/2024")
        self.assertEqual(parse_date(15000), "")
        self.assertEqual(parse_date(70000), "")

    def test_blank_and_garbage(self):
        for value in (None, "", "   ", "abc", True, float("nan")):
            self.assertEqual(parse_date(value), "")

    def test_sort_key_orders_by_year_month_day(self):
        self.assertEqual(date_sort_key("01/06/2024"), "20240601")
        self.assertEqual(date_sort_key(""), "")
        self.assertLess(date_sort_key("31/05/2024"), date_sort_key("01/06/2024"))


class NumberTests(unittest.TestCase):
    def test_extract_number_from_text(self):
        self.assertEqual(extract_number("5 khách"), 5)
        self.assertEqual(extract_number("1,200"), 1200)
        self.assertEqual(extract_number("-3.5 km"), -3.5)
        self.assertEqual(extract_number("abc"), 0)
        self.assertEqual(extract_number(None), 0)

    def test_integral_floats_become_ints(self):
        value = extract_number(12.0)
        self.assertEqual(value, 12)
        self.assertIsInstance(value, int)
        self.assertEqual(cell_text(12.0), "12")

    def test_extract_amount_understands_thousands_grouping(self):
        self.assertEqual(extract_amount("90.000"), 90000)
        self.assertEqual(extract_amount("1.250.000 đ"), 1250000)
        self.assertEqual(extract_amount("90,000"), 90000)
        self.assertEqual(extract_amount(70000), 70000)
        self.assertEqual(extract_amount("12.5"), 12.5)
        self.assertEqual(extract_amount(""), 0)


class PhoneTests(unittest.TestCase):
    def test_normalize_phone(self):
        self.assertEqual(normalize_phone("+84 912 345 678"), "0912345678")
        self.assertEqual(normalize_phone("0912345678"), "0912345678")
        self.assertEqual(normalize_phone("12345"), "")

    def test_trailing_count_is_not_glued_onto_the_phone(self):
        self.assertEqual(find_phone("0912345678 2 khách"), "0912345678")
        self.assertEqual(find_phone("+84 912 345 678 3 vé"), "0912345678")
        self.assertEqual(find_phone("024 3826 1234"), "02438261234")

    def test_find_phone_inside_free_text(self):
        self.assertEqual(find_phone("Liên hệ: 0912.345.678 (Anh Hùng)"), "0912345678")
        self.assertEqual(find_phone("01/06/2024 - 0912 345 678"), "0912345678")
        self.assertEqual(find_phone("không có số"), "")


class PlateTests(unittest.TestCase):
    def test_plate_is_rendered_prefix_dash_suffix(self):
        self.assertEqual(extract_license_plate("29b 123.45"), "29B-12345")
        self.assertEqual(extract_license_plate("BKS: 20A-12345"), "20A-12345")

    def test_loose_plate_only_when_allowed(self):
        self.assertEqual(extract_license_plate("ABC123"), "ABC123")
        self.assertEqual(extract_license_plate("ABC123", allow_loose=False), "")

    def test_text_without_plate(self):
        self.assertEqual(extract_license_plate("Xe khách"), "")
        self.assertEqual(extract_license_plate(None), "")


class IdentityTests(unittest.TestCase):
    def test_identity_key_ignores_accents_case_and_spacing(self):
        self.assertEqual(identity_key("Đoàn Hùng Cường"), "doanhungcuong")
        self.assertEqual(identity_key("doan  hung cuong"), identity_key("Đoàn Hùng Cường"))

    def test_identity_key_is_idempotent(self):
        for name in ("Nguyễn Văn A", "KH LXE Hùng", "Trần-Minh 29B"):
            key = identity_key(name)
            self.assertEqual(identity_key(key), key)

    def test_ticket_code_key(self):
        self.assertEqual(ticket_code_key("ab-123"), "AB123")
        self.assertEqual(ticket_code_key(" AB 123 "), "AB123")

    def test_title_case(self):
        self.assertEqual(title_case("nguyễn VĂN a"), "Nguyễn Văn A")

    def test_prefer_display_name(self):
        self.assertEqual(prefer_display_name("Doan Hung", "Đoàn Hùng"), "Đoàn Hùng")
        self.assertEqual(prefer_display_name("Đoàn Hùng", "Doan Hung Cuong"), "Đoàn Hùng")
        self.assertEqual(prefer_display_name("Nam", "Nam Anh"), "Nam Anh")
        self.assertEqual(prefer_display_name("", "Nguyen Thi Lan"), "Nguyen Thi Lan")


if __name__ == "__main__":
    unittest.main()
