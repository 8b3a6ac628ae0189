from __future__ import annotations

import importlib.util
import json
import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from openpyxl import Workbook

from bus_ledger.extractors.daily import extract_daily_customers
from bus_ledger.inputs import Matrix, Records
from bus_ledger.loader import load_table

_XLRD_AVAILABLE = importlib.util.find_spec("xlrd") is not None


def write_daily_workbook(path: Path, *, extra_sheet: bool = False) -> None:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Tháng 6"
    sheet.append(["BÁO CÁO KHÁCH HÀNG NGÀY"])
    sheet.append([])
    sheet.append(["STT", "Ngày", "Tên lái xe", "Số khách"])
    sheet.append([1, datetime(2024, 6, 1), "Nguyễn Văn A", 12])
    sheet.append([2, None, "Nguyễn Văn A", 3])
    if extra_sheet:
        other = workbook.create_sheet("Ghi chú")
        other.append(["Tài xế", "Số khách"])
        other.append(["Hùng", 4])
    workbook.save(path)


class LoaderTests(unittest.TestCase):
    def test_xlsx_rows_feed_the_daily_extractor(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "daily.xlsx"
            write_daily_workbook(path)
            result = load_table(path)
            self.assertIsInstance(result["table"], Matrix)
            self.assertEqual(result["detected_format"], "xlsx")
            self.assertEqual(result["sheet_name"], "Tháng 6")
            self.assertEqual(result["warnings"], [])

            records = extract_daily_customers(result["table"])
            self.assertEqual(len(records), 1)
            self.assertEqual(records[0].date, "01/06/2024")
            self.assertEqual(records[0].customer_count, 15)

    def test_workbook_sheet_selection(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "daily.xlsx"
            write_daily_workbook(path, extra_sheet=True)

            result = load_table(path)
            self.assertEqual(result["sheet_names"], ["Tháng 6", "Ghi chú"])
            self.assertEqual(len(result["warnings"]), 1)

            other = load_table(path, sheet_name="Ghi chú")
            self.assertEqual(other["row_count"], 2)
            with self.assertRaisesRegex(ValueError, "not found"):
                load_table(path, sheet_name="Tháng 7")

    def test_semicolon_csv_with_vietnamese_text(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "daily.csv"
            path.write_text(
                "Ngày;Tên lái xe;Số khách\n01/06/2024;Nguyễn Văn A;12\n02/06/2024;Trần Minh;7\n",
                encoding="utf-8",
            )
            result = load_table(path)
            self.assertEqual(result["delimiter"], ";")
            self.assertEqual(result["table"].rows[1], ["01/06/2024", "Nguyễn Văn A", "12"])
            self.assertEqual(len(extract_daily_customers(result["table"])), 2)

    def test_cp1258_bytes_are_decoded(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "legacy.csv"
            path.write_bytes("Tài,Khách\nHùng,4\n".encode("cp1258"))
            result = load_table(path)
            self.assertIsNotNone(result["detected_encoding"])
            self.assertEqual(len(result["table"].rows), 2)
            self.assertEqual(result["table"].rows[1][1], "4")

    def test_json_objects_and_arrays(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            objects = Path(tmpdir) / "objects.json"
            objects.write_text(
                json.dumps([{"Tài xế": "Nam", "Số khách": 2}], ensure_ascii=False),
                encoding="utf-8",
            )
            self.assertIsInstance(load_table(objects)["table"], Records)

            arrays = Path(tmpdir) / "arrays.json"
            arrays.write_text(json.dumps([["Tài xế", "Số khách"], ["Nam", 2]]), encoding="utf-8")
            self.assertIsInstance(load_table(arrays)["table"], Matrix)

            nested = Path(tmpdir) / "nested.json"
            nested.write_text(json.dumps({"meta": 1, "rows": [["a"]]}), encoding="utf-8")
            result = load_table(nested)
            self.assertEqual(result["table"].rows, [["a"]])
            self.assertEqual(len(result["warnings"]), 1)

    def test_unreadable_inputs(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaises(FileNotFoundError):
                load_table(Path(tmpdir) / "missing.csv")

            unsupported = Path(tmpdir) / "notes.docx"
            unsupported.write_text("x", encoding="utf-8")
            with self.assertRaisesRegex(ValueError, "Unsupported format"):
                load_table(unsupported)

            corrupt = Path(tmpdir) / "corrupt.xlsx"
            corrupt.write_bytes(b"not a zip archive")
            with self.assertRaisesRegex(ValueError, "Could not read workbook"):
                load_table(corrupt)

            broken = Path(tmpdir) / "broken.json"
            broken.write_text("[1, 2", encoding="utf-8")
            with self.assertRaisesRegex(ValueError, "Invalid JSON"):
                load_table(broken)

    @unittest.skipUnless(_XLRD_AVAILABLE, "xlrd not installed")
    def test_corrupt_legacy_workbook(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            corrupt = Path(tmpdir) / "corrupt.xls"
            corrupt.write_bytes(b"not an ole2 file")
            with self.assertRaisesRegex(ValueError, "Could not read workbook"):
                load_table(corrupt)


if __name__ == "__main__":
    unittest.main()
