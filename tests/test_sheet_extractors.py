from __future__ import annotations

import unittest

from bus_ledger.classification import classify_ticket, route_group
from bus_ledger.extractors import EXTRACTORS
from bus_ledger.extractors.phone import extract_phone_records
from bus_ledger.extractors.pricing import extract_pricing
from bus_ledger.extractors.roster import add_distance, extract_driver_roster

MY_DINH_GROUP = "Tuyến Thái Nguyên <=> Mỹ Đình"
BAC_KAN_GROUP = "Tuyến Thái Nguyên <=> Bắc Kạn"


class PhoneRecordTests(unittest.TestCase):
    ROWS = [
        ["STT", "Họ tên", "Số điện thoại", "Tuyến", "Ngày"],
        ["1", "anh hùng", "Liên hệ: 0912.345.678 (Anh Hùng)", "Thái Nguyên - Mỹ Đình", "01/06/2024"],
        ["2", "Nguyễn Văn Hùng", "+84 912 345 678", "Mỹ Đình - Thái Nguyên", "05/06/2024"],
        ["3", "Lan", "0987654321", "Thái Nguyên - Mỹ Đình", "03/06/2024"],
        ["4", "Lan", "0987 654 321", "Thái Nguyên - Mỹ Đình", "02/06/2024"],
        ["5", "Hà", "0987654321", "", "04/06/2024"],
    ]

    def test_rows_merge_on_normalized_phone(self):
        records = extract_phone_records(self.ROWS)
        self.assertEqual([r.phone_number for r in records], ["0987654321", "0912345678"])

        lan, hung = records
        self.assertEqual(lan.trip_count, 3)
        self.assertEqual(lan.customer_name, "Hà")
        self.assertEqual(lan.routes, ("Thái Nguyên - Mỹ Đình",))
        self.assertEqual(lan.last_date, "04/06/2024")

        self.assertEqual(hung.trip_count, 2)
        self.assertEqual(hung.customer_name, "Nguyễn Văn Hùng")
        self.assertEqual(hung.routes, ("Thái Nguyên - Mỹ Đình", "Mỹ Đình - Thái Nguyên"))
        self.assertEqual(hung.last_date, "05/06/2024")

    def test_phone_found_outside_mapped_column(self):
        rows = [
            ["Số điện thoại", "Ghi chú"],
            ["", "gọi 0912345678 trước 30 phút"],
            ["không có", "xx"],
        ]
        records = extract_phone_records(rows)
        self.assertEqual([r.phone_number for r in records], ["0912345678"])

    def test_count_written_after_the_phone_does_not_split_the_customer(self):
        rows = [["Họ tên", "Số điện thoại"], ["Lan", "0912345678 2 vé"], ["Lan", "0912345678"]]
        records = extract_phone_records(rows)
        self.assertEqual([(r.phone_number, r.trip_count) for r in records], [("0912345678", 2)])

    def test_quantity_column_weights_trips(self):
        rows = [["SĐT", "Số lượng"], ["0912345678", "3"], ["0912345678", ""]]
        self.assertEqual(extract_phone_records(rows)[0].trip_count, 4)


class PricingTests(unittest.TestCase):
    ROWS = [
        ["Tuyến", "Giá vé", "Số lượng"],
        ["Thái Nguyên - Mỹ Đình", "90.000", "10"],
        ["", 100000, 2],
        ["Mỹ Đình - Thái Nguyên", 90000, 5],
        ["Thái Nguyên - Bắc Kạn", 70000, 3],
        ["Hà Nội - Hải Phòng", 200000, 1],
        ["Hà Nội - Hải Phòng", 0, 4],
        ["Hà Nội - Hải Phòng", 120000, ""],
        ["Tổng cộng", "", 25],
    ]

    def test_groups_by_route_group_price_and_ticket_type(self):
        records = extract_pricing(self.ROWS)
        summary = [(r.route_group, r.price, r.ticket_type, r.quantity, r.total_revenue) for r in records]
        self.assertEqual(
            summary,
            [
                (MY_DINH_GROUP, 90000, "Vé Sinh Viên (Kèm Trung Chuyển)", 15, 1350000),
                (BAC_KAN_GROUP, 70000, "Vé Sinh Viên", 3, 210000),
                (MY_DINH_GROUP, 100000, "Khách sử dụng trung chuyển (Taxi/Bus)", 2, 200000),
                ("Hà Nội - Hải Phòng", 120000, "Vé Thường", 1, 120000),
            ],
        )
        self.assertEqual(records[0].route, "Thái Nguyên - Mỹ Đình")

    def test_every_price_is_inside_the_ceiling(self):
        for record in extract_pricing(self.ROWS):
            self.assertGreater(record.price, 0)
            self.assertLessEqual(record.price, 150000)

    def test_ceiling_itself_is_accepted(self):
        records = extract_pricing([["Tuyến", "Giá vé"], ["Hà Nội - Lào Cai", "150.000"], ["Hà Nội - Lào Cai", 150001]])
        self.assertEqual([record.price for record in records], [150000])

    def test_route_falls_back_when_never_named(self):
        records = extract_pricing([["Giá vé"], [50000]])
        self.assertEqual(records[0].route, "Tuyến Khác")
        self.assertEqual(records[0].ticket_type, "Vé Thường")


class ClassificationTests(unittest.TestCase):
    def test_both_directions_share_a_group(self):
        self.assertEqual(route_group("TN - MĐ"), MY_DINH_GROUP)
        self.assertEqual(route_group("Mỹ Đình - Thái Nguyên"), MY_DINH_GROUP)
        self.assertEqual(route_group("Bắc Kạn - Thái Nguyên"), BAC_KAN_GROUP)
        self.assertEqual(route_group("Hà Nội - Hải Phòng"), "Hà Nội - Hải Phòng")

    def test_ticket_types(self):
        self.assertEqual(classify_ticket(70000, MY_DINH_GROUP), "Vé Sinh Viên (Thường)")
        self.assertEqual(classify_ticket(90000, "Hà Nội - Hải Phòng"), "Vé Sinh Viên")
        self.assertEqual(classify_ticket(100000, BAC_KAN_GROUP), "Vé Thường")


class RosterTests(unittest.TestCase):
    def test_trips_distance_and_notes_per_driver(self):
        rows = [
            ["Họ tên", "Số chuyến", "Km", "Ghi chú"],
            ["Tài xế Phạm Văn Long", 3, 120.5, "Ca sáng"],
            ["pham van long", 2, 80, "Ca chiều"],
            ["Lê Thị Mai", 6, "", ""],
            ["Tổng", 11, 200.5, ""],
        ]
        records = extract_driver_roster(rows)
        self.assertEqual([r.driver_name for r in records], ["Lê Thị Mai", "Phạm Văn Long"])
        mai, long_ = records
        self.assertEqual(mai.trip_count, 6)
        self.assertEqual(mai.total_distance, "")
        self.assertEqual(long_.trip_count, 5)
        self.assertEqual(long_.total_distance, "200.5")
        self.assertEqual(long_.notes, "Ca sáng; Ca chiều")

    def test_add_distance(self):
        self.assertEqual(add_distance("", 12), "12.0")
        self.assertEqual(add_distance("12.0", 3.25), "15.2")
        self.assertEqual(add_distance("12.0", "theo tuyến"), "theo tuyến")


class ExtractorRegistryTests(unittest.TestCase):
    def test_every_extractor_tolerates_garbage(self):
        for kind, extractor in EXTRACTORS.items():
            with self.subTest(kind=kind):
                self.assertEqual(extractor(None), [])
                self.assertEqual(extractor([[None], 7, "x"]), [])


if __name__ == "__main__":
    unittest.main()
