from __future__ import annotations

import unittest

from bus_ledger.header_inference import HeaderProfile, RoleRule, ScoreGroup, find_column, infer_header
from bus_ledger.profiles import DAILY, SELF, VAT, apply_overrides
from bus_ledger.shared import ABSENT


class InferHeaderTests(unittest.TestCase):
    def test_daily_header_on_first_row(self):
        rows = [
            ["STT", "Ngày", "Tên lái xe", "Số khách"],
            ["1", "01/06/2024", "Nguyễn Văn A", "12"],
        ]
        match = infer_header(rows, DAILY)
        self.assertIsNotNone(match)
        self.assertEqual(match.header_index, 0)
        self.assertEqual(match.data_start, 1)
        self.assertEqual(match.mapping.get("driver"), 2)
        self.assertEqual(match.mapping.get("date"), 1)
        self.assertEqual(match.mapping.get("customer"), 3)
        self.assertFalse(match.mapping.has("ticket"))

    def test_title_rows_above_the_header_are_skipped(self):
        rows = [
            ["BÁO CÁO KHÁCH THÁNG 6"],
            [],
            ["STT", "Ngày", "Tên lái xe", "Số khách"],
            ["1", "01/06/2024", "Nguyễn Văn A", "12"],
        ]
        self.assertEqual(infer_header(rows, DAILY).header_index, 2)

    def test_required_role_missing_means_no_header(self):
        rows = [["Ngày", "Số khách"], ["01/06/2024", "3"]]
        self.assertIsNone(infer_header(rows, DAILY))

    def test_ties_keep_the_earliest_row(self):
        header = ["Ngày", "Tài xế", "Số khách"]
        rows = [header, list(header), ["01/06/2024", "Nam", "2"]]
        self.assertEqual(infer_header(rows, DAILY).header_index, 0)

    def test_higher_score_later_row_wins(self):
        rows = [
            ["Tài xế"],
            ["Ngày", "Tài xế", "Số khách"],
        ]
        match = infer_header(rows, DAILY)
        self.assertEqual(match.header_index, 1)
        self.assertEqual(match.score, 7)

    def test_rows_beyond_scan_window_are_ignored(self):
        rows = [["x"] for _ in range(DAILY.scan_rows)] + [["Ngày", "Tài xế", "Số khách"]]
        self.assertIsNone(infer_header(rows, DAILY))
        widened = apply_overrides(DAILY, {"scan_rows": DAILY.scan_rows + 1})
        self.assertEqual(infer_header(rows, widened).header_index, DAILY.scan_rows)

    def test_excluded_keyword_blocks_low_tier_match(self):
        rows = [["Tài xế", "Loại khách", "Số lượng khách"]]
        self.assertEqual(infer_header(rows, DAILY).mapping.get("customer"), 2)

    def test_driver_column_is_not_mistaken_for_trip_column(self):
        rows = [["Ngày", "Tài xế", "Giờ", "SL khách"]]
        mapping = infer_header(rows, DAILY).mapping
        self.assertEqual(mapping.get("trip"), ABSENT)
        self.assertEqual(mapping.get("time"), 2)

    def test_compact_matching_for_ledgers(self):
        rows = [["Mã vé", "Thành tiền", "Ngày"]]
        mapping = infer_header(rows, VAT).mapping
        self.assertEqual(mapping.to_dict(), {"code": 0, "amount": 1, "date": 2})

    def test_time_column_is_not_taken_for_the_amount(self):
        mapping = infer_header([["Mã vé", "Thời gian", "Số tiền"]], VAT).mapping
        self.assertEqual(mapping.to_dict(), {"code": 0, "amount": 2, "date": 1})

    def test_bare_price_header_still_maps_the_amount(self):
        mapping = infer_header([["Mã vé", "Thời gian", "Giá"]], VAT).mapping
        self.assertEqual(mapping.get("amount"), 2)

    def test_word_matching_for_self_manifests(self):
        rows = [["Ngày đi", "Ghi chú"]]
        self.assertEqual(infer_header(rows, SELF).mapping.get("date"), 0)
        self.assertIsNone(infer_header([["Ngàyđi"]], SELF))


class FindColumnTests(unittest.TestCase):
    def test_tiered_rule_prefers_high_keywords_anywhere_in_row(self):
        rule = RoleRule(high=("tài xế",), low=("tên",))
        self.assertEqual(find_column(["Tên khách", "Tài xế"], rule), 1)

    def test_single_pass_rule_takes_first_hit_of_either_tier(self):
        rule = RoleRule(high=("số lượng khách",), low=("khách",), tiered=False)
        self.assertEqual(find_column(["Khách", "Số lượng khách"], rule), 0)

    def test_unknown_match_mode_is_rejected(self):
        with self.assertRaises(ValueError):
            RoleRule(high=("x",), match="fuzzy")

    def test_custom_profile(self):
        profile = HeaderProfile(
            name="custom",
            roles={"who": RoleRule(high=("người cầm lái",))},
            score_groups=(ScoreGroup(("who",), 1),),
            required=("who",),
        )
        self.assertEqual(infer_header([["a"], ["Người cầm lái"]], profile).header_index, 1)


if __name__ == "__main__":
    unittest.main()
