"""Header keyword dictionaries and weights, one profile per dataset kind."""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Mapping

from bus_ledger.header_inference import HeaderProfile, RoleRule, ScoreGroup

DATE_WORDS = ("ngày", "date", "thời gian")

DAILY = HeaderProfile(
    name="daily",
    roles={
        "driver": RoleRule(
            high=("tên lái xe", "tài xế", "lái xe", "họ tên lái xe"),
            low=("driver", "nhân viên", "bác tài", "tên lái"),
        ),
        "date": RoleRule(high=("ngày đi", "ngày xuất bến"), low=("ngày", "date", "thời gian", "ngày tháng")),
        "customer": RoleRule(
            high=("tổng vé", "số lượng khách", "sl khách", "tổng số khách"),
            low=("khách", "số lượng", "sl", "pax", "người"),
            exclude=("loại",),
            tiered=False,
        ),
        "ticket": RoleRule(
            high=("số vé", "sl vé", "lượng vé", "vé bán", "vé"),
            low=("ticket",),
            exclude=("mã",),
            tiered=False,
        ),
        "trip": RoleRule(high=("chuyến", "mã chuyến", "lượt", "ms"), low=("nốt", "tài"), exclude=("tài xế", "lái")),
        "time": RoleRule(high=("giờ", "time", "xuất bến")),
    },
    score_groups=(
        ScoreGroup(("driver",), 3),
        ScoreGroup(("date",), 2),
        ScoreGroup(("customer",), 2),
        ScoreGroup(("ticket",), 1),
        ScoreGroup(("trip", "time"), 1),
    ),
    required=("driver",),
)

SELF = HeaderProfile(
    name="self",
    roles={"date": RoleRule(high=DATE_WORDS, match="word")},
    score_groups=(ScoreGroup(("date",), 1),),
)

TRANSIT = HeaderProfile(
    name="transit",
    roles={
        "driver": RoleRule(
            high=(
                "tài trung chuyển",
                "lái xe trung chuyển",
                "tài tc",
                "lái xe",
                "tài xế",
                "họ tên",
                "tên",
                "nhân viên",
                "người lái",
                "driver",
                "name",
            ),
        ),
        "date": RoleRule(high=DATE_WORDS),
        "passengers": RoleRule(high=("số khách", "số lượng", "sl", "pax", "người", "số người", "khách")),
        "plate": RoleRule(high=("bks", "biển", "số xe", "kiểm soát", "plate")),
        "notes": RoleRule(high=("ghi chú", "lộ trình", "tuyến", "nội dung", "note")),
    },
    score_groups=(
        ScoreGroup(("driver",), 3),
        ScoreGroup(("date",), 3),
        ScoreGroup(("passengers",), 2),
        ScoreGroup(("plate",), 2),
    ),
    required=("driver",),
    scan_rows=30,
)

PHONE = HeaderProfile(
    name="phone",
    roles={
        "phone": RoleRule(high=("số điện thoại", "sđt", "điện thoại", "mobile", "phone", "tel", "hotline")),
        "name": RoleRule(high=("tên khách", "họ tên", "người gửi", "khách hàng", "name", "customer")),
        "date": RoleRule(high=DATE_WORDS),
        "quantity": RoleRule(high=("số lượng", "sl", "số vé")),
        "route": RoleRule(high=("tuyến", "lộ trình", "hành trình", "route", "chặng")),
    },
    score_groups=(
        ScoreGroup(("phone",), 3),
        ScoreGroup(("name",), 2),
        ScoreGroup(("date",), 1),
        ScoreGroup(("route",), 1),
    ),
    required=("phone",),
)

PRICING = HeaderProfile(
    name="pricing",
    roles={
        "route": RoleRule(high=("tuyến", "lộ trình", "hành trình", "chặng", "route", "tên tuyến")),
        "price": RoleRule(high=("giá vé", "đơn giá", "price", "tiền vé", "thành tiền", "doanh thu")),
        "quantity": RoleRule(high=("số lượng", "sl", "số vé", "khách")),
    },
    score_groups=(
        ScoreGroup(("route",), 3),
        ScoreGroup(("price",), 3),
        ScoreGroup(("quantity",), 2),
    ),
    required=("price",),
)

ROSTER = HeaderProfile(
    name="roster",
    roles={
        "driver": RoleRule(high=("tên lái xe", "tài xế", "lái xe", "họ tên", "nhân viên", "driver", "khách lxe")),
        "trip": RoleRule(high=("số chuyến", "tổng chuyến", "lượt", "số lượt", "chuyến", "trips")),
        "distance": RoleRule(high=("km", "quãng đường", "cự ly", "distance")),
        "notes": RoleRule(high=("ghi chú", "note", "mô tả")),
    },
    score_groups=(
        ScoreGroup(("driver",), 3),
        ScoreGroup(("trip",), 2),
        ScoreGroup(("distance",), 1),
    ),
    required=("driver",),
)

VAT = HeaderProfile(
    name="vat",
    roles={
        "code": RoleRule(high=("mave", "sove", "ticket", "code", "id", "ma"), match="compact"),
        "amount": RoleRule(
            high=("giatien", "thanhtien", "sotien", "tien", "amount", "revenue", "doanhthu", "vnd", "total", "tong"),
            low=("gia",),
            # "Thời gian" compacts to "thoigian", which contains "gia".
            exclude=("thoigian",),
            match="compact",
        ),
        "date": RoleRule(high=("ngay", "date", "thoi", "time"), match="compact"),
    },
    score_groups=(
        ScoreGroup(("code",), 3),
        ScoreGroup(("amount",), 3),
        ScoreGroup(("date",), 1),
    ),
)

DEFAULT_PROFILES: dict[str, HeaderProfile] = {
    profile.name: profile for profile in (DAILY, SELF, TRANSIT, PHONE, PRICING, ROSTER, VAT)
}


def _as_keywords(value: Any, *, field_name: str) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"'{field_name}' must be a list of strings")
    return tuple(value)


def apply_overrides(profile: HeaderProfile, overrides: Mapping[str, Any]) -> HeaderProfile:
    """Return a copy of ``profile`` with role keywords and scan window replaced.

    ``overrides`` has the shape used in the JSON config:
    ``{"scan_rows": 25, "roles": {"driver": {"high": [...], "low": [...]}}}``.
    """
    roles = dict(profile.roles)
    for role, changes in (overrides.get("roles") or {}).items():
        if role not in roles:
            raise ValueError(f"Unknown role '{role}' for {profile.name} profile")
        if not isinstance(changes, Mapping):
            raise ValueError(f"Role '{role}' override must be an object")
        updates = {
            key: _as_keywords(changes[key], field_name=f"{role}.{key}")
            for key in ("high", "low", "exclude")
            if key in changes
        }
        roles[role] = replace(roles[role], **updates)

    scan_rows = overrides.get("scan_rows", profile.scan_rows)
    if not isinstance(scan_rows, int) or isinstance(scan_rows, bool) or scan_rows < 1:
        raise ValueError(f"scan_rows for {profile.name} must be a positive integer")
    return replace(profile, roles=roles, scan_rows=scan_rows)


def resolve_profile(kind: str, profiles: Mapping[str, HeaderProfile] | None = None) -> HeaderProfile:
    if profiles and kind in profiles:
        return profiles[kind]
    return DEFAULT_PROFILES[kind]
