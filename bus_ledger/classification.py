"""Route groups and fare-based ticket types for pricing sheets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

REGULAR_TICKET = "Vé Thường"
STUDENT_TICKET = "Vé Sinh Viên"


@dataclass(frozen=True)
class RouteGroup:
    label: str
    # A route belongs to the group when it names one alias from each end.
    ends: tuple[tuple[str, ...], tuple[str, ...]]
    fares: Mapping[int, str] = field(default_factory=dict)

    def matches(self, route: str) -> bool:
        lowered = route.lower()
        return all(any(alias in lowered for alias in aliases) for aliases in self.ends)


THAI_NGUYEN = ("thái nguyên", "tn")

ROUTE_GROUPS = (
    RouteGroup(
        label="Tuyến Thái Nguyên <=> Mỹ Đình",
        ends=(THAI_NGUYEN, ("mỹ đình", "mđ")),
        fares={
            100_000: "Khách sử dụng trung chuyển (Taxi/Bus)",
            90_000: "Vé Sinh Viên (Kèm Trung Chuyển)",
            70_000: "Vé Sinh Viên (Thường)",
        },
    ),
    RouteGroup(
        label="Tuyến Thái Nguyên <=> Bắc Kạn",
        ends=(THAI_NGUYEN, ("bắc kạn", "bk")),
    ),
)

GENERIC_FARES = {
    90_000: STUDENT_TICKET,
    70_000: STUDENT_TICKET,
}


def route_group(route: str) -> str:
    """Collapse both directions of a known route onto one label."""
    for group in ROUTE_GROUPS:
        if group.matches(route):
            return group.label
    return route


def classify_ticket(price: int | float, group_label: str) -> str:
    for group in ROUTE_GROUPS:
        if group.label == group_label and price in group.fares:
            return group.fares[price]
    return GENERIC_FARES.get(price, REGULAR_TICKET)
