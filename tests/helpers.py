"""Shared test helpers."""

from dataclasses import dataclass
from decimal import Decimal

from motel_booking.models import Money


@dataclass(frozen=True)
class SeededMotel:
    """IDs of the records written by the ``motel`` fixture."""

    property_id: str = "PROP-1"
    property_code: str = "SUNSET"
    other_property_id: str = "PROP-2"
    guest_id: str = "GUEST-1"
    rate_plan_id: str = "RP-BAR"
    other_rate_plan_id: str = "RP-HARBOR"
    queen: str = "RT-QUEEN"
    king: str = "RT-KING"
    cot: str = "RT-COT"
    other_room_type: str = "RT-HARBOR-DBL"
    breakfast: str = "ADD-BREAKFAST"
    other_addon: str = "ADD-HARBOR-PARKING"


def usd(amount: str) -> Money:
    return Money(amount=Decimal(amount), currency="USD")
