"""Availability search models."""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class AvailabilityQuery(BaseModel):
    """Availability search parameters.

    Also serves as the availability cache key, so it is frozen and hashable.
    """

    model_config = ConfigDict(frozen=True)

    property_id: str
    start_date: dt.date
    end_date: dt.date
    adults: int = 1
    children: int = 0
    room_type_codes: tuple[str, ...] = Field(
        default=(), description="Filter, sorted and upper-cased"
    )


class NightlyRate(BaseModel):
    date: dt.date
    currency: str
    amount: Decimal = Field(..., description="2 decimal places")


class RoomTypeAvailability(BaseModel):
    room_type_id: str
    code: str
    name: str = ""
    capacity: int
    available_rooms: int = Field(..., ge=0)
    nightly_rates: list[NightlyRate]


class AvailabilityResult(BaseModel):
    property_id: str
    start_date: dt.date
    end_date: dt.date
    room_types: list[RoomTypeAvailability]
