"""Inventory reference data: properties, room types, rooms, rate plans, add-ons.

These records are owned by inventory administration. The engine only reads
them.
"""

from pydantic import BaseModel, Field

from .enums import BookingChannel, RoomStatus
from .money import Money


class Address(BaseModel):
    line1: str = ""
    line2: str | None = None
    city: str = ""
    state: str | None = None
    postal_code: str | None = None
    country: str = ""


class Contact(BaseModel):
    phone: str | None = None
    email: str | None = None


class Property(BaseModel):
    """A motel property."""

    property_id: str = Field(..., description="Unique property ID")
    code: str = Field(..., description="Unique short code, used in references")
    name: str = Field(default="", description="Display name")
    timezone: str = Field(default="UTC", description="IANA timezone")
    default_currency: str = Field(..., min_length=3, max_length=3)
    address: Address = Field(default_factory=Address)
    contact: Contact = Field(default_factory=Contact)


class RoomType(BaseModel):
    """A category of rooms sharing capacity and base rate."""

    room_type_id: str
    property_id: str
    code: str = Field(..., description="Code unique within the property (e.g. QUEEN)")
    name: str = ""
    capacity: int = Field(default=2, ge=1)
    amenities: list[str] = Field(default_factory=list)
    base_rate: Money | None = Field(
        default=None, description="Nightly base rate, falls back to the rate plan"
    )


class Room(BaseModel):
    """A physical room."""

    room_id: str
    property_id: str
    room_type_id: str
    room_number: str
    status: RoomStatus = RoomStatus.AVAILABLE


class RatePlan(BaseModel):
    """Named pricing/policy bundle scoped to a property."""

    rate_plan_id: str
    property_id: str
    name: str
    channel: BookingChannel = BookingChannel.DIRECT
    room_type_ids: list[str] = Field(
        default_factory=list, description="Eligible room types"
    )
    default_rate: Money | None = None
    policy: str | None = Field(default=None, description="Opaque policy text")


class AddOn(BaseModel):
    """Optional extra offered by a property (breakfast, parking, ...)."""

    addon_id: str
    property_id: str
    name: str
    description: str | None = None
    price: Money | None = None
