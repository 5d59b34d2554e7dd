"""Booking models."""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field

from .enums import ACTIVE_BOOKING_STATUSES, BookingChannel, BookingStatus, PaymentStatus
from .money import Money

MAX_ADULTS = 10
MAX_CHILDREN = 10
MAX_ROOM_TYPES = 10
MAX_ADDONS = 20


class BookingRequest(BaseModel):
    """Parameters for creating or amending a booking.

    Bounds on party size, stay length and room-type count are checked by the
    booking engine so that failures carry engine error codes.
    """

    property_id: str
    guest_id: str
    check_in: dt.date
    check_out: dt.date
    adults: int = 1
    children: int = 0
    rate_plan_id: str
    room_type_ids: list[str] = Field(default_factory=list)
    addon_ids: list[str] = Field(default_factory=list)
    payment_token: str | None = Field(default=None, max_length=500)
    source: str | None = Field(default=None, max_length=100)
    channel: BookingChannel = BookingChannel.DIRECT
    hold: bool = Field(
        default=False, description="Create in HOLD instead of CONFIRMED"
    )

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days


class Booking(BaseModel):
    """A reservation of one or more physical rooms for a stay."""

    booking_id: str = Field(..., description="Generated booking ID")
    reference: str = Field(..., description="Unique human-readable reference")
    property_id: str
    guest_id: str
    status: BookingStatus
    payment_status: PaymentStatus = PaymentStatus.INITIATED
    channel: BookingChannel = BookingChannel.DIRECT
    source: str | None = None
    check_in: dt.date
    check_out: dt.date
    adults: int
    children: int = 0
    rate_plan_id: str
    room_type_ids: list[str] = Field(default_factory=list)
    room_ids: list[str] = Field(
        default_factory=list, description="Allocated rooms, in room-type order"
    )
    addon_ids: list[str] = Field(default_factory=list)
    total_amount: Money
    balance_due: Money
    invoice_id: str | None = None
    cancellation_reason: str | None = None
    cancelled_by: str | None = None
    created_at: dt.datetime
    updated_at: dt.datetime
    version: int = Field(default=1, ge=1, description="Optimistic concurrency token")

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_BOOKING_STATUSES

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    def overlaps(self, start: dt.date, end: dt.date) -> bool:
        """Half-open overlap test against [start, end)."""
        return self.check_in < end and self.check_out > start


class BookingSummary(BaseModel):
    """Identifiers and status returned by booking mutations."""

    model_config = ConfigDict(strict=True)

    booking_id: str
    confirmation_reference: str
    status: BookingStatus
    version: int

    @classmethod
    def from_booking(cls, booking: Booking) -> "BookingSummary":
        return cls(
            booking_id=booking.booking_id,
            confirmation_reference=booking.reference,
            status=booking.status,
            version=booking.version,
        )


class BookingAmendment(BaseModel):
    """Changes to an existing booking. Unset fields keep their current value."""

    guest_id: str | None = None
    check_in: dt.date | None = None
    check_out: dt.date | None = None
    adults: int | None = None
    children: int | None = None
    rate_plan_id: str | None = None
    room_type_ids: list[str] | None = None
    addon_ids: list[str] | None = None

    def apply_to(self, booking: "Booking") -> BookingRequest:
        """Merge the changes over ``booking`` into a full request."""
        changes = self.model_dump(exclude_none=True)
        current = {
            "property_id": booking.property_id,
            "guest_id": booking.guest_id,
            "check_in": booking.check_in,
            "check_out": booking.check_out,
            "adults": booking.adults,
            "children": booking.children,
            "rate_plan_id": booking.rate_plan_id,
            "room_type_ids": booking.room_type_ids,
            "addon_ids": booking.addon_ids,
            "source": booking.source,
            "channel": booking.channel,
        }
        return BookingRequest(**{**current, **changes})
