"""API models for reservation endpoints.

Wraps the engine's BookingRequest and BookingAmendment with API-specific
request formats.
"""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field

from motel_booking.models import (
    BookingAmendment,
    BookingChannel,
    BookingRequest,
)


class ReservationCreateRequest(BaseModel):
    """Request to create a new reservation.

    One room is allocated per entry in ``room_type_ids``.
    """

    model_config = ConfigDict(
        # Note: strict=False allows string-to-date coercion from JSON
        # (JSON has no native date type, dates arrive as ISO strings)
        strict=False,
        json_schema_extra={
            "examples": [
                {
                    "property_id": "PROP-0001",
                    "guest_id": "GUEST-0001",
                    "check_in": "2025-07-15",
                    "check_out": "2025-07-18",
                    "adults": 2,
                    "children": 0,
                    "rate_plan_id": "RP-BAR",
                    "room_type_ids": ["RT-DBL"],
                    "addon_ids": ["ADD-BREAKFAST"],
                    "channel": "direct",
                }
            ]
        },
    )

    property_id: str = Field(..., description="Property to book")
    guest_id: str = Field(..., description="Registered guest making the booking")
    check_in: dt.date = Field(
        ..., description="Check-in date (YYYY-MM-DD)", examples=["2025-07-15"]
    )
    check_out: dt.date = Field(
        ...,
        description="Check-out date (YYYY-MM-DD), exclusive",
        examples=["2025-07-18"],
    )
    adults: int = Field(default=1, description="Number of adults (1-10)", examples=[2])
    children: int = Field(default=0, description="Number of children (0-10)", examples=[0])
    rate_plan_id: str = Field(..., description="Rate plan to price with")
    room_type_ids: list[str] = Field(
        default_factory=list,
        description="Room types to allocate, one room each",
        examples=[["RT-DBL"]],
    )
    addon_ids: list[str] = Field(default_factory=list, description="Add-ons to attach")
    payment_token: str | None = Field(
        default=None, max_length=500, description="Opaque gateway token"
    )
    source: str | None = Field(
        default=None, max_length=100, description="Free-form booking source"
    )
    channel: BookingChannel = Field(
        default=BookingChannel.DIRECT, description="Sales channel"
    )
    hold: bool = Field(
        default=False, description="Create as HOLD pending explicit confirmation"
    )

    def to_booking_request(self) -> BookingRequest:
        return BookingRequest(**self.model_dump())


class ReservationAmendRequest(BaseModel):
    """Request to amend an existing reservation.

    Only include fields that should be changed.
    """

    model_config = ConfigDict(
        strict=False,
        json_schema_extra={
            "examples": [
                {
                    "check_out": "2025-07-20",
                    "expected_version": 2,
                }
            ]
        },
    )

    guest_id: str | None = Field(default=None, description="New guest")
    check_in: dt.date | None = Field(default=None, description="New check-in date")
    check_out: dt.date | None = Field(default=None, description="New check-out date")
    adults: int | None = Field(default=None, description="New number of adults")
    children: int | None = Field(default=None, description="New number of children")
    rate_plan_id: str | None = Field(default=None, description="New rate plan")
    room_type_ids: list[str] | None = Field(
        default=None, description="Replacement room type list"
    )
    addon_ids: list[str] | None = Field(default=None, description="Replacement add-ons")
    expected_version: int | None = Field(
        default=None, ge=1, description="Booking version the caller last read"
    )

    def to_amendment(self) -> BookingAmendment:
        return BookingAmendment(
            **self.model_dump(exclude={"expected_version"}, exclude_none=True)
        )


class CancellationRequest(BaseModel):
    """Request to cancel a reservation."""

    model_config = ConfigDict(strict=True)

    reason: str | None = Field(
        default=None,
        max_length=500,
        description="Reason for cancellation",
        examples=["Change of plans"],
    )
    requested_by: str | None = Field(
        default=None,
        max_length=100,
        description="Who requested the cancellation",
        examples=["guest"],
    )
    expected_version: int | None = Field(
        default=None, ge=1, description="Booking version the caller last read"
    )


class CancellationResponse(BaseModel):
    """Response after cancelling a reservation."""

    model_config = ConfigDict(strict=True)

    booking_id: str
    confirmation_reference: str
    status: str = Field(..., examples=["cancelled"])
