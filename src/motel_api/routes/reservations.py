"""Reservation endpoints for the booking lifecycle.

Provides REST endpoints for:
- Creating reservations (CONFIRMED, or HOLD when requested)
- Retrieving a reservation by confirmation reference
- Amending dates, party, rate plan, room types or add-ons
- Confirming, cancelling, checking in, checking out and no-shows

State-changing endpoints accept an optional ``expected_version``; a stale
version is rejected with CONFLICT.
"""

from fastapi import APIRouter, Depends
from starlette.status import HTTP_201_CREATED

from motel_api.dependencies import get_booking_engine
from motel_api.models.common import ErrorResponse, VersionedActionRequest
from motel_api.models.reservations import (
    CancellationRequest,
    CancellationResponse,
    ReservationAmendRequest,
    ReservationCreateRequest,
)
from motel_booking.models import Booking, BookingSummary
from motel_booking.services.booking import BookingEngine

router = APIRouter(tags=["reservations"])

_NOT_FOUND = {"model": ErrorResponse, "description": "Reservation not found"}
_CONFLICT = {
    "model": ErrorResponse,
    "description": "Stale version or transition not allowed from the current status",
}


def _expected_version(body: VersionedActionRequest | None) -> int | None:
    return body.expected_version if body else None


@router.post(
    "/reservations",
    summary="Create reservation",
    description="""
Create a new reservation.

One physical room is allocated per requested room type, lowest room ID
first. Allocation, the reference, the invoice and the room calendars are
committed in a single transaction: either every room is reserved or none.

**Notes:**
- Use GET /api/v1/availability first to see free rooms
- Set `hold` to create a HOLD that needs an explicit confirm; no invoice
  is issued until then
- 409 ROOM_UNAVAILABLE is retryable: another booking took a room first
""",
    response_description="Booking identifiers and status",
    response_model=BookingSummary,
    status_code=HTTP_201_CREATED,
    responses={
        201: {
            "description": "Reservation created",
            "content": {
                "application/json": {
                    "example": {
                        "booking_id": "BKG-1F2E3D4C5B6A7980",
                        "confirmation_reference": "MOTEL-7C1A9E02",
                        "status": "confirmed",
                        "version": 1,
                    }
                }
            },
        },
        400: {"model": ErrorResponse, "description": "Invalid request"},
        404: {"model": ErrorResponse, "description": "Unknown property, guest or rate plan"},
        409: {"model": ErrorResponse, "description": "No free room for a requested type"},
    },
)
async def create_reservation(
    body: ReservationCreateRequest,
    engine: BookingEngine = Depends(get_booking_engine),
) -> BookingSummary:
    booking = engine.create(body.to_booking_request())
    return BookingSummary.from_booking(booking)


@router.get(
    "/reservations/{reference}",
    summary="Get reservation",
    description="Get full reservation details by confirmation reference.",
    response_description="Reservation details",
    response_model=Booking,
    responses={200: {"description": "Reservation found"}, 404: _NOT_FOUND},
)
async def get_reservation(
    reference: str,
    engine: BookingEngine = Depends(get_booking_engine),
) -> Booking:
    return engine.require(reference)


@router.patch(
    "/reservations/{reference}",
    summary="Amend reservation",
    description="""
Amend a HOLD or CONFIRMED reservation.

Availability is re-checked ignoring this booking's own stays, so it keeps
its current rooms where they remain free. The invoice is re-issued from the
new quote; amounts already paid carry over. The booking ends CONFIRMED.
""",
    response_description="Amended booking identifiers and status",
    response_model=BookingSummary,
    responses={
        200: {"description": "Reservation amended"},
        400: {"model": ErrorResponse, "description": "Invalid amendment"},
        404: _NOT_FOUND,
        409: {
            "model": ErrorResponse,
            "description": "No free room, stale version or status not amendable",
        },
    },
)
async def amend_reservation(
    reference: str,
    body: ReservationAmendRequest,
    engine: BookingEngine = Depends(get_booking_engine),
) -> BookingSummary:
    booking = engine.amend(
        reference, body.to_amendment(), expected_version=body.expected_version
    )
    return BookingSummary.from_booking(booking)


@router.post(
    "/reservations/{reference}/cancel",
    summary="Cancel reservation",
    description="""
Cancel a reservation and release its rooms.

Cancelling an already cancelled reservation returns it unchanged.
An invoice with nothing paid on it is cancelled as well.
""",
    response_description="Cancelled booking identifiers",
    response_model=CancellationResponse,
    responses={200: {"description": "Reservation cancelled"}, 404: _NOT_FOUND, 409: _CONFLICT},
)
async def cancel_reservation(
    reference: str,
    body: CancellationRequest | None = None,
    engine: BookingEngine = Depends(get_booking_engine),
) -> CancellationResponse:
    body = body or CancellationRequest()
    booking = engine.cancel(
        reference,
        reason=body.reason,
        requested_by=body.requested_by,
        expected_version=body.expected_version,
    )
    return CancellationResponse(
        booking_id=booking.booking_id,
        confirmation_reference=booking.reference,
        status=booking.status.value,
    )


@router.post(
    "/reservations/{reference}/confirm",
    summary="Confirm held reservation",
    description="Move a HOLD reservation to CONFIRMED and issue its invoice.",
    response_model=BookingSummary,
    responses={404: _NOT_FOUND, 409: _CONFLICT},
)
async def confirm_reservation(
    reference: str,
    body: VersionedActionRequest | None = None,
    engine: BookingEngine = Depends(get_booking_engine),
) -> BookingSummary:
    booking = engine.confirm(reference, _expected_version(body))
    return BookingSummary.from_booking(booking)


@router.post(
    "/reservations/{reference}/check-in",
    summary="Check in",
    description="Mark a CONFIRMED reservation as checked in.",
    response_model=BookingSummary,
    responses={404: _NOT_FOUND, 409: _CONFLICT},
)
async def check_in(
    reference: str,
    body: VersionedActionRequest | None = None,
    engine: BookingEngine = Depends(get_booking_engine),
) -> BookingSummary:
    booking = engine.check_in(reference, _expected_version(body))
    return BookingSummary.from_booking(booking)


@router.post(
    "/reservations/{reference}/check-out",
    summary="Check out",
    description="Check a guest out and free the reservation's rooms.",
    response_model=BookingSummary,
    responses={404: _NOT_FOUND, 409: _CONFLICT},
)
async def check_out(
    reference: str,
    body: VersionedActionRequest | None = None,
    engine: BookingEngine = Depends(get_booking_engine),
) -> BookingSummary:
    booking = engine.check_out(reference, _expected_version(body))
    return BookingSummary.from_booking(booking)


@router.post(
    "/reservations/{reference}/no-show",
    summary="Mark no-show",
    description="Close a reservation whose guest never arrived and free its rooms.",
    response_model=BookingSummary,
    responses={404: _NOT_FOUND, 409: _CONFLICT},
)
async def mark_no_show(
    reference: str,
    body: VersionedActionRequest | None = None,
    engine: BookingEngine = Depends(get_booking_engine),
) -> BookingSummary:
    booking = engine.mark_no_show(reference, _expected_version(body))
    return BookingSummary.from_booking(booking)
