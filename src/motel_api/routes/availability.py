"""Availability endpoint.

Counts free rooms per room type for a half-open date range
[start_date, end_date) and lists each type's nightly rates.
"""

import datetime as dt

from fastapi import APIRouter, Depends, Query

from motel_api.dependencies import get_availability_engine
from motel_api.models.common import ErrorResponse
from motel_booking.models import AvailabilityResult
from motel_booking.services.availability import AvailabilityEngine

router = APIRouter(tags=["availability"])


@router.get(
    "/availability",
    summary="Search room availability",
    description="""
Count free rooms per room type for a property and date range.

**Notes:**
- Dates are in YYYY-MM-DD format
- end_date is exclusive (the last night is end_date - 1 day)
- Results may be served from a short-lived cache; a booking attempt
  always re-checks inventory
""",
    response_description="Room types with free room counts and nightly rates",
    response_model=AvailabilityResult,
    responses={
        200: {
            "description": "Search completed",
            "content": {
                "application/json": {
                    "example": {
                        "property_id": "PROP-0001",
                        "start_date": "2025-07-15",
                        "end_date": "2025-07-17",
                        "room_types": [
                            {
                                "room_type_id": "RT-DBL",
                                "code": "DBL",
                                "name": "Double Room",
                                "capacity": 2,
                                "available_rooms": 3,
                                "nightly_rates": [
                                    {"date": "2025-07-15", "currency": "USD", "amount": "80.00"},
                                    {"date": "2025-07-16", "currency": "USD", "amount": "80.00"},
                                ],
                            }
                        ],
                    }
                }
            },
        },
        400: {"model": ErrorResponse, "description": "Invalid date range or party size"},
        404: {"model": ErrorResponse, "description": "Property not found"},
    },
)
async def search_availability(
    property_id: str = Query(..., description="Property to search", examples=["PROP-0001"]),
    start_date: dt.date = Query(
        ..., description="First night (YYYY-MM-DD)", examples=["2025-07-15"]
    ),
    end_date: dt.date = Query(
        ..., description="Departure date (YYYY-MM-DD)", examples=["2025-07-17"]
    ),
    adults: int = Query(default=1, description="Number of adults"),
    children: int = Query(default=0, description="Number of children"),
    room_type_codes: list[str] | None = Query(
        default=None, description="Only return these room type codes"
    ),
    engine: AvailabilityEngine = Depends(get_availability_engine),
) -> AvailabilityResult:
    return engine.search(
        property_id,
        start_date,
        end_date,
        adults=adults,
        children=children,
        room_type_codes=room_type_codes,
    )
