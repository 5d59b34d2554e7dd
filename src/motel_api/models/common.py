"""Shared API request/response models."""

from pydantic import BaseModel, ConfigDict, Field

# Re-export ErrorResponse for route `responses` declarations
from motel_booking.models.errors import ErrorCode, ErrorResponse

__all__ = [
    "ErrorCode",
    "ErrorResponse",
    "VersionedActionRequest",
]


class VersionedActionRequest(BaseModel):
    """Optional body for state changes guarded by optimistic concurrency.

    When ``expected_version`` is given and the stored booking has moved on,
    the request fails with CONFLICT instead of overwriting a newer change.
    """

    model_config = ConfigDict(strict=True)

    expected_version: int | None = Field(
        default=None,
        ge=1,
        description="Booking version the caller last read",
        examples=[1],
    )
