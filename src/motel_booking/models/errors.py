"""Standard error codes for the reservation engine.

Every domain failure is raised as a BookingError carrying one of these codes.
The API layer turns it into an ErrorResponse with a matching HTTP status.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Error codes returned by the engine."""

    # Lookup failures (ERR_1xx)
    PROPERTY_NOT_FOUND = "ERR_101"
    GUEST_NOT_FOUND = "ERR_102"
    RATE_PLAN_NOT_FOUND = "ERR_103"
    ROOM_TYPE_NOT_FOUND = "ERR_104"
    BOOKING_NOT_FOUND = "ERR_105"
    INVOICE_NOT_FOUND = "ERR_106"
    PAYMENT_NOT_FOUND = "ERR_107"
    ADDON_NOT_FOUND = "ERR_108"

    # Request validation (ERR_2xx)
    INVALID_DATE_RANGE = "ERR_201"
    INVALID_PARTY_SIZE = "ERR_202"
    EMPTY_ROOM_TYPE_SET = "ERR_203"
    NO_MATCHING_ROOM_TYPES = "ERR_204"
    ROOM_TYPE_MISMATCH = "ERR_205"
    CURRENCY_MISMATCH = "ERR_206"
    TOO_MANY_ITEMS = "ERR_207"

    # Inventory and concurrency (ERR_3xx)
    ROOM_UNAVAILABLE = "ERR_301"
    CONFLICT = "ERR_302"
    INVALID_STATE_TRANSITION = "ERR_303"

    # Settlement (ERR_4xx)
    INVOICE_NOT_OPEN = "ERR_401"
    INVALID_AMOUNT = "ERR_402"


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.PROPERTY_NOT_FOUND: "Property not found",
    ErrorCode.GUEST_NOT_FOUND: "Guest not found",
    ErrorCode.RATE_PLAN_NOT_FOUND: "Rate plan not found for this property",
    ErrorCode.ROOM_TYPE_NOT_FOUND: "Room type not found",
    ErrorCode.BOOKING_NOT_FOUND: "Booking not found",
    ErrorCode.INVOICE_NOT_FOUND: "Invoice not found",
    ErrorCode.PAYMENT_NOT_FOUND: "Payment not found",
    ErrorCode.ADDON_NOT_FOUND: "Add-on not found for this property",
    ErrorCode.INVALID_DATE_RANGE: "Check-out must be after check-in",
    ErrorCode.INVALID_PARTY_SIZE: "Party size is out of bounds",
    ErrorCode.EMPTY_ROOM_TYPE_SET: "At least one room type is required",
    ErrorCode.NO_MATCHING_ROOM_TYPES: "No room types match the request",
    ErrorCode.ROOM_TYPE_MISMATCH: "Room type belongs to a different property",
    ErrorCode.CURRENCY_MISMATCH: "Requested room types are priced in different currencies",
    ErrorCode.TOO_MANY_ITEMS: "Too many room types or add-ons requested",
    ErrorCode.ROOM_UNAVAILABLE: "No room of the requested type is available for these dates",
    ErrorCode.CONFLICT: "The record was modified concurrently",
    ErrorCode.INVALID_STATE_TRANSITION: "The operation is not allowed in the current state",
    ErrorCode.INVOICE_NOT_OPEN: "Invoice is not open for payment",
    ErrorCode.INVALID_AMOUNT: "Amount must be positive",
}

ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.PROPERTY_NOT_FOUND: "Verify the property ID",
    ErrorCode.GUEST_NOT_FOUND: "Verify the guest ID with the guest directory",
    ErrorCode.RATE_PLAN_NOT_FOUND: "Choose a rate plan offered by this property",
    ErrorCode.ROOM_TYPE_NOT_FOUND: "Verify the room type IDs",
    ErrorCode.BOOKING_NOT_FOUND: "Verify the confirmation reference",
    ErrorCode.INVOICE_NOT_FOUND: "Verify the invoice ID",
    ErrorCode.PAYMENT_NOT_FOUND: "Verify the payment ID",
    ErrorCode.ADDON_NOT_FOUND: "Remove unknown add-ons from the request",
    ErrorCode.INVALID_DATE_RANGE: "Choose a check-out date after the check-in date",
    ErrorCode.INVALID_PARTY_SIZE: "Use 1-10 adults and 0-10 children",
    ErrorCode.EMPTY_ROOM_TYPE_SET: "Add at least one room type to the request",
    ErrorCode.NO_MATCHING_ROOM_TYPES: "Remove the room type filter or use valid codes",
    ErrorCode.ROOM_TYPE_MISMATCH: "Only request room types of the booked property",
    ErrorCode.CURRENCY_MISMATCH: "Request room types sharing one currency",
    ErrorCode.TOO_MANY_ITEMS: "Request at most 10 room types and 20 add-ons",
    ErrorCode.ROOM_UNAVAILABLE: "Search availability again and retry with other dates or room types",
    ErrorCode.CONFLICT: "Reload the record and retry",
    ErrorCode.INVALID_STATE_TRANSITION: "Check the current status before retrying",
    ErrorCode.INVOICE_NOT_OPEN: "No further payment is needed for this invoice",
    ErrorCode.INVALID_AMOUNT: "Send a positive amount with at most 2 decimals",
}

# Safe to retry: allocation is deterministic and all-or-nothing
RETRYABLE_ERRORS: frozenset[ErrorCode] = frozenset(
    {ErrorCode.ROOM_UNAVAILABLE, ErrorCode.CONFLICT}
)


class ErrorResponse(BaseModel):
    """Standard error body returned for engine failures."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    retryable: bool = False
    details: Optional[dict[str, str]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ) -> "ErrorResponse":
        """Create an ErrorResponse from an error code.

        Args:
            code: The error code
            details: Optional field-level context about the error

        Returns:
            An ErrorResponse with the message and recovery hint for the code.
        """
        return cls(
            error_code=code,
            message=ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            retryable=code in RETRYABLE_ERRORS,
            details=details,
        )


class BookingError(Exception):
    """Exception raised by engine operations."""

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ):
        self.code = code
        self.message = ERROR_MESSAGES[code]
        self.recovery = ERROR_RECOVERY[code]
        self.details = details
        super().__init__(self.message)

    @property
    def retryable(self) -> bool:
        return self.code in RETRYABLE_ERRORS

    def to_error_response(self) -> ErrorResponse:
        """Convert to an ErrorResponse for API responses."""
        return ErrorResponse.from_code(self.code, self.details)

    def __repr__(self) -> str:
        return f"BookingError({self.code.name}, details={self.details!r})"
