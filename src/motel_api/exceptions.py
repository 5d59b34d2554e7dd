"""FastAPI exception handlers for converting BookingError to HTTP responses.

The ErrorCode-to-HTTP status mapping follows REST conventions:
- 400 Bad Request: request validation failures
- 404 Not Found: unknown property, guest, booking, invoice, ...
- 409 Conflict: unavailable rooms, concurrent modification, invalid state

Usage:
    from motel_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from motel_booking.models.errors import BookingError, ErrorCode
from motel_booking.utils.logging import get_logger

logger = get_logger(__name__)

ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    # Lookup failures -> 404 Not Found
    ErrorCode.PROPERTY_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.GUEST_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.RATE_PLAN_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.ROOM_TYPE_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.BOOKING_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.INVOICE_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.PAYMENT_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.ADDON_NOT_FOUND: HTTP_404_NOT_FOUND,
    # Request validation -> 400 Bad Request
    ErrorCode.INVALID_DATE_RANGE: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_PARTY_SIZE: HTTP_400_BAD_REQUEST,
    ErrorCode.EMPTY_ROOM_TYPE_SET: HTTP_400_BAD_REQUEST,
    ErrorCode.NO_MATCHING_ROOM_TYPES: HTTP_400_BAD_REQUEST,
    ErrorCode.ROOM_TYPE_MISMATCH: HTTP_400_BAD_REQUEST,
    ErrorCode.CURRENCY_MISMATCH: HTTP_400_BAD_REQUEST,
    ErrorCode.TOO_MANY_ITEMS: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_AMOUNT: HTTP_400_BAD_REQUEST,
    # Inventory, concurrency and state -> 409 Conflict
    ErrorCode.ROOM_UNAVAILABLE: HTTP_409_CONFLICT,
    ErrorCode.CONFLICT: HTTP_409_CONFLICT,
    ErrorCode.INVALID_STATE_TRANSITION: HTTP_409_CONFLICT,
    ErrorCode.INVOICE_NOT_OPEN: HTTP_409_CONFLICT,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """HTTP status for an ErrorCode, 400 if not explicitly mapped."""
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Convert a BookingError into an ErrorResponse body.

    Args:
        request: The incoming request
        exc: The BookingError exception

    Returns:
        JSONResponse with error details and appropriate status code.
    """
    status_code = get_http_status_for_error(exc.code)
    if exc.retryable:
        logger.warning(
            "%s %s -> %s %s", request.method, request.url.path, status_code, exc.code.name
        )
    return JSONResponse(
        status_code=status_code,
        content=exc.to_error_response().model_dump(mode="json"),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log an unexpected exception and return a generic 500 body."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error_code": "ERR_INTERNAL",
            "message": "An unexpected error occurred",
            "recovery": "Please try again later or contact support",
            "retryable": False,
            "details": None,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(BookingError, booking_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
