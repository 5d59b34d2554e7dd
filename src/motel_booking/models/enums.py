"""Enumeration types for motel booking data models."""

from enum import Enum


class BookingStatus(str, Enum):
    """Lifecycle status of a booking."""

    HOLD = "hold"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


# Statuses whose rooms count against availability
ACTIVE_BOOKING_STATUSES: frozenset[BookingStatus] = frozenset(
    {BookingStatus.HOLD, BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN}
)


class PaymentStatus(str, Enum):
    """Status of a payment, mirrored on the booking it settles."""

    INITIATED = "initiated"
    AUTHORIZED = "authorized"
    CAPTURED = "captured"
    REFUNDED = "refunded"
    VOIDED = "voided"
    FAILED = "failed"


class InvoiceStatus(str, Enum):
    """Status of a booking invoice."""

    ISSUED = "issued"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    CANCELLED = "cancelled"


class RoomStatus(str, Enum):
    """Physical room status, owned by inventory administration."""

    AVAILABLE = "available"
    OUT_OF_SERVICE = "out_of_service"
    OCCUPIED = "occupied"
    HOUSEKEEPING = "housekeeping"


class BookingChannel(str, Enum):
    """Sales channel a booking came through."""

    DIRECT = "direct"
    OTA = "ota"
    PHONE = "phone"
    WALK_IN = "walk_in"


class PaymentMethod(str, Enum):
    """Supported payment methods."""

    CARD = "card"
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
