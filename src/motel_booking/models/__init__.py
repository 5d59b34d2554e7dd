"""Domain models for the motel booking engine."""

from .availability import (
    AvailabilityQuery,
    AvailabilityResult,
    NightlyRate,
    RoomTypeAvailability,
)
from .booking import Booking, BookingAmendment, BookingRequest, BookingSummary
from .calendar import RoomCalendar, Stay
from .catalog import AddOn, Address, Contact, Property, RatePlan, Room, RoomType
from .enums import (
    ACTIVE_BOOKING_STATUSES,
    BookingChannel,
    BookingStatus,
    InvoiceStatus,
    PaymentMethod,
    PaymentStatus,
    RoomStatus,
)
from .errors import BookingError, ErrorCode, ErrorResponse
from .guest import Guest
from .invoice import Invoice, InvoiceLineItem
from .money import Money, round_money
from .payment import Payment, PaymentResult
from .pricing import Adjustment, PriceLineItem, PricingContext, PricingQuote

__all__ = [
    # Availability
    "AvailabilityQuery",
    "AvailabilityResult",
    "NightlyRate",
    "RoomTypeAvailability",
    # Booking
    "Booking",
    "BookingAmendment",
    "BookingRequest",
    "BookingSummary",
    "RoomCalendar",
    "Stay",
    # Catalog
    "AddOn",
    "Address",
    "Contact",
    "Property",
    "RatePlan",
    "Room",
    "RoomType",
    "Guest",
    # Enums
    "ACTIVE_BOOKING_STATUSES",
    "BookingChannel",
    "BookingStatus",
    "InvoiceStatus",
    "PaymentMethod",
    "PaymentStatus",
    "RoomStatus",
    # Errors
    "BookingError",
    "ErrorCode",
    "ErrorResponse",
    # Money, pricing, settlement
    "Money",
    "round_money",
    "Adjustment",
    "PriceLineItem",
    "PricingContext",
    "PricingQuote",
    "Invoice",
    "InvoiceLineItem",
    "Payment",
    "PaymentResult",
]
