"""Central status transition tables for bookings, payments and invoices.

Services call ``ensure_*_transition`` before changing a status instead of
checking states inline.
"""

from enum import Enum
from typing import Mapping, TypeVar

from .enums import BookingStatus, InvoiceStatus, PaymentStatus
from .errors import BookingError, ErrorCode

S = TypeVar("S", bound=Enum)

BOOKING_TRANSITIONS: Mapping[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.HOLD: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset(
        {
            # amend re-confirms in place
            BookingStatus.CONFIRMED,
            BookingStatus.CHECKED_IN,
            BookingStatus.CANCELLED,
            BookingStatus.NO_SHOW,
        }
    ),
    BookingStatus.CHECKED_IN: frozenset(
        {BookingStatus.CHECKED_OUT, BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
    ),
    BookingStatus.CHECKED_OUT: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
}

PAYMENT_TRANSITIONS: Mapping[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.INITIATED: frozenset({PaymentStatus.AUTHORIZED, PaymentStatus.FAILED}),
    PaymentStatus.AUTHORIZED: frozenset(
        {PaymentStatus.CAPTURED, PaymentStatus.VOIDED, PaymentStatus.FAILED}
    ),
    PaymentStatus.CAPTURED: frozenset({PaymentStatus.REFUNDED}),
    PaymentStatus.REFUNDED: frozenset(),
    PaymentStatus.VOIDED: frozenset(),
    PaymentStatus.FAILED: frozenset(),
}

INVOICE_TRANSITIONS: Mapping[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.ISSUED: frozenset(
        {
            InvoiceStatus.ISSUED,
            InvoiceStatus.PARTIALLY_PAID,
            InvoiceStatus.PAID,
            InvoiceStatus.CANCELLED,
        }
    ),
    InvoiceStatus.PARTIALLY_PAID: frozenset(
        {
            InvoiceStatus.ISSUED,
            InvoiceStatus.PARTIALLY_PAID,
            InvoiceStatus.PAID,
            InvoiceStatus.CANCELLED,
        }
    ),
    # reopened by refunds and by amends that raise the total
    InvoiceStatus.PAID: frozenset(
        {InvoiceStatus.ISSUED, InvoiceStatus.PARTIALLY_PAID, InvoiceStatus.PAID}
    ),
    InvoiceStatus.CANCELLED: frozenset(),
}


def can_transition(
    table: Mapping[S, frozenset[S]], current: S, target: S
) -> bool:
    return target in table.get(current, frozenset())


def _ensure(
    table: Mapping[S, frozenset[S]],
    entity: str,
    current: S,
    target: S,
    entity_id: str | None,
) -> None:
    if can_transition(table, current, target):
        return
    details = {
        "entity": entity,
        "current_status": current.value,
        "requested_status": target.value,
    }
    if entity_id:
        details["id"] = entity_id
    raise BookingError(code=ErrorCode.INVALID_STATE_TRANSITION, details=details)


def ensure_booking_transition(
    current: BookingStatus, target: BookingStatus, booking_id: str | None = None
) -> None:
    """Raise INVALID_STATE_TRANSITION unless current -> target is allowed."""
    _ensure(BOOKING_TRANSITIONS, "booking", current, target, booking_id)


def ensure_payment_transition(
    current: PaymentStatus, target: PaymentStatus, payment_id: str | None = None
) -> None:
    _ensure(PAYMENT_TRANSITIONS, "payment", current, target, payment_id)


def ensure_invoice_transition(
    current: InvoiceStatus, target: InvoiceStatus, invoice_id: str | None = None
) -> None:
    _ensure(INVOICE_TRANSITIONS, "invoice", current, target, invoice_id)
