"""Integration tests for the complete reservation flow.

Search availability, quote, book, pay, amend and cancel against one
mocked DynamoDB, checking that bookings, invoices, payments and
availability stay consistent at every step.
"""

import datetime as dt
from decimal import Decimal
from typing import Callable

import pytest

from motel_booking.models import (
    BookingAmendment,
    BookingRequest,
    BookingStatus,
    InvoiceStatus,
    PaymentStatus,
    PricingContext,
)
from motel_booking.services import (
    AvailabilityEngine,
    BookingEngine,
    InvoiceLedger,
    PaymentSettlement,
    PricingEngine,
)
from tests.helpers import SeededMotel, usd

pytestmark = pytest.mark.integration

JUNE_1 = dt.date(2024, 6, 1)
JUNE_3 = dt.date(2024, 6, 3)


def queens_free(availability_engine: AvailabilityEngine, motel: SeededMotel) -> int:
    result = availability_engine.search(
        motel.property_id, JUNE_1, JUNE_3, room_type_codes=["QUEEN"]
    )
    return result.room_types[0].available_rooms


class TestReservationFlow:
    """Guest journey from search to checkout."""

    def test_search_quote_book_pay_and_stay(
        self,
        motel: SeededMotel,
        availability_engine: AvailabilityEngine,
        pricing_engine: PricingEngine,
        booking_engine: BookingEngine,
        invoice_ledger: InvoiceLedger,
        settlement: PaymentSettlement,
        make_request: Callable[..., BookingRequest],
    ) -> None:
        assert queens_free(availability_engine, motel) == 2

        quote = pricing_engine.quote(
            PricingContext(
                property_id=motel.property_id,
                rate_plan_id=motel.rate_plan_id,
                check_in=JUNE_1,
                check_out=JUNE_3,
                adults=2,
                room_type_ids=[motel.queen],
            )
        )
        booking = booking_engine.create(make_request())
        assert booking.total_amount == quote.total_amount
        assert queens_free(availability_engine, motel) == 1

        payment = settlement.authorize(booking.invoice_id, "tok_visa", Decimal("200.00"))
        settlement.capture(payment.payment_id)
        assert invoice_ledger.require_invoice(booking.invoice_id).status == InvoiceStatus.PAID

        booking_engine.check_in(booking.reference)
        checked_out = booking_engine.check_out(booking.reference)

        assert checked_out.status == BookingStatus.CHECKED_OUT
        assert checked_out.payment_status == PaymentStatus.CAPTURED
        assert checked_out.balance_due == usd("0.00")
        assert queens_free(availability_engine, motel) == 2

    def test_hold_confirm_amend_cancel(
        self,
        motel: SeededMotel,
        availability_engine: AvailabilityEngine,
        booking_engine: BookingEngine,
        invoice_ledger: InvoiceLedger,
        settlement: PaymentSettlement,
        make_request: Callable[..., BookingRequest],
    ) -> None:
        held = booking_engine.create(make_request(hold=True))
        assert queens_free(availability_engine, motel) == 1

        confirmed = booking_engine.confirm(held.reference, expected_version=held.version)
        deposit = settlement.authorize(confirmed.invoice_id, "tok_visa", Decimal("50.00"))
        settlement.capture(deposit.payment_id)

        amended = booking_engine.amend(
            confirmed.reference,
            BookingAmendment(room_type_ids=[motel.king], addon_ids=[motel.breakfast]),
        )
        assert amended.room_ids == ["R-201"]
        assert amended.balance_due == usd("250.00")
        assert queens_free(availability_engine, motel) == 2

        cancelled = booking_engine.cancel(amended.reference, reason="Flight cancelled")
        assert cancelled.status == BookingStatus.CANCELLED
        # The deposit keeps the invoice open for a refund
        invoice = invoice_ledger.require_invoice(cancelled.invoice_id)
        assert invoice.status == InvoiceStatus.PARTIALLY_PAID

        settlement.refund(deposit.payment_id)
        invoice = invoice_ledger.require_invoice(cancelled.invoice_id)
        assert invoice.status == InvoiceStatus.ISSUED
        assert invoice.balance_due == usd("300.00")

        king = availability_engine.search(
            motel.property_id, JUNE_1, JUNE_3, room_type_codes=["KING"]
        )
        assert king.room_types[0].available_rooms == 1
