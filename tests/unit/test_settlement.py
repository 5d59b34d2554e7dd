"""Unit tests for payment settlement against invoices."""

import datetime as dt
from decimal import Decimal
from typing import Callable

import pytest

from motel_booking.models import (
    Booking,
    BookingAmendment,
    BookingError,
    BookingRequest,
    BookingStatus,
    ErrorCode,
    InvoiceStatus,
    Money,
    PaymentMethod,
    PaymentStatus,
)
from motel_booking.services.booking import BookingEngine
from motel_booking.services.dynamodb import DynamoDBService, model_to_item
from motel_booking.services.invoice_ledger import InvoiceLedger, cancel_invoice
from motel_booking.services.settlement import (
    GatewayResponse,
    PaymentSettlement,
    SimulatedPaymentGateway,
)
from tests.helpers import usd

RequestFactory = Callable[..., BookingRequest]


class DecliningCaptureGateway(SimulatedPaymentGateway):
    def capture(self, processor_reference: str, amount: Money) -> GatewayResponse:
        return GatewayResponse(approved=False, failure_reason="insufficient_funds")


class DecliningRefundGateway(SimulatedPaymentGateway):
    def refund(self, processor_reference: str, amount: Money) -> GatewayResponse:
        return GatewayResponse(approved=False, failure_reason="processor_unavailable")


class CountingGateway(SimulatedPaymentGateway):
    def __init__(self) -> None:
        self.captures = 0

    def capture(self, processor_reference: str, amount: Money) -> GatewayResponse:
        self.captures += 1
        return super().capture(processor_reference, amount)


@pytest.fixture
def booking(booking_engine: BookingEngine, make_request: RequestFactory) -> Booking:
    """A confirmed two-night QUEEN booking with a $200.00 invoice."""
    return booking_engine.create(make_request())


def settlement_with(
    gateway: SimulatedPaymentGateway,
    db: DynamoDBService,
    invoice_ledger: InvoiceLedger,
    booking_engine: BookingEngine,
) -> PaymentSettlement:
    return PaymentSettlement(
        db=db, invoices=invoice_ledger, bookings=booking_engine, gateway=gateway
    )


class TestAuthorize:
    """Tests for PaymentSettlement.authorize."""

    def test_authorize_records_payment(
        self,
        settlement: PaymentSettlement,
        booking_engine: BookingEngine,
        booking: Booking,
    ) -> None:
        result = settlement.authorize(
            booking.invoice_id, "tok_visa", Decimal("200.00"), initiated_by="front-desk"
        )

        assert result.status == PaymentStatus.AUTHORIZED
        assert result.processor_reference.startswith("AUTH-")
        assert result.failure_reason is None

        payment = settlement.require_payment(result.payment_id)
        assert payment.amount == usd("200.00")
        assert payment.method == PaymentMethod.CARD
        assert payment.booking_id == booking.booking_id
        assert payment.initiated_by == "front-desk"

        stored = booking_engine.get(booking.reference)
        assert stored.payment_status == PaymentStatus.AUTHORIZED
        assert stored.status == BookingStatus.CONFIRMED

    def test_declined_token_fails_without_touching_booking_status(
        self,
        settlement: PaymentSettlement,
        booking_engine: BookingEngine,
        invoice_ledger: InvoiceLedger,
        booking: Booking,
    ) -> None:
        result = settlement.authorize(booking.invoice_id, "fail-card", Decimal("200.00"))

        assert result.status == PaymentStatus.FAILED
        assert result.failure_reason == "card_declined"

        stored = booking_engine.get(booking.reference)
        assert stored.status == BookingStatus.CONFIRMED
        assert stored.payment_status == PaymentStatus.FAILED
        assert invoice_ledger.require_invoice(booking.invoice_id).balance_due == usd(
            "200.00"
        )

    @pytest.mark.parametrize("amount", ["0", "-5.00", "10.005"])
    def test_invalid_amount(
        self, settlement: PaymentSettlement, booking: Booking, amount: str
    ) -> None:
        with pytest.raises(BookingError) as exc_info:
            settlement.authorize(booking.invoice_id, "tok_visa", Decimal(amount))
        assert exc_info.value.code == ErrorCode.INVALID_AMOUNT

    def test_unknown_invoice(self, settlement: PaymentSettlement) -> None:
        with pytest.raises(BookingError) as exc_info:
            settlement.authorize("INV-NOPE", "tok_visa", Decimal("10.00"))
        assert exc_info.value.code == ErrorCode.INVOICE_NOT_FOUND

    def test_paid_invoice_not_open(
        self, settlement: PaymentSettlement, booking: Booking
    ) -> None:
        payment = settlement.authorize(booking.invoice_id, "tok_visa", Decimal("200.00"))
        settlement.capture(payment.payment_id)

        with pytest.raises(BookingError) as exc_info:
            settlement.authorize(booking.invoice_id, "tok_visa", Decimal("1.00"))
        assert exc_info.value.code == ErrorCode.INVOICE_NOT_OPEN

    def test_cancelled_invoice_not_open(
        self,
        settlement: PaymentSettlement,
        booking_engine: BookingEngine,
        booking: Booking,
    ) -> None:
        booking_engine.cancel(booking.reference)

        with pytest.raises(BookingError) as exc_info:
            settlement.authorize(booking.invoice_id, "tok_visa", Decimal("200.00"))
        assert exc_info.value.code == ErrorCode.INVOICE_NOT_OPEN


class TestCaptureAndRefund:
    """Tests for capture and refund outcomes on the invoice."""

    def test_full_payment_then_partial_refund(
        self,
        settlement: PaymentSettlement,
        booking_engine: BookingEngine,
        invoice_ledger: InvoiceLedger,
        booking: Booking,
    ) -> None:
        authorized = settlement.authorize(booking.invoice_id, "tok_visa", Decimal("200.00"))

        captured = settlement.capture(authorized.payment_id)
        assert captured.status == PaymentStatus.CAPTURED
        invoice = invoice_ledger.require_invoice(booking.invoice_id)
        assert invoice.status == InvoiceStatus.PAID
        assert invoice.balance_due == usd("0.00")
        assert booking_engine.get(booking.reference).balance_due == usd("0.00")

        refunded = settlement.refund(authorized.payment_id, Decimal("50.00"))
        assert refunded.status == PaymentStatus.REFUNDED
        assert settlement.require_payment(authorized.payment_id).refunded_amount == usd(
            "50.00"
        )
        invoice = invoice_ledger.require_invoice(booking.invoice_id)
        assert invoice.status == InvoiceStatus.ISSUED
        assert invoice.balance_due == usd("50.00")

        stored = booking_engine.get(booking.reference)
        assert stored.balance_due == usd("50.00")
        assert stored.payment_status == PaymentStatus.REFUNDED

    def test_partial_payments_accumulate(
        self,
        settlement: PaymentSettlement,
        invoice_ledger: InvoiceLedger,
        booking: Booking,
    ) -> None:
        first = settlement.authorize(booking.invoice_id, "tok_visa", Decimal("80.00"))
        second = settlement.authorize(booking.invoice_id, "tok_visa", Decimal("120.00"))

        settlement.capture(first.payment_id)
        invoice = invoice_ledger.require_invoice(booking.invoice_id)
        assert invoice.status == InvoiceStatus.PARTIALLY_PAID
        assert invoice.balance_due == usd("120.00")

        settlement.capture(second.payment_id)
        invoice = invoice_ledger.require_invoice(booking.invoice_id)
        assert invoice.status == InvoiceStatus.PAID
        assert invoice.balance_due == usd("0.00")

        assert [p.payment_id for p in settlement.list_payments(booking.invoice_id)] == [
            first.payment_id,
            second.payment_id,
        ]

    def test_overpayment_floors_balance_at_zero(
        self,
        settlement: PaymentSettlement,
        invoice_ledger: InvoiceLedger,
        booking: Booking,
    ) -> None:
        payment = settlement.authorize(booking.invoice_id, "tok_visa", Decimal("250.00"))
        settlement.capture(payment.payment_id)

        invoice = invoice_ledger.require_invoice(booking.invoice_id)
        assert invoice.balance_due == usd("0.00")
        assert invoice.status == InvoiceStatus.PAID

    def test_full_refund_by_default(
        self,
        settlement: PaymentSettlement,
        invoice_ledger: InvoiceLedger,
        booking: Booking,
    ) -> None:
        payment = settlement.authorize(booking.invoice_id, "tok_visa", Decimal("200.00"))
        settlement.capture(payment.payment_id)

        settlement.refund(payment.payment_id)

        invoice = invoice_ledger.require_invoice(booking.invoice_id)
        assert invoice.balance_due == usd("200.00")
        assert invoice.status == InvoiceStatus.ISSUED

    def test_refund_above_payment_rejected(
        self, settlement: PaymentSettlement, booking: Booking
    ) -> None:
        payment = settlement.authorize(booking.invoice_id, "tok_visa", Decimal("100.00"))
        settlement.capture(payment.payment_id)

        with pytest.raises(BookingError) as exc_info:
            settlement.refund(payment.payment_id, Decimal("100.01"))
        assert exc_info.value.code == ErrorCode.INVALID_AMOUNT

    def test_refund_requires_capture(
        self, settlement: PaymentSettlement, booking: Booking
    ) -> None:
        payment = settlement.authorize(booking.invoice_id, "tok_visa", Decimal("100.00"))
        with pytest.raises(BookingError) as exc_info:
            settlement.refund(payment.payment_id)
        assert exc_info.value.code == ErrorCode.INVALID_STATE_TRANSITION

    def test_capture_twice_rejected(
        self, settlement: PaymentSettlement, booking: Booking
    ) -> None:
        payment = settlement.authorize(booking.invoice_id, "tok_visa", Decimal("100.00"))
        settlement.capture(payment.payment_id)

        with pytest.raises(BookingError) as exc_info:
            settlement.capture(payment.payment_id)
        assert exc_info.value.code == ErrorCode.INVALID_STATE_TRANSITION

    def test_unknown_payment(self, settlement: PaymentSettlement) -> None:
        with pytest.raises(BookingError) as exc_info:
            settlement.capture("PAY-NOPE")
        assert exc_info.value.code == ErrorCode.PAYMENT_NOT_FOUND

    def test_declined_capture_fails_payment(
        self,
        db: DynamoDBService,
        invoice_ledger: InvoiceLedger,
        booking_engine: BookingEngine,
        booking: Booking,
    ) -> None:
        settlement = settlement_with(
            DecliningCaptureGateway(), db, invoice_ledger, booking_engine
        )
        payment = settlement.authorize(booking.invoice_id, "tok_visa", Decimal("200.00"))

        result = settlement.capture(payment.payment_id)

        assert result.status == PaymentStatus.FAILED
        assert result.failure_reason == "insufficient_funds"
        invoice = invoice_ledger.require_invoice(booking.invoice_id)
        assert invoice.status == InvoiceStatus.ISSUED
        assert invoice.balance_due == usd("200.00")
        stored = booking_engine.get(booking.reference)
        assert stored.status == BookingStatus.CONFIRMED
        assert stored.payment_status == PaymentStatus.FAILED

    def test_declined_refund_keeps_capture(
        self,
        db: DynamoDBService,
        invoice_ledger: InvoiceLedger,
        booking_engine: BookingEngine,
        booking: Booking,
    ) -> None:
        settlement = settlement_with(
            DecliningRefundGateway(), db, invoice_ledger, booking_engine
        )
        payment = settlement.authorize(booking.invoice_id, "tok_visa", Decimal("200.00"))
        settlement.capture(payment.payment_id)

        result = settlement.refund(payment.payment_id, Decimal("50.00"))

        assert result.status == PaymentStatus.CAPTURED
        assert result.failure_reason == "processor_unavailable"
        assert invoice_ledger.require_invoice(booking.invoice_id).balance_due == usd("0.00")


class TestVoid:
    """Tests for PaymentSettlement.void."""

    def test_void_then_capture_rejected(
        self,
        settlement: PaymentSettlement,
        booking_engine: BookingEngine,
        booking: Booking,
    ) -> None:
        payment = settlement.authorize(booking.invoice_id, "tok_visa", Decimal("200.00"))

        voided = settlement.void(payment.payment_id)
        assert voided.status == PaymentStatus.VOIDED
        assert booking_engine.get(booking.reference).payment_status == PaymentStatus.VOIDED

        with pytest.raises(BookingError) as exc_info:
            settlement.capture(payment.payment_id)
        assert exc_info.value.code == ErrorCode.INVALID_STATE_TRANSITION

    def test_captured_payment_cannot_be_voided(
        self, settlement: PaymentSettlement, booking: Booking
    ) -> None:
        payment = settlement.authorize(booking.invoice_id, "tok_visa", Decimal("200.00"))
        settlement.capture(payment.payment_id)

        with pytest.raises(BookingError) as exc_info:
            settlement.void(payment.payment_id)
        assert exc_info.value.code == ErrorCode.INVALID_STATE_TRANSITION


class TestBookingChangesAfterPayment:
    """Amend and cancel on bookings that already carry payments."""

    def _pay(self, settlement: PaymentSettlement, booking: Booking, amount: str) -> None:
        payment = settlement.authorize(booking.invoice_id, "tok_visa", Decimal(amount))
        settlement.capture(payment.payment_id)

    def test_amend_up_keeps_amount_paid(
        self,
        settlement: PaymentSettlement,
        booking_engine: BookingEngine,
        invoice_ledger: InvoiceLedger,
        booking: Booking,
    ) -> None:
        self._pay(settlement, booking, "150.00")

        amended = booking_engine.amend(
            booking.reference, BookingAmendment(check_out=dt.date(2024, 6, 5))
        )

        invoice = invoice_ledger.require_invoice(booking.invoice_id)
        assert invoice.grand_total == usd("400.00")
        assert invoice.balance_due == usd("250.00")
        assert invoice.status == InvoiceStatus.PARTIALLY_PAID
        assert amended.balance_due == usd("250.00")

    def test_amend_below_amount_paid_settles_invoice(
        self,
        settlement: PaymentSettlement,
        booking_engine: BookingEngine,
        invoice_ledger: InvoiceLedger,
        booking: Booking,
    ) -> None:
        self._pay(settlement, booking, "150.00")

        booking_engine.amend(
            booking.reference, BookingAmendment(check_out=dt.date(2024, 6, 2))
        )

        invoice = invoice_ledger.require_invoice(booking.invoice_id)
        assert invoice.grand_total == usd("100.00")
        assert invoice.balance_due == usd("0.00")
        assert invoice.status == InvoiceStatus.PAID

    def test_cancel_keeps_paid_invoice(
        self,
        settlement: PaymentSettlement,
        booking_engine: BookingEngine,
        invoice_ledger: InvoiceLedger,
        booking: Booking,
    ) -> None:
        self._pay(settlement, booking, "50.00")

        cancelled = booking_engine.cancel(booking.reference)

        assert cancelled.status == BookingStatus.CANCELLED
        invoice = invoice_ledger.require_invoice(booking.invoice_id)
        assert invoice.status == InvoiceStatus.PARTIALLY_PAID
        assert invoice.balance_due == usd("150.00")

    def test_overpaid_amend_keeps_credit_for_refund(
        self,
        settlement: PaymentSettlement,
        booking_engine: BookingEngine,
        invoice_ledger: InvoiceLedger,
        booking: Booking,
    ) -> None:
        payment = settlement.authorize(booking.invoice_id, "tok_visa", Decimal("200.00"))
        settlement.capture(payment.payment_id)

        booking_engine.amend(
            booking.reference, BookingAmendment(check_out=dt.date(2024, 6, 2))
        )

        invoice = invoice_ledger.require_invoice(booking.invoice_id)
        assert invoice.grand_total == usd("100.00")
        assert invoice.balance_due == usd("0.00")
        assert invoice.amount_paid == Decimal("200.00")
        assert invoice.credit == Decimal("100.00")

        settlement.refund(payment.payment_id, Decimal("100.00"))

        invoice = invoice_ledger.require_invoice(booking.invoice_id)
        assert invoice.balance_due == usd("0.00")
        assert invoice.amount_paid == Decimal("100.00")
        assert booking_engine.get(booking.reference).balance_due == usd("0.00")

    def test_cancel_with_pending_authorization_keeps_invoice_open(
        self,
        settlement: PaymentSettlement,
        booking_engine: BookingEngine,
        invoice_ledger: InvoiceLedger,
        booking: Booking,
    ) -> None:
        payment = settlement.authorize(booking.invoice_id, "tok_visa", Decimal("200.00"))

        booking_engine.cancel(booking.reference)

        invoice = invoice_ledger.require_invoice(booking.invoice_id)
        assert invoice.status == InvoiceStatus.ISSUED

        captured = settlement.capture(payment.payment_id)
        assert captured.status == PaymentStatus.CAPTURED
        invoice = invoice_ledger.require_invoice(booking.invoice_id)
        assert invoice.status == InvoiceStatus.PAID
        assert invoice.amount_paid == Decimal("200.00")

        refunded = settlement.refund(payment.payment_id)
        assert refunded.status == PaymentStatus.REFUNDED
        assert invoice_ledger.require_invoice(booking.invoice_id).balance_due == usd(
            "200.00"
        )

    def test_cancel_after_void_cancels_invoice(
        self,
        settlement: PaymentSettlement,
        booking_engine: BookingEngine,
        invoice_ledger: InvoiceLedger,
        booking: Booking,
    ) -> None:
        payment = settlement.authorize(booking.invoice_id, "tok_visa", Decimal("200.00"))
        settlement.void(payment.payment_id)

        booking_engine.cancel(booking.reference)

        invoice = invoice_ledger.require_invoice(booking.invoice_id)
        assert invoice.status == InvoiceStatus.CANCELLED

    def test_capture_on_cancelled_invoice_never_reaches_gateway(
        self,
        db: DynamoDBService,
        invoice_ledger: InvoiceLedger,
        booking_engine: BookingEngine,
        booking: Booking,
    ) -> None:
        gateway = CountingGateway()
        settlement = settlement_with(gateway, db, invoice_ledger, booking_engine)
        payment = settlement.authorize(booking.invoice_id, "tok_visa", Decimal("200.00"))
        invoice = invoice_ledger.require_invoice(booking.invoice_id)
        db.put_item(
            "invoices",
            model_to_item(cancel_invoice(invoice, dt.datetime.now(dt.UTC))),
        )

        with pytest.raises(BookingError) as exc_info:
            settlement.capture(payment.payment_id)

        assert exc_info.value.code == ErrorCode.INVOICE_NOT_OPEN
        assert gateway.captures == 0
        assert settlement.require_payment(payment.payment_id).status == (
            PaymentStatus.AUTHORIZED
        )
