"""Payment settlement against invoices.

The gateway protocol itself lives behind ``PaymentGateway``; this module only
records outcomes. A successful capture applies the payment to the invoice and
a successful refund applies the refund. Gateway declines never touch the
invoice and never roll back the booking.
"""

import datetime as dt
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Protocol

from pydantic import BaseModel

from motel_booking.models import (
    Booking,
    BookingError,
    ErrorCode,
    Invoice,
    InvoiceStatus,
    Money,
    Payment,
    PaymentMethod,
    PaymentResult,
    PaymentStatus,
    round_money,
)
from motel_booking.models.money import ZERO
from motel_booking.models.transitions import ensure_payment_transition
from motel_booking.utils.logging import get_logger, log_settlement_event

from .dynamodb import TransactionCancelledError, model_to_item
from .invoice_ledger import apply_payment, apply_refund
from .schema import index_name

if TYPE_CHECKING:
    from .booking import BookingEngine
    from .dynamodb import DynamoDBService
    from .invoice_ledger import InvoiceLedger

logger = get_logger(__name__)


class GatewayResponse(BaseModel):
    approved: bool
    reference: str | None = None
    failure_reason: str | None = None


class PaymentGateway(Protocol):
    """External payment processor."""

    def authorize(self, payment_token: str, amount: Money) -> GatewayResponse: ...

    def capture(self, processor_reference: str, amount: Money) -> GatewayResponse: ...

    def refund(self, processor_reference: str, amount: Money) -> GatewayResponse: ...

    def void(self, processor_reference: str) -> GatewayResponse: ...


class SimulatedPaymentGateway:
    """Gateway stand-in that approves everything except ``fail*`` tokens."""

    DECLINE_PREFIX = "fail"

    def _approve(self, prefix: str) -> GatewayResponse:
        return GatewayResponse(
            approved=True, reference=f"{prefix}-{uuid.uuid4().hex[:8].upper()}"
        )

    def authorize(self, payment_token: str, amount: Money) -> GatewayResponse:
        if payment_token.lower().startswith(self.DECLINE_PREFIX):
            return GatewayResponse(approved=False, failure_reason="card_declined")
        return self._approve("AUTH")

    def capture(self, processor_reference: str, amount: Money) -> GatewayResponse:
        return self._approve("CAP")

    def refund(self, processor_reference: str, amount: Money) -> GatewayResponse:
        return self._approve("REF")

    def void(self, processor_reference: str) -> GatewayResponse:
        return self._approve("VOID")


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


class PaymentSettlement:
    """Authorize, capture, refund and void payments on invoices."""

    TABLE = "payments"

    def __init__(
        self,
        db: "DynamoDBService",
        invoices: "InvoiceLedger",
        bookings: "BookingEngine",
        gateway: PaymentGateway | None = None,
        clock: Callable[[], dt.datetime] = _utcnow,
    ) -> None:
        """Initialize settlement service.

        Args:
            db: DynamoDB service instance
            invoices: Invoice ledger
            bookings: Booking engine, used to mirror payment status on bookings
            gateway: Payment gateway, defaults to SimulatedPaymentGateway
            clock: Source of the current UTC time
        """
        self.db = db
        self.invoices = invoices
        self.bookings = bookings
        self.gateway = gateway or SimulatedPaymentGateway()
        self.clock = clock

    # Lookups

    def get_payment(self, payment_id: str) -> Payment | None:
        item = self.db.get_item(
            self.TABLE, {"payment_id": payment_id}, consistent_read=True
        )
        return Payment.model_validate(item) if item else None

    def require_payment(self, payment_id: str) -> Payment:
        payment = self.get_payment(payment_id)
        if payment is None:
            raise BookingError(
                code=ErrorCode.PAYMENT_NOT_FOUND,
                details={"payment_id": payment_id},
            )
        return payment

    def list_payments(self, invoice_id: str) -> list[Payment]:
        """Payments of an invoice, oldest first."""
        items = self.db.query_by_gsi(
            self.TABLE, index_name("invoice_id"), "invoice_id", invoice_id
        )
        payments = [Payment.model_validate(item) for item in items]
        return sorted(payments, key=lambda p: p.created_at)

    # Settlement actions

    def authorize(
        self,
        invoice_id: str,
        payment_token: str,
        amount: Decimal,
        method: PaymentMethod = PaymentMethod.CARD,
        initiated_by: str | None = None,
    ) -> PaymentResult:
        """Authorize a payment against an open invoice.

        Args:
            invoice_id: Invoice to pay
            payment_token: Opaque gateway token
            amount: Amount in the invoice currency
            method: Payment method
            initiated_by: Who started the payment

        Returns:
            PaymentResult with AUTHORIZED or FAILED status

        Raises:
            BookingError: INVALID_AMOUNT, INVOICE_NOT_FOUND or INVOICE_NOT_OPEN
        """
        amount = self._validate_amount(amount)
        invoice = self.invoices.require_invoice(invoice_id)
        if not invoice.is_open:
            raise BookingError(
                code=ErrorCode.INVOICE_NOT_OPEN,
                details={"invoice_id": invoice_id, "status": invoice.status.value},
            )
        booking = self.bookings.require(booking_id=invoice.booking_id)

        now = self.clock()
        payment = Payment(
            payment_id=f"PAY-{uuid.uuid4().hex[:16].upper()}",
            invoice_id=invoice.invoice_id,
            booking_id=invoice.booking_id,
            method=method,
            amount=Money(amount=amount, currency=invoice.currency),
            status=PaymentStatus.INITIATED,
            initiated_by=initiated_by,
            created_at=now,
        )
        response = self.gateway.authorize(payment_token, payment.amount)
        target = PaymentStatus.AUTHORIZED if response.approved else PaymentStatus.FAILED
        payment = self._outcome(payment, target, response, now)

        booking_item, _ = self.bookings.payment_update_request(booking, now, target)
        self._commit(
            [
                self.db.put_request(
                    self.TABLE,
                    model_to_item(payment),
                    condition_expression="attribute_not_exists(#pk)",
                    expression_attribute_names={"#pk": "payment_id"},
                ),
                booking_item,
            ]
        )
        return self._result("authorize", payment)

    def capture(self, payment_id: str) -> PaymentResult:
        """Capture an authorized payment and apply it to the invoice.

        The invoice must still accept the payment before the gateway is
        called; a capture against a cancelled invoice is refused untouched.

        Raises:
            BookingError: PAYMENT_NOT_FOUND, INVALID_STATE_TRANSITION or
                INVOICE_NOT_OPEN
        """
        payment = self.require_payment(payment_id)
        ensure_payment_transition(payment.status, PaymentStatus.CAPTURED, payment_id)
        invoice, booking = self._load(payment)
        if invoice.status == InvoiceStatus.CANCELLED:
            raise BookingError(
                code=ErrorCode.INVOICE_NOT_OPEN,
                details={"invoice_id": invoice.invoice_id, "status": invoice.status.value},
            )

        now = self.clock()
        paid_invoice = apply_payment(invoice, payment.amount.amount, now)
        response = self.gateway.capture(payment.processor_reference or "", payment.amount)
        if not response.approved:
            return self._decline("capture", payment, booking, response, now)

        captured = self._outcome(payment, PaymentStatus.CAPTURED, response, now)
        self._commit_settled(captured, payment.status, invoice, paid_invoice, booking, now)
        return self._result("capture", captured)

    def refund(self, payment_id: str, amount: Decimal | None = None) -> PaymentResult:
        """Refund a captured payment, fully or partially.

        A declined refund leaves the payment CAPTURED with ``failure_reason``
        set, since the money was never returned.
        """
        payment = self.require_payment(payment_id)
        ensure_payment_transition(payment.status, PaymentStatus.REFUNDED, payment_id)
        refund_amount = payment.amount.amount if amount is None else self._validate_amount(amount)
        if refund_amount > payment.amount.amount:
            raise BookingError(
                code=ErrorCode.INVALID_AMOUNT,
                details={
                    "field": "amount",
                    "max": str(payment.amount.amount),
                    "value": str(refund_amount),
                },
            )
        invoice, booking = self._load(payment)

        now = self.clock()
        credited = apply_refund(invoice, refund_amount, now)
        refund_money = Money(amount=refund_amount, currency=payment.amount.currency)
        response = self.gateway.refund(payment.processor_reference or "", refund_money)
        if not response.approved:
            declined = payment.model_copy(
                update={"failure_reason": response.failure_reason, "processed_at": now}
            )
            self._commit([self._payment_request(declined, payment.status)])
            return self._result("refund", declined)

        refunded = self._outcome(payment, PaymentStatus.REFUNDED, response, now)
        refunded = refunded.model_copy(update={"refunded_amount": refund_money})
        self._commit_settled(refunded, payment.status, invoice, credited, booking, now)
        return self._result("refund", refunded)

    def void(self, payment_id: str) -> PaymentResult:
        """Release an authorization that will not be captured.

        A declined void leaves the payment AUTHORIZED with ``failure_reason``.
        """
        payment = self.require_payment(payment_id)
        ensure_payment_transition(payment.status, PaymentStatus.VOIDED, payment_id)
        booking = self.bookings.require(booking_id=payment.booking_id)

        now = self.clock()
        response = self.gateway.void(payment.processor_reference or "")
        if not response.approved:
            declined = payment.model_copy(
                update={"failure_reason": response.failure_reason, "processed_at": now}
            )
            self._commit([self._payment_request(declined, payment.status)])
            return self._result("void", declined)

        voided = self._outcome(payment, PaymentStatus.VOIDED, response, now)
        booking_item, _ = self.bookings.payment_update_request(
            booking, now, PaymentStatus.VOIDED
        )
        self._commit([self._payment_request(voided, payment.status), booking_item])
        return self._result("void", voided)

    # Helpers

    @staticmethod
    def _validate_amount(amount: Decimal) -> Decimal:
        rounded = round_money(amount)
        if rounded <= ZERO or rounded != amount:
            raise BookingError(
                code=ErrorCode.INVALID_AMOUNT,
                details={"field": "amount", "value": str(amount)},
            )
        return rounded

    def _load(self, payment: Payment) -> tuple[Invoice, Booking]:
        invoice = self.invoices.require_invoice(payment.invoice_id)
        booking = self.bookings.require(booking_id=payment.booking_id)
        return invoice, booking

    @staticmethod
    def _outcome(
        payment: Payment,
        target: PaymentStatus,
        response: GatewayResponse,
        now: dt.datetime,
    ) -> Payment:
        ensure_payment_transition(payment.status, target, payment.payment_id)
        changes: dict[str, Any] = {"status": target, "processed_at": now}
        if response.approved:
            changes["processor_reference"] = response.reference
            changes["failure_reason"] = None
        else:
            changes["failure_reason"] = response.failure_reason or "declined"
        return payment.model_copy(update=changes)

    def _decline(
        self,
        action: str,
        payment: Payment,
        booking: Booking,
        response: GatewayResponse,
        now: dt.datetime,
    ) -> PaymentResult:
        """Record a gateway decline: payment and booking FAILED, invoice untouched."""
        failed = self._outcome(payment, PaymentStatus.FAILED, response, now)
        booking_item, _ = self.bookings.payment_update_request(
            booking, now, PaymentStatus.FAILED
        )
        self._commit([self._payment_request(failed, payment.status), booking_item])
        return self._result(action, failed)

    def _commit_settled(
        self,
        payment: Payment,
        seen_status: PaymentStatus,
        invoice: Invoice,
        updated_invoice: Invoice,
        booking: Booking,
        now: dt.datetime,
    ) -> None:
        """Write payment, invoice and booking balance in one transaction."""
        booking_item, _ = self.bookings.payment_update_request(
            booking, now, payment.status, balance_due=updated_invoice.balance_due
        )
        items = [self._payment_request(payment, seen_status), booking_item]
        if updated_invoice is not invoice:
            items.append(self.invoices.replace_request(updated_invoice, invoice.version))
        self._commit(items)

    def _payment_request(self, payment: Payment, seen_status: PaymentStatus) -> dict[str, Any]:
        """Put the payment if its status is still the one that was read."""
        return self.db.put_request(
            self.TABLE,
            model_to_item(payment),
            condition_expression="#status = :seen",
            expression_attribute_names={"#status": "status"},
            expression_attribute_values={":seen": seen_status.value},
        )

    def _commit(self, items: list[dict[str, Any]]) -> None:
        try:
            self.db.transact_write(items)
        except TransactionCancelledError as e:
            raise BookingError(
                code=ErrorCode.CONFLICT,
                details={"reason": "payment, invoice or booking changed concurrently"},
            ) from e

    def _result(self, action: str, payment: Payment) -> PaymentResult:
        log_settlement_event(
            logger,
            action,
            payment.payment_id,
            invoice_id=payment.invoice_id,
            amount=str(payment.amount.amount),
            status=payment.status.value,
            failure_reason=payment.failure_reason,
        )
        return PaymentResult.from_payment(payment)
