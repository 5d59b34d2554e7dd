"""Invoice ledger: one invoice per booking, mutated by settlement outcomes.

The balance rules are plain functions so that the booking engine and the
settlement service can fold them into their own transactions.
"""

import datetime as dt
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from motel_booking.models import (
    Booking,
    BookingError,
    ErrorCode,
    Invoice,
    InvoiceLineItem,
    InvoiceStatus,
    Money,
    PricingQuote,
    round_money,
)
from motel_booking.models.money import ZERO
from motel_booking.models.transitions import ensure_invoice_transition
from motel_booking.services.dynamodb import model_to_item

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService


def invoice_id_for(booking_id: str) -> str:
    """Invoice ID derived from the booking, which makes the pairing 1:1."""
    return f"INV-{booking_id}"


def _line_items(quote: PricingQuote) -> list[InvoiceLineItem]:
    return [
        InvoiceLineItem(
            description=line.description,
            quantity=line.nights,
            unit_price=line.nightly_rate,
            amount=line.amount,
        )
        for line in quote.line_items
    ]


def issue_invoice(booking: Booking, quote: PricingQuote, now: dt.datetime) -> Invoice:
    """Issue the invoice of a booking at confirmation."""
    return Invoice(
        invoice_id=invoice_id_for(booking.booking_id),
        booking_id=booking.booking_id,
        property_id=booking.property_id,
        currency=quote.currency,
        line_items=_line_items(quote),
        subtotal=quote.base_amount,
        tax=quote.tax_amount,
        grand_total=quote.total_amount,
        balance_due=quote.total_amount,
        status=InvoiceStatus.ISSUED,
        issued_at=now,
        updated_at=now,
    )


def _status_for_balance(balance: Decimal, paid: Decimal) -> InvoiceStatus:
    if paid <= ZERO:
        return InvoiceStatus.ISSUED
    if balance == ZERO:
        return InvoiceStatus.PAID
    return InvoiceStatus.PARTIALLY_PAID


def reissue_invoice(invoice: Invoice, quote: PricingQuote, now: dt.datetime) -> Invoice:
    """Re-price an invoice after an amend, keeping what was already paid.

    balance = max(0, new grand total - amount paid). ``amount_paid`` is
    carried over unchanged, so paying more than the new total leaves credit.
    """
    paid = invoice.amount_paid
    balance = max(ZERO, round_money(quote.total - paid))
    status = _status_for_balance(balance, paid)
    ensure_invoice_transition(invoice.status, status, invoice.invoice_id)
    return invoice.model_copy(
        update={
            "currency": quote.currency,
            "line_items": _line_items(quote),
            "subtotal": quote.base_amount,
            "tax": quote.tax_amount,
            "grand_total": quote.total_amount,
            "balance_due": Money(amount=balance, currency=quote.currency),
            "status": status,
            "updated_at": now,
            "version": invoice.version + 1,
        }
    )


def apply_payment(invoice: Invoice, amount: Decimal, now: dt.datetime) -> Invoice:
    """Apply a captured payment.

    balance = max(0, balance - amount), rounded half-up; PAID at exactly
    zero, PARTIALLY_PAID otherwise. The whole amount counts towards
    ``amount_paid``. No-op when the balance is unset.
    """
    if invoice.balance_due is None:
        return invoice
    balance = max(ZERO, round_money(invoice.balance_due.amount - amount))
    status = InvoiceStatus.PAID if balance == ZERO else InvoiceStatus.PARTIALLY_PAID
    ensure_invoice_transition(invoice.status, status, invoice.invoice_id)
    return invoice.model_copy(
        update={
            "balance_due": Money(amount=balance, currency=invoice.currency),
            "status": status,
            "amount_paid": round_money(invoice.amount_paid + amount),
            "updated_at": now,
            "version": invoice.version + 1,
        }
    )


def apply_refund(invoice: Invoice, amount: Decimal, now: dt.datetime) -> Invoice:
    """Apply a refund.

    balance = balance + amount (or amount when unset), rounded half-up and
    capped at the grand total. Status goes back to ISSUED whatever the
    resulting balance.

    Credit held from an overpayment is returned first and does not raise the
    balance.
    """
    if invoice.balance_due is None:
        raised = round_money(amount)
    else:
        owed_back = max(ZERO, round_money(amount - invoice.credit))
        raised = round_money(invoice.balance_due.amount + owed_back)
    balance = min(raised, invoice.grand_total.amount)
    paid = max(ZERO, round_money(invoice.amount_paid - amount))
    ensure_invoice_transition(invoice.status, InvoiceStatus.ISSUED, invoice.invoice_id)
    return invoice.model_copy(
        update={
            "balance_due": Money(amount=balance, currency=invoice.currency),
            "status": InvoiceStatus.ISSUED,
            "amount_paid": paid,
            "updated_at": now,
            "version": invoice.version + 1,
        }
    )


def cancel_invoice(invoice: Invoice, now: dt.datetime) -> Invoice:
    """Cancel an invoice nothing was paid on."""
    ensure_invoice_transition(invoice.status, InvoiceStatus.CANCELLED, invoice.invoice_id)
    return invoice.model_copy(
        update={
            "status": InvoiceStatus.CANCELLED,
            "updated_at": now,
            "version": invoice.version + 1,
        }
    )


class InvoiceLedger:
    """Persistence of invoices."""

    TABLE = "invoices"

    def __init__(self, db: "DynamoDBService") -> None:
        """Initialize invoice ledger.

        Args:
            db: DynamoDB service instance
        """
        self.db = db

    def get_invoice(self, invoice_id: str, consistent: bool = False) -> Invoice | None:
        item = self.db.get_item(
            self.TABLE, {"invoice_id": invoice_id}, consistent_read=consistent
        )
        return Invoice.model_validate(item) if item else None

    def require_invoice(self, invoice_id: str) -> Invoice:
        """Get an invoice or raise INVOICE_NOT_FOUND."""
        invoice = self.get_invoice(invoice_id, consistent=True)
        if invoice is None:
            raise BookingError(
                code=ErrorCode.INVOICE_NOT_FOUND,
                details={"invoice_id": invoice_id},
            )
        return invoice

    def get_for_booking(self, booking_id: str) -> Invoice | None:
        return self.get_invoice(invoice_id_for(booking_id), consistent=True)

    def create_request(self, invoice: Invoice) -> dict[str, Any]:
        """Transactional Put that fails if the booking already has an invoice."""
        return self.db.put_request(
            self.TABLE,
            model_to_item(invoice),
            condition_expression="attribute_not_exists(#pk)",
            expression_attribute_names={"#pk": "invoice_id"},
        )

    def replace_request(self, invoice: Invoice, seen_version: int) -> dict[str, Any]:
        """Transactional Put conditioned on the version that was read."""
        return self.db.put_request(
            self.TABLE,
            model_to_item(invoice),
            condition_expression="#version = :seen",
            expression_attribute_names={"#version": "version"},
            expression_attribute_values={":seen": seen_version},
        )
