"""Invoice model and its balance rules."""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field

from .enums import InvoiceStatus
from .money import ZERO, Money, round_money


class InvoiceLineItem(BaseModel):
    description: str
    quantity: int = Field(default=1, ge=1)
    unit_price: Money
    amount: Money


class Invoice(BaseModel):
    """One invoice per booking.

    ``balance_due`` may be unset on invoices imported from elsewhere; the
    ledger's payment and refund rules treat that case explicitly.

    ``amount_paid`` is the net of captures and refunds; whatever exceeds the
    grand total is held as credit.
    """

    invoice_id: str
    booking_id: str
    property_id: str
    currency: str
    line_items: list[InvoiceLineItem] = Field(default_factory=list)
    subtotal: Money
    tax: Money
    grand_total: Money
    balance_due: Money | None = None
    status: InvoiceStatus = InvoiceStatus.ISSUED
    issued_at: dt.datetime
    updated_at: dt.datetime
    amount_paid: Decimal = Field(default=ZERO, ge=0)
    version: int = Field(default=1, ge=1)

    @property
    def credit(self) -> Decimal:
        """Paid amount in excess of the grand total."""
        return max(ZERO, round_money(self.amount_paid - self.grand_total.amount))

    @property
    def is_open(self) -> bool:
        return self.status not in (InvoiceStatus.PAID, InvoiceStatus.CANCELLED)
