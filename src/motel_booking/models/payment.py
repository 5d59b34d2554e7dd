"""Payment models for settlement records."""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field

from .enums import PaymentMethod, PaymentStatus
from .money import Money


class Payment(BaseModel):
    """A payment against an invoice, driven through the gateway."""

    payment_id: str = Field(..., description="Unique payment ID")
    invoice_id: str = Field(..., description="Invoice being settled")
    booking_id: str
    method: PaymentMethod
    amount: Money
    refunded_amount: Money | None = None
    status: PaymentStatus
    processor_reference: str | None = Field(
        default=None, description="Gateway reference for the last successful action"
    )
    failure_reason: str | None = None
    initiated_by: str | None = None
    created_at: dt.datetime
    processed_at: dt.datetime | None = None


class PaymentResult(BaseModel):
    """Outcome of a settlement action."""

    model_config = ConfigDict(strict=True)

    payment_id: str
    status: PaymentStatus
    processor_reference: str | None = None
    failure_reason: str | None = None

    @classmethod
    def from_payment(cls, payment: Payment) -> "PaymentResult":
        return cls(
            payment_id=payment.payment_id,
            status=payment.status,
            processor_reference=payment.processor_reference,
            failure_reason=payment.failure_reason,
        )
