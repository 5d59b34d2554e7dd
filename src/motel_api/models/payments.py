"""API models for invoice settlement endpoints."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from motel_booking.models import PaymentMethod


class AuthorizeRequest(BaseModel):
    """Request to authorize a payment against an invoice."""

    model_config = ConfigDict(
        # Note: strict=False lets JSON numbers and strings coerce to Decimal
        strict=False,
        json_schema_extra={
            "examples": [
                {
                    "payment_token": "tok_visa",
                    "amount": "240.00",
                    "method": "card",
                }
            ]
        },
    )

    payment_token: str = Field(
        ..., min_length=1, max_length=500, description="Opaque gateway token"
    )
    amount: Decimal = Field(
        ..., description="Amount in the invoice currency, 2 decimals", examples=["240.00"]
    )
    method: PaymentMethod = Field(default=PaymentMethod.CARD, description="Payment method")
    initiated_by: str | None = Field(
        default=None, max_length=100, description="Who initiated the payment"
    )


class RefundRequest(BaseModel):
    """Request to refund a captured payment. Omit amount for a full refund."""

    model_config = ConfigDict(strict=False)

    amount: Decimal | None = Field(
        default=None, description="Partial refund amount", examples=["50.00"]
    )
