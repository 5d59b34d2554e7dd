"""Pricing quote models."""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field

from .money import Money


class PricingContext(BaseModel):
    """Inputs to a stay quote."""

    property_id: str
    rate_plan_id: str
    check_in: dt.date
    check_out: dt.date
    adults: int = 1
    children: int = 0
    room_type_ids: list[str] = Field(default_factory=list)


class PriceLineItem(BaseModel):
    """Charge for one requested room over the whole stay."""

    room_type_id: str
    room_type_code: str
    description: str
    nightly_rate: Money
    nights: int
    amount: Money


class Adjustment(BaseModel):
    """Discount or surcharge applied on top of the base amount."""

    code: str
    description: str
    amount: Money


class PricingQuote(BaseModel):
    """Stay quote: base + tax = total, all rounded half-up to 2 decimals."""

    currency: str
    nights: int
    base_amount: Money
    tax_amount: Money
    total_amount: Money
    adjustments: list[Adjustment] = Field(default_factory=list)
    line_items: list[PriceLineItem] = Field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return self.total_amount.amount
