"""Monetary amounts with half-up rounding to 2 decimals."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[Decimal, int, str]


def round_money(value: Number) -> Decimal:
    """Round a value half-up to 2 decimal places."""
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


class Money(BaseModel):
    """An amount in a single ISO-4217 currency.

    Amounts are rounded half-up to 2 decimals on construction, so every
    arithmetic result is rounded at each step rather than only at the end.
    """

    model_config = ConfigDict(frozen=True)

    amount: Decimal = Field(..., description="Amount, 2 decimal places")
    currency: str = Field(..., min_length=3, max_length=3, description="ISO-4217 code")

    @field_validator("amount", mode="after")
    @classmethod
    def _round(cls, value: Decimal) -> Decimal:
        return round_money(value)

    @field_validator("currency", mode="after")
    @classmethod
    def _upper(cls, value: str) -> str:
        return value.upper()

    @classmethod
    def zero(cls, currency: str) -> "Money":
        return cls(amount=ZERO, currency=currency)

    def _check_currency(self, other: "Money") -> None:
        if other.currency != self.currency:
            raise ValueError(
                f"Cannot combine {self.currency} with {other.currency}"
            )

    def __add__(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: "Money") -> "Money":
        self._check_currency(other)
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def times(self, factor: int) -> "Money":
        return Money(amount=self.amount * factor, currency=self.currency)

    def is_zero(self) -> bool:
        return self.amount == ZERO

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"
