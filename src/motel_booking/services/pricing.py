"""Pricing engine for stay quotes."""

from typing import TYPE_CHECKING, Protocol

from motel_booking.models import (
    BookingError,
    ErrorCode,
    Money,
    PriceLineItem,
    PricingContext,
    PricingQuote,
    Property,
    RatePlan,
    RoomType,
)

if TYPE_CHECKING:
    from .catalog import InventoryCatalog


class TaxPolicy(Protocol):
    """External tax computation."""

    def compute_tax(self, base: Money, context: PricingContext) -> Money: ...


class ZeroTaxPolicy:
    """No tax. Used until a property-specific policy is plugged in."""

    def compute_tax(self, base: Money, context: PricingContext) -> Money:
        return Money.zero(base.currency)


def nightly_rate(room_type: RoomType, rate_plan: RatePlan | None) -> Money | None:
    """Room type base rate, else the rate plan default, else None."""
    if room_type.base_rate is not None:
        return room_type.base_rate
    if rate_plan is not None:
        return rate_plan.default_rate
    return None


def resolve_currency(rates: list[Money | None], prop: Property) -> str:
    """Pick the single currency of a set of rates.

    Rates without a currency source fall back to the property default. Two
    different currencies among the rates is an error.
    """
    currencies = {rate.currency for rate in rates if rate is not None}
    if len(currencies) > 1:
        raise BookingError(
            code=ErrorCode.CURRENCY_MISMATCH,
            details={"currencies": ",".join(sorted(currencies))},
        )
    if currencies:
        return currencies.pop()
    return prop.default_currency


class PricingEngine:
    """Computes base, tax and total for a stay."""

    def __init__(
        self,
        catalog: "InventoryCatalog",
        tax_policy: TaxPolicy | None = None,
    ) -> None:
        """Initialize pricing engine.

        Args:
            catalog: Inventory catalog for property, rate plan and room types
            tax_policy: Tax collaborator, defaults to ZeroTaxPolicy
        """
        self.catalog = catalog
        self.tax_policy = tax_policy or ZeroTaxPolicy()

    def quote(self, context: PricingContext) -> PricingQuote:
        """Quote a stay.

        Every monetary step is rounded half-up to 2 decimals. Identical
        inputs always yield identical quotes.

        Args:
            context: Property, rate plan, dates, party and room types

        Returns:
            PricingQuote with one line item per requested room type

        Raises:
            BookingError: INVALID_DATE_RANGE, EMPTY_ROOM_TYPE_SET,
                PROPERTY_NOT_FOUND, RATE_PLAN_NOT_FOUND, ROOM_TYPE_NOT_FOUND,
                ROOM_TYPE_MISMATCH or CURRENCY_MISMATCH
        """
        nights = (context.check_out - context.check_in).days
        if nights <= 0:
            raise BookingError(
                code=ErrorCode.INVALID_DATE_RANGE,
                details={
                    "field": "check_out",
                    "check_in": context.check_in.isoformat(),
                    "check_out": context.check_out.isoformat(),
                },
            )
        if not context.room_type_ids:
            raise BookingError(
                code=ErrorCode.EMPTY_ROOM_TYPE_SET,
                details={"field": "room_type_ids"},
            )

        prop = self.catalog.get_property(context.property_id)
        if prop is None:
            raise BookingError(
                code=ErrorCode.PROPERTY_NOT_FOUND,
                details={"property_id": context.property_id},
            )
        rate_plan = self.catalog.get_rate_plan(prop.property_id, context.rate_plan_id)
        if rate_plan is None:
            raise BookingError(
                code=ErrorCode.RATE_PLAN_NOT_FOUND,
                details={"rate_plan_id": context.rate_plan_id},
            )

        room_types = self.resolve_room_types(prop, context.room_type_ids)
        return self.quote_resolved(prop, rate_plan, room_types, context)

    def resolve_room_types(self, prop: Property, room_type_ids: list[str]) -> list[RoomType]:
        """Load requested room types in request order, duplicates preserved."""
        found = self.catalog.get_room_types(room_type_ids)
        room_types = []
        for room_type_id in room_type_ids:
            room_type = found.get(room_type_id)
            if room_type is None:
                raise BookingError(
                    code=ErrorCode.ROOM_TYPE_NOT_FOUND,
                    details={"room_type_id": room_type_id},
                )
            if room_type.property_id != prop.property_id:
                raise BookingError(
                    code=ErrorCode.ROOM_TYPE_MISMATCH,
                    details={
                        "room_type_id": room_type_id,
                        "property_id": prop.property_id,
                    },
                )
            room_types.append(room_type)
        return room_types

    def quote_resolved(
        self,
        prop: Property,
        rate_plan: RatePlan,
        room_types: list[RoomType],
        context: PricingContext,
    ) -> PricingQuote:
        """Quote with catalog records already loaded (used by the booking engine)."""
        nights = (context.check_out - context.check_in).days
        rates = [nightly_rate(rt, rate_plan) for rt in room_types]
        currency = resolve_currency(rates, prop)

        line_items = []
        base = Money.zero(currency)
        for room_type, rate in zip(room_types, rates):
            nightly = Money(
                amount=rate.amount if rate is not None else 0, currency=currency
            )
            amount = nightly.times(nights)
            base = base + amount
            line_items.append(
                PriceLineItem(
                    room_type_id=room_type.room_type_id,
                    room_type_code=room_type.code,
                    description=f"{room_type.name or room_type.code} x {nights} night(s)",
                    nightly_rate=nightly,
                    nights=nights,
                    amount=amount,
                )
            )

        tax = self.tax_policy.compute_tax(base, context)
        return PricingQuote(
            currency=currency,
            nights=nights,
            base_amount=base,
            tax_amount=tax,
            total_amount=base + tax,
            adjustments=[],
            line_items=line_items,
        )
