"""Pricing endpoint for quoting a stay without booking it."""

from fastapi import APIRouter, Depends

from motel_api.dependencies import get_pricing_engine
from motel_api.models.common import ErrorResponse
from motel_api.models.pricing import QuoteRequest
from motel_booking.models import PricingQuote
from motel_booking.services.pricing import PricingEngine

router = APIRouter(tags=["pricing"])


@router.post(
    "/pricing/quote",
    summary="Quote a stay",
    description="""
Price a stay for the given rate plan and room types.

Each requested room type produces one line item of nightly rate x nights.
Every monetary step is rounded half-up to 2 decimals, and identical
requests always yield identical quotes.
""",
    response_description="Quote with base, tax and total amounts",
    response_model=PricingQuote,
    responses={
        200: {"description": "Quote computed"},
        400: {
            "model": ErrorResponse,
            "description": "Invalid dates, empty room types or mismatched currencies",
        },
        404: {
            "model": ErrorResponse,
            "description": "Property, rate plan or room type not found",
        },
    },
)
async def quote_stay(
    body: QuoteRequest,
    engine: PricingEngine = Depends(get_pricing_engine),
) -> PricingQuote:
    return engine.quote(body.to_context())
