"""API models for pricing endpoints."""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field

from motel_booking.models import PricingContext


class QuoteRequest(BaseModel):
    """Request to price a stay without booking it."""

    model_config = ConfigDict(
        # Note: strict=False allows string-to-date coercion from JSON
        strict=False,
        json_schema_extra={
            "examples": [
                {
                    "property_id": "PROP-0001",
                    "rate_plan_id": "RP-BAR",
                    "check_in": "2025-07-15",
                    "check_out": "2025-07-18",
                    "adults": 2,
                    "children": 0,
                    "room_type_ids": ["RT-DBL"],
                }
            ]
        },
    )

    property_id: str = Field(..., description="Property to price")
    rate_plan_id: str = Field(..., description="Rate plan to apply")
    check_in: dt.date = Field(
        ..., description="Check-in date (YYYY-MM-DD)", examples=["2025-07-15"]
    )
    check_out: dt.date = Field(
        ..., description="Check-out date (YYYY-MM-DD)", examples=["2025-07-18"]
    )
    adults: int = Field(default=1, description="Number of adults", examples=[2])
    children: int = Field(default=0, description="Number of children", examples=[0])
    room_type_ids: list[str] = Field(
        default_factory=list,
        description="One entry per requested room; duplicates price twice",
        examples=[["RT-DBL"]],
    )

    def to_context(self) -> PricingContext:
        return PricingContext(**self.model_dump())
