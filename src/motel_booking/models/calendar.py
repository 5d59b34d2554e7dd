"""Per-room allocation ledger.

Each physical room has one calendar item listing the active stays assigned to
it. Writers compare-and-swap on ``version``, so two transactions that read
the same calendar cannot both commit an allocation on it.
"""

import datetime as dt

from pydantic import BaseModel, Field


class Stay(BaseModel):
    check_in: dt.date
    check_out: dt.date

    def overlaps(self, start: dt.date, end: dt.date) -> bool:
        return self.check_in < end and self.check_out > start


class RoomCalendar(BaseModel):
    room_id: str
    property_id: str
    version: int = Field(default=0, ge=0, description="0 means never written")
    stays: dict[str, Stay] = Field(
        default_factory=dict, description="Active stays keyed by booking ID"
    )

    def is_free(
        self,
        start: dt.date,
        end: dt.date,
        ignore_booking_id: str | None = None,
    ) -> bool:
        """True when no stay other than ``ignore_booking_id`` overlaps [start, end)."""
        return not any(
            stay.overlaps(start, end)
            for booking_id, stay in self.stays.items()
            if booking_id != ignore_booking_id
        )
