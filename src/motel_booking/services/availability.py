"""Availability engine: free-room counts and nightly rates per room type."""

import datetime as dt
from typing import TYPE_CHECKING

from motel_booking.models import (
    AvailabilityQuery,
    AvailabilityResult,
    BookingError,
    ErrorCode,
    Money,
    NightlyRate,
    Property,
    RoomStatus,
    RoomType,
    RoomTypeAvailability,
)
from motel_booking.models.booking import MAX_ADULTS, MAX_CHILDREN
from motel_booking.utils.logging import get_logger

from .availability_cache import AvailabilityCache

if TYPE_CHECKING:
    from .catalog import InventoryCatalog
    from .room_calendar import RoomCalendarService

logger = get_logger(__name__)


def validate_date_range(start: dt.date, end: dt.date, field: str = "end_date") -> None:
    if end <= start:
        raise BookingError(
            code=ErrorCode.INVALID_DATE_RANGE,
            details={"field": field, "start": start.isoformat(), "end": end.isoformat()},
        )


def validate_party(adults: int, children: int) -> None:
    if not 1 <= adults <= MAX_ADULTS:
        raise BookingError(
            code=ErrorCode.INVALID_PARTY_SIZE,
            details={"field": "adults", "value": str(adults), "allowed": f"1-{MAX_ADULTS}"},
        )
    if not 0 <= children <= MAX_CHILDREN:
        raise BookingError(
            code=ErrorCode.INVALID_PARTY_SIZE,
            details={
                "field": "children",
                "value": str(children),
                "allowed": f"0-{MAX_CHILDREN}",
            },
        )


def date_range(start: dt.date, end: dt.date) -> list[dt.date]:
    """Dates in [start, end)."""
    return [start + dt.timedelta(days=i) for i in range((end - start).days)]


class AvailabilityEngine:
    """Service for availability searches."""

    def __init__(
        self,
        catalog: "InventoryCatalog",
        calendars: "RoomCalendarService",
        cache: AvailabilityCache[AvailabilityResult] | None = None,
    ) -> None:
        """Initialize availability engine.

        Args:
            catalog: Inventory catalog
            calendars: Room calendar service, the source of booked rooms
            cache: Optional result cache; a disabled cache is used if omitted
        """
        self.catalog = catalog
        self.calendars = calendars
        self.cache: AvailabilityCache[AvailabilityResult] = cache or AvailabilityCache(
            ttl_seconds=0
        )

    def search(
        self,
        property_id: str,
        start_date: dt.date,
        end_date: dt.date,
        adults: int = 1,
        children: int = 0,
        room_type_codes: list[str] | None = None,
    ) -> AvailabilityResult:
        """Count free rooms per room type for [start_date, end_date).

        Args:
            property_id: Property to search
            start_date: First night
            end_date: Departure date (exclusive)
            adults: Number of adults
            children: Number of children
            room_type_codes: Optional room type code filter

        Returns:
            AvailabilityResult with one entry per candidate room type

        Raises:
            BookingError: INVALID_DATE_RANGE, INVALID_PARTY_SIZE,
                PROPERTY_NOT_FOUND or NO_MATCHING_ROOM_TYPES
        """
        validate_date_range(start_date, end_date)
        validate_party(adults, children)

        query = AvailabilityQuery(
            property_id=property_id,
            start_date=start_date,
            end_date=end_date,
            adults=adults,
            children=children,
            room_type_codes=tuple(sorted({c.upper() for c in room_type_codes or []})),
        )
        cached = self.cache.get(query)
        if cached is not None:
            return cached

        result = self._compute(query)
        self.cache.put(query, result, property_id)
        return result

    def invalidate(self, property_id: str) -> None:
        """Forget cached results of a property after its inventory changed."""
        dropped = self.cache.invalidate_property(property_id)
        if dropped:
            logger.debug(
                "Invalidated %d availability entries for %s", dropped, property_id
            )

    def _compute(self, query: AvailabilityQuery) -> AvailabilityResult:
        prop = self.catalog.get_property(query.property_id)
        if prop is None:
            raise BookingError(
                code=ErrorCode.PROPERTY_NOT_FOUND,
                details={"property_id": query.property_id},
            )

        if query.room_type_codes:
            room_types = self.catalog.find_room_types_by_codes(
                prop.property_id, query.room_type_codes
            )
        else:
            room_types = self.catalog.list_room_types(prop.property_id)
        if not room_types:
            details = {"property_id": prop.property_id}
            if query.room_type_codes:
                details["room_type_codes"] = ",".join(query.room_type_codes)
            raise BookingError(code=ErrorCode.NO_MATCHING_ROOM_TYPES, details=details)

        type_ids = {rt.room_type_id for rt in room_types}
        rooms = [
            room
            for room in self.catalog.list_rooms(prop.property_id, RoomStatus.AVAILABLE)
            if room.room_type_id in type_ids
        ]
        calendars = self.calendars.load(prop.property_id, [r.room_id for r in rooms])
        booked = self.calendars.booked_room_ids(
            calendars.values(), query.start_date, query.end_date
        )

        nights = date_range(query.start_date, query.end_date)
        entries = []
        for room_type in room_types:
            free = [
                room
                for room in rooms
                if room.room_type_id == room_type.room_type_id
                and room.room_id not in booked
            ]
            entries.append(
                RoomTypeAvailability(
                    room_type_id=room_type.room_type_id,
                    code=room_type.code,
                    name=room_type.name,
                    capacity=room_type.capacity,
                    available_rooms=len(free),
                    nightly_rates=self._nightly_rates(room_type, prop, nights),
                )
            )

        logger.info(
            "Availability computed for %s %s..%s: %s",
            prop.property_id,
            query.start_date,
            query.end_date,
            {e.code: e.available_rooms for e in entries},
        )
        return AvailabilityResult(
            property_id=prop.property_id,
            start_date=query.start_date,
            end_date=query.end_date,
            room_types=entries,
        )

    @staticmethod
    def _nightly_rates(
        room_type: RoomType, prop: Property, nights: list[dt.date]
    ) -> list[NightlyRate]:
        rate = room_type.base_rate
        nightly = Money(
            amount=rate.amount if rate is not None else 0,
            currency=rate.currency if rate is not None else prop.default_currency,
        )
        return [
            NightlyRate(date=night, currency=nightly.currency, amount=nightly.amount)
            for night in nights
        ]
