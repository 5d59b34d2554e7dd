"""Per-room allocation ledger with compare-and-swap writes.

A booking transaction reads the calendars of every candidate room with a
consistent read, picks rooms, then writes the chosen calendars back
conditioned on the versions it read. If another transaction changed one of
those calendars in between, DynamoDB cancels the whole transaction.
"""

import datetime as dt
from typing import TYPE_CHECKING, Any, Iterable

from motel_booking.models import RoomCalendar, Stay
from motel_booking.services.dynamodb import model_to_item

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService


class RoomCalendarService:
    """Loads room calendars and builds their transactional writes."""

    TABLE = "room-calendars"

    def __init__(self, db: "DynamoDBService") -> None:
        self.db = db

    def load(self, property_id: str, room_ids: Iterable[str]) -> dict[str, RoomCalendar]:
        """Consistently read the calendars of ``room_ids``.

        Rooms that never held a stay get an empty version-0 calendar.

        Args:
            property_id: Property owning the rooms
            room_ids: Rooms to read

        Returns:
            Mapping of room ID to RoomCalendar, one entry per requested room
        """
        room_ids = list(dict.fromkeys(room_ids))
        items = self.db.batch_get(
            self.TABLE,
            [{"room_id": room_id} for room_id in room_ids],
            consistent_read=True,
        )
        found = {item["room_id"]: RoomCalendar.model_validate(item) for item in items}
        return {
            room_id: found.get(room_id)
            or RoomCalendar(room_id=room_id, property_id=property_id)
            for room_id in room_ids
        }

    @staticmethod
    def booked_room_ids(
        calendars: Iterable[RoomCalendar],
        start: dt.date,
        end: dt.date,
        ignore_booking_id: str | None = None,
    ) -> set[str]:
        """Rooms holding an active stay that overlaps [start, end)."""
        return {
            calendar.room_id
            for calendar in calendars
            if not calendar.is_free(start, end, ignore_booking_id)
        }

    def write_request(
        self,
        calendar: RoomCalendar,
        stays: dict[str, Stay],
    ) -> dict[str, Any]:
        """Replace a calendar's stays, conditioned on the version that was read."""
        values: dict[str, Any] = {
            ":stays": {bid: model_to_item(stay) for bid, stay in stays.items()},
            ":next": calendar.version + 1,
            ":pid": calendar.property_id,
        }
        names = {
            "#stays": "stays",
            "#version": "version",
            "#pid": "property_id",
        }
        if calendar.version == 0:
            condition = "attribute_not_exists(#pk)"
            names["#pk"] = "room_id"
        else:
            condition = "#version = :seen"
            values[":seen"] = calendar.version

        return self.db.update_request(
            self.TABLE,
            key={"room_id": calendar.room_id},
            update_expression="SET #stays = :stays, #version = :next, #pid = :pid",
            expression_attribute_values=values,
            expression_attribute_names=names,
            condition_expression=condition,
        )

    def reserve_request(
        self,
        calendar: RoomCalendar,
        booking_id: str,
        check_in: dt.date,
        check_out: dt.date,
    ) -> dict[str, Any]:
        """Add (or move) ``booking_id``'s stay on a calendar."""
        stays = dict(calendar.stays)
        stays[booking_id] = Stay(check_in=check_in, check_out=check_out)
        return self.write_request(calendar, stays)

    def vacate_request(self, calendar: RoomCalendar, booking_id: str) -> dict[str, Any]:
        """Drop ``booking_id``'s stay from a calendar that was read in this call."""
        stays = {bid: s for bid, s in calendar.stays.items() if bid != booking_id}
        return self.write_request(calendar, stays)

    def release_request(self, room_id: str, booking_id: str) -> dict[str, Any]:
        """Remove ``booking_id``'s stay without reading the calendar first.

        Removing a stay never creates an overlap, so this write only bumps the
        version and does not compare it.
        """
        return self.db.update_request(
            self.TABLE,
            key={"room_id": room_id},
            update_expression="SET #version = #version + :one REMOVE #stays.#bid",
            expression_attribute_values={":one": 1},
            expression_attribute_names={
                "#version": "version",
                "#stays": "stays",
                "#bid": booking_id,
            },
            condition_expression="attribute_exists(#stays)",
        )
