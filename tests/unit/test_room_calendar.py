"""Unit tests for room calendars and their compare-and-swap writes."""

import datetime as dt
from typing import Any
from unittest.mock import MagicMock

import pytest

from motel_booking.models import RoomCalendar, Stay
from motel_booking.services.room_calendar import RoomCalendarService


def calendar_with(*stays: tuple[str, str, str], version: int = 1) -> RoomCalendar:
    return RoomCalendar(
        room_id="R-101",
        property_id="PROP-1",
        version=version,
        stays={
            booking_id: Stay(
                check_in=dt.date.fromisoformat(check_in),
                check_out=dt.date.fromisoformat(check_out),
            )
            for booking_id, check_in, check_out in stays
        },
    )


@pytest.fixture
def service() -> RoomCalendarService:
    db = MagicMock()
    db.update_request.side_effect = lambda table, **kwargs: {"table": table, **kwargs}
    return RoomCalendarService(db)


class TestRoomCalendar:
    """Tests for half-open overlap checks."""

    def test_adjacent_stays_do_not_overlap(self) -> None:
        calendar = calendar_with(("BKG-1", "2024-06-01", "2024-06-03"))
        assert calendar.is_free(dt.date(2024, 6, 3), dt.date(2024, 6, 5))
        assert calendar.is_free(dt.date(2024, 5, 30), dt.date(2024, 6, 1))

    def test_overlapping_stay_blocks(self) -> None:
        calendar = calendar_with(("BKG-1", "2024-06-01", "2024-06-03"))
        assert not calendar.is_free(dt.date(2024, 6, 2), dt.date(2024, 6, 4))
        assert not calendar.is_free(dt.date(2024, 5, 1), dt.date(2024, 7, 1))

    def test_ignored_booking_does_not_block(self) -> None:
        calendar = calendar_with(("BKG-1", "2024-06-01", "2024-06-03"))
        assert calendar.is_free(dt.date(2024, 6, 1), dt.date(2024, 6, 5), "BKG-1")

    def test_booked_room_ids(self) -> None:
        busy = calendar_with(("BKG-1", "2024-06-01", "2024-06-03"))
        free = RoomCalendar(room_id="R-102", property_id="PROP-1")
        booked = RoomCalendarService.booked_room_ids(
            [busy, free], dt.date(2024, 6, 2), dt.date(2024, 6, 3)
        )
        assert booked == {"R-101"}


class TestCalendarWrites:
    """Tests for the transactional write builders."""

    def test_first_write_requires_missing_item(self, service: RoomCalendarService) -> None:
        calendar = RoomCalendar(room_id="R-101", property_id="PROP-1")
        request: dict[str, Any] = service.reserve_request(
            calendar, "BKG-1", dt.date(2024, 6, 1), dt.date(2024, 6, 3)
        )

        assert request["condition_expression"] == "attribute_not_exists(#pk)"
        assert request["expression_attribute_names"]["#pk"] == "room_id"
        assert ":seen" not in request["expression_attribute_values"]
        assert request["expression_attribute_values"][":next"] == 1
        assert request["expression_attribute_values"][":stays"] == {
            "BKG-1": {"check_in": "2024-06-01", "check_out": "2024-06-03"}
        }

    def test_later_write_compares_version(self, service: RoomCalendarService) -> None:
        calendar = calendar_with(("BKG-1", "2024-06-01", "2024-06-03"), version=4)
        request = service.reserve_request(
            calendar, "BKG-2", dt.date(2024, 6, 3), dt.date(2024, 6, 4)
        )

        assert request["condition_expression"] == "#version = :seen"
        assert "#pk" not in request["expression_attribute_names"]
        assert request["expression_attribute_values"][":seen"] == 4
        assert request["expression_attribute_values"][":next"] == 5
        assert set(request["expression_attribute_values"][":stays"]) == {"BKG-1", "BKG-2"}

    def test_vacate_drops_only_that_booking(self, service: RoomCalendarService) -> None:
        calendar = calendar_with(
            ("BKG-1", "2024-06-01", "2024-06-03"),
            ("BKG-2", "2024-06-05", "2024-06-06"),
        )
        request = service.vacate_request(calendar, "BKG-1")
        assert set(request["expression_attribute_values"][":stays"]) == {"BKG-2"}

    def test_release_removes_stay_without_version_compare(
        self, service: RoomCalendarService
    ) -> None:
        request = service.release_request("R-101", "BKG-1")

        assert request["update_expression"] == (
            "SET #version = #version + :one REMOVE #stays.#bid"
        )
        assert request["expression_attribute_names"]["#bid"] == "BKG-1"
        assert request["condition_expression"] == "attribute_exists(#stays)"
