"""Unit tests for GET /api/v1/availability."""

from fastapi.testclient import TestClient
from starlette.status import (
    HTTP_200_OK,
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_422_UNPROCESSABLE_ENTITY,
)

URL = "/api/v1/availability"
PARAMS = {"property_id": "PROP-1", "start_date": "2024-06-01", "end_date": "2024-06-03"}


class TestSearchAvailability:
    """Tests for the availability search endpoint."""

    def test_lists_room_types_with_nightly_rates(self, client: TestClient) -> None:
        response = client.get(URL, params=PARAMS)
        assert response.status_code == HTTP_200_OK

        data = response.json()
        assert data["property_id"] == "PROP-1"
        by_code = {rt["code"]: rt for rt in data["room_types"]}
        assert {code: rt["available_rooms"] for code, rt in by_code.items()} == {
            "COT": 0,
            "KING": 1,
            "QUEEN": 2,
        }
        assert by_code["QUEEN"]["nightly_rates"] == [
            {"date": "2024-06-01", "currency": "USD", "amount": "100.00"},
            {"date": "2024-06-02", "currency": "USD", "amount": "100.00"},
        ]

    def test_filters_by_room_type_code(self, client: TestClient) -> None:
        response = client.get(URL, params={**PARAMS, "room_type_codes": ["king"]})
        assert response.status_code == HTTP_200_OK
        assert [rt["code"] for rt in response.json()["room_types"]] == ["KING"]

    def test_reflects_new_reservation(self, client: TestClient) -> None:
        client.post(
            "/api/v1/reservations",
            json={
                "property_id": "PROP-1",
                "guest_id": "GUEST-1",
                "check_in": "2024-06-02",
                "check_out": "2024-06-04",
                "rate_plan_id": "RP-BAR",
                "room_type_ids": ["RT-KING"],
            },
        )

        response = client.get(URL, params=PARAMS)
        by_code = {rt["code"]: rt for rt in response.json()["room_types"]}
        assert by_code["KING"]["available_rooms"] == 0

    def test_empty_range_rejected(self, client: TestClient) -> None:
        response = client.get(URL, params={**PARAMS, "end_date": "2024-06-01"})
        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == "ERR_201"

    def test_unknown_property(self, client: TestClient) -> None:
        response = client.get(URL, params={**PARAMS, "property_id": "PROP-404"})
        assert response.status_code == HTTP_404_NOT_FOUND
        assert response.json()["error_code"] == "ERR_101"

    def test_missing_dates(self, client: TestClient) -> None:
        response = client.get(URL, params={"property_id": "PROP-1"})
        assert response.status_code == HTTP_422_UNPROCESSABLE_ENTITY
