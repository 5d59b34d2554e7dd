"""Pytest configuration and fixtures for motel booking engine tests.

This module provides reusable fixtures for testing:
- DynamoDB mocking with moto, tables created from the shared schema
- A seeded demo motel (plus a second property for cross-property checks)
- Engine services wired through the API dependency providers
"""

import datetime as dt
import os
from decimal import Decimal
from typing import Any, Callable, Generator

import boto3
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set environment variables for testing before imports
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DYNAMODB_TABLE_PREFIX", "test-motel")
os.environ.setdefault("AVAILABILITY_CACHE_TTL_SECONDS", "30")

# Only set fake credentials for moto if no real credentials are present
if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from motel_booking.models import (  # noqa: E402
    AddOn,
    BookingRequest,
    Guest,
    Money,
    Property,
    RatePlan,
    Room,
    RoomStatus,
    RoomType,
)
from motel_booking.services import (  # noqa: E402
    AvailabilityEngine,
    BookingEngine,
    DynamoDBService,
    InvoiceLedger,
    PaymentSettlement,
    PricingEngine,
    get_dynamodb_service,
)
from motel_booking.services.dynamodb import model_to_item  # noqa: E402
from motel_booking.services.schema import create_tables  # noqa: E402
from tests.helpers import SeededMotel, usd  # noqa: E402


# === Singleton reset ===


@pytest.fixture(autouse=True)
def reset_service_singletons() -> Generator[None, None, None]:
    """Reset cached services and the DynamoDB singleton around each test.

    Tests using mock_aws then get fresh service instances created inside
    the mock context rather than ones left over from a previous test.
    """
    from motel_api.dependencies import reset_services

    reset_services()
    yield
    reset_services()


# === DynamoDB Fixtures ===


@pytest.fixture
def dynamodb_tables() -> Generator[Any, None, None]:
    """Mocked DynamoDB with every engine table created."""
    with mock_aws():
        client = boto3.client("dynamodb", region_name=os.environ["AWS_DEFAULT_REGION"])
        create_tables(client, os.environ["DYNAMODB_TABLE_PREFIX"])
        yield client


@pytest.fixture
def db(dynamodb_tables: Any) -> DynamoDBService:
    return get_dynamodb_service()


def put_models(db: DynamoDBService, table: str, models: list[Any]) -> None:
    for model in models:
        db.put_item(table, model_to_item(model))


@pytest.fixture
def motel(db: DynamoDBService) -> SeededMotel:
    """Seed a small motel.

    PROP-1 (SUNSET, USD):
    - QUEEN $100.00, rooms R-101 and R-102
    - KING $150.00, room R-201 plus R-202 which is out of service
    - COT with no base rate and no rooms
    - rate plan RP-BAR with a $80.00 default rate
    PROP-2 (HARBOR, EUR) holds one room type, rate plan and add-on used
    for cross-property checks.
    """
    ids = SeededMotel()
    put_models(
        db,
        "properties",
        [
            Property(
                property_id=ids.property_id,
                code=ids.property_code,
                name="Sunset Motel",
                default_currency="USD",
            ),
            Property(
                property_id=ids.other_property_id,
                code="HARBOR",
                name="Harbor Inn",
                default_currency="EUR",
            ),
        ],
    )
    put_models(
        db,
        "room-types",
        [
            RoomType(
                room_type_id=ids.queen,
                property_id=ids.property_id,
                code="QUEEN",
                name="Queen Room",
                capacity=2,
                base_rate=usd("100.00"),
            ),
            RoomType(
                room_type_id=ids.king,
                property_id=ids.property_id,
                code="KING",
                name="King Room",
                capacity=3,
                base_rate=usd("150.00"),
            ),
            RoomType(
                room_type_id=ids.cot,
                property_id=ids.property_id,
                code="COT",
                name="Cot",
                capacity=1,
            ),
            RoomType(
                room_type_id=ids.other_room_type,
                property_id=ids.other_property_id,
                code="DBL",
                name="Harbor Double",
                capacity=2,
                base_rate=Money(amount=Decimal("90.00"), currency="EUR"),
            ),
        ],
    )
    put_models(
        db,
        "rooms",
        [
            Room(room_id="R-101", property_id=ids.property_id, room_type_id=ids.queen, room_number="101"),
            Room(room_id="R-102", property_id=ids.property_id, room_type_id=ids.queen, room_number="102"),
            Room(room_id="R-201", property_id=ids.property_id, room_type_id=ids.king, room_number="201"),
            Room(
                room_id="R-202",
                property_id=ids.property_id,
                room_type_id=ids.king,
                room_number="202",
                status=RoomStatus.OUT_OF_SERVICE,
            ),
            Room(
                room_id="H-1",
                property_id=ids.other_property_id,
                room_type_id=ids.other_room_type,
                room_number="1",
            ),
        ],
    )
    put_models(
        db,
        "rate-plans",
        [
            RatePlan(
                rate_plan_id=ids.rate_plan_id,
                property_id=ids.property_id,
                name="Best Available Rate",
                default_rate=usd("80.00"),
            ),
            RatePlan(
                rate_plan_id=ids.other_rate_plan_id,
                property_id=ids.other_property_id,
                name="Harbor Flex",
            ),
        ],
    )
    put_models(
        db,
        "add-ons",
        [
            AddOn(
                addon_id=ids.breakfast,
                property_id=ids.property_id,
                name="Breakfast",
                price=usd("9.50"),
            ),
            AddOn(
                addon_id=ids.other_addon,
                property_id=ids.other_property_id,
                name="Parking",
            ),
        ],
    )
    put_models(
        db,
        "guests",
        [Guest(guest_id=ids.guest_id, first_name="Ada", last_name="Lovelace")],
    )
    return ids


@pytest.fixture
def make_request(motel: SeededMotel) -> Callable[..., BookingRequest]:
    """Factory for a one-QUEEN, two-night booking request (2024-06-01..03)."""

    def _make(**overrides: Any) -> BookingRequest:
        values: dict[str, Any] = {
            "property_id": motel.property_id,
            "guest_id": motel.guest_id,
            "check_in": dt.date(2024, 6, 1),
            "check_out": dt.date(2024, 6, 3),
            "adults": 2,
            "rate_plan_id": motel.rate_plan_id,
            "room_type_ids": [motel.queen],
        }
        values.update(overrides)
        return BookingRequest(**values)

    return _make


# === Service Fixtures ===


@pytest.fixture
def booking_engine(motel: SeededMotel) -> BookingEngine:
    from motel_api.dependencies import get_booking_engine

    return get_booking_engine()


@pytest.fixture
def availability_engine(motel: SeededMotel) -> AvailabilityEngine:
    from motel_api.dependencies import get_availability_engine

    return get_availability_engine()


@pytest.fixture
def pricing_engine(motel: SeededMotel) -> PricingEngine:
    from motel_api.dependencies import get_pricing_engine

    return get_pricing_engine()


@pytest.fixture
def invoice_ledger(motel: SeededMotel) -> InvoiceLedger:
    from motel_api.dependencies import get_invoice_ledger

    return get_invoice_ledger()


@pytest.fixture
def settlement(motel: SeededMotel) -> PaymentSettlement:
    from motel_api.dependencies import get_payment_settlement

    return get_payment_settlement()


# === API Fixtures ===


@pytest.fixture
def client(motel: SeededMotel) -> Any:
    """TestClient over the app, with the seeded motel in mocked DynamoDB."""
    from fastapi.testclient import TestClient

    from motel_api.main import app

    return TestClient(app)
