#!/usr/bin/env python3
"""Seed a development database with a demo motel.

Creates any missing tables, then writes one property with three room types,
a block of rooms, a public rate plan, two add-ons and a couple of guests.
Existing items with the same IDs are overwritten.

Usage:
    python scripts/seed_data.py --env dev
    python scripts/seed_data.py --env dev --region us-east-1
    python scripts/seed_data.py --env dev --tables-only
"""

import argparse
import os
from decimal import Decimal

import boto3

from motel_booking.models import (
    AddOn,
    Address,
    Contact,
    Guest,
    Money,
    Property,
    RatePlan,
    Room,
    RoomType,
)
from motel_booking.services.dynamodb import DynamoDBService, model_to_item
from motel_booking.services.schema import create_tables

PROPERTY_ID = "PROP-0001"
CURRENCY = "USD"

# (room_type_id, code, name, capacity, nightly rate, room numbers)
ROOM_TYPES = [
    ("RT-QUEEN", "QUEEN", "Queen Room", 2, "79.00", ["101", "102", "103", "104"]),
    ("RT-KING", "KING", "King Room", 2, "89.00", ["105", "106", "107"]),
    ("RT-FAMILY", "FAMILY", "Family Suite", 5, "129.00", ["201", "202"]),
]


def build_property() -> Property:
    return Property(
        property_id=PROPERTY_ID,
        code="ROUTE66",
        name="Route 66 Motor Inn",
        timezone="America/Chicago",
        default_currency=CURRENCY,
        address=Address(line1="66 Mother Road", city="Tulsa", state="OK", country="US"),
        contact=Contact(phone="+1-918-555-0166", email="desk@route66inn.example"),
    )


def build_inventory() -> tuple[list[RoomType], list[Room]]:
    room_types: list[RoomType] = []
    rooms: list[Room] = []
    for room_type_id, code, name, capacity, rate, numbers in ROOM_TYPES:
        room_types.append(
            RoomType(
                room_type_id=room_type_id,
                property_id=PROPERTY_ID,
                code=code,
                name=name,
                capacity=capacity,
                amenities=["wifi", "tv"],
                base_rate=Money(amount=Decimal(rate), currency=CURRENCY),
            )
        )
        rooms.extend(
            Room(
                room_id=f"ROOM-{number}",
                property_id=PROPERTY_ID,
                room_type_id=room_type_id,
                room_number=number,
            )
            for number in numbers
        )
    return room_types, rooms


def build_extras() -> tuple[RatePlan, list[AddOn], list[Guest]]:
    rate_plan = RatePlan(
        rate_plan_id="RP-BAR",
        property_id=PROPERTY_ID,
        name="Best Available Rate",
        room_type_ids=[room_type[0] for room_type in ROOM_TYPES],
        default_rate=Money(amount=Decimal("79.00"), currency=CURRENCY),
        policy="Free cancellation until 18:00 on the day of arrival",
    )
    add_ons = [
        AddOn(
            addon_id="ADD-BREAKFAST",
            property_id=PROPERTY_ID,
            name="Continental breakfast",
            price=Money(amount=Decimal("9.50"), currency=CURRENCY),
        ),
        AddOn(
            addon_id="ADD-PET",
            property_id=PROPERTY_ID,
            name="Pet fee",
            price=Money(amount=Decimal("25.00"), currency=CURRENCY),
        ),
    ]
    guests = [
        Guest(guest_id="GUEST-0001", first_name="Ada", last_name="Lovelace", email="ada@example.com"),
        Guest(guest_id="GUEST-0002", first_name="Alan", last_name="Turing", email="alan@example.com"),
    ]
    return rate_plan, add_ons, guests


def seed(db: DynamoDBService) -> int:
    """Write the demo motel. Returns the number of items written."""
    room_types, rooms = build_inventory()
    rate_plan, add_ons, guests = build_extras()

    batches = [
        ("properties", [build_property()]),
        ("room-types", room_types),
        ("rooms", rooms),
        ("rate-plans", [rate_plan]),
        ("add-ons", add_ons),
        ("guests", guests),
    ]
    count = 0
    for table, models in batches:
        print(f"Seeding {db.table_name(table)}")
        for model in models:
            db.put_item(table, model_to_item(model))
            count += 1
        print(f"  ✓ {len(models)} items")
    return count


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Seed development database with a demo motel")
    parser.add_argument(
        "--env",
        default=os.getenv("ENVIRONMENT", "dev"),
        help="Environment name used in table names (default: dev)",
    )
    parser.add_argument("--region", default=None, help="AWS region override")
    parser.add_argument(
        "--tables-only",
        action="store_true",
        help="Create missing tables without writing data",
    )
    args = parser.parse_args()

    if args.region:
        os.environ["AWS_DEFAULT_REGION"] = args.region

    db = DynamoDBService(environment=args.env)
    client = boto3.client("dynamodb")
    created = create_tables(client, db.name_prefix)
    for name in created:
        print(f"Created table {name}")
    if created:
        waiter = client.get_waiter("table_exists")
        for name in created:
            waiter.wait(TableName=name)

    if args.tables_only:
        return 0

    count = seed(db)
    print(f"\nSeeded {count} items into {db.name_prefix}-*")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
