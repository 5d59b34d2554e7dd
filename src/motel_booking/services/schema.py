"""DynamoDB table definitions.

Used by the seed script and by tests to create tables; production tables are
provisioned with the same key schema.
"""

from typing import Any

# (table, partition key, [GSI partition keys])
TABLES: list[tuple[str, str, list[str]]] = [
    ("properties", "property_id", ["code"]),
    ("room-types", "room_type_id", ["property_id"]),
    ("rooms", "room_id", ["property_id"]),
    ("rate-plans", "rate_plan_id", []),
    ("add-ons", "addon_id", []),
    ("guests", "guest_id", []),
    ("bookings", "booking_id", ["reference"]),
    ("booking-references", "reference", []),
    ("room-calendars", "room_id", []),
    ("invoices", "invoice_id", []),
    ("payments", "payment_id", ["invoice_id"]),
]


def index_name(attribute: str) -> str:
    """Name of the GSI keyed on ``attribute``."""
    return f"{attribute}-index"


def table_definition(prefix: str, table: str, key: str, indexes: list[str]) -> dict[str, Any]:
    """Build CreateTable arguments for one table."""
    attributes = [key, *indexes]
    definition: dict[str, Any] = {
        "TableName": f"{prefix}-{table}",
        "KeySchema": [{"AttributeName": key, "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": name, "AttributeType": "S"} for name in attributes
        ],
        "BillingMode": "PAY_PER_REQUEST",
    }
    if indexes:
        definition["GlobalSecondaryIndexes"] = [
            {
                "IndexName": index_name(name),
                "KeySchema": [{"AttributeName": name, "KeyType": "HASH"}],
                "Projection": {"ProjectionType": "ALL"},
            }
            for name in indexes
        ]
    return definition


def create_tables(client: Any, prefix: str) -> list[str]:
    """Create every table that does not exist yet.

    Args:
        client: boto3 DynamoDB client
        prefix: Table name prefix (DYNAMODB_TABLE_PREFIX)

    Returns:
        Names of the tables that were created
    """
    existing = set(client.list_tables().get("TableNames", []))
    created = []
    for table, key, indexes in TABLES:
        definition = table_definition(prefix, table, key, indexes)
        if definition["TableName"] in existing:
            continue
        client.create_table(**definition)
        created.append(definition["TableName"])
    return created
