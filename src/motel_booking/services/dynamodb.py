"""DynamoDB service wrapper for table operations and transactions."""

import os
import re
from typing import Any, Iterator

import boto3
from boto3.dynamodb.conditions import Key
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError
from pydantic import BaseModel

# BatchGetItem accepts at most 100 keys per request
BATCH_GET_LIMIT = 100

_dynamodb_service_instance: "DynamoDBService | None" = None


def get_dynamodb_service(environment: str | None = None) -> "DynamoDBService":
    """Get or create the singleton DynamoDB service instance.

    Reusing one instance avoids building new boto3 clients per request.

    Args:
        environment: Environment name. Only used on first call.

    Returns:
        Shared DynamoDBService instance
    """
    global _dynamodb_service_instance
    if _dynamodb_service_instance is None:
        _dynamodb_service_instance = DynamoDBService(environment)
    return _dynamodb_service_instance


def reset_dynamodb_service() -> None:
    """Reset the singleton instance (for testing only).

    This allows tests to create a fresh DynamoDBService inside
    a mock_aws context.
    """
    global _dynamodb_service_instance
    _dynamodb_service_instance = None


def model_to_item(model: BaseModel) -> dict[str, Any]:
    """Dump a model into a DynamoDB-safe item.

    Decimals and dates become strings, so no float ever reaches DynamoDB.
    """
    item: dict[str, Any] = model.model_dump(mode="json", exclude_none=True)
    return item


class TransactionCancelledError(Exception):
    """A TransactWriteItems call was cancelled.

    ``reasons`` holds one cancellation code per transaction item, in request
    order ("None" for items that did not cause the cancellation).
    """

    def __init__(self, reasons: list[str], message: str = "") -> None:
        self.reasons = reasons
        super().__init__(message or f"Transaction cancelled: {reasons}")

    def failed_indexes(self, code: str = "ConditionalCheckFailed") -> list[int]:
        return [i for i, reason in enumerate(self.reasons) if reason == code]


def _cancellation_reasons(error: ClientError) -> list[str]:
    reasons = error.response.get("CancellationReasons")
    if reasons:
        return [reason.get("Code", "None") for reason in reasons]

    # Older endpoints only report the reasons inside the message text
    message = error.response.get("Error", {}).get("Message", "")
    match = re.search(r"\[(.*)\]", message)
    if not match:
        return []
    return [part.strip() for part in match.group(1).split(",")]


class DynamoDBService:
    """Service for DynamoDB operations with environment-aware table names."""

    def __init__(
        self,
        environment: str | None = None,
        table_prefix: str | None = None,
    ) -> None:
        """Initialize DynamoDB service.

        Args:
            environment: Environment name (dev/prod). Defaults to ENVIRONMENT env var.
            table_prefix: Table prefix. Defaults to DYNAMODB_TABLE_PREFIX env var.
        """
        self.environment = environment or os.getenv("ENVIRONMENT", "dev")
        self.name_prefix = table_prefix or os.getenv(
            "DYNAMODB_TABLE_PREFIX", f"motel-{self.environment}"
        )
        self._dynamodb = boto3.resource("dynamodb")
        self._client = boto3.client("dynamodb")
        self._serializer = TypeSerializer()

    def table_name(self, table: str) -> str:
        """Get full table name with prefix."""
        return f"{self.name_prefix}-{table}"

    def _get_table(self, table: str) -> Any:
        return self._dynamodb.Table(self.table_name(table))

    # Generic CRUD operations

    def get_item(
        self,
        table: str,
        key: dict[str, Any],
        consistent_read: bool = False,
    ) -> dict[str, Any] | None:
        """Get a single item by key.

        Args:
            table: Table name without prefix
            key: Primary key dict
            consistent_read: Use a strongly consistent read

        Returns:
            Item dict or None if not found
        """
        response = self._get_table(table).get_item(
            Key=key, ConsistentRead=consistent_read
        )
        item: dict[str, Any] | None = response.get("Item")
        return item

    def put_item(
        self,
        table: str,
        item: dict[str, Any],
        condition_expression: str | None = None,
    ) -> bool:
        """Put an item into the table.

        Args:
            table: Table name without prefix
            item: Item to store
            condition_expression: Optional condition for write

        Returns:
            True if successful, False if condition failed
        """
        try:
            kwargs: dict[str, Any] = {"Item": item}
            if condition_expression:
                kwargs["ConditionExpression"] = condition_expression

            self._get_table(table).put_item(**kwargs)
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return False
            raise

    def query(
        self,
        table: str,
        key_condition: Any,
        index_name: str | None = None,
        filter_expression: Any | None = None,
    ) -> list[dict[str, Any]]:
        """Query a table or GSI, following pagination.

        Args:
            table: Table name without prefix
            key_condition: Boto3 Key condition
            index_name: GSI name (optional)
            filter_expression: Additional filter (optional)

        Returns:
            List of items
        """
        kwargs: dict[str, Any] = {"KeyConditionExpression": key_condition}
        if index_name:
            kwargs["IndexName"] = index_name
        if filter_expression is not None:
            kwargs["FilterExpression"] = filter_expression

        items: list[dict[str, Any]] = []
        table_resource = self._get_table(table)
        while True:
            response = table_resource.query(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key

    def query_by_gsi(
        self,
        table: str,
        index_name: str,
        partition_key_name: str,
        partition_key_value: str,
    ) -> list[dict[str, Any]]:
        """Query a GSI by partition key.

        Args:
            table: Table name without prefix
            index_name: GSI name
            partition_key_name: Name of partition key attribute
            partition_key_value: Value to query

        Returns:
            List of items
        """
        key_condition = Key(partition_key_name).eq(partition_key_value)
        return self.query(table, key_condition, index_name=index_name)

    def batch_get(
        self,
        table: str,
        keys: list[dict[str, Any]],
        consistent_read: bool = False,
    ) -> list[dict[str, Any]]:
        """Batch get items by keys.

        Splits the keys into requests of at most 100 and re-requests
        unprocessed keys until every key has been answered.

        Args:
            table: Table name without prefix
            keys: List of primary key dicts
            consistent_read: Use strongly consistent reads

        Returns:
            List of found items, in no particular order
        """
        table_name = self.table_name(table)
        items: list[dict[str, Any]] = []

        for chunk in _chunks(keys, BATCH_GET_LIMIT):
            request: dict[str, Any] = {
                table_name: {"Keys": chunk, "ConsistentRead": consistent_read}
            }
            while request:
                response = self._dynamodb.batch_get_item(RequestItems=request)
                items.extend(response.get("Responses", {}).get(table_name, []))
                request = response.get("UnprocessedKeys") or {}

        return items

    # Transactions

    def serialize(self, values: dict[str, Any]) -> dict[str, Any]:
        """Serialize a plain dict into low-level attribute values."""
        return {k: self._serializer.serialize(v) for k, v in values.items()}

    def put_request(
        self,
        table: str,
        item: dict[str, Any],
        condition_expression: str | None = None,
        expression_attribute_names: dict[str, str] | None = None,
        expression_attribute_values: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Build a TransactWriteItems Put entry."""
        put: dict[str, Any] = {
            "TableName": self.table_name(table),
            "Item": self.serialize(item),
        }
        if condition_expression:
            put["ConditionExpression"] = condition_expression
        if expression_attribute_names:
            put["ExpressionAttributeNames"] = expression_attribute_names
        if expression_attribute_values:
            put["ExpressionAttributeValues"] = self.serialize(expression_attribute_values)
        return {"Put": put}

    def update_request(
        self,
        table: str,
        key: dict[str, Any],
        update_expression: str,
        expression_attribute_values: dict[str, Any],
        expression_attribute_names: dict[str, str] | None = None,
        condition_expression: str | None = None,
    ) -> dict[str, Any]:
        """Build a TransactWriteItems Update entry."""
        update: dict[str, Any] = {
            "TableName": self.table_name(table),
            "Key": self.serialize(key),
            "UpdateExpression": update_expression,
            "ExpressionAttributeValues": self.serialize(expression_attribute_values),
        }
        if expression_attribute_names:
            update["ExpressionAttributeNames"] = expression_attribute_names
        if condition_expression:
            update["ConditionExpression"] = condition_expression
        return {"Update": update}

    def transact_write(self, items: list[dict[str, Any]]) -> None:
        """Execute a transactional write for multiple items.

        Args:
            items: List of TransactWriteItem dicts (see put_request/update_request)

        Raises:
            TransactionCancelledError: If any condition failed or the
                transaction conflicted with another one
        """
        try:
            self._client.transact_write_items(TransactItems=items)  # type: ignore[arg-type]
        except ClientError as e:
            if e.response["Error"]["Code"] == "TransactionCanceledException":
                raise TransactionCancelledError(
                    _cancellation_reasons(e), e.response["Error"].get("Message", "")
                ) from e
            raise


def _chunks(values: list[Any], size: int) -> Iterator[list[Any]]:
    for start in range(0, len(values), size):
        yield values[start : start + size]
