"""DynamoDB client wrapper for single-table design."""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import boto3
from aws_lambda_powertools import Logger
from botocore.exceptions import ClientError

from .exceptions import NotFoundError

logger = Logger(child=True)


def convert_floats_to_decimal(obj: Any) -> Any:
    """Recursively convert floats to Decimal for DynamoDB compatibility.

    DynamoDB does not support Python float types. This function converts
    all floats in nested dicts/lists to Decimal.

    Args:
        obj: Any Python object (dict, list, or primitive)

    Returns:
        The object with all floats converted to Decimal
    """
    if isinstance(obj, float):
        return Decimal(str(obj))
    elif isinstance(obj, dict):
        return {k: convert_floats_to_decimal(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [convert_floats_to_decimal(item) for item in obj]
    return obj


def _is_conditional_failure(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"


class DynamoDBClient:
    """DynamoDB client wrapper with consistent error handling and logging.

    Implements single-table design patterns with PK/SK composite keys.
    """

    def __init__(self, table_name: str) -> None:
        """Initialize with table name.

        Args:
            table_name: Name of the DynamoDB table
        """
        self.table_name = table_name
        self.dynamodb = boto3.resource("dynamodb")
        self.table = self.dynamodb.Table(table_name)

    def put_item(self, pk: str, sk: str, data: dict[str, Any]) -> dict[str, Any]:
        """Put an item into the table.

        Args:
            pk: Partition key value
            sk: Sort key value
            data: Additional attributes to store

        Returns:
            The complete item that was stored
        """
        now = datetime.now(UTC).isoformat()
        item = {
            "PK": pk,
            "SK": sk,
            **convert_floats_to_decimal(data),
            "updated_at": now,
        }

        if "created_at" not in item:
            item["created_at"] = now

        try:
            self.table.put_item(Item=item)
            logger.debug("Item created", extra={"pk": pk, "sk": sk})
            return item
        except ClientError as e:
            logger.error("Failed to put item", extra={"error": str(e), "pk": pk, "sk": sk})
            raise

    def get_item(self, pk: str, sk: str) -> dict[str, Any] | None:
        """Get a single item by PK and SK.

        Args:
            pk: Partition key value
            sk: Sort key value

        Returns:
            Item dict or None if not found
        """
        try:
            response = self.table.get_item(Key={"PK": pk, "SK": sk})
            return response.get("Item")
        except ClientError as e:
            logger.error("Failed to get item", extra={"error": str(e), "pk": pk, "sk": sk})
            raise

    def get_item_or_raise(
        self,
        pk: str,
        sk: str,
        resource_type: str,
        resource_id: str,
    ) -> dict[str, Any]:
        """Get an item or raise NotFoundError if it doesn't exist.

        Raises:
            NotFoundError: If item doesn't exist
        """
        item = self.get_item(pk, sk)
        if item is None:
            raise NotFoundError(resource_type, resource_id)
        return item

    def update_item(
        self,
        pk: str,
        sk: str,
        updates: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Update specific attributes of an item.

        Args:
            pk: Partition key value
            sk: Sort key value
            updates: Dict of attribute names to new values

        Returns:
            Updated item or None if not found
        """
        if not updates:
            return self.get_item(pk, sk)

        update_parts = []
        names: dict[str, str] = {}
        values: dict[str, Any] = {":updated_at": datetime.now(UTC).isoformat()}

        for i, (key, value) in enumerate(updates.items()):
            placeholder = f"#attr{i}"
            value_placeholder = f":val{i}"
            update_parts.append(f"{placeholder} = {value_placeholder}")
            names[placeholder] = key
            values[value_placeholder] = convert_floats_to_decimal(value)

        update_parts.append("updated_at = :updated_at")
        update_expr = "SET " + ", ".join(update_parts)

        try:
            response = self.table.update_item(
                Key={"PK": pk, "SK": sk},
                UpdateExpression=update_expr,
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ReturnValues="ALL_NEW",
                ConditionExpression="attribute_exists(PK)",
            )
            logger.debug("Item updated", extra={"pk": pk, "sk": sk})
            return response.get("Attributes")
        except ClientError as e:
            if _is_conditional_failure(e):
                logger.warning("Item not found for update", extra={"pk": pk, "sk": sk})
                return None
            logger.error("Failed to update", extra={"error": str(e), "pk": pk, "sk": sk})
            raise

    def add_to_attribute(
        self, pk: str, sk: str, attribute: str, amount: int
    ) -> dict[str, Any] | None:
        """Atomically add to a numeric attribute.

        Returns:
            Updated item or None if not found
        """
        try:
            response = self.table.update_item(
                Key={"PK": pk, "SK": sk},
                UpdateExpression="SET #attr = if_not_exists(#attr, :zero) + :amount, "
                "updated_at = :updated_at",
                ExpressionAttributeNames={"#attr": attribute},
                ExpressionAttributeValues={
                    ":zero": 0,
                    ":amount": amount,
                    ":updated_at": datetime.now(UTC).isoformat(),
                },
                ReturnValues="ALL_NEW",
                ConditionExpression="attribute_exists(PK)",
            )
            return response.get("Attributes")
        except ClientError as e:
            if _is_conditional_failure(e):
                logger.warning("Item not found for increment", extra={"pk": pk, "sk": sk})
                return None
            logger.error("Failed to increment", extra={"error": str(e), "pk": pk, "sk": sk})
            raise

    def decrement_if_positive(
        self, pk: str, sk: str, path: list[str]
    ) -> dict[str, Any] | None:
        """Atomically decrement a nested counter only while it is above zero.

        The check and the decrement happen in one conditional update, so two
        concurrent callers can never both spend the last unit.

        Args:
            pk: Partition key value
            sk: Sort key value
            path: Attribute path to the counter (e.g. ["spell_slots", "1", "current"])

        Returns:
            Updated item, or None if the counter is missing or already zero
        """
        names = {f"#p{i}": part for i, part in enumerate(path)}
        attr_path = ".".join(names)

        try:
            response = self.table.update_item(
                Key={"PK": pk, "SK": sk},
                UpdateExpression=f"SET {attr_path} = {attr_path} - :one, updated_at = :updated_at",
                ConditionExpression=f"attribute_exists({attr_path}) AND {attr_path} > :zero",
                ExpressionAttributeNames=names,
                ExpressionAttributeValues={
                    ":one": 1,
                    ":zero": 0,
                    ":updated_at": datetime.now(UTC).isoformat(),
                },
                ReturnValues="ALL_NEW",
            )
            return response.get("Attributes")
        except ClientError as e:
            if _is_conditional_failure(e):
                logger.warning(
                    "Counter missing or exhausted", extra={"pk": pk, "sk": sk, "path": path}
                )
                return None
            logger.error("Failed to decrement", extra={"error": str(e), "pk": pk, "sk": sk})
            raise

    def append_to_list(
        self, pk: str, sk: str, attribute: str, entries: list[dict[str, Any]]
    ) -> dict[str, Any] | None:
        """Append entries to a list attribute, creating it if missing.

        Returns:
            Updated item or None if not found
        """
        try:
            response = self.table.update_item(
                Key={"PK": pk, "SK": sk},
                UpdateExpression="SET #attr = list_append(if_not_exists(#attr, :empty), :entries), "
                "updated_at = :updated_at",
                ExpressionAttributeNames={"#attr": attribute},
                ExpressionAttributeValues={
                    ":empty": [],
                    ":entries": convert_floats_to_decimal(entries),
                    ":updated_at": datetime.now(UTC).isoformat(),
                },
                ReturnValues="ALL_NEW",
                ConditionExpression="attribute_exists(PK)",
            )
            return response.get("Attributes")
        except ClientError as e:
            if _is_conditional_failure(e):
                logger.warning("Item not found for append", extra={"pk": pk, "sk": sk})
                return None
            logger.error("Failed to append", extra={"error": str(e), "pk": pk, "sk": sk})
            raise

    def count_by_pk(
        self,
        pk: str,
        sk_from: str,
        sk_to: str,
        filter_attribute: str | None = None,
        filter_value: Any = None,
    ) -> int:
        """Count items under a partition key within a sort key range.

        Args:
            pk: Partition key value
            sk_from: Inclusive lower bound for the sort key
            sk_to: Inclusive upper bound for the sort key
            filter_attribute: Optional attribute that must equal filter_value

        Returns:
            Number of matching items
        """
        params: dict[str, Any] = {
            "KeyConditionExpression": "PK = :pk AND SK BETWEEN :sk_from AND :sk_to",
            "ExpressionAttributeValues": {
                ":pk": pk,
                ":sk_from": sk_from,
                ":sk_to": sk_to,
            },
            "Select": "COUNT",
        }
        if filter_attribute:
            params["FilterExpression"] = "#filter = :filter"
            params["ExpressionAttributeNames"] = {"#filter": filter_attribute}
            params["ExpressionAttributeValues"][":filter"] = filter_value

        total = 0
        try:
            while True:
                response = self.table.query(**params)
                total += int(response.get("Count", 0))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                params["ExclusiveStartKey"] = last_key
        except ClientError as e:
            logger.error("Failed to count", extra={"error": str(e), "pk": pk})
            raise

        return total
