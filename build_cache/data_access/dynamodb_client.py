"""
DynamoDB client with atomic operations and error handling.
"""
import logging
from typing import Dict, List, Optional, Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import (
    DynamoDBError,
    ConditionalCheckFailedError,
)

logger = logging.getLogger(__name__)

# Client-level retry policy; callers above this layer never retry
DEFAULT_RETRY_CONFIG = Config(retries={'max_attempts': 3, 'mode': 'standard'})


class DynamoDBClient:
    """
    DynamoDB client with atomic operations and error handling.
    """

    def __init__(
        self,
        region: str = 'us-east-1',
        endpoint_url: Optional[str] = None
    ):
        """
        Initialize DynamoDB client.

        Args:
            region: AWS region for DynamoDB
            endpoint_url: Optional endpoint override (DynamoDB Local)
        """
        self.dynamodb = boto3.resource(
            'dynamodb',
            region_name=region,
            endpoint_url=endpoint_url,
            config=DEFAULT_RETRY_CONFIG
        )

    def get_table(self, table_name: str):
        """
        Get DynamoDB table resource.

        Args:
            table_name: Name of the table

        Returns:
            DynamoDB table resource
        """
        return self.dynamodb.Table(table_name)

    def get_item(
        self,
        table_name: str,
        key: Dict[str, Any],
        consistent_read: bool = False
    ) -> Optional[Dict[str, Any]]:
        """
        Get item from DynamoDB table.

        Args:
            table_name: Name of the table
            key: Primary key of the item
            consistent_read: Whether to use consistent read

        Returns:
            Item dict or None if not found

        Raises:
            DynamoDBError: On DynamoDB errors
        """
        try:
            table = self.get_table(table_name)
            response = table.get_item(
                Key=key,
                ConsistentRead=consistent_read
            )
            return response.get('Item')
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error getting item from {table_name}: {e}")
            raise DynamoDBError(f"Failed to get item: {e}") from e

    def put_item(
        self,
        table_name: str,
        item: Dict[str, Any],
        condition_expression: Optional[str] = None,
        expression_attribute_values: Optional[Dict[str, Any]] = None,
        expression_attribute_names: Optional[Dict[str, str]] = None,
        return_values: str = 'NONE'
    ) -> Optional[Dict[str, Any]]:
        """
        Put item into DynamoDB table.

        Args:
            table_name: Name of the table
            item: Item to put
            condition_expression: Optional condition expression
            expression_attribute_values: Optional expression attribute values
            expression_attribute_names: Optional expression attribute names
            return_values: NONE or ALL_OLD

        Returns:
            Replaced item when return_values is ALL_OLD and an item was replaced

        Raises:
            ConditionalCheckFailedError: If condition check fails
            DynamoDBError: On other DynamoDB errors
        """
        try:
            table = self.get_table(table_name)
            kwargs = {'Item': item, 'ReturnValues': return_values}

            if condition_expression:
                kwargs['ConditionExpression'] = condition_expression
            if expression_attribute_values:
                kwargs['ExpressionAttributeValues'] = expression_attribute_values
            if expression_attribute_names:
                kwargs['ExpressionAttributeNames'] = expression_attribute_names

            response = table.put_item(**kwargs)
            return response.get('Attributes')
        except ClientError as e:
            if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
                raise ConditionalCheckFailedError("Conditional check failed") from e
            logger.error(f"Error putting item to {table_name}: {e}")
            raise DynamoDBError(f"Failed to put item: {e}") from e
        except BotoCoreError as e:
            logger.error(f"Error putting item to {table_name}: {e}")
            raise DynamoDBError(f"Failed to put item: {e}") from e

    def update_item(
        self,
        table_name: str,
        key: Dict[str, Any],
        update_expression: str,
        condition_expression: Optional[str] = None,
        expression_attribute_values: Optional[Dict[str, Any]] = None,
        expression_attribute_names: Optional[Dict[str, str]] = None,
        return_values: str = 'NONE'
    ) -> Optional[Dict[str, Any]]:
        """
        Update item in DynamoDB table.

        Args:
            table_name: Name of the table
            key: Primary key of the item
            update_expression: Update expression
            condition_expression: Optional condition expression
            expression_attribute_values: Optional expression attribute values
            expression_attribute_names: Optional expression attribute names
            return_values: What to return (NONE, ALL_OLD, UPDATED_OLD, ALL_NEW, UPDATED_NEW)

        Returns:
            Updated attributes if return_values is not NONE

        Raises:
            ConditionalCheckFailedError: If condition check fails
            DynamoDBError: On other DynamoDB errors
        """
        try:
            table = self.get_table(table_name)
            kwargs = {
                'Key': key,
                'UpdateExpression': update_expression,
                'ReturnValues': return_values
            }

            if condition_expression:
                kwargs['ConditionExpression'] = condition_expression
            if expression_attribute_values:
                kwargs['ExpressionAttributeValues'] = expression_attribute_values
            if expression_attribute_names:
                kwargs['ExpressionAttributeNames'] = expression_attribute_names

            response = table.update_item(**kwargs)
            return response.get('Attributes')
        except ClientError as e:
            if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
                raise ConditionalCheckFailedError("Conditional check failed") from e
            logger.error(f"Error updating item in {table_name}: {e}")
            raise DynamoDBError(f"Failed to update item: {e}") from e
        except BotoCoreError as e:
            logger.error(f"Error updating item in {table_name}: {e}")
            raise DynamoDBError(f"Failed to update item: {e}") from e

    def delete_item(
        self,
        table_name: str,
        key: Dict[str, Any],
        condition_expression: Optional[str] = None,
        expression_attribute_values: Optional[Dict[str, Any]] = None,
        return_values: str = 'NONE'
    ) -> Optional[Dict[str, Any]]:
        """
        Delete item from DynamoDB table.

        Args:
            table_name: Name of the table
            key: Primary key of the item
            condition_expression: Optional condition expression
            expression_attribute_values: Optional expression attribute values
            return_values: NONE or ALL_OLD

        Returns:
            Deleted item when return_values is ALL_OLD and the item existed

        Raises:
            ConditionalCheckFailedError: If condition check fails
            DynamoDBError: On other DynamoDB errors
        """
        try:
            table = self.get_table(table_name)
            kwargs = {'Key': key, 'ReturnValues': return_values}

            if condition_expression:
                kwargs['ConditionExpression'] = condition_expression
            if expression_attribute_values:
                kwargs['ExpressionAttributeValues'] = expression_attribute_values

            response = table.delete_item(**kwargs)
            return response.get('Attributes')
        except ClientError as e:
            if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
                raise ConditionalCheckFailedError("Conditional check failed") from e
            logger.error(f"Error deleting item from {table_name}: {e}")
            raise DynamoDBError(f"Failed to delete item: {e}") from e
        except BotoCoreError as e:
            logger.error(f"Error deleting item from {table_name}: {e}")
            raise DynamoDBError(f"Failed to delete item: {e}") from e

    def scan(
        self,
        table_name: str,
        projection_expression: Optional[str] = None,
        consistent_read: bool = False
    ) -> List[Dict[str, Any]]:
        """
        Scan the whole table, following pagination.

        Args:
            table_name: Name of the table
            projection_expression: Optional attributes to return
            consistent_read: Whether to use consistent read

        Returns:
            List of items in scan order

        Raises:
            DynamoDBError: On DynamoDB errors
        """
        try:
            table = self.get_table(table_name)
            kwargs = {'ConsistentRead': consistent_read}
            if projection_expression:
                kwargs['ProjectionExpression'] = projection_expression

            items: List[Dict[str, Any]] = []
            while True:
                response = table.scan(**kwargs)
                items.extend(response.get('Items', []))

                last_key = response.get('LastEvaluatedKey')
                if not last_key:
                    break
                kwargs['ExclusiveStartKey'] = last_key

            return items
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error scanning {table_name}: {e}")
            raise DynamoDBError(f"Failed to scan table: {e}") from e

    def atomic_increment(
        self,
        table_name: str,
        key: Dict[str, Any],
        attribute_name: str,
        increment_value: int = 1,
        condition_expression: Optional[str] = None,
        expression_attribute_values: Optional[Dict[str, Any]] = None
    ) -> int:
        """
        Atomically increment a numeric attribute.

        Creates the item and attribute when missing (DynamoDB ADD semantics).

        Args:
            table_name: Name of the table
            key: Primary key of the item
            attribute_name: Name of the attribute to increment
            increment_value: Value to add (can be negative for decrement)
            condition_expression: Optional condition expression
            expression_attribute_values: Optional expression attribute values

        Returns:
            New value after increment

        Raises:
            ConditionalCheckFailedError: If condition check fails
            DynamoDBError: On other DynamoDB errors
        """
        attr_values = {':inc': increment_value}
        if expression_attribute_values:
            attr_values.update(expression_attribute_values)

        result = self.update_item(
            table_name=table_name,
            key=key,
            update_expression=f'ADD {attribute_name} :inc',
            condition_expression=condition_expression,
            expression_attribute_values=attr_values,
            return_values='ALL_NEW'
        )

        return int(result[attribute_name]) if result else 0

    def atomic_add_with_floor(
        self,
        table_name: str,
        key: Dict[str, Any],
        attribute_name: str,
        delta: int,
        floor_value: int = 0,
        max_attempts: int = 5
    ) -> int:
        """
        Atomically add a (possibly negative) delta without going below a floor.

        Positive deltas are a plain atomic increment. Negative deltas are
        applied only while the stored value covers them; otherwise the value
        is set to the floor. The two conditional writes race with concurrent
        adders, so the pair is retried a bounded number of times.

        Args:
            table_name: Name of the table
            key: Primary key of the item
            attribute_name: Name of the attribute to update
            delta: Value to add
            floor_value: Minimum value (default 0)
            max_attempts: Attempts before giving up under contention

        Returns:
            New value after the update

        Raises:
            DynamoDBError: On DynamoDB errors or persistent contention
        """
        if delta >= 0:
            return self.atomic_increment(
                table_name=table_name,
                key=key,
                attribute_name=attribute_name,
                increment_value=delta
            )

        needed = floor_value - delta
        for attempt in range(max_attempts):
            try:
                return self.atomic_increment(
                    table_name=table_name,
                    key=key,
                    attribute_name=attribute_name,
                    increment_value=delta,
                    condition_expression=(
                        f'attribute_exists({attribute_name}) AND {attribute_name} >= :needed'
                    ),
                    expression_attribute_values={':needed': needed}
                )
            except ConditionalCheckFailedError:
                pass

            # Value would cross the floor, clamp it
            try:
                self.update_item(
                    table_name=table_name,
                    key=key,
                    update_expression=f'SET {attribute_name} = :floor',
                    condition_expression=(
                        f'attribute_not_exists({attribute_name}) OR {attribute_name} < :needed'
                    ),
                    expression_attribute_values={
                        ':floor': floor_value,
                        ':needed': needed
                    }
                )
                logger.warning(
                    f"Clamped {attribute_name} in {table_name} to {floor_value} "
                    f"(delta {delta} exceeded stored value)"
                )
                return floor_value
            except ConditionalCheckFailedError:
                logger.debug(
                    f"Concurrent update on {attribute_name}, retrying "
                    f"(attempt {attempt + 1}/{max_attempts})"
                )

        raise DynamoDBError(
            f"Failed to apply delta {delta} to {attribute_name}: persistent contention"
        )

    def batch_delete(
        self,
        table_name: str,
        keys: List[Dict[str, Any]]
    ) -> None:
        """
        Batch delete items from DynamoDB table.

        Args:
            table_name: Name of the table
            keys: List of primary keys to delete

        Raises:
            DynamoDBError: On DynamoDB errors
        """
        try:
            table = self.get_table(table_name)

            with table.batch_writer() as batch:
                for key in keys:
                    batch.delete_item(Key=key)

        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error batch deleting from {table_name}: {e}")
            raise DynamoDBError(f"Failed to batch delete: {e}") from e
