"""
S3 client for cache blob bytes.
"""
import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .dynamodb_client import DEFAULT_RETRY_CONFIG
from .exceptions import BlobStoreError
from ..models.cache_entry import OCTET_STREAM

logger = logging.getLogger(__name__)

# S3 DeleteObjects accepts at most 1000 keys per call
DELETE_BATCH_SIZE = 1000


class S3BlobClient:
    """
    S3 client storing opaque blobs under string keys.
    """

    def __init__(
        self,
        region: str = 'us-east-1',
        endpoint_url: Optional[str] = None
    ):
        """
        Initialize S3 client.

        Args:
            region: AWS region for S3
            endpoint_url: Optional endpoint override (MinIO, LocalStack)
        """
        self.client = boto3.client(
            's3',
            region_name=region,
            endpoint_url=endpoint_url,
            config=DEFAULT_RETRY_CONFIG
        )

    def put_object(self, bucket: str, key: str, data: bytes) -> None:
        """
        Upload blob bytes.

        Args:
            bucket: Bucket name
            key: Object key
            data: Blob bytes

        Raises:
            BlobStoreError: On S3 errors
        """
        try:
            self.client.put_object(
                Bucket=bucket,
                Key=key,
                Body=data,
                ContentType=OCTET_STREAM
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error uploading s3://{bucket}/{key}: {e}")
            raise BlobStoreError(f"Failed to put object: {e}") from e

    def get_object(self, bucket: str, key: str) -> Optional[bytes]:
        """
        Download blob bytes.

        Args:
            bucket: Bucket name
            key: Object key

        Returns:
            Blob bytes or None if the object does not exist

        Raises:
            BlobStoreError: On S3 errors other than a missing key
        """
        try:
            response = self.client.get_object(Bucket=bucket, Key=key)
            return response['Body'].read()
        except ClientError as e:
            if e.response['Error']['Code'] in ('NoSuchKey', '404'):
                return None
            logger.error(f"Error downloading s3://{bucket}/{key}: {e}")
            raise BlobStoreError(f"Failed to get object: {e}") from e
        except BotoCoreError as e:
            logger.error(f"Error downloading s3://{bucket}/{key}: {e}")
            raise BlobStoreError(f"Failed to get object: {e}") from e

    def delete_object(self, bucket: str, key: str) -> None:
        """
        Delete a blob. Deleting a missing key is not an error.

        Raises:
            BlobStoreError: On S3 errors
        """
        try:
            self.client.delete_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error deleting s3://{bucket}/{key}: {e}")
            raise BlobStoreError(f"Failed to delete object: {e}") from e

    def delete_prefix(self, bucket: str, prefix: str) -> int:
        """
        Delete every blob under a key prefix.

        Args:
            bucket: Bucket name
            prefix: Key prefix

        Returns:
            Number of objects deleted

        Raises:
            BlobStoreError: On S3 errors
        """
        deleted = 0
        try:
            paginator = self.client.get_paginator('list_objects_v2')
            for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
                keys = [{'Key': obj['Key']} for obj in page.get('Contents', [])]

                for start in range(0, len(keys), DELETE_BATCH_SIZE):
                    batch = keys[start:start + DELETE_BATCH_SIZE]
                    self.client.delete_objects(
                        Bucket=bucket,
                        Delete={'Objects': batch, 'Quiet': True}
                    )
                    deleted += len(batch)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error deleting prefix s3://{bucket}/{prefix}: {e}")
            raise BlobStoreError(f"Failed to delete prefix: {e}") from e

        return deleted
