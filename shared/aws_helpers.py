"""AWS service helpers for S3 and CloudFront."""

import uuid
from typing import Any, List, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from shared.config import PurgeConfig
from shared.errors import CDNInvalidationError, S3Error
from shared.logger import StructuredLogger


def _error_code(error: Exception) -> Optional[str]:
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Code")
    return None


def build_client(service: str, config: PurgeConfig) -> Any:
    """Create a boto3 client with bounded timeouts and no built-in retries."""
    credentials = {}
    if config.access_key and config.secret_key:
        credentials = {
            "aws_access_key_id": config.access_key,
            "aws_secret_access_key": config.secret_key,
        }

    return boto3.client(
        service,
        region_name=config.region,
        config=BotoConfig(
            connect_timeout=config.timeout,
            read_timeout=config.timeout,
            retries={"total_max_attempts": 1},
            max_pool_connections=max(10, config.workers * 2),
        ),
        **credentials,
    )


class S3Helper:
    """S3 operations."""

    def __init__(self, region_name: str = "us-east-1", client: Any = None):
        self.client = client or boto3.client("s3", region_name=region_name)

    def check_bucket(self, bucket: str) -> None:
        """Confirm the bucket is reachable with the current credentials."""
        try:
            self.client.head_bucket(Bucket=bucket)
        except (ClientError, BotoCoreError) as e:
            raise S3Error(f"Error connecting to bucket {bucket}: {str(e)}", _error_code(e)) from e

    def file_exists(self, bucket: str, key: str) -> bool:
        """Check if S3 object exists."""
        try:
            self.client.head_object(Bucket=bucket, Key=key)
            return True
        except ClientError as e:
            if _error_code(e) in ("404", "NoSuchKey", "NotFound"):
                return False
            raise S3Error(f"Error checking S3 object {bucket}/{key}: {str(e)}", _error_code(e)) from e
        except BotoCoreError as e:
            raise S3Error(f"Error checking S3 object {bucket}/{key}: {str(e)}") from e

    def delete_object(self, bucket: str, key: str) -> None:
        """Delete object from S3. Deleting a missing key is not an error."""
        try:
            StructuredLogger.debug("Deleting S3 object", bucket=bucket, key=key)
            self.client.delete_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise S3Error(f"Error deleting {bucket}/{key}: {str(e)}", _error_code(e)) from e

    def close(self) -> None:
        self.client.close()


class CloudFrontHelper:
    """CloudFront operations."""

    def __init__(self, region_name: str = "us-east-1", client: Any = None):
        self.client = client or boto3.client("cloudfront", region_name=region_name)

    def get_distribution_domain(self, distribution_id: str) -> str:
        """Return the public domain name of a distribution."""
        try:
            response = self.client.get_distribution(Id=distribution_id)
            return response["Distribution"]["DomainName"]
        except (ClientError, BotoCoreError) as e:
            raise CDNInvalidationError(
                f"Error reading CloudFront distribution {distribution_id}: {str(e)}", _error_code(e)
            ) from e

    def invalidate_paths(self, distribution_id: str, paths: List[str]) -> Optional[str]:
        """Invalidate CloudFront cache for given paths."""
        try:
            if not paths:
                StructuredLogger.warning("No paths provided for CloudFront invalidation")
                return None

            StructuredLogger.info(
                "Creating CloudFront invalidation",
                distribution_id=distribution_id,
                paths_count=len(paths),
            )

            response = self.client.create_invalidation(
                DistributionId=distribution_id,
                InvalidationBatch={
                    "Paths": {"Quantity": len(paths), "Items": paths},
                    "CallerReference": uuid.uuid4().hex,
                },
            )

            invalidation_id = response["Invalidation"]["Id"]
            StructuredLogger.info(
                "CloudFront invalidation created",
                invalidation_id=invalidation_id,
                distribution_id=distribution_id,
                status=response["Invalidation"].get("Status"),
            )
            return invalidation_id
        except (ClientError, BotoCoreError) as e:
            raise CDNInvalidationError(f"Error invalidating CloudFront: {str(e)}", _error_code(e)) from e

    def close(self) -> None:
        self.client.close()
