"""Object Store Deleter - idempotent S3 delete with classified outcome."""

from shared.aws_helpers import S3Helper
from shared.errors import S3Error
from shared.logger import StructuredLogger
from shared.retry import call_with_retry

from asset_purger.models import Operation, PurgeOutcome, PurgeStatus, PurgeTarget


class ObjectDeleter:
    """Delete purge targets from the object store."""

    def __init__(self, s3: S3Helper, retry_attempts: int = 1):
        self.s3 = s3
        self.retry_attempts = retry_attempts

    def delete(self, bucket: str, target: PurgeTarget) -> PurgeOutcome:
        """
        Delete one target and classify the result.

        The object is probed first so a missing key reports AlreadyAbsent;
        the delete itself is sent either way.

        Args:
            bucket: S3 bucket name
            target: Target whose store_key is removed

        Returns:
            PurgeOutcome with Deleted, AlreadyAbsent or Failed
        """
        key = target.store_key
        try:
            existed = call_with_retry(
                lambda: self.s3.file_exists(bucket, key),
                attempts=self.retry_attempts,
                operation="head_object",
            )
        except S3Error as e:
            # Without s3:ListBucket a missing key answers 403; the delete decides
            StructuredLogger.debug("S3 existence probe inconclusive", bucket=bucket, key=key, error_code=e.error_code)
            existed = True

        try:
            call_with_retry(
                lambda: self.s3.delete_object(bucket, key),
                attempts=self.retry_attempts,
                operation="delete_object",
            )
        except S3Error as e:
            if e.not_found:
                return self._outcome(target, PurgeStatus.ALREADY_ABSENT)
            # Denied only applies to invalidations
            StructuredLogger.error(
                "S3 delete failed", bucket=bucket, key=key, access_denied=e.access_denied, exception=e
            )
            return self._outcome(target, PurgeStatus.FAILED, str(e))

        status = PurgeStatus.DELETED if existed else PurgeStatus.ALREADY_ABSENT
        StructuredLogger.info("S3 delete completed", bucket=bucket, key=key, status=status.value)
        return self._outcome(target, status)

    @staticmethod
    def _outcome(target: PurgeTarget, status: PurgeStatus, detail: str = None) -> PurgeOutcome:
        return PurgeOutcome(target=target, operation=Operation.DELETE, status=status, detail=detail)
