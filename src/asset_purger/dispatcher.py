"""Invalidation Dispatcher - live CloudFront and dry-run variants."""

import shlex

from shared.aws_helpers import CloudFrontHelper
from shared.errors import CDNInvalidationError
from shared.logger import StructuredLogger
from shared.retry import call_with_retry

from asset_purger.models import DRY_RUN_PREFIX, Operation, PurgeOutcome, PurgeStatus, PurgeTarget


class InvalidationDispatcher:
    """Common contract: invalidate one target's edge path, return an outcome."""

    def invalidate(self, distribution_id: str, target: PurgeTarget) -> PurgeOutcome:
        raise NotImplementedError

    @staticmethod
    def _outcome(target: PurgeTarget, status: PurgeStatus, detail: str = None) -> PurgeOutcome:
        return PurgeOutcome(target=target, operation=Operation.INVALIDATE, status=status, detail=detail)


class CloudFrontDispatcher(InvalidationDispatcher):
    """Submit one invalidation request per path to CloudFront."""

    def __init__(self, cloudfront: CloudFrontHelper, retry_attempts: int = 1):
        self.cloudfront = cloudfront
        self.retry_attempts = retry_attempts

    def invalidate(self, distribution_id: str, target: PurgeTarget) -> PurgeOutcome:
        """
        Invalidate target.edge_path on the distribution.

        Returns:
            PurgeOutcome with InvalidationStarted, Denied or Failed
        """
        try:
            invalidation_id = call_with_retry(
                lambda: self.cloudfront.invalidate_paths(distribution_id, [target.edge_path]),
                attempts=self.retry_attempts,
                operation="create_invalidation",
            )
        except CDNInvalidationError as e:
            if e.access_denied:
                StructuredLogger.error(
                    "CloudFront invalidation - IAM role access denied",
                    distribution_id=distribution_id,
                    path=target.edge_path,
                    exception=e,
                )
                return self._outcome(target, PurgeStatus.DENIED, str(e))

            StructuredLogger.error(
                "Cache invalidation failed",
                distribution_id=distribution_id,
                path=target.edge_path,
                exception=e,
            )
            return self._outcome(target, PurgeStatus.FAILED, str(e))

        return self._outcome(target, PurgeStatus.INVALIDATION_STARTED, invalidation_id)


class DryRunDispatcher(InvalidationDispatcher):
    """Log the equivalent AWS CLI command instead of calling the API."""

    def invalidate(self, distribution_id: str, target: PurgeTarget) -> PurgeOutcome:
        command = "aws cloudfront create-invalidation --distribution-id {} --paths {}".format(
            shlex.quote(distribution_id), shlex.quote(target.edge_path)
        )
        StructuredLogger.info("Dry-run invalidation", command=command)
        return self._outcome(target, PurgeStatus.INVALIDATION_STARTED, f"{DRY_RUN_PREFIX}{command}")
