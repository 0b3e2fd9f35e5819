"""Purge Coordinator - drives delete and invalidation for every identifier."""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from shared.aws_helpers import CloudFrontHelper, S3Helper, build_client
from shared.config import PurgeConfig
from shared.errors import AssetPurgeError, ConfigurationError, ConnectionEstablishmentError, EmptyInputError
from shared.logger import StructuredLogger

from asset_purger.deleter import ObjectDeleter
from asset_purger.dispatcher import CloudFrontDispatcher, DryRunDispatcher, InvalidationDispatcher
from asset_purger.edge_checker import AlwaysPresentChecker, EdgeChecker, EdgeExistenceChecker
from asset_purger.models import Operation, PurgeOutcome, PurgeStatus, PurgeTarget, RunSummary
from asset_purger.report import ReportSink
from asset_purger.resolver import resolve_targets


@dataclass
class PurgeClients:
    """Remote capability handles shared by all workers for one run."""

    s3: S3Helper
    cloudfront: Optional[CloudFrontHelper] = None
    edge_checker: Optional[EdgeChecker] = None
    distribution_domain: Optional[str] = None

    def close(self) -> None:
        for handle in (self.s3, self.cloudfront, self.edge_checker):
            if handle is None:
                continue
            try:
                handle.close()
            except Exception as e:
                StructuredLogger.warning("Error releasing client", client=type(handle).__name__, exception=e)


def establish_clients(config: PurgeConfig) -> PurgeClients:
    """
    Build and test the S3 and CloudFront connections.

    Raises:
        ConnectionEstablishmentError: bucket unreachable or distribution unreadable
    """
    s3 = S3Helper(client=build_client("s3", config))
    try:
        s3.check_bucket(config.bucket)
    except AssetPurgeError as e:
        s3.close()
        raise ConnectionEstablishmentError(f"Error connecting to S3 - check IAM permissions: {str(e)}") from e

    clients = PurgeClients(s3=s3)
    if not config.cdn_enabled:
        return clients

    clients.cloudfront = CloudFrontHelper(client=build_client("cloudfront", config))
    try:
        clients.distribution_domain = clients.cloudfront.get_distribution_domain(config.cdn_distribution_id)
    except AssetPurgeError as e:
        clients.close()
        raise ConnectionEstablishmentError(f"Error connecting to CloudFront - check IAM permissions: {str(e)}") from e

    StructuredLogger.info(
        "AWS connections established",
        bucket=config.bucket,
        distribution_id=config.cdn_distribution_id,
        distribution_domain=clients.distribution_domain,
    )
    return clients


class PurgeCoordinator:
    """Process identifiers through delete and, when enabled, invalidation."""

    def __init__(
        self,
        config: PurgeConfig,
        deleter: ObjectDeleter,
        edge_checker: Optional[EdgeChecker] = None,
        dispatcher: Optional[InvalidationDispatcher] = None,
        distribution_domain: Optional[str] = None,
        sinks: Sequence[ReportSink] = (),
        cancel_event: Optional[threading.Event] = None,
    ):
        if config.cdn_enabled and (edge_checker is None or dispatcher is None or not distribution_domain):
            raise ConfigurationError("CDN enabled but edge checker, dispatcher or distribution domain missing")

        self.config = config
        self.deleter = deleter
        self.edge_checker = edge_checker
        self.dispatcher = dispatcher
        self.distribution_domain = distribution_domain
        self.sinks = list(sinks)
        self.cancel_event = cancel_event or threading.Event()
        self._emit_lock = threading.Lock()

    @classmethod
    def from_clients(
        cls,
        config: PurgeConfig,
        clients: PurgeClients,
        sinks: Sequence[ReportSink] = (),
        cancel_event: Optional[threading.Event] = None,
    ) -> "PurgeCoordinator":
        """Wire the live components for a configuration."""
        dispatcher = None
        edge_checker = None
        if config.cdn_enabled:
            if config.invalidation_dry_run:
                dispatcher = DryRunDispatcher()
            else:
                dispatcher = CloudFrontDispatcher(clients.cloudfront, retry_attempts=config.retry_attempts)
            if not config.edge_check_enabled:
                edge_checker = AlwaysPresentChecker()
            else:
                if clients.edge_checker is None:
                    clients.edge_checker = EdgeExistenceChecker(
                        timeout=config.timeout, retry_attempts=config.retry_attempts
                    )
                edge_checker = clients.edge_checker

        return cls(
            config=config,
            deleter=ObjectDeleter(clients.s3, retry_attempts=config.retry_attempts),
            edge_checker=edge_checker,
            dispatcher=dispatcher,
            distribution_domain=clients.distribution_domain,
            sinks=sinks,
            cancel_event=cancel_event,
        )

    def cancel(self) -> None:
        """Stop dispatching new identifiers; in-flight ones run to completion."""
        if not self.cancel_event.is_set():
            StructuredLogger.warning("Purge run cancellation requested")
        self.cancel_event.set()

    def run(self, identifiers: Sequence[str]) -> RunSummary:
        """
        Purge every identifier and return the finalized summary.

        Raises:
            EmptyInputError: no identifiers supplied
        """
        if not identifiers:
            raise EmptyInputError("No identifiers to purge")

        summary = RunSummary()
        for sink in self.sinks:
            sink.start(self.config, len(identifiers))

        if self.config.workers <= 1:
            for identifier in identifiers:
                if self.cancel_event.is_set():
                    break
                self._process_identifier(identifier, summary)
        else:
            with ThreadPoolExecutor(max_workers=self.config.workers, thread_name_prefix="purge") as executor:
                futures = [executor.submit(self._process_identifier, identifier, summary) for identifier in identifiers]
                for future in futures:
                    future.result()

        cancelled = self.cancel_event.is_set() and summary.identifiers_processed < len(identifiers)
        summary.finalize(cancelled=cancelled)
        for sink in self.sinks:
            sink.finish(summary)
        return summary

    def _process_identifier(self, identifier: str, summary: RunSummary) -> None:
        if self.cancel_event.is_set():
            return

        for target in resolve_targets(identifier, self.config):
            self._record(summary, self._delete(target))
            if self.config.cdn_enabled:
                self._record(summary, self._invalidate(target))
        summary.identifier_done()

    def _delete(self, target: PurgeTarget) -> PurgeOutcome:
        return self._guarded(target, Operation.DELETE, lambda: self.deleter.delete(self.config.bucket, target))

    def _invalidate(self, target: PurgeTarget) -> PurgeOutcome:
        def step() -> PurgeOutcome:
            if not self.edge_checker.exists(self.distribution_domain, target.edge_path):
                return PurgeOutcome(target, Operation.INVALIDATE, PurgeStatus.SKIPPED_NOT_CACHED)
            return self.dispatcher.invalidate(self.config.cdn_distribution_id, target)

        return self._guarded(target, Operation.INVALIDATE, step)

    @staticmethod
    def _guarded(target: PurgeTarget, operation: Operation, step: Callable[[], PurgeOutcome]) -> PurgeOutcome:
        # One bad target must never abort its siblings
        try:
            return step()
        except Exception as e:
            StructuredLogger.error(
                "Unexpected error during purge step",
                key=target.store_key,
                operation=operation.value,
                exception=e,
            )
            return PurgeOutcome(target, operation, PurgeStatus.FAILED, str(e))

    def _record(self, summary: RunSummary, outcome: PurgeOutcome) -> None:
        summary.record(outcome)
        with self._emit_lock:
            for sink in self.sinks:
                sink.emit(outcome)


def run_purge(
    config: PurgeConfig,
    identifiers: List[str],
    sinks: Sequence[ReportSink] = (),
    cancel_event: Optional[threading.Event] = None,
    connect: Callable[[PurgeConfig], PurgeClients] = establish_clients,
) -> RunSummary:
    """
    Check preconditions, connect, purge, and release the clients.

    Raises:
        ConfigurationError, EmptyInputError, ConnectionEstablishmentError
    """
    config.validate()
    if not identifiers:
        raise EmptyInputError("No identifiers to purge")

    clients = connect(config)
    try:
        coordinator = PurgeCoordinator.from_clients(config, clients, sinks=sinks, cancel_event=cancel_event)
        return coordinator.run(identifiers)
    finally:
        clients.close()
