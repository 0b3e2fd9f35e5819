"""Report Sinks - render outcome records as they arrive."""

import sys
import threading
from typing import List, Optional, TextIO

from shared.config import PurgeConfig
from shared.logger import StructuredLogger

from asset_purger.models import DRY_RUN_PREFIX, Operation, PurgeOutcome, PurgeStatus, RunSummary

PAD_WIDTH = 50
RULE = "-" * 72

STATUS_LABELS = {
    PurgeStatus.DELETED: "Deleted",
    PurgeStatus.ALREADY_ABSENT: "Already deleted",
    PurgeStatus.INVALIDATION_STARTED: "Invalidating",
    PurgeStatus.SKIPPED_NOT_CACHED: "Not cached",
    PurgeStatus.DENIED: "Access denied",
    PurgeStatus.FAILED: "Failed",
}


class ReportSink:
    """Receives run events. Subclasses override what they need."""

    def start(self, config: PurgeConfig, identifier_count: int) -> None:
        pass

    def emit(self, outcome: PurgeOutcome) -> None:
        pass

    def finish(self, summary: RunSummary) -> None:
        pass


def outcome_location(outcome: PurgeOutcome, bucket: str) -> str:
    if outcome.operation is Operation.DELETE:
        return f"s3://{bucket}/{outcome.target.store_key}"
    return f"cloudfront:{outcome.target.edge_path}"


def format_outcome(outcome: PurgeOutcome, bucket: str) -> str:
    """Render `s3://bucket/key - Deleted` style lines."""
    line = f"{outcome_location(outcome, bucket).ljust(PAD_WIDTH)} - {STATUS_LABELS[outcome.status]}"
    if not outcome.detail:
        return line
    if outcome.status in (PurgeStatus.DENIED, PurgeStatus.FAILED) or outcome.detail.startswith(DRY_RUN_PREFIX):
        line += f" ({outcome.detail})"
    return line


class ConsoleReportSink(ReportSink):
    """Human-readable progress lines on a text stream."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout
        self.bucket = ""
        self._lock = threading.Lock()

    def _write(self, text: str) -> None:
        with self._lock:
            self.stream.write(text + "\n")
            self.stream.flush()

    def start(self, config: PurgeConfig, identifier_count: int) -> None:
        self.bucket = config.bucket
        lines = [
            "",
            f"S3 & CloudFront Batch Deleter - {identifier_count} base file names to delete",
            RULE,
            f"Base Path : s3://{config.bucket}/{config.primary_path}",
        ]
        if config.secondary_enabled:
            lines.append(f"Secondary : s3://{config.bucket}/{config.secondary_path}")
        if config.cdn_enabled:
            lines.append(f"Cloudfront: cloudfront://{config.cdn_distribution_id}/{config.primary_path}")
            if config.secondary_enabled:
                lines.append(f"Cloudfront: cloudfront://{config.cdn_distribution_id}/{config.secondary_path}")
        lines.append(RULE)
        self._write("\n".join(lines))

    def emit(self, outcome: PurgeOutcome) -> None:
        self._write(format_outcome(outcome, self.bucket))

    def finish(self, summary: RunSummary) -> None:
        headline = "Run cancelled before all identifiers were processed." if summary.cancelled else (
            "Deletion and invalidation complete."
        )
        lines = ["", headline, RULE, f"Identifiers processed: {summary.identifiers_processed}"]
        for status, label in STATUS_LABELS.items():
            lines.append(f"{label.ljust(20)}{summary.count(status)}")
        self._write("\n".join(lines))


class LoggingReportSink(ReportSink):
    """One structured log record per outcome."""

    def start(self, config: PurgeConfig, identifier_count: int) -> None:
        StructuredLogger.info(
            "Purge run started",
            bucket=config.bucket,
            primary_path=config.primary_path,
            secondary_path=config.secondary_path,
            distribution_id=config.cdn_distribution_id,
            identifiers=identifier_count,
        )

    def emit(self, outcome: PurgeOutcome) -> None:
        if outcome.status in (PurgeStatus.DENIED, PurgeStatus.FAILED):
            StructuredLogger.warning("Purge outcome", **outcome.to_dict())
        else:
            StructuredLogger.info("Purge outcome", **outcome.to_dict())

    def finish(self, summary: RunSummary) -> None:
        StructuredLogger.info("Purge run finished", **summary.to_dict())


class CollectingReportSink(ReportSink):
    """Keeps every outcome in memory, in emission order."""

    def __init__(self):
        self.outcomes: List[PurgeOutcome] = []
        self.summary: Optional[RunSummary] = None
        self._lock = threading.Lock()

    def emit(self, outcome: PurgeOutcome) -> None:
        with self._lock:
            self.outcomes.append(outcome)

    def finish(self, summary: RunSummary) -> None:
        self.summary = summary
