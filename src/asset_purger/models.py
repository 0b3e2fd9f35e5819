"""Purge targets, outcomes and run summary."""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class TargetRole(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


class Operation(str, Enum):
    DELETE = "delete"
    INVALIDATE = "invalidate"


class PurgeStatus(str, Enum):
    DELETED = "deleted"
    ALREADY_ABSENT = "already_absent"
    INVALIDATION_STARTED = "invalidation_started"
    SKIPPED_NOT_CACHED = "skipped_not_cached"
    DENIED = "denied"
    FAILED = "failed"


# Detail prefix of invalidations that were printed rather than sent
DRY_RUN_PREFIX = "dry-run: "

# Statuses that make a run unsuccessful for exit-code purposes
PROBLEM_STATUSES = (PurgeStatus.DENIED, PurgeStatus.FAILED)


@dataclass(frozen=True)
class PurgeTarget:
    """One concrete object key and its CDN path."""

    identifier: str
    role: TargetRole
    store_key: str
    edge_path: str


@dataclass(frozen=True)
class PurgeOutcome:
    """Result of one delete or invalidate against a target."""

    target: PurgeTarget
    operation: Operation
    status: PurgeStatus
    detail: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "identifier": self.target.identifier,
            "role": self.target.role.value,
            "store_key": self.target.store_key,
            "edge_path": self.target.edge_path,
            "operation": self.operation.value,
            "status": self.status.value,
            "detail": self.detail,
        }


@dataclass
class RunSummary:
    """Aggregate counts for a run. Safe to update from several workers."""

    identifiers_processed: int = 0
    status_counts: Dict[PurgeStatus, int] = field(default_factory=lambda: {status: 0 for status in PurgeStatus})
    cancelled: bool = False
    finalized: bool = False
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record(self, outcome: PurgeOutcome) -> None:
        with self._lock:
            self.status_counts[outcome.status] += 1

    def identifier_done(self) -> None:
        with self._lock:
            self.identifiers_processed += 1

    def finalize(self, cancelled: bool = False) -> "RunSummary":
        with self._lock:
            self.cancelled = cancelled
            self.finalized = True
        return self

    @property
    def total_outcomes(self) -> int:
        return sum(self.status_counts.values())

    @property
    def has_problems(self) -> bool:
        return any(self.status_counts[status] for status in PROBLEM_STATUSES)

    def count(self, status: PurgeStatus) -> int:
        return self.status_counts[status]

    def to_dict(self) -> Dict[str, object]:
        return {
            "identifiers_processed": self.identifiers_processed,
            "total_outcomes": self.total_outcomes,
            "cancelled": self.cancelled,
            "status_counts": {status.value: count for status, count in self.status_counts.items()},
        }
