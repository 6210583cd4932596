"""Sync queue records and reports."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from ulid import ULID

from maeple_ingest.core.errors.sync import StaleEntryDiscarded


def new_entry_id() -> str:
    """Generate a sortable unique entry ID."""
    return str(ULID())


class SyncStatus(str, Enum):
    """Lifecycle of a queued record.

    PENDING    waiting for the next drain (including after a failed delivery)
    IN_FLIGHT  a delivery attempt is running
    FAILED     an attempt was interrupted before its outcome was recorded
    STALE      aged past the staleness window; evicted, never retried
    """

    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    FAILED = "failed"
    STALE = "stale"


DRAINABLE_STATUSES = frozenset({SyncStatus.PENDING, SyncStatus.FAILED})


class SyncEntry(BaseModel):
    """A locally written record awaiting delivery to the remote store."""

    id: str = Field(default_factory=new_entry_id, description="ULID entry identifier")
    sequence: int = Field(..., ge=0, description="Enqueue order; drains run in ascending order")
    payload: Any = Field(..., description="Opaque record to apply remotely")
    enqueued_at: datetime = Field(..., description="When the record was enqueued")
    attempts: int = Field(default=0, ge=0, description="Delivery attempts so far")
    last_attempt_at: Optional[datetime] = Field(None, description="Start of the latest attempt")
    status: SyncStatus = Field(default=SyncStatus.PENDING)
    last_error: Optional[str] = Field(None, description="Why the latest attempt failed")

    def age_seconds(self, now: datetime) -> float:
        return (now - self.enqueued_at).total_seconds()

    def is_stale(self, now: datetime, staleness_seconds: float) -> bool:
        return self.status == SyncStatus.STALE or self.age_seconds(now) > staleness_seconds


@dataclass
class DrainReport:
    """Outcome of one drain pass.

    Stale entries appear only in ``discarded``, never in ``succeeded`` or
    ``failed``. ``skipped`` is set when another drain was already running.
    """

    succeeded: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    discarded: List[StaleEntryDiscarded] = field(default_factory=list)
    skipped: bool = False

    @property
    def discarded_ids(self) -> List[str]:
        return [notice.entry_id for notice in self.discarded if notice.entry_id]

    @property
    def clean(self) -> bool:
        return not self.skipped and not self.failed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "succeeded": list(self.succeeded),
            "failed": list(self.failed),
            "discarded": [
                {"entry_id": n.entry_id, "age_seconds": n.age_seconds, "message": str(n)}
                for n in self.discarded
            ],
            "skipped": self.skipped,
        }


@dataclass
class QueueHealth:
    """Point-in-time view of the queue for status displays and alerting.

    The per-status counts partition the queue: ``pending + in_flight +
    failed + stale == size``. An entry past the staleness window that is
    awaiting eviction is counted only under ``stale``; one still in flight
    stays under ``in_flight`` until its attempt is recorded.
    """

    size: int
    max_size: int
    pending: int
    in_flight: int
    failed: int
    stale: int
    oldest_age_seconds: Optional[float]
    last_drain_at: Optional[datetime]
    draining: bool

    @property
    def utilization(self) -> float:
        return self.size / self.max_size if self.max_size else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "max_size": self.max_size,
            "utilization": round(self.utilization, 4),
            "pending": self.pending,
            "in_flight": self.in_flight,
            "failed": self.failed,
            "stale": self.stale,
            "oldest_age_seconds": self.oldest_age_seconds,
            "last_drain_at": self.last_drain_at.isoformat() if self.last_drain_at else None,
            "draining": self.draining,
        }
