"""
Purpose: Domain models for the Orders capability.
What it does:
- Defines the Job record: one ride or snack delivery tracked from request to
  a terminal state (id, requester, kind, pickup/dropoff coords, timestamps,
  state, assigned worker, charge).

Defines enums/constants:
- JobKind = RIDE | DELIVERY
- JobState = REQUESTED | ASSIGNED | IN_PROGRESS | COMPLETED | CANCELLED

Rule: No matching, no pricing, no storage. Models only.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple
import uuid

LatLon = Tuple[float, float]


class JobKind(str, Enum):
    RIDE = "ride"
    DELIVERY = "delivery"


class JobState(str, Enum):
    REQUESTED = "requested"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({JobState.COMPLETED, JobState.CANCELLED})

# States in which a job holds a worker.
WORKER_BOUND_STATES = frozenset({JobState.ASSIGNED, JobState.IN_PROGRESS, JobState.COMPLETED})


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Job:
    """
    Immutable snapshot of a job. Transitions produce a new instance via
    `dataclasses.replace` with `version` bumped by one.
    """
    id: str
    requester_id: str
    kind: JobKind
    pickup: LatLon
    dropoff: LatLon

    requested_at: datetime = field(default_factory=utcnow)
    scheduled_at: Optional[datetime] = None
    notes: Optional[str] = None

    state: JobState = JobState.REQUESTED
    assigned_worker_id: Optional[str] = None
    charge: Optional[Decimal] = None

    assigned_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None

    version: int = 0

    @classmethod
    def new(
        cls,
        requester_id: str,
        kind: JobKind,
        pickup: LatLon,
        dropoff: LatLon,
        *,
        scheduled_at: Optional[datetime] = None,
        notes: Optional[str] = None,
        requested_at: Optional[datetime] = None,
    ) -> Job:
        return cls(
            id=str(uuid.uuid4()),
            requester_id=requester_id,
            kind=kind,
            pickup=pickup,
            dropoff=dropoff,
            requested_at=requested_at or utcnow(),
            scheduled_at=scheduled_at,
            notes=notes,
        )

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    @property
    def duration_seconds(self) -> Optional[float]:
        """Time between start and completion, if both are known."""
        if self.started_at is None or self.completed_at is None:
            return None
        return max((self.completed_at - self.started_at).total_seconds(), 0.0)
