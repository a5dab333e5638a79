"""
Purpose: Request intake boundary.
What it does:
Validates a raw ride or delivery submission, normalizes it into a Job in
state `requested`, persists it and announces it.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

from orders.models import Job, JobKind
from routing.geo import is_valid_coordinate
from storage.base import JobStore

from .events import EventPublisher, JobEvent, JobEventType, Notifier
from .exceptions import InvalidJobRequest

logger = logging.getLogger(__name__)

LatLon = Tuple[float, float]


def parse_kind(kind) -> JobKind:
    if isinstance(kind, JobKind):
        return kind
    try:
        return JobKind(str(kind).strip().lower())
    except ValueError:
        allowed = ", ".join(k.value for k in JobKind)
        raise InvalidJobRequest(f"Unknown job kind {kind!r}; expected one of: {allowed}") from None


def normalize_coordinate(name: str, coordinate) -> LatLon:
    if not is_valid_coordinate(coordinate):
        raise InvalidJobRequest(f"{name} must be a (lat, lon) pair within range, got {coordinate!r}")
    lat, lon = coordinate
    return (float(lat), float(lon))


class RequestIntake:

    def __init__(
        self,
        jobs: JobStore,
        notifier: Optional[Notifier] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.jobs = jobs
        self.events = EventPublisher(notifier)
        self.clock = clock

    def submit(
        self,
        kind,
        requester_id: str,
        pickup: LatLon,
        dropoff: LatLon,
        scheduled_at: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> Job:
        """
        Create a job in state `requested`. Raises InvalidJobRequest.
        """
        job_kind = parse_kind(kind)

        if not isinstance(requester_id, str) or not requester_id.strip():
            raise InvalidJobRequest("requester_id is required")

        pickup = normalize_coordinate("pickup", pickup)
        dropoff = normalize_coordinate("dropoff", dropoff)

        now = self.clock()
        if scheduled_at is not None:
            if not isinstance(scheduled_at, datetime) or scheduled_at.tzinfo is None:
                raise InvalidJobRequest("scheduled_at must be a timezone-aware datetime")
            if scheduled_at < now:
                raise InvalidJobRequest("scheduled_at is in the past")

        job = Job.new(
            requester_id=requester_id.strip(),
            kind=job_kind,
            pickup=pickup,
            dropoff=dropoff,
            scheduled_at=scheduled_at,
            notes=(notes or "").strip() or None,
            requested_at=now,
        )
        job = self.jobs.create(job)
        logger.info("Job %s (%s) requested by %s", job.id, job.kind.value, job.requester_id)

        self.events.publish(JobEvent(
            type=JobEventType.REQUESTED,
            job_id=job.id,
            occurred_at=now,
            detail={"kind": job.kind.value, "requester_id": job.requester_id},
        ))
        return job
