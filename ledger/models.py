from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from orders.models import JobKind, JobState


@dataclass(frozen=True)
class LedgerEntry:
    """
    The one durable record of what a terminal job cost and who earned it.
    Keyed by job id.
    """
    job_id: str
    requester_id: str
    worker_id: Optional[str]
    kind: JobKind
    state: JobState

    charge: Decimal
    worker_earnings: Decimal
    platform_fee: Decimal
    currency: str

    distance_km: float
    duration_seconds: float
    recorded_at: datetime
