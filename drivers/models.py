"""
Purpose: Core data models for the drivers domain.
What it does:
Defines the structure of a Worker (driver) and its availability without
relying on any storage engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Tuple

LatLon = Tuple[float, float]

MIN_RATING = 0.0
MAX_RATING = 5.0


def validate_rating(rating: float) -> float:
    rating = float(rating)
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValueError(f"rating must be between {MIN_RATING} and {MAX_RATING}, got {rating}")
    return rating


@dataclass(frozen=True)
class Worker:
    """
    A stateless representation of a Worker at a specific point in time.

    `online` is the flag drivers toggle from their app. A worker is
    available for matching only while online and not holding a job.
    """
    id: str
    location: LatLon
    last_location_at: datetime

    online: bool = True
    current_job_id: Optional[str] = None
    completed_jobs: int = 0
    rating: float = MAX_RATING

    version: int = 0

    @property
    def available(self) -> bool:
        return self.online and self.current_job_id is None

    @classmethod
    def new(
        cls,
        worker_id: str,
        lat: float,
        lon: float,
        rating: float = MAX_RATING,
        last_location_at: datetime | None = None,
    ) -> Worker:
        return cls(
            id=worker_id,
            location=(float(lat), float(lon)),
            last_location_at=last_location_at or datetime.now(timezone.utc),
            rating=validate_rating(rating),
        )
