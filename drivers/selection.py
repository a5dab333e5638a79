"""
Purpose: Business rules for choosing the best worker for a pickup.
What it does:
Ranks nearby available workers deterministically:
closest first, then highest rating, then fewest completed jobs
(prefer less-recently-busy workers), then worker id.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .models import Worker


@dataclass(frozen=True)
class MatchCandidate:
    """
    Transient (worker, distance, score) tuple produced while matching.
    Lower score ranks first.
    """
    worker: Worker
    distance_km: float
    score: Tuple = ()


def ranking_key(worker: Worker, distance_km: float) -> Tuple[float, float, int, str]:
    return (distance_km, -worker.rating, worker.completed_jobs, worker.id)


def rank_candidates(candidates: Sequence[MatchCandidate]) -> List[MatchCandidate]:
    """
    Returns new candidates carrying their ranking score, best first.
    """
    scored = [
        MatchCandidate(
            worker=candidate.worker,
            distance_km=candidate.distance_km,
            score=ranking_key(candidate.worker, candidate.distance_km),
        )
        for candidate in candidates
    ]
    scored.sort(key=lambda candidate: candidate.score)
    return scored
