"""
Drivers domain package.

Public API:
- Models: Worker
- Registry: WorkerPool
- Ranking: MatchCandidate, rank_candidates
- Policy: MatchingPolicy
"""
from .exceptions import DuplicateWorker, StaleUpdate, UnknownWorker, WorkerPoolError
from .models import Worker
from .policy import MatchingPolicy, default_matching_policy, matching_policy_from_env
from .pool import WorkerPool
from .selection import MatchCandidate, rank_candidates

__all__ = [
    "DuplicateWorker",
    "StaleUpdate",
    "UnknownWorker",
    "WorkerPoolError",
    "Worker",
    "MatchingPolicy",
    "default_matching_policy",
    "matching_policy_from_env",
    "WorkerPool",
    "MatchCandidate",
    "rank_candidates",
]
