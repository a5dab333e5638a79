"""
Purpose: Central configuration for worker matching.
What it does:

Stores all tunable thresholds/caps for finding workers near a pickup:

SEARCH_RADIUS_KM = 10
CANDIDATE_LIMIT = 5

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


@dataclass(frozen=True)
class MatchingPolicy:
    """
    Central configuration for the matcher.
    """

    # --- Search area ---
    # Great-circle radius around the pickup inside which workers are considered.
    search_radius_km: float = 10.0

    # --- Candidate cap ---
    # How many nearby workers are pulled from the pool per match attempt.
    candidate_limit: int = 5

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.search_radius_km <= 0:
            raise ValueError("search_radius_km must be > 0")

        if self.candidate_limit < 1:
            raise ValueError("candidate_limit must be >= 1")


def default_matching_policy() -> MatchingPolicy:
    """
    Convenience factory for the default policy.
    """
    p = MatchingPolicy()
    p.validate()
    return p


def matching_policy_from_env() -> MatchingPolicy:
    """
    Reads overrides from the environment (or a .env file):

    DISPATCH_RADIUS_KM=10
    DISPATCH_CANDIDATE_LIMIT=5
    """
    load_dotenv()
    defaults = MatchingPolicy()
    p = MatchingPolicy(
        search_radius_km=float(os.getenv("DISPATCH_RADIUS_KM", defaults.search_radius_km)),
        candidate_limit=int(os.getenv("DISPATCH_CANDIDATE_LIMIT", defaults.candidate_limit)),
    )
    p.validate()
    return p
