"""
Purpose: Read-only summaries for the admin and driver dashboards.
What it does:
- ledger_frame: ledger entries as a pandas DataFrame (export / ad-hoc analysis)
- platform_stats: ride/delivery totals, revenue and jobs by state
- worker_earnings: per-worker completed jobs and payout

Rule: Never mutates jobs, workers or the ledger.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

import pandas as pd

from orders.models import Job, JobKind, JobState

from .models import LedgerEntry

LEDGER_COLUMNS = [
    "job_id",
    "requester_id",
    "worker_id",
    "kind",
    "state",
    "charge",
    "worker_earnings",
    "platform_fee",
    "currency",
    "distance_km",
    "duration_seconds",
    "recorded_at",
]


@dataclass(frozen=True)
class PlatformStats:
    total_rides: int
    total_deliveries: int
    requested_jobs: int
    active_jobs: int
    completed_jobs: int
    cancelled_jobs: int
    total_revenue: Decimal
    platform_revenue: Decimal


def ledger_frame(entries: Sequence[LedgerEntry]) -> pd.DataFrame:
    rows = [
        {
            "job_id": entry.job_id,
            "requester_id": entry.requester_id,
            "worker_id": entry.worker_id,
            "kind": entry.kind.value,
            "state": entry.state.value,
            "charge": float(entry.charge),
            "worker_earnings": float(entry.worker_earnings),
            "platform_fee": float(entry.platform_fee),
            "currency": entry.currency,
            "distance_km": entry.distance_km,
            "duration_seconds": entry.duration_seconds,
            "recorded_at": entry.recorded_at,
        }
        for entry in entries
    ]
    return pd.DataFrame(rows, columns=LEDGER_COLUMNS)


def platform_stats(jobs: Sequence[Job], entries: Sequence[LedgerEntry]) -> PlatformStats:
    """
    Jobs give the live picture (active counts); the ledger gives money.
    Revenue is summed in Decimal so it matches the ledger to the cent.
    """
    def count(state: JobState) -> int:
        return sum(1 for job in jobs if job.state == state)

    return PlatformStats(
        total_rides=sum(1 for job in jobs if job.kind == JobKind.RIDE),
        total_deliveries=sum(1 for job in jobs if job.kind == JobKind.DELIVERY),
        requested_jobs=count(JobState.REQUESTED),
        active_jobs=count(JobState.ASSIGNED) + count(JobState.IN_PROGRESS),
        completed_jobs=count(JobState.COMPLETED),
        cancelled_jobs=count(JobState.CANCELLED),
        total_revenue=sum((entry.charge for entry in entries), Decimal("0.00")),
        platform_revenue=sum((entry.platform_fee for entry in entries), Decimal("0.00")),
    )


def worker_earnings(entries: Sequence[LedgerEntry]) -> pd.DataFrame:
    """
    One row per worker (index `worker_id`), highest earnings first.
    Entries without a worker (cancelled before assignment) are skipped.
    """
    frame = ledger_frame(entries)
    frame = frame[frame["worker_id"].notna()]
    if frame.empty:
        return pd.DataFrame(
            columns=["completed_jobs", "cancelled_jobs", "earnings"],
            index=pd.Index([], name="worker_id"),
        )

    frame = frame.assign(
        completed=(frame["state"] == JobState.COMPLETED.value).astype(int),
        cancelled=(frame["state"] == JobState.CANCELLED.value).astype(int),
    )
    summary = frame.groupby("worker_id").agg(
        completed_jobs=("completed", "sum"),
        cancelled_jobs=("cancelled", "sum"),
        earnings=("worker_earnings", "sum"),
    )
    summary["earnings"] = summary["earnings"].round(2)
    return summary.sort_values("earnings", ascending=False, kind="mergesort")
