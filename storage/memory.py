"""
In-process stores backed by dicts and a lock per table.
Good for tests, simulations and single-process deployments.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from typing import Dict, List, Optional

from .base import (
    ConcurrentUpdate,
    JobStore,
    LedgerStore,
    RecordExists,
    RecordNotFound,
    StoreSet,
    WorkerStore,
)


class _VersionedTable:
    """
    Dict of frozen dataclass records keyed by `id`, with CAS on `version`.
    """
    def __init__(self):
        self._rows: Dict[str, object] = {}
        self._lock = threading.Lock()
        self._closed = False

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("store is closed")

    def create(self, record):
        with self._lock:
            self._check_open()
            if record.id in self._rows:
                raise RecordExists(record.id)
            self._rows[record.id] = record
            return record

    def get(self, key: str):
        with self._lock:
            self._check_open()
            return self._rows.get(key)

    def update(self, record, expected_version: int):
        with self._lock:
            self._check_open()
            current = self._rows.get(record.id)
            if current is None:
                raise RecordNotFound(record.id)
            if current.version != expected_version:
                raise ConcurrentUpdate(record.id, expected_version, current.version)
            stored = replace(record, version=expected_version + 1)
            self._rows[record.id] = stored
            return stored

    def values(self) -> List:
        with self._lock:
            self._check_open()
            return list(self._rows.values())

    def close(self) -> None:
        with self._lock:
            self._closed = True


class InMemoryJobStore(JobStore):

    def __init__(self):
        self._table = _VersionedTable()
        self._archived: set[str] = set()

    def create(self, job):
        return self._table.create(job)

    def get(self, job_id: str):
        return self._table.get(job_id)

    def update(self, job, expected_version: int):
        return self._table.update(job, expected_version)

    def archive(self, job_id: str) -> None:
        if self._table.get(job_id) is None:
            raise RecordNotFound(job_id)
        self._archived.add(job_id)

    def is_archived(self, job_id: str) -> bool:
        return job_id in self._archived

    def list(self, include_archived: bool = True):
        jobs = self._table.values()
        if include_archived:
            return jobs
        return [job for job in jobs if job.id not in self._archived]

    def close(self) -> None:
        self._table.close()


class InMemoryWorkerStore(WorkerStore):

    def __init__(self):
        self._table = _VersionedTable()

    def create(self, worker):
        return self._table.create(worker)

    def get(self, worker_id: str):
        return self._table.get(worker_id)

    def update(self, worker, expected_version: int):
        return self._table.update(worker, expected_version)

    def all(self):
        return self._table.values()

    def close(self) -> None:
        self._table.close()


class InMemoryLedgerStore(LedgerStore):

    def __init__(self):
        self._entries: Dict[str, object] = {}
        self._lock = threading.Lock()

    def put_if_absent(self, entry):
        with self._lock:
            return self._entries.setdefault(entry.job_id, entry)

    def get(self, job_id: str) -> Optional[object]:
        with self._lock:
            return self._entries.get(job_id)

    def all(self):
        with self._lock:
            return list(self._entries.values())


def in_memory_stores() -> StoreSet:
    return StoreSet(
        jobs=InMemoryJobStore(),
        workers=InMemoryWorkerStore(),
        ledger=InMemoryLedgerStore(),
    )
