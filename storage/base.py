"""
Purpose: Persistence contract for the dispatch core.
What it does:
Defines the capability set every storage technology must provide:

- JobStore: create, read-by-id, update-with-expected-version, archive
- WorkerStore: create, read-by-id, update-with-expected-version, snapshot
- LedgerStore: put-if-absent, read-by-job-id, list

Updates are compare-and-swap on the record's `version` field. The store
writes the record with `version = expected_version + 1` and returns it.

Rule: No business rules here. Contract only.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from drivers.models import Worker
    from ledger.models import LedgerEntry
    from orders.models import Job


class StorageError(Exception):
    """Base class for persistence failures."""


class RecordExists(StorageError):
    def __init__(self, key: str):
        super().__init__(f"Record {key} already exists")
        self.key = key


class RecordNotFound(StorageError):
    def __init__(self, key: str):
        super().__init__(f"Record {key} not found")
        self.key = key


class ConcurrentUpdate(StorageError):
    """The stored version no longer matches the version the caller read."""

    def __init__(self, key: str, expected_version: int, actual_version: int):
        super().__init__(
            f"Record {key} was modified concurrently "
            f"(expected version {expected_version}, found {actual_version})"
        )
        self.key = key
        self.expected_version = expected_version
        self.actual_version = actual_version


class JobStore(ABC):

    @abstractmethod
    def create(self, job: Job) -> Job:
        """Insert a new job. Raises RecordExists."""

    @abstractmethod
    def get(self, job_id: str) -> Optional[Job]:
        """Active or archived job, or None."""

    @abstractmethod
    def update(self, job: Job, expected_version: int) -> Job:
        """CAS write. Raises RecordNotFound or ConcurrentUpdate."""

    @abstractmethod
    def archive(self, job_id: str) -> None:
        """Move a terminal job out of the active set. Never deletes it."""

    @abstractmethod
    def list(self, include_archived: bool = True) -> List[Job]:
        ...

    def close(self) -> None:
        pass


class WorkerStore(ABC):

    @abstractmethod
    def create(self, worker: Worker) -> Worker:
        """Insert a new worker. Raises RecordExists."""

    @abstractmethod
    def get(self, worker_id: str) -> Optional[Worker]:
        ...

    @abstractmethod
    def update(self, worker: Worker, expected_version: int) -> Worker:
        """CAS write. Raises RecordNotFound or ConcurrentUpdate."""

    @abstractmethod
    def all(self) -> List[Worker]:
        """Point-in-time snapshot of every worker."""

    def close(self) -> None:
        pass


class LedgerStore(ABC):

    @abstractmethod
    def put_if_absent(self, entry: LedgerEntry) -> LedgerEntry:
        """
        Write the entry unless one already exists for the same job id.
        Returns whichever entry is stored afterwards.
        """

    @abstractmethod
    def get(self, job_id: str) -> Optional[LedgerEntry]:
        ...

    @abstractmethod
    def all(self) -> List[LedgerEntry]:
        ...

    def close(self) -> None:
        pass


@dataclass
class StoreSet:
    """
    The three stores the dispatch core needs, constructed at process start
    and closed at shutdown.
    """
    jobs: JobStore
    workers: WorkerStore
    ledger: LedgerStore

    def close(self) -> None:
        self.jobs.close()
        self.workers.close()
        self.ledger.close()
