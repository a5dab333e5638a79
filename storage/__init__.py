"""
Storage package: persistence contract plus in-memory implementations.
Concrete databases implement the ABCs in storage.base.
"""
from .base import (
    ConcurrentUpdate,
    JobStore,
    LedgerStore,
    RecordExists,
    RecordNotFound,
    StorageError,
    StoreSet,
    WorkerStore,
)
from .memory import InMemoryJobStore, InMemoryLedgerStore, InMemoryWorkerStore, in_memory_stores

__all__ = [
    "ConcurrentUpdate",
    "JobStore",
    "LedgerStore",
    "RecordExists",
    "RecordNotFound",
    "StorageError",
    "StoreSet",
    "WorkerStore",
    "InMemoryJobStore",
    "InMemoryLedgerStore",
    "InMemoryWorkerStore",
    "in_memory_stores",
]
