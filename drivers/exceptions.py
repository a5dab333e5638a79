class WorkerPoolError(Exception):
    """Base class for worker registry errors."""


class DuplicateWorker(WorkerPoolError):
    def __init__(self, worker_id: str):
        super().__init__(f"Worker {worker_id} is already registered")
        self.worker_id = worker_id


class UnknownWorker(WorkerPoolError):
    def __init__(self, worker_id: str):
        super().__init__(f"Worker {worker_id} is not registered")
        self.worker_id = worker_id


class StaleUpdate(WorkerPoolError):
    """Raised when a location ping is older than the one already stored."""

    def __init__(self, worker_id: str, timestamp, stored_timestamp):
        super().__init__(
            f"Location update for worker {worker_id} at {timestamp} "
            f"is older than stored update at {stored_timestamp}"
        )
        self.worker_id = worker_id
        self.timestamp = timestamp
        self.stored_timestamp = stored_timestamp
