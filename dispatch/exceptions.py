"""
Errors raised by the dispatch pipeline.

Worker registry errors live in drivers.exceptions and are re-exported here
so callers can import the whole taxonomy from one place.
"""

from drivers.exceptions import DuplicateWorker, StaleUpdate, UnknownWorker, WorkerPoolError


class DispatchError(Exception):
    """Base class for intake, matching and lifecycle errors."""


class InvalidJobRequest(DispatchError, ValueError):
    """A submitted request failed validation at intake."""


class UnknownJob(DispatchError):
    def __init__(self, job_id: str):
        super().__init__(f"Job {job_id} does not exist")
        self.job_id = job_id


class NoWorkerAvailable(DispatchError):
    """
    No worker could be reserved for the job right now. Expected and
    retryable; the job stays `requested`.
    """

    def __init__(self, job_id: str):
        super().__init__(f"No worker available for job {job_id}")
        self.job_id = job_id


class IllegalTransition(DispatchError):
    def __init__(self, job_id: str, state, action: str):
        state_name = getattr(state, "value", state)
        super().__init__(f"Cannot {action} job {job_id} in state {state_name}")
        self.job_id = job_id
        self.state = state
        self.action = action


class AlreadyAssigned(IllegalTransition):
    def __init__(self, job_id: str, state, assigned_worker_id):
        super().__init__(job_id, state, "assign")
        self.assigned_worker_id = assigned_worker_id


class FinalizationFailed(DispatchError):
    """
    The ledger refused a terminal transition. The job was restored to its
    previous state; the original error is chained as __cause__.
    """

    def __init__(self, job_id: str, action: str):
        super().__init__(f"Ledger finalization failed while trying to {action} job {job_id}")
        self.job_id = job_id
        self.action = action


__all__ = [
    "DispatchError",
    "InvalidJobRequest",
    "UnknownJob",
    "NoWorkerAvailable",
    "IllegalTransition",
    "AlreadyAssigned",
    "FinalizationFailed",
    "WorkerPoolError",
    "DuplicateWorker",
    "UnknownWorker",
    "StaleUpdate",
]
