from datetime import datetime, timedelta, timezone

import pytest

from dispatch import DispatchCore, InMemoryNotifier


class ManualClock:
    """Clock the tests move forward by hand."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return ManualClock(datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc))


@pytest.fixture
def notifier():
    return InMemoryNotifier()


@pytest.fixture
def core(clock, notifier):
    dispatch_core = DispatchCore.in_memory(notifier=notifier, clock=clock)
    yield dispatch_core
    dispatch_core.close()


@pytest.fixture
def check_invariants():
    """
    Returns a checker for the worker/job binding invariants:
    - an online worker is available iff it holds no job
    - a job has a worker iff it is assigned, in progress or completed
    """
    def check(core):
        for worker in core.pool.workers():
            assert not (worker.available and worker.current_job_id is not None)
            if worker.online:
                assert worker.available == (worker.current_job_id is None)

        bound_states = {"assigned", "in_progress", "completed"}
        for job in core.stores.jobs.list():
            assert (job.assigned_worker_id is not None) == (job.state.value in bound_states)

        active = [job for job in core.stores.jobs.list() if job.state.value in {"assigned", "in_progress"}]
        held = {worker.current_job_id: worker.id for worker in core.pool.workers() if worker.current_job_id}
        for job in active:
            assert held.get(job.id) == job.assigned_worker_id

    return check
