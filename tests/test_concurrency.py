import threading
from dataclasses import replace
from decimal import Decimal

from dispatch.exceptions import AlreadyAssigned, IllegalTransition, NoWorkerAvailable
from ledger.ledger import Ledger
from orders.models import JobState
from storage.memory import InMemoryLedgerStore

PICKUP = (-17.8249, 31.0530)
DROPOFF = (-17.7800, 31.0500)
THREADS = 16


def run_concurrently(target, args_list):
    """
    Starts one thread per args tuple behind a barrier and collects
    (result, exception) pairs in submission order.
    """
    barrier = threading.Barrier(len(args_list))
    outcomes = [None] * len(args_list)

    def worker(index, args):
        barrier.wait()
        try:
            outcomes[index] = (target(*args), None)
        except Exception as exc:
            outcomes[index] = (None, exc)

    threads = [threading.Thread(target=worker, args=(i, args)) for i, args in enumerate(args_list)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    return outcomes


def test_one_worker_many_jobs(core, check_invariants):
    core.pool.register("only", PICKUP)
    jobs = [core.intake.submit("ride", f"rider-{i}", PICKUP, DROPOFF) for i in range(THREADS)]

    outcomes = run_concurrently(core.matcher.match, [(job,) for job in jobs])

    assigned = [result for result, exc in outcomes if exc is None]
    failures = [exc for result, exc in outcomes if exc is not None]
    assert len(assigned) == 1
    assert len(failures) == THREADS - 1
    assert all(isinstance(exc, NoWorkerAvailable) for exc in failures)

    winner = assigned[0]
    assert core.pool.get("only").current_job_id == winner.id
    still_requested = [job for job in core.stores.jobs.list() if job.state == JobState.REQUESTED]
    assert len(still_requested) == THREADS - 1
    check_invariants(core)


def test_one_job_many_matchers(core, check_invariants):
    for i in range(THREADS):
        core.pool.register(f"w{i:02d}", PICKUP)
    job = core.intake.submit("ride", "rider-1", PICKUP, DROPOFF)

    outcomes = run_concurrently(core.matcher.match, [(job,)] * THREADS)

    assigned = [result for result, exc in outcomes if exc is None]
    failures = [exc for result, exc in outcomes if exc is not None]
    assert len(assigned) == 1
    assert all(isinstance(exc, (AlreadyAssigned, NoWorkerAvailable)) for exc in failures)

    busy = [worker for worker in core.pool.workers() if worker.current_job_id is not None]
    assert [worker.id for worker in busy] == [assigned[0].assigned_worker_id]
    check_invariants(core)


def test_cancel_racing_match(core, check_invariants):
    for round_ in range(20):
        worker_id = f"w{round_}"
        core.pool.register(worker_id, PICKUP)
        job = core.intake.submit("ride", "rider-1", PICKUP, DROPOFF)

        def do_match(job=job):
            return core.matcher.match(job)

        def do_cancel(job=job):
            return core.tracker.cancel(job.id, "user request")

        outcomes = run_concurrently(lambda action: action(), [(do_match,), (do_cancel,)])

        match_exc = outcomes[0][1]
        assert match_exc is None or isinstance(match_exc, IllegalTransition)
        assert outcomes[1][1] is None

        assert core.tracker.get(job.id).state == JobState.CANCELLED
        worker = core.pool.get(worker_id)
        assert worker.available
        assert worker.current_job_id is None
        check_invariants(core)


def test_concurrent_finalize_writes_one_entry(core):
    core.pool.register("A", PICKUP)
    job = core.matcher.match(core.intake.submit("ride", "rider-1", PICKUP, DROPOFF))
    completed = replace(core.tracker.start(job.id), state=JobState.COMPLETED)

    ledger = Ledger(InMemoryLedgerStore())
    outcomes = run_concurrently(ledger.finalize, [(completed,)] * THREADS)

    assert all(exc is None for _, exc in outcomes)
    assert {charge for charge, _ in outcomes} == {Decimal("12.00")}
    assert len(ledger.entries()) == 1


def test_location_pings_during_matching(core, clock, check_invariants):
    for i in range(4):
        core.pool.register(f"w{i}", PICKUP)
    jobs = [core.intake.submit("delivery", f"rider-{i}", PICKUP, DROPOFF) for i in range(4)]

    def ping(worker_id):
        for step in range(50):
            core.pool.update_location(worker_id, (PICKUP[0] + step * 1e-5, PICKUP[1]), clock.now)
        return worker_id

    args = [(lambda job=job: core.matcher.match(job),) for job in jobs]
    args += [(lambda worker_id=f"w{i}": ping(worker_id),) for i in range(4)]
    outcomes = run_concurrently(lambda action: action(), args)

    assert all(exc is None for _, exc in outcomes)
    assert {job.assigned_worker_id for job, _ in outcomes[:4]} == {"w0", "w1", "w2", "w3"}
    check_invariants(core)
