from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from ledger.ledger import Ledger, LedgerError
from ledger.pricing import (
    PricingPolicy,
    default_pricing_policy,
    fare_function,
    metered_pricing_policy,
    pricing_policy_from_env,
    to_money,
)
from orders.models import Job, JobKind, JobState
from storage.memory import InMemoryLedgerStore

T0 = datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)


def make_job(kind=JobKind.RIDE, state=JobState.COMPLETED, worker_id="w1", minutes=20):
    job = Job.new("rider-1", kind, (-17.8249, 31.0530), (-17.7800, 31.0500), requested_at=T0)
    return replace(
        job,
        state=state,
        assigned_worker_id=worker_id,
        started_at=T0,
        completed_at=T0 + timedelta(minutes=minutes),
    )


@pytest.fixture
def ledger():
    return Ledger(InMemoryLedgerStore(), clock=lambda: T0)


def test_finalize_default_flat_fares(ledger):
    ride = make_job(JobKind.RIDE)
    delivery = make_job(JobKind.DELIVERY)

    assert ledger.finalize(ride) == Decimal("12.00")
    assert ledger.finalize(delivery) == Decimal("5.00")

    entry = ledger.entry(ride.id)
    assert entry.worker_id == "w1"
    assert entry.worker_earnings == Decimal("9.60")
    assert entry.platform_fee == Decimal("2.40")
    assert entry.currency == "USD"
    assert entry.duration_seconds == 20 * 60


def test_finalize_is_idempotent():
    calls = []

    def counting_fare(distance_km, kind, duration_seconds):
        calls.append(kind)
        return Decimal("7.25")

    ledger = Ledger(InMemoryLedgerStore(), fare=counting_fare)
    job = make_job()

    first = ledger.finalize(job)
    second = ledger.finalize(job)

    assert first == second == Decimal("7.25")
    assert len(calls) == 1
    assert len(ledger.entries()) == 1


def test_finalize_requires_completed_job(ledger):
    with pytest.raises(LedgerError):
        ledger.finalize(make_job(state=JobState.IN_PROGRESS))

    assert ledger.entries() == []


def test_negative_fare_is_refused():
    ledger = Ledger(InMemoryLedgerStore(), fare=lambda d, k, s: Decimal("-1"))

    with pytest.raises(LedgerError):
        ledger.finalize(make_job())


def test_fare_receives_trip_distance_and_duration():
    seen = {}

    def fare(distance_km, kind, duration_seconds):
        seen.update(distance_km=distance_km, kind=kind, duration_seconds=duration_seconds)
        return Decimal("1")

    ledger = Ledger(InMemoryLedgerStore(), fare=fare, trip_distance=lambda a, b: 4.2)
    ledger.finalize(make_job(JobKind.DELIVERY, minutes=5))

    assert seen == {"distance_km": 4.2, "kind": JobKind.DELIVERY, "duration_seconds": 300.0}


def test_cancellation_fee_only_after_assignment():
    policy = replace(default_pricing_policy(), cancellation_fee=Decimal("2.00"))
    ledger = Ledger(InMemoryLedgerStore(), pricing=policy)

    bound = make_job(state=JobState.CANCELLED, worker_id=None)
    unbound = make_job(state=JobState.CANCELLED, worker_id=None)

    assert ledger.record_cancellation(bound, worker_id="w1") == Decimal("2.00")
    assert ledger.record_cancellation(unbound) == Decimal("0.00")

    assert ledger.entry(bound.id).worker_earnings == Decimal("1.60")
    assert ledger.entry(unbound.id).worker_id is None
    assert ledger.entry(unbound.id).platform_fee == Decimal("0.00")


def test_record_cancellation_requires_cancelled_job(ledger):
    with pytest.raises(LedgerError):
        ledger.record_cancellation(make_job(state=JobState.COMPLETED))


# --- Pricing ---

def test_metered_ride_fare():
    fare = fare_function(metered_pricing_policy())

    # 3.50 + 1.20 * 10 + 0.25 * 20
    assert fare(10.0, JobKind.RIDE, 20 * 60) == Decimal("20.50")


def test_metered_fare_minimum():
    fare = fare_function(metered_pricing_policy())

    assert fare(0.5, JobKind.RIDE, 60) == Decimal("8.50")


def test_metered_delivery_fare():
    fare = fare_function(metered_pricing_policy())

    # 5.00 + 0.50 * 8, duration ignored
    assert fare(8.0, JobKind.DELIVERY, 3600) == Decimal("9.00")


def test_split_always_adds_up():
    policy = default_pricing_policy()

    for charge in (Decimal("12.00"), Decimal("0.01"), Decimal("7.33"), Decimal("0.00")):
        earnings, fee = policy.split(charge)
        assert earnings + fee == charge


def test_to_money_rounds_half_up():
    assert to_money("2.345") == Decimal("2.35")
    assert to_money(3) == Decimal("3.00")


@pytest.mark.parametrize("changes", [
    {"ride_base_fare": Decimal("-1")},
    {"cancellation_fee": Decimal("-0.01")},
    {"driver_share": Decimal("1.5")},
    {"currency": ""},
])
def test_pricing_policy_validate(changes):
    with pytest.raises(ValueError):
        PricingPolicy(**changes).validate()


def test_pricing_policy_from_env(monkeypatch):
    monkeypatch.setenv("PRICING_RIDE_BASE_FARE", "15.00")
    monkeypatch.setenv("PRICING_DRIVER_SHARE", "0.75")
    monkeypatch.setenv("PRICING_CURRENCY", "ZWG")

    policy = pricing_policy_from_env()

    assert policy.ride_base_fare == Decimal("15.00")
    assert policy.driver_share == Decimal("0.75")
    assert policy.currency == "ZWG"
    assert policy.delivery_fee == Decimal("5.00")
