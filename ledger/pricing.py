"""
Purpose: Central configuration for pricing (single source of truth).
What it does:

Stores all tunable fare parameters:

RIDE_BASE_FARE = 12.00 (flat "standard" ride)

DELIVERY_FEE = 5.00 (flat snack delivery fee)

DRIVER_SHARE = 0.80 (driver keeps 80 % of the charge)

Builds the fare function the ledger calls:
    fare(distance_km, kind, duration_seconds) -> Decimal

Rule: Only parameters and the fare formula. No storage, no job state.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Tuple

from dotenv import load_dotenv

from orders.models import JobKind

CENTS = Decimal("0.01")

FareFunction = Callable[[float, JobKind, float], Decimal]


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PricingPolicy:
    """
    Central configuration for fares and the driver/platform split.

    Notes:
    - defaults reproduce flat pricing: every ride costs the base fare and
      every delivery costs the delivery fee, regardless of distance.
    - set the per-km / per-minute rates to get metered fares.
    """

    # --- Rides ---
    ride_base_fare: Decimal = Decimal("12.00")
    ride_per_km: Decimal = Decimal("0.00")
    ride_per_minute: Decimal = Decimal("0.00")

    # --- Deliveries ---
    delivery_fee: Decimal = Decimal("5.00")
    delivery_per_km: Decimal = Decimal("0.00")

    # --- Floors and fees ---
    minimum_fare: Decimal = Decimal("0.00")
    # Charged when a requester cancels after a worker was assigned.
    cancellation_fee: Decimal = Decimal("0.00")

    # --- Split ---
    # Fraction of every charge paid out to the worker.
    driver_share: Decimal = Decimal("0.80")

    currency: str = "USD"

    def validate(self) -> None:
        """
        Basic sanity checks. Call once at startup.
        """
        for name in ("ride_base_fare", "ride_per_km", "ride_per_minute",
                     "delivery_fee", "delivery_per_km", "minimum_fare", "cancellation_fee"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")

        if not Decimal("0") <= self.driver_share <= Decimal("1"):
            raise ValueError("driver_share must be between 0 and 1")

        if not self.currency:
            raise ValueError("currency must be set")

    def split(self, charge: Decimal) -> Tuple[Decimal, Decimal]:
        """
        (worker_earnings, platform_fee) for a charge. The two always add up
        to the charge exactly.
        """
        earnings = to_money(charge * self.driver_share)
        return earnings, charge - earnings


def default_pricing_policy() -> PricingPolicy:
    """
    Convenience factory for the default policy.
    """
    p = PricingPolicy()
    p.validate()
    return p


def metered_pricing_policy() -> PricingPolicy:
    """
    Example: distance and time based ride fares, with a small per-km
    component on deliveries.
    """
    p = PricingPolicy(
        ride_base_fare=Decimal("3.50"),
        ride_per_km=Decimal("1.20"),
        ride_per_minute=Decimal("0.25"),
        delivery_per_km=Decimal("0.50"),
        minimum_fare=Decimal("8.50"),
        cancellation_fee=Decimal("2.00"),
    )
    p.validate()
    return p


def pricing_policy_from_env() -> PricingPolicy:
    """
    Reads overrides from the environment (or a .env file), e.g.

    PRICING_RIDE_BASE_FARE=12.00
    PRICING_DELIVERY_FEE=5.00
    PRICING_DRIVER_SHARE=0.80
    """
    load_dotenv()
    defaults = PricingPolicy()

    def env_decimal(name: str, default: Decimal) -> Decimal:
        raw = os.getenv(f"PRICING_{name.upper()}")
        return Decimal(raw) if raw not in (None, "") else default

    p = PricingPolicy(
        ride_base_fare=env_decimal("ride_base_fare", defaults.ride_base_fare),
        ride_per_km=env_decimal("ride_per_km", defaults.ride_per_km),
        ride_per_minute=env_decimal("ride_per_minute", defaults.ride_per_minute),
        delivery_fee=env_decimal("delivery_fee", defaults.delivery_fee),
        delivery_per_km=env_decimal("delivery_per_km", defaults.delivery_per_km),
        minimum_fare=env_decimal("minimum_fare", defaults.minimum_fare),
        cancellation_fee=env_decimal("cancellation_fee", defaults.cancellation_fee),
        driver_share=env_decimal("driver_share", defaults.driver_share),
        currency=os.getenv("PRICING_CURRENCY", defaults.currency),
    )
    p.validate()
    return p


def fare_function(policy: PricingPolicy) -> FareFunction:
    """
    Builds the fare callable for a policy.
    """
    def fare(distance_km: float, kind: JobKind, duration_seconds: float) -> Decimal:
        distance = Decimal(str(max(distance_km, 0.0)))
        minutes = Decimal(str(max(duration_seconds, 0.0))) / 60

        if kind == JobKind.RIDE:
            amount = policy.ride_base_fare + policy.ride_per_km * distance + policy.ride_per_minute * minutes
        elif kind == JobKind.DELIVERY:
            amount = policy.delivery_fee + policy.delivery_per_km * distance
        else:
            raise ValueError(f"Unknown job kind {kind!r}")

        return to_money(max(amount, policy.minimum_fare))

    return fare
