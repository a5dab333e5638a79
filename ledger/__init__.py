"""
Ledger package: charges for terminal jobs, pricing policy and reports.
"""
from .ledger import Ledger, LedgerError
from .models import LedgerEntry
from .pricing import (
    FareFunction,
    PricingPolicy,
    default_pricing_policy,
    fare_function,
    metered_pricing_policy,
    pricing_policy_from_env,
)

__all__ = [
    "Ledger",
    "LedgerError",
    "LedgerEntry",
    "FareFunction",
    "PricingPolicy",
    "default_pricing_policy",
    "fare_function",
    "metered_pricing_policy",
    "pricing_policy_from_env",
]
