"""MER automation: cleanroom basket lifecycle and user onboarding."""

from mer_automation.activity.aggregator import UsageRecord, aggregate
from mer_automation.baskets.reconciler import StatusChange, find_purge_candidates, reconcile
from mer_automation.baskets.records import BasketIndexEntry, BasketRequest
from mer_automation.exemptions.registry import ExemptionEntry, ExemptionRegistry

__all__ = [
    "UsageRecord",
    "aggregate",
    "StatusChange",
    "find_purge_candidates",
    "reconcile",
    "BasketIndexEntry",
    "BasketRequest",
    "ExemptionEntry",
    "ExemptionRegistry",
]
__version__ = "0.1.0"
