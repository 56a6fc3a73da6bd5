"""Reputation ledger and tier derivation."""

from .ledger import (
    CreatorNotFoundError,
    InvalidAdjustmentError,
    ReputationAudit,
    ReputationError,
    ReputationEventView,
    ReputationLedger,
)
from .tiers import compute_tier, tier_upgrade_for

__all__ = [
    "CreatorNotFoundError",
    "InvalidAdjustmentError",
    "ReputationAudit",
    "ReputationError",
    "ReputationEventView",
    "ReputationLedger",
    "compute_tier",
    "tier_upgrade_for",
]
