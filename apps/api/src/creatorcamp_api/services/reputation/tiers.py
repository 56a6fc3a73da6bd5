"""Creator tier derivation.

Tiers are never stored. Every call site derives them through :func:`compute_tier`
so eligibility checks cannot drift apart.
"""

from __future__ import annotations

from creatorcamp_api.models.creator import CreatorTierEnum

STANDARD_SCORE_THRESHOLD = 50
VIP_SCORE_THRESHOLD = 85

_TIER_RANK = {
    CreatorTierEnum.STARTING: 0,
    CreatorTierEnum.STANDARD: 1,
    CreatorTierEnum.VIP: 2,
}


def compute_tier(completed_campaigns: int, score: int) -> CreatorTierEnum:
    """Map a creator's track record to a tier."""

    completed = completed_campaigns or 0
    current = score or 0
    if completed == 0 or current < STANDARD_SCORE_THRESHOLD:
        return CreatorTierEnum.STARTING
    if current >= VIP_SCORE_THRESHOLD:
        return CreatorTierEnum.VIP
    return CreatorTierEnum.STANDARD


def tier_for_creator(creator) -> CreatorTierEnum:
    return compute_tier(creator.completed_campaigns, creator.score)


def is_starting(creator) -> bool:
    return tier_for_creator(creator) is CreatorTierEnum.STARTING


def qualifies_for_auto_approval(creator) -> bool:
    return tier_for_creator(creator) is CreatorTierEnum.VIP


def tier_upgrade_for(previous: CreatorTierEnum, current: CreatorTierEnum) -> CreatorTierEnum | None:
    """Return the tier worth celebrating after a change, if any.

    Only ``starting -> standard`` and ``* -> vip`` crossings are celebrated.
    """

    if _TIER_RANK[current] <= _TIER_RANK[previous]:
        return None
    if current is CreatorTierEnum.VIP:
        return current
    if previous is CreatorTierEnum.STARTING and current is CreatorTierEnum.STANDARD:
        return current
    return None


__all__ = [
    "STANDARD_SCORE_THRESHOLD",
    "VIP_SCORE_THRESHOLD",
    "compute_tier",
    "is_starting",
    "qualifies_for_auto_approval",
    "tier_for_creator",
    "tier_upgrade_for",
]
