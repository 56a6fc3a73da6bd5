"""Campaign inventory and lifecycle services."""

from .inventory import (
    CampaignFullError,
    CampaignInventoryController,
    CampaignInventoryError,
    CampaignNotFoundError,
    InvalidCampaignError,
    InvalidCampaignTransitionError,
)

__all__ = [
    "CampaignFullError",
    "CampaignInventoryController",
    "CampaignInventoryError",
    "CampaignNotFoundError",
    "InvalidCampaignError",
    "InvalidCampaignTransitionError",
]
