"""Campaign capacity accounting and admin lifecycle transitions."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from loguru import logger
from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from creatorcamp_api.models.application import INVENTORY_HOLDING_STATUSES, Application
from creatorcamp_api.models.campaign import (
    Campaign,
    CampaignRewardTypeEnum,
    CampaignStatusEnum,
    CampaignTypeEnum,
)
from creatorcamp_api.observability.lifecycle import get_lifecycle_store
from creatorcamp_api.services.errors import DomainError, NotFoundError


class CampaignInventoryError(DomainError):
    """Base exception for campaign capacity and lifecycle failures."""

    code = "CampaignInventoryError"


class CampaignNotFoundError(CampaignInventoryError, NotFoundError):
    code = "CampaignNotFound"


class CampaignFullError(CampaignInventoryError):
    code = "CampaignFull"


class InvalidCampaignTransitionError(CampaignInventoryError):
    code = "InvalidCampaignTransition"

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(f"Cannot move campaign from {current} to {requested}")
        self.current = current
        self.requested = requested


class InvalidCampaignError(CampaignInventoryError):
    code = "InvalidCampaign"


class CampaignInventoryController:
    """Keeps ``approved_count`` within ``[0, inventory]``.

    Capacity changes are single conditional ``UPDATE`` statements; the controller
    flushes but leaves commit to the caller.
    """

    _ALLOWED_TRANSITIONS: dict[CampaignStatusEnum, set[CampaignStatusEnum]] = {
        CampaignStatusEnum.DRAFT: {CampaignStatusEnum.ACTIVE, CampaignStatusEnum.ARCHIVED},
        CampaignStatusEnum.ACTIVE: {CampaignStatusEnum.CLOSED, CampaignStatusEnum.ARCHIVED},
        CampaignStatusEnum.FULL: {CampaignStatusEnum.CLOSED, CampaignStatusEnum.ARCHIVED},
        CampaignStatusEnum.CLOSED: {CampaignStatusEnum.ACTIVE, CampaignStatusEnum.ARCHIVED},
        CampaignStatusEnum.ARCHIVED: {CampaignStatusEnum.CLOSED},
    }

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @staticmethod
    def has_capacity(campaign: Campaign) -> bool:
        """Advisory read-side check; :meth:`increment` is the authoritative guard."""

        return (campaign.approved_count or 0) < (campaign.inventory or 0)

    async def increment(self, campaign_id: UUID) -> Campaign:
        """Claim one inventory slot, flipping ``active`` to ``full`` on saturation."""

        new_count = Campaign.approved_count + 1
        result = await self._session.execute(
            update(Campaign)
            .where(Campaign.id == campaign_id, Campaign.approved_count < Campaign.inventory)
            .values(
                approved_count=new_count,
                status=case(
                    (
                        (new_count >= Campaign.inventory)
                        & (Campaign.status == CampaignStatusEnum.ACTIVE.value),
                        CampaignStatusEnum.FULL.value,
                    ),
                    else_=Campaign.status,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            campaign = await self._get_campaign(campaign_id)
            get_lifecycle_store().record_inventory_event("rejected_full")
            logger.info(
                "Campaign inventory exhausted",
                campaign_id=str(campaign_id),
                inventory=campaign.inventory,
            )
            raise CampaignFullError("Campaign is full")

        campaign = await self._get_campaign(campaign_id)
        get_lifecycle_store().record_inventory_event("increment")
        logger.info(
            "Campaign inventory slot claimed",
            campaign_id=str(campaign_id),
            approved_count=campaign.approved_count,
            inventory=campaign.inventory,
            status=campaign.status,
        )
        return campaign

    async def decrement(self, campaign_id: UUID) -> Campaign:
        """Release one slot; floors at zero and reopens a ``full`` campaign."""

        await self._get_campaign(campaign_id)
        await self._session.execute(
            update(Campaign)
            .where(Campaign.id == campaign_id)
            .values(
                approved_count=case(
                    (Campaign.approved_count > 0, Campaign.approved_count - 1),
                    else_=0,
                ),
                status=case(
                    (Campaign.status == CampaignStatusEnum.FULL.value, CampaignStatusEnum.ACTIVE.value),
                    else_=Campaign.status,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        campaign = await self._get_campaign(campaign_id)
        get_lifecycle_store().record_inventory_event("decrement")
        logger.info(
            "Campaign inventory slot released",
            campaign_id=str(campaign_id),
            approved_count=campaign.approved_count,
            status=campaign.status,
        )
        return campaign

    async def reconcile(self, campaign_id: UUID) -> dict[str, Any]:
        """Recount approved-or-later applications and rewrite the cached counter."""

        campaign = await self._get_campaign(campaign_id)
        cached = campaign.approved_count or 0
        stmt = select(func.count(Application.id)).where(
            Application.campaign_id == campaign_id,
            Application.status.in_(list(INVENTORY_HOLDING_STATUSES)),
        )
        actual = int((await self._session.execute(stmt)).scalar_one())

        status = campaign.status
        if status == CampaignStatusEnum.ACTIVE.value and actual >= campaign.inventory:
            status = CampaignStatusEnum.FULL.value
        elif status == CampaignStatusEnum.FULL.value and actual < campaign.inventory:
            status = CampaignStatusEnum.ACTIVE.value

        await self._session.execute(
            update(Campaign)
            .where(Campaign.id == campaign_id)
            .values(approved_count=actual, status=status)
            .execution_options(synchronize_session=False)
        )
        campaign = await self._get_campaign(campaign_id)
        over_committed = actual > campaign.inventory
        if cached != actual or over_committed:
            get_lifecycle_store().record_inventory_event("reconciled_drift")
            logger.warning(
                "Campaign approved count reconciled",
                campaign_id=str(campaign_id),
                cached=cached,
                actual=actual,
                inventory=campaign.inventory,
                over_committed=over_committed,
            )
        return {
            "campaign_id": str(campaign_id),
            "previous_count": cached,
            "approved_count": actual,
            "inventory": campaign.inventory,
            "status": campaign.status,
            "over_committed": over_committed,
        }

    async def create_campaign(
        self,
        *,
        name: str,
        brand_name: str,
        inventory: int,
        deadline: datetime,
        campaign_type: CampaignTypeEnum | str = CampaignTypeEnum.GIFTING,
        reward_type: CampaignRewardTypeEnum | str = CampaignRewardTypeEnum.GIFT,
        reward_amount: int | None = None,
        description: str | None = None,
        application_deadline: datetime | None = None,
        created_by_admin_id: str | None = None,
    ) -> Campaign:
        if inventory < 0:
            raise InvalidCampaignError("Inventory must not be negative")
        campaign_type_value = CampaignTypeEnum(campaign_type).value
        reward_type_value = CampaignRewardTypeEnum(reward_type).value
        if reward_type_value == CampaignRewardTypeEnum.PAID.value and not reward_amount:
            raise InvalidCampaignError("Paid campaigns require a reward amount")

        campaign = Campaign(
            name=name,
            brand_name=brand_name,
            description=description,
            campaign_type=campaign_type_value,
            reward_type=reward_type_value,
            reward_amount=reward_amount,
            inventory=inventory,
            approved_count=0,
            application_sequence=0,
            status=CampaignStatusEnum.DRAFT.value,
            application_deadline=application_deadline,
            deadline=deadline,
            created_by_admin_id=created_by_admin_id,
        )
        self._session.add(campaign)
        await self._session.flush()
        logger.info(
            "Campaign created",
            campaign_id=str(campaign.id),
            inventory=inventory,
            campaign_type=campaign_type_value,
        )
        return campaign

    async def activate(self, campaign_id: UUID) -> Campaign:
        campaign = await self._get_campaign(campaign_id)
        self._guard_transition(campaign, CampaignStatusEnum.ACTIVE)
        target = CampaignStatusEnum.ACTIVE
        if not self.has_capacity(campaign):
            target = CampaignStatusEnum.FULL
        return await self._set_status(campaign, target)

    async def close(self, campaign_id: UUID) -> Campaign:
        campaign = await self._get_campaign(campaign_id)
        self._guard_transition(campaign, CampaignStatusEnum.CLOSED)
        return await self._set_status(campaign, CampaignStatusEnum.CLOSED)

    async def archive(self, campaign_id: UUID) -> Campaign:
        campaign = await self._get_campaign(campaign_id)
        self._guard_transition(campaign, CampaignStatusEnum.ARCHIVED)
        return await self._set_status(campaign, CampaignStatusEnum.ARCHIVED)

    async def restore(self, campaign_id: UUID) -> Campaign:
        """Bring an archived campaign back as ``closed`` for review."""

        campaign = await self._get_campaign(campaign_id)
        if campaign.status != CampaignStatusEnum.ARCHIVED.value:
            raise InvalidCampaignTransitionError(campaign.status, "restored")
        return await self._set_status(campaign, CampaignStatusEnum.CLOSED)

    def _guard_transition(self, campaign: Campaign, target: CampaignStatusEnum) -> None:
        current = CampaignStatusEnum(campaign.status)
        if target not in self._ALLOWED_TRANSITIONS.get(current, set()):
            raise InvalidCampaignTransitionError(current.value, target.value)

    async def _set_status(self, campaign: Campaign, target: CampaignStatusEnum) -> Campaign:
        previous = campaign.status
        campaign.status = target.value
        await self._session.flush()
        logger.info(
            "Campaign status changed",
            campaign_id=str(campaign.id),
            from_status=previous,
            to_status=target.value,
        )
        return campaign

    async def _get_campaign(self, campaign_id: UUID) -> Campaign:
        campaign = await self._session.get(Campaign, campaign_id)
        if campaign is None:
            raise CampaignNotFoundError(f"Campaign {campaign_id} not found")
        await self._session.refresh(campaign)
        return campaign


__all__ = [
    "CampaignFullError",
    "CampaignInventoryController",
    "CampaignInventoryError",
    "CampaignNotFoundError",
    "InvalidCampaignError",
    "InvalidCampaignTransitionError",
]
