from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from sqlalchemy import update

from creatorcamp_api.models.application import ApplicationStatusEnum
from creatorcamp_api.models.campaign import Campaign, CampaignStatusEnum
from creatorcamp_api.observability.lifecycle import get_lifecycle_store
from creatorcamp_api.services.campaigns import (
    CampaignFullError,
    CampaignInventoryController,
    CampaignNotFoundError,
    InvalidCampaignError,
    InvalidCampaignTransitionError,
)

from factories import make_application, make_campaign, make_creator


@pytest.mark.asyncio
async def test_increment_saturates_and_flips_status(session_factory):
    async with session_factory() as session:
        campaign = await make_campaign(session, inventory=2)
        controller = CampaignInventoryController(session)

        first = await controller.increment(campaign.id)
        assert first.approved_count == 1
        assert first.status == CampaignStatusEnum.ACTIVE.value

        second = await controller.increment(campaign.id)
        assert second.approved_count == 2
        assert second.status == CampaignStatusEnum.FULL.value

        with pytest.raises(CampaignFullError):
            await controller.increment(campaign.id)

        await session.refresh(campaign)
        assert campaign.approved_count == 2

    snapshot = get_lifecycle_store().snapshot()
    assert snapshot.inventory["increment"] == 2
    assert snapshot.inventory["rejected_full"] == 1


@pytest.mark.asyncio
async def test_increment_ignores_stale_capacity_reads(session_factory):
    async with session_factory() as session:
        campaign = await make_campaign(session, inventory=1)
        await session.commit()

        # Another writer claims the last slot behind this session's back.
        await session.execute(
            update(Campaign)
            .where(Campaign.id == campaign.id)
            .values(approved_count=1)
            .execution_options(synchronize_session=False)
        )
        assert CampaignInventoryController.has_capacity(campaign)

        with pytest.raises(CampaignFullError):
            await CampaignInventoryController(session).increment(campaign.id)

        await session.refresh(campaign)
        assert campaign.approved_count == 1


@pytest.mark.asyncio
async def test_decrement_floors_at_zero_and_reopens_full_campaign(session_factory):
    async with session_factory() as session:
        campaign = await make_campaign(session, inventory=1, approved_count=1, status=CampaignStatusEnum.FULL.value)
        controller = CampaignInventoryController(session)

        reopened = await controller.decrement(campaign.id)
        assert reopened.approved_count == 0
        assert reopened.status == CampaignStatusEnum.ACTIVE.value

        floored = await controller.decrement(campaign.id)
        assert floored.approved_count == 0


@pytest.mark.asyncio
async def test_decrement_keeps_closed_campaign_closed(session_factory):
    async with session_factory() as session:
        campaign = await make_campaign(session, inventory=2, approved_count=2, status=CampaignStatusEnum.CLOSED.value)

        released = await CampaignInventoryController(session).decrement(campaign.id)

        assert released.approved_count == 1
        assert released.status == CampaignStatusEnum.CLOSED.value


@pytest.mark.asyncio
async def test_reconcile_recounts_holding_statuses(session_factory):
    async with session_factory() as session:
        campaign = await make_campaign(session, inventory=3, approved_count=0)
        for status in (
            ApplicationStatusEnum.PENDING,
            ApplicationStatusEnum.APPROVED,
            ApplicationStatusEnum.SHIPPED,
            ApplicationStatusEnum.DEADLINE_MISSED,
            ApplicationStatusEnum.REJECTED,
        ):
            creator = await make_creator(session)
            await make_application(session, creator, campaign, status=status)

        report = await CampaignInventoryController(session).reconcile(campaign.id)

        assert report["previous_count"] == 0
        assert report["approved_count"] == 3
        assert report["status"] == CampaignStatusEnum.FULL.value
        assert report["over_committed"] is False

    assert get_lifecycle_store().snapshot().inventory["reconciled_drift"] == 1


@pytest.mark.asyncio
async def test_campaign_lifecycle_transitions(session_factory):
    async with session_factory() as session:
        controller = CampaignInventoryController(session)
        campaign = await controller.create_campaign(
            name="Autumn Drop",
            brand_name="Fernwood",
            inventory=0,
            deadline=datetime.now(timezone.utc) + timedelta(days=14),
        )
        assert campaign.status == CampaignStatusEnum.DRAFT.value

        activated = await controller.activate(campaign.id)
        assert activated.status == CampaignStatusEnum.FULL.value

        closed = await controller.close(campaign.id)
        assert closed.status == CampaignStatusEnum.CLOSED.value

        archived = await controller.archive(campaign.id)
        assert archived.status == CampaignStatusEnum.ARCHIVED.value

        with pytest.raises(InvalidCampaignTransitionError):
            await controller.activate(campaign.id)

        restored = await controller.restore(campaign.id)
        assert restored.status == CampaignStatusEnum.CLOSED.value

        with pytest.raises(InvalidCampaignTransitionError):
            await controller.restore(campaign.id)


@pytest.mark.asyncio
async def test_create_campaign_validates_inputs(session_factory):
    async with session_factory() as session:
        controller = CampaignInventoryController(session)
        deadline = datetime.now(timezone.utc) + timedelta(days=7)

        with pytest.raises(InvalidCampaignError):
            await controller.create_campaign(name="x", brand_name="y", inventory=-1, deadline=deadline)
        with pytest.raises(InvalidCampaignError):
            await controller.create_campaign(
                name="x",
                brand_name="y",
                inventory=1,
                deadline=deadline,
                reward_type="paid",
            )
        with pytest.raises(CampaignNotFoundError):
            await controller.close(uuid4())
