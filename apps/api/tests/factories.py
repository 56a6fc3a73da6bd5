"""Row builders shared by the test modules."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from creatorcamp_api.models.application import Application, ApplicationStatusEnum
from creatorcamp_api.models.campaign import Campaign, CampaignStatusEnum
from creatorcamp_api.models.creator import Creator


async def make_creator(session: AsyncSession, **overrides) -> Creator:
    values = {
        "email": f"creator-{uuid4().hex[:10]}@example.com",
        "display_name": "Test Creator",
        "profile_completed": True,
        "score": 0,
        "penalty": 0,
        "completed_campaigns": 0,
    }
    values.update(overrides)
    creator = Creator(**values)
    session.add(creator)
    await session.flush()
    return creator


async def make_campaign(session: AsyncSession, **overrides) -> Campaign:
    values = {
        "name": "Spring Glow",
        "brand_name": "Lumen",
        "inventory": 3,
        "approved_count": 0,
        "application_sequence": 0,
        "status": CampaignStatusEnum.ACTIVE.value,
        "deadline": datetime.now(timezone.utc) + timedelta(days=30),
    }
    values.update(overrides)
    campaign = Campaign(**values)
    session.add(campaign)
    await session.flush()
    return campaign


async def make_application(
    session: AsyncSession,
    creator: Creator,
    campaign: Campaign,
    *,
    status: ApplicationStatusEnum = ApplicationStatusEnum.PENDING,
    first_time: bool = False,
    sequence_number: int | None = None,
) -> Application:
    if sequence_number is None:
        campaign.application_sequence = (campaign.application_sequence or 0) + 1
        sequence_number = campaign.application_sequence
    application = Application(
        creator_id=creator.id,
        campaign_id=campaign.id,
        sequence_number=sequence_number,
        status=status,
        first_time=first_time,
        applied_at=datetime.now(timezone.utc),
    )
    session.add(application)
    await session.flush()
    return application
