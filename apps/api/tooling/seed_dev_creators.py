"""Seed development creators and a demo campaign into the API database."""

from __future__ import annotations

import asyncio
import os
from datetime import datetime, timedelta, timezone
from typing import TypedDict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from creatorcamp_api.core.settings import settings
from creatorcamp_api.models.campaign import Campaign, CampaignStatusEnum
from creatorcamp_api.models.creator import Creator
from creatorcamp_api.models.reputation import ScoreReasonEnum
from creatorcamp_api.services.reputation.ledger import ReputationLedger

SEED_ADMIN_ID = "dev-seed"


class SeedCreator(TypedDict):
    email: str
    display_name: str
    score: int
    completed_campaigns: int


DEV_CREATORS: list[SeedCreator] = [
    {
        "email": os.getenv("DEV_STARTING_CREATOR_EMAIL", "starting@creatorcamp.dev").lower(),
        "display_name": "Starting QA",
        "score": 0,
        "completed_campaigns": 0,
    },
    {
        "email": os.getenv("DEV_STANDARD_CREATOR_EMAIL", "standard@creatorcamp.dev").lower(),
        "display_name": "Standard QA",
        "score": 60,
        "completed_campaigns": 3,
    },
    {
        "email": os.getenv("DEV_VIP_CREATOR_EMAIL", "vip@creatorcamp.dev").lower(),
        "display_name": "VIP QA",
        "score": 90,
        "completed_campaigns": 8,
    },
]

DEMO_CAMPAIGN_NAME = "Demo Gifting Campaign"


async def seed_creators(session: AsyncSession) -> None:
    ledger = ReputationLedger(session)
    for creator in DEV_CREATORS:
        with session.no_autoflush:
            existing = await session.execute(select(Creator).where(Creator.email == creator["email"]))
        record = existing.scalar_one_or_none()

        if record:
            record.display_name = creator["display_name"]
            record.completed_campaigns = creator["completed_campaigns"]
            record.profile_completed = True
        else:
            record = Creator(
                email=creator["email"],
                display_name=creator["display_name"],
                profile_completed=True,
                completed_campaigns=creator["completed_campaigns"],
            )
            session.add(record)
        await session.flush()
        await session.refresh(record)

        delta = creator["score"] - (record.score or 0)
        if delta:
            await ledger.add_score_event(
                record.id,
                delta,
                ScoreReasonEnum.ADMIN_MANUAL,
                display_reason="Development seed",
                created_by_admin_id=SEED_ADMIN_ID,
            )

    existing_campaign = await session.execute(select(Campaign).where(Campaign.name == DEMO_CAMPAIGN_NAME))
    if existing_campaign.scalar_one_or_none() is None:
        session.add(
            Campaign(
                name=DEMO_CAMPAIGN_NAME,
                brand_name="Acme",
                inventory=5,
                status=CampaignStatusEnum.ACTIVE.value,
                deadline=datetime.now(timezone.utc) + timedelta(days=30),
            )
        )
    await session.commit()


async def main() -> None:
    engine = create_async_engine(settings.database_url, future=True)
    session_factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    try:
        async with session_factory() as session:
            await seed_creators(session)
        print("Development creators ready")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
