"""Admin campaign lifecycle and inventory endpoints."""

from __future__ import annotations

from typing import Any, Awaitable, List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from creatorcamp_api.api.dependencies.session import require_admin_session
from creatorcamp_api.api.errors import domain_http_error
from creatorcamp_api.db.session import get_session
from creatorcamp_api.models.application import Application, ApplicationStatusEnum
from creatorcamp_api.models.campaign import Campaign
from creatorcamp_api.schemas.application import ApplicationRead
from creatorcamp_api.schemas.campaign import CampaignCreate, CampaignRead, CampaignReconcileResponse
from creatorcamp_api.services.campaigns import CampaignInventoryController, CampaignNotFoundError
from creatorcamp_api.services.errors import DomainError


router = APIRouter(prefix="/admin/campaigns", tags=["admin-campaigns"])


async def _commit_or_raise(db: AsyncSession, operation: Awaitable[Any]) -> Any:
    try:
        outcome = await operation
        await db.commit()
    except DomainError as exc:
        await db.rollback()
        raise domain_http_error(exc) from exc
    return outcome


@router.post("", response_model=CampaignRead, status_code=status.HTTP_201_CREATED)
async def create_campaign(
    payload: CampaignCreate,
    admin_id: str = Depends(require_admin_session),
    db: AsyncSession = Depends(get_session),
) -> CampaignRead:
    controller = CampaignInventoryController(db)
    campaign = await _commit_or_raise(
        db,
        controller.create_campaign(
            name=payload.name,
            brand_name=payload.brand_name,
            description=payload.description,
            campaign_type=payload.campaign_type,
            reward_type=payload.reward_type,
            reward_amount=payload.reward_amount,
            inventory=payload.inventory,
            application_deadline=payload.application_deadline,
            deadline=payload.deadline,
            created_by_admin_id=admin_id,
        ),
    )
    return CampaignRead.model_validate(campaign)


@router.get("/{campaign_id}", response_model=CampaignRead)
async def get_campaign(
    campaign_id: UUID,
    _: str = Depends(require_admin_session),
    db: AsyncSession = Depends(get_session),
) -> CampaignRead:
    campaign = await db.get(Campaign, campaign_id)
    if campaign is None:
        raise domain_http_error(CampaignNotFoundError(f"Campaign {campaign_id} not found"))
    return CampaignRead.model_validate(campaign)


@router.get("/{campaign_id}/applications", response_model=List[ApplicationRead])
async def list_campaign_applications(
    campaign_id: UUID,
    status_filter: ApplicationStatusEnum | None = Query(None, alias="status"),
    _: str = Depends(require_admin_session),
    db: AsyncSession = Depends(get_session),
) -> List[ApplicationRead]:
    stmt = (
        select(Application)
        .where(Application.campaign_id == campaign_id)
        .order_by(Application.sequence_number.asc())
    )
    if status_filter is not None:
        stmt = stmt.where(Application.status == status_filter)
    result = await db.execute(stmt)
    return [ApplicationRead.model_validate(application) for application in result.scalars()]


@router.post("/{campaign_id}/activate", response_model=CampaignRead)
async def activate_campaign(
    campaign_id: UUID,
    _: str = Depends(require_admin_session),
    db: AsyncSession = Depends(get_session),
) -> CampaignRead:
    campaign = await _commit_or_raise(db, CampaignInventoryController(db).activate(campaign_id))
    return CampaignRead.model_validate(campaign)


@router.post("/{campaign_id}/close", response_model=CampaignRead)
async def close_campaign(
    campaign_id: UUID,
    _: str = Depends(require_admin_session),
    db: AsyncSession = Depends(get_session),
) -> CampaignRead:
    campaign = await _commit_or_raise(db, CampaignInventoryController(db).close(campaign_id))
    return CampaignRead.model_validate(campaign)


@router.post("/{campaign_id}/archive", response_model=CampaignRead)
async def archive_campaign(
    campaign_id: UUID,
    _: str = Depends(require_admin_session),
    db: AsyncSession = Depends(get_session),
) -> CampaignRead:
    campaign = await _commit_or_raise(db, CampaignInventoryController(db).archive(campaign_id))
    return CampaignRead.model_validate(campaign)


@router.post("/{campaign_id}/restore", response_model=CampaignRead)
async def restore_campaign(
    campaign_id: UUID,
    _: str = Depends(require_admin_session),
    db: AsyncSession = Depends(get_session),
) -> CampaignRead:
    campaign = await _commit_or_raise(db, CampaignInventoryController(db).restore(campaign_id))
    return CampaignRead.model_validate(campaign)


@router.post("/{campaign_id}/reconcile", response_model=CampaignReconcileResponse)
async def reconcile_campaign_inventory(
    campaign_id: UUID,
    _: str = Depends(require_admin_session),
    db: AsyncSession = Depends(get_session),
) -> CampaignReconcileResponse:
    report = await _commit_or_raise(db, CampaignInventoryController(db).reconcile(campaign_id))
    return CampaignReconcileResponse.model_validate(report)
