"""Creator self-service reputation and notification endpoints."""

from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from creatorcamp_api.api.dependencies.services import (
    get_account_service,
    get_notification_service,
    get_state_machine,
)
from creatorcamp_api.api.dependencies.session import require_creator_session
from creatorcamp_api.api.errors import domain_http_error
from creatorcamp_api.models.creator import Creator
from creatorcamp_api.schemas.creator import (
    CreatorReputationRead,
    MarkedCountResponse,
    MarkScoreEventsSeenRequest,
    ReputationEventRead,
    ScoreEventRead,
)
from creatorcamp_api.schemas.notification import NotificationRead
from creatorcamp_api.services.applications import ApplicationStateMachine
from creatorcamp_api.services.creators import CreatorAccountService
from creatorcamp_api.services.errors import DomainError
from creatorcamp_api.services.notifications import NotificationService


router = APIRouter(prefix="/creators/me", tags=["creators"])


@router.get("", response_model=CreatorReputationRead)
async def get_my_reputation(creator: Creator = Depends(require_creator_session)) -> CreatorReputationRead:
    return CreatorReputationRead.from_creator(creator)


@router.get("/reputation-events", response_model=List[ReputationEventRead])
async def list_my_reputation_events(
    limit: int = Query(50, ge=1, le=200),
    creator: Creator = Depends(require_creator_session),
    accounts: CreatorAccountService = Depends(get_account_service),
) -> List[ReputationEventRead]:
    events = await accounts.reputation_events(creator.id, limit=limit)
    return [ReputationEventRead.model_validate(event) for event in events]


@router.post("/tier-upgrade/acknowledge", response_model=CreatorReputationRead)
async def acknowledge_tier_upgrade(
    creator: Creator = Depends(require_creator_session),
    machine: ApplicationStateMachine = Depends(get_state_machine),
) -> CreatorReputationRead:
    try:
        updated = await machine.acknowledge_tier_upgrade(creator.id)
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return CreatorReputationRead.from_creator(updated)


@router.get("/score-events/unseen", response_model=List[ScoreEventRead])
async def list_unseen_score_events(
    creator: Creator = Depends(require_creator_session),
    accounts: CreatorAccountService = Depends(get_account_service),
) -> List[ScoreEventRead]:
    events = await accounts.unseen_score_events(creator.id)
    return [ScoreEventRead.model_validate(event) for event in events]


@router.post("/score-events/mark-seen", response_model=MarkedCountResponse)
async def mark_score_events_seen(
    payload: MarkScoreEventsSeenRequest,
    creator: Creator = Depends(require_creator_session),
    accounts: CreatorAccountService = Depends(get_account_service),
) -> MarkedCountResponse:
    marked = await accounts.mark_score_events_seen(creator.id, payload.event_ids)
    return MarkedCountResponse(marked=marked)


@router.get("/notifications", response_model=List[NotificationRead])
async def list_my_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    limit: int = Query(50, ge=1, le=200),
    creator: Creator = Depends(require_creator_session),
    notifications: NotificationService = Depends(get_notification_service),
) -> List[NotificationRead]:
    records = await notifications.list_for_creator(creator.id, unread_only=unread_only, limit=limit)
    return [NotificationRead.model_validate(record) for record in records]


@router.post("/notifications/read-all", response_model=MarkedCountResponse)
async def mark_all_notifications_read(
    creator: Creator = Depends(require_creator_session),
    notifications: NotificationService = Depends(get_notification_service),
) -> MarkedCountResponse:
    marked = await notifications.mark_all_read(creator.id)
    return MarkedCountResponse(marked=marked)


@router.post("/notifications/{notification_id}/read", response_model=NotificationRead)
async def mark_notification_read(
    notification_id: UUID,
    creator: Creator = Depends(require_creator_session),
    notifications: NotificationService = Depends(get_notification_service),
) -> NotificationRead:
    try:
        record = await notifications.mark_read(notification_id, creator_id=creator.id)
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return NotificationRead.model_validate(record)
