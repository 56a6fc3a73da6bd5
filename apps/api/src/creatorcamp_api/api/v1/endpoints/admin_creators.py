"""Admin account moderation and manual reputation endpoints."""

from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from creatorcamp_api.api.dependencies.services import get_account_service
from creatorcamp_api.api.dependencies.session import require_admin_session
from creatorcamp_api.api.errors import domain_http_error
from creatorcamp_api.schemas.creator import (
    AccountActionRequest,
    CreatorReputationRead,
    ReputationAdjustmentRequest,
    ReputationAuditRead,
    ReputationEventRead,
)
from creatorcamp_api.services.creators import CreatorAccountService
from creatorcamp_api.services.errors import DomainError


router = APIRouter(prefix="/admin/creators", tags=["admin-creators"])


@router.get("/{creator_id}", response_model=CreatorReputationRead)
async def get_creator_profile(
    creator_id: UUID,
    _: str = Depends(require_admin_session),
    accounts: CreatorAccountService = Depends(get_account_service),
) -> CreatorReputationRead:
    try:
        creator = await accounts.get_creator(creator_id)
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return CreatorReputationRead.from_creator(creator)


@router.post("/{creator_id}/suspend", response_model=CreatorReputationRead)
async def suspend_creator(
    creator_id: UUID,
    payload: AccountActionRequest | None = None,
    admin_id: str = Depends(require_admin_session),
    accounts: CreatorAccountService = Depends(get_account_service),
) -> CreatorReputationRead:
    try:
        creator = await accounts.suspend(creator_id, admin_id=admin_id, reason=payload.reason if payload else None)
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return CreatorReputationRead.from_creator(creator)


@router.post("/{creator_id}/unsuspend", response_model=CreatorReputationRead)
async def unsuspend_creator(
    creator_id: UUID,
    admin_id: str = Depends(require_admin_session),
    accounts: CreatorAccountService = Depends(get_account_service),
) -> CreatorReputationRead:
    try:
        creator = await accounts.unsuspend(creator_id, admin_id=admin_id)
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return CreatorReputationRead.from_creator(creator)


@router.post("/{creator_id}/block", response_model=CreatorReputationRead)
async def block_creator(
    creator_id: UUID,
    payload: AccountActionRequest | None = None,
    admin_id: str = Depends(require_admin_session),
    accounts: CreatorAccountService = Depends(get_account_service),
) -> CreatorReputationRead:
    try:
        creator = await accounts.block(creator_id, admin_id=admin_id, reason=payload.reason if payload else None)
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return CreatorReputationRead.from_creator(creator)


@router.post("/{creator_id}/unblock", response_model=CreatorReputationRead)
async def unblock_creator(
    creator_id: UUID,
    admin_id: str = Depends(require_admin_session),
    accounts: CreatorAccountService = Depends(get_account_service),
) -> CreatorReputationRead:
    try:
        creator = await accounts.unblock(creator_id, admin_id=admin_id)
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return CreatorReputationRead.from_creator(creator)


@router.post("/{creator_id}/score", response_model=CreatorReputationRead)
async def adjust_creator_score(
    creator_id: UUID,
    payload: ReputationAdjustmentRequest,
    admin_id: str = Depends(require_admin_session),
    accounts: CreatorAccountService = Depends(get_account_service),
) -> CreatorReputationRead:
    try:
        creator = await accounts.adjust_score(
            creator_id,
            payload.delta,
            admin_id=admin_id,
            display_reason=payload.display_reason,
        )
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return CreatorReputationRead.from_creator(creator)


@router.post("/{creator_id}/penalty", response_model=CreatorReputationRead)
async def adjust_creator_penalty(
    creator_id: UUID,
    payload: ReputationAdjustmentRequest,
    admin_id: str = Depends(require_admin_session),
    accounts: CreatorAccountService = Depends(get_account_service),
) -> CreatorReputationRead:
    try:
        creator = await accounts.adjust_penalty(
            creator_id,
            payload.delta,
            admin_id=admin_id,
            display_reason=payload.display_reason,
        )
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return CreatorReputationRead.from_creator(creator)


@router.post("/{creator_id}/unlock", response_model=CreatorReputationRead)
async def unlock_creator(
    creator_id: UUID,
    admin_id: str = Depends(require_admin_session),
    accounts: CreatorAccountService = Depends(get_account_service),
) -> CreatorReputationRead:
    try:
        creator = await accounts.unlock(creator_id, admin_id=admin_id)
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return CreatorReputationRead.from_creator(creator)


@router.get("/{creator_id}/reputation-events", response_model=List[ReputationEventRead])
async def list_creator_reputation_events(
    creator_id: UUID,
    limit: int = Query(50, ge=1, le=200),
    _: str = Depends(require_admin_session),
    accounts: CreatorAccountService = Depends(get_account_service),
) -> List[ReputationEventRead]:
    try:
        events = await accounts.reputation_events(creator_id, limit=limit)
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return [ReputationEventRead.model_validate(event) for event in events]


@router.get("/{creator_id}/reputation-audit", response_model=ReputationAuditRead)
async def audit_creator_reputation(
    creator_id: UUID,
    _: str = Depends(require_admin_session),
    accounts: CreatorAccountService = Depends(get_account_service),
) -> ReputationAuditRead:
    try:
        audit = await accounts.audit(creator_id)
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return ReputationAuditRead.model_validate(audit)
