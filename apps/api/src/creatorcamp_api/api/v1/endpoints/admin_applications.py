"""Admin review and fulfilment endpoints for creator applications."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from creatorcamp_api.api.dependencies.services import get_state_machine
from creatorcamp_api.api.dependencies.session import require_admin_session
from creatorcamp_api.api.errors import domain_http_error
from creatorcamp_api.api.v1.endpoints.applications import serialize_transition
from creatorcamp_api.schemas.application import (
    ApplicationTransitionResponse,
    BulkApproveRequest,
    BulkApproveResponse,
    MarkUploadedRequest,
    ShipRequest,
    UndoMissedRequest,
)
from creatorcamp_api.services.applications import ApplicationStateMachine
from creatorcamp_api.services.errors import DomainError


router = APIRouter(prefix="/admin/applications", tags=["admin-applications"])


@router.post("/bulk-approve", response_model=BulkApproveResponse)
async def bulk_approve_applications(
    payload: BulkApproveRequest,
    admin_id: str = Depends(require_admin_session),
    machine: ApplicationStateMachine = Depends(get_state_machine),
) -> BulkApproveResponse:
    result = await machine.bulk_approve(payload.application_ids, admin_id=admin_id)
    return BulkApproveResponse.model_validate(result)


@router.post("/{application_id}/approve", response_model=ApplicationTransitionResponse)
async def approve_application(
    application_id: UUID,
    admin_id: str = Depends(require_admin_session),
    machine: ApplicationStateMachine = Depends(get_state_machine),
) -> ApplicationTransitionResponse:
    try:
        transition = await machine.approve(application_id, admin_id=admin_id)
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return serialize_transition(transition)


@router.post("/{application_id}/reject", response_model=ApplicationTransitionResponse)
async def reject_application(
    application_id: UUID,
    admin_id: str = Depends(require_admin_session),
    machine: ApplicationStateMachine = Depends(get_state_machine),
) -> ApplicationTransitionResponse:
    try:
        transition = await machine.reject(application_id, admin_id=admin_id)
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return serialize_transition(transition)


@router.post("/{application_id}/revoke", response_model=ApplicationTransitionResponse)
async def revoke_application(
    application_id: UUID,
    admin_id: str = Depends(require_admin_session),
    machine: ApplicationStateMachine = Depends(get_state_machine),
) -> ApplicationTransitionResponse:
    try:
        transition = await machine.revoke(application_id, admin_id=admin_id)
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return serialize_transition(transition)


@router.post("/{application_id}/ship", response_model=ApplicationTransitionResponse)
async def ship_application(
    application_id: UUID,
    payload: ShipRequest,
    admin_id: str = Depends(require_admin_session),
    machine: ApplicationStateMachine = Depends(get_state_machine),
) -> ApplicationTransitionResponse:
    try:
        transition = await machine.ship(
            application_id,
            courier=payload.courier,
            tracking_number=payload.tracking_number,
            tracking_url=payload.tracking_url,
            admin_id=admin_id,
        )
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return serialize_transition(transition)


@router.post("/{application_id}/delivered", response_model=ApplicationTransitionResponse)
async def mark_application_delivered(
    application_id: UUID,
    admin_id: str = Depends(require_admin_session),
    machine: ApplicationStateMachine = Depends(get_state_machine),
) -> ApplicationTransitionResponse:
    try:
        transition = await machine.mark_delivered(application_id, admin_id=admin_id)
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return serialize_transition(transition)


@router.post("/{application_id}/undo-delivered", response_model=ApplicationTransitionResponse)
async def undo_application_delivered(
    application_id: UUID,
    admin_id: str = Depends(require_admin_session),
    machine: ApplicationStateMachine = Depends(get_state_machine),
) -> ApplicationTransitionResponse:
    try:
        transition = await machine.undo_delivered(application_id, admin_id=admin_id)
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return serialize_transition(transition)


@router.post("/{application_id}/uploaded", response_model=ApplicationTransitionResponse)
async def mark_application_uploaded(
    application_id: UUID,
    payload: MarkUploadedRequest,
    admin_id: str = Depends(require_admin_session),
    machine: ApplicationStateMachine = Depends(get_state_machine),
) -> ApplicationTransitionResponse:
    try:
        transition = await machine.mark_uploaded(
            application_id,
            points=payload.points,
            content_url=payload.content_url,
            admin_id=admin_id,
        )
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return serialize_transition(transition)


@router.post("/{application_id}/missed", response_model=ApplicationTransitionResponse)
async def mark_application_missed(
    application_id: UUID,
    admin_id: str = Depends(require_admin_session),
    machine: ApplicationStateMachine = Depends(get_state_machine),
) -> ApplicationTransitionResponse:
    try:
        transition = await machine.mark_missed(application_id, admin_id=admin_id)
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return serialize_transition(transition)


@router.post("/{application_id}/undo-missed", response_model=ApplicationTransitionResponse)
async def undo_application_missed(
    application_id: UUID,
    payload: UndoMissedRequest,
    admin_id: str = Depends(require_admin_session),
    machine: ApplicationStateMachine = Depends(get_state_machine),
) -> ApplicationTransitionResponse:
    try:
        transition = await machine.undo_missed(application_id, reason=payload.reason, admin_id=admin_id)
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return serialize_transition(transition)


@router.post("/{application_id}/complete", response_model=ApplicationTransitionResponse)
async def complete_application(
    application_id: UUID,
    admin_id: str = Depends(require_admin_session),
    machine: ApplicationStateMachine = Depends(get_state_machine),
) -> ApplicationTransitionResponse:
    try:
        transition = await machine.complete(application_id, admin_id=admin_id)
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return serialize_transition(transition)
