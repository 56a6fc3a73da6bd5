"""Creator-facing application endpoints."""

from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from creatorcamp_api.api.dependencies.services import get_state_machine
from creatorcamp_api.api.dependencies.session import require_creator_session
from creatorcamp_api.api.errors import domain_http_error
from creatorcamp_api.models.creator import Creator
from creatorcamp_api.schemas.application import (
    ApplicationCreate,
    ApplicationRead,
    ApplicationTransitionResponse,
    SubmitContentRequest,
)
from creatorcamp_api.services.applications import ApplicationStateMachine, ApplicationTransition
from creatorcamp_api.services.errors import DomainError


router = APIRouter(prefix="/applications", tags=["applications"])


def serialize_transition(transition: ApplicationTransition) -> ApplicationTransitionResponse:
    return ApplicationTransitionResponse(
        operation=transition.operation,
        previous_status=transition.previous_status,
        application=ApplicationRead.model_validate(transition.application),
        details=transition.details,
    )


@router.post("", response_model=ApplicationTransitionResponse, status_code=status.HTTP_201_CREATED)
async def create_application(
    payload: ApplicationCreate,
    creator: Creator = Depends(require_creator_session),
    machine: ApplicationStateMachine = Depends(get_state_machine),
) -> ApplicationTransitionResponse:
    try:
        transition = await machine.create(creator_id=creator.id, campaign_id=payload.campaign_id)
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return serialize_transition(transition)


@router.get("", response_model=List[ApplicationRead])
async def list_applications(
    include_dismissed: bool = Query(False, alias="includeDismissed"),
    creator: Creator = Depends(require_creator_session),
    machine: ApplicationStateMachine = Depends(get_state_machine),
) -> List[ApplicationRead]:
    applications = await machine.list_for_creator(creator.id, include_dismissed=include_dismissed)
    return [ApplicationRead.model_validate(application) for application in applications]


@router.delete("/{application_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_application(
    application_id: UUID,
    creator: Creator = Depends(require_creator_session),
    machine: ApplicationStateMachine = Depends(get_state_machine),
) -> Response:
    try:
        await machine.cancel(application_id, creator_id=creator.id)
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{application_id}/dismiss", response_model=ApplicationTransitionResponse)
async def dismiss_application(
    application_id: UUID,
    creator: Creator = Depends(require_creator_session),
    machine: ApplicationStateMachine = Depends(get_state_machine),
) -> ApplicationTransitionResponse:
    try:
        transition = await machine.dismiss(application_id, creator_id=creator.id)
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return serialize_transition(transition)


@router.post("/{application_id}/confirm-delivery", response_model=ApplicationTransitionResponse)
async def confirm_delivery(
    application_id: UUID,
    creator: Creator = Depends(require_creator_session),
    machine: ApplicationStateMachine = Depends(get_state_machine),
) -> ApplicationTransitionResponse:
    try:
        transition = await machine.confirm_delivery(application_id, creator_id=creator.id)
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return serialize_transition(transition)


@router.post("/{application_id}/submit-content", response_model=ApplicationTransitionResponse)
async def submit_content(
    application_id: UUID,
    payload: SubmitContentRequest,
    creator: Creator = Depends(require_creator_session),
    machine: ApplicationStateMachine = Depends(get_state_machine),
) -> ApplicationTransitionResponse:
    try:
        transition = await machine.submit_content(
            application_id,
            creator_id=creator.id,
            video_url=payload.video_url,
            bio_link_url=payload.bio_link_url,
            amazon_storefront_url=payload.amazon_storefront_url,
        )
    except DomainError as exc:
        raise domain_http_error(exc) from exc
    return serialize_transition(transition)
