"""Request-scoped domain service factories."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from creatorcamp_api.db.session import get_session
from creatorcamp_api.services.applications import ApplicationStateMachine
from creatorcamp_api.services.creators import CreatorAccountService
from creatorcamp_api.services.notifications import NotificationService


def get_notification_service(db: AsyncSession = Depends(get_session)) -> NotificationService:
    return NotificationService(db)


def get_state_machine(
    db: AsyncSession = Depends(get_session),
    notifications: NotificationService = Depends(get_notification_service),
) -> ApplicationStateMachine:
    return ApplicationStateMachine(db, notifications=notifications)


def get_account_service(
    db: AsyncSession = Depends(get_session),
    notifications: NotificationService = Depends(get_notification_service),
) -> CreatorAccountService:
    return CreatorAccountService(db, notifications=notifications)
