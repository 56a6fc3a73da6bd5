"""Admin actions on creator accounts."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from creatorcamp_api.models.creator import Creator
from creatorcamp_api.models.reputation import PenaltyReasonEnum, ScoreEvent, ScoreReasonEnum
from creatorcamp_api.services.errors import DomainError
from creatorcamp_api.services.notifications import NotificationService
from creatorcamp_api.services.reputation.ledger import (
    CreatorNotFoundError,
    ReputationAudit,
    ReputationEventView,
    ReputationLedger,
)


class CreatorAccountError(DomainError):
    code = "CreatorAccountError"


class AlreadySuspendedError(CreatorAccountError):
    code = "AlreadySuspended"


class NotSuspendedError(CreatorAccountError):
    code = "NotSuspended"


class AlreadyBlockedError(CreatorAccountError):
    code = "AlreadyBlocked"


class NotBlockedError(CreatorAccountError):
    code = "NotBlocked"


class CreatorAccountService:
    """Suspension, blocking and manual reputation adjustments.

    Each method commits its own transaction and rolls back on failure.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        notifications: NotificationService | None = None,
        ledger: ReputationLedger | None = None,
    ) -> None:
        self._session = session
        self._notifications = notifications
        self._ledger = ledger or ReputationLedger(session)

    async def suspend(self, creator_id: UUID, *, admin_id: str | None = None, reason: str | None = None) -> Creator:
        creator = await self._get_creator(creator_id)
        if creator.suspended:
            raise AlreadySuspendedError("Account is already suspended")
        creator.suspended = True
        creator.suspended_at = datetime.now(timezone.utc)
        await self._commit(creator, "suspended", admin_id=admin_id, reason=reason)
        return creator

    async def unsuspend(self, creator_id: UUID, *, admin_id: str | None = None) -> Creator:
        creator = await self._get_creator(creator_id)
        if not creator.suspended:
            raise NotSuspendedError("Account is not suspended")
        creator.suspended = False
        creator.suspended_at = None
        await self._commit(creator, "reinstated", admin_id=admin_id)
        return creator

    async def block(self, creator_id: UUID, *, admin_id: str | None = None, reason: str | None = None) -> Creator:
        """Block an account. Blocking supersedes and clears any suspension."""

        creator = await self._get_creator(creator_id)
        if creator.blocked:
            raise AlreadyBlockedError("Account is already blocked")
        creator.blocked = True
        creator.blocked_at = datetime.now(timezone.utc)
        creator.suspended = False
        creator.suspended_at = None
        await self._commit(creator, "blocked", admin_id=admin_id, reason=reason)
        return creator

    async def unblock(self, creator_id: UUID, *, admin_id: str | None = None) -> Creator:
        creator = await self._get_creator(creator_id)
        if not creator.blocked:
            raise NotBlockedError("Account is not blocked")
        creator.blocked = False
        creator.blocked_at = None
        await self._commit(creator, "unblocked", admin_id=admin_id)
        return creator

    async def adjust_score(
        self,
        creator_id: UUID,
        delta: int,
        *,
        admin_id: str | None = None,
        display_reason: str | None = None,
    ) -> Creator:
        try:
            await self._ledger.add_score_event(
                creator_id,
                delta,
                ScoreReasonEnum.ADMIN_MANUAL,
                display_reason=display_reason,
                created_by_admin_id=admin_id,
            )
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise
        return await self._get_creator(creator_id)

    async def adjust_penalty(
        self,
        creator_id: UUID,
        delta: int,
        *,
        admin_id: str | None = None,
        display_reason: str | None = None,
    ) -> Creator:
        try:
            await self._ledger.add_penalty_event(
                creator_id,
                delta,
                PenaltyReasonEnum.ADMIN_MANUAL,
                display_reason=display_reason,
                created_by_admin_id=admin_id,
            )
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise
        return await self._get_creator(creator_id)

    async def unlock(self, creator_id: UUID, *, admin_id: str | None = None) -> Creator:
        try:
            creator = await self._ledger.unlock(creator_id, admin_id=admin_id)
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise
        return creator

    async def get_creator(self, creator_id: UUID) -> Creator:
        return await self._get_creator(creator_id)

    async def reputation_events(self, creator_id: UUID, *, limit: int | None = None) -> list[ReputationEventView]:
        await self._get_creator(creator_id)
        return await self._ledger.list_events(creator_id, limit=limit)

    async def unseen_score_events(self, creator_id: UUID) -> list[ScoreEvent]:
        return await self._ledger.unseen_score_events(creator_id)

    async def mark_score_events_seen(self, creator_id: UUID, event_ids: list[UUID]) -> int:
        try:
            marked = await self._ledger.mark_score_events_seen(creator_id, event_ids)
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise
        return marked

    async def audit(self, creator_id: UUID) -> ReputationAudit:
        return await self._ledger.audit(creator_id)

    async def _commit(self, creator: Creator, status: str, *, admin_id: str | None, reason: str | None = None) -> None:
        await self._session.commit()
        logger.info(
            "Creator account status changed",
            creator_id=str(creator.id),
            status=status,
            admin_id=admin_id,
        )
        if self._notifications is not None:
            await self._notifications.send("account_status", creator, {"status": status, "reason": reason})

    async def _get_creator(self, creator_id: UUID) -> Creator:
        creator = await self._session.get(Creator, creator_id)
        if creator is None:
            raise CreatorNotFoundError("Influencer not found")
        await self._session.refresh(creator)
        return creator


__all__ = [
    "AlreadyBlockedError",
    "AlreadySuspendedError",
    "CreatorAccountError",
    "CreatorAccountService",
    "NotBlockedError",
    "NotSuspendedError",
]
