"""Append-only reputation ledger with cached creator balances."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from loguru import logger
from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from creatorcamp_api.core.settings import settings
from creatorcamp_api.models.creator import Creator
from creatorcamp_api.models.reputation import (
    PenaltyEvent,
    PenaltyReasonEnum,
    ScoreEvent,
    ScoreReasonEnum,
)
from creatorcamp_api.observability.lifecycle import get_lifecycle_store
from creatorcamp_api.services.errors import DomainError, NotFoundError

SCORE_MIN = 0
SCORE_MAX = 100


class ReputationError(DomainError):
    """Base exception for ledger failures."""

    code = "ReputationError"


class CreatorNotFoundError(ReputationError, NotFoundError):
    code = "CreatorNotFound"


class InvalidAdjustmentError(ReputationError):
    code = "InvalidAdjustment"


def clamp_score(value: int) -> int:
    return max(SCORE_MIN, min(SCORE_MAX, value))


def replay_score(deltas: list[int], start: int = 0) -> int:
    """Apply score deltas one at a time, clamping after each step."""

    score = start
    for delta in deltas:
        score = clamp_score(score + delta)
    return score


def replay_penalty(deltas: list[int], start: int = 0) -> int:
    penalty = start
    for delta in deltas:
        penalty = max(0, penalty + delta)
    return penalty


@dataclass(slots=True)
class ReputationEventView:
    """Merged score/penalty history entry. Penalties carry negative deltas."""

    id: UUID
    kind: str
    delta: int
    reason: str
    display_reason: str | None
    campaign_id: UUID | None
    application_id: UUID | None
    created_by_admin_id: str | None
    created_at: datetime

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "kind": self.kind,
            "delta": self.delta,
            "reason": self.reason,
            "display_reason": self.display_reason,
            "campaign_id": str(self.campaign_id) if self.campaign_id else None,
            "application_id": str(self.application_id) if self.application_id else None,
            "created_by_admin_id": self.created_by_admin_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(slots=True)
class ReputationAudit:
    creator_id: UUID
    cached_score: int
    replayed_score: int
    cached_penalty: int
    replayed_penalty: int
    score_events: int
    penalty_events: int

    @property
    def consistent(self) -> bool:
        return self.cached_score == self.replayed_score and self.cached_penalty == self.replayed_penalty

    def as_dict(self) -> dict[str, Any]:
        return {
            "creator_id": str(self.creator_id),
            "cached_score": self.cached_score,
            "replayed_score": self.replayed_score,
            "cached_penalty": self.cached_penalty,
            "replayed_penalty": self.replayed_penalty,
            "score_events": self.score_events,
            "penalty_events": self.penalty_events,
            "consistent": self.consistent,
        }


class ReputationLedger:
    """Sole writer of ``Creator.score``, ``Creator.penalty`` and ``Creator.restricted``.

    Each append inserts the immutable event row and updates the cached field with a
    single conditional ``UPDATE`` so concurrent appends cannot lose updates. The
    ledger flushes but never commits; callers own the transaction.
    """

    def __init__(self, session: AsyncSession, *, restriction_threshold: int | None = None) -> None:
        self._session = session
        self._threshold = (
            restriction_threshold
            if restriction_threshold is not None
            else settings.restriction_penalty_threshold
        )

    async def add_score_event(
        self,
        creator_id: UUID,
        delta: int,
        reason: ScoreReasonEnum | str,
        *,
        display_reason: str | None = None,
        campaign_id: UUID | None = None,
        application_id: UUID | None = None,
        created_by_admin_id: str | None = None,
    ) -> ScoreEvent:
        """Append a score event and clamp the cached score into ``[0, 100]``."""

        if delta == 0:
            raise InvalidAdjustmentError("Score adjustments require a non-zero delta")
        reason_value = _reason_value(reason)
        await self._ensure_creator(creator_id)

        event = ScoreEvent(
            creator_id=creator_id,
            campaign_id=campaign_id,
            application_id=application_id,
            delta=delta,
            reason=reason_value,
            display_reason=display_reason,
            created_by_admin_id=created_by_admin_id,
        )
        self._session.add(event)

        candidate = Creator.score + delta
        await self._session.execute(
            update(Creator)
            .where(Creator.id == creator_id)
            .values(
                score=case(
                    (candidate > SCORE_MAX, SCORE_MAX),
                    (candidate < SCORE_MIN, SCORE_MIN),
                    else_=candidate,
                )
            )
            .execution_options(synchronize_session=False)
        )
        await self._session.flush()
        get_lifecycle_store().record_ledger_event("score", reason_value)
        logger.info(
            "Recorded score event",
            creator_id=str(creator_id),
            delta=delta,
            reason=reason_value,
        )
        return event

    async def add_penalty_event(
        self,
        creator_id: UUID,
        delta: int,
        reason: PenaltyReasonEnum | str,
        *,
        display_reason: str | None = None,
        campaign_id: UUID | None = None,
        application_id: UUID | None = None,
        created_by_admin_id: str | None = None,
    ) -> PenaltyEvent:
        """Append a penalty event; floors at zero and latches ``restricted``.

        The latch is one-way here. Only :meth:`unlock` clears it.
        """

        if delta == 0:
            raise InvalidAdjustmentError("Penalty adjustments require a non-zero delta")
        reason_value = _reason_value(reason)
        await self._ensure_creator(creator_id)

        event = PenaltyEvent(
            creator_id=creator_id,
            campaign_id=campaign_id,
            application_id=application_id,
            delta=delta,
            reason=reason_value,
            display_reason=display_reason,
            created_by_admin_id=created_by_admin_id,
        )
        self._session.add(event)

        candidate = Creator.penalty + delta
        await self._session.execute(
            update(Creator)
            .where(Creator.id == creator_id)
            .values(
                penalty=case((candidate < 0, 0), else_=candidate),
                restricted=case((candidate >= self._threshold, True), else_=Creator.restricted),
            )
            .execution_options(synchronize_session=False)
        )
        await self._session.flush()
        get_lifecycle_store().record_ledger_event("penalty", reason_value)
        logger.info(
            "Recorded penalty event",
            creator_id=str(creator_id),
            delta=delta,
            reason=reason_value,
        )
        return event

    async def unlock(self, creator_id: UUID, *, admin_id: str | None = None) -> Creator:
        """Reset penalty to zero and clear the restriction latch.

        The reset is itself recorded as a ``rollback`` event of the negated amount.
        """

        creator = await self._ensure_creator(creator_id)
        await self._session.refresh(creator, attribute_names=["penalty", "restricted"])
        current_penalty = creator.penalty or 0

        if current_penalty:
            self._session.add(
                PenaltyEvent(
                    creator_id=creator_id,
                    delta=-current_penalty,
                    reason=PenaltyReasonEnum.ROLLBACK.value,
                    display_reason="Penalty reset by admin",
                    created_by_admin_id=admin_id,
                )
            )
            get_lifecycle_store().record_ledger_event("penalty", PenaltyReasonEnum.ROLLBACK.value)

        await self._session.execute(
            update(Creator)
            .where(Creator.id == creator_id)
            .values(penalty=Creator.penalty - current_penalty, restricted=False)
            .execution_options(synchronize_session=False)
        )
        await self._session.flush()
        await self._session.refresh(creator)
        logger.info(
            "Unlocked creator account",
            creator_id=str(creator_id),
            reset_penalty=current_penalty,
            admin_id=admin_id,
        )
        return creator

    async def list_events(self, creator_id: UUID, *, limit: int | None = None) -> list[ReputationEventView]:
        """Return score and penalty history merged newest-first."""

        score_rows = await self._session.execute(
            select(ScoreEvent).where(ScoreEvent.creator_id == creator_id)
        )
        penalty_rows = await self._session.execute(
            select(PenaltyEvent).where(PenaltyEvent.creator_id == creator_id)
        )
        events = [_view(row, "score", row.delta) for row in score_rows.scalars()]
        events.extend(_view(row, "penalty", -row.delta) for row in penalty_rows.scalars())
        events.sort(key=lambda item: _as_utc(item.created_at), reverse=True)
        if limit is not None:
            return events[:limit]
        return events

    async def unseen_score_events(self, creator_id: UUID) -> list[ScoreEvent]:
        """Score events the creator has not been shown yet, oldest first."""

        await self._ensure_creator(creator_id)
        result = await self._session.execute(
            select(ScoreEvent)
            .where(ScoreEvent.creator_id == creator_id, ScoreEvent.seen_at.is_(None))
            .order_by(ScoreEvent.created_at.asc())
        )
        return list(result.scalars())

    async def mark_score_events_seen(self, creator_id: UUID, event_ids: list[UUID]) -> int:
        """Stamp ``seen_at`` on the creator's own unseen events; returns the count marked.

        Ids belonging to other creators or already seen are ignored.
        """

        if not event_ids:
            return 0
        result = await self._session.execute(
            update(ScoreEvent)
            .where(
                ScoreEvent.creator_id == creator_id,
                ScoreEvent.id.in_(list(event_ids)),
                ScoreEvent.seen_at.is_(None),
            )
            .values(seen_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        await self._session.flush()
        return int(result.rowcount or 0)

    async def audit(self, creator_id: UUID) -> ReputationAudit:
        """Replay the ledger and compare it with the cached creator fields."""

        creator = await self._ensure_creator(creator_id)
        await self._session.refresh(creator)

        score_stmt = (
            select(ScoreEvent.delta)
            .where(ScoreEvent.creator_id == creator_id)
            .order_by(ScoreEvent.created_at.asc())
        )
        penalty_stmt = (
            select(PenaltyEvent.delta)
            .where(PenaltyEvent.creator_id == creator_id)
            .order_by(PenaltyEvent.created_at.asc())
        )
        score_deltas = list((await self._session.execute(score_stmt)).scalars())
        penalty_deltas = list((await self._session.execute(penalty_stmt)).scalars())

        report = ReputationAudit(
            creator_id=creator_id,
            cached_score=creator.score or 0,
            replayed_score=replay_score(score_deltas),
            cached_penalty=creator.penalty or 0,
            replayed_penalty=replay_penalty(penalty_deltas),
            score_events=len(score_deltas),
            penalty_events=len(penalty_deltas),
        )
        if not report.consistent:
            logger.warning("Reputation cache drift detected", **report.as_dict())
        return report

    async def _ensure_creator(self, creator_id: UUID) -> Creator:
        creator = await self._session.get(Creator, creator_id)
        if creator is None:
            raise CreatorNotFoundError(f"Creator {creator_id} not found")
        return creator


def _reason_value(reason: ScoreReasonEnum | PenaltyReasonEnum | str) -> str:
    return reason.value if hasattr(reason, "value") else str(reason)


def _as_utc(value: datetime | None) -> datetime:
    if value is None:
        return datetime.min.replace(tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _view(row: ScoreEvent | PenaltyEvent, kind: str, delta: int) -> ReputationEventView:
    return ReputationEventView(
        id=row.id,
        kind=kind,
        delta=delta,
        reason=row.reason,
        display_reason=row.display_reason,
        campaign_id=row.campaign_id,
        application_id=row.application_id,
        created_by_admin_id=row.created_by_admin_id,
        created_at=row.created_at,
    )


__all__ = [
    "CreatorNotFoundError",
    "InvalidAdjustmentError",
    "ReputationAudit",
    "ReputationError",
    "ReputationEventView",
    "ReputationLedger",
    "clamp_score",
    "replay_penalty",
    "replay_score",
]
