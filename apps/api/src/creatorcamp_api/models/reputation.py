"""Append-only reputation ledger rows."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID

from creatorcamp_api.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScoreReasonEnum(str, Enum):
    UPLOAD_SUCCESS = "upload_success"
    FIRST_UPLOAD = "first_upload"
    DELIVERY_CONFIRMED = "delivery_confirmed"
    ADMIN_MANUAL = "admin_manual"


class PenaltyReasonEnum(str, Enum):
    FIRST_GHOSTING = "first_ghosting"
    DEADLINE_MISSED = "deadline_missed"
    MISSED_REVERSAL = "missed_reversal"
    ADMIN_MANUAL = "admin_manual"
    ROLLBACK = "rollback"


class ScoreEvent(Base):
    """Immutable score adjustment. Only the ``seen_at`` display marker is ever written later."""

    __tablename__ = "score_events"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    creator_id = Column(UUID(as_uuid=True), ForeignKey("creators.id", ondelete="CASCADE"), nullable=False, index=True)
    campaign_id = Column(UUID(as_uuid=True), ForeignKey("campaigns.id", ondelete="SET NULL"), nullable=True)
    application_id = Column(UUID(as_uuid=True), ForeignKey("applications.id", ondelete="SET NULL"), nullable=True)
    delta = Column(Integer, nullable=False)
    reason = Column(String(64), nullable=False)
    display_reason = Column(String, nullable=True)
    created_by_admin_id = Column(String(255), nullable=True)
    seen_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)


class PenaltyEvent(Base):
    """Immutable penalty adjustment. Positive deltas add penalty points."""

    __tablename__ = "penalty_events"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    creator_id = Column(UUID(as_uuid=True), ForeignKey("creators.id", ondelete="CASCADE"), nullable=False, index=True)
    campaign_id = Column(UUID(as_uuid=True), ForeignKey("campaigns.id", ondelete="SET NULL"), nullable=True)
    application_id = Column(UUID(as_uuid=True), ForeignKey("applications.id", ondelete="SET NULL"), nullable=True)
    delta = Column(Integer, nullable=False)
    reason = Column(String(64), nullable=False)
    display_reason = Column(String, nullable=True)
    created_by_admin_id = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
