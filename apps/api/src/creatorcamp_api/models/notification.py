"""In-app notification records mirrored from transactional messages."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, ForeignKey, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from creatorcamp_api.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationChannelEnum(str, Enum):
    EMAIL = "email"
    IN_APP = "in_app"
    BOTH = "both"


class NotificationStatusEnum(str, Enum):
    SENT = "sent"
    RECORDED = "recorded"
    FAILED = "failed"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    creator_id = Column(UUID(as_uuid=True), ForeignKey("creators.id", ondelete="CASCADE"), nullable=False, index=True)
    campaign_id = Column(UUID(as_uuid=True), ForeignKey("campaigns.id", ondelete="SET NULL"), nullable=True)
    application_id = Column(UUID(as_uuid=True), ForeignKey("applications.id", ondelete="SET NULL"), nullable=True)
    type = Column(String(64), nullable=False)
    channel = Column(String(16), nullable=False, default=NotificationChannelEnum.IN_APP.value)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String(16), nullable=False, default=NotificationStatusEnum.RECORDED.value)
    error_message = Column(Text, nullable=True)
    metadata_json = Column("metadata", JSON, nullable=False, default=dict)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
