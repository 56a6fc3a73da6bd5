"""Ephemeral support chat rooms."""

from __future__ import annotations

from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, DateTime, Enum as SqlEnum, ForeignKey, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID

from creatorcamp_api.db.base import Base


class ChatRoomStatusEnum(str, Enum):
    ACTIVE = "active"
    ENDED = "ended"
    EXPIRED = "expired"


class ChatRoom(Base):
    """Support conversation between a creator and the admin team.

    Message handling lives outside this service; the lifecycle reaper owns expiry.
    """

    __tablename__ = "chat_rooms"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    creator_id = Column(UUID(as_uuid=True), ForeignKey("creators.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(
        SqlEnum(
            ChatRoomStatusEnum,
            name="chat_room_status_enum",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=ChatRoomStatusEnum.ACTIVE,
    )
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    admin_unread_count = Column(Integer, nullable=False, default=0, server_default="0")
    ended_at = Column(DateTime(timezone=True), nullable=True)
    ended_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
