"""Campaign definitions and their capacity counters."""

from __future__ import annotations

from enum import Enum
from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from creatorcamp_api.db.base import Base


class CampaignStatusEnum(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    FULL = "full"
    CLOSED = "closed"
    ARCHIVED = "archived"


class CampaignTypeEnum(str, Enum):
    GIFTING = "gifting"
    BASIC = "basic"
    LINK_IN_BIO = "link_in_bio"
    AMAZON_VIDEO_UPLOAD = "amazon_video_upload"


class CampaignRewardTypeEnum(str, Enum):
    GIFT = "gift"
    PAID = "paid"


class Campaign(Base):
    """Brand campaign with a fixed product inventory.

    ``approved_count`` caches the number of applications in approved-or-later
    statuses. It is only mutated by the inventory controller.
    """

    __tablename__ = "campaigns"
    __table_args__ = (
        CheckConstraint("approved_count >= 0", name="ck_campaigns_approved_count_non_negative"),
        CheckConstraint("inventory >= 0", name="ck_campaigns_inventory_non_negative"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String, nullable=False)
    brand_name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    campaign_type = Column(
        String(32),
        nullable=False,
        default=CampaignTypeEnum.GIFTING.value,
        server_default=CampaignTypeEnum.GIFTING.value,
    )
    reward_type = Column(
        String(16),
        nullable=False,
        default=CampaignRewardTypeEnum.GIFT.value,
        server_default=CampaignRewardTypeEnum.GIFT.value,
    )
    reward_amount = Column(Integer, nullable=True)
    inventory = Column(Integer, nullable=False)
    approved_count = Column(Integer, nullable=False, default=0, server_default="0")
    application_sequence = Column(Integer, nullable=False, default=0, server_default="0")
    status = Column(
        String(16),
        nullable=False,
        default=CampaignStatusEnum.DRAFT.value,
        server_default=CampaignStatusEnum.DRAFT.value,
    )
    application_deadline = Column(DateTime(timezone=True), nullable=True)
    deadline = Column(DateTime(timezone=True), nullable=False)
    created_by_admin_id = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    applications = relationship("Application", back_populates="campaign")

    @property
    def is_paid(self) -> bool:
        return self.reward_type == CampaignRewardTypeEnum.PAID.value
