"""Creator (influencer) accounts and their cached reputation fields."""

from __future__ import annotations

from enum import Enum
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from creatorcamp_api.db.base import Base


class CreatorTierEnum(str, Enum):
    """Derived eligibility classes; never persisted except as an upgrade signal."""

    STARTING = "starting"
    STANDARD = "standard"
    VIP = "vip"


class Creator(Base):
    """Creator profile.

    ``score``, ``penalty`` and ``restricted`` are caches of the reputation ledger and
    are only written by :class:`creatorcamp_api.services.reputation.ReputationLedger`.
    """

    __tablename__ = "creators"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    email = Column(String, nullable=False, unique=True, index=True)
    display_name = Column(String, nullable=True)
    profile_completed = Column(Boolean, nullable=False, default=False, server_default="false")
    paypal_email = Column(String, nullable=True)
    bio_link_profile_url = Column(String, nullable=True)
    amazon_storefront_url = Column(String, nullable=True)

    score = Column(Integer, nullable=False, default=0, server_default="0")
    penalty = Column(Integer, nullable=False, default=0, server_default="0")
    completed_campaigns = Column(Integer, nullable=False, default=0, server_default="0")
    restricted = Column(Boolean, nullable=False, default=False, server_default="false")
    suspended = Column(Boolean, nullable=False, default=False, server_default="false")
    suspended_at = Column(DateTime(timezone=True), nullable=True)
    blocked = Column(Boolean, nullable=False, default=False, server_default="false")
    blocked_at = Column(DateTime(timezone=True), nullable=True)
    pending_tier_upgrade = Column(String(16), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    applications = relationship("Application", back_populates="creator")
