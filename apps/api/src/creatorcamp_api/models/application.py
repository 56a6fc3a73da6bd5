"""Creator applications to campaigns and their shipping records."""

from __future__ import annotations

from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from creatorcamp_api.db.base import Base


def _enum_values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class ApplicationStatusEnum(str, Enum):
    """Positions in the application lifecycle."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    UPLOADED = "uploaded"
    COMPLETED = "completed"
    DEADLINE_MISSED = "deadline_missed"


# Statuses that hold an inventory slot. A missed deadline keeps the shipped product.
INVENTORY_HOLDING_STATUSES = frozenset(
    {
        ApplicationStatusEnum.APPROVED,
        ApplicationStatusEnum.SHIPPED,
        ApplicationStatusEnum.DELIVERED,
        ApplicationStatusEnum.UPLOADED,
        ApplicationStatusEnum.COMPLETED,
        ApplicationStatusEnum.DEADLINE_MISSED,
    }
)

# Statuses that no longer count against the starting-tier concurrency limit.
INACTIVE_STATUSES = frozenset(
    {
        ApplicationStatusEnum.REJECTED,
        ApplicationStatusEnum.UPLOADED,
        ApplicationStatusEnum.COMPLETED,
        ApplicationStatusEnum.DEADLINE_MISSED,
    }
)

DISMISSABLE_STATUSES = frozenset(
    {
        ApplicationStatusEnum.REJECTED,
        ApplicationStatusEnum.UPLOADED,
        ApplicationStatusEnum.COMPLETED,
    }
)

# Statuses that count as a finished campaign for first-time and ghosting checks.
FINISHED_STATUSES = frozenset({ApplicationStatusEnum.UPLOADED, ApplicationStatusEnum.COMPLETED})


class DeliveryConfirmedByEnum(str, Enum):
    ADMIN = "admin"
    CREATOR = "creator"


class ShippingStatusEnum(str, Enum):
    PENDING = "pending"
    SHIPPED = "shipped"
    DELIVERED = "delivered"


class Application(Base):
    """A creator's application to a single campaign."""

    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("creator_id", "campaign_id", name="uq_applications_creator_campaign"),
        UniqueConstraint("campaign_id", "sequence_number", name="uq_applications_campaign_sequence"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    campaign_id = Column(UUID(as_uuid=True), ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    creator_id = Column(UUID(as_uuid=True), ForeignKey("creators.id", ondelete="CASCADE"), nullable=False, index=True)
    sequence_number = Column(Integer, nullable=False)
    status = Column(
        SqlEnum(
            ApplicationStatusEnum,
            name="application_status_enum",
            values_callable=_enum_values,
        ),
        nullable=False,
        default=ApplicationStatusEnum.PENDING,
    )
    first_time = Column(Boolean, nullable=False, default=False, server_default="false")
    points_awarded = Column(Integer, nullable=True)
    content_url = Column(String, nullable=True)
    delivery_confirmed_by = Column(String(16), nullable=True)
    content_submitted_at = Column(DateTime(timezone=True), nullable=True)
    bio_link_url = Column(String, nullable=True)
    amazon_storefront_url = Column(String, nullable=True)

    applied_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    shipped_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    uploaded_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    deadline_missed_at = Column(DateTime(timezone=True), nullable=True)
    dismissed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    campaign = relationship("Campaign", back_populates="applications")
    creator = relationship("Creator", back_populates="applications")
    shipping = relationship(
        "Shipping",
        back_populates="application",
        uselist=False,
        cascade="all, delete-orphan",
    )


class Shipping(Base):
    """Shipment of the campaign product to an approved creator."""

    __tablename__ = "shipping"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    application_id = Column(
        UUID(as_uuid=True),
        ForeignKey("applications.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    status = Column(
        String(16),
        nullable=False,
        default=ShippingStatusEnum.PENDING.value,
        server_default=ShippingStatusEnum.PENDING.value,
    )
    courier = Column(String, nullable=True)
    tracking_number = Column(String, nullable=True)
    tracking_url = Column(String, nullable=True)
    delivery_confirmed_by = Column(String(16), nullable=True)
    shipped_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    application = relationship("Application", back_populates="shipping")
