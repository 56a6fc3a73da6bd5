"""Creator campaign core tables.

Revision ID: 20261019_01
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "20261019_01"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


APPLICATION_STATUSES = (
    "pending",
    "approved",
    "rejected",
    "shipped",
    "delivered",
    "uploaded",
    "completed",
    "deadline_missed",
)
CHAT_ROOM_STATUSES = ("active", "ended", "expired")


def upgrade() -> None:
    application_status = sa.Enum(*APPLICATION_STATUSES, name="application_status_enum")
    chat_room_status = sa.Enum(*CHAT_ROOM_STATUSES, name="chat_room_status_enum")

    op.create_table(
        "creators",
        sa.Column("id", sa.dialects.postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=True),
        sa.Column("profile_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("paypal_email", sa.String(), nullable=True),
        sa.Column("bio_link_profile_url", sa.String(), nullable=True),
        sa.Column("amazon_storefront_url", sa.String(), nullable=True),
        sa.Column("score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("penalty", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("completed_campaigns", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("restricted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("suspended", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("suspended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("blocked", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("blocked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("pending_tier_upgrade", sa.String(length=16), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_creators_email", "creators", ["email"], unique=True)

    op.create_table(
        "campaigns",
        sa.Column("id", sa.dialects.postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("brand_name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("campaign_type", sa.String(length=32), nullable=False, server_default="gifting"),
        sa.Column("reward_type", sa.String(length=16), nullable=False, server_default="gift"),
        sa.Column("reward_amount", sa.Integer(), nullable=True),
        sa.Column("inventory", sa.Integer(), nullable=False),
        sa.Column("approved_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("application_sequence", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="draft"),
        sa.Column("application_deadline", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_by_admin_id", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("approved_count >= 0", name="ck_campaigns_approved_count_non_negative"),
        sa.CheckConstraint("inventory >= 0", name="ck_campaigns_inventory_non_negative"),
    )

    op.create_table(
        "applications",
        sa.Column("id", sa.dialects.postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("campaign_id", sa.dialects.postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("creator_id", sa.dialects.postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("sequence_number", sa.Integer(), nullable=False),
        sa.Column("status", application_status, nullable=False, server_default="pending"),
        sa.Column("first_time", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("points_awarded", sa.Integer(), nullable=True),
        sa.Column("content_url", sa.String(), nullable=True),
        sa.Column("delivery_confirmed_by", sa.String(length=16), nullable=True),
        sa.Column("content_submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("bio_link_url", sa.String(), nullable=True),
        sa.Column("amazon_storefront_url", sa.String(), nullable=True),
        sa.Column("applied_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("shipped_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deadline_missed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("dismissed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["creator_id"], ["creators.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("creator_id", "campaign_id", name="uq_applications_creator_campaign"),
        sa.UniqueConstraint("campaign_id", "sequence_number", name="uq_applications_campaign_sequence"),
    )
    op.create_index("ix_applications_campaign_id", "applications", ["campaign_id"])
    op.create_index("ix_applications_creator_id", "applications", ["creator_id"])

    op.create_table(
        "shipping",
        sa.Column("id", sa.dialects.postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("application_id", sa.dialects.postgresql.UUID(as_uuid=True), nullable=False, unique=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("courier", sa.String(), nullable=True),
        sa.Column("tracking_number", sa.String(), nullable=True),
        sa.Column("tracking_url", sa.String(), nullable=True),
        sa.Column("delivery_confirmed_by", sa.String(length=16), nullable=True),
        sa.Column("shipped_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["application_id"], ["applications.id"], ondelete="CASCADE"),
    )

    for table in ("score_events", "penalty_events"):
        op.create_table(
            table,
            sa.Column("id", sa.dialects.postgresql.UUID(as_uuid=True), primary_key=True),
            sa.Column("creator_id", sa.dialects.postgresql.UUID(as_uuid=True), nullable=False),
            sa.Column("campaign_id", sa.dialects.postgresql.UUID(as_uuid=True), nullable=True),
            sa.Column("application_id", sa.dialects.postgresql.UUID(as_uuid=True), nullable=True),
            sa.Column("delta", sa.Integer(), nullable=False),
            sa.Column("reason", sa.String(length=64), nullable=False),
            sa.Column("display_reason", sa.String(), nullable=True),
            sa.Column("created_by_admin_id", sa.String(length=255), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
            sa.ForeignKeyConstraint(["creator_id"], ["creators.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"], ondelete="SET NULL"),
            sa.ForeignKeyConstraint(["application_id"], ["applications.id"], ondelete="SET NULL"),
        )
        op.create_index(f"ix_{table}_creator_id", table, ["creator_id"])
    op.add_column("score_events", sa.Column("seen_at", sa.DateTime(timezone=True), nullable=True))

    op.create_table(
        "notifications",
        sa.Column("id", sa.dialects.postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("creator_id", sa.dialects.postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("campaign_id", sa.dialects.postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("application_id", sa.dialects.postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("type", sa.String(length=64), nullable=False),
        sa.Column("channel", sa.String(length=16), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["creator_id"], ["creators.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["application_id"], ["applications.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_notifications_creator_id", "notifications", ["creator_id"])

    op.create_table(
        "chat_rooms",
        sa.Column("id", sa.dialects.postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("creator_id", sa.dialects.postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", chat_room_status, nullable=False, server_default="active"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("admin_unread_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ended_by", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["creator_id"], ["creators.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_chat_rooms_creator_id", "chat_rooms", ["creator_id"])
    op.create_index("ix_chat_rooms_expires_at", "chat_rooms", ["expires_at"])

    op.create_table(
        "job_leases",
        sa.Column("name", sa.String(length=64), primary_key=True),
        sa.Column("holder", sa.String(length=255), nullable=True),
        sa.Column("lease_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("heartbeat_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("job_leases")
    op.drop_index("ix_chat_rooms_expires_at", table_name="chat_rooms")
    op.drop_index("ix_chat_rooms_creator_id", table_name="chat_rooms")
    op.drop_table("chat_rooms")
    op.drop_index("ix_notifications_creator_id", table_name="notifications")
    op.drop_table("notifications")
    for table in ("penalty_events", "score_events"):
        op.drop_index(f"ix_{table}_creator_id", table_name=table)
        op.drop_table(table)
    op.drop_table("shipping")
    op.drop_index("ix_applications_creator_id", table_name="applications")
    op.drop_index("ix_applications_campaign_id", table_name="applications")
    op.drop_table("applications")
    op.drop_table("campaigns")
    op.drop_index("ix_creators_email", table_name="creators")
    op.drop_table("creators")
    sa.Enum(name="chat_room_status_enum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="application_status_enum").drop(op.get_bind(), checkfirst=True)
