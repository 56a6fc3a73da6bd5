from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from creatorcamp_api.models.application import ApplicationStatusEnum


class ApplicationCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    campaign_id: UUID = Field(..., alias="campaignId")


class ApplicationRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: UUID
    campaign_id: UUID = Field(..., alias="campaignId")
    creator_id: UUID = Field(..., alias="creatorId")
    sequence_number: int = Field(..., alias="sequenceNumber")
    status: ApplicationStatusEnum
    first_time: bool = Field(False, alias="firstTime")
    points_awarded: int | None = Field(None, alias="pointsAwarded")
    content_url: str | None = Field(None, alias="contentUrl")
    content_submitted_at: datetime | None = Field(None, alias="contentSubmittedAt")
    bio_link_url: str | None = Field(None, alias="bioLinkUrl")
    amazon_storefront_url: str | None = Field(None, alias="amazonStorefrontUrl")
    delivery_confirmed_by: str | None = Field(None, alias="deliveryConfirmedBy")
    applied_at: datetime | None = Field(None, alias="appliedAt")
    approved_at: datetime | None = Field(None, alias="approvedAt")
    rejected_at: datetime | None = Field(None, alias="rejectedAt")
    shipped_at: datetime | None = Field(None, alias="shippedAt")
    delivered_at: datetime | None = Field(None, alias="deliveredAt")
    uploaded_at: datetime | None = Field(None, alias="uploadedAt")
    completed_at: datetime | None = Field(None, alias="completedAt")
    deadline_missed_at: datetime | None = Field(None, alias="deadlineMissedAt")
    dismissed_at: datetime | None = Field(None, alias="dismissedAt")


class ApplicationTransitionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    operation: str
    previous_status: ApplicationStatusEnum | None = Field(None, alias="previousStatus")
    application: ApplicationRead
    details: dict[str, Any] = Field(default_factory=dict)


class SubmitContentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    video_url: str | None = Field(None, alias="videoUrl")
    bio_link_url: str | None = Field(None, alias="bioLinkUrl")
    amazon_storefront_url: str | None = Field(None, alias="amazonStorefrontUrl")


class ShipRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    courier: str | None = None
    tracking_number: str | None = Field(None, alias="trackingNumber")
    tracking_url: str | None = Field(None, alias="trackingUrl")


class MarkUploadedRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    points: int | None = Field(None, ge=0)
    content_url: str | None = Field(None, alias="contentUrl")


class UndoMissedRequest(BaseModel):
    reason: str = ""


class BulkApproveRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    application_ids: list[UUID] = Field(..., alias="applicationIds", min_length=1)


class BulkApproveSkippedItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    application_id: UUID = Field(..., alias="applicationId")
    code: str


class BulkApproveResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    approved: int
    skipped: int
    approved_ids: list[UUID] = Field(default_factory=list, alias="approvedIds")
    skipped_items: list[BulkApproveSkippedItem] = Field(default_factory=list, alias="skippedItems")
