from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class NotificationRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: UUID
    type: str
    channel: str
    title: str
    message: str
    status: str
    campaign_id: UUID | None = Field(None, alias="campaignId")
    application_id: UUID | None = Field(None, alias="applicationId")
    metadata_json: dict[str, Any] = Field(default_factory=dict, serialization_alias="metadata")
    read_at: datetime | None = Field(None, alias="readAt")
    created_at: datetime = Field(..., alias="createdAt")
