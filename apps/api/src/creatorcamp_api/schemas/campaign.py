from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from creatorcamp_api.models.campaign import CampaignRewardTypeEnum, CampaignTypeEnum


class CampaignCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    brand_name: str = Field(..., alias="brandName", min_length=1)
    description: str | None = None
    campaign_type: CampaignTypeEnum = Field(CampaignTypeEnum.GIFTING, alias="campaignType")
    reward_type: CampaignRewardTypeEnum = Field(CampaignRewardTypeEnum.GIFT, alias="rewardType")
    reward_amount: int | None = Field(None, alias="rewardAmount", ge=0)
    inventory: int = Field(..., ge=0)
    application_deadline: datetime | None = Field(None, alias="applicationDeadline")
    deadline: datetime


class CampaignRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: UUID
    name: str
    brand_name: str = Field(..., alias="brandName")
    description: str | None = None
    campaign_type: str = Field(..., alias="campaignType")
    reward_type: str = Field(..., alias="rewardType")
    reward_amount: int | None = Field(None, alias="rewardAmount")
    inventory: int
    approved_count: int = Field(..., alias="approvedCount")
    status: str
    application_deadline: datetime | None = Field(None, alias="applicationDeadline")
    deadline: datetime


class CampaignReconcileResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    campaign_id: UUID = Field(..., alias="campaignId")
    previous_count: int = Field(..., alias="previousCount")
    approved_count: int = Field(..., alias="approvedCount")
    inventory: int
    status: str
    over_committed: bool = Field(..., alias="overCommitted")
