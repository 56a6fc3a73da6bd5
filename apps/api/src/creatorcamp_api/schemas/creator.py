from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from creatorcamp_api.models.creator import Creator, CreatorTierEnum
from creatorcamp_api.services.reputation import compute_tier


class CreatorReputationRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: UUID
    email: str
    display_name: str | None = Field(None, alias="displayName")
    score: int
    penalty: int
    completed_campaigns: int = Field(..., alias="completedCampaigns")
    tier: CreatorTierEnum
    restricted: bool
    suspended: bool
    blocked: bool
    pending_tier_upgrade: str | None = Field(None, alias="pendingTierUpgrade")

    @classmethod
    def from_creator(cls, creator: Creator) -> "CreatorReputationRead":
        return cls(
            id=creator.id,
            email=creator.email,
            display_name=creator.display_name,
            score=creator.score,
            penalty=creator.penalty,
            completed_campaigns=creator.completed_campaigns,
            tier=compute_tier(creator.completed_campaigns, creator.score),
            restricted=creator.restricted,
            suspended=creator.suspended,
            blocked=creator.blocked,
            pending_tier_upgrade=creator.pending_tier_upgrade,
        )


class AccountActionRequest(BaseModel):
    reason: str | None = None


class ReputationAdjustmentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    delta: int
    display_reason: str | None = Field(None, alias="displayReason")


class ReputationEventRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: UUID
    kind: str
    delta: int
    reason: str
    display_reason: str | None = Field(None, alias="displayReason")
    campaign_id: UUID | None = Field(None, alias="campaignId")
    application_id: UUID | None = Field(None, alias="applicationId")
    created_by_admin_id: str | None = Field(None, alias="createdByAdminId")
    created_at: datetime = Field(..., alias="createdAt")


class ReputationAuditRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    creator_id: UUID = Field(..., alias="creatorId")
    cached_score: int = Field(..., alias="cachedScore")
    replayed_score: int = Field(..., alias="replayedScore")
    cached_penalty: int = Field(..., alias="cachedPenalty")
    replayed_penalty: int = Field(..., alias="replayedPenalty")
    score_events: int = Field(..., alias="scoreEvents")
    penalty_events: int = Field(..., alias="penaltyEvents")
    consistent: bool


class ScoreEventRead(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: UUID
    delta: int
    reason: str
    display_reason: str | None = Field(None, alias="displayReason")
    campaign_id: UUID | None = Field(None, alias="campaignId")
    application_id: UUID | None = Field(None, alias="applicationId")
    created_at: datetime = Field(..., alias="createdAt")


class MarkScoreEventsSeenRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_ids: list[UUID] = Field(..., alias="eventIds")


class MarkedCountResponse(BaseModel):
    marked: int
