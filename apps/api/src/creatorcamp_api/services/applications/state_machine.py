"""Application lifecycle state machine.

Every public operation runs as one unit of work: status changes are conditional
``UPDATE`` statements keyed on the expected source status, capacity and reputation
changes go through their controllers, and the whole transaction commits or rolls
back together. Notifications are dispatched only after the commit.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Iterable, Sequence
from urllib.parse import urlsplit
from uuid import UUID

from loguru import logger
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from creatorcamp_api.core.settings import Settings, get_settings
from creatorcamp_api.models.application import (
    DISMISSABLE_STATUSES,
    FINISHED_STATUSES,
    INACTIVE_STATUSES,
    Application,
    ApplicationStatusEnum,
    DeliveryConfirmedByEnum,
    Shipping,
    ShippingStatusEnum,
)
from creatorcamp_api.models.campaign import Campaign, CampaignStatusEnum, CampaignTypeEnum
from creatorcamp_api.models.creator import Creator, CreatorTierEnum
from creatorcamp_api.models.reputation import (
    PenaltyEvent,
    PenaltyReasonEnum,
    ScoreEvent,
    ScoreReasonEnum,
)
from creatorcamp_api.observability.lifecycle import get_lifecycle_store
from creatorcamp_api.observability.tracing import get_tracer
from creatorcamp_api.services.campaigns.inventory import (
    CampaignFullError,
    CampaignInventoryController,
    CampaignNotFoundError,
)
from creatorcamp_api.services.errors import AccessDeniedError, DomainError, NotFoundError
from creatorcamp_api.services.notifications import NotificationService
from creatorcamp_api.services.reputation.ledger import CreatorNotFoundError, ReputationLedger
from creatorcamp_api.services.reputation.tiers import (
    is_starting,
    qualifies_for_auto_approval,
    tier_for_creator,
    tier_upgrade_for,
)

BIO_LINK_LOGIN_PATTERNS = ("login", "register", "signin", "signup", "universal-login")


class ApplicationStateError(DomainError):
    """Base exception for application state machine failures."""

    code = "ApplicationStateError"


class ApplicationNotFoundError(ApplicationStateError, NotFoundError):
    code = "ApplicationNotFound"


class ApplicationForbiddenError(ApplicationStateError, AccessDeniedError):
    code = "Forbidden"


class ProfileIncompleteError(ApplicationStateError):
    code = "ProfileIncomplete"


class AccountRestrictedError(ApplicationStateError, AccessDeniedError):
    code = "AccountRestricted"


class AccountSuspendedError(ApplicationStateError, AccessDeniedError):
    code = "AccountSuspended"


class AccountBlockedError(ApplicationStateError, AccessDeniedError):
    code = "AccountBlocked"


class CampaignNotActiveError(ApplicationStateError):
    code = "CampaignNotActive"


class ApplicationDeadlinePassedError(ApplicationStateError):
    code = "ApplicationDeadlinePassed"


class PaypalRequiredError(ApplicationStateError):
    code = "PaypalRequired"


class BioLinkRequiredError(ApplicationStateError):
    code = "BioLinkRequired"


class AmazonStorefrontRequiredError(ApplicationStateError):
    code = "AmazonStorefrontRequired"


class DuplicateApplicationError(ApplicationStateError):
    code = "DuplicateApplication"


class StartingTierLimitError(ApplicationStateError):
    code = "StartingTierLimit"


class InvalidTransitionError(ApplicationStateError):
    """Raised when the application is not in a status the operation accepts."""

    code = "InvalidTransition"

    def __init__(self, message: str, *, current_status: ApplicationStatusEnum | None = None) -> None:
        super().__init__(message)
        self.current_status = current_status


class AlreadyApprovedError(InvalidTransitionError):
    code = "AlreadyApproved"


class AlreadyRejectedError(InvalidTransitionError):
    code = "AlreadyRejected"


class AlreadyUploadedError(InvalidTransitionError):
    code = "AlreadyUploaded"


class UploadNotAllowedError(InvalidTransitionError):
    code = "UploadNotAllowed"


class ShippingDetailsRequiredError(ApplicationStateError):
    code = "ShippingDetailsRequired"


class InvalidContentUrlError(ApplicationStateError):
    code = "InvalidContentUrl"


class SubmissionDeadlinePassedError(ApplicationStateError):
    code = "SubmissionDeadlinePassed"


class TerminalOverrideDisabledError(ApplicationStateError, AccessDeniedError):
    code = "TerminalOverrideDisabled"


class OverrideReasonRequiredError(ApplicationStateError):
    code = "OverrideReasonRequired"


@dataclass(slots=True)
class ApplicationTransition:
    """Outcome of a state machine operation."""

    operation: str
    application: Application
    previous_status: ApplicationStatusEnum | None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def status(self) -> ApplicationStatusEnum:
        return self.application.status


@dataclass(slots=True)
class _QueuedNotification:
    event_type: str
    creator_id: UUID
    data: dict[str, Any]


class ApplicationStateMachine:
    """Orchestrates application transitions, inventory and the reputation ledger.

    A rejected operation rolls back the shared session, which expires every ORM
    instance the caller holds from it. Keep primary keys in locals and reload rows
    with ``await session.refresh(...)`` before reading them again.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        notifications: NotificationService | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._session = session
        self._settings = settings or get_settings()
        self._notifications = notifications
        self._inventory = CampaignInventoryController(session)
        self._ledger = ReputationLedger(
            session,
            restriction_threshold=self._settings.restriction_penalty_threshold,
        )
        self._outbox: list[_QueuedNotification] = []

    # ------------------------------------------------------------------
    # Creator operations
    # ------------------------------------------------------------------
    async def create(self, *, creator_id: UUID, campaign_id: UUID) -> ApplicationTransition:
        """Apply to a campaign; VIP creators are approved immediately when capacity allows."""

        async with self._unit_of_work("create", campaign_id=str(campaign_id)):
            creator = await self._get_creator(creator_id)
            self._guard_account(creator)

            campaign = await self._get_campaign(campaign_id)
            self._guard_campaign_eligibility(creator, campaign)

            existing = await self._session.execute(
                select(Application.id).where(
                    Application.creator_id == creator_id,
                    Application.campaign_id == campaign_id,
                )
            )
            if existing.first() is not None:
                raise DuplicateApplicationError("You have already applied to this campaign")

            if is_starting(creator):
                active_count = await self._count_applications(
                    creator_id,
                    exclude_statuses=INACTIVE_STATUSES,
                )
                if active_count > 0:
                    raise StartingTierLimitError(
                        "As a Starting Influencer, you can only work on one campaign at a time. "
                        "Complete your current campaign to apply to more!"
                    )

            first_time = (
                await self._count_applications(creator_id, statuses=FINISHED_STATUSES) == 0
            )
            sequence_number = await self._next_sequence_number(campaign_id)

            application = Application(
                campaign_id=campaign_id,
                creator_id=creator_id,
                sequence_number=sequence_number,
                status=ApplicationStatusEnum.PENDING,
                first_time=first_time,
                applied_at=_utcnow(),
            )
            self._session.add(application)
            try:
                await self._session.flush()
            except IntegrityError as exc:
                raise DuplicateApplicationError("You have already applied to this campaign") from exc

            details: dict[str, Any] = {
                "auto_approved": False,
                "first_vip_auto_approval": False,
                "tier": tier_for_creator(creator).value,
            }
            if qualifies_for_auto_approval(creator):
                details.update(await self._auto_approve(application, creator, campaign))

        logger.info(
            "Application created",
            application_id=str(application.id),
            creator_id=str(creator_id),
            campaign_id=str(campaign_id),
            sequence_number=sequence_number,
            first_time=first_time,
            auto_approved=details["auto_approved"],
        )
        await self._dispatch_notifications()
        return ApplicationTransition("create", application, None, details)

    async def cancel(self, application_id: UUID, *, creator_id: UUID) -> None:
        """Withdraw a pending application. The row is removed, not re-statused."""

        async with self._unit_of_work("cancel", application_id=str(application_id)):
            application = await self._get_owned_application(application_id, creator_id)
            if application.status != ApplicationStatusEnum.PENDING:
                raise InvalidTransitionError(
                    "Only pending applications can be cancelled. Once approved, applications cannot be cancelled.",
                    current_status=application.status,
                )
            await self._session.execute(delete(Shipping).where(Shipping.application_id == application_id))
            result = await self._session.execute(
                delete(Application).where(
                    Application.id == application_id,
                    Application.status == ApplicationStatusEnum.PENDING,
                )
            )
            if result.rowcount == 0:
                raise InvalidTransitionError(
                    "Only pending applications can be cancelled. Once approved, applications cannot be cancelled.",
                )
            self._session.expunge(application)

        logger.info("Application cancelled", application_id=str(application_id), creator_id=str(creator_id))

    async def dismiss(self, application_id: UUID, *, creator_id: UUID) -> ApplicationTransition:
        """Hide a finished application from the creator's list without touching history."""

        async with self._unit_of_work("dismiss", application_id=str(application_id)):
            application = await self._get_owned_application(application_id, creator_id)
            previous = application.status
            if previous not in DISMISSABLE_STATUSES:
                raise InvalidTransitionError(
                    "Only rejected, uploaded, or completed applications can be dismissed",
                    current_status=previous,
                )
            if application.dismissed_at is None:
                application.dismissed_at = _utcnow()
                await self._session.flush()
        return ApplicationTransition("dismiss", application, previous)

    async def confirm_delivery(self, application_id: UUID, *, creator_id: UUID) -> ApplicationTransition:
        """Creator acknowledges receipt; earns the delivery confirmation points once."""

        async with self._unit_of_work("confirm_delivery", application_id=str(application_id)):
            application = await self._get_owned_application(application_id, creator_id)
            previous = application.status
            now = _utcnow()
            await self._transition(
                application,
                from_statuses=(ApplicationStatusEnum.SHIPPED,),
                to_status=ApplicationStatusEnum.DELIVERED,
                message="Can only confirm delivery for shipped packages",
                values={
                    "delivered_at": now,
                    "delivery_confirmed_by": DeliveryConfirmedByEnum.CREATOR.value,
                },
            )
            await self._update_shipping(
                application,
                status=ShippingStatusEnum.DELIVERED,
                delivered_at=now,
                delivery_confirmed_by=DeliveryConfirmedByEnum.CREATOR.value,
            )

            points = self._settings.delivery_confirmation_points
            awarded = 0
            if points and not await self._has_score_event(application.id, ScoreReasonEnum.DELIVERY_CONFIRMED):
                await self._ledger.add_score_event(
                    application.creator_id,
                    points,
                    ScoreReasonEnum.DELIVERY_CONFIRMED,
                    display_reason="Delivery confirmed",
                    campaign_id=application.campaign_id,
                    application_id=application.id,
                )
                awarded = points

        return ApplicationTransition("confirm_delivery", application, previous, {"points_awarded": awarded})

    async def submit_content(
        self,
        application_id: UUID,
        *,
        creator_id: UUID,
        video_url: str | None,
        bio_link_url: str | None = None,
        amazon_storefront_url: str | None = None,
    ) -> ApplicationTransition:
        """Hand in the content link for review.

        The application stays ``delivered``; :meth:`mark_uploaded` verifies the
        submission and awards points. Link-in-bio and Amazon campaigns also need the
        bio link or storefront URL, which is kept once stored. The video link may be
        replaced until verification.
        """

        async with self._unit_of_work("submit_content", application_id=str(application_id)):
            application = await self._get_owned_application(application_id, creator_id)
            previous = application.status
            campaign = await self._get_campaign(application.campaign_id)

            deadline = _ensure_utc(campaign.deadline)
            if deadline is not None and deadline < _utcnow():
                raise SubmissionDeadlinePassedError("Submission deadline has passed")
            if previous != ApplicationStatusEnum.DELIVERED:
                raise InvalidTransitionError(
                    "You can only submit your video after receiving the product",
                    current_status=previous,
                )

            if not (video_url or "").strip():
                raise InvalidContentUrlError("Video URL is required")
            now = _utcnow()
            values: dict[str, Any] = {
                "content_url": _checked_url(
                    video_url,
                    host_fragment="tiktok.",
                    message="Please enter a valid TikTok video URL",
                ),
                "content_submitted_at": now,
            }

            if campaign.campaign_type == CampaignTypeEnum.LINK_IN_BIO.value and not application.bio_link_url:
                if not (bio_link_url or "").strip():
                    raise BioLinkRequiredError("Bio link URL is required")
                values["bio_link_url"] = _checked_url(
                    bio_link_url,
                    https_only=True,
                    message="Please enter a valid HTTPS bio link URL",
                )
            elif (
                campaign.campaign_type == CampaignTypeEnum.AMAZON_VIDEO_UPLOAD.value
                and not application.amazon_storefront_url
            ):
                if not (amazon_storefront_url or "").strip():
                    raise AmazonStorefrontRequiredError("Amazon Storefront URL is required")
                values["amazon_storefront_url"] = _checked_url(
                    amazon_storefront_url,
                    host_fragment="amazon.",
                    message="Please enter a valid Amazon Storefront URL",
                )

            result = await self._session.execute(
                update(Application)
                .where(
                    Application.id == application.id,
                    Application.status == ApplicationStatusEnum.DELIVERED,
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                await self._session.refresh(application)
                raise InvalidTransitionError(
                    "You can only submit your video after receiving the product",
                    current_status=application.status,
                )
            await self._session.refresh(application)

        logger.info(
            "Application content submitted",
            application_id=str(application.id),
            creator_id=str(creator_id),
            campaign_type=campaign.campaign_type,
        )
        return ApplicationTransition(
            "submit_content",
            application,
            previous,
            {"content_submitted_at": now.isoformat()},
        )

    async def acknowledge_tier_upgrade(self, creator_id: UUID) -> Creator:
        """Clear the one-shot tier celebration signal."""

        async with self._unit_of_work("acknowledge_tier_upgrade", creator_id=str(creator_id)):
            creator = await self._get_creator(creator_id)
            creator.pending_tier_upgrade = None
            await self._session.flush()
        return creator

    async def list_for_creator(
        self,
        creator_id: UUID,
        *,
        include_dismissed: bool = False,
    ) -> list[Application]:
        stmt = (
            select(Application)
            .where(Application.creator_id == creator_id)
            .order_by(Application.applied_at.desc())
        )
        if not include_dismissed:
            stmt = stmt.where(Application.dismissed_at.is_(None))
        result = await self._session.execute(stmt)
        return list(result.scalars())

    # ------------------------------------------------------------------
    # Admin operations
    # ------------------------------------------------------------------
    async def approve(self, application_id: UUID, *, admin_id: str | None = None) -> ApplicationTransition:
        async with self._unit_of_work("approve", application_id=str(application_id)):
            application = await self._get_application(application_id)
            previous = application.status
            self._guard_approvable(application)

            campaign = await self._get_campaign(application.campaign_id)
            if not self._inventory.has_capacity(campaign):
                raise CampaignFullError("Campaign is full - no more inventory available")

            await self._transition(
                application,
                from_statuses=(ApplicationStatusEnum.PENDING,),
                to_status=ApplicationStatusEnum.APPROVED,
                message="Application is already approved",
                error_cls=AlreadyApprovedError,
                values={"approved_at": _utcnow()},
            )
            try:
                campaign = await self._inventory.increment(application.campaign_id)
            except CampaignFullError as exc:
                raise CampaignFullError("Campaign is full - no more inventory available") from exc
            await self._ensure_shipping(application)
            self._queue(
                "approved",
                application,
                campaign_name=campaign.name,
                brand_name=campaign.brand_name,
                admin_id=admin_id,
            )

        await self._dispatch_notifications()
        return ApplicationTransition(
            "approve",
            application,
            previous,
            {"approved_count": campaign.approved_count, "campaign_status": campaign.status},
        )

    async def bulk_approve(
        self,
        application_ids: Sequence[UUID],
        *,
        admin_id: str | None = None,
    ) -> dict[str, Any]:
        """Approve each distinct id independently; failures are skipped, not raised."""

        unique_ids = list(dict.fromkeys(application_ids))
        approved: list[str] = []
        skipped: list[dict[str, str]] = []
        for application_id in unique_ids:
            try:
                await self.approve(application_id, admin_id=admin_id)
            except DomainError as exc:
                skipped.append({"application_id": str(application_id), "code": exc.code})
                continue
            approved.append(str(application_id))

        logger.info(
            "Bulk approval processed",
            requested=len(application_ids),
            approved=len(approved),
            skipped=len(skipped),
        )
        return {
            "approved": len(approved),
            "skipped": len(skipped),
            "approved_ids": approved,
            "skipped_items": skipped,
        }

    async def reject(self, application_id: UUID, *, admin_id: str | None = None) -> ApplicationTransition:
        async with self._unit_of_work("reject", application_id=str(application_id)):
            application = await self._get_application(application_id)
            previous = application.status
            if previous == ApplicationStatusEnum.REJECTED:
                raise AlreadyRejectedError("Application is already rejected", current_status=previous)
            await self._transition(
                application,
                from_statuses=(ApplicationStatusEnum.PENDING,),
                to_status=ApplicationStatusEnum.REJECTED,
                message="Only pending applications can be rejected",
                values={"rejected_at": _utcnow()},
            )
            campaign = await self._session.get(Campaign, application.campaign_id)
            self._queue("rejected", application, campaign_name=campaign.name if campaign else None)

        await self._dispatch_notifications()
        return ApplicationTransition("reject", application, previous)

    async def revoke(self, application_id: UUID, *, admin_id: str | None = None) -> ApplicationTransition:
        """Return an approved application to review and release its slot."""

        async with self._unit_of_work("revoke", application_id=str(application_id)):
            application = await self._get_application(application_id)
            previous = application.status
            await self._transition(
                application,
                from_statuses=(ApplicationStatusEnum.APPROVED,),
                to_status=ApplicationStatusEnum.PENDING,
                message="Can only revoke approved applications before shipping",
                values={"approved_at": None},
            )
            campaign = await self._inventory.decrement(application.campaign_id)

        return ApplicationTransition(
            "revoke",
            application,
            previous,
            {"approved_count": campaign.approved_count, "campaign_status": campaign.status},
        )

    async def ship(
        self,
        application_id: UUID,
        *,
        courier: str | None,
        tracking_number: str | None,
        tracking_url: str | None = None,
        admin_id: str | None = None,
    ) -> ApplicationTransition:
        if not (courier or "").strip() or not (tracking_number or "").strip():
            raise ShippingDetailsRequiredError("Courier and tracking number are required")

        async with self._unit_of_work("ship", application_id=str(application_id)):
            application = await self._get_application(application_id)
            previous = application.status
            now = _utcnow()
            await self._transition(
                application,
                from_statuses=(ApplicationStatusEnum.APPROVED,),
                to_status=ApplicationStatusEnum.SHIPPED,
                message="Can only ship approved applications",
                values={"shipped_at": now},
            )
            await self._update_shipping(
                application,
                status=ShippingStatusEnum.SHIPPED,
                courier=courier.strip(),
                tracking_number=tracking_number.strip(),
                tracking_url=tracking_url,
                shipped_at=now,
            )
            campaign = await self._session.get(Campaign, application.campaign_id)
            self._queue(
                "shipping_shipped",
                application,
                campaign_name=campaign.name if campaign else None,
                courier=courier.strip(),
                tracking_number=tracking_number.strip(),
                tracking_url=tracking_url,
            )

        await self._dispatch_notifications()
        return ApplicationTransition("ship", application, previous)

    async def mark_delivered(self, application_id: UUID, *, admin_id: str | None = None) -> ApplicationTransition:
        async with self._unit_of_work("mark_delivered", application_id=str(application_id)):
            application = await self._get_application(application_id)
            previous = application.status
            now = _utcnow()
            await self._transition(
                application,
                from_statuses=(ApplicationStatusEnum.SHIPPED,),
                to_status=ApplicationStatusEnum.DELIVERED,
                message="Can only mark shipped applications as delivered",
                values={
                    "delivered_at": now,
                    "delivery_confirmed_by": DeliveryConfirmedByEnum.ADMIN.value,
                },
            )
            await self._update_shipping(
                application,
                status=ShippingStatusEnum.DELIVERED,
                delivered_at=now,
                delivery_confirmed_by=DeliveryConfirmedByEnum.ADMIN.value,
            )
            campaign = await self._session.get(Campaign, application.campaign_id)
            self._queue("delivered", application, campaign_name=campaign.name if campaign else None)

        await self._dispatch_notifications()
        return ApplicationTransition("mark_delivered", application, previous)

    async def undo_delivered(self, application_id: UUID, *, admin_id: str | None = None) -> ApplicationTransition:
        async with self._unit_of_work("undo_delivered", application_id=str(application_id)):
            application = await self._get_application(application_id)
            previous = application.status
            await self._transition(
                application,
                from_statuses=(ApplicationStatusEnum.DELIVERED,),
                to_status=ApplicationStatusEnum.SHIPPED,
                message="Can only undo delivered applications",
                values={"delivered_at": None, "delivery_confirmed_by": None},
            )
            await self._update_shipping(
                application,
                status=ShippingStatusEnum.SHIPPED,
                delivered_at=None,
                delivery_confirmed_by=None,
            )
        return ApplicationTransition("undo_delivered", application, previous)

    async def mark_uploaded(
        self,
        application_id: UUID,
        *,
        points: int | None = None,
        content_url: str | None = None,
        admin_id: str | None = None,
    ) -> ApplicationTransition:
        """Verify the creator's content, award points and detect tier crossings."""

        awarded = self._settings.upload_default_points if points is None else points
        if awarded < 0:
            raise UploadNotAllowedError("Points awarded must not be negative")

        async with self._unit_of_work("mark_uploaded", application_id=str(application_id)):
            application = await self._get_application(application_id)
            previous = application.status
            if previous in FINISHED_STATUSES:
                raise AlreadyUploadedError("Application upload was already verified", current_status=previous)

            creator = await self._get_creator(application.creator_id)
            tier_before = tier_for_creator(creator)

            values: dict[str, Any] = {"uploaded_at": _utcnow(), "points_awarded": awarded}
            if content_url:
                values["content_url"] = content_url
            await self._transition(
                application,
                from_statuses=(ApplicationStatusEnum.DELIVERED,),
                to_status=ApplicationStatusEnum.UPLOADED,
                message="Can only verify applications with delivered status",
                error_cls=UploadNotAllowedError,
                values=values,
            )

            if awarded:
                await self._ledger.add_score_event(
                    creator.id,
                    awarded,
                    ScoreReasonEnum.UPLOAD_SUCCESS,
                    display_reason="Content upload verified",
                    campaign_id=application.campaign_id,
                    application_id=application.id,
                    created_by_admin_id=admin_id,
                )
            bonus = 0
            if application.first_time and self._settings.first_upload_bonus_points:
                bonus = self._settings.first_upload_bonus_points
                await self._ledger.add_score_event(
                    creator.id,
                    bonus,
                    ScoreReasonEnum.FIRST_UPLOAD,
                    display_reason="First campaign bonus",
                    campaign_id=application.campaign_id,
                    application_id=application.id,
                    created_by_admin_id=admin_id,
                )

            await self._session.execute(
                update(Creator)
                .where(Creator.id == creator.id)
                .values(completed_campaigns=Creator.completed_campaigns + 1)
                .execution_options(synchronize_session=False)
            )
            await self._session.refresh(creator)
            tier_after = tier_for_creator(creator)
            upgrade = tier_upgrade_for(tier_before, tier_after)
            if upgrade is not None:
                creator.pending_tier_upgrade = upgrade.value
                await self._session.flush()

            campaign = await self._session.get(Campaign, application.campaign_id)
            campaign_name = campaign.name if campaign else None
            self._queue(
                "upload_verified",
                application,
                campaign_name=campaign_name,
                points=awarded,
                bonus_points=bonus,
            )
            if upgrade is not None:
                self._queue("tier_upgraded", application, campaign_name=campaign_name, tier=upgrade.value)

        logger.info(
            "Application upload verified",
            application_id=str(application.id),
            creator_id=str(creator.id),
            points=awarded,
            first_upload_bonus=bonus,
            tier_before=tier_before.value,
            tier_after=tier_after.value,
        )
        await self._dispatch_notifications()
        return ApplicationTransition(
            "mark_uploaded",
            application,
            previous,
            {
                "points_awarded": awarded,
                "first_upload_bonus": bonus,
                "score": creator.score,
                "completed_campaigns": creator.completed_campaigns,
                "tier": tier_after.value,
                "tier_upgrade": upgrade.value if upgrade else None,
            },
        )

    async def mark_missed(self, application_id: UUID, *, admin_id: str | None = None) -> ApplicationTransition:
        """Record a missed content deadline and apply the ghosting penalty."""

        async with self._unit_of_work("mark_missed", application_id=str(application_id)):
            application = await self._get_application(application_id)
            previous = application.status
            await self._transition(
                application,
                from_statuses=(
                    ApplicationStatusEnum.APPROVED,
                    ApplicationStatusEnum.SHIPPED,
                    ApplicationStatusEnum.DELIVERED,
                ),
                to_status=ApplicationStatusEnum.DEADLINE_MISSED,
                message="Can only mark active applications as missed",
                values={"deadline_missed_at": _utcnow()},
            )

            finished_elsewhere = await self._count_applications(
                application.creator_id,
                statuses=FINISHED_STATUSES,
                exclude_application_id=application.id,
            )
            first_ghosting = finished_elsewhere == 0
            if first_ghosting:
                penalty = self._settings.first_ghosting_penalty
                reason = PenaltyReasonEnum.FIRST_GHOSTING
            else:
                penalty = self._settings.repeat_missed_deadline_penalty
                reason = PenaltyReasonEnum.DEADLINE_MISSED

            if penalty:
                await self._ledger.add_penalty_event(
                    application.creator_id,
                    penalty,
                    reason,
                    display_reason="Content deadline missed",
                    campaign_id=application.campaign_id,
                    application_id=application.id,
                    created_by_admin_id=admin_id,
                )
            creator = await self._get_creator(application.creator_id)
            campaign = await self._session.get(Campaign, application.campaign_id)
            self._queue(
                "deadline_missed",
                application,
                campaign_name=campaign.name if campaign else None,
                penalty=penalty,
            )

        await self._dispatch_notifications()
        return ApplicationTransition(
            "mark_missed",
            application,
            previous,
            {
                "penalty": penalty,
                "reason": reason.value,
                "creator_penalty": creator.penalty,
                "restricted": creator.restricted,
            },
        )

    async def undo_missed(
        self,
        application_id: UUID,
        *,
        reason: str | None,
        admin_id: str | None = None,
    ) -> ApplicationTransition:
        """Controlled override of the terminal ``deadline_missed`` status.

        The penalty already applied is compensated with a ``missed_reversal`` event.
        The restriction latch is left untouched; clearing it needs an explicit unlock.
        """

        async with self._unit_of_work("undo_missed", application_id=str(application_id)):
            application = await self._get_application(application_id)
            previous = application.status
            if previous != ApplicationStatusEnum.DEADLINE_MISSED:
                raise InvalidTransitionError("Can only undo missed applications", current_status=previous)
            if not self._settings.terminal_override_enabled:
                raise TerminalOverrideDisabledError("Terminal states cannot be reverted.")
            cleaned_reason = (reason or "").strip()
            if len(cleaned_reason) < self._settings.terminal_override_min_reason_length:
                raise OverrideReasonRequiredError(
                    "A reason of at least "
                    f"{self._settings.terminal_override_min_reason_length} characters is required "
                    "for terminal state override."
                )

            await self._transition(
                application,
                from_statuses=(ApplicationStatusEnum.DEADLINE_MISSED,),
                to_status=ApplicationStatusEnum.DELIVERED,
                message="Can only undo missed applications",
                values={"deadline_missed_at": None},
            )

            outstanding = await self._outstanding_missed_penalty(application.id)
            if outstanding > 0:
                await self._ledger.add_penalty_event(
                    application.creator_id,
                    -outstanding,
                    PenaltyReasonEnum.MISSED_REVERSAL,
                    display_reason=cleaned_reason,
                    campaign_id=application.campaign_id,
                    application_id=application.id,
                    created_by_admin_id=admin_id,
                )

        logger.warning(
            "Terminal state override applied",
            application_id=str(application.id),
            admin_id=admin_id,
            previous_status=previous.value,
            new_status=application.status.value,
            reason=cleaned_reason,
            reversed_penalty=outstanding,
        )
        return ApplicationTransition("undo_missed", application, previous, {"reversed_penalty": outstanding})

    async def complete(self, application_id: UUID, *, admin_id: str | None = None) -> ApplicationTransition:
        """Close out an uploaded application once its reward has been sent."""

        async with self._unit_of_work("complete", application_id=str(application_id)):
            application = await self._get_application(application_id)
            previous = application.status
            await self._transition(
                application,
                from_statuses=(ApplicationStatusEnum.UPLOADED,),
                to_status=ApplicationStatusEnum.COMPLETED,
                message="Can only complete uploaded applications",
                values={"completed_at": _utcnow()},
            )
        return ApplicationTransition("complete", application, previous)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    @asynccontextmanager
    async def _unit_of_work(self, operation: str, **context: str) -> AsyncIterator[None]:
        store = get_lifecycle_store()
        with get_tracer().start_as_current_span(f"applications.{operation}") as span:
            for key, value in context.items():
                span.set_attribute(key, value)
            try:
                yield
                await self._session.commit()
            except DomainError as exc:
                await self._session.rollback()
                self._outbox.clear()
                store.record_rejection(exc.code)
                span.set_attribute("rejection_code", exc.code)
                logger.info(
                    "Application operation rejected",
                    operation=operation,
                    code=exc.code,
                    reason=exc.message,
                    **context,
                )
                raise
            except Exception:
                await self._session.rollback()
                self._outbox.clear()
                raise

    async def _transition(
        self,
        application: Application,
        *,
        from_statuses: Iterable[ApplicationStatusEnum],
        to_status: ApplicationStatusEnum,
        message: str,
        error_cls: type[InvalidTransitionError] = InvalidTransitionError,
        values: dict[str, Any] | None = None,
    ) -> None:
        """Move ``application`` only if it is still in one of ``from_statuses``."""

        allowed = tuple(from_statuses)
        current = application.status
        if current not in allowed:
            raise error_cls(message, current_status=current)

        result = await self._session.execute(
            update(Application)
            .where(Application.id == application.id, Application.status.in_(allowed))
            .values(status=to_status, **(values or {}))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self._session.refresh(application)
            raise error_cls(message, current_status=application.status)
        await self._session.refresh(application)
        get_lifecycle_store().record_transition(current.value, to_status.value)
        logger.info(
            "Application status transitioned",
            application_id=str(application.id),
            from_status=current.value,
            to_status=to_status.value,
        )

    def _guard_account(self, creator: Creator) -> None:
        if not creator.profile_completed:
            raise ProfileIncompleteError("Please complete your profile first")
        if creator.blocked:
            raise AccountBlockedError("Your account is blocked")
        if creator.restricted:
            raise AccountRestrictedError("Your account is restricted")
        if creator.suspended:
            raise AccountSuspendedError("Your account is suspended")

    def _guard_campaign_eligibility(self, creator: Creator, campaign: Campaign) -> None:
        if campaign.status != CampaignStatusEnum.ACTIVE.value:
            raise CampaignNotActiveError("Campaign is not accepting applications")

        if campaign.is_paid and not (creator.paypal_email or "").strip():
            raise PaypalRequiredError(
                "PayPal email required for paid campaigns. Please add your PayPal email in your "
                "profile to apply for this campaign."
            )

        if campaign.campaign_type == CampaignTypeEnum.LINK_IN_BIO.value:
            bio_link = (creator.bio_link_profile_url or "").strip()
            if not bio_link:
                raise BioLinkRequiredError(
                    "This campaign requires a bio link service (like Linktree, Beacons, or similar) "
                    "to add the product link. Please set up your bio link URL in your profile first."
                )
            lowered = bio_link.lower()
            if any(pattern in lowered for pattern in BIO_LINK_LOGIN_PATTERNS):
                raise BioLinkRequiredError(
                    "Please enter your actual bio link profile URL, not a login page. "
                    "Update your profile with your correct bio link URL."
                )

        if campaign.campaign_type == CampaignTypeEnum.AMAZON_VIDEO_UPLOAD.value:
            if not (creator.amazon_storefront_url or "").strip():
                raise AmazonStorefrontRequiredError(
                    "This campaign requires an Amazon Influencer Storefront. Please add your "
                    "Amazon Storefront URL in your profile first."
                )

        deadline = _ensure_utc(campaign.application_deadline)
        if deadline is not None and deadline < _utcnow():
            raise ApplicationDeadlinePassedError("The application deadline has passed")

    def _guard_approvable(self, application: Application) -> None:
        status = application.status
        if status == ApplicationStatusEnum.PENDING:
            return
        if status == ApplicationStatusEnum.REJECTED:
            raise InvalidTransitionError(
                "Application cannot be approved from current status",
                current_status=status,
            )
        raise AlreadyApprovedError("Application is already approved", current_status=status)

    async def _auto_approve(
        self,
        application: Application,
        creator: Creator,
        campaign: Campaign,
    ) -> dict[str, Any]:
        """VIP fast path. A full campaign leaves the application pending for review."""

        try:
            campaign = await self._inventory.increment(campaign.id)
        except CampaignFullError:
            logger.info(
                "VIP auto-approval skipped, campaign full",
                application_id=str(application.id),
                campaign_id=str(campaign.id),
            )
            return {"auto_approved": False, "auto_approval_skipped": "CampaignFull"}

        await self._transition(
            application,
            from_statuses=(ApplicationStatusEnum.PENDING,),
            to_status=ApplicationStatusEnum.APPROVED,
            message="Application is already approved",
            error_cls=AlreadyApprovedError,
            values={"approved_at": _utcnow()},
        )
        await self._ensure_shipping(application)

        first_vip = creator.pending_tier_upgrade == CreatorTierEnum.VIP.value
        if first_vip:
            creator.pending_tier_upgrade = None
            await self._session.flush()

        self._queue(
            "approved",
            application,
            campaign_name=campaign.name,
            brand_name=campaign.brand_name,
            auto_approved=True,
        )
        return {
            "auto_approved": True,
            "first_vip_auto_approval": first_vip,
            "approved_count": campaign.approved_count,
            "campaign_status": campaign.status,
        }

    async def _next_sequence_number(self, campaign_id: UUID) -> int:
        await self._session.execute(
            update(Campaign)
            .where(Campaign.id == campaign_id)
            .values(application_sequence=Campaign.application_sequence + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(
            select(Campaign.application_sequence).where(Campaign.id == campaign_id)
        )
        return int(result.scalar_one())

    async def _count_applications(
        self,
        creator_id: UUID,
        *,
        statuses: Iterable[ApplicationStatusEnum] | None = None,
        exclude_statuses: Iterable[ApplicationStatusEnum] | None = None,
        exclude_application_id: UUID | None = None,
    ) -> int:
        stmt = select(func.count(Application.id)).where(Application.creator_id == creator_id)
        if statuses is not None:
            stmt = stmt.where(Application.status.in_(list(statuses)))
        if exclude_statuses is not None:
            stmt = stmt.where(Application.status.not_in(list(exclude_statuses)))
        if exclude_application_id is not None:
            stmt = stmt.where(Application.id != exclude_application_id)
        result = await self._session.execute(stmt)
        return int(result.scalar_one())

    async def _has_score_event(self, application_id: UUID, reason: ScoreReasonEnum) -> bool:
        result = await self._session.execute(
            select(ScoreEvent.id)
            .where(ScoreEvent.application_id == application_id, ScoreEvent.reason == reason.value)
            .limit(1)
        )
        return result.first() is not None

    async def _outstanding_missed_penalty(self, application_id: UUID) -> int:
        reasons = [
            PenaltyReasonEnum.FIRST_GHOSTING.value,
            PenaltyReasonEnum.DEADLINE_MISSED.value,
            PenaltyReasonEnum.MISSED_REVERSAL.value,
        ]
        result = await self._session.execute(
            select(func.coalesce(func.sum(PenaltyEvent.delta), 0)).where(
                PenaltyEvent.application_id == application_id,
                PenaltyEvent.reason.in_(reasons),
            )
        )
        return int(result.scalar_one())

    async def _get_shipping(self, application_id: UUID) -> Shipping | None:
        result = await self._session.execute(
            select(Shipping).where(Shipping.application_id == application_id)
        )
        return result.scalar_one_or_none()

    async def _ensure_shipping(self, application: Application) -> Shipping:
        shipping = await self._get_shipping(application.id)
        if shipping is None:
            shipping = Shipping(application_id=application.id, status=ShippingStatusEnum.PENDING.value)
            self._session.add(shipping)
            await self._session.flush()
        return shipping

    async def _update_shipping(self, application: Application, *, status: ShippingStatusEnum, **values: Any) -> None:
        shipping = await self._ensure_shipping(application)
        shipping.status = status.value
        for key, value in values.items():
            setattr(shipping, key, value)
        await self._session.flush()

    async def _get_application(self, application_id: UUID) -> Application:
        application = await self._session.get(Application, application_id)
        if application is None:
            raise ApplicationNotFoundError("Application not found")
        await self._session.refresh(application)
        return application

    async def _get_owned_application(self, application_id: UUID, creator_id: UUID) -> Application:
        application = await self._get_application(application_id)
        if application.creator_id != creator_id:
            raise ApplicationForbiddenError("Forbidden")
        return application

    async def _get_campaign(self, campaign_id: UUID) -> Campaign:
        campaign = await self._session.get(Campaign, campaign_id)
        if campaign is None:
            raise CampaignNotFoundError("Campaign not found")
        await self._session.refresh(campaign)
        return campaign

    async def _get_creator(self, creator_id: UUID) -> Creator:
        creator = await self._session.get(Creator, creator_id)
        if creator is None:
            raise CreatorNotFoundError("Influencer not found")
        await self._session.refresh(creator)
        return creator

    def _queue(self, event_type: str, application: Application, **data: Any) -> None:
        payload = {
            "application_id": str(application.id),
            "campaign_id": str(application.campaign_id),
        }
        payload.update({key: value for key, value in data.items() if value is not None})
        self._outbox.append(_QueuedNotification(event_type, application.creator_id, payload))

    async def _dispatch_notifications(self) -> None:
        """Send queued notifications after commit; delivery failures never propagate."""

        queued, self._outbox = self._outbox, []
        if self._notifications is None:
            return
        for item in queued:
            try:
                creator = await self._session.get(Creator, item.creator_id)
                if creator is None:
                    continue
                await self._notifications.send(item.event_type, creator, item.data)
            except Exception as exc:
                logger.warning(
                    "Lifecycle notification failed",
                    event_type=item.event_type,
                    creator_id=str(item.creator_id),
                    error=str(exc),
                )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _checked_url(
    value: str,
    *,
    message: str,
    host_fragment: str | None = None,
    https_only: bool = False,
) -> str:
    candidate = value.strip()
    parts = urlsplit(candidate)
    allowed_schemes = ("https",) if https_only else ("http", "https")
    hostname = parts.hostname or ""
    if parts.scheme not in allowed_schemes or not hostname:
        raise InvalidContentUrlError(message)
    if host_fragment is not None and host_fragment not in hostname:
        raise InvalidContentUrlError(message)
    return candidate


def _ensure_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


__all__ = [
    "AccountBlockedError",
    "AccountRestrictedError",
    "AccountSuspendedError",
    "AlreadyApprovedError",
    "AlreadyRejectedError",
    "AlreadyUploadedError",
    "AmazonStorefrontRequiredError",
    "ApplicationDeadlinePassedError",
    "ApplicationForbiddenError",
    "ApplicationNotFoundError",
    "ApplicationStateError",
    "ApplicationStateMachine",
    "ApplicationTransition",
    "BioLinkRequiredError",
    "CampaignNotActiveError",
    "DuplicateApplicationError",
    "InvalidContentUrlError",
    "InvalidTransitionError",
    "OverrideReasonRequiredError",
    "PaypalRequiredError",
    "ProfileIncompleteError",
    "ShippingDetailsRequiredError",
    "StartingTierLimitError",
    "SubmissionDeadlinePassedError",
    "TerminalOverrideDisabledError",
    "UploadNotAllowedError",
]
