from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from creatorcamp_api.api.dependencies import security
from creatorcamp_api.models.application import ApplicationStatusEnum
from creatorcamp_api.models.chat import ChatRoom
from creatorcamp_api.workers.chat_lifecycle import ChatLifecycleWorker

from factories import make_application, make_campaign, make_creator

ADMIN_HEADERS = {"X-Admin-Id": "admin-1"}


class NoopStorage:
    async def delete_room_files(self, room_id) -> int:
        return 0


@pytest.mark.asyncio
async def test_admin_context_is_required(app_with_db, monkeypatch):
    app, _ = app_with_db
    application_id = uuid4()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        missing_admin = await client.post(f"/api/v1/admin/applications/{application_id}/approve")
        assert missing_admin.status_code == 401

        monkeypatch.setattr(security.settings, "admin_api_key", "secret")
        wrong_key = await client.post(
            f"/api/v1/admin/applications/{application_id}/approve",
            headers={**ADMIN_HEADERS, "X-API-Key": "wrong"},
        )
        assert wrong_key.status_code == 401
        assert wrong_key.json()["detail"] == "Invalid API key"

        valid_key = await client.post(
            f"/api/v1/admin/applications/{application_id}/approve",
            headers={**ADMIN_HEADERS, "X-API-Key": "secret"},
        )
        assert valid_key.status_code == 404
        assert valid_key.json()["detail"]["code"] == "ApplicationNotFound"


@pytest.mark.asyncio
async def test_full_fulfilment_flow(app_with_db):
    app, session_factory = app_with_db
    async with session_factory() as session:
        creator = await make_creator(session, score=45)
        campaign = await make_campaign(session, inventory=1)
        application = await make_application(session, creator, campaign, first_time=True)
        await session.commit()

    base = f"/api/v1/admin/applications/{application.id}"
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        approved = await client.post(f"{base}/approve", headers=ADMIN_HEADERS)
        assert approved.status_code == 200
        assert approved.json()["details"] == {"approved_count": 1, "campaign_status": "full"}

        missing_tracking = await client.post(f"{base}/ship", json={"courier": "DHL"}, headers=ADMIN_HEADERS)
        assert missing_tracking.status_code == 400
        assert missing_tracking.json()["detail"]["code"] == "ShippingDetailsRequired"

        shipped = await client.post(
            f"{base}/ship",
            json={"courier": "DHL", "trackingNumber": "TRK-1", "trackingUrl": "https://track.example.com/TRK-1"},
            headers=ADMIN_HEADERS,
        )
        assert shipped.json()["application"]["status"] == "shipped"

        early_upload = await client.post(f"{base}/uploaded", json={"points": 5}, headers=ADMIN_HEADERS)
        assert early_upload.status_code == 400
        assert early_upload.json()["detail"]["code"] == "UploadNotAllowed"

        delivered = await client.post(f"{base}/delivered", headers=ADMIN_HEADERS)
        assert delivered.json()["application"]["deliveryConfirmedBy"] == "admin"

        undone = await client.post(f"{base}/undo-delivered", headers=ADMIN_HEADERS)
        assert undone.json()["application"]["status"] == "shipped"
        await client.post(f"{base}/delivered", headers=ADMIN_HEADERS)

        uploaded = await client.post(
            f"{base}/uploaded",
            json={"points": 5, "contentUrl": "https://video.example.com/1"},
            headers=ADMIN_HEADERS,
        )
        assert uploaded.status_code == 200
        details = uploaded.json()["details"]
        assert details["score"] == 55
        assert details["tier_upgrade"] == "standard"
        assert uploaded.json()["application"]["contentUrl"] == "https://video.example.com/1"

        completed = await client.post(f"{base}/complete", headers=ADMIN_HEADERS)
        assert completed.json()["application"]["status"] == "completed"

        profile = await client.get(f"/api/v1/admin/creators/{creator.id}", headers=ADMIN_HEADERS)
        assert profile.json()["completedCampaigns"] == 1
        assert profile.json()["pendingTierUpgrade"] == "standard"

        reconcile = await client.post(f"/api/v1/admin/campaigns/{campaign.id}/reconcile", headers=ADMIN_HEADERS)
        assert reconcile.json()["approvedCount"] == 1
        assert reconcile.json()["overCommitted"] is False


@pytest.mark.asyncio
async def test_missed_deadline_and_override(app_with_db):
    app, session_factory = app_with_db
    async with session_factory() as session:
        creator = await make_creator(session)
        campaign = await make_campaign(session)
        application = await make_application(session, creator, campaign, status=ApplicationStatusEnum.SHIPPED)
        await session.commit()

    base = f"/api/v1/admin/applications/{application.id}"
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        missed = await client.post(f"{base}/missed", headers=ADMIN_HEADERS)
        assert missed.json()["details"]["penalty"] == 5
        assert missed.json()["details"]["restricted"] is True

        short_reason = await client.post(f"{base}/undo-missed", json={"reason": "typo"}, headers=ADMIN_HEADERS)
        assert short_reason.status_code == 400
        assert short_reason.json()["detail"]["code"] == "OverrideReasonRequired"

        reverted = await client.post(
            f"{base}/undo-missed",
            json={"reason": "Carrier lost the parcel, confirmed by support"},
            headers=ADMIN_HEADERS,
        )
        assert reverted.status_code == 200
        assert reverted.json()["application"]["status"] == "delivered"
        assert reverted.json()["details"] == {"reversed_penalty": 5}

        profile = await client.get(f"/api/v1/admin/creators/{creator.id}", headers=ADMIN_HEADERS)
        assert profile.json()["penalty"] == 0
        assert profile.json()["restricted"] is True

        unlocked = await client.post(f"/api/v1/admin/creators/{creator.id}/unlock", headers=ADMIN_HEADERS)
        assert unlocked.json()["restricted"] is False

        audit = await client.get(f"/api/v1/admin/creators/{creator.id}/reputation-audit", headers=ADMIN_HEADERS)
        assert audit.json()["consistent"] is True
        assert audit.json()["penaltyEvents"] == 2


@pytest.mark.asyncio
async def test_bulk_approve_endpoint(app_with_db):
    app, session_factory = app_with_db
    async with session_factory() as session:
        campaign = await make_campaign(session, inventory=1)
        first = await make_application(session, await make_creator(session), campaign)
        second = await make_application(session, await make_creator(session), campaign)
        await session.commit()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post(
            "/api/v1/admin/applications/bulk-approve",
            json={"applicationIds": [str(first.id), str(second.id)]},
            headers=ADMIN_HEADERS,
        )
        empty = await client.post(
            "/api/v1/admin/applications/bulk-approve",
            json={"applicationIds": []},
            headers=ADMIN_HEADERS,
        )

    assert response.status_code == 200
    assert response.json() == {
        "approved": 1,
        "skipped": 1,
        "approvedIds": [str(first.id)],
        "skippedItems": [{"applicationId": str(second.id), "code": "CampaignFull"}],
    }
    assert empty.status_code == 422


@pytest.mark.asyncio
async def test_campaign_lifecycle_endpoints(app_with_db):
    app, _ = app_with_db
    deadline = (datetime.now(timezone.utc) + timedelta(days=14)).isoformat()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        created = await client.post(
            "/api/v1/admin/campaigns",
            json={"name": "Summer Drop", "brandName": "Lumen", "inventory": 0, "deadline": deadline},
            headers=ADMIN_HEADERS,
        )
        assert created.status_code == 201
        campaign_id = created.json()["id"]
        assert created.json()["status"] == "draft"

        activated = await client.post(f"/api/v1/admin/campaigns/{campaign_id}/activate", headers=ADMIN_HEADERS)
        assert activated.json()["status"] == "full"

        closed = await client.post(f"/api/v1/admin/campaigns/{campaign_id}/close", headers=ADMIN_HEADERS)
        assert closed.json()["status"] == "closed"

        archived = await client.post(f"/api/v1/admin/campaigns/{campaign_id}/archive", headers=ADMIN_HEADERS)
        assert archived.json()["status"] == "archived"

        invalid = await client.post(f"/api/v1/admin/campaigns/{campaign_id}/activate", headers=ADMIN_HEADERS)
        assert invalid.status_code == 400
        assert invalid.json()["detail"]["code"] == "InvalidCampaignTransition"

        restored = await client.post(f"/api/v1/admin/campaigns/{campaign_id}/restore", headers=ADMIN_HEADERS)
        assert restored.json()["status"] == "closed"

        paid_without_amount = await client.post(
            "/api/v1/admin/campaigns",
            json={"name": "Paid", "brandName": "Lumen", "inventory": 2, "deadline": deadline, "rewardType": "paid"},
            headers=ADMIN_HEADERS,
        )
        assert paid_without_amount.status_code == 400
        assert paid_without_amount.json()["detail"]["code"] == "InvalidCampaign"

        missing = await client.get(f"/api/v1/admin/campaigns/{uuid4()}", headers=ADMIN_HEADERS)
        assert missing.status_code == 404


@pytest.mark.asyncio
async def test_campaign_applications_filter(app_with_db):
    app, session_factory = app_with_db
    async with session_factory() as session:
        campaign = await make_campaign(session)
        pending = await make_application(session, await make_creator(session), campaign)
        await make_application(
            session,
            await make_creator(session),
            campaign,
            status=ApplicationStatusEnum.REJECTED,
        )
        await session.commit()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        everything = await client.get(f"/api/v1/admin/campaigns/{campaign.id}/applications", headers=ADMIN_HEADERS)
        pending_only = await client.get(
            f"/api/v1/admin/campaigns/{campaign.id}/applications",
            params={"status": "pending"},
            headers=ADMIN_HEADERS,
        )

    assert [item["sequenceNumber"] for item in everything.json()] == [1, 2]
    assert [item["id"] for item in pending_only.json()] == [str(pending.id)]


@pytest.mark.asyncio
async def test_account_moderation_endpoints(app_with_db):
    app, session_factory = app_with_db
    async with session_factory() as session:
        creator = await make_creator(session)
        campaign = await make_campaign(session)
        await session.commit()

    base = f"/api/v1/admin/creators/{creator.id}"
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        suspended = await client.post(f"{base}/suspend", json={"reason": "Review"}, headers=ADMIN_HEADERS)
        assert suspended.json()["suspended"] is True

        again = await client.post(f"{base}/suspend", headers=ADMIN_HEADERS)
        assert again.status_code == 400
        assert again.json()["detail"]["code"] == "AlreadySuspended"

        blocked_apply = await client.post(
            "/api/v1/applications",
            json={"campaignId": str(campaign.id)},
            headers={"X-Session-User": str(creator.id)},
        )
        assert blocked_apply.status_code == 403

        await client.post(f"{base}/unsuspend", headers=ADMIN_HEADERS)
        blocked = await client.post(f"{base}/block", headers=ADMIN_HEADERS)
        assert blocked.json()["blocked"] is True
        unblocked = await client.post(f"{base}/unblock", headers=ADMIN_HEADERS)
        assert unblocked.json()["blocked"] is False

        scored = await client.post(
            f"{base}/score",
            json={"delta": 30, "displayReason": "Excellent review"},
            headers=ADMIN_HEADERS,
        )
        assert scored.json()["score"] == 30

        zero = await client.post(f"{base}/penalty", json={"delta": 0}, headers=ADMIN_HEADERS)
        assert zero.status_code == 400
        assert zero.json()["detail"]["code"] == "InvalidAdjustment"

        events = await client.get(f"{base}/reputation-events", headers=ADMIN_HEADERS)
        assert [event["displayReason"] for event in events.json()] == ["Excellent review"]
        assert events.json()[0]["createdByAdminId"] == "admin-1"

        unknown = await client.post(f"/api/v1/admin/creators/{uuid4()}/suspend", headers=ADMIN_HEADERS)
        assert unknown.status_code == 404
        assert unknown.json()["detail"]["code"] == "CreatorNotFound"


@pytest.mark.asyncio
async def test_manual_chat_sweep(app_with_db):
    app, session_factory = app_with_db
    async with session_factory() as session:
        creator = await make_creator(session)
        session.add(ChatRoom(creator_id=creator.id, expires_at=datetime.now(timezone.utc) - timedelta(minutes=1)))
        await session.commit()

    app.state.chat_lifecycle_worker = ChatLifecycleWorker(
        session_factory,
        storage_factory=NoopStorage,
        holder="test-holder",
    )

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        first = await client.post("/api/v1/admin/chat/sweep", headers=ADMIN_HEADERS)
        second = await client.post("/api/v1/admin/chat/sweep", headers=ADMIN_HEADERS)

    assert first.status_code == 200
    assert first.json() == {
        "expired": 1,
        "ended": 1,
        "failed": 0,
        "skipped": False,
        "reason": None,
        "failedRoomIds": [],
    }
    assert second.json()["ended"] == 0
