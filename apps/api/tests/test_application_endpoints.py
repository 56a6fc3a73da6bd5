from __future__ import annotations

from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from creatorcamp_api.models.application import ApplicationStatusEnum
from creatorcamp_api.models.notification import Notification
from creatorcamp_api.models.reputation import ScoreReasonEnum
from creatorcamp_api.services.reputation import ReputationLedger

from factories import make_application, make_campaign, make_creator


def _creator_headers(creator) -> dict[str, str]:
    return {"X-Session-User": str(creator.id)}


@pytest.mark.asyncio
async def test_creator_applies_and_lists_applications(app_with_db):
    app, session_factory = app_with_db
    async with session_factory() as session:
        creator = await make_creator(session)
        campaign = await make_campaign(session)
        await session.commit()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post(
            "/api/v1/applications",
            json={"campaignId": str(campaign.id)},
            headers=_creator_headers(creator),
        )
        assert response.status_code == 201
        body = response.json()
        assert body["operation"] == "create"
        assert body["previousStatus"] is None
        assert body["application"]["status"] == "pending"
        assert body["application"]["sequenceNumber"] == 1
        assert body["application"]["firstTime"] is True
        assert body["details"]["tier"] == "starting"

        duplicate = await client.post(
            "/api/v1/applications",
            json={"campaignId": str(campaign.id)},
            headers=_creator_headers(creator),
        )
        assert duplicate.status_code == 400
        assert duplicate.json()["detail"]["code"] == "DuplicateApplication"

        listing = await client.get("/api/v1/applications", headers=_creator_headers(creator))
        assert listing.status_code == 200
        assert [item["campaignId"] for item in listing.json()] == [str(campaign.id)]


@pytest.mark.asyncio
async def test_session_header_is_required(app_with_db):
    app, session_factory = app_with_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        missing = await client.get("/api/v1/applications")
        invalid = await client.get("/api/v1/applications", headers={"X-Session-User": "nope"})
        unknown = await client.get("/api/v1/applications", headers={"X-Session-User": str(uuid4())})

    assert missing.status_code == 401
    assert invalid.status_code == 400
    assert unknown.status_code == 404


@pytest.mark.asyncio
async def test_account_guard_maps_to_forbidden(app_with_db):
    app, session_factory = app_with_db
    async with session_factory() as session:
        creator = await make_creator(session, suspended=True)
        campaign = await make_campaign(session)
        await session.commit()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post(
            "/api/v1/applications",
            json={"campaignId": str(campaign.id)},
            headers=_creator_headers(creator),
        )

    assert response.status_code == 403
    assert response.json()["detail"] == {
        "code": "AccountSuspended",
        "message": "Your account is suspended",
    }


@pytest.mark.asyncio
async def test_cancel_pending_application(app_with_db):
    app, session_factory = app_with_db
    async with session_factory() as session:
        creator = await make_creator(session)
        other = await make_creator(session)
        campaign = await make_campaign(session)
        application = await make_application(session, creator, campaign)
        await session.commit()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        forbidden = await client.delete(f"/api/v1/applications/{application.id}", headers=_creator_headers(other))
        assert forbidden.status_code == 403
        assert forbidden.json()["detail"]["code"] == "Forbidden"

        deleted = await client.delete(f"/api/v1/applications/{application.id}", headers=_creator_headers(creator))
        assert deleted.status_code == 204

        missing = await client.delete(f"/api/v1/applications/{application.id}", headers=_creator_headers(creator))
        assert missing.status_code == 404


@pytest.mark.asyncio
async def test_confirm_delivery_and_dismiss(app_with_db):
    app, session_factory = app_with_db
    async with session_factory() as session:
        creator = await make_creator(session)
        campaign = await make_campaign(session)
        shipped = await make_application(session, creator, campaign, status=ApplicationStatusEnum.SHIPPED)
        rejected = await make_application(
            session,
            creator,
            await make_campaign(session, name="Other"),
            status=ApplicationStatusEnum.REJECTED,
        )
        await session.commit()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        confirmed = await client.post(
            f"/api/v1/applications/{shipped.id}/confirm-delivery",
            headers=_creator_headers(creator),
        )
        assert confirmed.status_code == 200
        assert confirmed.json()["application"]["deliveryConfirmedBy"] == "creator"
        assert confirmed.json()["details"] == {"points_awarded": 2}

        dismissed = await client.post(
            f"/api/v1/applications/{rejected.id}/dismiss",
            headers=_creator_headers(creator),
        )
        assert dismissed.status_code == 200
        assert dismissed.json()["application"]["dismissedAt"] is not None

        visible = await client.get("/api/v1/applications", headers=_creator_headers(creator))
        everything = await client.get(
            "/api/v1/applications",
            params={"includeDismissed": "true"},
            headers=_creator_headers(creator),
        )
        assert [item["id"] for item in visible.json()] == [str(shipped.id)]
        assert len(everything.json()) == 2

        profile = await client.get("/api/v1/creators/me", headers=_creator_headers(creator))
        assert profile.json()["score"] == 2
        assert profile.json()["tier"] == "starting"

        events = await client.get("/api/v1/creators/me/reputation-events", headers=_creator_headers(creator))
        assert [(event["kind"], event["reason"], event["delta"]) for event in events.json()] == [
            ("score", "delivery_confirmed", 2)
        ]


@pytest.mark.asyncio
async def test_acknowledge_tier_upgrade(app_with_db):
    app, session_factory = app_with_db
    async with session_factory() as session:
        creator = await make_creator(session, completed_campaigns=1, score=55, pending_tier_upgrade="standard")
        await session.commit()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        before = await client.get("/api/v1/creators/me", headers=_creator_headers(creator))
        assert before.json()["pendingTierUpgrade"] == "standard"
        assert before.json()["tier"] == "standard"

        after = await client.post("/api/v1/creators/me/tier-upgrade/acknowledge", headers=_creator_headers(creator))
        assert after.status_code == 200
        assert after.json()["pendingTierUpgrade"] is None


@pytest.mark.asyncio
async def test_submit_content_for_delivered_application(app_with_db):
    app, session_factory = app_with_db
    async with session_factory() as session:
        creator = await make_creator(session)
        stranger = await make_creator(session)
        campaign = await make_campaign(session)
        delivered = await make_application(session, creator, campaign, status=ApplicationStatusEnum.DELIVERED)
        await session.commit()

    url = f"/api/v1/applications/{delivered.id}/submit-content"
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        invalid = await client.post(
            url,
            json={"videoUrl": "https://example.com/video/1"},
            headers=_creator_headers(creator),
        )
        assert invalid.status_code == 400
        assert invalid.json()["detail"] == {
            "code": "InvalidContentUrl",
            "message": "Please enter a valid TikTok video URL",
        }

        forbidden = await client.post(
            url,
            json={"videoUrl": "https://www.tiktok.com/@qa/video/1"},
            headers=_creator_headers(stranger),
        )
        assert forbidden.status_code == 403

        submitted = await client.post(
            url,
            json={"videoUrl": "https://www.tiktok.com/@qa/video/1"},
            headers=_creator_headers(creator),
        )
        assert submitted.status_code == 200
        body = submitted.json()
        assert body["application"]["status"] == "delivered"
        assert body["application"]["contentUrl"] == "https://www.tiktok.com/@qa/video/1"
        assert body["application"]["contentSubmittedAt"] is not None


@pytest.mark.asyncio
async def test_unseen_score_events_are_marked_seen(app_with_db):
    app, session_factory = app_with_db
    async with session_factory() as session:
        creator = await make_creator(session)
        event = await ReputationLedger(session).add_score_event(
            creator.id,
            5,
            ScoreReasonEnum.ADMIN_MANUAL,
            display_reason="Welcome bonus",
        )
        await session.commit()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        unseen = await client.get("/api/v1/creators/me/score-events/unseen", headers=_creator_headers(creator))
        assert unseen.status_code == 200
        assert [(item["id"], item["delta"], item["displayReason"]) for item in unseen.json()] == [
            (str(event.id), 5, "Welcome bonus")
        ]

        marked = await client.post(
            "/api/v1/creators/me/score-events/mark-seen",
            json={"eventIds": [str(event.id), str(uuid4())]},
            headers=_creator_headers(creator),
        )
        assert marked.json() == {"marked": 1}

        after = await client.get("/api/v1/creators/me/score-events/unseen", headers=_creator_headers(creator))
        assert after.json() == []


@pytest.mark.asyncio
async def test_creator_notifications_can_be_read(app_with_db):
    app, session_factory = app_with_db
    async with session_factory() as session:
        creator = await make_creator(session)
        other = await make_creator(session)
        notices = [
            Notification(creator_id=creator.id, type="approved", title="Approved", message="You are in"),
            Notification(creator_id=creator.id, type="shipped", title="Shipped", message="On its way"),
            Notification(creator_id=other.id, type="approved", title="Approved", message="You are in"),
        ]
        session.add_all(notices)
        await session.commit()
        own_id, foreign_id = notices[0].id, notices[2].id

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        listed = await client.get("/api/v1/creators/me/notifications", headers=_creator_headers(creator))
        assert listed.status_code == 200
        assert {item["type"] for item in listed.json()} == {"approved", "shipped"}

        read = await client.post(
            f"/api/v1/creators/me/notifications/{own_id}/read",
            headers=_creator_headers(creator),
        )
        assert read.status_code == 200
        assert read.json()["readAt"] is not None

        foreign = await client.post(
            f"/api/v1/creators/me/notifications/{foreign_id}/read",
            headers=_creator_headers(creator),
        )
        assert foreign.status_code == 404
        assert foreign.json()["detail"]["code"] == "NotificationNotFound"

        unread = await client.get(
            "/api/v1/creators/me/notifications",
            params={"unreadOnly": "true"},
            headers=_creator_headers(creator),
        )
        assert [item["type"] for item in unread.json()] == ["shipped"]

        all_read = await client.post("/api/v1/creators/me/notifications/read-all", headers=_creator_headers(creator))
        assert all_read.json() == {"marked": 1}
