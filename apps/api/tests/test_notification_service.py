from __future__ import annotations

import pytest
from sqlalchemy import select

from creatorcamp_api.models.notification import Notification, NotificationStatusEnum
from creatorcamp_api.services.notifications import (
    InMemoryEmailBackend,
    NotificationNotFoundError,
    NotificationService,
)

from factories import make_creator


class FailingBackend:
    async def send_email(self, recipient, subject, body_text, *, body_html=None, bcc=None) -> None:
        raise ConnectionError("SMTP relay unavailable")


@pytest.mark.asyncio
async def test_email_capable_event_is_sent_and_recorded(session_factory):
    async with session_factory() as session:
        creator = await make_creator(session, display_name="Ada")
        await session.commit()

        backend = InMemoryEmailBackend()
        service = NotificationService(session, backend=backend)
        record = await service.send(
            "approved",
            creator,
            {"campaign_name": "Spring Glow", "application_id": "not-a-uuid"},
        )

        assert record.status == NotificationStatusEnum.SENT.value
        assert record.application_id is None
        assert record.metadata_json["campaign_name"] == "Spring Glow"
        assert len(backend.sent_messages) == 1
        assert backend.sent_messages[0]["To"] == creator.email
        assert [event.event_type for event in service.sent_events] == ["approved"]


@pytest.mark.asyncio
async def test_in_app_event_is_recorded_without_email(session_factory):
    async with session_factory() as session:
        creator = await make_creator(session)
        await session.commit()

        backend = InMemoryEmailBackend()
        service = NotificationService(session, backend=backend)
        record = await service.send("rejected", creator, {"campaign_name": "Spring Glow"})

        assert record.status == NotificationStatusEnum.RECORDED.value
        assert record.channel == "in_app"
        assert backend.sent_messages == []


@pytest.mark.asyncio
async def test_backend_failure_is_stored_not_raised(session_factory):
    async with session_factory() as session:
        creator = await make_creator(session)
        await session.commit()

        service = NotificationService(session, backend=FailingBackend())
        record = await service.send("tier_upgraded", creator, {"tier": "vip"})

        assert record.status == NotificationStatusEnum.FAILED.value
        assert record.error_message == "SMTP relay unavailable"
        stored = (await session.execute(select(Notification))).scalar_one()
        assert stored.status == NotificationStatusEnum.FAILED.value


@pytest.mark.asyncio
async def test_unknown_event_type_is_ignored(session_factory):
    async with session_factory() as session:
        creator = await make_creator(session)
        await session.commit()

        service = NotificationService(session)
        service.use_in_memory_backend()

        assert await service.send("campaign_launched", creator) is None
        assert (await session.execute(select(Notification))).scalars().all() == []


@pytest.mark.asyncio
async def test_creator_reads_own_notifications(session_factory):
    async with session_factory() as session:
        creator = await make_creator(session)
        other = await make_creator(session)
        await session.commit()

        service = NotificationService(session)
        service.use_in_memory_backend()
        first = await service.send("rejected", creator, {"campaign_name": "Spring Glow"})
        second = await service.send("approved", creator, {"campaign_name": "Summer Glow"})
        foreign = await service.send("rejected", other, {"campaign_name": "Spring Glow"})
        first_id, second_id, foreign_id = first.id, second.id, foreign.id

        listed = await service.list_for_creator(creator.id)
        assert {record.id for record in listed} == {first_id, second_id}

        read = await service.mark_read(first_id, creator_id=creator.id)
        assert read.read_at is not None
        stamped = read.read_at
        again = await service.mark_read(first_id, creator_id=creator.id)
        assert again.read_at == stamped

        unread = await service.list_for_creator(creator.id, unread_only=True)
        assert [record.id for record in unread] == [second_id]

        with pytest.raises(NotificationNotFoundError):
            await service.mark_read(foreign_id, creator_id=creator.id)

        assert await service.mark_all_read(creator.id) == 1
        assert await service.list_for_creator(creator.id, unread_only=True) == []
        assert [record.id for record in await service.list_for_creator(other.id, unread_only=True)] == [foreign_id]
