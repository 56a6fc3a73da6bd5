from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest
from botocore.exceptions import ClientError
from sqlalchemy import select

from creatorcamp_api.core.settings import Settings
from creatorcamp_api.models.chat import ChatRoom, ChatRoomStatusEnum
from creatorcamp_api.models.job_lease import JobLease
from creatorcamp_api.observability.lifecycle import get_lifecycle_store
from creatorcamp_api.services.chat import SYSTEM_ACTOR, ChatAttachmentStorage, ChatStorageError
from creatorcamp_api.workers.chat_lifecycle import LEASE_NAME, ChatLifecycleWorker

from factories import make_creator


class FakePaginator:
    def __init__(self, objects: dict[str, list[str]]) -> None:
        self._objects = objects

    def paginate(self, *, Bucket: str, Prefix: str):
        keys = [key for key in self._objects.get(Bucket, []) if key.startswith(Prefix)]
        # Two pages so pagination is exercised.
        middle = len(keys) // 2
        yield {"Contents": [{"Key": key} for key in keys[:middle]]}
        yield {"Contents": [{"Key": key} for key in keys[middle:]]}


class FakeS3Client:
    def __init__(self, objects: dict[str, list[str]] | None = None, *, fail_with: str | None = None) -> None:
        self.objects = objects or {}
        self.deleted: list[str] = []
        self.fail_with = fail_with

    def get_paginator(self, name: str) -> FakePaginator:
        assert name == "list_objects_v2"
        return FakePaginator(self.objects)

    def delete_objects(self, *, Bucket: str, Delete: dict) -> dict:
        if self.fail_with:
            raise ClientError({"Error": {"Code": self.fail_with, "Message": "denied"}}, "DeleteObjects")
        keys = [item["Key"] for item in Delete["Objects"]]
        self.deleted.extend(keys)
        self.objects[Bucket] = [key for key in self.objects.get(Bucket, []) if key not in keys]
        return {"Deleted": [{"Key": key} for key in keys]}


class RecordingStorage:
    """Stands in for attachment storage; can fail or block for selected rooms."""

    def __init__(self, *, failing: set[str] | None = None, gate: asyncio.Event | None = None) -> None:
        self.failing = failing or set()
        self.gate = gate
        self.started = asyncio.Event()
        self.calls: list[str] = []

    async def delete_room_files(self, room_id: UUID | str) -> int:
        self.calls.append(str(room_id))
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if str(room_id) in self.failing:
            raise ChatStorageError(f"cannot delete {room_id}")
        return 0


async def _seed_rooms(session_factory) -> dict[str, ChatRoom]:
    now = datetime.now(timezone.utc)
    async with session_factory() as session:
        creator = await make_creator(session)
        rooms = {
            "expired_old": ChatRoom(creator_id=creator.id, expires_at=now - timedelta(hours=3)),
            "expired_recent": ChatRoom(creator_id=creator.id, expires_at=now - timedelta(minutes=5)),
            "live": ChatRoom(creator_id=creator.id, expires_at=now + timedelta(hours=2)),
            "already_ended": ChatRoom(
                creator_id=creator.id,
                expires_at=now - timedelta(hours=1),
                status=ChatRoomStatusEnum.ENDED,
                ended_by="admin-7",
                ended_at=now - timedelta(hours=1),
            ),
        }
        session.add_all(rooms.values())
        await session.commit()
        return rooms


async def _room_states(session_factory) -> dict[UUID, tuple[ChatRoomStatusEnum, str | None]]:
    async with session_factory() as session:
        result = await session.execute(select(ChatRoom))
        return {room.id: (room.status, room.ended_by) for room in result.scalars()}


@pytest.mark.asyncio
async def test_sweep_ends_expired_rooms_once(session_factory):
    rooms = await _seed_rooms(session_factory)
    expired_prefix = f"chat-rooms/{rooms['expired_old'].id}/"
    s3 = FakeS3Client(
        {
            "chat-bucket": [
                f"{expired_prefix}photo-1.jpg",
                f"{expired_prefix}photo-2.jpg",
                f"chat-rooms/{rooms['live'].id}/keep.jpg",
            ]
        }
    )
    settings = Settings(chat_storage_bucket="chat-bucket")

    worker = ChatLifecycleWorker(
        session_factory,
        storage_factory=lambda: ChatAttachmentStorage(settings=settings, s3_client_factory=lambda: s3),
        holder="test-holder",
    )

    first = await worker.run_once(triggered_by="test")
    assert first == {"expired": 2, "ended": 2, "failed": 0, "skipped": False, "failed_room_ids": []}
    assert sorted(s3.deleted) == [f"{expired_prefix}photo-1.jpg", f"{expired_prefix}photo-2.jpg"]

    states = await _room_states(session_factory)
    assert states[rooms["expired_old"].id] == (ChatRoomStatusEnum.ENDED, SYSTEM_ACTOR)
    assert states[rooms["expired_recent"].id] == (ChatRoomStatusEnum.ENDED, SYSTEM_ACTOR)
    assert states[rooms["live"].id] == (ChatRoomStatusEnum.ACTIVE, None)
    assert states[rooms["already_ended"].id] == (ChatRoomStatusEnum.ENDED, "admin-7")

    second = await worker.run_once(triggered_by="test")
    assert second["expired"] == 0
    assert second["ended"] == 0

    reaper_stats = get_lifecycle_store().snapshot().reaper
    assert reaper_stats["sweeps"] == 2
    assert reaper_stats["ended"] == 2
    assert reaper_stats["last_run_at"] is not None

    async with session_factory() as session:
        lease = await session.get(JobLease, LEASE_NAME)
        assert lease.holder is None
        assert lease.last_completed_at is not None


@pytest.mark.asyncio
async def test_failed_room_is_left_active_for_next_sweep(session_factory):
    rooms = await _seed_rooms(session_factory)
    failing_id = str(rooms["expired_old"].id)
    storage = RecordingStorage(failing={failing_id})
    worker = ChatLifecycleWorker(session_factory, storage_factory=lambda: storage, holder="test-holder")

    result = await worker.run_once()

    assert result["expired"] == 2
    assert result["ended"] == 1
    assert result["failed"] == 1
    assert result["failed_room_ids"] == [failing_id]
    states = await _room_states(session_factory)
    assert states[rooms["expired_old"].id][0] == ChatRoomStatusEnum.ACTIVE
    assert states[rooms["expired_recent"].id][0] == ChatRoomStatusEnum.ENDED

    storage.failing.clear()
    retry = await worker.run_once()
    assert retry["expired"] == 1
    assert retry["ended"] == 1


@pytest.mark.asyncio
async def test_overlapping_trigger_is_skipped(session_factory):
    await _seed_rooms(session_factory)
    gate = asyncio.Event()
    storage = RecordingStorage(gate=gate)
    worker = ChatLifecycleWorker(session_factory, storage_factory=lambda: storage, holder="test-holder")

    in_flight = asyncio.create_task(worker.run_once(triggered_by="schedule"))
    await asyncio.wait_for(storage.started.wait(), timeout=5)

    assert worker.is_busy() is True
    overlapping = await worker.run_once(triggered_by="admin:ops")
    assert overlapping == {"expired": 0, "ended": 0, "failed": 0, "skipped": True, "reason": "in_progress"}

    gate.set()
    finished = await asyncio.wait_for(in_flight, timeout=5)
    assert finished["ended"] == 2
    assert worker.is_busy() is False


@pytest.mark.asyncio
async def test_sweep_skipped_while_other_instance_holds_lease(session_factory):
    rooms = await _seed_rooms(session_factory)
    async with session_factory() as session:
        session.add(
            JobLease(
                name=LEASE_NAME,
                holder="other-host:42",
                lease_expires_at=datetime.now(timezone.utc) + timedelta(minutes=10),
            )
        )
        await session.commit()

    storage = RecordingStorage()
    worker = ChatLifecycleWorker(session_factory, storage_factory=lambda: storage, holder="test-holder")

    result = await worker.run_once()

    assert result["skipped"] is True
    assert result["reason"] == "lease_held"
    assert storage.calls == []
    states = await _room_states(session_factory)
    assert states[rooms["expired_old"].id][0] == ChatRoomStatusEnum.ACTIVE


@pytest.mark.asyncio
async def test_expired_lease_is_taken_over(session_factory):
    await _seed_rooms(session_factory)
    async with session_factory() as session:
        session.add(
            JobLease(
                name=LEASE_NAME,
                holder="crashed-host:1",
                lease_expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
            )
        )
        await session.commit()

    worker = ChatLifecycleWorker(session_factory, storage_factory=RecordingStorage, holder="test-holder")
    result = await worker.run_once()

    assert result["skipped"] is False
    assert result["ended"] == 2


@pytest.mark.asyncio
async def test_start_and_stop_lifecycle(session_factory):
    worker = ChatLifecycleWorker(
        session_factory,
        storage_factory=RecordingStorage,
        interval_seconds=3600,
        holder="test-holder",
    )

    worker.start()
    assert worker.is_running is True
    await asyncio.sleep(0)
    await worker.stop()
    assert worker.is_running is False


@pytest.mark.asyncio
async def test_storage_disabled_without_bucket():
    storage = ChatAttachmentStorage(settings=Settings(chat_storage_bucket=None))

    assert storage.enabled is False
    assert await storage.delete_room_files("room-1") == 0


@pytest.mark.asyncio
async def test_storage_wraps_client_errors():
    s3 = FakeS3Client({"chat-bucket": ["chat-rooms/room-1/a.jpg"]}, fail_with="AccessDenied")
    storage = ChatAttachmentStorage(
        settings=Settings(chat_storage_bucket="chat-bucket"),
        s3_client_factory=lambda: s3,
    )

    with pytest.raises(ChatStorageError, match="AccessDenied"):
        await storage.delete_room_files("room-1")


def test_room_prefix_uses_configured_prefix():
    storage = ChatAttachmentStorage(
        settings=Settings(chat_storage_bucket="chat-bucket", chat_storage_prefix="/support/chat/"),
        s3_client_factory=FakeS3Client,
    )

    assert storage.room_prefix("abc") == "support/chat/abc/"
