"""Expiry sweep for support chat rooms."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable
from uuid import UUID

from loguru import logger
from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from creatorcamp_api.models.chat import ChatRoom, ChatRoomStatusEnum
from creatorcamp_api.models.job_lease import JobLease

from .storage import ChatAttachmentStorage

SYSTEM_ACTOR = "system"


@dataclass(slots=True)
class SweepSummary:
    expired: int = 0
    ended: int = 0
    failed: int = 0
    skipped: bool = False
    failed_room_ids: list[str] = field(default_factory=list)

    def as_dict(self) -> dict[str, object]:
        return {
            "expired": self.expired,
            "ended": self.ended,
            "failed": self.failed,
            "skipped": self.skipped,
            "failed_room_ids": list(self.failed_room_ids),
        }


class JobLeaseManager:
    """Row-based lease so only one process runs a named job at a time."""

    def __init__(self, session: AsyncSession, *, name: str, holder: str, lease_seconds: int) -> None:
        self._session = session
        self._name = name
        self._holder = holder
        self._lease = timedelta(seconds=lease_seconds)

    async def acquire(self) -> bool:
        now = datetime.now(timezone.utc)
        result = await self._session.execute(
            update(JobLease)
            .where(
                JobLease.name == self._name,
                or_(
                    JobLease.holder.is_(None),
                    JobLease.holder == self._holder,
                    JobLease.lease_expires_at.is_(None),
                    JobLease.lease_expires_at <= now,
                ),
            )
            .values(holder=self._holder, lease_expires_at=now + self._lease, heartbeat_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            await self._session.commit()
            return True

        existing = await self._session.execute(select(JobLease.name).where(JobLease.name == self._name))
        if existing.first() is not None:
            await self._session.rollback()
            return False

        self._session.add(
            JobLease(name=self._name, holder=self._holder, lease_expires_at=now + self._lease, heartbeat_at=now)
        )
        try:
            await self._session.commit()
        except IntegrityError:
            await self._session.rollback()
            return False
        return True

    async def heartbeat(self) -> None:
        now = datetime.now(timezone.utc)
        await self._session.execute(
            update(JobLease)
            .where(JobLease.name == self._name, JobLease.holder == self._holder)
            .values(heartbeat_at=now, lease_expires_at=now + self._lease)
            .execution_options(synchronize_session=False)
        )
        await self._session.commit()

    async def release(self) -> None:
        now = datetime.now(timezone.utc)
        await self._session.execute(
            update(JobLease)
            .where(JobLease.name == self._name, JobLease.holder == self._holder)
            .values(holder=None, lease_expires_at=None, last_completed_at=now)
            .execution_options(synchronize_session=False)
        )
        await self._session.commit()


class ChatRoomReaper:
    """Ends expired active rooms after purging their attachments.

    Rooms are processed independently; a failure on one room is logged and counted
    without aborting the rest of the sweep.
    """

    def __init__(self, session: AsyncSession, storage: ChatAttachmentStorage) -> None:
        self._session = session
        self._storage = storage

    async def sweep(
        self,
        *,
        now: datetime | None = None,
        heartbeat: Callable[[], Awaitable[None]] | None = None,
        heartbeat_every: int = 50,
    ) -> SweepSummary:
        cutoff = now or datetime.now(timezone.utc)
        summary = SweepSummary()
        room_ids = await self._expired_room_ids(cutoff)
        summary.expired = len(room_ids)

        for index, room_id in enumerate(room_ids, start=1):
            try:
                await self._storage.delete_room_files(room_id)
                ended = await self._end_room(room_id)
            except Exception as exc:
                await self._session.rollback()
                summary.failed += 1
                summary.failed_room_ids.append(str(room_id))
                logger.error("Failed to end expired chat room", room_id=str(room_id), error=str(exc))
                continue
            if ended:
                summary.ended += 1
            if heartbeat is not None and index % heartbeat_every == 0:
                await heartbeat()

        return summary

    async def _expired_room_ids(self, cutoff: datetime) -> list[UUID]:
        result = await self._session.execute(
            select(ChatRoom.id)
            .where(ChatRoom.status == ChatRoomStatusEnum.ACTIVE, ChatRoom.expires_at <= cutoff)
            .order_by(ChatRoom.expires_at.asc())
        )
        return list(result.scalars())

    async def _end_room(self, room_id: UUID) -> bool:
        result = await self._session.execute(
            update(ChatRoom)
            .where(ChatRoom.id == room_id, ChatRoom.status == ChatRoomStatusEnum.ACTIVE)
            .values(
                status=ChatRoomStatusEnum.ENDED,
                ended_at=datetime.now(timezone.utc),
                ended_by=SYSTEM_ACTOR,
            )
            .execution_options(synchronize_session=False)
        )
        await self._session.commit()
        if result.rowcount == 0:
            logger.info("Chat room already ended elsewhere", room_id=str(room_id))
            return False
        logger.info("Expired chat room ended", room_id=str(room_id))
        return True


__all__ = ["ChatRoomReaper", "JobLeaseManager", "SweepSummary", "SYSTEM_ACTOR"]
