"""Worker that expires and purges support chat rooms."""

from __future__ import annotations

import asyncio
import os
import socket
from typing import Awaitable, Callable, Dict

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from creatorcamp_api.core.settings import settings
from creatorcamp_api.observability.lifecycle import get_lifecycle_store
from creatorcamp_api.services.chat import ChatAttachmentStorage, ChatRoomReaper, JobLeaseManager

SessionFactory = Callable[[], Awaitable[AsyncSession]] | Callable[[], AsyncSession]
StorageFactory = Callable[[], ChatAttachmentStorage]

LEASE_NAME = "chat_lifecycle_reaper"


class ChatLifecycleWorker:
    """Hourly chat room reaper with start/stop lifecycle.

    Sweeps are single-flight twice over: an in-process lock turns overlapping
    triggers into no-ops, and a ``job_leases`` row keeps other instances out.
    ``stop()`` halts scheduling but lets an in-flight sweep finish.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        storage_factory: StorageFactory | None = None,
        interval_seconds: int | None = None,
        lease_seconds: int | None = None,
        holder: str | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._storage_factory = storage_factory or ChatAttachmentStorage
        self.interval_seconds = interval_seconds or settings.chat_reaper_interval_seconds
        self._lease_seconds = lease_seconds or settings.chat_reaper_lease_seconds
        self._holder = holder or settings.chat_reaper_holder_label or f"{socket.gethostname()}:{os.getpid()}"
        self._sweep_lock = asyncio.Lock()
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None
        self.is_running: bool = False
        self._logger = logger.bind(worker="chat_lifecycle")

    def start(self) -> None:
        if self._task and not self._task.done():
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_loop())
        self.is_running = True
        self._logger.info(
            "Chat lifecycle worker started",
            interval_seconds=self.interval_seconds,
            holder=self._holder,
        )

    async def stop(self) -> None:
        if not self._task:
            return
        self._stop_event.set()
        await self._task
        self._task = None
        self.is_running = False
        self._logger.info("Chat lifecycle worker stopped")

    def is_busy(self) -> bool:
        return self._sweep_lock.locked()

    async def run_once(self, *, triggered_by: str = "schedule") -> Dict[str, object]:
        """Run one sweep unless another is already in progress here or elsewhere."""

        if self._sweep_lock.locked():
            self._logger.info("Chat sweep already running; trigger ignored", triggered_by=triggered_by)
            return {"expired": 0, "ended": 0, "failed": 0, "skipped": True, "reason": "in_progress"}

        async with self._sweep_lock:
            session = await self._ensure_session()
            async with session as managed_session:
                lease = JobLeaseManager(
                    managed_session,
                    name=LEASE_NAME,
                    holder=self._holder,
                    lease_seconds=self._lease_seconds,
                )
                if not await lease.acquire():
                    self._logger.info("Chat sweep lease held by another instance", triggered_by=triggered_by)
                    return {"expired": 0, "ended": 0, "failed": 0, "skipped": True, "reason": "lease_held"}

                try:
                    reaper = ChatRoomReaper(managed_session, self._storage_factory())
                    summary = await reaper.sweep(heartbeat=lease.heartbeat)
                finally:
                    await lease.release()

        result = summary.as_dict()
        get_lifecycle_store().record_reaper_sweep(
            {"expired": summary.expired, "ended": summary.ended, "failed": summary.failed}
        )
        self._logger.info(
            "Chat sweep completed",
            triggered_by=triggered_by,
            expired=summary.expired,
            ended=summary.ended,
            failed=summary.failed,
        )
        return result

    async def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await self.run_once()
            except Exception as exc:  # pragma: no cover
                self._logger.exception("Chat lifecycle iteration failed", error=str(exc))
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                continue

    async def _ensure_session(self) -> AsyncSession:
        maybe_session = self._session_factory()
        if isinstance(maybe_session, AsyncSession):
            return maybe_session
        return await maybe_session


__all__ = ["ChatLifecycleWorker", "LEASE_NAME"]
