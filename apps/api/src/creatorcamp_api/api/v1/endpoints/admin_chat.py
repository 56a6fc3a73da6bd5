"""Manual trigger for the chat lifecycle reaper."""

from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field

from creatorcamp_api.api.dependencies.session import require_admin_session
from creatorcamp_api.db.session import async_session
from creatorcamp_api.workers import ChatLifecycleWorker


router = APIRouter(prefix="/admin/chat", tags=["admin-chat"])


class ChatSweepResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    expired: int
    ended: int
    failed: int
    skipped: bool = False
    reason: str | None = None
    failed_room_ids: List[UUID] = Field(default_factory=list, alias="failedRoomIds")


def _session_factory():
    return async_session()


@router.post("/sweep", response_model=ChatSweepResponse)
async def trigger_chat_sweep(
    request: Request,
    admin_id: str = Depends(require_admin_session),
) -> ChatSweepResponse:
    """Run a sweep now; overlapping triggers report ``skipped`` instead of running twice."""

    worker = getattr(request.app.state, "chat_lifecycle_worker", None)
    if worker is None:
        worker = ChatLifecycleWorker(_session_factory)
        request.app.state.chat_lifecycle_worker = worker
    result = await worker.run_once(triggered_by=f"admin:{admin_id}")
    return ChatSweepResponse.model_validate(result)
