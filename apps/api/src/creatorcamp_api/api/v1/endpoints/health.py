from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Literal

from fastapi import APIRouter, Depends, Request
from loguru import logger
from pydantic import BaseModel, Field
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from creatorcamp_api.core.settings import settings
from creatorcamp_api.db.session import get_session
from creatorcamp_api.observability.lifecycle import get_lifecycle_store


router = APIRouter()


class ComponentStatus(BaseModel):
    status: Literal["ready", "starting", "disabled", "error", "degraded"]
    detail: str | None = Field(default=None, description="Human readable status detail")
    last_error_at: str | None = Field(default=None, description="ISO timestamp of most recent error")
    last_success_at: str | None = Field(default=None, description="ISO timestamp of most recent success")


class ReadinessPayload(BaseModel):
    status: Literal["ready", "degraded", "error"]
    components: Dict[str, ComponentStatus]


@router.get("/healthz", summary="Service health check")
async def service_health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz", summary="Service readiness", response_model=ReadinessPayload)
async def service_readiness(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> ReadinessPayload:
    components: Dict[str, ComponentStatus] = {}
    status: Literal["ready", "degraded", "error"] = "ready"

    components["database"] = await _evaluate_database_component(session)
    if components["database"].status == "error":
        status = "error"

    worker = getattr(request.app.state, "chat_lifecycle_worker", None)
    last_sweep_at = get_lifecycle_store().snapshot().reaper.get("last_run_at")
    if settings.chat_reaper_enabled and worker is not None:
        running = bool(getattr(worker, "is_running", False))
        reaper_status: Literal["ready", "starting", "disabled", "error"] = "ready" if running else "starting"
        detail = None if running else "Chat lifecycle worker not running"
        if not running:
            status = "degraded" if status != "error" else status
        components["chat_reaper"] = ComponentStatus(
            status=reaper_status,
            detail=detail,
            last_success_at=last_sweep_at,
        )
    else:
        components["chat_reaper"] = ComponentStatus(
            status="disabled",
            detail="Chat lifecycle worker disabled via settings",
            last_success_at=last_sweep_at,
        )

    if (settings.chat_storage_bucket or "").strip():
        components["chat_storage"] = ComponentStatus(status="ready")
    else:
        components["chat_storage"] = ComponentStatus(
            status="disabled",
            detail="Chat storage bucket not configured",
        )

    return ReadinessPayload(status=status, components=components)


async def _evaluate_database_component(session: AsyncSession) -> ComponentStatus:
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Database readiness check failed", error=str(exc))
        return ComponentStatus(
            status="error",
            detail="Database unreachable",
            last_error_at=datetime.now(timezone.utc).isoformat(),
        )
    return ComponentStatus(status="ready", last_success_at=datetime.now(timezone.utc).isoformat())
