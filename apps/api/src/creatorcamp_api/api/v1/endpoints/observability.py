"""Observability endpoints for lifecycle counters."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from creatorcamp_api.api.dependencies.security import require_admin_api_key
from creatorcamp_api.observability.lifecycle import get_lifecycle_store


router = APIRouter(prefix="/observability", tags=["Observability"])


@router.get(
    "/lifecycle",
    summary="Lifecycle counters snapshot",
    dependencies=[Depends(require_admin_api_key)],
)
async def lifecycle_snapshot() -> dict[str, object]:
    """Transitions, rejections, ledger, inventory and reaper counters since process start."""

    store = get_lifecycle_store()
    return store.snapshot().as_dict()
