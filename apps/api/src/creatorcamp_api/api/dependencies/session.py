"""Session-aware dependencies for creator and admin APIs."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from creatorcamp_api.api.dependencies.security import require_admin_api_key
from creatorcamp_api.db.session import get_session
from creatorcamp_api.models.creator import Creator


async def require_creator_session(
    session_user: str | None = Header(None, alias="X-Session-User"),
    db: AsyncSession = Depends(get_session),
) -> Creator:
    """Resolve the authenticated creator from forwarded session headers."""

    if not session_user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing session user context",
        )

    try:
        creator_id = UUID(session_user)
    except ValueError as error:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid session user identifier",
        ) from error

    stmt = select(Creator).where(Creator.id == creator_id)
    result = await db.execute(stmt)
    creator = result.scalar_one_or_none()
    if creator is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Session user not found",
        )

    return creator


async def require_admin_session(
    admin_id: str | None = Header(None, alias="X-Admin-Id"),
    _: None = Depends(require_admin_api_key),
) -> str:
    """Return the acting admin identifier recorded on ledger and lifecycle rows."""

    if not admin_id or not admin_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing admin context",
        )
    return admin_id.strip()
