"""High-level notification service for creator lifecycle events."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from creatorcamp_api.core.settings import get_settings
from creatorcamp_api.models.creator import Creator
from creatorcamp_api.models.notification import (
    Notification,
    NotificationChannelEnum,
    NotificationStatusEnum,
)
from creatorcamp_api.services.errors import NotFoundError

from .backend import EmailBackend, InMemoryEmailBackend, SMTPEmailBackend
from .templates import RenderedTemplate, render_notification


class NotificationNotFoundError(NotFoundError):
    code = "NotificationNotFound"


@dataclass
class NotificationEvent:
    """Representation of a notification that was sent."""

    recipient: str
    subject: str
    body_text: str
    body_html: str | None
    event_type: str
    metadata: dict[str, Any]


class NotificationService:
    """Best-effort delivery of lifecycle notifications.

    Every call records an in-app :class:`Notification` row and, for email-capable
    templates, emails the creator. Failures are logged and stored on the row;
    they are never raised to the caller, whose transition has already committed.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        backend: Optional[EmailBackend] = None,
    ) -> None:
        self._db = db_session
        self._backend = backend if backend is not None else self._build_default_backend()
        self._events: list[NotificationEvent] = []

    @property
    def sent_events(self) -> list[NotificationEvent]:
        """Expose events (useful for tests when using in-memory backend)."""
        return self._events

    def use_in_memory_backend(self) -> InMemoryEmailBackend:
        backend = InMemoryEmailBackend()
        self._backend = backend
        return backend

    async def send(
        self,
        event_type: str,
        creator: Creator,
        data: Mapping[str, Any] | None = None,
    ) -> Notification | None:
        payload = dict(data or {})
        try:
            template = render_notification(
                event_type,
                payload,
                contact_name=creator.display_name,
            )
        except KeyError:
            logger.warning("Unknown notification type", event_type=event_type, creator_id=str(creator.id))
            return None

        record = Notification(
            creator_id=creator.id,
            campaign_id=_as_uuid(payload.get("campaign_id")),
            application_id=_as_uuid(payload.get("application_id")),
            type=event_type,
            channel=template.channel.value,
            title=template.title,
            message=template.text_body,
            status=NotificationStatusEnum.RECORDED.value,
            metadata_json={key: _jsonable(value) for key, value in payload.items()},
        )

        if template.channel != NotificationChannelEnum.IN_APP and creator.email:
            try:
                delivered = await self._deliver(creator.email, template, event_type=event_type, metadata=payload)
                if delivered:
                    record.status = NotificationStatusEnum.SENT.value
            except Exception as exc:
                record.status = NotificationStatusEnum.FAILED.value
                record.error_message = str(exc)
                logger.warning(
                    "Notification email delivery failed",
                    event_type=event_type,
                    creator_id=str(creator.id),
                    error=str(exc),
                )

        try:
            self._db.add(record)
            await self._db.commit()
        except Exception as exc:
            await self._db.rollback()
            logger.exception(
                "Failed to persist notification",
                event_type=event_type,
                creator_id=str(creator.id),
                error=str(exc),
            )
            return None

        logger.info(
            "Notification recorded",
            event_type=event_type,
            creator_id=str(creator.id),
            status=record.status,
        )
        return record

    async def list_for_creator(
        self,
        creator_id: UUID,
        *,
        unread_only: bool = False,
        limit: int = 50,
    ) -> list[Notification]:
        stmt = (
            select(Notification)
            .where(Notification.creator_id == creator_id)
            .order_by(Notification.created_at.desc())
            .limit(limit)
        )
        if unread_only:
            stmt = stmt.where(Notification.read_at.is_(None))
        result = await self._db.execute(stmt)
        return list(result.scalars())

    async def mark_read(self, notification_id: UUID, *, creator_id: UUID) -> Notification:
        """Stamp ``read_at`` once; reading an already-read notification is a no-op."""

        record = await self._db.get(Notification, notification_id)
        if record is None or record.creator_id != creator_id:
            raise NotificationNotFoundError("Notification not found")
        if record.read_at is None:
            record.read_at = datetime.now(timezone.utc)
            await self._db.commit()
        return record

    async def mark_all_read(self, creator_id: UUID) -> int:
        result = await self._db.execute(
            update(Notification)
            .where(Notification.creator_id == creator_id, Notification.read_at.is_(None))
            .values(read_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        await self._db.commit()
        return int(result.rowcount or 0)

    def _build_default_backend(self) -> Optional[EmailBackend]:
        settings = get_settings()
        if not settings.smtp_host or not settings.smtp_sender_email:
            return None

        return SMTPEmailBackend(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            sender_email=settings.smtp_sender_email,
        )

    async def _deliver(
        self,
        recipient: str,
        template: RenderedTemplate,
        *,
        event_type: str,
        metadata: dict[str, Any],
    ) -> bool:
        """Send using active backend and record emitted event."""
        if self._backend is None:
            return False

        await self._backend.send_email(
            recipient,
            template.subject,
            template.text_body,
            body_html=template.html_body,
            bcc=get_settings().notification_bcc_recipients or None,
        )
        self._events.append(
            NotificationEvent(
                recipient=recipient,
                subject=template.subject,
                body_text=template.text_body,
                body_html=template.html_body,
                event_type=event_type,
                metadata=metadata,
            )
        )
        return True


def _as_uuid(value: Any) -> UUID | None:
    if value is None or isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _jsonable(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)
