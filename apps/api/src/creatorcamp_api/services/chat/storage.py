"""Object storage for chat room attachments."""

from __future__ import annotations

import asyncio
from typing import Callable
from uuid import UUID

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from creatorcamp_api.core.settings import Settings, get_settings

# S3 DeleteObjects accepts at most 1000 keys per request.
_DELETE_BATCH_SIZE = 1000


class ChatStorageError(RuntimeError):
    """Raised when attachments for a room could not be removed."""


class ChatAttachmentStorage:
    """Deletes every object stored under a room's key prefix.

    Without a configured bucket the storage is disabled and deletion is a no-op.
    """

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        s3_client_factory: Callable[[], object] | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._s3_client_factory = s3_client_factory
        self._bucket = (self._settings.chat_storage_bucket or "").strip()
        self._prefix = (self._settings.chat_storage_prefix or "chat-rooms").strip("/")
        self._client = self._build_client()

    @property
    def enabled(self) -> bool:
        return bool(self._bucket) and self._client is not None

    def room_prefix(self, room_id: UUID | str) -> str:
        parts = [part for part in (self._prefix, str(room_id)) if part]
        return "/".join(parts) + "/"

    async def delete_room_files(self, room_id: UUID | str) -> int:
        """Delete all attachments of ``room_id`` and return how many were removed."""

        if not self.enabled:
            return 0

        prefix = self.room_prefix(room_id)
        try:
            keys = await asyncio.to_thread(self._list_keys, prefix)
            deleted = 0
            for start in range(0, len(keys), _DELETE_BATCH_SIZE):
                batch = keys[start : start + _DELETE_BATCH_SIZE]
                await asyncio.to_thread(self._delete_batch, batch)
                deleted += len(batch)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            raise ChatStorageError(f"Attachment cleanup failed for {prefix} ({code})") from exc
        except BotoCoreError as exc:
            raise ChatStorageError(f"Attachment cleanup failed for {prefix} ({exc})") from exc

        logger.info("Chat room attachments deleted", room_id=str(room_id), prefix=prefix, deleted=deleted)
        return deleted

    def _list_keys(self, prefix: str) -> list[str]:
        paginator = self._client.get_paginator("list_objects_v2")
        keys: list[str] = []
        for page in paginator.paginate(Bucket=self._bucket, Prefix=prefix):
            keys.extend(item["Key"] for item in page.get("Contents", []))
        return keys

    def _delete_batch(self, keys: list[str]) -> None:
        response = self._client.delete_objects(
            Bucket=self._bucket,
            Delete={"Objects": [{"Key": key} for key in keys], "Quiet": True},
        )
        errors = response.get("Errors") or []
        if errors:
            first = errors[0]
            raise ChatStorageError(
                f"Failed to delete {len(errors)} objects (first: {first.get('Key')} {first.get('Code')})"
            )

    def _build_client(self):
        if self._s3_client_factory is not None:
            return self._s3_client_factory()

        if not self._bucket:
            return None
        config = None
        if self._settings.chat_storage_force_path_style:
            config = Config(s3={"addressing_style": "path"})
        return boto3.client(
            "s3",
            region_name=self._settings.chat_storage_region,
            endpoint_url=self._settings.chat_storage_endpoint or None,
            config=config,
        )


__all__ = ["ChatAttachmentStorage", "ChatStorageError"]
