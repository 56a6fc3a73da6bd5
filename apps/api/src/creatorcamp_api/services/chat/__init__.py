"""Support chat lifecycle services."""

from .reaper import SYSTEM_ACTOR, ChatRoomReaper, JobLeaseManager, SweepSummary
from .storage import ChatAttachmentStorage, ChatStorageError

__all__ = [
    "ChatAttachmentStorage",
    "ChatRoomReaper",
    "ChatStorageError",
    "JobLeaseManager",
    "SweepSummary",
    "SYSTEM_ACTOR",
]
