"""Background workers supporting async processing."""

from .chat_lifecycle import ChatLifecycleWorker

__all__ = ["ChatLifecycleWorker"]
