"""State management (deletion queue file)"""
from .queue_store import QueueStore

__all__ = ["QueueStore"]
