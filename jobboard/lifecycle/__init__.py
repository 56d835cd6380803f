"""Application lifecycle: submission, status workflow and notification hand-off."""

from .manager import ApplicationLifecycleManager, EmployerStats, create_notification_executor
from .notices import Notice

__all__ = [
    "ApplicationLifecycleManager",
    "EmployerStats",
    "Notice",
    "create_notification_executor",
]
