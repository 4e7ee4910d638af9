"""Services module for taskshare - Business logic layer."""

from .notifier import ChangeNotifier
from .sharing_service import SharingService
from .task_service import TaskService
from .transports import (
    InMemoryTransport,
    LogTransport,
    NotificationTransport,
    NullTransport,
    WebhookTransport,
    build_transport,
)
from .user_service import UserService

__all__ = [
    "TaskService",
    "SharingService",
    "UserService",
    "ChangeNotifier",
    "NotificationTransport",
    "InMemoryTransport",
    "LogTransport",
    "NullTransport",
    "WebhookTransport",
    "build_transport",
]
