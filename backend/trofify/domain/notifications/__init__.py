"""Notification domain exports."""

from .models import Notification, UnreadCount  # noqa: F401
from .repo import (  # noqa: F401
    InMemoryNotificationRepository,
    NotificationRepository,
    PostgresNotificationRepository,
)
from .service import NotificationCounter  # noqa: F401
