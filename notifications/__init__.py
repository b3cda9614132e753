"""
Notification dispatcher adapters.

Public API:
- NotificationService (message building + fire-and-forget delivery)
- Notification, NotificationType, NotificationPriority, UserRole
- RecordingNotificationSender, HttpNotificationSender
"""

from .service import (
    Notification,
    NotificationPriority,
    NotificationService,
    NotificationType,
    RecordingNotificationSender,
    UserRole,
)
from .http_sender import HttpNotificationSender

__all__ = [
    "Notification",
    "NotificationPriority",
    "NotificationService",
    "NotificationType",
    "RecordingNotificationSender",
    "UserRole",
    "HttpNotificationSender",
]
