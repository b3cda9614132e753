#Purpose: HTTP delivery of notifications to the hosted backend.
#POSTs one JSON document per notification to {NOTIFY_BASE_URL}/notifications.
#Raises ExternalServiceError on any failure; NotificationService decides to drop it.

from __future__ import annotations

from typing import Optional

import requests

from common.exceptions import ExternalServiceError
from common.settings import load_settings
from .service import Notification


class HttpNotificationSender:
    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        settings = load_settings()
        self.base_url = (base_url or settings.notify_base_url or "").rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self.session = session or requests.Session()

        if not self.base_url:
            raise ValueError("Notification base URL not set. Please set NOTIFY_BASE_URL in the .env file.")

    def send(self, notification: Notification) -> None:
        payload = {
            "userId": notification.user_id,
            "userRole": notification.user_role.value,
            "type": notification.type.value,
            "title": notification.title,
            "message": notification.message,
            "data": notification.data,
            "read": False,
            "priority": notification.priority.value,
        }
        url = f"{self.base_url}/notifications"
        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as error:
            raise ExternalServiceError(f"POST {url} failed: {error}") from error

        if response.status_code >= 400:
            raise ExternalServiceError(f"POST {url} returned HTTP {response.status_code}")
