"""Notifier port: abstract interface for delivering a notification to a user."""

from abc import ABC, abstractmethod


class NotifierPort(ABC):
    @abstractmethod
    def notify(
        self,
        user_id: str,
        notification_type: str,
        title: str,
        message: str,
        data: dict | None = None,
    ) -> dict:
        """Deliver one notification to one user.

        Returns:
            dict with keys: notification_id, status ("sent" or "failed"), error (optional)
        """
        ...
