"""Fake notifier: records notifications in memory for test assertions."""

from uuid import uuid4

from marketplace.notification.channel.port import NotifierPort


class FakeNotifier(NotifierPort):
    def __init__(self):
        self.sent: list[dict] = []
        self.should_succeed = True
        self.raise_errors = False
        self.failure_reason = "Notification delivery failed"

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Notification delivery failed",
        raise_errors: bool = False,
    ):
        """Configure the fake notifier behavior for testing.

        ``raise_errors`` makes ``notify`` raise instead of reporting a failure,
        like an unreachable notification service would.
        """
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.raise_errors = raise_errors

    def notify(self, user_id, notification_type, title, message, data=None):
        if self.raise_errors:
            raise ConnectionError(self.failure_reason)
        if not self.should_succeed:
            return {"notification_id": None, "status": "failed", "error": self.failure_reason}

        notification_id = f"ntf-{uuid4().hex[:12]}"
        self.sent.append(
            {
                "notification_id": notification_id,
                "user_id": str(user_id),
                "notification_type": notification_type,
                "title": title,
                "message": message,
                "data": data or {},
            }
        )
        return {"notification_id": notification_id, "status": "sent"}

    def sent_to(self, user_id) -> list[dict]:
        return [n for n in self.sent if n["user_id"] == str(user_id)]

    def of_type(self, notification_type: str) -> list[dict]:
        return [n for n in self.sent if n["notification_type"] == notification_type]

    def reset(self):
        """Clear sent notifications (useful between tests)."""
        self.sent.clear()
        self.should_succeed = True
        self.raise_errors = False
        self.failure_reason = "Notification delivery failed"
