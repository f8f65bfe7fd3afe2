"""Notifier registry: pluggable delivery of user notifications.

Uses the in-memory fake by default; a push or in-app notification service
can be configured via MARKETPLACE_NOTIFIER_ADAPTER in production.
"""

import os

_notifier_instance = None


def get_notifier():
    """Return the configured notifier adapter (singleton)."""
    global _notifier_instance
    if _notifier_instance is None:
        adapter = os.environ.get("MARKETPLACE_NOTIFIER_ADAPTER", "fake")
        if adapter == "fake":
            from marketplace.notification.channel.fake_notifier import FakeNotifier

            _notifier_instance = FakeNotifier()
        else:
            raise ValueError(f"Unknown notifier adapter: {adapter}")
    return _notifier_instance


def reset_notifier():
    """Reset the notifier singleton (useful for testing)."""
    global _notifier_instance
    _notifier_instance = None
