"""Order number generation.

Numbers read ``<prefix><epoch millis><count + 1, six digits>``. The running
count alone does not guarantee uniqueness under concurrent checkouts, so each
candidate is checked against the repository before use.
"""

import os
from datetime import UTC, datetime

from marketplace.order.errors import ConflictError

MAX_ATTEMPTS = 5


def order_number_prefix() -> str:
    return os.environ.get("MARKETPLACE_ORDER_NUMBER_PREFIX", "CMD")


def format_order_number(now: datetime, sequence: int, prefix: str | None = None) -> str:
    millis = int(now.timestamp() * 1000)
    return f"{prefix if prefix is not None else order_number_prefix()}{millis}{sequence:06d}"


def generate_order_number(repo, now: datetime | None = None) -> str:
    """Return an order number no stored order uses yet.

    Raises:
        ConflictError: every candidate collided.
    """
    now = now or datetime.now(UTC)
    sequence = repo.count() + 1
    for _ in range(MAX_ATTEMPTS):
        candidate = format_order_number(now, sequence)
        if repo.find_by_number(candidate) is None:
            return candidate
        sequence += 1
    raise ConflictError("Could not allocate a unique order number, please retry")
