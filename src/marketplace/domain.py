"""Marketplace bounded context: multi-vendor order fulfillment.

Turns a client's cart into one order spanning several vendors ("boutiques"),
tracks each vendor's lot through acceptance, depot hand-off or direct
delivery, and final receipt, and supports role-scoped cancellation with
consistent monetary recomputation.
"""

import structlog
from protean.domain import Domain

marketplace = Domain(name="marketplace")

logger = structlog.get_logger(__name__)
