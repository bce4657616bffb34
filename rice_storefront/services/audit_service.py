"""
Audit Service — records order lifecycle events (creation, status changes,
rollbacks) so admins can see who changed what and when.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Optional

from rice_storefront.config import get_settings
from rice_storefront.models.schemas import AuditEntry

logger = logging.getLogger(__name__)


class AuditService:
    """
    In-memory audit trail, one instance per application context.
    The trail is bounded: once max_entries is reached the oldest entries
    are dropped.
    """

    def __init__(self, max_entries: Optional[int] = None):
        self.max_entries = max_entries or get_settings().audit_max_entries
        self._entries: deque[AuditEntry] = deque(maxlen=self.max_entries)

    def record(self, order_id: str, action: str, details: str = "") -> AuditEntry:
        """Record an audit entry and return it."""
        entry = AuditEntry(order_id=order_id, action=action, details=details)
        self._entries.append(entry)
        logger.debug(f"[AUDIT] {order_id} → {action}: {details}")
        return entry

    def get_trail(self, order_id: str) -> list[AuditEntry]:
        """Return all audit entries for an order, oldest first."""
        return [e for e in self._entries if e.order_id == order_id]

    def get_all(self) -> list[AuditEntry]:
        return list(self._entries)
