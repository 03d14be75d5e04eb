"""No-op audit log, the default when auditing is not enabled."""

from __future__ import annotations

from typing import Optional

from reviewlens_audit.base import BaseAuditLog


class NoOpAuditLog(BaseAuditLog):
    """Silently discards all entries; zero configuration required.

    Using a NoOpAuditLog rather than None lets the pipeline always call
    audit.record() without conditional checks.
    """

    def record(self, event: str, session_id: Optional[str] = None, **details) -> None:
        pass
