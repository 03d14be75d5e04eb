"""Abstract audit log interface.

The review pipeline depends on BaseAuditLog, not on a concrete sink, so the
destination (a JSON-lines file, nothing at all, or a custom backend) is
chosen once at process start and injected into each review.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class BaseAuditLog(ABC):
    """Append-only record of notable review lifecycle events.

    Implementations must never raise out of record(): an audit failure is
    not allowed to abort a review.
    """

    @abstractmethod
    def record(self, event: str, session_id: Optional[str] = None, **details) -> None:
        """Append one lifecycle event.

        ``tool_name`` and ``file_path`` are lifted into their own fields;
        any other keyword lands in the entry's ``details`` mapping.
        """

    def close(self) -> None:
        """Release any resources held by the log (file handles).

        Default is a no-op so callers can always call close() safely.
        """
