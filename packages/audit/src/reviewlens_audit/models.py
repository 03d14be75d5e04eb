"""Audit log data model."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Optional


@dataclass
class AuditEntry:
    """One line of the audit log."""

    event: str  # "review_start" | "session_start" | "tool_usage" | "session_end" | "review_complete" | ...
    session_id: Optional[str] = None
    tool_name: Optional[str] = None
    file_path: Optional[str] = None
    details: dict = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}
