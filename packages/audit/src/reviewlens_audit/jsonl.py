"""JsonlAuditLog: append-only JSON-lines audit file.

Each record() call appends exactly one JSON object terminated by a newline
in a single write on a file opened in append mode, then flushes. Several
processes may share one audit path: their lines can interleave, but no line
is ever split, because each line is one O_APPEND write. No locking is done.

The file and its parent directory are created lazily on the first record,
so enabling auditing costs nothing for a process that never reviews.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Optional

from reviewlens_audit.base import BaseAuditLog
from reviewlens_audit.models import AuditEntry

logger = logging.getLogger(__name__)


def default_audit_path(base_dir: str = ".") -> Path:
    return Path(base_dir) / "logs" / f"audit-{int(time.time() * 1000)}.log"


class JsonlAuditLog(BaseAuditLog):
    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._fh = None

    def _open(self):
        if self._fh is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = open(self.path, "a", encoding="utf-8")
        return self._fh

    def record(self, event: str, session_id: Optional[str] = None, **details) -> None:
        entry = AuditEntry(
            event=event,
            session_id=session_id,
            tool_name=details.pop("tool_name", None),
            file_path=details.pop("file_path", None),
            details=details,
        )
        line = json.dumps(entry.to_dict(), default=str) + "\n"
        try:
            fh = self._open()
            fh.write(line)
            fh.flush()
        except OSError as e:
            # Never abort a review because the audit trail could not be written.
            logger.warning("Could not write audit entry to %s: %s", self.path, e)

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None
