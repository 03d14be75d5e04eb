"""Agent session consumption.

A session is consumed by exactly one coroutine: events are awaited one at a
time and handled strictly in emission order. Nothing here retries or
enforces budgets (the agent engine owns both) and nothing is
fabricated: a stream that ends without a result event yields an empty
result text, which the normalizer turns into an empty review.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterable, Optional

from reviewlens_audit.base import BaseAuditLog
from reviewlens_audit.noop import NoOpAuditLog
from reviewlens_core.providers.base import SessionEvent

logger = logging.getLogger(__name__)


@dataclass
class SessionOutcome:
    session_id: Optional[str] = None
    result_text: str = ""
    total_cost_usd: float = 0.0
    duration_ms: int = 0
    completed: bool = False  # True once a result event was observed
    event_count: int = 0
    error: Optional[str] = None  # set when the stream aborted mid-session


async def consume_session(
    events: AsyncIterable[SessionEvent],
    audit: Optional[BaseAuditLog] = None,
    verbose: bool = False,
    stop: Optional[asyncio.Event] = None,
) -> SessionOutcome:
    """Drive an agent event stream to completion and collect its outcome.

    The first event carrying a session id fixes it; later events need not
    repeat it. If ``stop`` is set between two events, consumption ends
    early with whatever has been observed so far.

    A stream that fails before producing a single event means the agent is
    unavailable, and the exception propagates. A stream that aborts after
    it has started is recorded on the outcome (``error``) and whatever was
    observed up to that point is returned.
    """
    audit = audit or NoOpAuditLog()
    outcome = SessionOutcome()

    try:
        async for event in events:
            outcome.event_count += 1
            _handle_event(event, outcome, audit, verbose)
            if stop is not None and stop.is_set():
                logger.warning("Session consumption stopped after %d event(s).", outcome.event_count)
                break
    except Exception as e:
        if outcome.event_count == 0:
            raise
        outcome.error = f"{type(e).__name__}: {e}"
        logger.warning("Agent stream aborted after %d event(s): %s", outcome.event_count, outcome.error)
        audit.record("session_error", session_id=outcome.session_id, error=outcome.error)

    if not outcome.completed:
        logger.warning("Agent stream ended after %d event(s) without a result event.", outcome.event_count)

    return outcome


def _handle_event(event: SessionEvent, outcome: SessionOutcome, audit: BaseAuditLog, verbose: bool) -> None:
    if outcome.session_id is None and event.session_id:
        outcome.session_id = event.session_id
        logger.info("Review session started: %s", outcome.session_id)
        audit.record("session_start", session_id=outcome.session_id)

    if event.kind == "assistant":
        if verbose:
            for text in event.text_blocks:
                logger.debug("Agent message: %s", text)
        for tool in event.tool_uses:
            logger.debug("Tool used: %s", tool)
            audit.record("tool_usage", session_id=outcome.session_id, tool_name=tool)

    elif event.kind == "result":
        outcome.completed = True
        if event.result is not None:
            outcome.result_text = event.result
        if event.total_cost_usd is not None:
            outcome.total_cost_usd = float(event.total_cost_usd)
        if event.duration_ms is not None:
            outcome.duration_ms = int(event.duration_ms)
        logger.info("Review session ended: %s", outcome.session_id or "unknown")
        audit.record(
            "session_end",
            session_id=outcome.session_id,
            cost_usd=outcome.total_cost_usd,
            duration_ms=outcome.duration_ms,
        )
