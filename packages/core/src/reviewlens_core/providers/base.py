"""Agent capability boundary.

The review pipeline never talks to an agent SDK directly. A provider turns
one prompt plus an AgentOptions envelope into an ordered async stream of
SessionEvent values:

    stream(prompt, options) → system … assistant … result

Subclasses implement two things only:
  - __init__: validate and store the SDK client / credentials
  - stream: run one session and adapt each SDK message to a SessionEvent

Fields an SDK message does not carry are left as None; consumers treat a
missing field as absent, never as an error.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional

# Inspection-class capabilities only. The reviewed tree must never be
# mutated by the session, so write and execute tools are never granted.
READ_ONLY_TOOLS: tuple[str, ...] = ("Read", "Glob", "Grep")


@dataclass(frozen=True)
class AgentOptions:
    max_budget_usd: float
    cwd: str
    model: str
    allowed_tools: tuple[str, ...] = READ_ONLY_TOOLS


@dataclass(frozen=True)
class SessionEvent:
    kind: str  # "system" | "assistant" | "user" | "result" | "other"
    session_id: Optional[str] = None
    text_blocks: tuple[str, ...] = field(default_factory=tuple)
    tool_uses: tuple[str, ...] = field(default_factory=tuple)
    result: Optional[str] = None
    total_cost_usd: Optional[float] = None
    duration_ms: Optional[int] = None


class BaseAgent(ABC):
    @abstractmethod
    def stream(self, prompt: str, options: AgentOptions) -> AsyncIterator[SessionEvent]:
        """Run one agent session and yield its events in emission order.

        Implementations are async generators. They should raise on transport
        failure; the caller decides how to surface it.
        """
