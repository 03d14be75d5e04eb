from __future__ import annotations

from typing import AsyncIterator

from reviewlens_core.providers.base import AgentOptions, BaseAgent, SessionEvent

# Denied explicitly as well as left out of allowed_tools so a permissive
# default permission mode can never grant them.
_DISALLOWED_TOOLS = ["Bash", "Edit", "MultiEdit", "Write", "NotebookEdit", "WebFetch", "WebSearch"]


class ClaudeAgent(BaseAgent):
    def __init__(self, api_key: str):
        try:
            import claude_agent_sdk  # noqa: F401
        except ImportError:
            raise ImportError(
                "The 'claude-agent-sdk' package is required for this provider. "
                "Install it with: pip install claude-agent-sdk"
            )
        self.api_key = api_key

    def build_sdk_options(self, options: AgentOptions):
        from claude_agent_sdk import ClaudeAgentOptions

        return ClaudeAgentOptions(
            allowed_tools=list(options.allowed_tools),
            disallowed_tools=list(_DISALLOWED_TOOLS),
            model=options.model,
            cwd=options.cwd,
            max_budget_usd=options.max_budget_usd,
            env={"ANTHROPIC_API_KEY": self.api_key},
        )

    async def stream(self, prompt: str, options: AgentOptions) -> AsyncIterator[SessionEvent]:
        from claude_agent_sdk import query

        async for message in query(prompt=prompt, options=self.build_sdk_options(options)):
            yield to_session_event(message)


def to_session_event(message) -> SessionEvent:
    """Adapt one claude_agent_sdk message to a SessionEvent."""
    # Imported here because the SDK is only needed once a session actually runs;
    # ClaudeAgent.__init__ has already verified it is installed.
    from claude_agent_sdk import (
        AssistantMessage,
        ResultMessage,
        SystemMessage,
        TextBlock,
        ToolUseBlock,
        UserMessage,
    )

    if isinstance(message, SystemMessage):
        data = message.data if isinstance(message.data, dict) else {}
        return SessionEvent(kind="system", session_id=data.get("session_id"))

    if isinstance(message, AssistantMessage):
        content = message.content if isinstance(message.content, list) else []
        return SessionEvent(
            kind="assistant",
            text_blocks=tuple(b.text for b in content if isinstance(b, TextBlock)),
            tool_uses=tuple(b.name for b in content if isinstance(b, ToolUseBlock)),
        )

    if isinstance(message, ResultMessage):
        return SessionEvent(
            kind="result",
            session_id=getattr(message, "session_id", None),
            result=getattr(message, "result", None),
            total_cost_usd=getattr(message, "total_cost_usd", None),
            duration_ms=getattr(message, "duration_ms", None),
        )

    if isinstance(message, UserMessage):
        return SessionEvent(kind="user")

    return SessionEvent(kind="other")
