"""Claude Agent SDK transport and turn-event normalization.

This module isolates SDK interaction from the adapter so SDK changes are
localized here. The adapter only ever sees the event types defined below.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from typing import Any, AsyncIterator, Union


@dataclass(frozen=True)
class AssistantText:
    text: str


@dataclass(frozen=True)
class SessionInit:
    session_id: str | None


@dataclass(frozen=True)
class ToolResult:
    content: str
    is_error: bool = False


@dataclass(frozen=True)
class TurnResult:
    session_id: str | None
    is_error: bool = False
    result: str | None = None


@dataclass(frozen=True)
class OtherEvent:
    kind: str
    raw: str


TurnEvent = Union[AssistantText, SessionInit, ToolResult, TurnResult, OtherEvent]


@dataclass(frozen=True)
class QueryOptions:
    """Session-continuity flags for one call."""

    continue_conversation: bool = False
    resume: str | None = None


class ClaudeTransport:
    """Thin adapter around ``claude_agent_sdk.query``."""

    def __init__(
        self,
        model: str,
        max_turns: int = 300,
        permission_mode: str = "bypassPermissions",
        cwd: str | None = None,
        api_key: str | None = None,
    ):
        self.model = model
        self.max_turns = max_turns
        self.permission_mode = permission_mode
        self.cwd = cwd
        self.api_key = api_key
        self._sdk = self._load_sdk()

    @staticmethod
    def _load_sdk() -> Any:
        """Import the Claude Agent SDK, or raise an actionable error."""
        try:
            return importlib.import_module("claude_agent_sdk")
        except Exception as e:
            raise RuntimeError(
                "Claude Agent SDK is not available. Install it with "
                "`pip install claude-agent-sdk` and make sure the Claude Code CLI is installed. "
                f"Last error: {e}"
            ) from e

    def build_options(self, options: QueryOptions) -> Any:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_turns": self.max_turns,
            "permission_mode": self.permission_mode,
            "continue_conversation": options.continue_conversation,
        }
        if options.resume:
            kwargs["resume"] = options.resume
        if self.cwd:
            kwargs["cwd"] = self.cwd
        if self.api_key:
            kwargs["env"] = {"ANTHROPIC_API_KEY": self.api_key}
        return self._sdk.ClaudeAgentOptions(**kwargs)

    async def stream(self, prompt: str, options: QueryOptions) -> AsyncIterator[TurnEvent]:
        """Run one query and yield its normalized events in stream order."""
        sdk_options = self.build_options(options)
        async for message in self._sdk.query(prompt=prompt, options=sdk_options):
            for event in self.normalize(message):
                yield event

    def normalize(self, message: Any) -> list[TurnEvent]:
        """Map one SDK message to zero or more turn events."""
        sdk = self._sdk

        if isinstance(message, sdk.AssistantMessage):
            return [
                AssistantText(text=block.text)
                for block in message.content
                if isinstance(block, sdk.TextBlock)
            ]

        if isinstance(message, sdk.SystemMessage):
            if message.subtype == "init":
                data = message.data if isinstance(message.data, dict) else {}
                return [SessionInit(session_id=data.get("session_id"))]
            return [OtherEvent(kind=f"system:{message.subtype}", raw=_preview(message))]

        if isinstance(message, sdk.ResultMessage):
            return [
                TurnResult(
                    session_id=message.session_id,
                    is_error=bool(message.is_error),
                    result=message.result,
                )
            ]

        if isinstance(message, sdk.UserMessage):
            if not isinstance(message.content, list):
                return []
            events: list[TurnEvent] = []
            for block in message.content:
                if not isinstance(block, sdk.ToolResultBlock):
                    continue
                text = _tool_result_text(block.content)
                if text is not None:
                    events.append(ToolResult(content=text, is_error=bool(block.is_error)))
            return events

        return [OtherEvent(kind=type(message).__name__, raw=_preview(message))]


def _tool_result_text(content: Any) -> str | None:
    """Tool results are either a string or a list of ``{"type": "text", "text": ...}`` parts."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = [
            item.get("text", "")
            for item in content
            if isinstance(item, dict) and item.get("type") == "text"
        ]
        return "\n".join(parts) if parts else None
    return None


def _preview(message: Any, limit: int = 300) -> str:
    text = repr(message)
    return text[:limit] + "..." if len(text) > limit else text
