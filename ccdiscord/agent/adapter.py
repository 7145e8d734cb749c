"""Claude Code adapter: one prompt in, accumulated reply text out."""

from __future__ import annotations

from typing import AsyncIterator, Awaitable, Callable, Protocol

from loguru import logger

from ccdiscord.agent.cancel import CancelToken, QueryAbortedError, iterate_until_cancelled
from ccdiscord.agent.session import SessionState
from ccdiscord.providers.claude_transport import (
    AssistantText,
    OtherEvent,
    QueryOptions,
    SessionInit,
    ToolResult,
    TurnEvent,
    TurnResult,
)
from ccdiscord.utils.helpers import truncate

ProgressCallback = Callable[[str], "Awaitable[None] | None"]

NO_RESPONSE = "No response received."
DEFAULT_TOOL_RESULT_PREVIEW_CHARS = 300


class Transport(Protocol):
    def stream(self, prompt: str, options: QueryOptions) -> AsyncIterator[TurnEvent]: ...


def format_tool_progress(preview: str) -> str:
    return f"📋 Tool execution result:\n```\n{preview}\n```"


class ClaudeCodeAdapter:
    """
    Wraps the Claude Code agent and tracks session continuity.

    The first turn starts fresh, or resumes ``resume`` when given. Every later
    turn asks the agent to continue the current conversation. Starting
    ``continue_session=True`` treats the first turn as a continuation too.

    Only one call is current at a time: a new ``query`` cancels the token of
    the call it supersedes before starting its own.
    """

    name = "claude-code"

    def __init__(
        self,
        transport: Transport,
        resume: str | None = None,
        continue_session: bool = False,
        tool_result_preview_chars: int = DEFAULT_TOOL_RESULT_PREVIEW_CHARS,
    ):
        self.transport = transport
        self.session = SessionState(is_first_turn=not continue_session, resume_target=resume)
        self.tool_result_preview_chars = tool_result_preview_chars
        self._active: CancelToken | None = None

    async def start(self) -> None:
        model = getattr(self.transport, "model", None)
        logger.info(f"[{self.name}] Claude Code adapter started (model={model})")
        if self.session.resume_target:
            logger.info(f"[{self.name}] Resuming session: {self.session.resume_target}")

    async def stop(self) -> None:
        logger.info(f"[{self.name}] Stopping Claude Code adapter...")
        self.abort()

    def build_options(self) -> QueryOptions:
        state = self.session
        if not state.is_first_turn:
            return QueryOptions(continue_conversation=True)
        if state.resume_target:
            return QueryOptions(resume=state.resume_target)
        return QueryOptions()

    async def query(
        self,
        prompt: str,
        on_progress: ProgressCallback | None = None,
        cancel: CancelToken | None = None,
    ) -> str:
        """
        Run one turn and return the reply text.

        Tool results are previewed through ``on_progress`` as they arrive and
        prepended to the reply. Raises ``QueryAbortedError`` if ``cancel``
        (or ``abort()``) fires while the stream is being consumed.
        """
        if self._active is not None:
            self._active.cancel("superseded")
        token = CancelToken(parent=cancel)
        self._active = token

        options = self.build_options()
        logger.debug(
            f"[{self.name}] Query (continue={options.continue_conversation}, resume={options.resume}): "
            f"{prompt[:80]}"
        )

        reply = ""
        tool_results = ""
        try:
            stream = self.transport.stream(prompt, options)
            async for event in iterate_until_cancelled(stream, token):
                if isinstance(event, AssistantText):
                    reply += event.text
                elif isinstance(event, SessionInit):
                    self.session.current_session_id = event.session_id
                    self.session.is_first_turn = False
                    logger.info(f"[{self.name}] Session started: {event.session_id}")
                elif isinstance(event, TurnResult):
                    self.session.current_session_id = event.session_id
                elif isinstance(event, ToolResult):
                    preview = truncate(event.content, self.tool_result_preview_chars)
                    tool_results += f"\n{format_tool_progress(preview)}\n"
                    if on_progress is not None:
                        result = on_progress(format_tool_progress(preview))
                        if hasattr(result, "__await__"):
                            await result
                elif isinstance(event, OtherEvent):
                    logger.debug(f"[{self.name}] Ignoring {event.kind}: {event.raw}")
        except QueryAbortedError:
            logger.info(f"[{self.name}] Query aborted ({token.reason})")
            raise
        finally:
            if self._active is token:
                self._active = None

        if tool_results:
            reply = tool_results + ("\n" + reply if reply else "")
        return reply or NO_RESPONSE

    def reset_session(self) -> None:
        """Forget the current session. An in-flight call is left running."""
        self.session.reset()
        logger.info(f"[{self.name}] Session reset")

    def abort(self) -> None:
        if self._active is not None:
            self._active.cancel("aborted")
            logger.info(f"[{self.name}] Query aborted")

    @property
    def current_session_id(self) -> str | None:
        return self.session.current_session_id

    @property
    def has_active_session(self) -> bool:
        return bool(self.session.current_session_id)

    @property
    def in_flight(self) -> bool:
        return self._active is not None
