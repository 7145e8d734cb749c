"""Actor wrapping the Claude Code adapter."""

from __future__ import annotations

from loguru import logger

from ccdiscord.actors.base import Actor, Handler
from ccdiscord.agent.adapter import ClaudeCodeAdapter
from ccdiscord.agent.cancel import QueryAbortedError
from ccdiscord.bus.events import Envelope, MessageType


class AgentActor(Actor):
    """
    Forwards message text to the adapter and replies with its answer.

    The payload may also carry ``on_progress`` (called with tool-result
    previews) and ``cancel_token`` (a ``CancelToken`` for this turn). Adapter
    failures come back as ``error`` envelopes; an aborted turn sets
    ``aborted: True`` in the error payload.
    """

    def __init__(self, adapter: ClaudeCodeAdapter, name: str = "claude-code"):
        super().__init__(name)
        self.adapter = adapter

    async def start(self) -> None:
        await super().start()
        await self.adapter.start()

    async def stop(self) -> None:
        await self.adapter.stop()
        await super().stop()

    def handlers(self) -> dict[str, Handler]:
        return {
            MessageType.USER_MESSAGE: self._query,
            MessageType.CHAT: self._query,
            MessageType.RESET_SESSION: self._reset,
        }

    async def _query(self, message: Envelope) -> Envelope:
        text = message.text
        if not text:
            return self.error(message, "No text provided")

        logger.info(f"[{self.name}] Processing message with Claude Code")
        try:
            answer = await self.adapter.query(
                text,
                on_progress=message.payload.get("on_progress"),
                cancel=message.payload.get("cancel_token"),
            )
        except QueryAbortedError as e:
            return self.error(message, str(e), aborted=True)
        except Exception as e:
            logger.error(f"[{self.name}] Error querying Claude: {e}")
            return self.error(message, str(e) or type(e).__name__)

        return self.reply(
            message,
            MessageType.ASSISTANT_RESPONSE,
            {"text": answer, "session_id": self.adapter.current_session_id},
        )

    def _reset(self, message: Envelope) -> Envelope:
        self.adapter.reset_session()
        return self.reply(message, MessageType.SESSION_RESET, {"session_id": None})
