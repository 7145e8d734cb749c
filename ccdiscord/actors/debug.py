"""Stand-in assistant for running without Claude Code."""

from __future__ import annotations

import asyncio
import random

from ccdiscord.actors.base import Actor, Handler
from ccdiscord.bus.events import Envelope, MessageType

CANNED_RESPONSES = [
    "I see, that's interesting.",
    "Understood!",
    "Could you tell me more details?",
    "Let me think about that...",
    "That's a great idea!",
]

DEFAULT_THINK_SECONDS = 1.0


class DebugActor(Actor):
    """Echoes, picks canned replies, and simulates thinking time."""

    def __init__(self, name: str = "debug", rng: random.Random | None = None):
        super().__init__(name)
        self._rng = rng or random.Random()

    def handlers(self) -> dict[str, Handler]:
        return {
            MessageType.ECHO: self._echo,
            MessageType.RANDOM: self._random,
            MessageType.THINK: self._think,
            MessageType.CHAT: self._chat,
            MessageType.USER_MESSAGE: self._user_message,
            MessageType.RESET_SESSION: self._reset,
        }

    def _echo(self, message: Envelope) -> Envelope:
        return self.reply(message, MessageType.ECHO_RESPONSE, dict(message.payload))

    def _random(self, message: Envelope) -> Envelope:
        return self.reply(message, MessageType.RANDOM_RESPONSE, {"text": self._rng.choice(CANNED_RESPONSES)})

    async def _think(self, message: Envelope) -> Envelope:
        raw = message.payload.get("duration") or DEFAULT_THINK_SECONDS
        try:
            duration = float(raw)
        except (TypeError, ValueError):
            return self.error(message, f"Invalid duration: {raw!r}")
        await asyncio.sleep(duration)
        return self.reply(message, MessageType.THINK_RESPONSE, {"text": "Finished thinking!", "duration": duration})

    def _chat(self, message: Envelope) -> Envelope:
        return self.reply(message, MessageType.CHAT_RESPONSE, {"text": self.generate_reply(message.text)})

    def _user_message(self, message: Envelope) -> Envelope:
        return self.reply(message, MessageType.ASSISTANT_RESPONSE, {"text": self.generate_reply(message.text)})

    def _reset(self, message: Envelope) -> Envelope:
        return self.reply(message, MessageType.SESSION_RESET, {"session_id": None})

    def generate_reply(self, text: str) -> str:
        if "task" in text or "Task" in text:
            return (
                "Today's tasks are as follows:\n"
                "1. Conduct code review\n"
                "2. Update documentation\n"
                "3. Add test cases"
            )
        if any(word in text for word in ("hello", "Hello", "hi", "Hi")):
            return "Hello! How are you?"
        if "how are you" in text or "How are you" in text:
            return "I'm doing well! What did you do today?"
        if "?" in text or "？" in text:
            return "That's a good question. Let me think about it more."
        return self._rng.choice(CANNED_RESPONSES)
