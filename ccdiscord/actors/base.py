"""Base class for actors."""

from __future__ import annotations

from abc import ABC
from typing import Any, Awaitable, Callable

from loguru import logger

from ccdiscord.bus.events import Envelope, MessageType

Handler = Callable[[Envelope], "Envelope | None | Awaitable[Envelope | None]"]


class Actor(ABC):
    """
    A named unit of behaviour on the message bus.

    Subclasses register one handler per envelope type in ``handlers()``.
    ``handle_message`` dispatches on ``envelope.type``; a type with no
    handler produces an ``error`` envelope addressed back to the sender.
    A handler returning ``None`` means no reply is expected.
    """

    def __init__(self, name: str):
        self.name = name
        self._running = False

    def handlers(self) -> dict[str, Handler]:
        return {}

    async def start(self) -> None:
        self._running = True
        logger.info(f"[{self.name}] Actor started")

    async def stop(self) -> None:
        self._running = False
        logger.info(f"[{self.name}] Actor stopped")

    async def handle_message(self, message: Envelope) -> Envelope | None:
        handler = self.handlers().get(message.type)
        if handler is None:
            logger.debug(f"[{self.name}] Unsupported message type: {message.type}")
            return self.error(message, f"Unknown message type: {message.type}")
        result = handler(message)
        if hasattr(result, "__await__"):
            result = await result
        return result

    def reply(
        self,
        message: Envelope,
        type: str,
        payload: dict[str, Any] | None = None,
        recipient: str | None = None,
    ) -> Envelope:
        return message.reply(self.name, type, payload, recipient=recipient)

    def error(self, message: Envelope, text: str, **extra: Any) -> Envelope:
        return self.reply(message, MessageType.ERROR, {"error": text, **extra})

    @property
    def is_running(self) -> bool:
        return self._running
