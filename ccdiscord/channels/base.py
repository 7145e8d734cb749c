"""Base channel interface for chat platforms."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from loguru import logger


@dataclass(frozen=True)
class InboundChat:
    """A message accepted from the chat platform."""

    text: str
    author_id: str
    channel_id: str
    author_name: str = ""


InboundHandler = Callable[[InboundChat], Awaitable[None]]


class BaseChannel(ABC):
    """
    Abstract base class for chat channel implementations.

    A channel connects to one conversation (a thread), forwards accepted
    messages to the inbound handler, and exposes send/edit/delete primitives.
    ``send_text`` returns an opaque handle for later ``edit_text``/``delete``.
    """

    name: str = "base"

    def __init__(self):
        self._running = False
        self._inbound_handler: InboundHandler | None = None

    def set_inbound_handler(self, handler: InboundHandler) -> None:
        self._inbound_handler = handler

    @abstractmethod
    async def start(self) -> None:
        """Connect and keep running until ``stop`` is called."""

    @abstractmethod
    async def stop(self) -> None:
        """Stop the channel and clean up resources."""

    @abstractmethod
    async def send_text(self, text: str) -> Any | None:
        """Post a message to the conversation and return its handle."""

    @abstractmethod
    async def edit_text(self, handle: Any, text: str) -> None:
        """Replace the content of a previously sent message."""

    @abstractmethod
    async def delete(self, handle: Any) -> None:
        """Delete a previously sent message."""

    async def _handle_message(self, chat: InboundChat) -> None:
        if self._inbound_handler is None:
            logger.warning(f"[{self.name}] No inbound handler; dropping message from {chat.author_id}")
            return
        await self._inbound_handler(chat)

    @property
    def is_running(self) -> bool:
        return self._running
