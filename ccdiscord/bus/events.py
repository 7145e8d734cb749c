"""Envelope type exchanged between actors."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

BROADCAST = "*"


class MessageType:
    """Known envelope type tags. The set is open: actors may add their own."""

    # Gateway / user intent
    DISCORD_MESSAGE = "discord-message"
    USER_INPUT = "user-input"
    USER_MESSAGE = "user-message"
    HELP_RESPONSE = "help-response"
    UNKNOWN_COMMAND = "unknown-command"

    # System-directed requests
    RESET_SESSION = "reset-session"
    STOP_TASKS = "stop-tasks"
    SHUTDOWN = "shutdown"
    EXECUTE_COMMAND = "execute-command"

    # Conversation
    CHAT = "chat"
    CHAT_RESPONSE = "chat-response"
    ASSISTANT_RESPONSE = "assistant-response"
    SESSION_RESET = "session-reset"

    # Debug actor
    ECHO = "echo"
    ECHO_RESPONSE = "echo-response"
    RANDOM = "random"
    RANDOM_RESPONSE = "random-response"
    THINK = "think"
    THINK_RESPONSE = "think-response"

    # Watchdog
    IDLE_CHECK = "idle-check"
    TRIGGER_NEXT_TASK = "trigger-next-task"
    CHECK_EXECUTION_TIME = "check-execution-time"
    EXECUTION_TIME_OK = "execution-time-ok"
    EXECUTION_TIME_EXCEEDED = "execution-time-exceeded"
    SUGGEST_TASK = "suggest-task"
    TASK_SUGGESTION = "task-suggestion"
    CHECK_TASKS = "check-tasks"
    TASK_SCHEDULED = "task-scheduled"
    TASK_STATUS_UPDATE = "task-status-update"
    TASK_ACKNOWLEDGED = "task-acknowledged"

    ERROR = "error"


def new_message_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Envelope:
    """A request or response routed by name between actors."""

    sender: str
    recipient: str
    type: str
    payload: dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=new_message_id)
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def is_broadcast(self) -> bool:
        return self.recipient == BROADCAST

    @property
    def is_error(self) -> bool:
        return self.type == MessageType.ERROR

    @property
    def text(self) -> str:
        """Text carried in the payload, or an empty string."""
        value = self.payload.get("text")
        return value if isinstance(value, str) else ""

    def readdressed(self, recipient: str) -> Envelope:
        """Copy of this envelope addressed to another actor."""
        return replace(self, recipient=recipient, payload=dict(self.payload))

    def reply(
        self,
        sender: str,
        type: str,
        payload: dict[str, Any] | None = None,
        recipient: str | None = None,
    ) -> Envelope:
        """
        Build a response to this envelope.

        The response id is derived from the request id so callers can
        correlate the pair; it goes back to the original sender unless
        another recipient is given.
        """
        return make_response(
            sender=sender,
            recipient=recipient if recipient is not None else self.sender,
            type=type,
            payload=payload,
            request_id=self.id,
        )


def make_response(
    sender: str,
    recipient: str,
    type: str,
    payload: dict[str, Any] | None = None,
    request_id: str | None = None,
) -> Envelope:
    """Create a response envelope, deriving its id from ``request_id`` when given."""
    return Envelope(
        id=f"{request_id}-response" if request_id else new_message_id(),
        sender=sender,
        recipient=recipient,
        type=type,
        payload=dict(payload or {}),
    )
