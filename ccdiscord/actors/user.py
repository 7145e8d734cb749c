"""Actor that classifies inbound user text into commands or routed messages."""

from __future__ import annotations

from ccdiscord.actors.base import Actor, Handler
from ccdiscord.bus.events import Envelope, MessageType

USER = "user"
SYSTEM = "system"
ASSISTANT = "assistant"
DEBUG = "debug"
AUTO_RESPONDER = "auto-responder"

HELP_COMMANDS = [
    "!reset / !clear - Reset conversation",
    "!stop - Stop running tasks",
    "!exit - Exit bot",
    "!help - Show this help",
    "!<command> - Execute shell command",
]


def route_for(text: str) -> str:
    """Pick the actor a plain message should go to, by keyword."""
    lowered = text.lower()
    if "debug" in lowered:
        return DEBUG
    if "task" in lowered or "todo" in lowered:
        return AUTO_RESPONDER
    return ASSISTANT


class UserActor(Actor):
    """
    Turns chat input into an intent.

    ``!reset``/``!clear``, ``!stop`` and ``!exit`` become system-directed
    requests, ``!help`` is answered directly, and any other ``!<line>``
    becomes an execute-command request carrying the raw line. Everything
    else is re-addressed as a ``user-message`` to the actor chosen by
    ``route_for``. No I/O happens here.
    """

    def __init__(self, name: str = USER, command_prefix: str = "!"):
        super().__init__(name)
        self.command_prefix = command_prefix

    def handlers(self) -> dict[str, Handler]:
        return {
            MessageType.DISCORD_MESSAGE: self._handle_input,
            MessageType.USER_INPUT: self._handle_input,
        }

    def _handle_input(self, message: Envelope) -> Envelope:
        command = message.payload.get("command")
        if isinstance(command, str) and command:
            return self._handle_command(message, command)

        text = message.text
        if not text:
            return self.error(message, "No text or command provided")

        if text.startswith(self.command_prefix):
            return self._handle_command(message, text[len(self.command_prefix):])

        return self.reply(
            message,
            MessageType.USER_MESSAGE,
            {"text": text, "original_from": message.sender},
            recipient=route_for(text),
        )

    def _handle_command(self, message: Envelope, line: str) -> Envelope:
        line = line.strip()
        name = line.split()[0] if line else ""

        if not name:
            return self.reply(message, MessageType.UNKNOWN_COMMAND, {"error": "No command specified"})
        if name in ("reset", "clear"):
            return self.reply(
                message, MessageType.RESET_SESSION, {"message": "Session reset requested"}, recipient=SYSTEM
            )
        if name == "stop":
            return self.reply(message, MessageType.STOP_TASKS, {"message": "Stop all tasks"}, recipient=SYSTEM)
        if name == "exit":
            return self.reply(message, MessageType.SHUTDOWN, {"message": "Shutdown requested"}, recipient=SYSTEM)
        if name == "help":
            return self.reply(message, MessageType.HELP_RESPONSE, {"commands": list(HELP_COMMANDS)})

        return self.reply(message, MessageType.EXECUTE_COMMAND, {"command": line}, recipient=SYSTEM)
