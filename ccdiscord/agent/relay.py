"""Relay: glue between the chat channel, the actors and the turn queue."""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Awaitable, Callable

from loguru import logger

from ccdiscord.actors.user import ASSISTANT, AUTO_RESPONDER, SYSTEM, USER
from ccdiscord.agent.adapter import NO_RESPONSE
from ccdiscord.agent.cancel import CancelToken, QueryAbortedError
from ccdiscord.agent.task_queue import QueuedTask, TaskQueue, TurnFailedError
from ccdiscord.bus.events import Envelope, MessageType
from ccdiscord.bus.queue import MessageBus
from ccdiscord.channels.base import BaseChannel, InboundChat
from ccdiscord.config.schema import Config
from ccdiscord.messages import Messages
from ccdiscord.utils.helpers import split_lines_into_chunks

CommandExecutor = Callable[[str], Awaitable[str]]


class Relay:
    """
    Connects one chat thread to the actor system.

    Inbound chat is classified by the user actor. Commands are handled
    here; routed messages become queued turns processed one at a time.
    Each turn posts a thinking indicator, streams tool progress into a single
    edited message, delivers the reply in chunks and ends with the
    completion marker.
    """

    name = "discord"

    def __init__(
        self,
        bus: MessageBus,
        channel: BaseChannel,
        config: Config,
        messages: Messages | None = None,
        executor: CommandExecutor | None = None,
    ):
        self.bus = bus
        self.channel = channel
        self.config = config
        self.messages = messages or Messages(config.locale)
        self.executor = executor
        self.queue = TaskQueue(self._run_turn, self._report_failure)
        self.shutdown_event = asyncio.Event()
        self.started_at = datetime.now()
        self.last_activity = self.started_at
        self.last_reply = ""
        self._drain: asyncio.Task[None] | None = None
        self._watcher: asyncio.Task[None] | None = None
        channel.set_inbound_handler(self.handle_inbound)

    async def start(self) -> None:
        await self.bus.start_all()
        if self.config.never_sleep.enabled:
            self._watcher = asyncio.create_task(self._never_sleep_loop())
            logger.info("Never Sleep mode enabled")

    async def stop(self) -> None:
        if self._watcher is not None:
            self._watcher.cancel()
            await asyncio.gather(self._watcher, return_exceptions=True)
            self._watcher = None
        self.queue.clear()
        self.queue.abort_current()
        if self._drain is not None:
            await asyncio.gather(self._drain, return_exceptions=True)
            self._drain = None
        await self.bus.stop_all()

    def touch(self) -> None:
        self.last_activity = datetime.now()

    async def handle_inbound(self, chat: InboundChat) -> None:
        """Classify one inbound chat message and act on it."""
        self.touch()
        envelope = Envelope(
            sender=self.name,
            recipient=USER,
            type=MessageType.DISCORD_MESSAGE,
            payload={"text": chat.text, "author_id": chat.author_id, "channel_id": chat.channel_id},
        )
        intent = await self.bus.send(envelope)
        if intent is None:
            logger.warning("User actor is not registered; ignoring inbound message")
            return
        await self._dispatch(intent)

    async def _dispatch(self, intent: Envelope) -> None:
        if intent.recipient == SYSTEM:
            await self._handle_system(intent)
        elif intent.type == MessageType.USER_MESSAGE:
            await self.submit(intent)
        elif intent.type == MessageType.HELP_RESPONSE:
            commands = intent.payload.get("commands") or []
            await self._safe_send("\n".join([self.messages.get("help_header"), *commands]))
        elif intent.type == MessageType.UNKNOWN_COMMAND:
            await self._safe_send(self.messages.get("no_command"))
        elif intent.is_error:
            await self._safe_send(self.messages.error(intent.payload.get("error")))
        else:
            logger.debug(f"Ignoring {intent.type} from {intent.sender}")

    async def _handle_system(self, intent: Envelope) -> None:
        if intent.type == MessageType.RESET_SESSION:
            await self.bus.send(Envelope(sender=self.name, recipient=ASSISTANT, type=MessageType.RESET_SESSION))
            await self._safe_send(self.messages.get("reset"))
        elif intent.type == MessageType.STOP_TASKS:
            self.queue.abort_current()
            self.queue.clear()
            await self._safe_send(self.messages.get("stopped"))
        elif intent.type == MessageType.SHUTDOWN:
            await self._safe_send(self.messages.get("exit"))
            self.shutdown_event.set()
        elif intent.type == MessageType.EXECUTE_COMMAND:
            await self._execute(str(intent.payload.get("command") or ""))
        else:
            logger.warning(f"Unhandled system request: {intent.type}")

    async def _execute(self, command: str) -> None:
        if self.executor is None:
            await self._safe_send(self.messages.get("shell_disabled", command=command))
            return
        try:
            output = await self.executor(command)
        except Exception as e:
            logger.error(f"Command failed: {command}: {e}")
            await self._safe_send(self.messages.error(str(e)))
            return
        await self.deliver_long(output or NO_RESPONSE)

    async def submit(self, envelope: Envelope) -> QueuedTask:
        """Queue a routed message as a turn and make sure the queue is draining."""
        task = self.queue.enqueue(envelope)
        if self.queue.processing:
            await self._safe_send(self.messages.get("queued", size=self.queue.size))
        if self._drain is None or self._drain.done():
            self._drain = asyncio.create_task(self.queue.process_next())
        return task

    async def wait_idle(self) -> None:
        """Wait until the queue has been drained."""
        while self._drain is not None and not self._drain.done():
            await asyncio.wait({self._drain})

    async def _run_turn(self, task: QueuedTask, token: CancelToken) -> None:
        envelope = task.envelope
        thinking = await self._safe_send(self.messages.get("thinking"))
        progress: Any | None = None

        async def on_progress(text: str) -> None:
            nonlocal progress
            if progress is not None:
                try:
                    await self.channel.edit_text(progress, text)
                    return
                except Exception as e:
                    logger.warning(f"Failed to edit progress message, sending a new one: {e}")
            progress = await self._safe_send(text)

        request = Envelope(
            sender=self.name,
            recipient=envelope.recipient,
            type=envelope.type,
            payload={**envelope.payload, "on_progress": on_progress, "cancel_token": token},
        )
        try:
            response = await self.bus.send(request)
        finally:
            await self._safe_delete(progress)
            await self._safe_delete(thinking)

        token.raise_if_cancelled()
        if response is None:
            raise TurnFailedError(f"No actor named '{envelope.recipient}'")
        if response.is_error:
            if response.payload.get("aborted"):
                raise QueryAbortedError()
            raise TurnFailedError(str(response.payload.get("error") or "Unknown error"))

        text = response.text or NO_RESPONSE
        await self.deliver_long(text)
        self.last_reply = text
        await self._safe_send(self.messages.get("done"))
        self.touch()

    async def _report_failure(self, task: QueuedTask, error: Exception) -> None:
        if isinstance(error, QueryAbortedError):
            await self._safe_send(self.messages.get("aborted"))
        else:
            await self._safe_send(self.messages.error(str(error)))
        self.touch()

    async def deliver_long(self, text: str) -> None:
        """Send text in line-preserving chunks, pausing between sends."""
        chunks = split_lines_into_chunks(text, self.config.discord.max_message_chars)
        for index, chunk in enumerate(chunks):
            if index:
                await asyncio.sleep(self.config.discord.send_interval_seconds)
            await self._safe_send(chunk)

    async def _safe_send(self, text: str) -> Any | None:
        try:
            return await self.channel.send_text(text)
        except Exception as e:
            logger.error(f"Failed to send message: {e}")
            return None

    async def _safe_delete(self, handle: Any | None) -> None:
        if handle is None:
            return
        try:
            await self.channel.delete(handle)
        except Exception as e:
            logger.warning(f"Failed to delete message: {e}")

    async def _never_sleep_loop(self) -> None:
        """Run the watchdog checks periodically until the execution budget runs out."""
        interval = self.config.never_sleep.check_interval_seconds
        try:
            while True:
                await asyncio.sleep(interval)
                if not await self.check_never_sleep():
                    break
        except asyncio.CancelledError:
            return

    async def check_never_sleep(self) -> bool:
        """
        One watchdog pass. Returns False once the execution budget is spent.

        When nothing is running or queued and the thread has been idle past
        the timeout, the first suggested task is queued as a new turn.
        """
        cfg = self.config.never_sleep
        budget = await self.bus.send(
            Envelope(
                sender=self.name,
                recipient=AUTO_RESPONDER,
                type=MessageType.CHECK_EXECUTION_TIME,
                payload={"start_time": self.started_at, "max_execution_time": cfg.max_execution_seconds},
            )
        )
        if budget is not None and budget.payload.get("should_stop"):
            logger.info("Execution budget exhausted; stopping Never Sleep checks")
            await self._safe_send(self.messages.get("budget_exceeded"))
            return False

        if self.queue.processing or self.queue.size:
            return True

        trigger = await self.bus.send(
            Envelope(
                sender=self.name,
                recipient=AUTO_RESPONDER,
                type=MessageType.IDLE_CHECK,
                payload={"last_activity_time": self.last_activity, "timeout": cfg.idle_timeout_seconds},
            )
        )
        if trigger is None or trigger.type != MessageType.TRIGGER_NEXT_TASK:
            return True

        suggestion = await self.bus.send(
            Envelope(
                sender=self.name,
                recipient=AUTO_RESPONDER,
                type=MessageType.SUGGEST_TASK,
                payload={"context": self.last_reply},
            )
        )
        suggestions = suggestion.payload.get("suggestions") if suggestion is not None else None
        if not suggestions:
            return True

        next_task = suggestions[0]
        minutes = int(trigger.payload.get("idle_time", 0) // 60)
        logger.info(f"Idle for {minutes} min; auto-triggering: {next_task}")
        await self._safe_send(self.messages.get("auto_trigger", minutes=minutes, task=next_task))
        self.touch()
        await self.submit(
            Envelope(
                sender=AUTO_RESPONDER,
                recipient=ASSISTANT,
                type=MessageType.USER_MESSAGE,
                payload={"text": next_task, "original_from": AUTO_RESPONDER},
            )
        )
        return True
