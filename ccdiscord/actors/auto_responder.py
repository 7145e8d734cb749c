"""Watchdog actor behind never-sleep mode."""

from __future__ import annotations

from datetime import datetime, timedelta

from ccdiscord.actors.base import Actor, Handler
from ccdiscord.agent import watchdog
from ccdiscord.bus.events import Envelope, MessageType


class AutoResponderActor(Actor):
    """
    Answers idle and execution-time checks and suggests follow-up tasks.

    It holds no state beyond its defaults and the time it was created; every
    check is evaluated from the envelope payload. Times in payloads may be
    datetimes, ISO strings or epoch seconds; durations are seconds.
    """

    def __init__(
        self,
        name: str = "auto-responder",
        idle_timeout: timedelta = watchdog.DEFAULT_IDLE_TIMEOUT,
        max_execution_time: timedelta = watchdog.DEFAULT_MAX_EXECUTION_TIME,
        start_time: datetime | None = None,
    ):
        super().__init__(name)
        self.idle_timeout = idle_timeout
        self.max_execution_time = max_execution_time
        self.start_time = start_time or datetime.now()

    def handlers(self) -> dict[str, Handler]:
        return {
            MessageType.CHECK_TASKS: self._check_tasks,
            MessageType.IDLE_CHECK: self._idle_check,
            MessageType.CHECK_EXECUTION_TIME: self._check_execution_time,
            MessageType.SUGGEST_TASK: self._suggest_task,
            MessageType.TASK_STATUS_UPDATE: self._task_status_update,
            MessageType.CHAT: self._chat,
            MessageType.USER_MESSAGE: self._chat,
        }

    def _check_tasks(self, message: Envelope) -> Envelope:
        tasks = message.payload.get("tasks") or []
        scheduled = watchdog.schedule_tasks([str(task) for task in tasks])
        return self.reply(
            message,
            MessageType.TASK_SCHEDULED,
            {"scheduled_tasks": [item.to_dict() for item in scheduled]},
        )

    def _idle_check(self, message: Envelope) -> Envelope | None:
        now = datetime.now()
        try:
            last_activity = watchdog.as_datetime(message.payload.get("last_activity_time"), now)
        except (ValueError, TypeError) as e:
            return self.error(message, f"Invalid last_activity_time: {e}")
        timeout = watchdog.as_timedelta(message.payload.get("timeout"), self.idle_timeout)

        trigger = watchdog.check_idle(last_activity, timeout, now=now)
        if trigger is None:
            return None
        return self.reply(
            message,
            MessageType.TRIGGER_NEXT_TASK,
            {"reason": trigger.reason, "idle_time": trigger.idle_time.total_seconds()},
        )

    def _check_execution_time(self, message: Envelope) -> Envelope:
        try:
            start_time = watchdog.as_datetime(message.payload.get("start_time"), self.start_time)
        except (ValueError, TypeError) as e:
            return self.error(message, f"Invalid start_time: {e}")
        budget = watchdog.as_timedelta(message.payload.get("max_execution_time"), self.max_execution_time)

        result = watchdog.check_execution_time(start_time, budget)
        if result.should_stop:
            return self.reply(message, MessageType.EXECUTION_TIME_EXCEEDED, {"should_stop": True})
        return self.reply(
            message,
            MessageType.EXECUTION_TIME_OK,
            {"should_stop": False, "remaining_time": result.remaining_time.total_seconds()},
        )

    def _suggest_task(self, message: Envelope) -> Envelope:
        context = message.payload.get("context") or ""
        return self.reply(
            message,
            MessageType.TASK_SUGGESTION,
            {"suggestions": watchdog.suggest_tasks(str(context))},
        )

    def _task_status_update(self, message: Envelope) -> Envelope:
        return self.reply(
            message,
            MessageType.TASK_ACKNOWLEDGED,
            {"message": "Task status confirmed.", "next_action": "continue-monitoring"},
        )

    def _chat(self, message: Envelope) -> Envelope:
        return self.reply(message, MessageType.CHAT_RESPONSE, {"text": watchdog.chat_reply(message.text)})
