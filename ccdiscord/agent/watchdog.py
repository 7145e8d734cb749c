"""
Idle and execution-time evaluation for never-sleep mode.

All functions here are pure: the caller passes every input, including the
current time when it matters for a test.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

DEFAULT_IDLE_TIMEOUT = timedelta(minutes=5)
DEFAULT_MAX_EXECUTION_TIME = timedelta(hours=6)
SCHEDULE_SPACING = timedelta(seconds=1)

SETUP_SUGGESTIONS = [
    "Install project dependencies",
    "Verify environment variable settings",
    "Update README file",
]
TESTING_SUGGESTIONS = [
    "Run unit tests",
    "Generate coverage report",
    "Create integration tests",
]
DEFAULT_SUGGESTIONS = [
    "Check TODO.md for next tasks",
    "Conduct code review",
    "Update documentation",
]

# Checked in order; the first bucket with a matching keyword wins.
_SUGGESTION_BUCKETS: list[tuple[tuple[str, ...], list[str]]] = [
    (("initial setup", "setup"), SETUP_SUGGESTIONS),
    (("test", "testing"), TESTING_SUGGESTIONS),
]


@dataclass(frozen=True)
class IdleTrigger:
    idle_time: timedelta
    reason: str = "idle-timeout"


@dataclass(frozen=True)
class ExecutionBudget:
    should_stop: bool
    remaining_time: timedelta | None = None


@dataclass(frozen=True)
class ScheduledTask:
    task: str
    scheduled_at: datetime
    priority: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "task": self.task,
            "scheduled_at": self.scheduled_at.isoformat(),
            "priority": self.priority,
        }


def check_idle(
    last_activity: datetime,
    timeout: timedelta = DEFAULT_IDLE_TIMEOUT,
    now: datetime | None = None,
) -> IdleTrigger | None:
    """Return a trigger when strictly more than ``timeout`` has passed since ``last_activity``."""
    idle = (now or datetime.now()) - last_activity
    if idle > timeout:
        return IdleTrigger(idle_time=idle)
    return None


def check_execution_time(
    start_time: datetime,
    max_execution_time: timedelta = DEFAULT_MAX_EXECUTION_TIME,
    now: datetime | None = None,
) -> ExecutionBudget:
    elapsed = (now or datetime.now()) - start_time
    if elapsed > max_execution_time:
        return ExecutionBudget(should_stop=True)
    return ExecutionBudget(should_stop=False, remaining_time=max_execution_time - elapsed)


def suggest_tasks(context: str) -> list[str]:
    for keywords, suggestions in _SUGGESTION_BUCKETS:
        if any(keyword in context for keyword in keywords):
            return list(suggestions)
    return list(DEFAULT_SUGGESTIONS)


def schedule_tasks(tasks: list[str], now: datetime | None = None) -> list[ScheduledTask]:
    """Annotate tasks with advisory schedule times one second apart. Nothing is run."""
    base = now or datetime.now()
    return [
        ScheduledTask(
            task=task,
            scheduled_at=base + SCHEDULE_SPACING * (index + 1),
            priority="high" if index == 0 else "normal",
        )
        for index, task in enumerate(tasks)
    ]


def chat_reply(text: str) -> str:
    if "task" in text or "progress" in text:
        return "Checking current tasks. Please wait a moment..."
    if "break" in text or "stop" in text:
        return "Understood. Pausing automatic execution."
    return "Auto-response: Message received. Continuing task monitoring."


def as_datetime(value: Any, default: datetime) -> datetime:
    """
    Coerce a payload time (datetime, ISO string or epoch seconds) to a naive local datetime.

    Timezone-aware values are converted to local time first.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value)
    if isinstance(value, str) and value:
        value = datetime.fromisoformat(value)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value
    return default


def as_timedelta(value: Any, default: timedelta) -> timedelta:
    """Coerce a payload duration (timedelta or seconds) to a timedelta. Zero means default."""
    if isinstance(value, timedelta):
        return value or default
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value:
        return timedelta(seconds=value)
    return default
