"""Single-flight FIFO of chat turns."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable

from loguru import logger

from ccdiscord.agent.cancel import CancelToken, QueryAbortedError
from ccdiscord.bus.events import Envelope


class TurnFailedError(Exception):
    """An actor answered a turn with an error envelope."""


@dataclass
class QueuedTask:
    envelope: Envelope
    enqueue_time: datetime = field(default_factory=datetime.now)


RunTurn = Callable[[QueuedTask, CancelToken], Awaitable[None]]
OnFailure = Callable[[QueuedTask, Exception], Awaitable[None]]


class TaskQueue:
    """
    Runs queued turns one at a time, in enqueue order.

    ``process_next`` drains the queue; calling it while a drain is already
    running does nothing, so it is safe to call after every ``enqueue``.
    Each turn gets a fresh ``CancelToken`` that ``abort_current`` signals.
    A failing turn is reported through ``on_failure`` and the drain moves on.
    """

    def __init__(self, run_turn: RunTurn, on_failure: OnFailure | None = None):
        self._run_turn = run_turn
        self._on_failure = on_failure
        self._items: deque[QueuedTask] = deque()
        self._processing = False
        self._current: CancelToken | None = None

    def enqueue(self, envelope: Envelope) -> QueuedTask:
        task = QueuedTask(envelope=envelope)
        self._items.append(task)
        logger.debug(f"Queued {envelope.type} from {envelope.sender} (size={len(self._items)})")
        return task

    async def process_next(self) -> None:
        if self._processing:
            return
        self._processing = True
        try:
            while self._items:
                task = self._items.popleft()
                token = CancelToken()
                self._current = token
                try:
                    await self._run_turn(task, token)
                except QueryAbortedError as e:
                    logger.info(f"Turn {task.envelope.id} aborted")
                    await self._report(task, e)
                except Exception as e:
                    logger.error(f"Turn {task.envelope.id} failed: {e}")
                    await self._report(task, e)
                finally:
                    if self._current is token:
                        self._current = None
        finally:
            self._processing = False

    async def _report(self, task: QueuedTask, error: Exception) -> None:
        if self._on_failure is None:
            return
        try:
            await self._on_failure(task, error)
        except Exception as e:
            logger.error(f"Failed to report turn failure: {e}")

    def abort_current(self) -> bool:
        """Signal the turn in flight. Queued turns are left alone."""
        if self._current is None:
            return False
        self._current.cancel("stopped")
        self._current = None
        return True

    def clear(self) -> int:
        """Drop turns that have not started yet and return how many were dropped."""
        dropped = len(self._items)
        self._items.clear()
        if dropped:
            logger.info(f"Cleared {dropped} queued turn(s)")
        return dropped

    @property
    def size(self) -> int:
        return len(self._items)

    @property
    def processing(self) -> bool:
        return self._processing

    def is_empty(self) -> bool:
        return not self._items
