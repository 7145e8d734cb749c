"""Cooperative cancellation for in-flight agent turns."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, TypeVar

T = TypeVar("T")


class QueryAbortedError(Exception):
    """Raised when a turn is cancelled while it is being produced."""

    def __init__(self, message: str = "Query was aborted"):
        super().__init__(message)


class CancelToken:
    """
    A one-shot cancellation signal.

    Cancelling a token also cancels every token linked to it as a child.
    Consumers observe the signal only at their own suspension points.
    """

    def __init__(self, parent: CancelToken | None = None):
        self._event = asyncio.Event()
        self._children: list[CancelToken] = []
        self.reason: str | None = None
        if parent is not None:
            parent._children.append(self)
            if parent.cancelled:
                self.cancel(parent.reason)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str | None = None) -> None:
        if self._event.is_set():
            return
        self.reason = reason or "cancelled"
        self._event.set()
        for child in self._children:
            child.cancel(self.reason)

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise QueryAbortedError()


_END = object()


async def _next_or_end(iterator: AsyncIterator[T]) -> T | object:
    try:
        return await iterator.__anext__()
    except StopAsyncIteration:
        return _END


async def iterate_until_cancelled(stream: AsyncIterator[T], token: CancelToken) -> AsyncIterator[T]:
    """
    Yield items from ``stream`` until it ends or ``token`` is cancelled.

    Waiting for the next item races against the token, so a cancel while the
    stream is idle raises ``QueryAbortedError`` without waiting for another item.
    """
    iterator = stream.__aiter__()
    waiter = asyncio.create_task(token.wait())
    try:
        while True:
            token.raise_if_cancelled()
            next_item = asyncio.create_task(_next_or_end(iterator))
            await asyncio.wait({next_item, waiter}, return_when=asyncio.FIRST_COMPLETED)
            if not next_item.done():
                next_item.cancel()
                await asyncio.gather(next_item, return_exceptions=True)
                raise QueryAbortedError()
            item = next_item.result()
            if item is _END:
                return
            yield item
    finally:
        waiter.cancel()
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            try:
                await aclose()
            except RuntimeError:
                # Generator is still running its own cancellation.
                pass
