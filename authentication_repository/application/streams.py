from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import Generic, TypeVar


T = TypeVar("T")

_CLOSED = object()


class ChannelClosedError(RuntimeError):
    pass


class EventChannel(Generic[T]):
    """Broadcast channel feeding every subscriber its own asyncio queue.

    With ``replay`` enabled a new subscriber first receives every event already
    added, so a consumer that subscribes after the producer started sees the whole
    sequence. Closing with an error raises it in each subscriber once the pending
    events are drained.
    """

    def __init__(self, *, replay: bool = False):
        self._replay = replay
        self._history: list[T] = []
        self._latest: T | None = None
        self._subscribers: set[asyncio.Queue] = set()
        self._closed = False
        self._error: BaseException | None = None

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def latest(self) -> T | None:
        return self._latest

    @property
    def error(self) -> BaseException | None:
        return self._error

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def add(self, event: T) -> None:
        if self._closed:
            raise ChannelClosedError("Cannot add events after the channel is closed.")
        self._latest = event
        if self._replay:
            self._history.append(event)
        for queue in self._subscribers:
            queue.put_nowait(event)

    def close(self, error: BaseException | None = None) -> None:
        if self._closed:
            return
        self._closed = True
        self._error = error
        for queue in self._subscribers:
            queue.put_nowait(_CLOSED)

    def subscribe(self) -> AsyncIterator[T]:
        queue: asyncio.Queue = asyncio.Queue()
        if self._replay:
            for event in self._history:
                queue.put_nowait(event)
        if self._closed:
            queue.put_nowait(_CLOSED)
        else:
            self._subscribers.add(queue)
        return self._drain(queue)

    async def _drain(self, queue: asyncio.Queue) -> AsyncIterator[T]:
        try:
            while True:
                item = await queue.get()
                if item is _CLOSED:
                    if self._error is not None:
                        raise self._error
                    return
                yield item
        finally:
            self._subscribers.discard(queue)
