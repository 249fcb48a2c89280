"""Ordered progress and result delivery from a run to its caller.

The engine publishes one ``ProgressEvent`` per finished job, in plan order,
and closes the channel with the terminal ``RunStats``. The caller consumes
events with ``async for`` and awaits ``result()`` without ever blocking the
run. An optional synchronous listener sees every event as it is published,
which suits progress bars.

Examples
--------
>>> import asyncio
>>> async def demo():
...     channel = ProgressChannel()
...     channel.publish(ProgressEvent(100.0, "done"))
...     channel.close(RunStats(total_files=1, success_count=1))
...     return [e.percent async for e in channel], (await channel.result()).total_files
>>> asyncio.run(demo())
([100.0], 1)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable

from .models import ProgressEvent, RunStats

logger = logging.getLogger(__name__)

ProgressListener = Callable[[ProgressEvent], None]

_CLOSED = object()


class ProgressChannel:
    """Single-producer, single-consumer event stream terminated by ``RunStats``.

    After the live stream has been consumed to its end, iterating again
    replays every published event.
    """

    def __init__(self, listener: ProgressListener | None = None) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._listener = listener
        self._events: list[ProgressEvent] = []
        self._stats: RunStats | None = None
        self._done = asyncio.Event()
        self._drained = False

    @property
    def closed(self) -> bool:
        return self._done.is_set()

    @property
    def events(self) -> list[ProgressEvent]:
        """Every event published so far, in order."""
        return list(self._events)

    def publish(self, event: ProgressEvent) -> None:
        """Append an event; listener errors are logged and ignored.

        Raises
        ------
        RuntimeError
            If the channel is already closed.
        """
        if self.closed:
            raise RuntimeError("progress channel is closed")
        self._events.append(event)
        self._queue.put_nowait(event)
        if self._listener is not None:
            try:
                self._listener(event)
            except Exception:
                logger.exception("Progress listener failed")

    def close(self, stats: RunStats) -> None:
        """Record the terminal summary and end the event stream."""
        if self.closed:
            raise RuntimeError("progress channel is closed")
        self._stats = stats
        self._queue.put_nowait(_CLOSED)
        self._done.set()

    async def result(self) -> RunStats:
        """Wait for and return the terminal ``RunStats``."""
        await self._done.wait()
        assert self._stats is not None
        return self._stats

    async def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        if self._drained:
            for event in list(self._events):
                yield event
            return
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                self._drained = True
                return
            assert isinstance(item, ProgressEvent)
            yield item
