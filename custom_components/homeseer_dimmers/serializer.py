"""Single consumer queue that runs operation groups one at a time."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from contextlib import suppress
from dataclasses import dataclass
import logging
from typing import Any

_LOGGER = logging.getLogger(__name__)

Operation = Callable[[], Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class PendingOperation:
    """A queued operation group."""

    name: str
    operation: Operation


class OperationSerializer:
    """Run submitted operations strictly in submission order.

    ``submit`` never blocks and never raises for a failing operation; the
    consumer logs failures and moves on to the next operation. The queue is
    unbounded.
    """

    def __init__(self) -> None:
        """Create an idle serializer."""

        self._queue: asyncio.Queue[PendingOperation] = asyncio.Queue()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._consumer: asyncio.Task | None = None
        self._closed = False

    @property
    def running(self) -> bool:
        """Return ``True`` while the consumer task is alive."""

        return self._consumer is not None and not self._consumer.done()

    @property
    def pending(self) -> int:
        """Return the number of operations waiting to run."""

        return self._queue.qsize()

    def start(self) -> None:
        """Start the consumer task on the running event loop."""

        if self.running:
            return
        self._closed = False
        self._loop = asyncio.get_running_loop()
        self._consumer = self._loop.create_task(self._consume())

    def submit(self, operation: Operation, *, name: str = "operation") -> None:
        """Queue ``operation`` to run after every previously submitted one."""

        if self._closed:
            _LOGGER.debug("Dropping %s submitted after shutdown", name)
            return
        item = PendingOperation(name, operation)
        loop = self._loop
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if loop is None and running is None:
            _LOGGER.warning(
                "Dropping %s submitted off the event loop before start", name
            )
            return
        if loop is not None and running is not loop:
            loop.call_soon_threadsafe(self._queue.put_nowait, item)
        else:
            self._queue.put_nowait(item)
        _LOGGER.debug("Queued %s (pending: %d)", name, self._queue.qsize())

    async def async_join(self) -> None:
        """Wait until every queued operation has completed."""

        await self._queue.join()

    async def async_stop(self) -> None:
        """Cancel the consumer and discard operations still queued."""

        self._closed = True
        consumer, self._consumer = self._consumer, None
        if consumer is not None:
            consumer.cancel()
            with suppress(asyncio.CancelledError):
                await consumer
        dropped = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
            dropped += 1
        if dropped:
            _LOGGER.debug("Discarded %d pending operations", dropped)

    async def _consume(self) -> None:
        """Await queued operations one at a time."""

        while True:
            item = await self._queue.get()
            try:
                _LOGGER.debug("Running %s", item.name)
                await item.operation()
            except asyncio.CancelledError:
                raise
            except Exception:
                _LOGGER.exception("Operation %s failed", item.name)
            finally:
                self._queue.task_done()
