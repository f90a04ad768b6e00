from __future__ import annotations
import asyncio
import logging
import queue
from typing import Any, Awaitable, Callable, Optional, Set

log = logging.getLogger(__name__)

Callback = Callable[[], None]
DoneCallback = Callable[[Optional[BaseException]], None]


def _track(tasks: Set[asyncio.Future], task: asyncio.Future, on_done: DoneCallback) -> None:
    """Keep `task` referenced until it finishes, then report its outcome."""
    tasks.add(task)

    def _finished(t: asyncio.Future) -> None:
        tasks.discard(t)
        if t.cancelled():
            on_done(asyncio.CancelledError())
        else:
            on_done(t.exception())

    task.add_done_callback(_finished)


async def _wait_for(tasks: Set[asyncio.Future]) -> None:
    while tasks:
        await asyncio.gather(*list(tasks), return_exceptions=True)
        # done callbacks of the gathered tasks run on the next iteration
        await asyncio.sleep(0)


class LoopScheduler:
    """
    Defers listener invocations onto an asyncio event loop.

    Each invocation is queued with loop.call_soon, so it runs after the
    publisher yields back to the loop. Awaitables returned by listeners are
    wrapped in tasks that stay referenced here until they finish.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop
        self._tasks: Set[asyncio.Future] = set()

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        # Raises RuntimeError when publish is called outside a running loop
        return asyncio.get_running_loop()

    def call_soon(self, callback: Callback) -> None:
        self._get_loop().call_soon(callback)

    def run_awaitable(self, awaitable: Awaitable[Any], on_done: DoneCallback) -> None:
        _track(self._tasks, asyncio.ensure_future(awaitable, loop=self._get_loop()), on_done)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Let queued callbacks run, then wait for outstanding listener tasks."""
        await asyncio.sleep(0)
        await _wait_for(self._tasks)


class QueueScheduler:
    """
    Work queue drained explicitly by the owner.

    publish() only enqueues; nothing runs until drain() is called, which
    makes delivery deterministic for synchronous callers and tests.

    Awaitables returned by listeners run to completion inside drain() on a
    private loop. When drain() is itself called from a running loop they
    become tasks on that loop instead; await join() to wait for them.
    """

    def __init__(self) -> None:
        self._queue: "queue.Queue[Callback]" = queue.Queue()
        self._tasks: Set[asyncio.Future] = set()

    def call_soon(self, callback: Callback) -> None:
        self._queue.put(callback)

    def run_awaitable(self, awaitable: Awaitable[Any], on_done: DoneCallback) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is not None:
            _track(self._tasks, asyncio.ensure_future(awaitable, loop=loop), on_done)
            return

        async def _await():
            return await awaitable

        try:
            asyncio.run(_await())
        except (Exception, asyncio.CancelledError) as exc:
            on_done(exc)
        else:
            on_done(None)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def drain(self) -> int:
        """Run queued callbacks (including ones queued while draining)."""
        ran = 0
        while True:
            try:
                callback = self._queue.get_nowait()
            except queue.Empty:
                break
            callback()
            self._queue.task_done()
            ran += 1
        if ran:
            log.debug("Drained %d callbacks", ran)
        return ran

    async def join(self) -> None:
        """Wait for listener tasks started by a drain() inside a running loop."""
        await _wait_for(self._tasks)
