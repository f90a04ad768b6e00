import asyncio
import logging

import pytest

from eventhub.bus import create_pubsub
from eventhub.scheduling import LoopScheduler, QueueScheduler


def test_queue_scheduler_runs_callbacks_queued_while_draining():
    sched = QueueScheduler()
    order = []

    def first():
        order.append("first")
        sched.call_soon(lambda: order.append("nested"))

    sched.call_soon(first)
    sched.call_soon(lambda: order.append("second"))
    assert sched.pending == 2

    assert sched.drain() == 3
    assert order == ["first", "second", "nested"]
    assert sched.pending == 0
    assert sched.drain() == 0


def test_queue_scheduler_runs_awaitables_to_completion():
    sched = QueueScheduler()
    results = []

    async def work():
        await asyncio.sleep(0)
        return "done"

    async def fail():
        raise ValueError("nope")

    sched.run_awaitable(work(), results.append)
    sched.run_awaitable(fail(), results.append)

    assert results[0] is None
    assert isinstance(results[1], ValueError)


def test_coroutine_listener_on_queue_scheduler():
    hub = create_pubsub(scheduler=QueueScheduler())
    seen = []

    async def listener(value):
        seen.append(value)

    hub.subscribe("e", listener, once=True)
    hub.publish("e", 5)
    hub.scheduler.drain()

    assert seen == [5]
    assert "e" not in hub


def test_loop_scheduler_requires_a_running_loop():
    hub = create_pubsub()
    hub.subscribe("e", lambda: None)
    with pytest.raises(RuntimeError):
        hub.publish("e")


def test_loop_scheduler_with_explicit_loop():
    loop = asyncio.new_event_loop()
    try:
        hub = create_pubsub(scheduler=LoopScheduler(loop))
        seen = []
        hub.subscribe("e", seen.append)

        assert hub.publish("e", "x") == 1
        assert seen == []
        loop.run_until_complete(hub.scheduler.drain())
        assert seen == ["x"]
    finally:
        loop.close()


def test_loop_scheduler_reports_cancelled_tasks():
    async def main():
        sched = LoopScheduler()
        errors = []

        async def forever():
            await asyncio.sleep(3600)

        sched.run_awaitable(forever(), errors.append)
        assert sched.pending == 1
        await asyncio.sleep(0)
        for task in list(sched._tasks):
            task.cancel()
        await sched.drain()
        return sched, errors

    sched, errors = asyncio.run(main())
    assert sched.pending == 0
    assert len(errors) == 1
    assert isinstance(errors[0], asyncio.CancelledError)


def test_queue_scheduler_reports_cancelled_awaitables():
    sched = QueueScheduler()
    results = []

    async def cancels():
        raise asyncio.CancelledError()

    sched.run_awaitable(cancels(), results.append)

    assert len(results) == 1
    assert isinstance(results[0], asyncio.CancelledError)


def test_cancelled_coroutine_listener_does_not_stop_siblings(caplog):
    hub = create_pubsub(scheduler=QueueScheduler())
    seen = []

    async def cancels():
        raise asyncio.CancelledError()

    hub.subscribe("e", cancels, once=True)
    hub.subscribe("e", lambda: seen.append("sibling"))

    with caplog.at_level(logging.ERROR, logger="eventhub"):
        hub.publish("e")
        assert hub.scheduler.drain() == 2

    assert seen == ["sibling"]
    assert hub.scheduler.pending == 0
    assert len(hub.listeners("e")) == 1
    assert hub.stats.failed == 1
    assert hub.stats.delivered == 1


def test_queue_scheduler_drained_inside_a_running_loop(caplog):
    async def main():
        hub = create_pubsub(scheduler=QueueScheduler())
        seen = []

        async def listener(value):
            await asyncio.sleep(0)
            seen.append(value)

        hub.subscribe("e", listener, once=True)
        hub.publish("e", 3)
        assert hub.scheduler.drain() == 1
        assert hub.scheduler.in_flight == 1
        await hub.scheduler.join()
        return hub, seen

    with caplog.at_level(logging.ERROR, logger="eventhub"):
        hub, seen = asyncio.run(main())

    assert seen == [3]
    assert hub.scheduler.in_flight == 0
    assert hub.stats.delivered == 1
    assert hub.stats.failed == 0
    assert "e" not in hub
    assert not [r for r in caplog.records if r.levelno >= logging.ERROR]
