# A tiny typed pub/sub event hub to keep layers decoupled.
from __future__ import annotations
import inspect
import logging
from dataclasses import replace
from functools import partial
from typing import Any, Dict, Generic, Hashable, Mapping, Optional, Tuple, TypeVar, Union

import config
from .models import EventTable, Listener, SubscribeOptions, Subscription
from .monitor import DeliveryStats
from .scheduling import LoopScheduler

log = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)

Options = Union[SubscribeOptions, Mapping[str, Any], None]


class EventHub(Generic[K]):
    """
    Owns one event table and delivers published events to its listeners.

    Delivery is deferred: publish() hands every invocation to the scheduler
    and returns straight away. The invocations are fixed when publish() is
    called; later subscribe/unsubscribe calls do not change them.
    """

    def __init__(self, scheduler=None) -> None:
        self._events: EventTable = {}
        self._scheduler = scheduler if scheduler is not None else LoopScheduler()
        self.stats = DeliveryStats()

    @property
    def scheduler(self):
        return self._scheduler

    @property
    def events(self) -> Dict[K, Tuple[Subscription, ...]]:
        """Snapshot of the event table; changing it has no effect on the hub."""
        return {event: tuple(records) for event, records in self._events.items()}

    def listeners(self, event: K) -> Tuple[Listener, ...]:
        return tuple(r.listener for r in self._events.get(event, ()))

    def __contains__(self, event: object) -> bool:
        return event in self._events

    def __len__(self) -> int:
        return len(self._events)

    # ------------------------------------------------------------------
    # subscribe / unsubscribe
    # ------------------------------------------------------------------

    def subscribe(
        self,
        event: K,
        listener: Listener,
        options: Options = None,
        *,
        once: Optional[bool] = None,
    ) -> None:
        options = _coerce_options(options, once)
        records = self._events.setdefault(event, [])

        if any(r.matches(listener) for r in records):
            log.warning(config.DUPLICATE_LISTENER_MSG, event)
            self.stats.record_duplicate()
            return

        records.append(Subscription(listener, options))
        log.debug("Subscribed %r to %r (once=%s)", listener, event, options.once)

    def unsubscribe(self, event: Optional[K] = None, listener: Optional[Listener] = None) -> None:
        """
        Remove listeners.

          - no event: clear every event (listener is ignored)
          - event + listener: remove that listener only
          - event alone: remove all listeners of the event
        """
        if event is None:
            self._events.clear()
            log.debug("Cleared all events")
            return

        records = self._events.get(event)
        if records is None:
            return

        if listener is not None:
            kept = [r for r in records if not r.matches(listener)]
            if kept:
                self._events[event] = kept
            else:
                del self._events[event]
        else:
            del self._events[event]
        log.debug("Unsubscribed %r from %r", listener, event)

    # ------------------------------------------------------------------
    # publish
    # ------------------------------------------------------------------

    def publish(self, event: K, *args: Any) -> int:
        """Schedule every listener of `event` with `args`; return how many were scheduled."""
        records = self._events.get(event)
        if not records:
            self.stats.record_publish(0)
            return 0

        scheduled = 0
        for record in list(records):
            # A once listener gets exactly one invocation, even if published
            # again before the first one has run.
            if record.once and record.scheduled:
                continue
            self._scheduler.call_soon(partial(self._invoke, event, record, args))
            record.scheduled = True
            scheduled += 1

        self.stats.record_publish(scheduled)
        log.debug("Published %r to %d listeners", event, scheduled)
        return scheduled

    def _invoke(self, event: K, record: Subscription, args: Tuple[Any, ...]) -> None:
        try:
            result = record.listener(*args)
        except Exception:
            log.exception(config.LISTENER_ERROR_MSG, event)
            self._finish(event, record, ok=False)
            return

        if inspect.isawaitable(result):
            self._scheduler.run_awaitable(result, partial(self._awaited, event, record))
            return
        self._finish(event, record, ok=True)

    def _awaited(self, event: K, record: Subscription, error: Optional[BaseException]) -> None:
        if error is not None:
            log.error(config.LISTENER_ERROR_MSG, event, exc_info=error)
        self._finish(event, record, ok=error is None)

    def _finish(self, event: K, record: Subscription, ok: bool) -> None:
        self.stats.record_invocation(ok)
        if record.once:
            self._drop(event, record)

    def _drop(self, event: K, record: Subscription) -> None:
        # Only this record; a later subscription of the same listener stays.
        records = self._events.get(event)
        if records is None:
            return
        kept = [r for r in records if r is not record]
        if kept:
            self._events[event] = kept
        else:
            del self._events[event]


def _coerce_options(options: Options, once: Optional[bool]) -> SubscribeOptions:
    if options is None:
        options = SubscribeOptions()
    elif isinstance(options, Mapping):
        options = SubscribeOptions(**options)
    else:
        # each record owns its options
        options = replace(options)
    if once is not None:
        options = replace(options, once=once)
    return options


def create_pubsub(scheduler=None) -> EventHub:
    """Return a new hub with its own, unshared event table."""
    return EventHub(scheduler=scheduler)
