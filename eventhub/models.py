from dataclasses import dataclass, field
from types import BuiltinMethodType, MethodType
from typing import Any, Callable, Dict, Hashable, List

import config


Listener = Callable[..., Any]


@dataclass
class SubscribeOptions:
    once: bool = config.ONCE_DEFAULT


@dataclass
class Subscription:
    # -------------------------------
    # What the caller registered
    # -------------------------------
    listener: Listener
    options: SubscribeOptions = field(default_factory=SubscribeOptions)

    # -------------------------------
    # Hub bookkeeping
    # -------------------------------
    scheduled: bool = field(default=False, compare=False, repr=False)

    @property
    def once(self) -> bool:
        return self.options.once

    def matches(self, listener: Listener) -> bool:
        return same_listener(self.listener, listener)


EventTable = Dict[Hashable, List[Subscription]]


def same_listener(a: Listener, b: Listener) -> bool:
    """
    Identity comparison for listeners.

    Bound methods are rebuilt on every attribute access, so two of them
    are the same listener when they wrap the same function on the same
    instance.
    """
    if a is b:
        return True
    # Method equality compares __self__ by identity, never by value.
    if isinstance(a, _METHOD_TYPES) and isinstance(b, _METHOD_TYPES):
        return a == b
    return False


_METHOD_TYPES = (MethodType, BuiltinMethodType)
