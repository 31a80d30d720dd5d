# Copyright Max R. P. Grossmann & Holger Gerhardt, 2026.
# SPDX-License-Identifier: LGPL-3.0-or-later

"""
Message bus seam between the controller and whatever carries its messages.

Topics are dot-separated tokens. Payloads are opaque bytes; encoding them is
the codec's job, not the bus's.
"""

from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable

from knobwire.utils import ensure, valid_prefix

Handler = Callable[[str, bytes], None]


class Subscription:
    def __init__(self, bus: "Bus", topic: str, handler: Handler) -> None:
        self.bus = bus
        self.topic = topic
        self.handler = handler
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self.bus.detach(self)

    def __repr__(self) -> str:
        return f"Subscription({self.topic!r}, active={self.active})"


class Bus(ABC):
    def __init__(self) -> None:
        self.closed = False

    @abstractmethod
    def publish(self, topic: str, payload: bytes) -> None: ...

    @abstractmethod
    def flush(self) -> None: ...

    @abstractmethod
    def subscribe(self, topic: str, handler: Handler) -> Subscription: ...

    @abstractmethod
    def detach(self, subscription: Subscription) -> None: ...

    def close(self) -> None:
        self.closed = True

    def ensure_open(self) -> None:
        ensure(not self.closed, RuntimeError, "bus is closed")


class Memory(Bus):
    """In-process implementation for testing and single-process setups.

    The most recent ``history`` published messages are kept in ``published``;
    ``history=None`` keeps all of them, ``history=0`` none.
    """

    def __init__(self, *, history: int | None = 1000) -> None:
        super().__init__()
        ensure(history is None or history >= 0, ValueError, "history must be None or non-negative")

        self.subscriptions: dict[str, list[Subscription]] = {}
        self.published: deque[tuple[str, bytes]] = deque(maxlen=history)
        self.flushes = 0

    def publish(self, topic: str, payload: bytes) -> None:
        self.ensure_open()
        ensure(valid_prefix(topic), ValueError, f"invalid topic: {topic!r}")
        ensure(isinstance(payload, bytes), TypeError, "payload must be bytes")

        self.published.append((topic, payload))

        # copy, handlers may unsubscribe while being called
        for sub in list(self.subscriptions.get(topic, [])):
            sub.handler(topic, payload)

    def flush(self) -> None:
        self.ensure_open()
        self.flushes += 1

    def subscribe(self, topic: str, handler: Handler) -> Subscription:
        self.ensure_open()
        ensure(valid_prefix(topic), ValueError, f"invalid topic: {topic!r}")

        sub = Subscription(self, topic, handler)
        self.subscriptions.setdefault(topic, []).append(sub)

        return sub

    def detach(self, subscription: Subscription) -> None:
        subs = self.subscriptions.get(subscription.topic, [])
        if subscription in subs:
            subs.remove(subscription)
        if not subs:
            self.subscriptions.pop(subscription.topic, None)

    def close(self) -> None:
        for subs in list(self.subscriptions.values()):
            for sub in list(subs):
                sub.unsubscribe()

        super().close()

    def messages(self, topic: str | None = None) -> list[tuple[str, bytes]]:
        return [(t, p) for t, p in self.published if topic is None or t == topic]
