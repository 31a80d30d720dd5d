# Copyright Max R. P. Grossmann, Holger Gerhardt, et al., 2026.
# SPDX-License-Identifier: LGPL-3.0-or-later

import logging
import math
from collections.abc import Callable
from typing import Any, Literal

from orjson import dumps as jd

from knobwire.bus import Bus, Subscription
from knobwire.codec import Codec
from knobwire.payload import MalformedPayload
from knobwire.topics import DEFAULT_PREFIX, GROUPS, InvalidKnob, gains_topic, knob_to_topic
from knobwire.types import KnobUpdate, PIDGains
from knobwire.utils import ensure

logger = logging.getLogger(__name__)


class Controller:
    """Relays knob changes from the UI to the bus and gain snapshots back."""

    def __init__(
        self,
        bus: Bus,
        *,
        codec: Codec | None = None,
        topic_prefix: str = DEFAULT_PREFIX,
        on_update: Callable[[str, PIDGains], None] | None = None,
    ) -> None:
        self.bus = bus
        self.codec = codec or Codec()
        self.topic_prefix = topic_prefix
        self.on_update = on_update
        self.gains: dict[str, PIDGains] = {}
        self.subscriptions: list[Subscription] = []

        # validates topic_prefix
        for group in GROUPS:
            gains_topic(group, topic_prefix)

    def start(self) -> None:
        ensure(not self.subscriptions, RuntimeError, "controller already started")

        for group in GROUPS:
            topic = gains_topic(group, self.topic_prefix)
            self.subscriptions.append(self.bus.subscribe(topic, self.gains_handler(group)))

    def gains_handler(self, group: str) -> Callable[[str, bytes], None]:
        def handle(topic: str, payload: bytes) -> None:
            try:
                gains = self.codec.decode(PIDGains, payload)
            except MalformedPayload as exc:
                logger.warning("Failed to decode %s gains on %s: %s", group, topic, exc)
                return

            self.gains[group] = gains

            if self.on_update is not None:
                try:
                    self.on_update(f"update:{group}", gains)
                except Exception:
                    logger.exception("on_update callback failed for %s gains", group)

            logger.info("Updated %s gains: %s", group, gains)

        return handle

    def publish_knob(self, update: Any) -> str:
        """Publish a knob's new value on its topic and flush the bus.

        ``update`` is a KnobUpdate or anything the codec can decode into one.
        Returns the topic the value went to.
        """
        if not isinstance(update, KnobUpdate):
            update = self.codec.decode(KnobUpdate, update)

        logger.info("Knob %s changed to %s", update.knob, update.value)

        try:
            topic = knob_to_topic(update.knob, self.topic_prefix)
        except InvalidKnob:
            logger.warning("Invalid knob ID: %s", update.knob)
            raise

        ensure(update.value is not None, MalformedPayload, f"knob {update.knob} has no value")
        ensure(math.isfinite(update.value), MalformedPayload, f"knob {update.knob} has non-finite value")

        payload = jd(update.value)

        try:
            self.bus.publish(topic, payload)
            self.bus.flush()
        except Exception:
            logger.exception("Failed to publish to %s", topic)
            raise

        logger.info("Published gain %s to %s", update.value, topic)

        return topic

    def close(self) -> None:
        for sub in self.subscriptions:
            sub.unsubscribe()
        self.subscriptions.clear()

        if not self.bus.closed:
            self.bus.close()

    def __enter__(self) -> "Controller":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> Literal[False]:
        self.close()
        return False
