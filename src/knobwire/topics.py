# Copyright Max R. P. Grossmann, Holger Gerhardt, et al., 2026.
# SPDX-License-Identifier: LGPL-3.0-or-later

"""
Knob identifiers and the bus topics they map to.

A knob id is five characters: group (3), axis (1), gain (1), e.g. "posxp".
It is published on "<prefix>.<group>.<gain>.<axis>".
"""

import logging
from typing import cast

from knobwire.utils import ensure, valid_prefix

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "pid.gains"
GROUPS = ("pos", "att")
AXES = ("x", "y", "z")
GAINS = ("p", "i", "d")


class InvalidKnob(ValueError):
    pass


def knob_to_topic(knob_id: str | None, prefix: str = DEFAULT_PREFIX) -> str:
    ensure(isinstance(knob_id, str), InvalidKnob, f"knob id must be a string, got {knob_id!r}")
    knob_id = cast(str, knob_id)
    ensure(len(knob_id) == 5, InvalidKnob, f"invalid knob ID format: {knob_id}")
    ensure(valid_prefix(prefix), ValueError, f"invalid topic prefix: {prefix!r}")

    lowered = knob_id.lower()
    group, axis, gain = lowered[:3], lowered[3:4], lowered[4:5]

    ensure(group in GROUPS, InvalidKnob, f"unknown group: {group}")
    ensure(axis in AXES, InvalidKnob, f"unknown axis: {axis}")
    ensure(gain in GAINS, InvalidKnob, f"unknown gain: {gain}")

    topic = f"{prefix}.{group}.{gain}.{axis}"
    logger.debug("knob_to_topic(%s) -> %s", knob_id, topic)

    return topic


def gains_topic(group: str, prefix: str = DEFAULT_PREFIX) -> str:
    ensure(group in GROUPS, InvalidKnob, f"unknown group: {group}")
    ensure(valid_prefix(prefix), ValueError, f"invalid topic prefix: {prefix!r}")

    return f"{prefix}.{group}"
