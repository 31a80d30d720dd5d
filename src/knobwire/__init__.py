# Copyright Max R. P. Grossmann & Holger Gerhardt, 2026.
# SPDX-License-Identifier: LGPL-3.0-or-later

from knobwire.bus import Bus, Memory, Subscription
from knobwire.codec import Codec, decode
from knobwire.controller import Controller
from knobwire.payload import JsonText, MalformedPayload, RawObject, as_variant
from knobwire.topics import InvalidKnob, gains_topic, knob_to_topic
from knobwire.types import KnobUpdate, PIDGains

__all__ = [
    "Bus",
    "Codec",
    "Controller",
    "InvalidKnob",
    "JsonText",
    "KnobUpdate",
    "MalformedPayload",
    "Memory",
    "PIDGains",
    "RawObject",
    "Subscription",
    "as_variant",
    "decode",
    "gains_topic",
    "knob_to_topic",
]

__version_info__ = 0, 1, 0
__version__ = ".".join(map(str, __version_info__))
__author__ = "Max R. P. Grossmann, Holger Gerhardt"
