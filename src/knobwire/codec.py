# Copyright Max R. P. Grossmann, Holger Gerhardt, et al., 2026.
# SPDX-License-Identifier: LGPL-3.0-or-later

"""
Tolerant codec for control-plane messages exchanged with the UI.

Wire format: a compact JSON object (orjson). Inbound payloads are either an
already-parsed mapping or JSON text; keys missing from the payload decode to
the message type's defaults, never to an error.
"""

from typing import Any, TypeVar

from orjson import dumps as jd

from knobwire.payload import construct
from knobwire.types import KNOB_FIELDS, KnobUpdate, PIDGains

T = TypeVar("T")


class Codec:
    def __init__(self) -> None:
        # wire field names per message type, in wire order
        self.fields: dict[type, tuple[str, ...]] = {}
        self.vigilant = True

        self.register_builtins()

    def register(self, cls: type, fields: tuple[str, ...]) -> None:
        """Register a message type for encoding/decoding.

        Args:
            cls: A dataclass whose constructor accepts every wire field as a
                keyword argument with a default.
            fields: Wire field names, read from the payload and passed through
                to ``cls`` under the same name.
        """
        if cls in self.fields and self.fields[cls] != fields:
            raise ValueError(f"{cls.__name__} already registered with fields {self.fields[cls]}")

        self.fields[cls] = tuple(fields)

    def decode(self, cls: type[T], source: Any = None) -> T:
        """Decode a mapping, JSON text or an existing instance into ``cls``."""
        fields = self.fields.get(cls)
        if fields is None:
            raise NotImplementedError(f"{cls} is not a registered message type")

        return construct(cls, fields, source)

    def to_dict(self, message: Any) -> dict[str, Any]:
        fields = self.fields.get(type(message))
        if fields is None:
            raise NotImplementedError(f"{message} has invalid type: {type(message)}")

        return {name: getattr(message, name) for name in fields}

    def encode(self, message: Any) -> bytes:
        """Encode a registered message to compact JSON."""
        result = jd(self.to_dict(message))

        if self.vigilant and self.decode(type(message), result) != message:
            raise ValueError(f"Value {message!r} failed round-trip encoding.")

        return result

    def register_builtins(self) -> None:
        self.register(KnobUpdate, KNOB_FIELDS)
        self.register(PIDGains, ("kp", "ki", "kd"))


default_codec = Codec()


def decode(source: Any = None) -> KnobUpdate:
    """Decode a knob update from a mapping, JSON text, or nothing at all."""
    return default_codec.decode(KnobUpdate, source)
