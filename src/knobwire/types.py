# Copyright Max R. P. Grossmann, Holger Gerhardt, et al., 2026.
# SPDX-License-Identifier: LGPL-3.0-or-later

from typing import Any

from pydantic import field_validator
from pydantic.dataclasses import dataclass as validated_dataclass

from knobwire.payload import construct

Triple = tuple[float, float, float]

KNOB_FIELDS = ("knob", "value")


def _numeric(v: Any) -> Any:
    # bool is an int subclass, and pydantic would coerce numeric strings
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise ValueError(f"expected a number, got {type(v).__name__}")

    return v


@validated_dataclass(frozen=True)
class KnobUpdate:
    knob: str | None = None
    value: float | None = None

    @field_validator("value", mode="before")
    @classmethod
    def _check_value(cls, v: Any) -> Any:
        return v if v is None else _numeric(v)

    @classmethod
    def create_from(cls, source: Any = None) -> "KnobUpdate":
        return construct(cls, KNOB_FIELDS, source)


@validated_dataclass(frozen=True)
class PIDGains:
    kp: Triple = (0.0, 0.0, 0.0)
    ki: Triple = (0.0, 0.0, 0.0)
    kd: Triple = (0.0, 0.0, 0.0)

    @field_validator("kp", "ki", "kd", mode="before")
    @classmethod
    def _check_triple(cls, v: Any) -> Any:
        if not isinstance(v, (list, tuple)):
            raise ValueError(f"expected a sequence of 3 numbers, got {type(v).__name__}")

        return tuple(_numeric(e) for e in v)

