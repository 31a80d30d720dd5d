# Copyright Max R. P. Grossmann, Holger Gerhardt, et al., 2026.
# SPDX-License-Identifier: LGPL-3.0-or-later

"""
Inbound payload handling shared by the codec and the message types.

A payload is either an already-parsed mapping (RawObject) or JSON text
(JsonText). Keys missing from the payload take the message type's defaults.
"""

from collections.abc import Mapping
from typing import Any, TypeVar

from orjson import JSONDecodeError
from orjson import loads as jl
from pydantic import ValidationError
from pydantic.dataclasses import dataclass as validated_dataclass

from knobwire.utils import ensure

T = TypeVar("T")

TEXT_TYPES = (str, bytes, bytearray, memoryview)


class MalformedPayload(ValueError):
    pass


@validated_dataclass(frozen=True)
class RawObject:
    """An inbound payload that is already a structured mapping."""

    # keys are not validated, unknown keys are ignored on lookup
    mapping: Mapping[Any, Any]


@validated_dataclass(frozen=True)
class JsonText:
    """An inbound payload that still has to be parsed as JSON."""

    text: str | bytes


def as_variant(source: Any) -> RawObject | JsonText:
    """Classify an inbound payload as one of the two accepted input variants."""
    if isinstance(source, (RawObject, JsonText)):
        return source
    if source is None:
        return RawObject({})
    if isinstance(source, str):
        return JsonText(source)
    if isinstance(source, TEXT_TYPES):
        return JsonText(bytes(source))
    if isinstance(source, Mapping):
        return RawObject(source)

    raise TypeError(f"{source!r} has invalid payload type: {type(source)}")


def parse(source: Any) -> Mapping[Any, Any]:
    variant = as_variant(source)

    if isinstance(variant, RawObject):
        return variant.mapping

    try:
        mapping = jl(variant.text)
    except JSONDecodeError as exc:
        raise MalformedPayload(f"Payload is not valid JSON: {exc}") from exc

    ensure(
        isinstance(mapping, dict),
        MalformedPayload,
        f"payload must be a JSON object, got {type(mapping).__name__}",
    )

    return mapping


def construct(cls: type[T], fields: tuple[str, ...], source: Any = None) -> T:
    """Build ``cls`` from the wire ``fields`` present in ``source``.

    An instance of ``cls`` is returned unchanged.
    """
    if isinstance(source, cls):
        return source

    mapping = parse(source)
    present = {name: mapping[name] for name in fields if name in mapping}

    try:
        return cls(**present)
    except ValidationError as exc:
        raise MalformedPayload(f"Invalid {cls.__name__} payload: {exc}") from exc
