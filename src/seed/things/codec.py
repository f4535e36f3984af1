"""
Encode/decode Things to and from their JSON wire form.

Decoding dispatches on the discriminant: the caller's expected type when one
is given (a Feature knows what it points at), otherwise the ``type`` field
of the encoded record, otherwise a container.

Usage:
    from seed.things.codec import decode_thing

    thing = decode_thing(b'{"address": "leaf1", "type": 1, "data": "hello"}')
    thing.render()  # 'hello'
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from seed.core.errors import DecodeError
from seed.things.models import THING_MODELS, BaseThing, Thing, ThingType

# Fields the wire format marks as required (enforced with strict=True)
REQUIRED_FIELDS = ("address", "version", "type", "tradable", "spawner", "cert")


def _load_object(
    raw: bytes | str | Mapping[str, Any],
    thing_type: int | None = None,
) -> dict[str, Any]:
    if isinstance(raw, Mapping):
        return dict(raw)
    try:
        obj = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodeError(f"Invalid JSON: {e}", thing_type=thing_type, cause=e) from e
    if not isinstance(obj, dict):
        raise DecodeError(
            f"Expected a JSON object, got {type(obj).__name__}",
            thing_type=thing_type,
        )
    return obj


def _coerce_type(value: Any) -> ThingType:
    # Integers only: no bools, strings or fractional numbers
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"Invalid thing type: {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise DecodeError(f"Invalid thing type: {value!r}")
    try:
        return ThingType(int(value))
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Unknown thing type: {value!r}", cause=e) from e


def decode_thing(
    raw: bytes | str | Mapping[str, Any],
    thing_type: int | None = None,
    *,
    strict: bool = False,
) -> Thing:
    """
    Decode an encoded record into the matching Thing variant.

    Args:
        raw: JSON bytes/str, or an already parsed mapping
        thing_type: Expected discriminant; read from the record when None
        strict: Require every field in ``REQUIRED_FIELDS``

    Raises:
        DecodeError: malformed input for the selected variant
    """
    expected = None if thing_type is None else _coerce_type(thing_type)
    obj = _load_object(raw, None if expected is None else int(expected))
    encoded_type = obj.get("type")

    if expected is not None:
        selected = expected
        if encoded_type is not None and _coerce_type(encoded_type) != selected:
            raise DecodeError(
                f"Record declares type {encoded_type!r}, expected {int(selected)}",
                thing_type=int(selected),
            ).with_context(address=obj.get("address"))
    elif encoded_type is not None:
        selected = _coerce_type(encoded_type)
    else:
        selected = ThingType.CONTAINER

    if strict:
        missing = [name for name in REQUIRED_FIELDS if name not in obj]
        if missing:
            raise DecodeError(
                f"Missing required fields: {', '.join(missing)}",
                thing_type=int(selected),
            ).with_context(address=obj.get("address"))

    obj["type"] = int(selected)
    model = THING_MODELS[selected]
    try:
        return model.model_validate(obj)
    except ValidationError as e:
        raise DecodeError(
            f"Invalid {model.__name__}: {e.error_count()} validation error(s)",
            thing_type=int(selected),
            cause=e,
        ).with_context(address=obj.get("address")) from e


def encode_thing(thing: BaseThing) -> bytes:
    """Encode a Thing with wire names, omitting unset optional fields."""
    return thing.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")


__all__ = ["REQUIRED_FIELDS", "decode_thing", "encode_thing"]
