"""JSON encoding of request bodies and typed decoding of responses."""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Any, Optional, Type, TypeVar, overload

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from httpease.services.errors import DecodeError, MarshalError

T = TypeVar("T")


def marshal(body: Any) -> bytes:
    """Serialize ``body`` to JSON bytes.

    Accepts anything pydantic can dump: builtins, models, dataclasses,
    datetimes, enums. Unsupported values and non-finite floats raise
    :class:`MarshalError`.
    """
    try:
        return json.dumps(
            to_jsonable_python(body), allow_nan=False, separators=(",", ":")
        ).encode("utf-8")
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        raise MarshalError(exc) from exc


@lru_cache(maxsize=256)
def _cached_adapter(response_model: Any) -> TypeAdapter[Any]:
    return TypeAdapter(response_model)


def adapter_for(response_model: Any) -> TypeAdapter[Any]:
    """Return a ``TypeAdapter`` for ``response_model``, cached when hashable."""
    try:
        hash(response_model)
    except TypeError:
        return TypeAdapter(response_model)
    return _cached_adapter(response_model)


@overload
def decode(data: bytes, response_model: None, *, strict: bool = True) -> None: ...


@overload
def decode(data: bytes, response_model: Type[T], *, strict: bool = True) -> T: ...


def decode(data: bytes, response_model: Optional[Any], *, strict: bool = True) -> Any:
    """Validate JSON ``data`` against ``response_model``.

    ``None`` as model skips decoding entirely.
    """
    if response_model is None:
        return None
    adapter = adapter_for(response_model)
    try:
        return adapter.validate_json(data, strict=strict)
    except ValidationError as exc:
        raise DecodeError(exc) from exc
