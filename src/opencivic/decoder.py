"""Schema-tolerant JSON decoding.

:func:`decode` reads a JSON document from a text stream and validates it
into the requested type with a pydantic :class:`~pydantic.TypeAdapter`.
Records derived from :class:`~opencivic.models.BaseRecord` never reject a
property they do not declare.  Instead, at the end of validation, every
such property is handed to an :data:`UnknownFieldHandler`, at every nesting
level.  The default handler, :func:`route_unknown_field`, sorts them into
two side mappings on the record:

* names starting with ``+`` (the API's extension namespace) go to
  ``record.extension_fields``;
* everything else goes to ``record.additional_fields``.

Values are stored as decoded JSON (dicts, lists, scalars), so they can be
inspected or re-serialised later without loss.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Optional, TextIO, TypeVar

from pydantic import TypeAdapter, ValidationError

from opencivic.exceptions import DecodeError

T = TypeVar("T")

EXTENSION_SIGIL = "+"

UNKNOWN_FIELD_HANDLER_KEY = "unknown_field_handler"
"""Validation-context key under which :func:`decode` passes the handler."""

UnknownFieldHandler = Callable[[Any, str, Any], None]
"""``handler(record, name, value)`` -- called once per undeclared property."""


def route_unknown_field(record: Any, name: str, value: Any) -> None:
    """Store an undeclared property in the matching side mapping of *record*.

    Each mapping is created on first use, so a record without unknown
    properties keeps both attributes at ``None``.
    """
    if name.startswith(EXTENSION_SIGIL):
        if record.extension_fields is None:
            record.extension_fields = {}
        record.extension_fields[name] = value
    else:
        if record.additional_fields is None:
            record.additional_fields = {}
        record.additional_fields[name] = value


_adapters: dict[Any, TypeAdapter] = {}


def _adapter_for(target_type: Any) -> TypeAdapter:
    try:
        return _adapters[target_type]
    except KeyError:
        adapter = _adapters[target_type] = TypeAdapter(target_type)
        return adapter
    except TypeError:
        # Unhashable type expressions are rebuilt on every call.
        return TypeAdapter(target_type)


def decode(
    stream: TextIO,
    target_type: type[T] | Any,
    handler: Optional[UnknownFieldHandler] = None,
) -> T:
    """Decode the JSON document in *stream* into *target_type*.

    Args:
        stream: Text stream positioned at the start of a JSON document.
        target_type: A :class:`~opencivic.models.BaseRecord` subclass or any
            other type pydantic can validate (``list[Person]``,
            ``Page[Bill]``, ``dict``, ``Any``).
        handler: Callback for undeclared properties.  Defaults to
            :func:`route_unknown_field`.

    Returns:
        The validated value.

    Raises:
        DecodeError: If the document is not valid JSON or a declared field
            has the wrong type.
    """
    try:
        payload = json.load(stream)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"Malformed JSON: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise DecodeError(f"Response is not valid text: {exc}") from exc
    return decode_value(payload, target_type, handler)


def decode_value(
    payload: Any,
    target_type: type[T] | Any,
    handler: Optional[UnknownFieldHandler] = None,
) -> T:
    """Validate an already-parsed JSON value into *target_type*.

    Same contract as :func:`decode`, minus the parsing step.
    """
    context = {UNKNOWN_FIELD_HANDLER_KEY: handler or route_unknown_field}
    try:
        return _adapter_for(target_type).validate_python(payload, context=context)
    except ValidationError as exc:
        name = getattr(target_type, "__name__", None) or repr(target_type)
        raise DecodeError(f"Response does not match {name}: {exc}") from exc
