"""Process-wide extra fields merged into every formatted line.

The store keeps at most one payload. Payloads are converted and validated
eagerly: ``set`` either stores a complete JSON object or raises and leaves
the previous value in place.
"""

import dataclasses
import json
import threading
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from ecs_logger.errors import InvalidJsonError, NotObjectError

_CONVERTER_METHODS = ("to_json_object", "to_dict")


def to_json_object(payload: Any) -> dict:
    """Convert ``payload`` into a detached JSON object (a plain dict).

    Objects may provide ``to_json_object()`` or ``to_dict()``; dataclass
    instances are expanded with :func:`dataclasses.asdict`. Anything else is
    serialized as-is.

    Raises:
        InvalidJsonError: If the value is not JSON-serializable.
        NotObjectError: If it serializes to something other than an object.
    """
    value = payload
    for method_name in _CONVERTER_METHODS:
        method = getattr(payload, method_name, None)
        if callable(method):
            value = method()
            break
    else:
        if dataclasses.is_dataclass(payload) and not isinstance(payload, type):
            value = dataclasses.asdict(payload)

    try:
        encoded = json.dumps(value, allow_nan=False)
    except (TypeError, ValueError, RecursionError) as exc:
        raise InvalidJsonError(str(exc)) from exc

    decoded = json.loads(encoded)
    if not isinstance(decoded, dict):
        raise NotObjectError(type(decoded).__name__)
    return decoded


class ExtraFieldsStore:
    """A single shared cell holding the current extra fields, if any.

    Readers take no lock: the payload is an immutable mapping published by a
    single reference assignment, so a reader sees the old payload or the
    new one. Writers serialize on ``_lock`` for the swap only.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._fields: Mapping[str, Any] | None = None

    def set(self, payload: Any) -> None:
        """Replace the stored payload. Raises SerializationUnsupported."""
        fields = MappingProxyType(to_json_object(payload))
        with self._lock:
            self._fields = fields

    def clear(self) -> None:
        with self._lock:
            self._fields = None

    def snapshot(self) -> Mapping[str, Any] | None:
        """The current payload, or None when the store is empty."""
        return self._fields

    @property
    def is_set(self) -> bool:
        return self._fields is not None


_default_store = ExtraFieldsStore()


def get_default_store() -> ExtraFieldsStore:
    """The store shared by formatters that were not given one explicitly."""
    return _default_store


def set_extra_fields(payload: Any) -> None:
    """Merge ``payload``'s keys into every subsequent log line.

    Raises:
        SerializationUnsupported: If ``payload`` is not a JSON object. The
            previously stored fields are kept.
    """
    _default_store.set(payload)


def clear_extra_fields() -> None:
    _default_store.clear()
