"""Render log records as single-line ECS JSON."""

import io
import json
import logging
from collections.abc import Mapping
from typing import Any

from ecs_logger.ecs import RESERVED_FIELDS, EcsRecord, build_event
from ecs_logger.errors import WriteFailed
from ecs_logger.extra_fields import ExtraFieldsStore, get_default_store

_RESERVED_PATHS = tuple(tuple(name.split(".")) for name in RESERVED_FIELDS)


def _overlaps(path: tuple, reserved: tuple) -> bool:
    depth = min(len(path), len(reserved))
    return path[:depth] == reserved[:depth]


def _drop_reserved(prefix: tuple, extra: Mapping[str, Any]) -> dict:
    kept = {}
    for key, value in extra.items():
        path = prefix + tuple(key.split("."))
        blocking = [r for r in _RESERVED_PATHS if _overlaps(path, r)]
        if not blocking:
            kept[key] = value
            continue
        # "log": {...} may still carry non-reserved children such as log.logger
        if isinstance(value, Mapping) and all(len(r) > len(path) for r in blocking):
            nested = _drop_reserved(path, value)
            if nested:
                kept[key] = nested
    return kept


def merge_extra_fields(event: dict, extra: Mapping[str, Any] | None) -> dict:
    """Append ``extra`` keys to ``event``; reserved ECS fields always win.

    Keys are compared as dotted paths, so ``"log.origin.file.line"`` and
    ``{"log": {"level": ...}}`` collide with the fixed fields and are dropped.
    """
    if not extra:
        return event
    for key, value in _drop_reserved((), extra).items():
        event.setdefault(key, value)
    return event


def write_line(sink, line: str) -> None:
    """Write one formatted line plus the terminator to ``sink``.

    Binary sinks receive UTF-8, text sinks the string itself.

    Raises:
        WriteFailed: If the sink raises while writing or flushing.
    """
    data = line + "\n"
    try:
        if isinstance(sink, (io.RawIOBase, io.BufferedIOBase)):
            sink.write(data.encode("utf-8"))
        else:
            sink.write(data)
        flush = getattr(sink, "flush", None)
        if flush is not None:
            flush()
    except (OSError, ValueError) as exc:
        raise WriteFailed(f"failed to write log line: {exc}") from exc


class EcsFormatter(logging.Formatter):
    """``logging.Formatter`` that emits one ECS JSON object per record.

    Extra fields are read from ``extra_fields`` (the process default store
    when omitted) once per record.
    """

    def __init__(self, extra_fields: ExtraFieldsStore | None = None):
        super().__init__()
        self._extra_fields = extra_fields if extra_fields is not None else get_default_store()

    @property
    def extra_fields(self) -> ExtraFieldsStore:
        return self._extra_fields

    def format_record(self, record: EcsRecord) -> str:
        event = merge_extra_fields(build_event(record), self._extra_fields.snapshot())
        line = json.dumps(event, ensure_ascii=False, separators=(",", ":"))
        # lone surrogates cannot be UTF-8 encoded; emit them as JSON \u escapes
        return line.encode("utf-8", errors="backslashreplace").decode("utf-8")

    def format(self, record: logging.LogRecord) -> str:
        return self.format_record(EcsRecord.from_log_record(record))

    def write(self, record: EcsRecord, sink) -> None:
        write_line(sink, self.format_record(record))
