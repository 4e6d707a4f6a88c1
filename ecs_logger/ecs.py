"""ECS log-line schema: field names, levels, and the record descriptor.

Events follow the ECS logging spec:
https://github.com/elastic/ecs-logging/tree/main/spec
"""

import logging
import os
import traceback
from dataclasses import dataclass
from enum import IntEnum
from functools import lru_cache

from ecs_logger.timestamp import format_rfc3339, seconds_to_ns

ECS_VERSION = "1.12.1"

# ---------------------------------------------------------------------------
# Field names
# ---------------------------------------------------------------------------

FIELD_TIMESTAMP = "@timestamp"
FIELD_LOG_LEVEL = "log.level"
FIELD_MESSAGE = "message"
FIELD_ECS_VERSION = "ecs.version"
FIELD_LOG_ORIGIN = "log.origin"
FIELD_ERROR = "error"

# Host-language sub-object under log.origin
ORIGIN_LANGUAGE_KEY = "python"

RESERVED_FIELDS = (
    FIELD_TIMESTAMP,
    FIELD_LOG_LEVEL,
    FIELD_MESSAGE,
    FIELD_ECS_VERSION,
    FIELD_LOG_ORIGIN,
    FIELD_ERROR,
)

TRACE_LEVEL_NUM = 5


class Level(IntEnum):
    """Log severity, most severe first."""

    ERROR = 1
    WARN = 2
    INFO = 3
    DEBUG = 4
    TRACE = 5

    @classmethod
    def from_levelno(cls, levelno: int) -> "Level":
        """Map a stdlib ``logging`` level number onto the five ECS levels."""
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARN
        if levelno >= logging.INFO:
            return cls.INFO
        if levelno >= logging.DEBUG:
            return cls.DEBUG
        return cls.TRACE

    @classmethod
    def parse(cls, text: str) -> "Level":
        name = text.strip().upper()
        if name == "WARNING":
            name = "WARN"
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"unknown log level: {text!r}") from None

    @property
    def levelno(self) -> int:
        return _STDLIB_LEVELNO[self]

    def as_str(self) -> str:
        return self.name

    def __str__(self) -> str:
        return self.name


_STDLIB_LEVELNO = {
    Level.ERROR: logging.ERROR,
    Level.WARN: logging.WARNING,
    Level.INFO: logging.INFO,
    Level.DEBUG: logging.DEBUG,
    Level.TRACE: TRACE_LEVEL_NUM,
}


@dataclass(frozen=True)
class ErrorDetails:
    type: str
    message: str
    stack_trace: str

    @classmethod
    def from_exc_info(cls, exc_info) -> "ErrorDetails":
        exc_type, exc_value, exc_tb = exc_info
        module = exc_type.__module__
        name = exc_type.__qualname__
        return cls(
            type=name if module == "builtins" else f"{module}.{name}",
            message=str(exc_value),
            stack_trace="".join(
                traceback.format_exception(exc_type, exc_value, exc_tb)
            ).rstrip("\n"),
        )


@lru_cache(maxsize=1024)
def module_path_from_file(path: str) -> str | None:
    """Dotted module path of a source file, e.g. ``pkg.sub.mod``.

    Walks up through directories holding an ``__init__.py``. A file outside
    any package yields its bare stem; ``__init__.py`` names its package.
    """
    directory, file_name = os.path.split(os.path.abspath(path))
    stem, ext = os.path.splitext(file_name)
    if not stem or ext not in (".py", ".pyc", ".pyw"):
        return stem or None

    parts = [] if stem == "__init__" else [stem]
    while os.path.isfile(os.path.join(directory, "__init__.py")):
        directory, package = os.path.split(directory)
        if not package:
            break
        parts.insert(0, package)
    return ".".join(parts) or None


@dataclass(frozen=True)
class EcsRecord:
    """Everything the formatter needs to know about one log call."""

    timestamp_ns: int
    level: Level
    message: str
    target: str
    module_path: str | None = None
    file_path: str | None = None
    line: int | None = None
    error: ErrorDetails | None = None

    @classmethod
    def from_log_record(cls, record: logging.LogRecord) -> "EcsRecord":
        error = None
        if record.exc_info and record.exc_info[0] is not None:
            error = ErrorDetails.from_exc_info(record.exc_info)

        return cls(
            timestamp_ns=seconds_to_ns(record.created),
            level=Level.from_levelno(record.levelno),
            message=record.getMessage(),
            target=record.name,
            module_path=module_path_from_file(record.pathname) if record.pathname else None,
            file_path=record.pathname or None,
            line=record.lineno or None,
            error=error,
        )

    @property
    def file_name(self) -> str | None:
        if not self.file_path:
            return None
        return os.path.basename(self.file_path) or None


def build_event(record: EcsRecord) -> dict:
    """Build the fixed ECS fields for ``record``, in emission order."""
    origin_file: dict = {}
    if record.line is not None:
        origin_file["line"] = record.line
    file_name = record.file_name
    if file_name is not None:
        origin_file["name"] = file_name

    origin_lang: dict = {"target": record.target}
    if record.module_path is not None:
        origin_lang["module_path"] = record.module_path
    if record.file_path is not None:
        origin_lang["file_path"] = record.file_path

    event = {
        FIELD_TIMESTAMP: format_rfc3339(record.timestamp_ns),
        FIELD_LOG_LEVEL: record.level.as_str(),
        FIELD_MESSAGE: record.message,
        FIELD_ECS_VERSION: ECS_VERSION,
        FIELD_LOG_ORIGIN: {
            "file": origin_file,
            ORIGIN_LANGUAGE_KEY: origin_lang,
        },
    }

    if record.error is not None:
        event[FIELD_ERROR] = {
            "type": record.error.type,
            "message": record.error.message,
            "stack_trace": record.error.stack_trace,
        }

    return event
