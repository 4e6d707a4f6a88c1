"""A stdlib logging formatter emitting Elastic Common Schema (ECS) JSON lines.

https://www.elastic.co/guide/en/ecs-logging/overview/current/intro.html
"""

from ecs_logger.ecs import ECS_VERSION, EcsRecord, Level
from ecs_logger.errors import (
    EcsLoggerError,
    FilterParseError,
    InvalidJsonError,
    NotObjectError,
    SerializationUnsupported,
    SetLoggerError,
    WriteFailed,
)
from ecs_logger.extra_fields import ExtraFieldsStore, clear_extra_fields, set_extra_fields
from ecs_logger.formatter import EcsFormatter
from ecs_logger.logger import Builder, EcsHandler, EnvFilter, init, try_init

__version__ = "0.1.0"

__all__ = [
    "Builder",
    "ECS_VERSION",
    "EcsFormatter",
    "EcsHandler",
    "EcsLoggerError",
    "EcsRecord",
    "EnvFilter",
    "ExtraFieldsStore",
    "FilterParseError",
    "InvalidJsonError",
    "Level",
    "NotObjectError",
    "SerializationUnsupported",
    "SetLoggerError",
    "WriteFailed",
    "clear_extra_fields",
    "init",
    "set_extra_fields",
    "try_init",
]
