"""Exception types raised by ecs_logger."""


class EcsLoggerError(Exception):
    """Base class for all ecs_logger errors."""


class SerializationUnsupported(EcsLoggerError, ValueError):
    """Raised when an extra-fields payload cannot become a JSON object."""


class InvalidJsonError(SerializationUnsupported):
    def __init__(self, detail: str = ""):
        message = "the data cannot be converted into JSON"
        super().__init__(f"{message}: {detail}" if detail else message)


class NotObjectError(SerializationUnsupported):
    def __init__(self, kind: str = ""):
        message = "the data cannot be converted into a JSON object"
        super().__init__(f"{message} (got {kind})" if kind else message)


class WriteFailed(EcsLoggerError, OSError):
    """Raised when the sink rejects a formatted line."""


class SetLoggerError(EcsLoggerError, RuntimeError):
    """Raised when an ecs_logger handler is already installed."""


class FilterParseError(EcsLoggerError, ValueError):
    """Raised for an unknown level in a filter directive."""
