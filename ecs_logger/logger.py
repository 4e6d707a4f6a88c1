"""Wire EcsFormatter into the stdlib logging tree.

Filtering uses env_logger-style directives, e.g. ``"warn,app.db=trace"``:
a bare level sets the default, ``target=level`` overrides it for a logger
and its dotted children, and a bare target enables everything below it.
Without a bare level, loggers no directive names are off.
"""

import logging
import sys
import threading

from ecs_logger.config import Config, load_config
from ecs_logger.ecs import TRACE_LEVEL_NUM, Level
from ecs_logger.errors import FilterParseError, SetLoggerError
from ecs_logger.extra_fields import ExtraFieldsStore, set_extra_fields, to_json_object
from ecs_logger.formatter import EcsFormatter, write_line

logger = logging.getLogger(__name__)

logging.addLevelName(TRACE_LEVEL_NUM, "TRACE")

_OFF = "off"
_LEVEL_NAMES = {"error", "warn", "warning", "info", "debug", "trace", _OFF}


def _parse_level(text: str) -> Level | None:
    """Parse a directive level; None means the target is switched off.

    Raises:
        FilterParseError: For an unknown level name.
    """
    value = text.strip().lower()
    if value == _OFF:
        return None
    try:
        return Level.parse(value)
    except ValueError:
        raise FilterParseError(f"invalid level in filter directive: {text!r}") from None


def parse_filter(spec: str, strict: bool = False) -> tuple[Level | None, dict[str, Level | None]]:
    """Split a filter spec into (default level, {target: level}).

    Targets not named by any directive are off unless a bare level is
    given. Directives with an unknown level are logged and skipped, or
    raise FilterParseError when ``strict`` is set.
    """
    default: Level | None = None
    directives: dict[str, Level | None] = {}
    for raw in spec.split(","):
        part = raw.strip()
        if not part:
            continue
        if "=" in part:
            target, _, level_text = part.partition("=")
            target = target.strip()
            if not level_text.strip():
                directives[target] = Level.TRACE
                continue
            try:
                directives[target] = _parse_level(level_text)
            except FilterParseError:
                if strict:
                    raise
                logger.warning("Skipping filter directive %r: unknown level", part)
        elif part.lower() in _LEVEL_NAMES:
            default = _parse_level(part)
        else:
            directives[part] = Level.TRACE
    return default, directives


class EnvFilter(logging.Filter):
    def __init__(self, spec: str = "error", strict: bool = False):
        super().__init__()
        self.spec = spec
        self._default, self._directives = parse_filter(spec, strict=strict)

    def threshold(self, target: str) -> Level | None:
        """Most verbose level allowed for ``target``; None if it is off."""
        best_len = -1
        level = self._default
        for name, directive_level in self._directives.items():
            if target == name or target.startswith(name + "."):
                if len(name) > best_len:
                    best_len = len(name)
                    level = directive_level
        return level

    def enabled(self, level: Level, target: str) -> bool:
        threshold = self.threshold(target)
        return threshold is not None and level <= threshold

    def max_level(self) -> Level | None:
        levels = [lvl for lvl in (self._default, *self._directives.values()) if lvl is not None]
        return max(levels) if levels else None

    def filter(self, record: logging.LogRecord) -> bool:
        return self.enabled(Level.from_levelno(record.levelno), record.name)


_install_lock = threading.Lock()
_installed: "EcsHandler | None" = None


class EcsHandler(logging.Handler):
    """Handler writing one ECS JSON line per record to ``stream``.

    ``logging.Handler.handle`` holds the handler lock around ``emit``, so
    lines from concurrent threads never interleave on the stream.
    """

    def __init__(self, stream=None, env_filter: EnvFilter | None = None,
                 formatter: EcsFormatter | None = None):
        super().__init__()
        self.stream = stream if stream is not None else sys.stderr
        self._previous_root_level: int | None = None
        self.env_filter = env_filter if env_filter is not None else EnvFilter()
        self.addFilter(self.env_filter)
        self.setFormatter(formatter if formatter is not None else EcsFormatter())

    def emit(self, record: logging.LogRecord) -> None:
        try:
            write_line(self.stream, self.format(record))
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)

    def install(self) -> None:
        """Attach to the root logger.

        Raises:
            SetLoggerError: If an EcsHandler is already installed.
        """
        global _installed
        with _install_lock:
            if _installed is not None:
                raise SetLoggerError("an ecs_logger handler is already installed")
            root = logging.getLogger()
            self._previous_root_level = root.level
            max_level = self.env_filter.max_level()
            root.setLevel(max_level.levelno if max_level is not None else logging.CRITICAL + 1)
            root.addHandler(self)
            _installed = self

    def uninstall(self) -> None:
        global _installed
        with _install_lock:
            if _installed is self:
                root = logging.getLogger()
                root.removeHandler(self)
                if self._previous_root_level is not None:
                    root.setLevel(self._previous_root_level)
                    self._previous_root_level = None
                _installed = None


def installed_handler() -> EcsHandler | None:
    return _installed


class Builder:
    """Fluent construction of an EcsHandler."""

    def __init__(self):
        self._filter = "error"
        self._writer = None
        self._extra_fields: ExtraFieldsStore | None = None

    @classmethod
    def from_config(cls, config: Config) -> "Builder":
        builder = cls().filter(config.filter)
        if config.stream == "stdout":
            return builder.writer_stdout()
        return builder.writer_stderr()

    def filter(self, spec: str) -> "Builder":
        self._filter = spec
        return self

    def writer(self, stream) -> "Builder":
        self._writer = stream
        return self

    def writer_stdout(self) -> "Builder":
        return self.writer(sys.stdout)

    def writer_stderr(self) -> "Builder":
        return self.writer(sys.stderr)

    def extra_fields(self, store: ExtraFieldsStore) -> "Builder":
        self._extra_fields = store
        return self

    def build(self) -> EcsHandler:
        return EcsHandler(
            stream=self._writer,
            env_filter=EnvFilter(self._filter),
            formatter=EcsFormatter(self._extra_fields),
        )


def try_init() -> bool:
    """Install a handler configured from the environment.

    Returns False, changing nothing, if a handler is already installed.
    """
    config = load_config()
    if config.extra_fields:
        to_json_object(config.extra_fields)
    handler = Builder.from_config(config).build()
    try:
        handler.install()
    except SetLoggerError:
        return False

    if config.extra_fields:
        set_extra_fields(config.extra_fields)
    logger.debug("ECS logging installed with filter %r", config.filter)
    return True


def init() -> None:
    if not try_init():
        raise SetLoggerError("ecs_logger.init should not be called after logger initialized")
