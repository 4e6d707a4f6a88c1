"""Configuration from environment variables and an optional YAML file."""

import logging
import os
from dataclasses import dataclass
from typing import Any

import yaml

logger = logging.getLogger(__name__)

VALID_STREAMS = ("stderr", "stdout")


@dataclass(frozen=True)
class Config:
    filter: str = "error"
    stream: str = "stderr"
    extra_fields: dict[str, Any] | None = None


def load_yaml_config(path: str | None) -> dict:
    """Load logger settings from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError as exc:
        logger.warning("Invalid YAML in %s, using defaults: %s", path, exc)
        return {}

    if not isinstance(data, dict):
        logger.warning("Config file %s does not hold a mapping, using defaults", path)
        return {}
    logger.info("Loaded YAML config from %s", path)
    return data


def _parse_stream(value: str) -> str:
    stream = value.strip().lower()
    if stream not in VALID_STREAMS:
        logger.warning("Unknown log stream %r, falling back to stderr", value)
        return "stderr"
    return stream


def load_config() -> Config:
    """Build Config from ECS_LOG* environment variables over the YAML file."""
    yaml_data = load_yaml_config(os.environ.get("ECS_LOG_CONFIG"))

    extra_fields = yaml_data.get("extra_fields")
    if extra_fields is not None and not isinstance(extra_fields, dict):
        logger.warning("Ignoring extra_fields: expected a mapping, got %s",
                       type(extra_fields).__name__)
        extra_fields = None

    return Config(
        filter=os.environ.get("ECS_LOG", str(yaml_data.get("filter", Config.filter))),
        stream=_parse_stream(
            os.environ.get("ECS_LOG_STREAM", str(yaml_data.get("stream", Config.stream)))
        ),
        extra_fields=extra_fields,
    )
