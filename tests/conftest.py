"""Shared pytest fixtures for the ecs_logger test suite."""

import json
import logging
import os

import jsonschema
import pytest

from ecs_logger.ecs import EcsRecord, Level
from ecs_logger.extra_fields import ExtraFieldsStore, clear_extra_fields
from ecs_logger.formatter import EcsFormatter
from ecs_logger.logger import installed_handler

TEST_TIMESTAMP = "2023-03-31T09:25:06.576136800Z"
TEST_TIMESTAMP_NS = 1680254706_576136800

SCHEMA_PATH = os.path.join(os.path.dirname(__file__), "schemas", "ecs_log_line.json")


@pytest.fixture(autouse=True)
def reset_logging_state():
    """Leave the default store empty and the root logger level as we found it."""
    root = logging.getLogger()
    level = root.level
    clear_extra_fields()
    yield
    handler = installed_handler()
    if handler is not None:
        handler.uninstall()
    clear_extra_fields()
    root.setLevel(level)


@pytest.fixture()
def store() -> ExtraFieldsStore:
    return ExtraFieldsStore()


@pytest.fixture()
def formatter(store) -> EcsFormatter:
    return EcsFormatter(store)


@pytest.fixture()
def sample_record() -> EcsRecord:
    return EcsRecord(
        timestamp_ns=TEST_TIMESTAMP_NS,
        level=Level.ERROR,
        message="this is printed by default",
        target="example.tests",
        module_path="example.tests",
        file_path="tests/example.py",
        line=13,
    )


@pytest.fixture()
def bare_record() -> EcsRecord:
    """A record without any source-location metadata."""
    return EcsRecord(
        timestamp_ns=TEST_TIMESTAMP_NS,
        level=Level.INFO,
        message="no location",
        target="example",
    )


@pytest.fixture(scope="session")
def line_validator():
    with open(SCHEMA_PATH, "r") as f:
        schema = json.load(f)
    return jsonschema.Draft202012Validator(schema)
