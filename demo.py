#!/usr/bin/env python3
"""One-shot demo: installs the ECS handler and logs a few lines to stderr."""

import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import ecs_logger

logger = logging.getLogger("demo")


def main():
    ecs_logger.init()

    logger.debug("this is a debug %s, which is NOT printed by default", "message")
    logger.error("this is printed by default")

    ecs_logger.set_extra_fields({"service": {"name": "demo"}, "labels": {"env": "local"}})
    logger.error("this line carries the extra fields")
    ecs_logger.clear_extra_fields()

    try:
        1 / 0
    except ZeroDivisionError:
        logger.exception("division failed")


if __name__ == "__main__":
    main()
