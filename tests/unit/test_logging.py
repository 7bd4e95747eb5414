"""Tests for setup_logging."""

import logging

from vdrive.shared.telemetry import setup_logging


def test_explicit_level_and_quiet_sdk_loggers() -> None:
    root = logging.getLogger()
    previous = root.level
    try:
        setup_logging(logging.DEBUG)
        assert root.level == logging.DEBUG
        assert logging.getLogger("botocore").level == logging.WARNING
        setup_logging(logging.INFO)
        assert root.level == logging.INFO
    finally:
        root.setLevel(previous)
