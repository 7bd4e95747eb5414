"""Telemetry: logging configuration."""

from vdrive.shared.telemetry.logging import setup_logging

__all__ = ["setup_logging"]
