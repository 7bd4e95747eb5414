"""Shared utility functions."""

from vdrive.shared.utils.datetime import from_iso, to_iso, utc_now

__all__ = ["from_iso", "to_iso", "utc_now"]
