"""Kind-tagged cache payloads.

Entries are stored as ``{"kind": ..., "data": ...}``. A payload with the
wrong kind or one that fails to decode is reported as a miss.
"""

import logging
from collections.abc import Callable
from typing import Any, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


def wrap(kind: str, data: Any) -> dict[str, Any]:
    return {"kind": kind, "data": data}


def unwrap(payload: Any, kind: str, decode: Callable[[Any], T]) -> T | None:
    """Decode a cached payload of the expected kind, or None (miss)."""
    if not isinstance(payload, dict) or payload.get("kind") != kind:
        if payload is not None:
            logger.warning("Cache payload kind mismatch (expected %s); ignoring", kind)
        return None
    try:
        return decode(payload["data"])
    except (KeyError, TypeError, ValueError):
        logger.warning("Undecodable %s cache payload; ignoring", kind, exc_info=True)
        return None
