"""Virtual path codec: names, tenant-relative paths and object keys.

A virtual path is '/'-separated, tenant-relative, with no leading or
trailing slash and no empty, '.' or '..' segments; the root is ''.
An object key is ``<tenant>/<path>``, with a trailing '/' for folders.
"""

import mimetypes
import re

from vdrive.core.constants import DEFAULT_CONTENT_TYPE, PATH_DELIMITER
from vdrive.core.tenant_validation import is_valid_tenant_id_format
from vdrive.domain.exceptions import ValidationException

MAX_NAME_LENGTH = 255
_FORBIDDEN_CHARS = frozenset('<>:"/\\|?*')
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")


def sanitize_name(name: str, field: str = "name") -> str:
    """Validate a single file or folder name and return it stripped.

    Raises:
        ValidationException: Empty, too long, reserved ('.', '..'), or
            containing a control character or one of < > : " / \\ | ? *.
    """
    if name is None or not name.strip():
        raise ValidationException("Name cannot be empty", field=field)
    cleaned = name.strip()
    if len(cleaned) > MAX_NAME_LENGTH:
        raise ValidationException(
            f"Name must not exceed {MAX_NAME_LENGTH} characters", field=field
        )
    if cleaned in (".", ".."):
        raise ValidationException(f"Reserved name: {cleaned}", field=field)
    if _CONTROL_RE.search(cleaned):
        raise ValidationException(
            "Name must not contain control characters", field=field
        )
    bad = sorted(_FORBIDDEN_CHARS.intersection(cleaned))
    if bad:
        raise ValidationException(
            f"Name contains invalid characters: {' '.join(bad)}", field=field
        )
    return cleaned


def _segments(path: str | None) -> list[str]:
    if not path:
        return []
    return [s for s in path.split(PATH_DELIMITER) if s]


def normalize_path(path: str | None, field: str = "path") -> str:
    """Return the canonical form of a tenant-relative path ('' for root).

    Duplicate, leading and trailing slashes are dropped; every segment
    must be a valid name.
    """
    normalized = []
    for segment in _segments(path):
        if segment.strip() in (".", ".."):
            raise ValidationException(
                "Path must not contain '.' or '..' segments", field=field
            )
        normalized.append(sanitize_name(segment, field=field))
    return PATH_DELIMITER.join(normalized)


def join(parent_path: str | None, name: str | None) -> str:
    """Join two path fragments with exactly one '/' between them.

    Associative for pre-normalized inputs:
    join(join(a, b), c) == join(a, join(b, c)).
    """
    return PATH_DELIMITER.join(_segments(parent_path) + _segments(name))


def validate_tenant(tenant: str) -> str:
    """Return tenant unchanged if it is a valid key prefix."""
    if not is_valid_tenant_id_format(tenant):
        raise ValidationException(
            "Invalid tenant ID format (use alphanumeric, hyphen, underscore; "
            "max 64 characters)",
            field="tenant",
        )
    return tenant


def tenant_root(tenant: str) -> str:
    """Key prefix owning every object of the tenant (ends with '/')."""
    return validate_tenant(tenant) + PATH_DELIMITER


def to_object_key(tenant: str, virtual_path: str | None, is_folder: bool) -> str:
    """Map a virtual path to its object key; folders end with '/'."""
    path = normalize_path(virtual_path)
    if not path:
        if not is_folder:
            raise ValidationException("File path cannot be empty", field="path")
        return tenant_root(tenant)
    key = tenant_root(tenant) + path
    return key + PATH_DELIMITER if is_folder else key


def to_virtual_path(tenant: str, object_key: str) -> str:
    """Inverse of to_object_key: tenant-relative path without trailing '/'.

    Raises:
        ValueError: If the key does not belong to the tenant.
    """
    root = tenant_root(tenant)
    if not object_key.startswith(root):
        raise ValueError(f"Key outside tenant namespace: {object_key!r}")
    return object_key[len(root):].strip(PATH_DELIMITER)


def base_name(path_or_key: str) -> str:
    """Last non-empty segment ('' for the root)."""
    segments = _segments(path_or_key)
    return segments[-1] if segments else ""


def parent_of(path: str) -> str:
    """Parent of a tenant-relative path ('' for top-level entries)."""
    return PATH_DELIMITER.join(_segments(path)[:-1])


def is_same_or_descendant(path: str, ancestor: str) -> bool:
    """True when path equals ancestor or lies inside it."""
    if not ancestor:
        return True
    return path == ancestor or path.startswith(ancestor + PATH_DELIMITER)


def breadcrumbs(path: str) -> list[dict[str, str]]:
    """Navigation trail from the root to path."""
    trail = [{"name": "Home", "path": ""}]
    current = ""
    for segment in _segments(path):
        current = join(current, segment)
        trail.append({"name": segment, "path": current})
    return trail


def guess_mime_type(name: str) -> str:
    """MIME type from the file extension; octet-stream when unknown."""
    mime_type, _ = mimetypes.guess_type(name, strict=False)
    return mime_type or DEFAULT_CONTENT_TYPE


def extension(name: str) -> str:
    """Lowercase extension without the dot, 'unknown' when there is none."""
    stem, dot, ext = name.rpartition(".")
    if not dot or not stem or not ext:
        return "unknown"
    return ext.lower()
