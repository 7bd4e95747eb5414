"""Cache key builders. Single place for key format (DRY).

Keys are ``<kind>:<object key>[:<extra>]``. Object keys never contain
CACHE_KEY_SEP (names reject ':'), so ``":" + folder key`` is a substring
of exactly the entries at or below that folder for that tenant.
Free-text components (search query, MIME filter) are percent-encoded.
"""

from urllib.parse import quote

from vdrive.core.constants import (
    CACHE_KEY_SEP,
    CACHE_PREFIX_LISTING,
    CACHE_PREFIX_SEARCH,
    CACHE_PREFIX_STAT,
    CACHE_PREFIX_STATS,
)
from vdrive.domain import paths


def _validate_key_component(value: str, name: str) -> None:
    """Raise ValueError if value contains the cache key separator.

    Args:
        value: String component used in a cache key.
        name: Name of the component (for error message).

    Raises:
        ValueError: If value contains CACHE_KEY_SEP.
    """
    if CACHE_KEY_SEP in value:
        raise ValueError(
            f"Cache key component {name!r} must not contain separator {CACHE_KEY_SEP!r}"
        )


def _encode(value: str | None) -> str:
    return quote(value or "", safe="")


def listing_key(tenant: str, path: str) -> str:
    """Cache key for the listing of a folder."""
    folder_key = paths.to_object_key(tenant, path, is_folder=True)
    _validate_key_component(folder_key, "folder_key")
    return f"{CACHE_PREFIX_LISTING}{CACHE_KEY_SEP}{folder_key}"


def stat_key(tenant: str, path: str) -> str:
    """Cache key for the existence/head result of a file."""
    object_key = paths.to_object_key(tenant, path, is_folder=False)
    _validate_key_component(object_key, "object_key")
    return f"{CACHE_PREFIX_STAT}{CACHE_KEY_SEP}{object_key}"


def search_key(
    tenant: str, query: str, mime_type_filter: str | None, max_results: int
) -> str:
    """Cache key for a search (tenant + normalized query + filter + limit)."""
    root = paths.tenant_root(tenant)
    return (
        f"{CACHE_PREFIX_SEARCH}{CACHE_KEY_SEP}{root}{CACHE_KEY_SEP}"
        f"{_encode(query.lower())}{CACHE_KEY_SEP}{_encode(mime_type_filter)}"
        f"{CACHE_KEY_SEP}{max_results}"
    )


def stats_key(tenant: str) -> str:
    """Cache key for the tenant's storage statistics."""
    return f"{CACHE_PREFIX_STATS}{CACHE_KEY_SEP}{paths.tenant_root(tenant)}"


def path_pattern(tenant: str, path: str) -> str:
    """Invalidation substring for a folder and everything below it.

    The root path yields the pattern for every entry of the tenant.
    """
    return CACHE_KEY_SEP + paths.to_object_key(tenant, path, is_folder=True)


def search_pattern(tenant: str) -> str:
    """Invalidation substring for every cached search of the tenant."""
    return f"{CACHE_PREFIX_SEARCH}{CACHE_KEY_SEP}{paths.tenant_root(tenant)}{CACHE_KEY_SEP}"
