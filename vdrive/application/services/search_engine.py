"""Name search across a tenant's objects."""

from __future__ import annotations

import logging
from contextlib import aclosing

from vdrive.application.dtos.storage import SearchHit, SearchResult
from vdrive.application.services.folder_emulator import FolderEmulator
from vdrive.core.constants import PATH_DELIMITER
from vdrive.domain import paths
from vdrive.domain.exceptions import ValidationException
from vdrive.infrastructure.cache import keys as cache_keys
from vdrive.infrastructure.cache.cache_protocol import CacheProtocol
from vdrive.infrastructure.cache.payloads import unwrap, wrap
from vdrive.infrastructure.external.storage.protocol import ObjectSummary

logger = logging.getLogger(__name__)

SEARCH_KIND = "search"


class SearchEngine:
    """Case-insensitive substring search over file and folder names.

    Enumerates every key under the tenant prefix (paginated through the
    FolderEmulator) and stops once max_results hits are collected. Folders
    implied by deeper keys match like explicit markers. Results are cached
    when a cache is given.
    """

    def __init__(
        self,
        folders: FolderEmulator,
        cache: CacheProtocol | None = None,
        cache_ttl: float = 60,
        default_max_results: int = 100,
        max_results_limit: int = 1000,
        min_query_length: int = 2,
    ) -> None:
        self.folders = folders
        self.cache = cache
        self.cache_ttl = cache_ttl
        self.default_max_results = default_max_results
        self.max_results_limit = max_results_limit
        self.min_query_length = min_query_length

    def _validate(
        self, query: str, max_results: int | None, mime_type_filter: str | None
    ) -> tuple[str, int, str | None]:
        needle = (query or "").strip()
        if len(needle) < self.min_query_length:
            raise ValidationException(
                f"Search query must be at least {self.min_query_length} characters",
                field="query",
            )
        limit = self.default_max_results if max_results is None else max_results
        if (
            isinstance(limit, bool)
            or not isinstance(limit, int)
            or not 1 <= limit <= self.max_results_limit
        ):
            raise ValidationException(
                f"max_results must be between 1 and {self.max_results_limit}",
                field="max_results",
            )
        mime = (mime_type_filter or "").strip().lower() or None
        return needle, limit, mime

    async def search_files(
        self,
        tenant: str,
        query: str,
        max_results: int | None = None,
        mime_type_filter: str | None = None,
    ) -> SearchResult:
        """Return up to max_results name matches sorted by name.

        Raises:
            ValidationException: Query too short or max_results out of range.
            UpstreamStoreError: Listing failed or exceeded the page cap.
        """
        needle, limit, mime = self._validate(query, max_results, mime_type_filter)
        cache_key = cache_keys.search_key(tenant, needle, mime, limit)
        if self.cache and self.cache.is_available():
            cached = unwrap(
                await self.cache.get(cache_key), SEARCH_KIND, SearchResult.from_dict
            )
            if cached is not None:
                return cached

        result = await self._search(tenant, needle, limit, mime)

        if self.cache and self.cache.is_available():
            await self.cache.set(
                cache_key, wrap(SEARCH_KIND, result.to_dict()), ttl=self.cache_ttl
            )
        return result

    async def _search(
        self, tenant: str, needle: str, limit: int, mime: str | None
    ) -> SearchResult:
        root = paths.tenant_root(tenant)
        folded = needle.casefold()
        hits: list[SearchHit] = []
        seen_folders: set[str] = set()

        def consider_folder(path: str) -> None:
            if path in seen_folders:
                return
            seen_folders.add(path)
            name = paths.base_name(path)
            if mime is None and folded in name.casefold():
                hits.append(
                    SearchHit(
                        key=root + path + PATH_DELIMITER,
                        name=name,
                        path=path,
                        is_folder=True,
                    )
                )

        def consider(summary: ObjectSummary) -> None:
            relative = summary.key[len(root):]
            segments = [s for s in relative.split(PATH_DELIMITER) if s]
            if not segments:
                return
            is_marker = relative.endswith(PATH_DELIMITER)
            folder_segments = segments if is_marker else segments[:-1]
            for depth in range(1, len(folder_segments) + 1):
                consider_folder(PATH_DELIMITER.join(folder_segments[:depth]))
            if is_marker:
                return
            name = segments[-1]
            if folded not in name.casefold():
                return
            mime_type = paths.guess_mime_type(name)
            if mime is not None and not mime_type.lower().startswith(mime):
                return
            hits.append(
                SearchHit(
                    key=summary.key,
                    name=name,
                    path=PATH_DELIMITER.join(segments),
                    is_folder=False,
                    size=summary.size,
                    mime_type=mime_type,
                    last_modified=summary.last_modified,
                )
            )

        async with aclosing(self.folders.iter_keys(root)) as pages:
            async for summaries, _ in pages:
                for summary in summaries:
                    consider(summary)
                    if len(hits) >= limit:
                        break
                if len(hits) >= limit:
                    break

        hits = sorted(hits[:limit], key=lambda h: (h.name.casefold(), h.path))
        logger.debug("Search %r in %s: %s hits", needle, tenant, len(hits))
        return SearchResult(files=hits, total_results=len(hits), query=needle)
