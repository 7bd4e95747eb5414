"""Tests for StorageFacade: results, read-through caching and invalidation."""

from unittest.mock import AsyncMock
from urllib.parse import parse_qs, urlparse

from vdrive.application.use_cases.storage_facade import StorageFacade
from vdrive.domain.results import Err, Ok
from vdrive.infrastructure.exceptions import ObjectStoreError
from vdrive.infrastructure.cache import keys as cache_keys
from vdrive.infrastructure.external.storage.retrying import RetryingObjectStore

T = "u1"


async def test_folder_scenario(facade, store) -> None:
    created = await facade.create_folder(T, "Photos", "")
    assert isinstance(created, Ok)
    assert store.keys() == ["u1/Photos/"]

    listing = (await facade.list_folder_contents(T, "")).unwrap()
    assert [f.name for f in listing.folders] == ["Photos"]
    assert listing.files == []

    found = (await facade.search_files(T, "pho")).unwrap()
    assert found.total_results == 1
    assert found.files[0].name == "Photos"


async def test_upload_scenario(facade) -> None:
    result = await facade.get_upload_presigned_url(T, "report.pdf", "application/pdf", 2048, "Docs")
    upload = result.unwrap()
    assert upload.key == "u1/Docs/report.pdf"
    expires = int(parse_qs(urlparse(upload.url).query)["X-Amz-Expires"][0])
    assert 0 < expires <= 900


async def test_errors_are_returned_not_raised(facade) -> None:
    result = await facade.get_download_url(T, "missing/file.png")
    assert isinstance(result, Err)
    assert result.error_code == "NOT_FOUND"

    result = await facade.create_folder(T, "bad/name")
    assert result.error_code == "VALIDATION_ERROR"

    result = await facade.list_folder_contents("not a tenant", "")
    assert result.error_code == "VALIDATION_ERROR"

    result = await facade.get_upload_presigned_url(T, "big.iso", "application/octet-stream", 6 * 1024**3)
    assert result.error_code == "QUOTA_EXCEEDED"


async def test_unexpected_exception_becomes_upstream_error(facade, store) -> None:
    store.list_objects = AsyncMock(side_effect=RuntimeError("kaboom"))
    result = await facade.list_folder_contents(T, "")
    assert result.error_code == "UPSTREAM_STORE_ERROR"
    assert "kaboom" not in result.error.message


async def test_listing_is_read_through(facade, store, put_file, cache) -> None:
    await facade.list_folder_contents(T, "")
    calls = store.count("list_objects")
    await put_file("u1/sneaky.txt")

    listing = (await facade.list_folder_contents(T, "/")).unwrap()

    assert listing.files == []
    assert store.count("list_objects") == calls
    assert cache_keys.listing_key(T, "") in cache.keys()


async def test_create_folder_invalidates_parent_listing(facade) -> None:
    await facade.list_folder_contents(T, "")
    await facade.create_folder(T, "Docs", "")
    listing = (await facade.list_folder_contents(T, "")).unwrap()
    assert [f.name for f in listing.folders] == ["Docs"]


async def test_upload_presign_invalidates_destination_listing(facade, cache, put_file) -> None:
    await facade.list_folder_contents(T, "Docs")
    assert cache_keys.listing_key(T, "Docs") in cache.keys()

    upload = (
        await facade.get_upload_presigned_url(T, "report.pdf", "application/pdf", 2048, "Docs")
    ).unwrap()

    assert cache_keys.listing_key(T, "Docs") not in cache.keys()
    await put_file(upload.key, b"%PDF")
    listing = (await facade.list_folder_contents(T, "Docs")).unwrap()
    assert [f.name for f in listing.files] == ["report.pdf"]


async def test_invalidation_is_scoped(facade, cache) -> None:
    await facade.create_folder(T, "Photos", "")
    await facade.create_folder(T, "Photos2", "")
    await facade.list_folder_contents(T, "Photos")
    await facade.list_folder_contents(T, "Photos2")
    await facade.list_folder_contents("u2", "Photos")

    await facade.create_folder(T, "sub", "Photos")

    remaining = cache.keys()
    assert cache_keys.listing_key(T, "Photos") not in remaining
    assert cache_keys.listing_key(T, "Photos2") in remaining
    assert cache_keys.listing_key("u2", "Photos") in remaining


async def test_corrupt_cache_entry_is_a_miss(facade, cache, put_file) -> None:
    await put_file("u1/a.txt")
    await cache.set(cache_keys.listing_key(T, ""), {"kind": "stats", "data": {}})
    listing = (await facade.list_folder_contents(T, "")).unwrap()
    assert [f.name for f in listing.files] == ["a.txt"]


async def test_download_stat_cached_and_invalidated_by_delete(facade, store, put_file) -> None:
    await put_file("u1/Docs/r.pdf")
    assert (await facade.get_download_url(T, "Docs/r.pdf")).ok
    heads = store.count("head_object")
    assert (await facade.get_download_url(T, "Docs/r.pdf")).ok
    assert store.count("head_object") == heads

    deleted = await facade.delete_or_rename_path(T, "Docs/r.pdf")
    assert deleted.unwrap().action == "delete"

    result = await facade.get_download_url(T, "Docs/r.pdf")
    assert result.error_code == "NOT_FOUND"


async def test_rename_invalidates_old_and_new_parent(facade, put_file) -> None:
    await put_file("u1/A/x.txt")
    await facade.list_folder_contents(T, "A")
    await facade.list_folder_contents(T, "B")

    mutation = (await facade.delete_or_rename_path(T, "A/x.txt", "B/x.txt")).unwrap()

    assert mutation.action == "rename"
    assert (await facade.list_folder_contents(T, "A")).unwrap().files == []
    assert [f.name for f in (await facade.list_folder_contents(T, "B")).unwrap().files] == ["x.txt"]


async def test_partial_failure_still_invalidates(facade, store, put_file) -> None:
    await put_file("u1/A/1.txt")
    await put_file("u1/A/2.txt")
    await facade.list_folder_contents(T, "")
    store.fail("delete_object", "u1/A/2.txt")

    result = await facade.delete_or_rename_path(T, "A")

    assert result.error_code == "PARTIAL_FAILURE"
    assert len(result.error.failed) == 1
    listing = (await facade.list_folder_contents(T, "A")).unwrap()
    assert [f.name for f in listing.files] == ["2.txt"]


async def test_search_invalidated_by_mutation(facade, put_file) -> None:
    await put_file("u1/photo.jpg")
    assert (await facade.search_files(T, "photo")).unwrap().total_results == 1
    await facade.create_folder(T, "photos", "")
    assert (await facade.search_files(T, "photo")).unwrap().total_results == 2


async def test_storage_stats_cached_and_invalidated(facade, put_file) -> None:
    await put_file("u1/a.pdf", b"123")
    stats = (await facade.get_storage_stats(T)).unwrap()
    assert stats.total_files == 1
    await put_file("u1/b.pdf", b"1")
    assert (await facade.get_storage_stats(T)).unwrap().total_files == 1
    await facade.create_folder(T, "x", "")
    refreshed = (await facade.get_storage_stats(T)).unwrap()
    assert refreshed.total_files == 2
    assert refreshed.file_type_stats["pdf"] == {"count": 2, "size": 4}


async def test_invalidate_tenant_and_clear(facade, cache) -> None:
    await facade.list_folder_contents(T, "")
    await facade.get_storage_stats(T)
    await facade.list_folder_contents("u2", "")

    removed = (await facade.invalidate_tenant(T)).unwrap()

    assert removed == 2
    assert cache.keys() == [cache_keys.listing_key("u2", "")]
    assert (await facade.clear_cache()).ok
    assert len(cache) == 0


async def test_works_without_cache(store, settings, put_file) -> None:
    facade = StorageFacade(store, cache=None, settings=settings)
    await put_file("u1/a.txt")
    assert [f.name for f in (await facade.list_folder_contents(T, "")).unwrap().files] == ["a.txt"]
    assert (await facade.invalidate_tenant(T)).unwrap() == 0


async def test_transient_failures_are_retried(store, cache, settings, put_file) -> None:
    await put_file("u1/a.txt")
    real_head = store.head_object
    failures = [ObjectStoreError("head_object", "u1/a.txt", "SlowDown", 503, retryable=True)]

    async def flaky_head(key):
        if failures:
            raise failures.pop()
        return await real_head(key)

    store.head_object = flaky_head
    retrying = RetryingObjectStore(store, max_attempts=3, min_wait=0, max_wait=0)
    facade = StorageFacade(retrying, cache=cache, settings=settings)

    result = await facade.get_download_url(T, "a.txt")

    assert result.ok
    assert failures == []
