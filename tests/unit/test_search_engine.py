"""Tests for SearchEngine (matching, limits, MIME filter, caching)."""

import pytest

from vdrive.application.services.folder_emulator import FolderEmulator
from vdrive.application.services.search_engine import SearchEngine
from vdrive.domain.exceptions import ValidationException
from vdrive.infrastructure.cache import keys as cache_keys

T = "u1"


@pytest.fixture
def folders(store) -> FolderEmulator:
    return FolderEmulator(store)


@pytest.fixture
def engine(folders) -> SearchEngine:
    return SearchEngine(folders)


async def test_finds_created_folder(engine, folders) -> None:
    await folders.create_folder(T, "Photos", "")
    result = await engine.search_files(T, "pho")
    assert result.total_results == 1
    assert result.files[0].is_folder is True
    assert result.files[0].name == "Photos"
    assert result.files[0].key == "u1/Photos/"
    assert result.query == "pho"


async def test_case_insensitive_files_and_implied_folders(engine, put_file) -> None:
    await put_file("u1/Trips/PHOTO-1.JPG", b"abc")
    await put_file("u1/Trips/photobook/cover.png")
    await put_file("u1/notes.txt")
    result = await engine.search_files(T, "  Photo ")
    assert [(h.name, h.is_folder) for h in result.files] == [
        ("PHOTO-1.JPG", False),
        ("photobook", True),
    ]
    file_hit = result.files[0]
    assert file_hit.path == "Trips/PHOTO-1.JPG"
    assert file_hit.size == 3
    assert file_hit.mime_type == "image/jpeg"


async def test_max_results_bounds_hits(engine, put_file) -> None:
    for i in range(5):
        await put_file(f"u1/photo{i}.jpg")
    result = await engine.search_files(T, "pho", max_results=1)
    assert len(result.files) == 1
    assert result.total_results == 1


async def test_stops_listing_once_enough_hits(store, put_file) -> None:
    for i in range(6):
        await put_file(f"u1/photo{i}.jpg")
    engine = SearchEngine(FolderEmulator(store, page_size=2))
    await engine.search_files(T, "photo", max_results=2)
    assert store.count("list_objects") == 1


async def test_mime_filter_is_prefix_and_excludes_folders(engine, put_file) -> None:
    await put_file("u1/pics/")
    await put_file("u1/pics/a.png")
    await put_file("u1/pics.pdf")
    result = await engine.search_files(T, "pics", mime_type_filter="application/")
    assert [h.name for h in result.files] == ["pics.pdf"]
    result = await engine.search_files(T, "a.p", mime_type_filter="IMAGE/")
    assert [h.name for h in result.files] == ["a.png"]


async def test_results_sorted_by_name(engine, put_file) -> None:
    await put_file("u1/z/report-b.txt")
    await put_file("u1/a/Report-C.txt")
    await put_file("u1/report-a.txt")
    result = await engine.search_files(T, "report")
    assert [h.name for h in result.files] == ["report-a.txt", "report-b.txt", "Report-C.txt"]


async def test_tenant_isolation(engine, put_file) -> None:
    await put_file("u2/photo.jpg")
    await put_file("u10/photo.jpg")
    result = await engine.search_files(T, "photo")
    assert result.files == []


@pytest.mark.parametrize("query", ["", " ", "a", " b "])
async def test_short_query_rejected(engine, query) -> None:
    with pytest.raises(ValidationException):
        await engine.search_files(T, query)


@pytest.mark.parametrize("max_results", [0, -1, 1001, True])
async def test_max_results_out_of_range(engine, max_results) -> None:
    with pytest.raises(ValidationException):
        await engine.search_files(T, "photo", max_results=max_results)


async def test_results_are_cached(folders, cache, put_file) -> None:
    engine = SearchEngine(folders, cache=cache, cache_ttl=60)
    await put_file("u1/photo.jpg")
    first = await engine.search_files(T, "photo")
    await put_file("u1/photo2.jpg")
    second = await engine.search_files(T, "PHOTO")
    assert second == first
    assert cache_keys.search_key(T, "photo", None, 100) in cache.keys()

    await cache.invalidate(cache_keys.search_pattern(T))
    third = await engine.search_files(T, "photo")
    assert third.total_results == 2
