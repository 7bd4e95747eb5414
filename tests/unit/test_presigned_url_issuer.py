"""Tests for PresignedURLIssuer (upload validation, dedupe, downloads)."""

from urllib.parse import parse_qs, urlparse

import pytest

from vdrive.application.services.presigned_url_issuer import PresignedURLIssuer
from vdrive.domain.exceptions import (
    NotFoundException,
    QuotaExceededException,
    UpstreamStoreError,
    ValidationException,
)

T = "u1"
MAX_SIZE = 10 * 1024 * 1024


@pytest.fixture
def issuer(store) -> PresignedURLIssuer:
    return PresignedURLIssuer(store, max_upload_size=MAX_SIZE)


def _expires(url: str) -> int:
    return int(parse_qs(urlparse(url).query)["X-Amz-Expires"][0])


async def test_upload_url_for_report_under_docs(issuer, store) -> None:
    upload = await issuer.get_upload_presigned_url(T, "report.pdf", "application/pdf", 2048, "Docs")
    assert upload.key == "u1/Docs/report.pdf"
    assert 0 < _expires(upload.url) <= 900
    assert upload.expires_in == 900
    assert store.keys() == []


async def test_existing_name_gets_counter_suffix(issuer, put_file) -> None:
    await put_file("u1/Docs/report.pdf")
    first = await issuer.get_upload_presigned_url(T, "report.pdf", "application/pdf", 10, "Docs")
    assert first.key == "u1/Docs/report(1).pdf"

    await put_file("u1/Docs/report(1).pdf")
    second = await issuer.get_upload_presigned_url(T, "report.pdf", "application/pdf", 10, "Docs")
    assert second.key == "u1/Docs/report(2).pdf"


async def test_counter_without_extension(issuer, put_file) -> None:
    await put_file("u1/Makefile")
    upload = await issuer.get_upload_presigned_url(T, "Makefile", "text/plain", 1)
    assert upload.key == "u1/Makefile(1)"


async def test_dedupe_disabled_overwrites(store, put_file) -> None:
    issuer = PresignedURLIssuer(store, max_upload_size=MAX_SIZE, dedupe_upload_names=False)
    await put_file("u1/report.pdf")
    upload = await issuer.get_upload_presigned_url(T, "report.pdf", "application/pdf", 10)
    assert upload.key == "u1/report.pdf"
    assert store.count("head_object") == 0


@pytest.mark.parametrize("size", [0, -1, True, 1.5, "10"])
async def test_invalid_size(issuer, size) -> None:
    with pytest.raises(ValidationException) as exc_info:
        await issuer.get_upload_presigned_url(T, "a.txt", "text/plain", size)
    assert exc_info.value.details == {"field": "file_size"}


async def test_size_limit(issuer) -> None:
    await issuer.get_upload_presigned_url(T, "a.bin", "application/octet-stream", MAX_SIZE)
    with pytest.raises(QuotaExceededException):
        await issuer.get_upload_presigned_url(T, "a.bin", "application/octet-stream", MAX_SIZE + 1)


@pytest.mark.parametrize(
    "name,content_type,dest",
    [("", "text/plain", ""), ("a/b.txt", "text/plain", ""), ("a.txt", "  ", ""), ("a.txt", "text/plain", "x/../y")],
)
async def test_invalid_request(issuer, name, content_type, dest) -> None:
    with pytest.raises(ValidationException):
        await issuer.get_upload_presigned_url(T, name, content_type, 1, dest)


async def test_probe_failure_is_upstream(issuer, store) -> None:
    store.fail("head_object", "u1/a.txt")
    with pytest.raises(UpstreamStoreError):
        await issuer.get_upload_presigned_url(T, "a.txt", "text/plain", 1)


async def test_download_missing_file(issuer) -> None:
    with pytest.raises(NotFoundException) as exc_info:
        await issuer.get_download_url(T, "missing/file.png")
    assert exc_info.value.details["path"] == "missing/file.png"


async def test_download_url_is_attachment(issuer, put_file) -> None:
    await put_file("u1/Docs/report.pdf", b"%PDF")
    link = await issuer.get_download_url(T, "/Docs/report.pdf")
    query = parse_qs(urlparse(link.url).query)
    assert link.key == "u1/Docs/report.pdf"
    assert link.expires_in == 3600
    assert query["X-Amz-Expires"] == ["3600"]
    assert query["response-content-disposition"] == ['attachment; filename="report.pdf"']


async def test_download_with_known_stat_skips_head(issuer, store, put_file) -> None:
    await put_file("u1/a.txt")
    stat = await store.head_object("u1/a.txt")
    calls = store.count("head_object")
    await issuer.get_download_url(T, "a.txt", stat=stat)
    assert store.count("head_object") == calls
