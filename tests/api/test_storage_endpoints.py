"""HTTP tests for /api/v1/storage against the in-memory store."""

from urllib.parse import parse_qs, urlparse

import pytest
from httpx import AsyncClient

BASE = "/api/v1/storage"


def _assert_error_body(body: dict, error: str) -> None:
    assert body["error"] == error
    assert isinstance(body["message"], str)
    assert isinstance(body["details"], dict)


async def test_missing_tenant_header_returns_400(client: AsyncClient) -> None:
    response = await client.get(f"{BASE}/folders")
    assert response.status_code == 400
    assert "X-Tenant-ID" in response.json()["message"]


@pytest.mark.parametrize("tenant", ["x" * 65, "tenant/../../etc", "a:b"])
async def test_invalid_tenant_header_returns_400(client: AsyncClient, tenant: str) -> None:
    response = await client.get(f"{BASE}/folders", headers={"X-Tenant-ID": tenant})
    assert response.status_code == 400
    assert "invalid" in response.json()["message"].lower()


async def test_create_then_list_folder(client: AsyncClient, tenant_headers: dict[str, str]) -> None:
    created = await client.post(
        f"{BASE}/folders", json={"name": "Photos", "parent_path": ""}, headers=tenant_headers
    )
    assert created.status_code == 201
    assert created.json() == {"key": "u1/Photos/", "name": "Photos", "path": "Photos"}

    listing = await client.get(f"{BASE}/folders", params={"path": ""}, headers=tenant_headers)
    assert listing.status_code == 200
    data = listing.json()
    assert [f["name"] for f in data["folders"]] == ["Photos"]
    assert data["files"] == []
    assert data["breadcrumbs"] == [{"name": "Home", "path": ""}]


async def test_create_folder_invalid_name(client: AsyncClient, tenant_headers: dict[str, str]) -> None:
    response = await client.post(f"{BASE}/folders", json={"name": "a/b"}, headers=tenant_headers)
    assert response.status_code == 400
    _assert_error_body(response.json(), "VALIDATION_ERROR")


async def test_list_files_with_metadata(
    client: AsyncClient, tenant_headers: dict[str, str], put_file
) -> None:
    await put_file("u1/Docs/report.pdf", b"%PDF-1")
    response = await client.get(f"{BASE}/folders", params={"path": "Docs"}, headers=tenant_headers)
    files = response.json()["files"]
    assert files[0]["name"] == "report.pdf"
    assert files[0]["size"] == 6
    assert files[0]["mime_type"] == "application/pdf"
    assert files[0]["last_modified"] is not None
    assert response.json()["total_size"] == 6


async def test_presign_upload(client: AsyncClient, tenant_headers: dict[str, str]) -> None:
    response = await client.post(
        f"{BASE}/uploads/presign",
        json={
            "file_name": "report.pdf",
            "content_type": "application/pdf",
            "file_size": 2048,
            "dest_path": "Docs",
        },
        headers=tenant_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["key"] == "u1/Docs/report.pdf"
    assert data["expires_in"] == 900
    assert parse_qs(urlparse(data["url"]).query)["X-Amz-Expires"] == ["900"]


async def test_presign_upload_too_large_returns_413(
    client: AsyncClient, tenant_headers: dict[str, str]
) -> None:
    response = await client.post(
        f"{BASE}/uploads/presign",
        json={"file_name": "big.iso", "content_type": "application/octet-stream", "file_size": 6 * 1024**3},
        headers=tenant_headers,
    )
    assert response.status_code == 413
    body = response.json()
    _assert_error_body(body, "QUOTA_EXCEEDED")
    assert body["details"]["limit"] == 5 * 1024**3


async def test_presign_upload_body_validation_returns_422(
    client: AsyncClient, tenant_headers: dict[str, str]
) -> None:
    response = await client.post(
        f"{BASE}/uploads/presign", json={"file_name": "a.txt"}, headers=tenant_headers
    )
    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"


async def test_download_missing_returns_404(client: AsyncClient, tenant_headers: dict[str, str]) -> None:
    response = await client.get(
        f"{BASE}/downloads", params={"path": "missing/file.png"}, headers=tenant_headers
    )
    assert response.status_code == 404
    body = response.json()
    _assert_error_body(body, "NOT_FOUND")
    assert body["details"]["path"] == "missing/file.png"


async def test_download_existing(client: AsyncClient, tenant_headers: dict[str, str], put_file) -> None:
    await put_file("u1/Docs/report.pdf")
    response = await client.get(
        f"{BASE}/downloads", params={"path": "Docs/report.pdf"}, headers=tenant_headers
    )
    assert response.status_code == 200
    assert response.json()["key"] == "u1/Docs/report.pdf"
    assert response.json()["expires_in"] == 3600


async def test_search(client: AsyncClient, tenant_headers: dict[str, str], put_file) -> None:
    await put_file("u1/Trips/photo-1.jpg")
    await put_file("u1/photo.pdf")
    await put_file("u2/photo-2.jpg")
    response = await client.get(
        f"{BASE}/search", params={"q": "PHOTO", "mime_type": "image/"}, headers=tenant_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["query"] == "PHOTO"
    assert data["total_results"] == 1
    assert data["files"][0]["path"] == "Trips/photo-1.jpg"
    assert data["files"][0]["is_folder"] is False


async def test_search_short_query_returns_400(client: AsyncClient, tenant_headers: dict[str, str]) -> None:
    response = await client.get(f"{BASE}/search", params={"q": "a"}, headers=tenant_headers)
    assert response.status_code == 400
    _assert_error_body(response.json(), "VALIDATION_ERROR")


async def test_delete_folder(client: AsyncClient, tenant_headers: dict[str, str], put_file, store) -> None:
    await put_file("u1/A/")
    await put_file("u1/A/x.txt")
    response = await client.delete(f"{BASE}/paths", params={"path": "A"}, headers=tenant_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["action"] == "delete"
    assert data["is_folder"] is True
    assert len(data["outcomes"]) == 2
    assert store.keys() == []


async def test_delete_missing_returns_404(client: AsyncClient, tenant_headers: dict[str, str]) -> None:
    response = await client.delete(f"{BASE}/paths", params={"path": "ghost"}, headers=tenant_headers)
    assert response.status_code == 404


async def test_partial_failure_returns_409(
    client: AsyncClient, tenant_headers: dict[str, str], put_file, store
) -> None:
    await put_file("u1/A/1.txt")
    await put_file("u1/A/2.txt")
    store.fail("delete_object", "u1/A/1.txt")
    response = await client.delete(f"{BASE}/paths", params={"path": "A"}, headers=tenant_headers)
    assert response.status_code == 409
    body = response.json()
    _assert_error_body(body, "PARTIAL_FAILURE")
    assert [o["source_key"] for o in body["details"]["failed"]] == ["u1/A/1.txt"]
    assert [o["source_key"] for o in body["details"]["succeeded"]] == ["u1/A/2.txt"]
    assert body["details"]["failed"][0]["error"] == "store error (HTTP 403)"
    assert "injected" not in response.text


async def test_upstream_failure_returns_502_without_internals(
    client: AsyncClient, tenant_headers: dict[str, str], store
) -> None:
    store.fail("list_objects", "u1/", retryable=True)
    response = await client.get(f"{BASE}/folders", headers=tenant_headers)
    assert response.status_code == 502
    body = response.json()
    _assert_error_body(body, "UPSTREAM_STORE_ERROR")
    assert "injected" not in response.text


async def test_rename(client: AsyncClient, tenant_headers: dict[str, str], put_file, store) -> None:
    await put_file("u1/Docs/old.txt")
    response = await client.patch(
        f"{BASE}/paths", json={"path": "Docs/old.txt", "new_path": "Docs/new.txt"}, headers=tenant_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["action"] == "rename"
    assert data["new_path"] == "Docs/new.txt"
    assert data["outcomes"][0]["dest_key"] == "u1/Docs/new.txt"
    assert store.keys() == ["u1/Docs/new.txt"]


async def test_stats(client: AsyncClient, tenant_headers: dict[str, str], put_file) -> None:
    await put_file("u1/a.pdf", b"123")
    await put_file("u1/Photos/b.jpg", b"12")
    response = await client.get(f"{BASE}/stats", headers=tenant_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total_files"] == 2
    assert data["total_folders"] == 1
    assert data["total_size"] == 5
    assert data["file_type_stats"]["pdf"] == {"count": 1, "size": 3}
