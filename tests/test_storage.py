import json

import httpx
import pytest
from fastapi.testclient import TestClient

import main
from core.errors import ConfigurationError, InvalidValue, StorageError
from core.settings import StorageConfig, storage_config
from storage import client as storage_client
from storage import service

from conftest import FakeDatabase

CONFIG = StorageConfig(base_url="https://proj.supabase.co", service_role="service-key", default_bucket="cars")


@pytest.fixture
def storage_env(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://proj.supabase.co/")
    monkeypatch.setenv("SUPABASE_SERVICE_ROLE_KEY", "service-key")


@pytest.fixture
def mock_storage(monkeypatch):
    """
    Route storage client traffic to a handler; returns the captured requests.
    """
    captured = []
    responses = {}

    def handler(request):
        captured.append(request)
        key = (request.method, request.url.path)
        return responses.get(key, httpx.Response(200, json=[]))

    def make_client(config, timeout_s):
        return httpx.AsyncClient(
            base_url=config.base_url,
            headers=storage_client._headers(config),
            timeout=timeout_s,
            transport=httpx.MockTransport(handler),
        )

    monkeypatch.setattr(storage_client, "_client", make_client)
    return captured, responses


def test_storage_config_requires_url_and_key(monkeypatch):
    with pytest.raises(ConfigurationError) as excinfo:
        storage_config()
    assert excinfo.value.message == "SUPABASE_URL is not set"

    monkeypatch.setenv("SUPABASE_URL", "https://proj.supabase.co")
    with pytest.raises(ConfigurationError) as excinfo:
        storage_config()
    assert excinfo.value.message == "SUPABASE_SERVICE_ROLE_KEY is not set"


def test_storage_config_defaults(storage_env):
    config = storage_config()

    assert config.base_url == "https://proj.supabase.co"
    assert config.default_bucket == "cars"


@pytest.mark.parametrize("bucket", ["", "  ", "a/b", "a\\b", "..", "x..y"])
def test_clean_bucket_rejects(bucket):
    with pytest.raises(InvalidValue):
        service.clean_bucket(bucket)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("cars/bmw/m3.jpg", "cars/bmw/m3.jpg"),
        ("/cars//bmw/", "cars/bmw"),
        ("cars\\bmw\\m3.jpg", "cars/bmw/m3.jpg"),
        (" a / b ", "a/b"),
    ],
)
def test_clean_path(raw, expected):
    assert service.clean_path(raw) == expected


@pytest.mark.parametrize("raw", ["", "/", "a/../b", "./a", "a/.."])
def test_clean_path_rejects(raw):
    with pytest.raises(InvalidValue):
        service.clean_path(raw)


def test_optional_path():
    assert service.clean_optional_path("  ") == ""
    assert service.clean_optional_path("/gallery/") == "gallery"


def test_sanitize_filename():
    assert service.sanitize_filename("C:\\Users\\me\\photo.jpg") == "photo.jpg"
    assert service.sanitize_filename("../../etc/passwd") == "passwd"
    assert service.sanitize_filename(".hidden.") == "hidden"
    assert service.sanitize_filename("dir/..") == ""
    assert service.sanitize_filename(None) == ""


def test_fallback_filename():
    name = service.fallback_filename()
    assert name.startswith("upload_") and name.endswith(".bin")


def test_urls_escape_each_segment():
    assert service.object_url(CONFIG.base_url, "cars", "bmw m3/front #1.jpg") == (
        "https://proj.supabase.co/storage/v1/object/cars/bmw%20m3/front%20%231.jpg"
    )
    assert service.public_url("https://proj.supabase.co/", "cars", "a.jpg") == (
        "https://proj.supabase.co/storage/v1/object/public/cars/a.jpg"
    )


def test_flags_and_limits():
    assert service.is_truthy(" ON ")
    assert not service.is_truthy("nope")
    assert service.parse_upsert("")
    assert service.parse_upsert("Yes")
    assert not service.parse_upsert("false")
    assert service.clamp_limit(0) == 1
    assert service.clamp_limit(10_000) == 500
    assert service.normalize_sort_order("DESC") == "desc"
    assert service.normalize_sort_order("sideways") == "asc"


def test_list_options_payload():
    options = service.ListOptions(prefix="bmw", limit=10, offset=20, sort_order="desc", search="m3")

    assert options.payload() == {
        "prefix": "bmw",
        "limit": 10,
        "offset": 20,
        "sortBy": {"column": "name", "order": "desc"},
        "search": "m3",
    }
    assert "search" not in service.ListOptions().payload()


@pytest.mark.asyncio
async def test_list_buckets_sorts_names_and_sends_keys(mock_storage):
    captured, responses = mock_storage
    responses[("GET", "/storage/v1/bucket")] = httpx.Response(
        200, json=[{"name": "media"}, {"name": " "}, {"name": "cars"}, {"id": 3}]
    )

    assert await storage_client.list_buckets(CONFIG) == ["cars", "media"]
    assert captured[0].headers["apikey"] == "service-key"
    assert captured[0].headers["Authorization"] == "Bearer service-key"


@pytest.mark.asyncio
async def test_list_objects_error_carries_details(mock_storage):
    _, responses = mock_storage
    responses[("POST", "/storage/v1/object/list/cars")] = httpx.Response(404, text="Bucket not found")

    with pytest.raises(StorageError) as excinfo:
        await storage_client.list_objects(CONFIG, "cars", service.ListOptions())

    assert excinfo.value.status_code == 502
    assert excinfo.value.details == "list request status 404: Bucket not found"


@pytest.mark.asyncio
async def test_upload_sends_upsert_and_content_type(mock_storage):
    captured, responses = mock_storage
    responses[("POST", "/storage/v1/object/cars/bmw/a.jpg")] = httpx.Response(200, json={"Key": "cars/bmw/a.jpg"})

    reply = await storage_client.upload_object(
        CONFIG, "cars", "bmw/a.jpg", b"jpeg-bytes", content_type="image/jpeg", upsert=False
    )

    assert json.loads(reply) == {"Key": "cars/bmw/a.jpg"}
    assert captured[0].headers["x-upsert"] == "false"
    assert captured[0].headers["Content-Type"] == "image/jpeg"
    assert captured[0].content == b"jpeg-bytes"


def _app_client():
    return TestClient(main.create_app(database=FakeDatabase()))


def test_upload_endpoint(storage_env, mock_storage):
    captured, _ = mock_storage

    with _app_client() as client:
        resp = client.post(
            "/admin/storage/upload",
            files={"file": ("front view.jpg", b"abc", "image/jpeg")},
            data={"folder": "/bmw/", "upsert": ""},
        )

    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["bucket"] == "cars"
    assert data["path"] == "bmw/front view.jpg"
    assert data["size"] == 3
    assert data["upsert"] is True
    assert data["public_url"] == "https://proj.supabase.co/storage/v1/object/public/cars/bmw/front%20view.jpg"
    assert captured[0].headers["x-upsert"] == "true"


def test_upload_endpoint_requires_file(storage_env, mock_storage):
    with _app_client() as client:
        resp = client.post("/admin/storage/upload", data={"bucket": "cars"})

    assert resp.status_code == 400
    assert resp.json()["message"] == "file is required (form-data key: file)"


def test_upload_endpoint_rejects_oversized_file(storage_env, mock_storage, monkeypatch):
    monkeypatch.setattr(service, "MAX_UPLOAD_BYTES", 2)

    with _app_client() as client:
        resp = client.post("/admin/storage/upload", files={"file": ("a.bin", b"abc", "application/octet-stream")})

    assert resp.status_code == 413


def test_list_endpoint_meta(storage_env, mock_storage):
    captured, _ = mock_storage

    with _app_client() as client:
        resp = client.get("/admin/storage/files", params={"prefix": "bmw", "limit": "9999", "sort_order": "desc"})

    assert resp.status_code == 200
    assert resp.json() == {
        "status": "success",
        "data": [],
        "meta": {"bucket": "cars", "prefix": "bmw", "limit": 500, "offset": 0},
    }
    body = json.loads(captured[0].content)
    assert body["sortBy"] == {"column": "name", "order": "desc"}


@pytest.mark.parametrize(
    ("params", "message"),
    [
        ({"limit": "ten"}, "limit must be an integer"),
        ({"offset": "-1"}, "offset must be a non-negative integer"),
        ({"prefix": "../x"}, "invalid path"),
    ],
)
def test_list_endpoint_bad_params(storage_env, mock_storage, params, message):
    with _app_client() as client:
        resp = client.get("/admin/storage/files", params=params)

    assert resp.status_code == 400
    assert resp.json()["message"] == message


def test_list_all_buckets_isolates_failures(storage_env, mock_storage):
    _, responses = mock_storage
    responses[("GET", "/storage/v1/bucket")] = httpx.Response(200, json=[{"name": "media"}, {"name": "cars"}])
    responses[("POST", "/storage/v1/object/list/cars")] = httpx.Response(200, json=[{"name": "a.jpg"}])
    responses[("POST", "/storage/v1/object/list/media")] = httpx.Response(500, text="boom")

    with _app_client() as client:
        resp = client.get("/admin/storage/files", params={"all": "true"})

    body = resp.json()
    assert body["data"]["cars"] == [{"name": "a.jpg"}]
    assert body["data"]["media"] == {"status": "error", "message": "list request status 500: boom"}
    assert body["meta"] == {"all": True, "bucket_count": 2, "per_bucket_max": 50, "prefix": ""}


def test_delete_endpoint(storage_env, mock_storage):
    captured, _ = mock_storage

    with _app_client() as client:
        ok = client.delete("/admin/storage/file", params={"path": "/bmw/a.jpg"})
        missing = client.delete("/admin/storage/file")

    assert ok.json() == {"status": "success", "data": {"bucket": "cars", "path": "bmw/a.jpg"}}
    assert captured[0].method == "DELETE"
    assert captured[0].url.path == "/storage/v1/object/cars/bmw/a.jpg"
    assert missing.status_code == 400
    assert missing.json()["message"] == "query param path is required"


def test_delete_failure_is_bad_gateway(storage_env, mock_storage):
    _, responses = mock_storage
    responses[("DELETE", "/storage/v1/object/cars/a.jpg")] = httpx.Response(400, text="Object not found")

    with _app_client() as client:
        resp = client.delete("/admin/storage/file", params={"path": "a.jpg"})

    assert resp.status_code == 502
    assert resp.json() == {"status": "error", "message": "storage delete failed", "details": "Object not found"}


def test_storage_routes_are_not_admin_tables(storage_env, mock_storage, monkeypatch):
    monkeypatch.setenv("ADMIN_TOKEN", "s3cret")

    with _app_client() as client:
        resp = client.get("/admin/storage/files", headers={"Authorization": "Bearer s3cret"})
        denied = client.get("/admin/storage/files")

    assert resp.status_code == 200
    assert denied.status_code == 401


@pytest.mark.asyncio
async def test_error_details_are_truncated(mock_storage):
    _, responses = mock_storage
    responses[("DELETE", "/storage/v1/object/cars/a.jpg")] = httpx.Response(500, text="x" * 5000)

    with pytest.raises(StorageError) as excinfo:
        await storage_client.delete_object(CONFIG, "cars", "a.jpg")

    assert excinfo.value.details == "x" * storage_client.MAX_REPLY_CHARS
    assert storage_client.MAX_REPLY_CHARS == 500
