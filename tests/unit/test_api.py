"""
Tests for the HTTP surface.

Settings and services are swapped through app.dependency_overrides, so
requests hit the real routes with an in-memory disk and a fake remote.
"""

import pytest
from fastapi.testclient import TestClient

from cloudmedia.api.dependencies import get_media_services
from cloudmedia.config.settings import get_settings
from cloudmedia.infrastructure.storage import MemoryDisk
from cloudmedia.main import create_app
from cloudmedia.services import build_media_services
from conftest import CONFIGURED, FakeRemoteClient, make_settings

HEADERS = {"X-API-Key": "test-key"}


@pytest.fixture
def make_client(build_services):
    """Create a TestClient for services built with the given settings overrides."""
    def _make(services=None, **overrides):
        services = services or build_services(**overrides)
        app = create_app()
        app.dependency_overrides[get_settings] = lambda: services.settings
        app.dependency_overrides[get_media_services] = lambda: services
        return TestClient(app)

    return _make


def _upload(client, content, filename="photo.jpg", mime="image/jpeg", headers=HEADERS, **data):
    return client.post(
        "/api/v1/media",
        files={"file": (filename, content, mime)},
        data=data,
        headers=headers,
    )


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------

class TestUploadEndpoint:

    def test_requires_api_key(self, make_client, jpeg_bytes):
        response = _upload(make_client(), jpeg_bytes, headers={}, folder="products/7")
        assert response.status_code == 403

    def test_rejects_wrong_api_key(self, make_client, jpeg_bytes):
        response = _upload(make_client(), jpeg_bytes, headers={"X-API-Key": "nope"}, folder="products/7")
        assert response.status_code == 403

    def test_local_upload(self, make_client, jpeg_bytes, memory_disk):
        response = _upload(make_client(), jpeg_bytes, folder="products/7")

        assert response.status_code == 201
        body = response.json()
        assert body["reference"].startswith("products/7/")
        assert body["reference"].endswith(".webp")
        assert body["backend"] == "local"
        assert body["url"] == f"http://localhost/storage/{body['reference']}"
        assert body["size_bytes"] == len(jpeg_bytes)
        assert body["variants"]["small_image_url"] == f"http://localhost/cache/small/{body['reference']}"
        assert memory_disk.exists(body["reference"])

    def test_entity_folder(self, make_client, jpeg_bytes):
        response = _upload(make_client(), jpeg_bytes, entity="products", entity_id="7")

        assert response.json()["reference"].startswith("bagisto/products/7/")

    def test_folder_or_entity_required(self, make_client, jpeg_bytes):
        response = _upload(make_client(), jpeg_bytes)
        assert response.status_code == 400

    def test_empty_file(self, make_client):
        response = _upload(make_client(), b"", folder="products/7")
        assert response.status_code == 400

    def test_too_large(self, make_client, jpeg_bytes):
        client = make_client(max_upload_size_mb=0)

        response = _upload(client, jpeg_bytes, folder="products/7")

        assert response.status_code == 413

    def test_unreadable_image(self, make_client):
        response = _upload(make_client(), b"not an image", folder="products/7")
        assert response.status_code == 422

    def test_document_has_no_variants(self, make_client):
        response = _upload(make_client(), b"%PDF-1.4", filename="manual.pdf", mime="application/pdf", folder="docs")

        body = response.json()
        assert response.status_code == 201
        assert body["reference"].endswith(".pdf")
        assert body["variants"] is None

    def test_remote_upload(self, make_client, jpeg_bytes):
        client = make_client(cloudinary_enabled=True, **CONFIGURED)

        response = _upload(client, jpeg_bytes, folder="products/7")

        body = response.json()
        assert response.status_code == 201
        assert body["backend"] == "cloudinary"
        assert body["url"] == body["reference"]
        assert "/image/upload/width=300,height=300" in body["variants"]["small_image_url"]
        assert body["variants"]["original_image_url"] == body["reference"]

    def test_remote_failure_still_succeeds(self, make_client, build_services, jpeg_bytes):
        services = build_services(
            client=FakeRemoteClient(fail_with=ConnectionError("down")),
            cloudinary_enabled=True,
            **CONFIGURED,
        )

        response = _upload(make_client(services), jpeg_bytes, folder="products/7")

        assert response.status_code == 201
        assert response.json()["backend"] == "local"


# ---------------------------------------------------------------------------
# Delete and resolution
# ---------------------------------------------------------------------------

class TestDeleteEndpoint:

    def test_delete_local(self, make_client, memory_disk):
        memory_disk.put("products/7/a.webp", b"x")

        response = make_client().delete("/api/v1/media", params={"reference": "products/7/a.webp"}, headers=HEADERS)

        assert response.status_code == 200
        assert response.json() == {"reference": "products/7/a.webp", "deleted": True}

    def test_delete_missing_is_not_an_error(self, make_client):
        response = make_client().delete("/api/v1/media", params={"reference": "nope.webp"}, headers=HEADERS)

        assert response.status_code == 200
        assert response.json()["deleted"] is False

    def test_requires_api_key(self, make_client):
        response = make_client().delete("/api/v1/media", params={"reference": "a.webp"})
        assert response.status_code == 403


class TestResolveEndpoints:

    def test_url(self, make_client):
        response = make_client().get("/api/v1/media/url", params={"reference": "products/7/a.webp"})

        assert response.json() == {
            "reference": "products/7/a.webp",
            "url": "http://localhost/storage/products/7/a.webp",
        }

    def test_url_without_reference(self, make_client):
        assert make_client().get("/api/v1/media/url").json()["url"] is None

    def test_urls(self, make_client):
        remote = "https://res.cloudinary.com/demo/image/upload/v1/a.jpg"

        response = make_client().post("/api/v1/media/urls", json={"references": ["a.webp", None, remote]})

        assert response.json() == {"urls": ["http://localhost/storage/a.webp", None, remote]}

    def test_variants_placeholders(self, make_client):
        body = make_client().get("/api/v1/media/variants").json()

        assert body["original_image_url"] == "http://localhost/images/large-product-placeholder.webp"

    def test_variants_remote(self, make_client):
        remote = "https://res.cloudinary.com/demo/image/upload/v1/a.jpg"

        body = make_client().get("/api/v1/media/variants", params={"reference": remote}).json()

        assert body["large_image_url"].startswith("https://res.cloudinary.com/demo/image/upload/width=1200")


# ---------------------------------------------------------------------------
# Mock mode end to end
# ---------------------------------------------------------------------------

class TestMockMode:
    """The in-memory Cloudinary stand-in supports the full lifecycle."""

    def test_upload_then_delete(self, make_client, jpeg_bytes):
        settings = make_settings(cloudinary_enabled=True, cloudinary_mock_mode=True)
        client = make_client(build_media_services(settings, disk=MemoryDisk()))

        upload = _upload(client, jpeg_bytes, folder="products/7").json()
        assert upload["reference"].startswith("https://res.cloudinary.com/demo/image/upload/v")

        deleted = client.delete("/api/v1/media", params={"reference": upload["reference"]}, headers=HEADERS)
        assert deleted.json()["deleted"] is True


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

class TestHealth:

    def test_liveness(self, make_client):
        body = make_client().get("/health").json()

        assert body["status"] == "ok"
        assert body["details"]["default_disk"] == "public"

    def test_ready(self, make_client):
        response = make_client().get("/health/ready")

        assert response.status_code == 200
        checks = {c["name"]: c["status"] for c in response.json()["checks"]}
        assert checks == {"configuration": "ok", "disk": "ok", "cloudinary": "ok"}

    def test_ready_with_misconfigured_cloudinary_is_degraded(self, make_client):
        client = make_client(cloudinary_enabled=True)

        result = client.get("/health/ready")

        assert result.status_code == 200
        checks = {c["name"]: c["status"] for c in result.json()["checks"]}
        assert checks["cloudinary"] == "degraded"
        assert checks["configuration"] == "degraded"

    def test_storage_status_has_no_secrets(self, make_client):
        response = make_client(cloudinary_enabled=True, **CONFIGURED).get("/health/storage")

        body = response.json()
        assert body["recommended_backend"] == "cloudinary"
        assert CONFIGURED["cloudinary_api_secret"] not in response.text
