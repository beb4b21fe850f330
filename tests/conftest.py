"""
Shared fixtures for the storage tests.

Fakes implement the same protocols as the real clients instead of
patching SDK internals, so tests exercise the real routing code.
"""

import io
from pathlib import Path
from typing import Any, Optional

import pytest
from PIL import Image

from cloudmedia.config.settings import Settings
from cloudmedia.core.storage import UploadedFile
from cloudmedia.infrastructure.storage import MemoryDisk
from cloudmedia.services import build_media_services


class FakeRemoteClient:
    """
    Records uploads and deletes; optionally fails.

    Upload records keep the temp file path so tests can check cleanup.
    """

    def __init__(self, fail_with: Optional[Exception] = None, destroy_result: bool = True) -> None:
        self.fail_with = fail_with
        self.destroy_result = destroy_result
        self.uploads: list[dict[str, Any]] = []
        self.destroyed: list[tuple[str, str]] = []

    def upload(self, file, options: dict[str, Any]) -> str:
        path = Path(file)
        self.uploads.append({
            "path": str(path),
            "options": dict(options),
            "content": path.read_bytes(),
        })
        if self.fail_with is not None:
            raise self.fail_with
        extension = options.get("format") or path.suffix.lstrip(".")
        return (
            f"https://res.cloudinary.com/demo/{options['resource_type']}/upload/"
            f"v1234/{options['folder']}/abc123.{extension}"
        )

    def destroy(self, public_id: str, resource_type: str = "image") -> bool:
        if self.fail_with is not None:
            raise self.fail_with
        self.destroyed.append((public_id, resource_type))
        return self.destroy_result


class CountingFactory:
    """Client factory that counts how often the guard builds a client."""

    def __init__(self, client: FakeRemoteClient, error: Optional[Exception] = None) -> None:
        self.client = client
        self.error = error
        self.calls = 0

    def __call__(self) -> FakeRemoteClient:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.client


CONFIGURED = {
    "cloudinary_cloud_name": "demo",
    "cloudinary_api_key": "123456",
    "cloudinary_api_secret": "s3cr3t-value",
}


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "app_url": "http://localhost",
        "filesystem_disk": "public",
        "local_storage_url": "http://localhost/storage",
        "api_keys": "test-key",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def fake_client() -> FakeRemoteClient:
    return FakeRemoteClient()


@pytest.fixture
def memory_disk() -> MemoryDisk:
    return MemoryDisk("http://localhost/storage")


@pytest.fixture
def build_services(memory_disk, fake_client):
    """
    Build MediaServices on a memory disk with a fake remote client.

    Usage: build_services(cloudinary_enabled=True, **CONFIGURED)
    """
    def _build(client: Optional[FakeRemoteClient] = None, disk=None, **overrides: Any):
        settings = make_settings(**overrides)
        factory = CountingFactory(client or fake_client)
        services = build_media_services(
            settings,
            disk=disk if disk is not None else memory_disk,
            client_factory=factory,
        )
        services.factory = factory
        return services

    return _build


def _image_bytes(fmt: str = "JPEG", mode: str = "RGB", size: tuple[int, int] = (64, 48)) -> bytes:
    color = (200, 30, 30, 128) if mode == "RGBA" else (200, 30, 30)
    img = Image.new(mode, size, color)
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def jpeg_bytes() -> bytes:
    return _image_bytes("JPEG")


@pytest.fixture
def png_rgba_bytes() -> bytes:
    return _image_bytes("PNG", mode="RGBA")


@pytest.fixture
def jpeg_file(jpeg_bytes) -> UploadedFile:
    return UploadedFile(content=jpeg_bytes, filename="Photo.JPEG", mime_type="image/jpeg")


@pytest.fixture
def video_file() -> UploadedFile:
    return UploadedFile(content=b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 64, filename="clip.MOV", mime_type="video/quicktime")


@pytest.fixture
def pdf_file() -> UploadedFile:
    return UploadedFile(content=b"%PDF-1.4\n%fake\n", filename="manual.pdf", mime_type="application/pdf")
