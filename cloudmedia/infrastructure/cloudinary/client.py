"""
Cloudinary client for remote media storage.

Wraps the official SDK behind the RemoteMediaClient protocol. Credentials
are passed per call instead of through cloudinary.config(), so several
configurations (and tests) never fight over the SDK's global state.

Mock mode stores uploads in memory and hands back realistic delivery URLs,
enabling the full upload/delete/variant flow without an account.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union
from uuid import uuid4

import cloudinary.uploader

from ...core.storage.errors import ConfigurationError, RemoteDeleteError, RemoteUploadError
from ...core.storage.ports import RemoteMediaClient

logger = logging.getLogger(__name__)


@dataclass
class CloudinaryConfig:
    """Credentials and transport settings for one Cloudinary account."""
    cloud_name: str
    api_key: str
    api_secret: str
    secure: bool = True
    timeout_seconds: float = 10.0

    def missing_fields(self) -> list[str]:
        fields = {
            "cloud_name": self.cloud_name,
            "api_key": self.api_key,
            "api_secret": self.api_secret,
        }
        return [name for name, value in fields.items() if not (value or "").strip()]


class CloudinaryClient:
    """
    Cloudinary upload API client.

    Construction fails with ConfigurationError when a credential is
    missing, which is what the configuration guard relies on.
    """

    def __init__(self, config: CloudinaryConfig) -> None:
        missing = config.missing_fields()
        if missing:
            raise ConfigurationError(
                "Cloudinary configuration is incomplete. Please check your environment variables.",
                details={"missing": ", ".join(missing)},
            )

        self._config = config
        self._credentials = {
            "cloud_name": config.cloud_name,
            "api_key": config.api_key,
            "api_secret": config.api_secret,
        }

        logger.debug("Initialized Cloudinary client", extra={"cloud_name": config.cloud_name})

    def upload(self, file: Union[str, Path], options: dict[str, Any]) -> str:
        """Upload a file and return its delivery URL."""
        call_options = {"timeout": self._config.timeout_seconds, **options, **self._credentials}

        try:
            result = cloudinary.uploader.upload(str(file), **call_options)
        except Exception as e:
            raise RemoteUploadError(f"Cloudinary upload failed: {e}") from e

        url = result.get("secure_url") if self._config.secure else result.get("url")
        url = url or result.get("secure_url") or result.get("url")
        if not url:
            raise RemoteUploadError("Cloudinary upload returned no URL")
        return url

    def destroy(self, public_id: str, resource_type: str = "image") -> bool:
        """Delete an object. True only when Cloudinary reports "ok"."""
        try:
            result = cloudinary.uploader.destroy(
                public_id,
                resource_type=resource_type,
                invalidate=True,
                timeout=self._config.timeout_seconds,
                **self._credentials,
            )
        except Exception as e:
            raise RemoteDeleteError(f"Cloudinary delete failed: {e}") from e

        deleted = result.get("result") == "ok"
        logger.info(
            "Deleted from Cloudinary" if deleted else "Cloudinary object not deleted",
            extra={"public_id": public_id, "result": result.get("result")},
        )
        return deleted


# ---------------------------------------------------------------------------
# Mock Client for Local Development
# ---------------------------------------------------------------------------

class MockCloudinaryClient:
    """
    In-memory Cloudinary stand-in.

    Uploads are kept in a dict keyed by (resource_type, public_id) and
    URLs follow the real delivery shape, so classification, public id
    extraction and variants behave exactly as in production.
    """

    def __init__(self, cloud_name: str = "demo") -> None:
        self.cloud_name = cloud_name or "demo"
        self._objects: dict[tuple[str, str], bytes] = {}
        self._version = 1700000000
        logger.info("Initialized mock Cloudinary client (in-memory)")

    def upload(self, file: Union[str, Path], options: dict[str, Any]) -> str:
        path = Path(file)
        resource_type = options.get("resource_type", "image")
        folder = str(options.get("folder") or "").strip("/")
        name = options.get("public_id") or uuid4().hex
        public_id = f"{folder}/{name}" if folder else str(name)
        extension = options.get("format") or path.suffix.lstrip(".") or "bin"

        self._version += 1
        self._objects[(resource_type, public_id)] = path.read_bytes()

        return (
            f"https://res.cloudinary.com/{self.cloud_name}/{resource_type}/upload/"
            f"v{self._version}/{public_id}.{extension}"
        )

    def destroy(self, public_id: str, resource_type: str = "image") -> bool:
        return self._objects.pop((resource_type, public_id), None) is not None

    def get(self, public_id: str, resource_type: str = "image") -> Optional[bytes]:
        return self._objects.get((resource_type, public_id))


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_cloudinary_client(
    config: Optional[CloudinaryConfig] = None,
    mock_mode: bool = False,
) -> RemoteMediaClient:
    """
    Create a Cloudinary client based on configuration.

    Args:
        config: Account configuration (required if not mock_mode)
        mock_mode: If True, return the in-memory client

    Returns:
        RemoteMediaClient implementation (Cloudinary or Mock)
    """
    if mock_mode:
        return MockCloudinaryClient(config.cloud_name if config else "demo")

    if config is None:
        raise ConfigurationError("config is required when not in mock mode")

    return CloudinaryClient(config)
