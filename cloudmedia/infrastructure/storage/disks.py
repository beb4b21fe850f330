"""
Filesystem disks for locally stored media.

"Local" here means "not Cloudinary": the default disk can be the local
filesystem, any S3-compatible bucket (AWS, R2, MinIO) or, in mock mode,
memory. All three implement the same closed interface (see
core.storage.ports.Disk) and return disk-relative paths.

Mock mode keeps files in a dict, enabling API testing without
provisioning a filesystem or bucket.
"""

import logging
import mimetypes
import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ...config.settings import Settings
from ...core.storage.errors import StorageError
from ...core.storage.ports import Disk

logger = logging.getLogger(__name__)


def normalize_path(path: str) -> str:
    """
    Collapse a disk path to a clean relative form.

    Leading slashes and ".." segments are dropped so a path can never
    leave the disk root.
    """
    parts = []
    for part in (path or "").replace("\\", "/").split("/"):
        if part in ("", ".", ".."):
            continue
        parts.append(part)
    return "/".join(parts)


def _join_url(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{normalize_path(path)}"


class LocalDisk:
    """Local filesystem disk rooted at a directory."""

    def __init__(self, root: Union[str, Path], base_url: str) -> None:
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")
        self.root.mkdir(parents=True, exist_ok=True)

    def _full_path(self, path: str) -> Path:
        return self.root / normalize_path(path)

    def exists(self, path: str) -> bool:
        return self._full_path(path).is_file()

    def get(self, path: str) -> bytes:
        file_path = self._full_path(path)
        if not file_path.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        return file_path.read_bytes()

    def put(self, path: str, contents: bytes) -> bool:
        file_path = self._full_path(path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(contents)
        return True

    def delete(self, path: str) -> bool:
        file_path = self._full_path(path)
        if not file_path.is_file():
            return False
        file_path.unlink()
        return True

    def files(self, directory: Optional[str] = None) -> list[str]:
        return self._list(directory, want_dirs=False)

    def directories(self, directory: Optional[str] = None) -> list[str]:
        return self._list(directory, want_dirs=True)

    def url(self, path: str) -> str:
        return _join_url(self.base_url, path)

    def _list(self, directory: Optional[str], want_dirs: bool) -> list[str]:
        prefix = normalize_path(directory or "")
        target = self.root / prefix if prefix else self.root
        if not target.is_dir():
            return []

        entries = []
        for entry in sorted(target.iterdir()):
            if entry.is_dir() == want_dirs:
                entries.append(f"{prefix}/{entry.name}" if prefix else entry.name)
        return entries


@dataclass
class S3DiskConfig:
    """Configuration for an S3-compatible disk."""
    bucket_name: str
    access_key_id: str = ""
    secret_access_key: str = ""
    region: str = "auto"
    endpoint_url: Optional[str] = None
    public_url_base: Optional[str] = None


class S3Disk:
    """
    S3-compatible disk.

    Uses boto3 because R2 and MinIO speak the S3 API, so the same disk
    covers all of them with a different endpoint.
    """

    def __init__(self, config: S3DiskConfig) -> None:
        """
        Initialize the S3 client.

        We import boto3 here (not at module level) because only
        deployments with an s3 default disk need it.
        """
        try:
            import boto3
            from botocore.config import Config
        except ImportError:
            raise ImportError(
                "boto3 is required for the s3 disk. Install with: pip install boto3"
            )

        self._config = config

        boto_config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path"},
        )

        self._s3_client = boto3.client(
            "s3",
            endpoint_url=config.endpoint_url,
            aws_access_key_id=config.access_key_id or None,
            aws_secret_access_key=config.secret_access_key or None,
            region_name=None if config.region == "auto" and not config.endpoint_url else config.region,
            config=boto_config,
        )

        logger.info(
            "Initialized S3 disk",
            extra={"bucket": config.bucket_name, "endpoint": config.endpoint_url},
        )

    @staticmethod
    def _is_missing(error: Exception) -> bool:
        response = getattr(error, "response", None) or {}
        code = str(response.get("Error", {}).get("Code", ""))
        return code in ("404", "NoSuchKey", "NotFound")

    def exists(self, path: str) -> bool:
        try:
            self._s3_client.head_object(Bucket=self._config.bucket_name, Key=normalize_path(path))
            return True
        except Exception as e:
            if self._is_missing(e):
                return False
            raise StorageError(f"Existence check failed: {e}")

    def get(self, path: str) -> bytes:
        try:
            response = self._s3_client.get_object(
                Bucket=self._config.bucket_name,
                Key=normalize_path(path),
            )
            return response["Body"].read()
        except Exception as e:
            if self._is_missing(e):
                raise FileNotFoundError(f"File not found: {path}")
            logger.error("Failed to download object", extra={"path": path, "error": str(e)})
            raise StorageError(f"Download failed: {e}")

    def put(self, path: str, contents: bytes) -> bool:
        key = normalize_path(path)
        content_type = mimetypes.guess_type(key)[0] or "application/octet-stream"
        try:
            self._s3_client.put_object(
                Bucket=self._config.bucket_name,
                Key=key,
                Body=contents,
                ContentType=content_type,
            )
            return True
        except Exception as e:
            logger.error("Failed to upload object", extra={"path": path, "error": str(e)})
            raise StorageError(f"Upload failed: {e}")

    def delete(self, path: str) -> bool:
        if not self.exists(path):
            return False
        try:
            self._s3_client.delete_object(Bucket=self._config.bucket_name, Key=normalize_path(path))
            return True
        except Exception as e:
            logger.error("Failed to delete object", extra={"path": path, "error": str(e)})
            raise StorageError(f"Delete failed: {e}")

    def files(self, directory: Optional[str] = None) -> list[str]:
        response = self._list(directory)
        return [obj["Key"] for obj in response.get("Contents", []) if not obj["Key"].endswith("/")]

    def directories(self, directory: Optional[str] = None) -> list[str]:
        response = self._list(directory)
        return [prefix["Prefix"].rstrip("/") for prefix in response.get("CommonPrefixes", [])]

    def url(self, path: str) -> str:
        if self._config.public_url_base:
            return _join_url(self._config.public_url_base, path)
        if self._config.endpoint_url:
            return _join_url(f"{self._config.endpoint_url.rstrip('/')}/{self._config.bucket_name}", path)
        return _join_url(f"https://{self._config.bucket_name}.s3.amazonaws.com", path)

    def _list(self, directory: Optional[str]) -> dict:
        prefix = normalize_path(directory or "")
        try:
            return self._s3_client.list_objects_v2(
                Bucket=self._config.bucket_name,
                Prefix=f"{prefix}/" if prefix else "",
                Delimiter="/",
            )
        except Exception as e:
            logger.error("Failed to list objects", extra={"prefix": prefix, "error": str(e)})
            raise StorageError(f"List failed: {e}")


# ---------------------------------------------------------------------------
# Mock Disk for Local Development
# ---------------------------------------------------------------------------

class MemoryDisk:
    """
    In-memory disk for local development and tests.

    Not suitable for production: contents vanish with the process.
    """

    def __init__(self, base_url: str = "http://localhost/storage") -> None:
        self.base_url = base_url.rstrip("/")
        self._files: dict[str, bytes] = {}

    def exists(self, path: str) -> bool:
        return normalize_path(path) in self._files

    def get(self, path: str) -> bytes:
        key = normalize_path(path)
        if key not in self._files:
            raise FileNotFoundError(f"File not found: {path}")
        return self._files[key]

    def put(self, path: str, contents: bytes) -> bool:
        self._files[normalize_path(path)] = bytes(contents)
        return True

    def delete(self, path: str) -> bool:
        return self._files.pop(normalize_path(path), None) is not None

    def files(self, directory: Optional[str] = None) -> list[str]:
        prefix = normalize_path(directory or "")
        return sorted(
            key for key in self._files
            if posixpath.dirname(key) == prefix
        )

    def directories(self, directory: Optional[str] = None) -> list[str]:
        prefix = normalize_path(directory or "")
        found = set()
        for key in self._files:
            parent = posixpath.dirname(key)
            while parent and posixpath.dirname(parent) != prefix:
                parent = posixpath.dirname(parent)
            if parent and posixpath.dirname(parent) == prefix:
                found.add(parent)
        return sorted(found)

    def url(self, path: str) -> str:
        return _join_url(self.base_url, path)


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_disk(name: str, settings: Settings) -> Disk:
    """
    Create a disk by name.

    "public" and "local" are both the local filesystem, matching the
    usual framework disk names; "s3" is any S3-compatible bucket and
    "memory" is the mock disk.
    """
    if name in ("public", "local"):
        return LocalDisk(settings.local_storage_root, settings.local_storage_base_url)

    if name == "s3":
        return S3Disk(S3DiskConfig(
            bucket_name=settings.s3_bucket,
            access_key_id=settings.s3_access_key_id,
            secret_access_key=settings.s3_secret_access_key,
            region=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
            public_url_base=settings.s3_public_url_base,
        ))

    if name == "memory":
        return MemoryDisk(settings.local_storage_base_url)

    raise ValueError(f"Unknown disk: {name}")
