"""
Upload routing with local fallback.

The router decides per upload whether a file goes to Cloudinary or to the
default disk. A remote failure of any kind (network, auth, quota, transcode,
timeout) is logged and retried exactly once against the local disk. Only a
failure of that local attempt reaches the caller.

Local writes land at folder/<random>.<ext>. Images are always re-encoded
to WebP locally, so every local image reference ends in ".webp".
"""

import logging
import os
import re
import tempfile
from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Optional, Union
from urllib.parse import urlparse
from uuid import uuid4

from ...config.settings import Settings
from .guard import ConfigurationGuard
from .models import Backend, MediaKind, UploadedFile, UploadOptions
from .ports import Disk, ImageEncoder
from .urls import is_remote_url

logger = logging.getLogger(__name__)

LOCAL_IMAGE_FORMAT = "webp"
LOCAL_DISKS = frozenset({"public", "local"})

# .../upload/[transform/]v<version>/<public_id>.<ext>; the first version segment
# after /upload/ wins, so folders named like versions stay part of the id
_PUBLIC_ID_PATTERN = re.compile(r"/upload/(?:[^/]+/)*?v\d+/(.+)\.[^./]+$")
_RESOURCE_TYPES = frozenset({"image", "video", "raw"})

UploadOptionsLike = Union[UploadOptions, Mapping[str, Any], None]


def extract_public_id(url: str) -> Optional[str]:
    """
    Pull the Cloudinary public id out of a delivery URL.

    https://res.cloudinary.com/demo/image/upload/v123/folder/name.png -> "folder/name".
    Returns None when the URL has no version segment after "/upload/".
    """
    match = _PUBLIC_ID_PATTERN.search(urlparse(url).path)
    return match.group(1) if match else None


def resource_type_from_url(url: str) -> str:
    """The segment before "upload" ("image", "video" or "raw"); "image" if absent."""
    segments = [s for s in urlparse(url).path.split("/") if s]
    if "upload" in segments:
        index = segments.index("upload")
        if index > 0 and segments[index - 1] in _RESOURCE_TYPES:
            return segments[index - 1]
    return "image"


@contextmanager
def _temporary_file(data: bytes, suffix: str) -> Iterator[str]:
    """Write data to a temp file and remove it on every exit path."""
    with tempfile.NamedTemporaryFile(prefix="cloudmedia_upload_", suffix=suffix, delete=False) as tmp:
        tmp.write(data)
        tmp_path = tmp.name

    try:
        yield tmp_path
    finally:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass


class StorageRouter:
    """
    Routes uploads and deletes between Cloudinary and the default disk.

    Stateless apart from the guard's validity cache, so one instance can
    serve concurrent uploads from many threads.
    """

    def __init__(
        self,
        settings: Settings,
        guard: ConfigurationGuard,
        disk: Disk,
        encoder: ImageEncoder,
    ) -> None:
        self._settings = settings
        self._guard = guard
        self._disk = disk
        self._encoder = encoder

    @property
    def guard(self) -> ConfigurationGuard:
        return self._guard

    @property
    def current_backend(self) -> Backend:
        return self._guard.recommended_backend()

    @property
    def current_disk_name(self) -> str:
        """"cloudinary" while remote uploads are active, else the configured default disk."""
        if self.current_backend is Backend.REMOTE:
            return Backend.REMOTE.value
        return self._settings.filesystem_disk

    @property
    def uses_local_disk(self) -> bool:
        return self.current_disk_name in LOCAL_DISKS

    # -------------------------------------------------------------------------
    # Upload
    # -------------------------------------------------------------------------

    def upload(self, file: UploadedFile, folder: str, options: UploadOptionsLike = None) -> str:
        """
        Store a file and return the reference to persist.

        Returns a complete URL for remote uploads and a disk-relative path
        for local ones. Non-image, non-video files always go to the disk.
        """
        opts = UploadOptions.from_mapping(options)
        folder = (folder or "").strip("/")
        kind = file.kind

        if kind is not MediaKind.OTHER and self._guard.recommended_backend() is Backend.REMOTE:
            try:
                return self._upload_remote(file, folder, kind, opts)
            except Exception as e:
                logger.warning(
                    "Cloudinary upload failed, falling back to local storage",
                    extra={
                        "file": file.filename,
                        "folder": folder,
                        "resource_type": kind.value,
                        "error": str(e),
                    },
                )

        return self._store_locally(file, folder, kind, opts)

    def upload_image(self, file: UploadedFile, folder: str, options: UploadOptionsLike = None) -> str:
        return self.upload(file, folder, options)

    def upload_video(self, file: UploadedFile, folder: str, options: UploadOptionsLike = None) -> str:
        return self.upload(file, folder, options)

    def build_upload_options(
        self,
        folder: str,
        kind: MediaKind,
        options: UploadOptionsLike = None,
    ) -> dict[str, Any]:
        """
        Merge defaults, caller overrides and account-wide settings.

        Caller values win over defaults; upload_preset and notification_url
        are added last when configured.
        """
        opts = UploadOptions.from_mapping(options)
        merged: dict[str, Any] = {
            "folder": folder,
            "resource_type": kind.value,
            **self._settings.default_options(kind.value),
            "timeout": self._settings.cloudinary_timeout_seconds,
        }
        merged.update(opts.as_dict())

        if self._settings.cloudinary_upload_preset:
            merged["upload_preset"] = self._settings.cloudinary_upload_preset
        if self._settings.cloudinary_notification_url:
            merged["notification_url"] = self._settings.cloudinary_notification_url

        return merged

    def _upload_remote(
        self,
        file: UploadedFile,
        folder: str,
        kind: MediaKind,
        opts: UploadOptions,
    ) -> str:
        client = self._guard.create_remote_client()
        upload_options = self.build_upload_options(folder, kind, opts)

        payload = file.content
        suffix = f".{file.normalized_extension}"
        if kind is MediaKind.IMAGE and opts.format is None:
            target = self._settings.image_format
            payload = self._encoder(file.content, target, opts.numeric_quality)
            suffix = f".{target}"

        with _temporary_file(payload, suffix) as tmp_path:
            url = client.upload(tmp_path, upload_options)

        logger.info(
            "Uploaded file to Cloudinary",
            extra={"file": file.filename, "folder": folder, "size_bytes": file.size},
        )
        return url

    def _store_locally(
        self,
        file: UploadedFile,
        folder: str,
        kind: MediaKind,
        opts: UploadOptions,
    ) -> str:
        if kind is MediaKind.IMAGE:
            quality = opts.numeric_quality or self._settings.local_image_quality
            contents = self._encoder(file.content, LOCAL_IMAGE_FORMAT, quality)
            extension = LOCAL_IMAGE_FORMAT
        else:
            contents = file.content
            extension = file.normalized_extension

        name = f"{uuid4().hex}.{extension}"
        path = f"{folder}/{name}" if folder else name
        self._disk.put(path, contents)

        logger.debug(
            "Stored file on local disk",
            extra={"file": file.filename, "path": path, "size_bytes": len(contents)},
        )
        return path

    # -------------------------------------------------------------------------
    # Delete
    # -------------------------------------------------------------------------

    def delete(self, reference: Optional[str]) -> bool:
        """
        Delete a stored reference. Never raises.

        Entity deletion in the host must go ahead even if file cleanup
        fails, so every error is logged and turned into False.
        """
        if not reference:
            return False

        try:
            if is_remote_url(reference, self._settings.cloudinary_domain):
                return self._delete_remote(reference)
            return self._disk.delete(reference)

        except Exception as e:
            logger.error(
                "Failed to delete file",
                extra={"reference": reference, "error": str(e)},
            )
            return False

    def _delete_remote(self, url: str) -> bool:
        public_id = extract_public_id(url)
        if public_id is None:
            logger.debug("No public id in Cloudinary URL, skipping delete", extra={"url": url})
            return False

        client = self._guard.create_remote_client()
        return client.destroy(public_id, resource_type=resource_type_from_url(url))
