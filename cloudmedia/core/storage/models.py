"""
Value objects for the media storage layer.

These models have no dependencies on HTTP frameworks, SDKs or disks.
A stored reference itself is a plain string: either a complete remote URL
or a path relative to the default disk. Nothing else is persisted, so the
backend of a reference is always re-derived from its shape.
"""

import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional, Union


class Backend(Enum):
    """Where an upload goes."""
    REMOTE = "cloudinary"
    LOCAL = "local"


class MediaKind(Enum):
    """
    Upload dispatch class, derived from the MIME type.

    The values double as Cloudinary resource types.
    """
    IMAGE = "image"
    VIDEO = "video"
    OTHER = "raw"

    @classmethod
    def from_mime(cls, mime_type: Optional[str]) -> "MediaKind":
        major = (mime_type or "").split("/", 1)[0].strip().lower()
        if major == "image":
            return cls.IMAGE
        if major == "video":
            return cls.VIDEO
        return cls.OTHER


_EXTENSION_ALIASES = {
    "jpeg": "jpg",
    "jpe": "jpg",
    "tif": "tiff",
    "mpeg4": "mp4",
}


@dataclass(frozen=True)
class UploadedFile:
    """
    A file handed to us by the host application.

    Frozen because an upload is a value: the router may read the content
    twice (remote attempt, then local fallback) and it must not change.
    """
    content: bytes
    filename: str
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def kind(self) -> MediaKind:
        return MediaKind.from_mime(self.mime_type)

    @property
    def normalized_extension(self) -> str:
        """Lowercased extension from the filename, else guessed from the MIME type."""
        ext = Path(self.filename or "").suffix.lower().lstrip(".")
        if not ext and self.mime_type:
            guessed = mimetypes.guess_extension(self.mime_type) or ""
            ext = guessed.lower().lstrip(".")
        ext = _EXTENSION_ALIASES.get(ext, ext)
        return ext or "bin"

    @classmethod
    def from_path(cls, path: Union[str, Path], mime_type: Optional[str] = None) -> "UploadedFile":
        path = Path(path)
        if mime_type is None:
            mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return cls(content=path.read_bytes(), filename=path.name, mime_type=mime_type)


@dataclass
class UploadOptions:
    """
    Per-call overrides merged over the configured defaults.

    Values left as None are not sent, so the defaults apply. Unknown keys
    from a mapping are kept in `extra` and passed through to the provider.
    """
    format: Optional[str] = None
    quality: Optional[Union[str, int]] = None
    public_id: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(
        cls,
        options: Optional[Union["UploadOptions", Mapping[str, Any]]],
    ) -> "UploadOptions":
        if options is None:
            return cls()
        if isinstance(options, UploadOptions):
            return options
        known = {"format", "quality", "public_id"}
        return cls(
            format=options.get("format"),
            quality=options.get("quality"),
            public_id=options.get("public_id"),
            extra={k: v for k, v in options.items() if k not in known},
        )

    @property
    def numeric_quality(self) -> Optional[int]:
        """Quality as an int when it was given as a number, otherwise None ("auto")."""
        if isinstance(self.quality, bool):
            return None
        if isinstance(self.quality, int):
            return self.quality
        if isinstance(self.quality, str) and self.quality.strip().isdigit():
            return int(self.quality.strip())
        return None

    def as_dict(self) -> dict[str, Any]:
        result = dict(self.extra)
        for key in ("format", "quality", "public_id"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result


@dataclass(frozen=True)
class ImageVariants:
    """Size-specific URLs for one image reference."""
    small: str
    medium: str
    large: str
    original: str

    @classmethod
    def uniform(cls, url: str) -> "ImageVariants":
        return cls(small=url, medium=url, large=url, original=url)

    def as_dict(self) -> dict[str, str]:
        """Keys used by storefront templates."""
        return {
            "small_image_url": self.small,
            "medium_image_url": self.medium,
            "large_image_url": self.large,
            "original_image_url": self.original,
        }
