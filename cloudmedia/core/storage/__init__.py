"""
Storage routing, fallback and URL normalization.

Contains the configuration guard, the upload router, the URL resolver,
the image variant builder and the resolving storage facade.
"""

from .errors import (
    ConfigurationError,
    ImageProcessingError,
    RemoteDeleteError,
    RemoteUploadError,
    StorageError,
)
from .guard import CacheStatus, ConfigurationGuard, ValidityCache
from .manager import MediaStorage, ResolvingDisk
from .models import Backend, ImageVariants, MediaKind, UploadedFile, UploadOptions
from .ports import Disk, ImageEncoder, RemoteMediaClient
from .router import StorageRouter, extract_public_id, resource_type_from_url
from .urls import UrlResolver, is_complete_url, is_local_path, is_remote_url
from .variants import ImageUrlVariantBuilder, transform_url

__all__ = [
    "Backend",
    "CacheStatus",
    "ConfigurationError",
    "ConfigurationGuard",
    "Disk",
    "ImageEncoder",
    "ImageProcessingError",
    "ImageUrlVariantBuilder",
    "ImageVariants",
    "MediaKind",
    "MediaStorage",
    "RemoteDeleteError",
    "RemoteMediaClient",
    "RemoteUploadError",
    "ResolvingDisk",
    "StorageError",
    "StorageRouter",
    "UploadedFile",
    "UploadOptions",
    "UrlResolver",
    "ValidityCache",
    "extract_public_id",
    "is_complete_url",
    "is_local_path",
    "is_remote_url",
    "resource_type_from_url",
    "transform_url",
]
