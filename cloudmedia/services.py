"""
Wiring for the media storage services.

Host applications that embed the library call build_media_services();
the FastAPI dependencies use the same function, so both paths share one
composition.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .config.settings import Settings
from .core.storage import (
    ConfigurationGuard,
    ImageUrlVariantBuilder,
    MediaStorage,
    StorageRouter,
    UrlResolver,
    ValidityCache,
)
from .core.storage.ports import Disk, ImageEncoder, RemoteMediaClient
from .infrastructure.cloudinary import CloudinaryConfig, MockCloudinaryClient, create_cloudinary_client
from .infrastructure.imaging import encode_image
from .infrastructure.storage import create_disk

logger = logging.getLogger(__name__)


@dataclass
class MediaServices:
    """Everything a host needs to upload, delete and render media references."""
    settings: Settings
    guard: ConfigurationGuard
    router: StorageRouter
    resolver: UrlResolver
    variants: ImageUrlVariantBuilder
    storage: MediaStorage
    disk: Disk


def cloudinary_config_from_settings(settings: Settings) -> CloudinaryConfig:
    return CloudinaryConfig(
        cloud_name=settings.cloudinary_cloud_name,
        api_key=settings.cloudinary_api_key,
        api_secret=settings.cloudinary_api_secret,
        secure=settings.cloudinary_secure_url,
        timeout_seconds=settings.cloudinary_timeout_seconds,
    )


def remote_client_factory(settings: Settings) -> Callable[[], RemoteMediaClient]:
    """
    Factory used by the guard to build Cloudinary clients.

    In mock mode one in-memory client is shared, so objects uploaded
    earlier can still be deleted later in the same process.
    """
    if settings.cloudinary_mock_mode:
        shared = MockCloudinaryClient(settings.cloudinary_cloud_name or "demo")
        return lambda: shared

    return lambda: create_cloudinary_client(cloudinary_config_from_settings(settings))


def build_media_services(
    settings: Settings,
    *,
    disk: Optional[Disk] = None,
    client_factory: Optional[Callable[[], RemoteMediaClient]] = None,
    encoder: ImageEncoder = encode_image,
    cache: Optional[ValidityCache] = None,
) -> MediaServices:
    """
    Build the storage services from settings.

    Args:
        settings: Application settings
        disk: Default disk override (e.g. a MemoryDisk in tests)
        client_factory: Remote client factory override
        encoder: Image encoder used for WebP normalization
        cache: Shared validity cache; a fresh one is created if omitted

    Returns:
        MediaServices with every component wired to the same default disk
    """
    default_disk = disk if disk is not None else create_disk(settings.filesystem_disk, settings)
    factory = client_factory or remote_client_factory(settings)

    guard = ConfigurationGuard(settings, client_factory=factory, cache=cache)
    router = StorageRouter(settings, guard=guard, disk=default_disk, encoder=encoder)
    resolver = UrlResolver(default_disk, remote_domain=settings.cloudinary_domain)
    variants = ImageUrlVariantBuilder(settings, resolver=resolver, router=router)
    storage = MediaStorage(
        resolver,
        disks={settings.filesystem_disk: default_disk},
        default_disk=settings.filesystem_disk,
    )

    logger.debug(
        "Built media services",
        extra={"default_disk": settings.filesystem_disk, "cloudinary_enabled": settings.cloudinary_enabled},
    )

    return MediaServices(
        settings=settings,
        guard=guard,
        router=router,
        resolver=resolver,
        variants=variants,
        storage=storage,
        disk=default_disk,
    )
