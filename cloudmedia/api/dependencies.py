"""
Request-scoped wiring for the media routes.

Routes receive the router, resolver and variant builder through Depends,
so tests replace get_settings / get_media_services with
app.dependency_overrides instead of patching modules.

The media services are built once per process: the guard's validity
cache and the mock clients must outlive a single request.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from ..config.settings import Settings, get_settings
from ..core.storage import ImageUrlVariantBuilder, StorageRouter, UrlResolver
from ..services import MediaServices, build_media_services

logger = logging.getLogger(__name__)

# API Key security scheme
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

_media_services: Optional[MediaServices] = None


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

async def verify_api_key(
    settings: Annotated[Settings, Depends(get_settings)],
    api_key: str = Security(api_key_header),
) -> str:
    """
    Check the X-API-Key header against the configured keys (403 otherwise).

    Only mutating endpoints (upload, delete) require a key; URL
    resolution is public, like the URLs it returns.
    """
    if not api_key:
        logger.warning("Mutating request without API key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="API key required. Provide X-API-Key header.",
        )

    if api_key not in settings.api_keys_list:
        logger.warning(
            "Rejected API key",
            extra={"key_prefix": api_key[:8]}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )

    return api_key


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_media_services(
    settings: Annotated[Settings, Depends(get_settings)],
) -> MediaServices:
    """
    Provide the shared media services.

    Built lazily on first use and reused across requests so that the
    Cloudinary configuration is validated once per process.
    """
    global _media_services

    if _media_services is None or _media_services.settings is not settings:
        _media_services = build_media_services(settings)
        logger.info(
            "Created media services",
            extra={
                "default_disk": settings.filesystem_disk,
                "cloudinary_enabled": settings.cloudinary_enabled,
                "cloudinary_mock_mode": settings.cloudinary_mock_mode,
            }
        )

    return _media_services


def reset_media_services() -> None:
    """Drop the shared services (configuration reload, tests)."""
    global _media_services
    _media_services = None


def get_storage_router(
    services: Annotated[MediaServices, Depends(get_media_services)],
) -> StorageRouter:
    return services.router


def get_url_resolver(
    services: Annotated[MediaServices, Depends(get_media_services)],
) -> UrlResolver:
    return services.resolver


def get_variant_builder(
    services: Annotated[MediaServices, Depends(get_media_services)],
) -> ImageUrlVariantBuilder:
    return services.variants


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
AuthenticatedUser = Annotated[str, Depends(verify_api_key)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
MediaServicesDep = Annotated[MediaServices, Depends(get_media_services)]
StorageRouterDep = Annotated[StorageRouter, Depends(get_storage_router)]
UrlResolverDep = Annotated[UrlResolver, Depends(get_url_resolver)]
VariantBuilderDep = Annotated[ImageUrlVariantBuilder, Depends(get_variant_builder)]
