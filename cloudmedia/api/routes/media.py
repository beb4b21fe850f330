"""
Media storage API endpoints.

Thin HTTP wrappers around the storage core for hosts that don't embed
the library:
1. Upload a file → stored reference (Cloudinary URL or disk path)
2. Persist the reference on your own entity
3. Resolve it to a URL (or size variants) at render time
4. Delete it before discarding the reference

Remote failures never surface here: uploads fall back to the local disk
and deletes report False. Only a failing local disk produces an error.
"""

import asyncio
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, File, Form, HTTPException, Query, UploadFile, status
from pydantic import BaseModel, Field

from ...core.storage import (
    ImageProcessingError,
    MediaKind,
    StorageError,
    UploadedFile,
    UploadOptions,
)
from ..dependencies import (
    AuthenticatedUser,
    SettingsDep,
    StorageRouterDep,
    UrlResolverDep,
    VariantBuilderDep,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class ImageVariantsResponse(BaseModel):
    """Size-specific URLs for an image."""
    small_image_url: str
    medium_image_url: str
    large_image_url: str
    original_image_url: str


class MediaUploadResponse(BaseModel):
    """Response after storing a file."""
    reference: str = Field(description="Value to persist on the owning entity")
    url: Optional[str] = Field(description="Displayable URL for the reference")
    backend: str = Field(description="'cloudinary' or 'local'")
    size_bytes: int = Field(description="Size of the uploaded file")
    variants: Optional[ImageVariantsResponse] = Field(
        default=None,
        description="Size variants (images only)"
    )


class MediaDeleteResponse(BaseModel):
    reference: str
    deleted: bool


class ResolvedUrlResponse(BaseModel):
    reference: Optional[str]
    url: Optional[str]


class ResolveManyRequest(BaseModel):
    references: list[Optional[str]] = Field(description="Stored references, in display order")


class ResolveManyResponse(BaseModel):
    urls: list[Optional[str]] = Field(description="One URL per reference, same order")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=MediaUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a media file",
)
async def upload_media(
    file: Annotated[UploadFile, File(description="File to store")],
    settings: SettingsDep,
    storage_router: StorageRouterDep,
    resolver: UrlResolverDep,
    variant_builder: VariantBuilderDep,
    api_key: AuthenticatedUser,
    folder: Annotated[Optional[str], Form()] = None,
    entity: Annotated[Optional[str], Form(description="products, categories, channels, ...")] = None,
    entity_id: Annotated[Optional[str], Form()] = None,
    format: Annotated[Optional[str], Form()] = None,
    quality: Annotated[Optional[str], Form()] = None,
    public_id: Annotated[Optional[str], Form()] = None,
) -> MediaUploadResponse:
    """
    Store a file on Cloudinary or the default disk.

    The target folder is either given directly or derived from the
    entity type (and optional id) using the configured folder names.
    """
    if not folder and not entity:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Either folder or entity is required"
        )

    target_folder = folder or settings.folder_for(entity, *([entity_id] if entity_id else []))

    content = await file.read()
    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty"
        )
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Upload exceeds {settings.max_upload_size_mb}MB"
        )

    uploaded = UploadedFile(
        content=content,
        filename=file.filename or "upload",
        mime_type=file.content_type or "application/octet-stream",
    )
    options = UploadOptions(format=format, quality=quality, public_id=public_id)

    try:
        reference = await asyncio.to_thread(storage_router.upload, uploaded, target_folder, options)

    except ImageProcessingError as e:
        logger.warning(
            "Rejected unreadable image",
            extra={"file": uploaded.filename, "error": str(e)}
        )
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="File is not a readable image"
        )
    except (OSError, StorageError) as e:
        logger.error(
            "Local storage failed",
            extra={"file": uploaded.filename, "folder": target_folder, "error": str(e)}
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Upload failed"
        )

    variants = None
    if uploaded.kind is MediaKind.IMAGE:
        variants = ImageVariantsResponse(**variant_builder.variants(reference).as_dict())

    return MediaUploadResponse(
        reference=reference,
        url=resolver.resolve(reference),
        backend="cloudinary" if resolver.is_remote_url(reference) else "local",
        size_bytes=uploaded.size,
        variants=variants,
    )


@router.delete(
    "",
    response_model=MediaDeleteResponse,
    summary="Delete a stored reference",
)
async def delete_media(
    reference: Annotated[str, Query(min_length=1)],
    storage_router: StorageRouterDep,
    api_key: AuthenticatedUser,
) -> MediaDeleteResponse:
    """
    Delete a file. Always 200; `deleted` is False when nothing was removed.
    """
    deleted = await asyncio.to_thread(storage_router.delete, reference)
    return MediaDeleteResponse(reference=reference, deleted=deleted)


@router.get(
    "/url",
    response_model=ResolvedUrlResponse,
    summary="Resolve a stored reference to a URL",
)
async def resolve_url(
    resolver: UrlResolverDep,
    reference: Annotated[Optional[str], Query()] = None,
) -> ResolvedUrlResponse:
    return ResolvedUrlResponse(reference=reference, url=resolver.resolve(reference))


@router.post(
    "/urls",
    response_model=ResolveManyResponse,
    summary="Resolve several references at once",
)
async def resolve_urls(
    request: ResolveManyRequest,
    resolver: UrlResolverDep,
) -> ResolveManyResponse:
    return ResolveManyResponse(urls=resolver.resolve_many(request.references))


@router.get(
    "/variants",
    response_model=ImageVariantsResponse,
    summary="Size variants for an image reference",
    description="Without a reference, the placeholder set is returned.",
)
async def image_variants(
    variant_builder: VariantBuilderDep,
    reference: Annotated[Optional[str], Query()] = None,
) -> ImageVariantsResponse:
    return ImageVariantsResponse(**variant_builder.variants(reference).as_dict())
