"""
Size variants (small / medium / large / original) for image references.

Remote images get their sizes from on-the-fly transform parameters in the
delivery URL. Local images map to the cache/<size>/<path> convention served
by the host's image-cache renderer, which renders the file the first time
it is requested.
"""

import logging
import re
from typing import Iterable, Optional

from ...config.settings import Settings
from .models import ImageVariants
from .router import StorageRouter
from .urls import UrlResolver, is_complete_url

logger = logging.getLogger(__name__)

TRANSFORM_MARKER = "/image/upload/"

SIZE_TRANSFORMATIONS = {
    "small": "width=300,height=300,crop=fill,format=auto,quality=auto",
    "medium": "width=600,height=600,crop=fill,format=auto,quality=auto",
    "large": "width=1200,height=1200,crop=fill,format=auto,quality=auto",
}

_VERSION_SEGMENT = re.compile(r"^v\d+$")
# w_100,h_100,c_fill or width=300,height=300; only known parameter keys count,
# so folders such as "img_uploads" are never taken for transformations
_PARAM_KEYS = "ac|af|ar|a|bo|br|b|co|cs|c|dl|dn|dpr|du|d|eo|e|fl|fn|fps|f|g|h|if|ki|kf|l|o|pg|q|r|so|sp|t|u|vc|vs|w|x|y|z"
_TRANSFORM_PARAM = rf"(?:(?:{_PARAM_KEYS})_[^,/]+|[a-z_]+=[^,/]+)"
_TRANSFORM_SEGMENT = re.compile(rf"^{_TRANSFORM_PARAM}(?:,{_TRANSFORM_PARAM})*$")


def is_transform_segment(segment: str) -> bool:
    return bool(segment) and not _VERSION_SEGMENT.match(segment) and bool(_TRANSFORM_SEGMENT.match(segment))


def transform_url(url: str, size: str) -> str:
    """
    Rewrite a remote image URL for one size preset.

    An existing transform segment right after the marker is replaced;
    otherwise the preset is inserted after the marker. Everything after
    that (version and object path) is left byte-identical. URLs without
    the marker, and unknown sizes, come back unchanged.
    """
    params = SIZE_TRANSFORMATIONS.get(size)
    if params is None:
        return url

    head, marker, tail = url.partition(TRANSFORM_MARKER)
    if not marker:
        return url

    segment, slash, rest = tail.partition("/")
    if slash and is_transform_segment(segment):
        return f"{head}{marker}{params}/{rest}"
    return f"{head}{marker}{params}/{tail}"


class ImageUrlVariantBuilder:
    """Builds the four size URLs for an image reference."""

    def __init__(self, settings: Settings, resolver: UrlResolver, router: StorageRouter) -> None:
        self._settings = settings
        self._resolver = resolver
        self._router = router

    def variants(self, reference: Optional[str]) -> ImageVariants:
        if not reference:
            return self.placeholders()

        if is_complete_url(reference):
            if self._resolver.is_remote_url(reference):
                return ImageVariants(
                    small=transform_url(reference, "small"),
                    medium=transform_url(reference, "medium"),
                    large=transform_url(reference, "large"),
                    original=reference,
                )
            # Other complete URLs (S3, CDN): no size differentiation available
            return ImageVariants.uniform(reference)

        if not self._router.uses_local_disk:
            return ImageVariants.uniform(self._resolver.resolve(reference))

        path = reference.lstrip("/")
        return ImageVariants(
            small=self._app_url(f"cache/small/{path}"),
            medium=self._app_url(f"cache/medium/{path}"),
            large=self._app_url(f"cache/large/{path}"),
            original=self._app_url(f"cache/original/{path}"),
        )

    def gallery(self, references: Iterable[Optional[str]], check_exists: bool = True) -> list[ImageVariants]:
        """
        Variants for each usable reference, or one placeholder set if none.

        Local paths missing from the disk are skipped; complete URLs are
        never checked.
        """
        images = []
        for reference in references:
            if not reference:
                continue
            if check_exists and not is_complete_url(reference) and not self._resolver.disk.exists(reference):
                logger.debug("Skipping missing gallery image", extra={"path": reference})
                continue
            images.append(self.variants(reference))

        return images or [self.placeholders()]

    def placeholders(self) -> ImageVariants:
        """Placeholder set. Original always points at the large placeholder asset."""
        return ImageVariants(
            small=self._placeholder("small", self._settings.placeholder_small_image),
            medium=self._placeholder("medium", self._settings.placeholder_medium_image),
            large=self._placeholder("large", self._settings.placeholder_large_image),
            original=self._placeholder_asset("large"),
        )

    def _placeholder(self, size: str, override: Optional[str]) -> str:
        if override:
            return self._resolver.resolve(override)
        return self._placeholder_asset(size)

    def _placeholder_asset(self, size: str) -> str:
        return f"{self._settings.asset_base_url}/images/{size}-product-placeholder.webp"

    def _app_url(self, path: str) -> str:
        return f"{self._settings.app_url.rstrip('/')}/{path}"
