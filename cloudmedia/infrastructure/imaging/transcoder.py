"""Image re-encoding with Pillow."""

import io
import logging
from typing import Optional

from PIL import Image, UnidentifiedImageError

from ...core.storage.errors import ImageProcessingError

logger = logging.getLogger(__name__)

DEFAULT_QUALITY = 80

# Pillow format names for the extensions we accept as targets
_FORMATS = {
    "webp": "WEBP",
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
    "gif": "GIF",
    "avif": "AVIF",
}
_ALPHA_FORMATS = {"WEBP", "PNG", "GIF", "AVIF"}


def encode_image(data: bytes, format: str = "webp", quality: Optional[int] = None) -> bytes:
    """Re-encode image bytes.

    Args:
        data: Original image data in any format Pillow can read
        format: Target extension (webp, jpg, png, ...)
        quality: Encoder quality (1-100), ignored by lossless formats

    Returns:
        Encoded image bytes

    Raises:
        ImageProcessingError: If the image cannot be read or the format is unknown
    """
    target = _FORMATS.get(format.lower().lstrip("."))
    if target is None:
        raise ImageProcessingError(f"Unsupported image format: {format}")

    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ImageProcessingError(f"Failed to read image: {e}") from e

    # JPEG has no alpha channel; palette and grayscale+alpha images need RGB(A)
    if target in _ALPHA_FORMATS:
        if img.mode not in ("RGB", "RGBA", "L") and target != "GIF":
            img = img.convert("RGBA" if "A" in img.getbands() or "transparency" in img.info else "RGB")
    elif img.mode not in ("RGB", "L"):
        img = img.convert("RGB")

    save_kwargs = {}
    if target in ("WEBP", "JPEG", "AVIF"):
        save_kwargs["quality"] = quality or DEFAULT_QUALITY
    if target == "JPEG":
        save_kwargs["optimize"] = True

    output = io.BytesIO()
    try:
        img.save(output, format=target, **save_kwargs)
    except (OSError, ValueError, KeyError) as e:
        raise ImageProcessingError(f"Failed to encode image as {format}: {e}") from e

    logger.debug(
        "Encoded image",
        extra={"format": target, "input_bytes": len(data), "output_bytes": output.tell()},
    )
    return output.getvalue()
