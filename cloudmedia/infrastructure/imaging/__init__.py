"""Image re-encoding for uploads."""

from .transcoder import encode_image

__all__ = ["encode_image"]
