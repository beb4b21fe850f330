"""
Exceptions raised by the storage layer.

Only some of these ever reach a caller. Remote failures are absorbed by the
router (fallback for uploads, a False return for deletes); configuration
problems become a boolean in the guard. Local filesystem errors are plain
OSError and propagate, since there is nowhere left to fall back to.
"""

from typing import Optional


class StorageError(Exception):
    """Raised when storage operations fail."""

    def __init__(self, message: str, details: Optional[dict[str, str]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(StorageError):
    """Remote credentials are missing or the client cannot be built."""
    pass


class RemoteUploadError(StorageError):
    """The remote provider rejected or failed an upload."""
    pass


class RemoteDeleteError(StorageError):
    """The remote provider failed to destroy an object."""
    pass


class ImageProcessingError(StorageError):
    """An image could not be decoded or re-encoded."""
    pass
