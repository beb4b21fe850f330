"""
Interfaces the storage core depends on.

Using Protocols here means the router and resolvers don't know whether
they're talking to a real filesystem, an S3 bucket, Cloudinary or an
in-memory fake in a test.
"""

from pathlib import Path
from typing import Any, Optional, Protocol, Union


class Disk(Protocol):
    """
    The closed set of filesystem operations the core needs.

    Anything beyond this set should be called directly on the underlying
    storage client by the host application.
    """

    def exists(self, path: str) -> bool:
        ...

    def get(self, path: str) -> bytes:
        """Read a file. Raises FileNotFoundError when it does not exist."""
        ...

    def put(self, path: str, contents: bytes) -> bool:
        ...

    def delete(self, path: str) -> bool:
        """Delete a file. Returns False if it did not exist."""
        ...

    def files(self, directory: Optional[str] = None) -> list[str]:
        """Files directly inside a directory (not recursive)."""
        ...

    def directories(self, directory: Optional[str] = None) -> list[str]:
        ...

    def url(self, path: str) -> str:
        """Absolute public URL for a stored path."""
        ...


class RemoteMediaClient(Protocol):
    """Interface for the remote object store (Cloudinary)."""

    def upload(self, file: Union[str, Path], options: dict[str, Any]) -> str:
        """Upload a file and return its complete delivery URL."""
        ...

    def destroy(self, public_id: str, resource_type: str = "image") -> bool:
        ...


class ImageEncoder(Protocol):
    """Re-encodes image bytes into a target format."""

    def __call__(self, data: bytes, format: str = "webp", quality: Optional[int] = None) -> bytes:
        ...
