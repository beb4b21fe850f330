"""
Resolving disks and the host-facing storage facade.

ResolvingDisk wraps a disk and overrides only url(), so stored Cloudinary
URLs come back untouched while relative paths still get the disk's URL.
MediaStorage hands out those wrappers by disk name.
"""

import logging
from typing import Iterable, Mapping, Optional

from .ports import Disk
from .urls import UrlResolver

logger = logging.getLogger(__name__)


class ResolvingDisk:
    """
    A Disk whose url() understands complete remote URLs.

    Every other method is delegated to the wrapped disk unchanged.
    """

    def __init__(self, inner: Disk, resolver: UrlResolver) -> None:
        self._inner = inner
        self._resolver = resolver

    @property
    def inner(self) -> Disk:
        return self._inner

    def exists(self, path: str) -> bool:
        return self._inner.exists(path)

    def get(self, path: str) -> bytes:
        return self._inner.get(path)

    def put(self, path: str, contents: bytes) -> bool:
        return self._inner.put(path, contents)

    def delete(self, path: str) -> bool:
        return self._inner.delete(path)

    def files(self, directory: Optional[str] = None) -> list[str]:
        return self._inner.files(directory)

    def directories(self, directory: Optional[str] = None) -> list[str]:
        return self._inner.directories(directory)

    def url(self, path: str) -> Optional[str]:
        return self._resolver.resolve(path)


class MediaStorage:
    """
    Drop-in storage facade with reference-aware URLs.

    `disk_name=None` means the default disk. URL calls always go through
    the resolver, which uses the raw default disk for relative paths.
    """

    def __init__(self, resolver: UrlResolver, disks: Mapping[str, Disk], default_disk: str) -> None:
        if default_disk not in disks:
            raise ValueError(f"Default disk {default_disk!r} is not registered")
        self._resolver = resolver
        self._disks = dict(disks)
        self._default_disk = default_disk

    @property
    def default_disk(self) -> str:
        return self._default_disk

    def disk(self, name: Optional[str] = None) -> ResolvingDisk:
        name = name or self._default_disk
        try:
            inner = self._disks[name]
        except KeyError:
            raise ValueError(f"Disk [{name}] is not configured") from None
        return ResolvingDisk(inner, self._resolver)

    def url(self, path: Optional[str], disk_name: Optional[str] = None) -> Optional[str]:
        if not path:
            return None
        return self.disk(disk_name).url(path)

    def urls(self, paths: Iterable[Optional[str]], disk_name: Optional[str] = None) -> list[Optional[str]]:
        return [self.url(path, disk_name) for path in paths]

    def exists(self, path: str, disk_name: Optional[str] = None) -> bool:
        return self.disk(disk_name).exists(path)

    def get(self, path: str, disk_name: Optional[str] = None) -> bytes:
        return self.disk(disk_name).get(path)

    def put(self, path: str, contents: bytes, disk_name: Optional[str] = None) -> bool:
        return self.disk(disk_name).put(path, contents)

    def delete(self, path: str, disk_name: Optional[str] = None) -> bool:
        return self.disk(disk_name).delete(path)

    def files(self, directory: Optional[str] = None, disk_name: Optional[str] = None) -> list[str]:
        return self.disk(disk_name).files(directory)

    def directories(self, directory: Optional[str] = None, disk_name: Optional[str] = None) -> list[str]:
        return self.disk(disk_name).directories(directory)
