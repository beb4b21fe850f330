"""
URL normalization for stored references.

A reference is classified by shape alone: if it parses as an absolute URL
it is already displayable (remote references are always stored complete);
anything else is a path on the default disk. No network call is involved.
"""

from typing import Iterable, Optional
from urllib.parse import urlparse

from .ports import Disk

DEFAULT_REMOTE_DOMAIN = "cloudinary.com"


def is_complete_url(value: Optional[str]) -> bool:
    """True for absolute URLs with a scheme and a host."""
    if not value or any(ch.isspace() for ch in value):
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(parsed.scheme and parsed.netloc)


def is_remote_url(value: Optional[str], domain: str = DEFAULT_REMOTE_DOMAIN) -> bool:
    """True for complete URLs served from the remote provider's domain."""
    if not is_complete_url(value):
        return False
    host = (urlparse(value).hostname or "").lower()
    domain = domain.lower().lstrip(".")
    return host == domain or host.endswith("." + domain)


def is_local_path(value: Optional[str]) -> bool:
    return not is_complete_url(value)


class UrlResolver:
    """
    Turns stored references into displayable URLs.

    The disk given here must be the raw disk, never a ResolvingDisk: the
    resolver is what ResolvingDisk.url() calls, so going back through it
    would recurse forever.
    """

    def __init__(self, disk: Disk, remote_domain: str = DEFAULT_REMOTE_DOMAIN) -> None:
        self._disk = disk
        self._remote_domain = remote_domain

    @property
    def disk(self) -> Disk:
        return self._disk

    @property
    def remote_domain(self) -> str:
        return self._remote_domain

    def resolve(self, reference: Optional[str]) -> Optional[str]:
        if not reference:
            return None
        if is_complete_url(reference):
            return reference
        return self._disk.url(reference)

    def resolve_many(self, references: Iterable[Optional[str]]) -> list[Optional[str]]:
        return [self.resolve(reference) for reference in references]

    def is_complete_url(self, value: Optional[str]) -> bool:
        return is_complete_url(value)

    def is_remote_url(self, value: Optional[str]) -> bool:
        return is_remote_url(value, self._remote_domain)

    def is_local_path(self, value: Optional[str]) -> bool:
        return is_local_path(value)
