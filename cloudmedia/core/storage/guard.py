"""
Decides whether the remote backend can be used.

Validation is cheap but not free (it builds an SDK client), and the answer
does not change while the process runs, so it is computed once and cached
in an explicitly owned ValidityCache. Tests and configuration reloads call
reset_cache() to force a recomputation.
"""

import logging
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

from ...config.settings import Settings
from .errors import ConfigurationError
from .models import Backend
from .ports import RemoteMediaClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheStatus(Enum):
    UNKNOWN = "unknown"
    VALID = "valid"
    INVALID = "invalid"


class ValidityCache:
    """
    A get-or-compute boolean with explicit reset.

    Two threads computing the first value concurrently is fine: both
    compute the same answer and the last single assignment wins.
    """

    def __init__(self) -> None:
        self._value: Optional[bool] = None

    @property
    def status(self) -> CacheStatus:
        value = self._value
        if value is None:
            return CacheStatus.UNKNOWN
        return CacheStatus.VALID if value else CacheStatus.INVALID

    def get_or_compute(self, compute: Callable[[], bool]) -> bool:
        value = self._value
        if value is None:
            value = bool(compute())
            self._value = value
        return value

    def reset(self) -> None:
        self._value = None


class ConfigurationGuard:
    """
    Safe access to the remote backend.

    Validation never raises: a missing credential or a client that fails
    to build simply makes the remote unavailable, and uploads go to the
    local disk. run_with_fallback() only raises when no fallback is given.
    """

    def __init__(
        self,
        settings: Settings,
        client_factory: Callable[[], RemoteMediaClient],
        cache: Optional[ValidityCache] = None,
    ) -> None:
        self._settings = settings
        self._client_factory = client_factory
        self._cache = cache if cache is not None else ValidityCache()

    @property
    def cache(self) -> ValidityCache:
        return self._cache

    def is_remote_available(self) -> bool:
        """Whether credentials are present and a client can be built (cached)."""
        return self._cache.get_or_compute(self._check_configuration)

    def recommended_backend(self) -> Backend:
        if self._settings.cloudinary_enabled and self.is_remote_available():
            return Backend.REMOTE
        return Backend.LOCAL

    def reset_cache(self) -> None:
        self._cache.reset()

    def create_remote_client(self) -> RemoteMediaClient:
        """Build a remote client. Raises ConfigurationError when credentials are incomplete."""
        return self._client_factory()

    def run_with_fallback(
        self,
        remote_op: Callable[[], T],
        fallback_op: Optional[Callable[[], T]] = None,
    ) -> T:
        """
        Run remote_op when the remote is usable, else fallback_op.

        A failing remote_op is logged and handed to fallback_op. Without a
        fallback, an unusable remote raises ConfigurationError and a failed
        remote_op re-raises its own error.
        """
        if not self.is_remote_available():
            if fallback_op is not None:
                return fallback_op()
            raise ConfigurationError("Cloudinary is not available and no fallback was given")

        try:
            return remote_op()
        except Exception as e:
            logger.error(
                "Cloudinary operation failed, attempting fallback",
                extra={"error": str(e), "error_type": type(e).__name__},
            )
            if fallback_op is None:
                raise
            return fallback_op()

    def configuration_status(self) -> dict[str, Any]:
        """Snapshot for health checks and debugging. Never includes secrets."""
        return {
            "cloudinary_enabled": self._settings.cloudinary_enabled,
            "cloudinary_configured": self.is_remote_available(),
            "cloudinary_mock_mode": self._settings.cloudinary_mock_mode,
            "cloud_name": self._settings.cloudinary_cloud_name or "not_set",
            "api_key_set": bool(self._settings.cloudinary_api_key),
            "api_secret_set": bool(self._settings.cloudinary_api_secret),
            "recommended_backend": self.recommended_backend().value,
            "default_disk": self._settings.filesystem_disk,
        }

    def _missing_credentials(self) -> list[str]:
        if self._settings.cloudinary_mock_mode:
            return []
        fields = {
            "cloud_name": self._settings.cloudinary_cloud_name,
            "api_key": self._settings.cloudinary_api_key,
            "api_secret": self._settings.cloudinary_api_secret,
        }
        return [name for name, value in fields.items() if not (value or "").strip()]

    def _check_configuration(self) -> bool:
        try:
            missing = self._missing_credentials()
            if missing:
                logger.warning(
                    "Cloudinary is not properly configured, falling back to local storage",
                    extra={"missing": missing},
                )
                return False

            self._client_factory()
            return True

        except Exception as e:
            logger.error(
                "Cloudinary configuration check failed",
                extra={"error": str(e), "error_type": type(e).__name__},
            )
            return False
