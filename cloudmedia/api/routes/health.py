"""
Liveness, readiness and storage status endpoints.

An unusable Cloudinary account never makes the service unready, since
uploads fall back to the default disk; it shows up as "degraded". A
default disk that cannot be listed is fatal and answers 503.
"""

import asyncio
import logging
from typing import Any, Literal, Optional

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from ... import __version__
from ...config.settings import Settings
from ...core.storage import ConfigurationGuard
from ...core.storage.ports import Disk
from ..dependencies import MediaServicesDep, SettingsDep

logger = logging.getLogger(__name__)

router = APIRouter()

CheckStatus = Literal["ok", "degraded", "error"]


class HealthResponse(BaseModel):
    status: str
    version: str
    details: dict[str, Any] = {}


class ReadinessCheck(BaseModel):
    name: str
    status: CheckStatus
    error: Optional[str] = None


class ReadinessResponse(BaseModel):
    """Overall verdict plus one entry per dependency."""
    status: Literal["ready", "not_ready"]
    version: str
    checks: list[ReadinessCheck]


def _configuration_check(settings: Settings) -> ReadinessCheck:
    missing = settings.validate_required_fields()
    if missing:
        return ReadinessCheck(name="configuration", status="degraded", error=f"Missing: {', '.join(missing)}")
    return ReadinessCheck(name="configuration", status="ok")


async def _disk_check(disk: Disk) -> ReadinessCheck:
    try:
        await asyncio.to_thread(disk.directories)
    except Exception as e:
        logger.error("Default disk is not usable", extra={"error": str(e)})
        return ReadinessCheck(name="disk", status="error", error=str(e))
    return ReadinessCheck(name="disk", status="ok")


def _cloudinary_check(settings: Settings, guard: ConfigurationGuard) -> ReadinessCheck:
    if not settings.cloudinary_enabled:
        return ReadinessCheck(name="cloudinary", status="ok", error="disabled")
    if guard.is_remote_available():
        return ReadinessCheck(name="cloudinary", status="ok")
    return ReadinessCheck(
        name="cloudinary",
        status="degraded",
        error="Not configured; uploads use the default disk",
    )


@router.get(
    "",
    response_model=HealthResponse,
    summary="Liveness check",
    description="200 while the process is up. Touches no disk and no remote service.",
)
async def health_check(settings: SettingsDep) -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        details={
            "default_disk": settings.filesystem_disk,
            "cloudinary_enabled": settings.cloudinary_enabled,
            "mock_mode": {
                "cloudinary": settings.cloudinary_mock_mode,
            },
        }
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="200 when files can be stored, 503 when the default disk is unusable.",
    responses={503: {"model": ReadinessResponse, "description": "Default disk unusable"}},
)
async def readiness_check(
    response: Response,
    settings: SettingsDep,
    services: MediaServicesDep,
) -> ReadinessResponse:
    """
    Can this instance store files right now?

    Load balancers should stop routing uploads here on 503.
    """
    checks = [
        _configuration_check(settings),
        await _disk_check(services.disk),
        _cloudinary_check(settings, services.guard),
    ]
    ready = all(check.status != "error" for check in checks)

    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning(
            "Instance not ready",
            extra={"failed": [c.name for c in checks if c.status == "error"]}
        )

    return ReadinessResponse(
        status="ready" if ready else "not_ready",
        version=__version__,
        checks=checks,
    )


@router.get(
    "/storage",
    summary="Storage configuration status",
    description="Which backend uploads currently use and why. Never includes credentials.",
)
async def storage_status(services: MediaServicesDep) -> dict[str, Any]:
    return services.guard.configuration_status()
