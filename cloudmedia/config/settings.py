"""
Storage configuration, read from the environment (and .env) by
pydantic-settings.

Every field maps to an upper-case environment variable of the same name,
e.g. CLOUDINARY_ENABLED or FILESYSTEM_DISK. Invalid values fail at
startup rather than on the first upload.

Cloudinary is optional. With it disabled (the default) or misconfigured,
every upload lands on the default filesystem disk.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_FOLDERS = {
    "products": "bagisto/products",
    "categories": "bagisto/categories",
    "channels": "bagisto/channels",
    "themes": "bagisto/themes",
    "customers": "bagisto/customers",
    "locales": "bagisto/locales",
}


class Settings(BaseSettings):
    """
    Storage, Cloudinary and API settings.

    List-like values (api_keys, cors_origins) are comma-separated strings;
    the folders mapping is given as JSON, e.g. FOLDERS='{"products": "shop/products"}'.
    """

    # API Configuration
    api_title: str = "Cloudmedia Storage API"
    api_version: str = "v1"
    api_keys: str = Field(
        default="dev-key-1",
        description="Comma-separated API keys for upload/delete. Using a list enables key rotation without downtime."
    )
    max_upload_size_mb: int = Field(
        default=20,
        description="Maximum size of a single upload in MB"
    )

    # Public URLs
    app_url: str = Field(
        default="http://localhost",
        description="Public base URL of the host application. Local URLs are built from it."
    )
    asset_url: str = Field(
        default="",
        description="Base URL for static theme assets (placeholders). Defaults to app_url."
    )

    # Filesystem disks
    filesystem_disk: str = Field(
        default="public",
        description="Default disk for local uploads: public, local, s3 or memory."
    )
    local_storage_root: str = Field(
        default="storage/app/public",
        description="Root directory of the local disk"
    )
    local_storage_url: Optional[str] = Field(
        default=None,
        description="Public URL of the local disk root. Defaults to {app_url}/storage."
    )

    # S3-compatible disk (AWS S3, R2, MinIO)
    s3_access_key_id: str = Field(default="", description="S3 access key ID")
    s3_secret_access_key: str = Field(default="", description="S3 secret access key")
    s3_bucket: str = Field(default="", description="S3 bucket for the s3 disk")
    s3_region: str = Field(default="auto", description="S3 region ('auto' for R2)")
    s3_endpoint_url: Optional[str] = Field(
        default=None,
        description="Custom endpoint for S3-compatible stores. None means AWS."
    )
    s3_public_url_base: Optional[str] = Field(
        default=None,
        description="Public/CDN base URL for objects on the s3 disk"
    )

    # Cloudinary Configuration
    cloudinary_enabled: bool = Field(
        default=False,
        description="Route image and video uploads to Cloudinary when it is configured."
    )
    cloudinary_cloud_name: str = Field(default="", description="Cloudinary cloud name")
    cloudinary_api_key: str = Field(default="", description="Cloudinary API key")
    cloudinary_api_secret: str = Field(default="", description="Cloudinary API secret")
    cloudinary_secure_url: bool = Field(
        default=True,
        description="Store https delivery URLs"
    )
    cloudinary_upload_preset: Optional[str] = Field(
        default=None,
        description="Upload preset added to every upload when set"
    )
    cloudinary_notification_url: Optional[str] = Field(
        default=None,
        description="Webhook notified by Cloudinary when an upload completes"
    )
    cloudinary_timeout_seconds: float = Field(
        default=10.0,
        description="Upper bound for a single remote call. A timeout counts as a remote failure."
    )
    cloudinary_domain: str = Field(
        default="cloudinary.com",
        description="Host suffix identifying remote references"
    )
    cloudinary_mock_mode: bool = Field(
        default=False,
        description="Use an in-memory Cloudinary stand-in. Enables local dev without an account."
    )

    # Default upload options per media type
    image_quality: str = "auto"
    image_format: str = "webp"
    image_fetch_format: str = "auto"
    video_quality: str = "auto"
    local_image_quality: int = Field(
        default=80,
        ge=1,
        le=100,
        description="WebP quality for images transcoded onto the local disk"
    )

    folders: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_FOLDERS),
        description="Folder per entity type (products, categories, channels, themes, customers, locales)"
    )

    # Placeholders used when an entity has no image
    placeholder_small_image: Optional[str] = None
    placeholder_medium_image: Optional[str] = None
    placeholder_large_image: Optional[str] = None

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def api_keys_list(self) -> list[str]:
        """Parse comma-separated API keys into a list."""
        return [key.strip() for key in self.api_keys.split(",") if key.strip()]

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def asset_base_url(self) -> str:
        return (self.asset_url or self.app_url).rstrip("/")

    @property
    def local_storage_base_url(self) -> str:
        """Public URL of the local disk root (Laravel's public disk convention)."""
        if self.local_storage_url:
            return self.local_storage_url.rstrip("/")
        return f"{self.app_url.rstrip('/')}/storage"

    def default_options(self, resource_type: str) -> dict[str, str]:
        """Default remote upload options for a media type ("image" or "video")."""
        if resource_type == "image":
            return {
                "quality": self.image_quality,
                "fetch_format": self.image_fetch_format,
                "format": self.image_format,
            }
        if resource_type == "video":
            return {"quality": self.video_quality}
        return {}

    def folder_for(self, entity: str, *parts: object) -> str:
        """
        Build the upload folder for an entity type.

        folder_for("products", 7) -> "bagisto/products/7". Unknown entity
        types are used as the folder name directly.
        """
        base = self.folders.get(entity, entity).strip("/")
        extra = [str(part).strip("/") for part in parts if str(part).strip("/")]
        return "/".join([base, *extra])

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set for the enabled features.

        Returns list of missing required fields. Missing Cloudinary
        credentials are reported but never fatal; uploads fall back to
        the local disk.
        """
        missing = []

        if self.cloudinary_enabled and not self.cloudinary_mock_mode:
            if not self.cloudinary_cloud_name:
                missing.append("CLOUDINARY_CLOUD_NAME")
            if not self.cloudinary_api_key:
                missing.append("CLOUDINARY_API_KEY")
            if not self.cloudinary_api_secret:
                missing.append("CLOUDINARY_API_SECRET")

        if self.filesystem_disk == "s3":
            if not self.s3_bucket:
                missing.append("S3_BUCKET")
            if not self.s3_access_key_id:
                missing.append("S3_ACCESS_KEY_ID")
            if not self.s3_secret_access_key:
                missing.append("S3_SECRET_ACCESS_KEY")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Settings for this process, read once.

    Call get_settings.cache_clear() after changing the environment.
    """
    return Settings()
