"""
Cloudinary integration for remote media storage.

Includes mock mode for local development without an account.
"""

from .client import CloudinaryClient, CloudinaryConfig, MockCloudinaryClient, create_cloudinary_client

__all__ = ["CloudinaryClient", "CloudinaryConfig", "MockCloudinaryClient", "create_cloudinary_client"]
