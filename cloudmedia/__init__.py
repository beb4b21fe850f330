"""
Cloudmedia - Cloudinary-backed media storage with local fallback.

This package contains the complete application:
- core: Framework-agnostic routing, fallback and URL rules
- infrastructure: Disks, Cloudinary client, image transcoding
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
