"""
Filesystem disks for locally stored media.

Supports the local filesystem and S3-compatible buckets (AWS, R2, MinIO).
Includes an in-memory disk for local development without a filesystem.
"""

from .disks import LocalDisk, MemoryDisk, S3Disk, S3DiskConfig, create_disk, normalize_path

__all__ = ["LocalDisk", "MemoryDisk", "S3Disk", "S3DiskConfig", "create_disk", "normalize_path"]
