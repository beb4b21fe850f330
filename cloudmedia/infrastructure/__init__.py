"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- cloudinary: Remote media storage (Cloudinary SDK)
- storage: Filesystem disks (local, S3-compatible, in-memory)
- imaging: Image re-encoding (Pillow)

These wrappers implement the protocols in core.storage.ports.
"""
