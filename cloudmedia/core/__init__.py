"""
Core media storage logic.

This module is framework-agnostic - it doesn't import FastAPI, boto3,
the Cloudinary SDK or Pillow. Those live in infrastructure and are handed
in through the protocols in core.storage.ports, so the routing and URL
rules can be tested in isolation.
"""
