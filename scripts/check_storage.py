#!/usr/bin/env python3
"""
Check which storage backend uploads will use, and optionally try one.

Prints the Cloudinary configuration status (never the credentials) and,
with --upload, stores a file through the router and resolves it, so the
fallback path can be verified against a real environment.

Usage:
    python scripts/check_storage.py
    python scripts/check_storage.py --upload path/to/image.jpg --entity products --entity-id 7
    python scripts/check_storage.py --upload image.jpg --folder tmp/check --delete

Requires:
    - .env file with CLOUDINARY_* settings (optional)
"""

import json
import sys
from pathlib import Path

# Add the project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def main():
    import argparse

    from cloudmedia.config.settings import get_settings
    from cloudmedia.core.storage import UploadedFile
    from cloudmedia.services import build_media_services

    parser = argparse.ArgumentParser(description='Check media storage configuration')
    parser.add_argument('--upload', help='File to upload through the router')
    parser.add_argument('--folder', help='Target folder for --upload')
    parser.add_argument('--entity', default='products', help='Entity type used when --folder is not given')
    parser.add_argument('--entity-id', default='check', help='Entity id used when --folder is not given')
    parser.add_argument('--delete', action='store_true', help='Delete the uploaded file afterwards')
    args = parser.parse_args()

    settings = get_settings()
    services = build_media_services(settings)

    print("Storage configuration:")
    print(json.dumps(services.guard.configuration_status(), indent=2))

    missing = settings.validate_required_fields()
    if missing:
        print(f"\nMissing settings: {', '.join(missing)}")

    if not args.upload:
        sys.exit(0)

    path = Path(args.upload)
    if not path.is_file():
        print(f"ERROR: Cannot find {args.upload}")
        sys.exit(1)

    folder = args.folder or settings.folder_for(args.entity, args.entity_id)
    reference = services.router.upload(UploadedFile.from_path(path), folder)

    print(f"\nStored reference: {reference}")
    print(f"URL:              {services.resolver.resolve(reference)}")
    print("Variants:")
    for key, url in services.variants.variants(reference).as_dict().items():
        print(f"  {key}: {url}")

    if args.delete:
        deleted = services.router.delete(reference)
        print(f"\nDeleted: {deleted}")
        sys.exit(0 if deleted else 1)


if __name__ == '__main__':
    main()
