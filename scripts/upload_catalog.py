#!/usr/bin/env python3
"""Upload a local projects.json to Azure Blob Storage for the blob catalog backend."""

import os
import sys
import json
from pathlib import Path

from azure.core.exceptions import AzureError

from src.archive.blob_storage import create_blob_catalog_store
from src.archive.errors import CatalogError


def upload_catalog(storage_account: str, storage_key: str, projects_file: str,
                   container: str = 'catalog', blob_name: str = 'projects.json'):
    """Validate a local catalog and write it to blob storage, backing up any existing blob."""
    path = Path(projects_file)
    if not path.exists():
        print(f"Error: Projects file not found: {projects_file}")
        sys.exit(1)

    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    store = create_blob_catalog_store(storage_account, storage_key, container=container, blob_name=blob_name)
    projects = store.replace_all(data)

    print(f"\nUpload complete!")
    print(f"  Projects: {len(projects)}")
    print(f"  Blob: {container}/{blob_name}")


if __name__ == '__main__':
    import argparse
    parser = argparse.ArgumentParser(description='Upload projects.json to Azure Blob Storage')
    parser.add_argument('projects_file', nargs='?', default='./projects.json', help='Catalog file to upload')
    parser.add_argument('--container', default=os.environ.get('AZURE_CATALOG_CONTAINER', 'catalog'))
    parser.add_argument('--blob', default=os.environ.get('AZURE_CATALOG_BLOB', 'projects.json'))
    args = parser.parse_args()

    storage_account = os.environ.get('AZURE_STORAGE_ACCOUNT', '')
    storage_key = os.environ.get('AZURE_STORAGE_KEY')

    if not storage_account or not storage_key:
        print("Error: AZURE_STORAGE_ACCOUNT and AZURE_STORAGE_KEY environment variables required")
        sys.exit(1)

    print(f"Uploading catalog from: {args.projects_file}")
    print(f"To storage account: {storage_account}")
    print()

    try:
        upload_catalog(storage_account, storage_key, args.projects_file, container=args.container, blob_name=args.blob)
    except (CatalogError, AzureError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)
