"""Azure Blob Storage backend for the project catalog."""

import json
import logging
import time

from azure.core.exceptions import AzureError, ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient

from .catalog import CatalogStore, backup_path_candidate
from .errors import CorruptData, StorageUnavailable

logger = logging.getLogger(__name__)


def is_blob_storage_enabled(account_name, account_key):
    """Check if blob storage is configured."""
    return bool(account_name and account_key)


def get_blob_service_client(account_name, account_key):
    """Get blob service client."""
    if not is_blob_storage_enabled(account_name, account_key):
        raise RuntimeError("Azure Blob Storage not configured")

    account_url = f"https://{account_name}.blob.core.windows.net"
    return BlobServiceClient(account_url=account_url, credential=account_key)


class BlobCatalogStore(CatalogStore):
    """Catalog kept as a single JSON blob.

    Backups are uploaded to the same container as '<blob>.backup.<epoch millis>'.
    """

    def __init__(self, container_client, blob_name='projects.json'):
        super().__init__()
        self.container_client = container_client
        self.blob_name = blob_name

    def describe(self):
        return f"blob:{self.container_client.container_name}/{self.blob_name}"

    def _download(self):
        """Raw bytes of the catalog blob, or None if it does not exist."""
        blob_client = self.container_client.get_blob_client(self.blob_name)
        try:
            return blob_client.download_blob().readall()
        except ResourceNotFoundError:
            return None

    def _read_document(self):
        try:
            raw = self._download()
        except AzureError as e:
            raise StorageUnavailable(f'Failed to read catalog blob: {e}') from e

        if raw is None:
            logger.info("Catalog blob %s does not exist, starting with empty catalog", self.blob_name)
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            raise CorruptData(f'Catalog blob is not valid JSON: {e}') from e

    def _write_document(self, data):
        payload = json.dumps(data, indent=2, ensure_ascii=False).encode('utf-8')
        try:
            self.container_client.upload_blob(name=self.blob_name, data=payload, overwrite=True)
        except AzureError as e:
            raise StorageUnavailable(f'Failed to write catalog blob: {e}') from e

    def backup(self):
        base = f"{self.blob_name}.backup.{int(time.time() * 1000)}"
        try:
            raw = self._download()
            if raw is None:
                logger.debug("No catalog blob %s yet, skipping backup", self.blob_name)
                return None
            seq = 0
            while True:
                backup_name = backup_path_candidate(base, seq)
                try:
                    self.container_client.upload_blob(name=backup_name, data=raw, overwrite=False)
                    break
                except ResourceExistsError:
                    seq += 1
        except AzureError as e:
            logger.warning("Failed to create backup of %s: %s", self.blob_name, e)
            return None

        logger.info("Created backup: %s", backup_name)
        return backup_name


def create_blob_catalog_store(account_name, account_key, container='catalog', blob_name='projects.json'):
    """Build a BlobCatalogStore, creating the container if it is missing."""
    blob_service_client = get_blob_service_client(account_name, account_key)
    container_client = blob_service_client.get_container_client(container)
    try:
        if not container_client.exists():
            container_client.create_container()
            logger.info("Created container: %s", container)
    except AzureError as e:
        raise StorageUnavailable(f'Failed to open container {container}: {e}') from e
    return BlobCatalogStore(container_client, blob_name=blob_name)
