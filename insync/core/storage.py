"""
Azure Blob Storage service for uploaded files (documents and grievance attachments).

Blobs are stored under `<collection>/<timestamp>_<filename>`; the database
row keeps both the public URL and the blob path so the blob can be deleted
later.
"""
import os
import logging
import time
from typing import Optional

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContentSettings
from django.conf import settings

from .exceptions import StorageError

logger = logging.getLogger(__name__)


def _setting(name: str, default: str = '') -> str:
    return getattr(settings, name, os.getenv(name, default))


def build_storage_path(collection: str, filename: str, timestamp_ms: Optional[int] = None) -> str:
    """
    Build the blob path for an upload.

    Args:
        collection: Top-level folder, e.g. 'documents' or 'grievances'
        filename: Original file name as uploaded
        timestamp_ms: Upload time in epoch milliseconds (defaults to now)
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{collection}/{timestamp_ms}_{filename}"


def get_container_client():
    """Container client for the configured storage account"""
    connection_string = _setting('AZURE_STORAGE_CONNECTION_STRING')
    if not connection_string:
        raise StorageError('Azure Storage is not configured (AZURE_STORAGE_CONNECTION_STRING)')
    container = _setting('AZURE_STORAGE_CONTAINER', 'insync-hub')
    blob_service_client = BlobServiceClient.from_connection_string(connection_string)
    return blob_service_client.get_container_client(container)


def upload_file(storage_path: str, data, content_type: Optional[str] = None) -> str:
    """
    Upload a file and return its URL.

    Raises:
        StorageError: storage not configured or the upload failed
    """
    container_client = get_container_client()
    content_settings = ContentSettings(content_type=content_type) if content_type else None
    try:
        blob_client = container_client.upload_blob(
            name=storage_path,
            data=data,
            overwrite=True,
            content_settings=content_settings,
        )
    except AzureError as e:
        logger.error(f"Failed to upload blob {storage_path}: {str(e)}", exc_info=True)
        raise StorageError('File could not be uploaded.') from e
    logger.info(f"Uploaded blob {storage_path}")
    return blob_client.url


def delete_file(storage_path: Optional[str]) -> bool:
    """
    Delete a blob.

    Returns:
        True if the blob was deleted or did not exist, False if deletion failed
    """
    if not storage_path:
        return True
    try:
        get_container_client().delete_blob(storage_path)
    except ResourceNotFoundError:
        # Already gone
        return True
    except (AzureError, StorageError) as e:
        logger.warning(f"Failed to delete blob {storage_path}: {str(e)}")
        return False
    logger.info(f"Deleted blob {storage_path}")
    return True
