"""
Azure Blob Storage service for inspection and asset photos.

Photos are stored in a single container (``uploads`` by default) under
per-record folders, e.g. ``vit-assets/{id}/photo-{timestamp}.jpg``.
"""
import base64
import binascii
import logging
import os
import re
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from urllib.parse import quote

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContainerSasPermissions, ContentSettings, generate_container_sas
from django.conf import settings

logger = logging.getLogger(__name__)

AZURE_STORAGE_CONNECTION_STRING = getattr(
    settings,
    'AZURE_STORAGE_CONNECTION_STRING',
    os.getenv('AZURE_STORAGE_CONNECTION_STRING', '')
)

AZURE_STORAGE_ACCOUNT_NAME = getattr(
    settings,
    'AZURE_STORAGE_ACCOUNT_NAME',
    os.getenv('AZURE_STORAGE_ACCOUNT_NAME', '')
)

AZURE_STORAGE_ACCOUNT_KEY = getattr(
    settings,
    'AZURE_STORAGE_ACCOUNT_KEY',
    os.getenv('AZURE_STORAGE_ACCOUNT_KEY', '')
)

AZURE_STORAGE_CONTAINER = getattr(
    settings,
    'AZURE_STORAGE_CONTAINER',
    os.getenv('AZURE_STORAGE_CONTAINER', 'uploads')
)

# Use SAS tokens for blob URLs (if container is private)
AZURE_USE_SAS_TOKENS = getattr(
    settings,
    'AZURE_USE_SAS_TOKENS',
    os.getenv('AZURE_USE_SAS_TOKENS', 'false').lower() == 'true'
)

PHOTO_CACHE_CONTROL = 'public, max-age=31536000'
SAS_EXPIRY_HOURS = 8760  # 1 year

PHOTO_TYPE_FOLDERS = {
    'overhead-inspection': 'overhead-inspections',
    'vit-asset': 'vit-assets',
    'vit-inspection': 'vit-inspections',
    'substation-inspection': 'substation-inspections',
}
DEFAULT_PHOTO_FOLDER = 'photos'

DATA_URL_RE = re.compile(r'^data:(?P<mime>image/[a-zA-Z0-9.+-]+);base64,(?P<data>.+)$', re.DOTALL)
# Bare base64 payloads (legacy records stored without the data: prefix)
BASE64_RE = re.compile(r'^[A-Za-z0-9+/]+={0,2}$')
MIN_BARE_BASE64_LENGTH = 100


class BlobStorageError(Exception):
    """Raised when a blob operation cannot be completed"""


def is_configured() -> bool:
    return bool(AZURE_STORAGE_CONNECTION_STRING or (AZURE_STORAGE_ACCOUNT_NAME and AZURE_STORAGE_ACCOUNT_KEY))


def get_connection_string() -> str:
    if AZURE_STORAGE_CONNECTION_STRING:
        return AZURE_STORAGE_CONNECTION_STRING
    return (
        f"DefaultEndpointsProtocol=https;AccountName={AZURE_STORAGE_ACCOUNT_NAME};"
        f"AccountKey={AZURE_STORAGE_ACCOUNT_KEY};EndpointSuffix=core.windows.net"
    )


def get_account_credentials() -> Tuple[str, str]:
    """Account name and key, parsed from the connection string when needed"""
    if AZURE_STORAGE_ACCOUNT_NAME and AZURE_STORAGE_ACCOUNT_KEY:
        return AZURE_STORAGE_ACCOUNT_NAME, AZURE_STORAGE_ACCOUNT_KEY
    parts = dict(
        part.split('=', 1) for part in AZURE_STORAGE_CONNECTION_STRING.split(';') if '=' in part
    )
    return parts.get('AccountName', ''), parts.get('AccountKey', '')


def get_blob_service_client() -> BlobServiceClient:
    if not is_configured():
        raise BlobStorageError('Azure Storage not configured')
    return BlobServiceClient.from_connection_string(get_connection_string())


def is_base64_image(value) -> bool:
    """True for data URLs (data:image/...) and long bare base64 strings"""
    if not isinstance(value, str) or not value:
        return False
    if value.startswith('data:image/'):
        return True
    return len(value) >= MIN_BARE_BASE64_LENGTH and bool(BASE64_RE.match(value))


def decode_data_url(value: str) -> Tuple[bytes, str]:
    """
    Decode a data URL or bare base64 string.

    Returns:
        (raw bytes, mime type)

    Raises:
        ValueError: if the payload is not valid base64
    """
    match = DATA_URL_RE.match(value.strip())
    if match:
        mime_type, payload = match.group('mime'), match.group('data')
    else:
        mime_type, payload = 'image/jpeg', value.strip()
    try:
        return base64.b64decode(payload, validate=True), mime_type
    except (binascii.Error, ValueError) as e:
        raise ValueError(f'Invalid base64 image data: {str(e)}')


def build_blob_name(folder: str, object_id, label: str = 'photo', extension: str = 'jpg') -> str:
    """``{folder}/{object_id}/{label}-{timestamp_ms}.{extension}``"""
    timestamp = int(time.time() * 1000)
    return f"{folder}/{object_id}/{label}-{timestamp}.{extension}"


def build_upload_blob_name(photo_type: str, asset_id, extension: str = 'jpg') -> str:
    """Blob name for ad-hoc uploads, unique per call"""
    folder = PHOTO_TYPE_FOLDERS.get(photo_type, DEFAULT_PHOTO_FOLDER)
    unique_id = uuid.uuid4().hex[:12]
    return build_blob_name(folder, asset_id, f"image-{unique_id}", extension)


def generate_sas_token(expiry_hours: int = SAS_EXPIRY_HOURS) -> Optional[str]:
    """
    Generate a read-only container SAS token.

    Returns:
        SAS token string or None if account credentials are not available
    """
    account_name, account_key = get_account_credentials()
    if not account_name or not account_key:
        return None

    expiry_time = datetime.now(timezone.utc) + timedelta(hours=expiry_hours)
    return generate_container_sas(
        account_name=account_name,
        container_name=AZURE_STORAGE_CONTAINER,
        account_key=account_key,
        permission=ContainerSasPermissions(read=True),
        expiry=expiry_time
    )


def construct_blob_url(blob_name: str, with_sas: Optional[bool] = None) -> Optional[str]:
    """
    Public URL for a blob; a signed URL when SAS tokens are enabled.

    Returns None when the storage account is not configured.
    """
    account_name, _ = get_account_credentials()
    if not account_name:
        return None

    encoded_blob_name = quote(blob_name, safe='/')
    base_url = f"https://{account_name}.blob.core.windows.net/{AZURE_STORAGE_CONTAINER}/{encoded_blob_name}"

    use_sas = AZURE_USE_SAS_TOKENS if with_sas is None else with_sas
    if use_sas:
        sas_token = generate_sas_token()
        if sas_token:
            return f"{base_url}?{sas_token}"
        logger.warning(f"Failed to generate SAS token for blob {blob_name}, using direct URL (may fail if container is private)")
    return base_url


def upload_bytes(data: bytes, blob_name: str, content_type: str = 'image/jpeg') -> str:
    """
    Upload raw bytes and return the blob URL.

    Raises:
        BlobStorageError: when storage is not configured or the upload fails
    """
    try:
        blob_client = get_blob_service_client().get_blob_client(
            container=AZURE_STORAGE_CONTAINER,
            blob=blob_name
        )
        blob_client.upload_blob(
            data,
            overwrite=True,
            content_settings=ContentSettings(content_type=content_type, cache_control=PHOTO_CACHE_CONTROL),
        )
    except AzureError as e:
        logger.error(f"Failed to upload blob {blob_name}: {str(e)}", exc_info=True)
        raise BlobStorageError(f'Failed to upload {blob_name}: {str(e)}')

    logger.info(f"Uploaded blob {blob_name} ({len(data)} bytes)")
    return construct_blob_url(blob_name)


def upload_base64_image(value: str, blob_name: str) -> str:
    """Decode a base64 image and upload it as JPEG content"""
    try:
        data, _ = decode_data_url(value)
    except ValueError as e:
        raise BlobStorageError(str(e))
    return upload_bytes(data, blob_name, content_type='image/jpeg')


def delete_blob(blob_name: str) -> bool:
    """
    Delete a blob.

    Returns:
        True if deleted or already missing

    Raises:
        BlobStorageError: when storage is not configured or the delete fails
    """
    try:
        blob_client = get_blob_service_client().get_blob_client(
            container=AZURE_STORAGE_CONTAINER,
            blob=blob_name
        )
        blob_client.delete_blob()
    except ResourceNotFoundError:
        # Blob doesn't exist, which is fine - may have been deleted already
        logger.debug(f"Blob {blob_name} already deleted")
        return True
    except AzureError as e:
        logger.error(f"Failed to delete blob {blob_name}: {str(e)}", exc_info=True)
        raise BlobStorageError(f'Failed to delete {blob_name}: {str(e)}')
    logger.info(f"Deleted blob {blob_name}")
    return True
