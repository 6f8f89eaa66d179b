"""
Upload validation for photos: type whitelist, size limit, file signature and name sanitizing
"""
import os
import re

ALLOWED_IMAGE_TYPES = {
    'jpg': ['image/jpeg'],
    'jpeg': ['image/jpeg'],
    'png': ['image/png'],
    'gif': ['image/gif'],
}

MAX_PHOTO_SIZE = 10 * 1024 * 1024  # 10MB

FILE_SIGNATURES = {
    'jpg': b'\xff\xd8\xff',
    'jpeg': b'\xff\xd8\xff',
    'png': b'\x89PNG\r\n\x1a\n',
    'gif': b'GIF8',
}

MIME_EXTENSIONS = {
    'image/jpeg': 'jpg',
    'image/png': 'png',
    'image/gif': 'gif',
}


class UploadValidationError(Exception):
    """Raised when an uploaded photo is rejected"""


def sanitize_filename(filename: str) -> str:
    """Strip path components and anything outside [A-Za-z0-9._-]"""
    if not filename or not isinstance(filename, str):
        raise UploadValidationError('Invalid file name')
    name = os.path.basename(filename.replace('\\', '/'))
    name = re.sub(r'[^A-Za-z0-9._-]', '_', name).lstrip('.')
    if not name:
        raise UploadValidationError('Invalid file name')
    return name[:200]


def get_extension(filename: str) -> str:
    return os.path.splitext(filename)[1].lstrip('.').lower()


def detect_image_type(data: bytes):
    """Extension matching the file signature, or None"""
    for extension, signature in FILE_SIGNATURES.items():
        if data.startswith(signature):
            return 'jpg' if extension == 'jpeg' else extension
    return None


def validate_image_bytes(data: bytes, filename: str = None, content_type: str = None) -> str:
    """
    Validate an image payload and return its normalized extension.

    Raises:
        UploadValidationError: on empty, oversized or non-image content
    """
    if not data:
        raise UploadValidationError('Empty file')
    if len(data) > MAX_PHOTO_SIZE:
        raise UploadValidationError(f'File too large. Maximum size is {MAX_PHOTO_SIZE // (1024 * 1024)}MB')

    if filename:
        extension = get_extension(sanitize_filename(filename))
        if extension not in ALLOWED_IMAGE_TYPES:
            raise UploadValidationError(f'File type .{extension or "?"} is not allowed')
        if content_type and content_type not in ALLOWED_IMAGE_TYPES[extension]:
            raise UploadValidationError(f'Content type {content_type} does not match .{extension}')

    detected = detect_image_type(data)
    if detected is None:
        raise UploadValidationError('File content is not a supported image')
    if filename:
        declared = get_extension(filename)
        declared = 'jpg' if declared == 'jpeg' else declared
        if declared != detected:
            raise UploadValidationError('File content does not match its extension')
    return detected
