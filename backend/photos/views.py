import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser, JSONParser
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from backend.core.permissions import IsApprovedUser, feature_permission
from backend.core.utils import create_audit_log
from . import blob_storage
from .blob_storage import BlobStorageError
from .validators import UploadValidationError, validate_image_bytes

logger = logging.getLogger(__name__)

PHOTO_PERMISSIONS = [IsAuthenticated, IsApprovedUser, feature_permission('photos')]


def _storage_not_configured():
    logger.error("Photo upload attempted but Azure Storage is not configured")
    return Response({'error': 'Azure Storage not configured'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def _store_photo(request, data, asset_id, photo_type, extension):
    blob_name = blob_storage.build_upload_blob_name(photo_type, asset_id, extension)
    content_type = f"image/{'jpeg' if extension == 'jpg' else extension}"
    try:
        url = blob_storage.upload_bytes(data, blob_name, content_type=content_type)
    except BlobStorageError as e:
        return Response({'error': f'Failed to upload photo: {str(e)}'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    create_audit_log(request, 'photo_upload', 'Photo', blob_name, object_name=str(asset_id),
                     changes={'photo_type': photo_type, 'size': len(data)})
    return Response({'success': True, 'url': url, 'blob_name': blob_name}, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes(PHOTO_PERMISSIONS)
@parser_classes([JSONParser])
def upload_photo(request):
    """Upload a base64 (data URL) photo"""
    if not blob_storage.is_configured():
        return _storage_not_configured()

    image = request.data.get('image')
    asset_id = request.data.get('asset_id')
    photo_type = request.data.get('photo_type', '')
    if not image or not asset_id:
        return Response({'error': 'image and asset_id are required'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        data, mime_type = blob_storage.decode_data_url(image)
        extension = validate_image_bytes(data)
    except (ValueError, UploadValidationError) as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    logger.info(f"User {request.user.username} uploading {photo_type or 'generic'} photo for {asset_id} ({mime_type})")
    return _store_photo(request, data, asset_id, photo_type, extension)


@api_view(['POST'])
@permission_classes(PHOTO_PERMISSIONS)
@parser_classes([MultiPartParser, FormParser])
def upload_photo_file(request):
    """Upload a photo as multipart form data (field ``photo``)"""
    if not blob_storage.is_configured():
        return _storage_not_configured()

    photo = request.FILES.get('photo')
    asset_id = request.data.get('asset_id')
    photo_type = request.data.get('photo_type', '')
    if photo is None or not asset_id:
        return Response({'error': 'photo file and asset_id are required'}, status=status.HTTP_400_BAD_REQUEST)

    data = photo.read()
    try:
        extension = validate_image_bytes(data, filename=photo.name, content_type=photo.content_type)
    except UploadValidationError as e:
        return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return _store_photo(request, data, asset_id, photo_type, extension)


@api_view(['DELETE'])
@permission_classes(PHOTO_PERMISSIONS)
def delete_photo(request):
    """Delete a photo by blob name"""
    if not blob_storage.is_configured():
        return _storage_not_configured()

    blob_name = request.data.get('blob_name') or request.query_params.get('blob_name')
    if not blob_name:
        return Response({'error': 'blob_name is required'}, status=status.HTTP_400_BAD_REQUEST)
    if '..' in blob_name or blob_name.startswith('/'):
        return Response({'error': 'Invalid blob name'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        blob_storage.delete_blob(blob_name)
    except BlobStorageError as e:
        return Response({'error': f'Failed to delete photo: {str(e)}'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    create_audit_log(request, 'photo_delete', 'Photo', blob_name)
    return Response({'success': True, 'blob_name': blob_name})
