"""
Test suite for the photos module
Tests: upload validation, blob naming/URLs and the upload/delete endpoints (Azure calls mocked)
"""
import base64
from unittest.mock import patch

from azure.core.exceptions import AzureError, ResourceNotFoundError
from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from rest_framework import status

from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from . import blob_storage
from .blob_storage import BlobStorageError
from .validators import UploadValidationError, sanitize_filename, validate_image_bytes

JPEG_BYTES = b'\xff\xd8\xff\xe0' + b'\x00' * 128
PNG_BYTES = b'\x89PNG\r\n\x1a\n' + b'\x00' * 128
BLOB_URL = 'https://ecgstore.blob.core.windows.net/uploads/vit-assets/42/image.jpg'


class ValidatorTests(TestCase):
    """Filename and content checks"""

    def test_sanitize_filename(self):
        self.assertEqual(sanitize_filename('../../etc/pole 1.jpg'), 'pole_1.jpg')
        self.assertEqual(sanitize_filename('C:\\photos\\.hidden.png'), 'hidden.png')
        with self.assertRaises(UploadValidationError):
            sanitize_filename('')

    def test_detects_type_from_signature(self):
        self.assertEqual(validate_image_bytes(JPEG_BYTES), 'jpg')
        self.assertEqual(validate_image_bytes(PNG_BYTES, filename='site.png', content_type='image/png'), 'png')

    def test_rejects_bad_uploads(self):
        with self.assertRaises(UploadValidationError):
            validate_image_bytes(b'')
        with self.assertRaises(UploadValidationError):
            validate_image_bytes(b'%PDF-1.4 not an image')
        with self.assertRaises(UploadValidationError):
            validate_image_bytes(JPEG_BYTES, filename='report.exe')
        with self.assertRaises(UploadValidationError):
            validate_image_bytes(PNG_BYTES, filename='photo.jpg')
        with self.assertRaises(UploadValidationError):
            validate_image_bytes(JPEG_BYTES, filename='photo.jpg', content_type='image/png')

    @patch('backend.photos.validators.MAX_PHOTO_SIZE', 64)
    def test_rejects_oversized(self):
        with self.assertRaises(UploadValidationError):
            validate_image_bytes(JPEG_BYTES)


class BlobStorageTests(TestCase):
    """Helpers in blob_storage with the Azure client mocked"""

    def test_is_base64_image(self):
        self.assertTrue(blob_storage.is_base64_image('data:image/png;base64,AAAA'))
        self.assertTrue(blob_storage.is_base64_image('A' * 120))
        self.assertFalse(blob_storage.is_base64_image(BLOB_URL))
        self.assertFalse(blob_storage.is_base64_image('AAAA'))
        self.assertFalse(blob_storage.is_base64_image(None))

    def test_decode_data_url(self):
        data, mime_type = blob_storage.decode_data_url('data:image/png;base64,' + base64.b64encode(PNG_BYTES).decode())
        self.assertEqual(data, PNG_BYTES)
        self.assertEqual(mime_type, 'image/png')
        with self.assertRaises(ValueError):
            blob_storage.decode_data_url('data:image/png;base64,***')

    def test_blob_names(self):
        self.assertRegex(blob_storage.build_blob_name('vit-assets', 7, 'photo'), r'^vit-assets/7/photo-\d+\.jpg$')
        self.assertRegex(blob_storage.build_upload_blob_name('overhead-inspection', 'OH-1', 'png'),
                         r'^overhead-inspections/OH-1/image-[0-9a-f]{12}-\d+\.png$')
        self.assertTrue(blob_storage.build_upload_blob_name('unknown', 1).startswith('photos/1/'))

    @patch('backend.photos.blob_storage.AZURE_USE_SAS_TOKENS', False)
    @patch('backend.photos.blob_storage.AZURE_STORAGE_CONTAINER', 'uploads')
    @patch('backend.photos.blob_storage.AZURE_STORAGE_ACCOUNT_KEY', '')
    @patch('backend.photos.blob_storage.AZURE_STORAGE_ACCOUNT_NAME', '')
    @patch('backend.photos.blob_storage.AZURE_STORAGE_CONNECTION_STRING',
           'DefaultEndpointsProtocol=https;AccountName=ecgstore;AccountKey=c2VjcmV0;EndpointSuffix=core.windows.net')
    def test_construct_blob_url_from_connection_string(self):
        self.assertTrue(blob_storage.is_configured())
        self.assertEqual(
            blob_storage.construct_blob_url('vit-assets/1/a b.jpg'),
            'https://ecgstore.blob.core.windows.net/uploads/vit-assets/1/a%20b.jpg',
        )

    @patch('backend.photos.blob_storage.AZURE_STORAGE_CONNECTION_STRING', '')
    @patch('backend.photos.blob_storage.AZURE_STORAGE_ACCOUNT_NAME', '')
    def test_not_configured(self):
        self.assertFalse(blob_storage.is_configured())
        self.assertIsNone(blob_storage.construct_blob_url('x.jpg'))
        with self.assertRaises(BlobStorageError):
            blob_storage.get_blob_service_client()

    @patch('backend.photos.blob_storage.construct_blob_url', return_value=BLOB_URL)
    @patch('backend.photos.blob_storage.get_blob_service_client')
    def test_upload_bytes(self, mock_service, mock_url):
        blob_client = mock_service.return_value.get_blob_client.return_value
        self.assertEqual(blob_storage.upload_bytes(JPEG_BYTES, 'vit-assets/42/image.jpg'), BLOB_URL)
        args, kwargs = blob_client.upload_blob.call_args
        self.assertEqual(args[0], JPEG_BYTES)
        self.assertTrue(kwargs['overwrite'])

        blob_client.upload_blob.side_effect = AzureError('boom')
        with self.assertRaises(BlobStorageError):
            blob_storage.upload_bytes(JPEG_BYTES, 'vit-assets/42/image.jpg')

    @patch('backend.photos.blob_storage.get_blob_service_client')
    def test_delete_missing_blob_is_ok(self, mock_service):
        blob_client = mock_service.return_value.get_blob_client.return_value
        blob_client.delete_blob.side_effect = ResourceNotFoundError('gone')
        self.assertTrue(blob_storage.delete_blob('vit-assets/42/image.jpg'))

    def test_upload_base64_rejects_garbage(self):
        with self.assertRaises(BlobStorageError):
            blob_storage.upload_base64_image('data:image/jpeg;base64,@@@', 'x.jpg')


@patch('backend.photos.blob_storage.is_configured', return_value=True)
class PhotoAPITests(TestCase):
    """/photos/ endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user(role='technician', district=TestDataFactory.create_district())
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    @patch('backend.photos.blob_storage.upload_bytes', return_value=BLOB_URL)
    def test_upload_data_url(self, mock_upload, mock_configured):
        image = 'data:image/jpeg;base64,' + base64.b64encode(JPEG_BYTES).decode()
        response = self.client.post('/api/v1/photos/upload/', {
            'image': image, 'asset_id': '42', 'photo_type': 'vit-asset',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['url'], BLOB_URL)
        self.assertTrue(response.data['blob_name'].startswith('vit-assets/42/image-'))
        self.assertEqual(mock_upload.call_args[0][0], JPEG_BYTES)
        self.assertTrue(AuditLog.objects.filter(action='photo_upload', object_name='42').exists())

    @patch('backend.photos.blob_storage.upload_bytes', return_value=BLOB_URL)
    def test_upload_file(self, mock_upload, mock_configured):
        photo = SimpleUploadedFile('site.png', PNG_BYTES, content_type='image/png')
        response = self.client.post('/api/v1/photos/upload-file/', {
            'photo': photo, 'asset_id': 'SS-9', 'photo_type': 'substation-inspection',
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['blob_name'].endswith('.png'))
        self.assertEqual(mock_upload.call_args[1]['content_type'], 'image/png')

    def test_upload_requires_fields(self, mock_configured):
        response = self.client.post('/api/v1/photos/upload/', {'asset_id': '42'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_upload_rejects_non_image(self, mock_configured):
        photo = SimpleUploadedFile('notes.jpg', b'plain text', content_type='image/jpeg')
        response = self.client.post('/api/v1/photos/upload-file/', {'photo': photo, 'asset_id': '1'}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @patch('backend.photos.blob_storage.upload_bytes', side_effect=BlobStorageError('timeout'))
    def test_upload_failure_is_500(self, mock_upload, mock_configured):
        image = 'data:image/jpeg;base64,' + base64.b64encode(JPEG_BYTES).decode()
        response = self.client.post('/api/v1/photos/upload/', {'image': image, 'asset_id': '42'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    def test_not_configured_is_500(self, mock_configured):
        mock_configured.return_value = False
        response = self.client.post('/api/v1/photos/upload/', {'image': 'x', 'asset_id': '1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['error'], 'Azure Storage not configured')

    def test_technician_cannot_delete(self, mock_configured):
        response = self.client.delete('/api/v1/photos/delete/?blob_name=vit-assets/42/image.jpg')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    @patch('backend.photos.blob_storage.delete_blob', return_value=True)
    def test_delete_photo(self, mock_delete, mock_configured):
        manager = TestDataFactory.create_user(role='district_manager', district=self.user.district)
        self.client.authenticate_user(manager)
        response = self.client.delete('/api/v1/photos/delete/', {'blob_name': 'vit-assets/42/image.jpg'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        mock_delete.assert_called_once_with('vit-assets/42/image.jpg')

        response = self.client.delete('/api/v1/photos/delete/', {'blob_name': '../secrets'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
