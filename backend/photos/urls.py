from django.urls import path
from .views import upload_photo, upload_photo_file, delete_photo

urlpatterns = [
    path('photos/upload/', upload_photo, name='photo-upload'),
    path('photos/upload-file/', upload_photo_file, name='photo-upload-file'),
    path('photos/delete/', delete_photo, name='photo-delete'),
]
