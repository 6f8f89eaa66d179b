"""
URL configuration for the NMS backend.

Every app is mounted under ``api/v1/``.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "ECG NMS Admin Panel"
admin.site.site_title = "ECG NMS Admin Portal"
admin.site.index_title = "Network Management System Administration"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('backend.core.urls')),
    path('api/v1/', include('backend.locations.urls')),
    path('api/v1/', include('backend.assets.urls')),
    path('api/v1/', include('backend.faults.urls')),
    path('api/v1/', include('backend.load_monitoring.urls')),
    path('api/v1/', include('backend.photos.urls')),
    path('api/v1/', include('backend.sync.urls')),
]
