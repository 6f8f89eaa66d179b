from django.urls import path
from .views import sync_batch

urlpatterns = [
    path('sync/batch/', sync_batch, name='sync-batch'),
]
