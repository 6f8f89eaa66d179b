from django.urls import path
from .views import load_record_list_create, load_record_detail

urlpatterns = [
    path('load-monitoring/', load_record_list_create, name='load-monitoring-list-create'),
    path('load-monitoring/<int:pk>/', load_record_detail, name='load-monitoring-detail'),
]
