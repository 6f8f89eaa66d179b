from django.urls import path
from .views import (
    region_list_create, region_detail,
    district_list_create, district_detail,
    feeder_list_create, feeder_detail,
)

urlpatterns = [
    path('regions/', region_list_create, name='region-list-create'),
    path('regions/<int:pk>/', region_detail, name='region-detail'),
    path('districts/', district_list_create, name='district-list-create'),
    path('districts/<int:pk>/', district_detail, name='district-detail'),
    path('feeders/', feeder_list_create, name='feeder-list-create'),
    path('feeders/<int:pk>/', feeder_detail, name='feeder-detail'),
]
