from django.urls import path
from .views import (
    vit_asset_list_create, vit_asset_count, vit_asset_detail,
    vit_inspection_list_create, vit_inspection_detail,
    overhead_inspection_list_create, overhead_inspection_detail,
    substation_inspection_list_create, substation_inspection_detail,
    substation_status_list_create, substation_status_detail,
)

urlpatterns = [
    path('vit-assets/', vit_asset_list_create, name='vit-asset-list-create'),
    path('vit-assets/count/', vit_asset_count, name='vit-asset-count'),
    path('vit-assets/<int:pk>/', vit_asset_detail, name='vit-asset-detail'),
    path('vit-inspections/', vit_inspection_list_create, name='vit-inspection-list-create'),
    path('vit-inspections/<int:pk>/', vit_inspection_detail, name='vit-inspection-detail'),
    path('overhead-line-inspections/', overhead_inspection_list_create, name='overhead-inspection-list-create'),
    path('overhead-line-inspections/<int:pk>/', overhead_inspection_detail, name='overhead-inspection-detail'),
    path('substation-inspections/', substation_inspection_list_create, name='substation-inspection-list-create'),
    path('substation-inspections/<int:pk>/', substation_inspection_detail, name='substation-inspection-detail'),
    path('substation-status/', substation_status_list_create, name='substation-status-list-create'),
    path('substation-status/<int:pk>/', substation_status_detail, name='substation-status-detail'),
]
