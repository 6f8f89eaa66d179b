from django.urls import path
from .views import (
    op5_fault_list_create, op5_fault_detail,
    control_outage_list_create, control_outage_detail,
    fault_list, fault_detail, fault_analytics,
)

urlpatterns = [
    path('op5-faults/', op5_fault_list_create, name='op5-fault-list-create'),
    path('op5-faults/<int:pk>/', op5_fault_detail, name='op5-fault-detail'),
    path('control-outages/', control_outage_list_create, name='control-outage-list-create'),
    path('control-outages/<int:pk>/', control_outage_detail, name='control-outage-detail'),
    path('faults/', fault_list, name='fault-list'),
    path('faults/analytics/', fault_analytics, name='fault-analytics'),
    path('faults/<int:pk>/', fault_detail, name='fault-detail'),
]
