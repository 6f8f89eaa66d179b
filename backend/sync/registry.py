"""Entity types accepted by the batch sync endpoint"""
from backend.assets.models import (
    VITAsset, VITInspection, OverheadLineInspection, SubstationInspection, SubstationStatus,
)
from backend.assets.serializers import (
    VITAssetSerializer, VITInspectionSerializer, OverheadLineInspectionSerializer,
    SubstationInspectionSerializer, SubstationStatusSerializer,
)
from backend.faults.models import OP5Fault, ControlOutage
from backend.faults.serializers import OP5FaultSerializer, ControlOutageSerializer
from backend.load_monitoring.models import LoadMonitoringRecord
from backend.load_monitoring.serializers import LoadMonitoringRecordSerializer


class SyncEntity:
    def __init__(self, model, serializer_class, feature, owner_field):
        self.model = model
        self.serializer_class = serializer_class
        self.feature = feature
        self.owner_field = owner_field

    @property
    def model_name(self):
        return self.model.__name__


ENTITIES = {
    'vit_asset': SyncEntity(VITAsset, VITAssetSerializer, 'asset_management', 'created_by'),
    'vit_inspection': SyncEntity(VITInspection, VITInspectionSerializer, 'vit_inspection', 'inspected_by'),
    'overhead_inspection': SyncEntity(OverheadLineInspection, OverheadLineInspectionSerializer, 'overhead_line_inspection', 'inspector'),
    'substation_inspection': SyncEntity(SubstationInspection, SubstationInspectionSerializer, 'substation_inspection', 'inspector'),
    'substation_status': SyncEntity(SubstationStatus, SubstationStatusSerializer, 'substation_status', 'created_by'),
    'op5_fault': SyncEntity(OP5Fault, OP5FaultSerializer, 'fault_reporting', 'created_by'),
    'control_outage': SyncEntity(ControlOutage, ControlOutageSerializer, 'fault_reporting', 'created_by'),
    'load_monitoring': SyncEntity(LoadMonitoringRecord, LoadMonitoringRecordSerializer, 'load_monitoring', 'created_by'),
}


def get_entity(entity_type):
    return ENTITIES.get(entity_type)
