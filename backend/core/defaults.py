"""
Built-in role definitions and the default feature permission matrix.

Used to seed the Role / FeaturePermission tables and as the fallback when the
permission tables are empty.
"""

ALL_STAFF_ROLES = [
    'system_admin', 'global_engineer', 'regional_engineer', 'project_engineer',
    'district_engineer', 'regional_general_manager', 'district_manager', 'ict',
    'technician', 'ashsubt', 'accsubt',
]

UNRESTRICTED_ROLES = ['system_admin', 'global_engineer']
DISTRICT_ROLES = ['district_engineer', 'technician', 'district_manager']
REGION_ROLES = ['regional_engineer', 'regional_general_manager', 'project_engineer']
SUBTRANSMISSION_ROLES = ['ashsubt', 'accsubt']

SUBTRANSMISSION_REGIONS = {
    'ashsubt': [
        'SUBTRANSMISSION ASHANTI',
        'ASHANTI EAST REGION',
        'ASHANTI WEST REGION',
        'ASHANTI SOUTH REGION',
    ],
    'accsubt': [
        'SUBTRANSMISSION ACCRA',
        'ACCRA EAST REGION',
        'ACCRA WEST REGION',
    ],
}

DEFAULT_ROLES = [
    {'name': 'system_admin', 'display_name': 'System Administrator', 'priority': 100,
     'description': 'Full system access'},
    {'name': 'global_engineer', 'display_name': 'Global Engineer', 'priority': 90,
     'description': 'Nationwide engineering access'},
    {'name': 'regional_general_manager', 'display_name': 'Regional General Manager', 'priority': 80,
     'description': 'Region-wide management access'},
    {'name': 'regional_engineer', 'display_name': 'Regional Engineer', 'priority': 70,
     'description': 'Region-wide engineering access'},
    {'name': 'project_engineer', 'display_name': 'Project Engineer', 'priority': 65,
     'description': 'Region-wide project access'},
    {'name': 'ashsubt', 'display_name': 'Ashanti Subtransmission', 'priority': 60,
     'description': 'Ashanti subtransmission regions'},
    {'name': 'accsubt', 'display_name': 'Accra Subtransmission', 'priority': 60,
     'description': 'Accra subtransmission regions'},
    {'name': 'district_manager', 'display_name': 'District Manager', 'priority': 50,
     'description': 'District management access'},
    {'name': 'district_engineer', 'display_name': 'District Engineer', 'priority': 40,
     'description': 'District engineering access'},
    {'name': 'ict', 'display_name': 'ICT', 'priority': 30,
     'description': 'ICT support staff'},
    {'name': 'technician', 'display_name': 'Technician', 'priority': 20,
     'description': 'Field technician'},
]

_FIELD_WRITERS = [role for role in ALL_STAFF_ROLES if role != 'ict']
_FIELD_DELETERS = [
    'system_admin', 'global_engineer', 'regional_engineer', 'ashsubt', 'accsubt',
    'district_engineer', 'district_manager',
]
_ADMINS = ['system_admin', 'global_engineer']

FIELD_FEATURES = [
    'asset_management',
    'vit_inspection',
    'overhead_line_inspection',
    'substation_inspection',
    'substation_status',
    'load_monitoring',
    'fault_reporting',
]


def _field_feature():
    return {
        'view': list(ALL_STAFF_ROLES),
        'create': list(_FIELD_WRITERS),
        'update': list(_FIELD_WRITERS),
        'delete': list(_FIELD_DELETERS),
    }


DEFAULT_FEATURE_PERMISSIONS = {feature: _field_feature() for feature in FIELD_FEATURES}
DEFAULT_FEATURE_PERMISSIONS.update({
    'analytics': {
        'view': list(ALL_STAFF_ROLES),
    },
    'locations': {
        'view': list(ALL_STAFF_ROLES),
        'create': ['system_admin', 'global_engineer', 'regional_engineer', 'project_engineer',
                   'district_engineer', 'regional_general_manager', 'district_manager',
                   'ashsubt', 'accsubt'],
        'update': ['system_admin', 'global_engineer', 'regional_engineer', 'project_engineer',
                   'district_engineer', 'regional_general_manager', 'district_manager',
                   'ashsubt', 'accsubt'],
        'delete': list(_ADMINS),
    },
    'photos': {
        'view': list(ALL_STAFF_ROLES),
        'create': list(_FIELD_WRITERS),
        'delete': list(_FIELD_DELETERS),
    },
    'user_management': {
        'view': list(_ADMINS),
        'create': ['system_admin'],
        'update': list(_ADMINS),
        'delete': ['system_admin'],
    },
    'staff_id_management': {
        'view': list(ALL_STAFF_ROLES),
        'create': ['system_admin'],
        'update': ['system_admin'],
        'delete': ['system_admin'],
    },
    'role_management': {
        'view': list(_ADMINS),
        'create': ['system_admin'],
        'update': ['system_admin'],
        'delete': ['system_admin'],
    },
})


def default_permissions_document():
    """Return the default matrix in the {features: {f: {permissions: {a: {roles}}}}} shape"""
    return {
        'features': {
            feature: {
                'permissions': {action: {'roles': roles} for action, roles in actions.items()}
            }
            for feature, actions in DEFAULT_FEATURE_PERMISSIONS.items()
        }
    }
