from django.apps import AppConfig


class LoadMonitoringConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'backend.load_monitoring'
