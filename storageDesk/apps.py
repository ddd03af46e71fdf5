from django.apps import AppConfig


class StoragedeskConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'storageDesk'
