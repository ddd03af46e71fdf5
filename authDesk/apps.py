from django.apps import AppConfig


class AuthdeskConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'authDesk'
