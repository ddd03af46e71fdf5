from django.apps import AppConfig


class ProfiledeskConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'profileDesk'
