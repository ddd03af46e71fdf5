from django.apps import AppConfig


class CreditdeskConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'creditDesk'
