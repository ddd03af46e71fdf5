from django.apps import AppConfig


class ComicdeskConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'comicDesk'

    def ready(self):
        # Import signals so handlers register
        from . import signals  # noqa: F401
