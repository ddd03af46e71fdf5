from django.apps import AppConfig


class BookmarkdeskConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'bookmarkDesk'

    def ready(self):
        from . import signals  # noqa: F401
