from django.apps import AppConfig


class ReadingactivitydeskConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'readingActivityDesk'
