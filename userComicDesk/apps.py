from django.apps import AppConfig


class UsercomicdeskConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'userComicDesk'
