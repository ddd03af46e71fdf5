from django.apps import AppConfig


class DashboarddeskConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'dashboardDesk'
