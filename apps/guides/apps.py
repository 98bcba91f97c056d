from django.apps import AppConfig


class GuidesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.guides'
    verbose_name = 'Guides'
