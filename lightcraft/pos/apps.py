from django.apps import AppConfig


class POSConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'lightcraft.pos'
