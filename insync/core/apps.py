from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'insync.core'

    def ready(self):
        """Import signals when app is ready"""
        import insync.core.model_cache  # noqa: F401  # Directory cache invalidation signals
