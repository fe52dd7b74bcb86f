from django.apps import AppConfig


class CashflowConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'insync.cashflow'
    verbose_name = 'Cash Flow'
