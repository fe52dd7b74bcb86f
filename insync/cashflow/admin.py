from django.contrib import admin
from .models import Transaction


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ['date', 'type', 'amount', 'category', 'workspace_id', 'created_by']
    list_filter = ['type', 'category', 'workspace_id', 'date']
    search_fields = ['description']
    ordering = ['-date']
