from django.contrib import admin
from .models import Document


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ['name', 'type', 'category', 'workspace_id', 'uploaded_by', 'created_at']
    list_filter = ['type', 'category', 'workspace_id', 'created_at']
    search_fields = ['name', 'storage_path']
    ordering = ['-created_at']
    readonly_fields = ['url', 'storage_path', 'created_at']
