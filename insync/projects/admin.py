from django.contrib import admin
from .models import Project


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ['name', 'workspace_id', 'version', 'created_by', 'created_at']
    list_filter = ['workspace_id', 'created_at']
    search_fields = ['name']
    ordering = ['name']
    readonly_fields = ['version', 'created_at', 'updated_at']
