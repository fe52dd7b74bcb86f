from django.contrib import admin
from .models import Grievance


@admin.register(Grievance)
class GrievanceAdmin(admin.ModelAdmin):
    list_display = ['subject', 'user_email', 'type', 'status', 'seen_by_ceo', 'workspace_id', 'created_at']
    list_filter = ['type', 'status', 'seen_by_ceo', 'workspace_id']
    search_fields = ['subject', 'user_email']
    ordering = ['-created_at']
