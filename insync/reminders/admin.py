from django.contrib import admin
from .models import Reminder


@admin.register(Reminder)
class ReminderAdmin(admin.ModelAdmin):
    list_display = ['reminder_date', 'target_role', 'message', 'workspace_id', 'created_by']
    list_filter = ['target_role', 'workspace_id']
    search_fields = ['message']
    ordering = ['reminder_date']
