from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['email', 'display_name', 'role', 'workspace_id', 'phone', 'is_active', 'is_staff']
    list_filter = ['role', 'workspace_id', 'is_active', 'is_staff']
    search_fields = ['email', 'display_name', 'phone']
    ordering = ['email']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Profile', {'fields': ('display_name', 'role', 'workspace_id', 'phone', 'photo_url')}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Profile', {'fields': ('email', 'display_name', 'role', 'workspace_id', 'phone')}),
    )
