"""
URL configuration for the InSync Hub backend.

Every business area lives in its own app and is mounted under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "InSync Hub Admin Panel"
admin.site.site_title = "InSync Hub Admin Portal"
admin.site.index_title = "Welcome to the InSync Hub Admin Portal"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('insync.core.urls')),
    path('api/v1/', include('insync.projects.urls')),
    path('api/v1/', include('insync.documents.urls')),
    path('api/v1/', include('insync.cashflow.urls')),
    path('api/v1/', include('insync.grievances.urls')),
    path('api/v1/', include('insync.reminders.urls')),
]
