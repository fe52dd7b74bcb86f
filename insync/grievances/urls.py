from django.urls import path
from .views import (
    grievance_list_create, grievance_detail, grievance_has_new,
    grievance_mark_seen, grievance_bulk_delete,
)

urlpatterns = [
    path('grievances/', grievance_list_create, name='grievance-list-create'),
    path('grievances/has-new/', grievance_has_new, name='grievance-has-new'),
    path('grievances/mark-seen/', grievance_mark_seen, name='grievance-mark-seen'),
    path('grievances/bulk-delete/', grievance_bulk_delete, name='grievance-bulk-delete'),
    path('grievances/<int:pk>/', grievance_detail, name='grievance-detail'),
]
