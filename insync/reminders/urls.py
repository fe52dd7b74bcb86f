from django.urls import path
from .views import reminder_list_create, reminder_detail, cron_reminders

urlpatterns = [
    path('reminders/', reminder_list_create, name='reminder-list-create'),
    path('reminders/<int:pk>/', reminder_detail, name='reminder-detail'),
    path('cron/reminders/', cron_reminders, name='cron-reminders'),
]
