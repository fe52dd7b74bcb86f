from django.urls import path
from .views import document_list_create, document_detail, document_bulk_delete

urlpatterns = [
    path('documents/', document_list_create, name='document-list-create'),
    path('documents/bulk-delete/', document_bulk_delete, name='document-bulk-delete'),
    path('documents/<int:pk>/', document_detail, name='document-detail'),
]
