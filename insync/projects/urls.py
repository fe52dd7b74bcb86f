from django.urls import path
from .views import (
    project_list_create, project_detail,
    milestone_create, milestone_delete,
    task_create, task_detail, task_list
)

urlpatterns = [
    path('projects/', project_list_create, name='project-list-create'),
    path('projects/<int:pk>/', project_detail, name='project-detail'),

    # Milestones and tasks embedded in a project
    path('projects/<int:pk>/milestones/', milestone_create, name='milestone-create'),
    path('projects/<int:pk>/milestones/<str:milestone_id>/', milestone_delete, name='milestone-delete'),
    path('projects/<int:pk>/milestones/<str:milestone_id>/tasks/', task_create, name='task-create'),
    path('projects/<int:pk>/milestones/<str:milestone_id>/tasks/<str:task_id>/', task_detail, name='task-detail'),

    path('tasks/', task_list, name='task-list'),
]
