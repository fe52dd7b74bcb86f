from django.db import models
from insync.core.models import User


class Project(models.Model):
    """
    A project with its milestones and their tasks embedded as a JSON array.

    milestones: [{id, name, due_date?, reminder?, tasks: [{id, name,
    description?, due_date?, completed, completed_at?}]}]

    The array is only ever replaced as a whole by the read-modify-write
    helpers in services.py; `version` is bumped on every write.
    """
    name = models.CharField(max_length=200)
    workspace_id = models.CharField(max_length=50, blank=True, null=True, db_index=True)
    milestones = models.JSONField(default=list, blank=True)
    version = models.PositiveIntegerField(default=0)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='projects')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def get_task_counts(self):
        """(total, completed) across all milestones"""
        total = completed = 0
        for milestone in self.milestones or []:
            for task in milestone.get('tasks', []):
                total += 1
                if task.get('completed'):
                    completed += 1
        return total, completed

    class Meta:
        db_table = 'projects'
        ordering = ['name']
