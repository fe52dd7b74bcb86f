from django.db import models
from insync.core.models import User


class Grievance(models.Model):
    """Confidential grievance submitted by a team member and reviewed by the CEO"""
    TYPE_CHOICES = [
        ('Complaint', 'Complaint'),
        ('Suggestion', 'Suggestion'),
        ('Other', 'Other'),
    ]

    STATUS_CHOICES = [
        ('Open', 'Open'),
        ('In Review', 'In Review'),
        ('Resolved', 'Resolved'),
    ]

    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='grievances')
    user_email = models.EmailField()
    subject = models.CharField(max_length=255)
    description = models.TextField()
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='Complaint')
    file_url = models.URLField(max_length=1000, blank=True, null=True)
    file_path = models.CharField(max_length=500, blank=True, null=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='Open')
    seen_by_ceo = models.BooleanField(default=False)
    workspace_id = models.CharField(max_length=50, blank=True, null=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.subject} ({self.status})"

    class Meta:
        db_table = 'grievances'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['workspace_id', 'seen_by_ceo'], name='grievances_unseen_idx'),
        ]
