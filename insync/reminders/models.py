from django.core.validators import MinLengthValidator
from django.db import models
from insync.core.models import User
from insync.core.roles import ROLE_CHOICES

MESSAGE_MIN_LENGTH = 10


class Reminder(models.Model):
    """
    One-time message to everybody holding `target_role`, sent on
    `reminder_date` by the reminder sweep and deleted afterwards.
    """
    message = models.TextField(validators=[MinLengthValidator(MESSAGE_MIN_LENGTH)])
    target_role = models.CharField(max_length=20, choices=ROLE_CHOICES)
    reminder_date = models.DateTimeField(db_index=True)
    workspace_id = models.CharField(max_length=50, blank=True, null=True, db_index=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='reminders')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.target_role} @ {self.reminder_date:%Y-%m-%d}: {self.message[:30]}"

    class Meta:
        db_table = 'reminders'
        ordering = ['reminder_date']
