from rest_framework import serializers
from insync.core.roles import ROLE_CHOICES
from .models import Reminder, MESSAGE_MIN_LENGTH


class ReminderSerializer(serializers.ModelSerializer):
    message = serializers.CharField(
        min_length=MESSAGE_MIN_LENGTH,
        error_messages={'min_length': f'Message must be at least {MESSAGE_MIN_LENGTH} characters.'},
    )
    target_role = serializers.ChoiceField(choices=ROLE_CHOICES)
    created_by_email = serializers.EmailField(source='created_by.email', read_only=True, default=None)

    class Meta:
        model = Reminder
        fields = ['id', 'message', 'target_role', 'reminder_date', 'workspace_id',
                  'created_by', 'created_by_email', 'created_at']
        read_only_fields = ['id', 'workspace_id', 'created_by', 'created_at']
