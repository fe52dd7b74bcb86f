from rest_framework import serializers
from .models import Grievance


class GrievanceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Grievance
        fields = ['id', 'user', 'user_email', 'subject', 'description', 'type', 'file_url', 'file_path',
                  'status', 'seen_by_ceo', 'workspace_id', 'created_at']
        read_only_fields = fields


class GrievanceCreateSerializer(serializers.Serializer):
    subject = serializers.CharField(max_length=255)
    description = serializers.CharField()
    type = serializers.ChoiceField(choices=Grievance.TYPE_CHOICES, default='Complaint')
    file = serializers.FileField(required=False, allow_null=True)


class GrievanceStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Grievance.STATUS_CHOICES)
