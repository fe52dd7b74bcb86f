from rest_framework import serializers
from .models import Project


class ProjectSerializer(serializers.ModelSerializer):
    task_count = serializers.SerializerMethodField()
    completed_task_count = serializers.SerializerMethodField()

    class Meta:
        model = Project
        fields = ['id', 'name', 'workspace_id', 'milestones', 'version', 'task_count',
                  'completed_task_count', 'created_at', 'updated_at']
        read_only_fields = ['workspace_id', 'milestones', 'version', 'created_at', 'updated_at']

    def get_task_count(self, obj):
        return obj.get_task_counts()[0]

    def get_completed_task_count(self, obj):
        return obj.get_task_counts()[1]


class ProjectWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)


class MilestoneCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    due_date = serializers.DateTimeField(required=False, allow_null=True)
    reminder = serializers.BooleanField(required=False, allow_null=True, default=None)


class TaskCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    due_date = serializers.DateTimeField(required=False, allow_null=True)


class TaskUpdateSerializer(serializers.Serializer):
    """Partial task update; only the keys the client sent end up in validated_data"""
    name = serializers.CharField(max_length=200, required=False)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    due_date = serializers.DateTimeField(required=False, allow_null=True)
    completed = serializers.BooleanField(required=False)
    completed_at = serializers.DateTimeField(required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('No task fields to update.')
        return attrs
