from rest_framework import serializers
from .models import Document


class DocumentSerializer(serializers.ModelSerializer):
    uploaded_by_email = serializers.EmailField(source='uploaded_by.email', read_only=True, default=None)

    class Meta:
        model = Document
        fields = ['id', 'name', 'type', 'category', 'url', 'storage_path', 'workspace_id',
                  'uploaded_by', 'uploaded_by_email', 'created_at']
        read_only_fields = ['id', 'name', 'type', 'category', 'url', 'storage_path', 'workspace_id',
                            'uploaded_by', 'created_at']


class DocumentUploadSerializer(serializers.Serializer):
    file = serializers.FileField()
    category = serializers.ChoiceField(choices=Document.CATEGORY_CHOICES)
