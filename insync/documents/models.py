import os

from django.db import models
from insync.core.models import User


class Document(models.Model):
    """Uploaded file record; the file itself lives in blob storage at storage_path"""
    TYPE_CHOICES = [
        ('PDF', 'PDF'),
        ('Word', 'Word'),
        ('Excel', 'Excel'),
        ('Image', 'Image'),
        ('Other', 'Other'),
    ]

    CATEGORY_CHOICES = [
        ('Legal', 'Legal'),
        ('Finance', 'Finance'),
        ('Operations', 'Operations'),
        ('Reports', 'Reports'),
    ]

    EXTENSION_TYPES = {
        'pdf': 'PDF',
        'doc': 'Word',
        'docx': 'Word',
        'xls': 'Excel',
        'xlsx': 'Excel',
        'png': 'Image',
        'jpg': 'Image',
        'jpeg': 'Image',
        'gif': 'Image',
    }

    name = models.CharField(max_length=255, db_index=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='Other')
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES)
    url = models.URLField(max_length=1000)
    storage_path = models.CharField(max_length=500)
    workspace_id = models.CharField(max_length=50, blank=True, null=True, db_index=True)
    uploaded_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='documents')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    @classmethod
    def infer_type(cls, filename):
        """File type from the extension, 'Other' when unknown"""
        extension = os.path.splitext(filename or '')[1].lstrip('.').lower()
        return cls.EXTENSION_TYPES.get(extension, 'Other')

    class Meta:
        db_table = 'documents'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='documents_created_idx'),
            models.Index(fields=['category'], name='documents_category_idx'),
        ]
