import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models

from .roles import ROLE_CHOICES, MEMBER
from .workspaces import WORKSPACE_CHOICES


class User(AbstractUser):
    """User profile: identity, role and home workspace"""
    uid = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    email = models.EmailField(unique=True)
    display_name = models.CharField(max_length=150, blank=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=MEMBER)
    workspace_id = models.CharField(max_length=50, choices=WORKSPACE_CHOICES, blank=True, null=True, db_index=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    photo_url = models.URLField(max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['username']

    def save(self, *args, **kwargs):
        if not self.display_name and self.email:
            self.display_name = self.email.split('@')[0]
        super().save(*args, **kwargs)

    def __str__(self):
        return self.display_name or self.email

    class Meta:
        db_table = 'users'
        ordering = ['display_name']
