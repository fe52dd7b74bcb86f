"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from insync.core.roles import MEMBER
from insync.core.workspaces import LEGACY_WORKSPACE_ID
from insync.cashflow.models import Transaction
from insync.documents.models import Document
from insync.grievances.models import Grievance
from insync.projects.models import Project
from insync.reminders.models import Reminder
from decimal import Decimal
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(email=None, password='testpass123', role=MEMBER, workspace_id=LEGACY_WORKSPACE_ID,
                    phone=None, display_name=None):
        """Create a test user"""
        if not email:
            email = f'testuser_{TestDataFactory.random_string(6).lower()}@test.com'
        return User.objects.create_user(
            username=email,
            email=email,
            password=password,
            role=role,
            workspace_id=workspace_id,
            phone=phone,
            display_name=display_name or '',
        )

    @staticmethod
    def create_project(name=None, workspace_id=LEGACY_WORKSPACE_ID, milestones=None, user=None):
        """Create a test project"""
        if not name:
            name = f'Project_{TestDataFactory.random_string(6)}'
        return Project.objects.create(
            name=name,
            workspace_id=workspace_id,
            milestones=milestones or [],
            created_by=user,
        )

    @staticmethod
    def create_document(name=None, category='Legal', workspace_id=LEGACY_WORKSPACE_ID, user=None):
        """Create a test document record (no blob is uploaded)"""
        if not name:
            name = f'Document_{TestDataFactory.random_string(6)}.pdf'
        storage_path = f'documents/1700000000000_{name}'
        return Document.objects.create(
            name=name,
            type=Document.infer_type(name),
            category=category,
            url=f'https://example.blob.core.windows.net/insync-hub/{storage_path}',
            storage_path=storage_path,
            workspace_id=workspace_id,
            uploaded_by=user,
        )

    @staticmethod
    def create_transaction(type='Income', amount=None, category='Other', workspace_id=LEGACY_WORKSPACE_ID,
                           user=None, date=None, description=None):
        """Create a test transaction"""
        if amount is None:
            amount = Decimal('100000.00')
        return Transaction.objects.create(
            type=type,
            amount=amount,
            category=category,
            description=description or f'Test {type.lower()}',
            date=date or timezone.localdate(),
            workspace_id=workspace_id,
            created_by=user,
        )

    @staticmethod
    def create_grievance(user, subject=None, workspace_id=LEGACY_WORKSPACE_ID, status='Open', seen_by_ceo=False):
        """Create a test grievance"""
        return Grievance.objects.create(
            user=user,
            user_email=user.email,
            subject=subject or f'Subject {TestDataFactory.random_string(6)}',
            description='Test grievance description',
            type='Complaint',
            status=status,
            seen_by_ceo=seen_by_ceo,
            workspace_id=workspace_id,
        )

    @staticmethod
    def create_reminder(target_role=MEMBER, reminder_date=None, message=None,
                        workspace_id=LEGACY_WORKSPACE_ID, user=None):
        """Create a test reminder"""
        return Reminder.objects.create(
            message=message or 'Please submit your weekly report',
            target_role=target_role,
            reminder_date=reminder_date or timezone.now(),
            workspace_id=workspace_id,
            created_by=user,
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
