"""
Test suite for the core module
Tests: workspace rules, role lookup, registration/login, profile, team directory, backfill command
"""
from io import StringIO
from unittest.mock import patch, MagicMock

from azure.core.exceptions import AzureError, ResourceNotFoundError
from django.core.management import call_command
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework_simplejwt.tokens import AccessToken
from insync.core import storage
from insync.core.exceptions import WorkspaceMismatchError, StorageError
from insync.core.models import User
from insync.core.roles import CEO, CFO, COO, MEMBER, role_for_email, has_role
from insync.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from insync.core.workspaces import (
    LEGACY_WORKSPACE_ID, WorkspaceContext, can_mutate, workspace_name,
)
from insync.projects.models import Project


class RoleLookupTests(TestCase):
    """Test the static email -> role table"""

    def test_known_mailboxes(self):
        self.assertEqual(role_for_email('ceo@mentorme.com'), CEO)
        self.assertEqual(role_for_email('cfo@howe.com'), CFO)
        self.assertEqual(role_for_email('COO@Neo.com'), COO)

    def test_unknown_email_is_member(self):
        self.assertEqual(role_for_email('someone@mentorme.com'), MEMBER)
        self.assertEqual(role_for_email('ceo@gmail.com'), MEMBER)
        self.assertEqual(role_for_email(None), MEMBER)

    def test_has_role(self):
        user = TestDataFactory.create_user(role=CFO)
        self.assertTrue(has_role(user, CFO))
        self.assertTrue(has_role(user, CEO, CFO))
        self.assertFalse(has_role(user, CEO))


class WorkspaceRuleTests(TestCase):
    """Test the legacy merge and ownership rules"""

    def test_can_mutate_same_workspace(self):
        self.assertTrue(can_mutate('neo', 'neo'))
        self.assertFalse(can_mutate('neo', 'homeworkers'))

    def test_legacy_workspace_owns_unassigned_records(self):
        self.assertTrue(can_mutate(None, LEGACY_WORKSPACE_ID))
        self.assertTrue(can_mutate('', LEGACY_WORKSPACE_ID))
        self.assertFalse(can_mutate(None, 'neo'))

    def test_legacy_listing_merges_unassigned_rows(self):
        legacy = TestDataFactory.create_project(name='Legacy', workspace_id=None)
        empty = TestDataFactory.create_project(name='Empty', workspace_id='')
        mentorme = TestDataFactory.create_project(name='MentorMe', workspace_id=LEGACY_WORKSPACE_ID)
        neo = TestDataFactory.create_project(name='Neo', workspace_id='neo')

        legacy_ids = set(WorkspaceContext(LEGACY_WORKSPACE_ID).filter(Project.objects.all()).values_list('id', flat=True))
        neo_ids = set(WorkspaceContext('neo').filter(Project.objects.all()).values_list('id', flat=True))

        self.assertEqual(legacy_ids, {legacy.id, empty.id, mentorme.id})
        self.assertEqual(neo_ids, {neo.id})

    def test_context_defaults_to_legacy_workspace(self):
        self.assertEqual(WorkspaceContext(None).workspace_id, LEGACY_WORKSPACE_ID)
        self.assertEqual(WorkspaceContext('neo').name, 'Neo Up')
        self.assertEqual(workspace_name(None), 'MentorMe Up')

    def test_ensure_owns_raises_for_other_workspace(self):
        ctx = WorkspaceContext('homeworkers')
        with self.assertRaises(WorkspaceMismatchError):
            ctx.ensure_owns('neo', 'project')
        ctx.ensure_owns('homeworkers', 'project')


class StorageTests(TestCase):
    """Test the blob storage helpers"""

    def test_build_storage_path(self):
        self.assertEqual(
            storage.build_storage_path('documents', 'report.pdf', timestamp_ms=1700000000000),
            'documents/1700000000000_report.pdf'
        )

    @override_settings(AZURE_STORAGE_CONNECTION_STRING='')
    def test_upload_without_configuration_raises(self):
        with self.assertRaises(StorageError):
            storage.upload_file('documents/1_a.pdf', b'data')

    @patch('insync.core.storage.get_container_client')
    def test_upload_returns_blob_url(self, mock_container):
        mock_container.return_value.upload_blob.return_value = MagicMock(url='https://blob/documents/1_a.pdf')
        url = storage.upload_file('documents/1_a.pdf', b'data', content_type='application/pdf')
        self.assertEqual(url, 'https://blob/documents/1_a.pdf')

    @patch('insync.core.storage.get_container_client')
    def test_upload_failure_raises_storage_error(self, mock_container):
        mock_container.return_value.upload_blob.side_effect = AzureError('boom')
        with self.assertRaises(StorageError):
            storage.upload_file('documents/1_a.pdf', b'data')

    @patch('insync.core.storage.get_container_client')
    def test_delete_missing_blob_counts_as_deleted(self, mock_container):
        mock_container.return_value.delete_blob.side_effect = ResourceNotFoundError('gone')
        self.assertTrue(storage.delete_file('documents/1_a.pdf'))

    @patch('insync.core.storage.get_container_client')
    def test_delete_failure_returns_false(self, mock_container):
        mock_container.return_value.delete_blob.side_effect = AzureError('boom')
        self.assertFalse(storage.delete_file('documents/1_a.pdf'))


class AuthAPITests(TestCase):
    """Test registration, login and profile endpoints"""

    password = 'Str0ng-Passw0rd!'

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def register(self, email, workspace_id='neo'):
        return self.client.post('/api/v1/auth/register/', {
            'email': email,
            'password': self.password,
            'password_confirm': self.password,
            'display_name': 'Test User',
            'workspace_id': workspace_id,
        }, format='json')

    def test_register_assigns_role_from_email(self):
        response = self.register('CEO@neo.com')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['email'], 'ceo@neo.com')
        self.assertEqual(response.data['user']['role'], CEO)
        self.assertEqual(response.data['user']['workspace_id'], 'neo')
        self.assertIn('access', response.data)

    def test_register_unknown_workspace(self):
        response = self.register('member@neo.com', workspace_id='acme')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('workspace_id', response.data)

    def test_register_duplicate_email(self):
        TestDataFactory.create_user(email='taken@neo.com')
        response = self.register('taken@neo.com')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_register_password_mismatch(self):
        response = self.client.post('/api/v1/auth/register/', {
            'email': 'new@neo.com',
            'password': self.password,
            'password_confirm': 'something-else-1',
            'workspace_id': 'neo',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_login_token_carries_role_and_workspace(self):
        TestDataFactory.create_user(email='cfo@howe.com', password=self.password, role=CFO, workspace_id='homeworkers')
        response = self.client.post('/api/v1/auth/login/', {
            'email': 'cfo@howe.com',
            'password': self.password,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        token = AccessToken(response.data['access'])
        self.assertEqual(token['role'], CFO)
        self.assertEqual(token['workspace_id'], 'homeworkers')
        self.assertEqual(response.data['user']['role'], CFO)

    def test_login_wrong_password(self):
        TestDataFactory.create_user(email='member@neo.com', password=self.password)
        response = self.client.post('/api/v1/auth/login/', {
            'email': 'member@neo.com',
            'password': 'wrong-password',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_update_profile_cannot_change_role(self):
        user = TestDataFactory.create_user()
        self.client.authenticate_user(user)
        response = self.client.patch('/api/v1/auth/me/', {
            'display_name': 'Renamed',
            'phone': '08123456789',
            'role': CEO,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertEqual(user.display_name, 'Renamed')
        self.assertEqual(user.phone, '08123456789')
        self.assertEqual(user.role, MEMBER)

    def test_change_password(self):
        user = TestDataFactory.create_user(password=self.password)
        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/auth/change-password/', {
            'current_password': self.password,
            'new_password': 'An0ther-Passw0rd!',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertTrue(user.check_password('An0ther-Passw0rd!'))

    def test_change_password_wrong_current(self):
        user = TestDataFactory.create_user(password=self.password)
        self.client.authenticate_user(user)
        response = self.client.post('/api/v1/auth/change-password/', {
            'current_password': 'not-it',
            'new_password': 'An0ther-Passw0rd!',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class UserDirectoryAPITests(TestCase):
    """Test the team directory"""

    def setUp(self):
        self.user = TestDataFactory.create_user(email='viewer@mentorme.com', display_name='Viewer')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        TestDataFactory.create_user(email='ceo@neo.com', role=CEO, workspace_id='neo', display_name='Nadia')
        TestDataFactory.create_user(email='cfo@howe.com', role=CFO, workspace_id='homeworkers', display_name='Hadi')

    def test_search_matches_name_or_email(self):
        response = self.client.get('/api/v1/users/', {'search': 'nadia'})
        self.assertEqual([u['email'] for u in response.data], ['ceo@neo.com'])

        response = self.client.get('/api/v1/users/', {'search': 'HOWE.com'})
        self.assertEqual([u['email'] for u in response.data], ['cfo@howe.com'])

    def test_filter_by_role_and_workspace(self):
        response = self.client.get('/api/v1/users/', {'role': CFO, 'workspace': 'all'})
        self.assertEqual([u['email'] for u in response.data], ['cfo@howe.com'])

        response = self.client.get('/api/v1/users/', {'workspace': 'neo'})
        self.assertEqual([u['email'] for u in response.data], ['ceo@neo.com'])

    def test_cache_is_invalidated_on_user_save(self):
        response = self.client.get('/api/v1/users/', {'role': COO})
        self.assertEqual(response.data, [])

        TestDataFactory.create_user(email='coo@neo.com', role=COO, workspace_id='neo')

        response = self.client.get('/api/v1/users/', {'role': COO})
        self.assertEqual([u['email'] for u in response.data], ['coo@neo.com'])

    def test_workspace_list_is_public(self):
        self.client.logout()
        response = self.client.get('/api/v1/workspaces/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({w['id'] for w in response.data}, {'mentorme', 'homeworkers', 'neo'})


class BackfillWorkspaceCommandTests(TestCase):
    """Test the backfill_workspace management command"""

    def test_dry_run_changes_nothing(self):
        project = TestDataFactory.create_project(workspace_id=None)
        out = StringIO()
        call_command('backfill_workspace', '--dry-run', stdout=out)
        project.refresh_from_db()
        self.assertIsNone(project.workspace_id)
        self.assertIn('would be assigned', out.getvalue())

    def test_assigns_legacy_workspace(self):
        project = TestDataFactory.create_project(workspace_id=None)
        document = TestDataFactory.create_document(workspace_id='')
        other = TestDataFactory.create_project(workspace_id='neo')
        user = TestDataFactory.create_user(workspace_id=None)

        call_command('backfill_workspace', stdout=StringIO())

        project.refresh_from_db()
        document.refresh_from_db()
        other.refresh_from_db()
        user.refresh_from_db()
        self.assertEqual(project.workspace_id, LEGACY_WORKSPACE_ID)
        self.assertEqual(document.workspace_id, LEGACY_WORKSPACE_ID)
        self.assertEqual(user.workspace_id, LEGACY_WORKSPACE_ID)
        self.assertEqual(other.workspace_id, 'neo')
        self.assertEqual(User.objects.filter(workspace_id__isnull=True).count(), 0)
