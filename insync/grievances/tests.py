"""
Test suite for the Grievances module
Tests: visibility rules, pagination, submission with attachments, CEO review workflow
"""
from unittest.mock import patch

from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError
from django.test import TestCase
from rest_framework import status
from insync.core.exceptions import StorageError
from insync.core.roles import CEO
from insync.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from insync.grievances.models import Grievance


class GrievanceListTests(TestCase):
    """Test who sees which grievances"""

    def setUp(self):
        self.ceo = TestDataFactory.create_user(email='ceo@neo.com', role=CEO, workspace_id='neo')
        self.alice = TestDataFactory.create_user(workspace_id='neo')
        self.bob = TestDataFactory.create_user(workspace_id='neo')
        self.client = AuthenticatedAPIClient()

        TestDataFactory.create_grievance(self.alice, subject='Alice 1', workspace_id='neo')
        TestDataFactory.create_grievance(self.alice, subject='Alice 2', workspace_id='neo')
        TestDataFactory.create_grievance(self.bob, subject='Bob 1', workspace_id='neo')
        outsider = TestDataFactory.create_user(workspace_id='homeworkers')
        TestDataFactory.create_grievance(outsider, subject='Outside', workspace_id='homeworkers')

    def test_member_sees_only_own(self):
        self.client.authenticate_user(self.alice)
        response = self.client.get('/api/v1/grievances/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(sorted(g['subject'] for g in response.data['results']), ['Alice 1', 'Alice 2'])

    def test_ceo_sees_whole_workspace(self):
        self.client.authenticate_user(self.ceo)
        response = self.client.get('/api/v1/grievances/')
        self.assertEqual(response.data['count'], 3)
        self.assertNotIn('Outside', [g['subject'] for g in response.data['results']])

    def test_pagination(self):
        self.client.authenticate_user(self.ceo)
        response = self.client.get('/api/v1/grievances/', {'page': 1, 'limit': 2})
        self.assertEqual(len(response.data['results']), 2)
        self.assertEqual(response.data['total_pages'], 2)
        self.assertEqual(response.data['next'], 2)
        self.assertIsNone(response.data['previous'])

        response = self.client.get('/api/v1/grievances/', {'page': 2, 'limit': 2})
        self.assertEqual(len(response.data['results']), 1)
        self.assertIsNone(response.data['next'])
        self.assertEqual(response.data['previous'], 1)

    def test_invalid_page(self):
        self.client.authenticate_user(self.ceo)
        response = self.client.get('/api/v1/grievances/', {'page': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_member_cannot_read_others_grievance(self):
        bobs = Grievance.objects.get(subject='Bob 1')
        self.client.authenticate_user(self.alice)
        response = self.client.get(f'/api/v1/grievances/{bobs.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class GrievanceSubmitTests(TestCase):
    """Test grievance submission"""

    def setUp(self):
        self.member = TestDataFactory.create_user(workspace_id='homeworkers')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.member)

    def test_submit_without_file(self):
        response = self.client.post('/api/v1/grievances/', {
            'subject': 'Noisy office',
            'description': 'The open space is too loud.',
            'type': 'Suggestion',
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        grievance = Grievance.objects.get()
        self.assertEqual(grievance.status, 'Open')
        self.assertFalse(grievance.seen_by_ceo)
        self.assertEqual(grievance.user_email, self.member.email)
        self.assertEqual(grievance.workspace_id, 'homeworkers')
        self.assertIsNone(grievance.file_url)

    @patch('insync.core.storage.upload_file')
    def test_submit_with_file(self, mock_upload):
        mock_upload.return_value = 'https://blob.example/grievances/evidence.png'
        response = self.client.post('/api/v1/grievances/', {
            'subject': 'Broken chair',
            'description': 'See attached photo.',
            'type': 'Complaint',
            'file': SimpleUploadedFile('evidence.png', b'\x89PNG', content_type='image/png'),
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['file_url'], 'https://blob.example/grievances/evidence.png')
        self.assertRegex(response.data['file_path'], r'^grievances/\d+_evidence\.png$')

    @patch('insync.core.storage.upload_file')
    def test_upload_failure_creates_nothing(self, mock_upload):
        mock_upload.side_effect = StorageError('boom')
        response = self.client.post('/api/v1/grievances/', {
            'subject': 'Broken chair',
            'description': 'See attached photo.',
            'file': SimpleUploadedFile('evidence.png', b'\x89PNG', content_type='image/png'),
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['error'], 'File could not be uploaded.')
        self.assertEqual(Grievance.objects.count(), 0)

    @patch('insync.core.storage.delete_file')
    @patch('insync.core.storage.upload_file')
    def test_attachment_removed_when_grievance_cannot_be_saved(self, mock_upload, mock_delete):
        mock_upload.return_value = 'https://blob.example/grievances/evidence.png'
        mock_delete.return_value = True
        with patch.object(Grievance.objects, 'create', side_effect=DatabaseError('disk full')):
            response = self.client.post('/api/v1/grievances/', {
                'subject': 'Broken chair',
                'description': 'See attached photo.',
                'file': SimpleUploadedFile('evidence.png', b'\x89PNG', content_type='image/png'),
            }, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(Grievance.objects.count(), 0)
        mock_delete.assert_called_once_with(mock_upload.call_args[0][0])

    def test_ceo_cannot_submit(self):
        ceo = TestDataFactory.create_user(role=CEO, workspace_id='homeworkers')
        self.client.authenticate_user(ceo)
        response = self.client.post('/api/v1/grievances/', {
            'subject': 'Anything',
            'description': 'Anything at all.',
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(Grievance.objects.count(), 0)


class GrievanceReviewTests(TestCase):
    """Test the CEO review workflow"""

    def setUp(self):
        self.ceo = TestDataFactory.create_user(role=CEO, workspace_id='neo')
        self.member = TestDataFactory.create_user(workspace_id='neo')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.ceo)
        self.grievance = TestDataFactory.create_grievance(self.member, workspace_id='neo')

    def test_has_new_and_mark_seen(self):
        other_ws_user = TestDataFactory.create_user(workspace_id='homeworkers')
        other = TestDataFactory.create_grievance(other_ws_user, workspace_id='homeworkers')

        response = self.client.get('/api/v1/grievances/has-new/')
        self.assertTrue(response.data['has_new'])

        response = self.client.post('/api/v1/grievances/mark-seen/')
        self.assertEqual(response.data['updated'], 1)

        response = self.client.get('/api/v1/grievances/has-new/')
        self.assertFalse(response.data['has_new'])
        other.refresh_from_db()
        self.assertFalse(other.seen_by_ceo)

    def test_member_cannot_mark_seen(self):
        self.client.authenticate_user(self.member)
        response = self.client.post('/api/v1/grievances/mark-seen/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.get('/api/v1/grievances/has-new/')
        self.assertFalse(response.data['has_new'])

    def test_ceo_updates_status(self):
        response = self.client.patch(f'/api/v1/grievances/{self.grievance.id}/', {'status': 'In Review'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.grievance.refresh_from_db()
        self.assertEqual(self.grievance.status, 'In Review')

    def test_invalid_status(self):
        response = self.client.patch(f'/api/v1/grievances/{self.grievance.id}/', {'status': 'Closed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_member_cannot_update_status(self):
        self.client.authenticate_user(self.member)
        response = self.client.patch(f'/api/v1/grievances/{self.grievance.id}/', {'status': 'Resolved'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    @patch('insync.core.storage.delete_file')
    def test_bulk_delete(self, mock_delete):
        mock_delete.return_value = True
        with_file = TestDataFactory.create_grievance(self.member, workspace_id='neo')
        with_file.file_path = 'grievances/1_evidence.png'
        with_file.save()
        foreign = TestDataFactory.create_grievance(TestDataFactory.create_user(workspace_id='homeworkers'),
                                                   workspace_id='homeworkers')

        response = self.client.post('/api/v1/grievances/bulk-delete/', {
            'ids': [self.grievance.id, with_file.id, foreign.id],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(sorted(response.data['deleted']), sorted([self.grievance.id, with_file.id]))
        self.assertTrue(Grievance.objects.filter(pk=foreign.id).exists())
        mock_delete.assert_called_once_with('grievances/1_evidence.png')
