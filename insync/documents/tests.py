"""
Test suite for the Documents module
Tests: type inference, category/search filtering, upload, single and bulk delete with blob failures
"""
from unittest.mock import patch

from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError
from django.test import TestCase
from rest_framework import status
from insync.core.exceptions import StorageError
from insync.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from insync.documents.filters import DocumentFilter
from insync.documents.models import Document


class DocumentModelTests(TestCase):
    """Test Document model helpers"""

    def test_infer_type(self):
        self.assertEqual(Document.infer_type('contract.PDF'), 'PDF')
        self.assertEqual(Document.infer_type('minutes.docx'), 'Word')
        self.assertEqual(Document.infer_type('budget.xls'), 'Excel')
        self.assertEqual(Document.infer_type('logo.jpeg'), 'Image')
        self.assertEqual(Document.infer_type('archive.zip'), 'Other')
        self.assertEqual(Document.infer_type('README'), 'Other')


class DocumentFilterTests(TestCase):
    """Test the category tab + name search filter"""

    def setUp(self):
        TestDataFactory.create_document(name='Annual Report 2023.pdf', category='Reports')
        TestDataFactory.create_document(name='Q1 report.xlsx', category='Finance')
        TestDataFactory.create_document(name='NDA.docx', category='Legal')

    def names(self, params):
        return sorted(d.name for d in DocumentFilter(params, queryset=Document.objects.all()).qs)

    def test_category_and_search_must_both_match(self):
        self.assertEqual(self.names({'category': 'Finance', 'search': 'REPORT'}), ['Q1 report.xlsx'])

    def test_all_tab_means_no_category_filter(self):
        self.assertEqual(self.names({'category': 'all', 'search': 'report'}),
                         ['Annual Report 2023.pdf', 'Q1 report.xlsx'])

    def test_no_params_returns_everything(self):
        self.assertEqual(len(self.names({})), 3)


class DocumentAPITests(TestCase):
    """Test Document API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(workspace_id='neo')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_list_is_workspace_scoped(self):
        TestDataFactory.create_document(name='mine.pdf', workspace_id='neo')
        TestDataFactory.create_document(name='theirs.pdf', workspace_id='homeworkers')
        response = self.client.get('/api/v1/documents/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([d['name'] for d in response.data], ['mine.pdf'])

    def test_list_with_filters(self):
        TestDataFactory.create_document(name='Policy.pdf', category='Legal', workspace_id='neo')
        TestDataFactory.create_document(name='Payroll.xlsx', category='Finance', workspace_id='neo')
        response = self.client.get('/api/v1/documents/', {'category': 'Legal', 'search': 'pol'})
        self.assertEqual([d['name'] for d in response.data], ['Policy.pdf'])

    @patch('insync.core.storage.upload_file')
    def test_upload_document(self, mock_upload):
        mock_upload.return_value = 'https://blob.example/documents/contract.pdf'
        upload = SimpleUploadedFile('contract.pdf', b'%PDF-1.4', content_type='application/pdf')
        response = self.client.post('/api/v1/documents/', {'file': upload, 'category': 'Legal'}, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['type'], 'PDF')
        self.assertEqual(response.data['workspace_id'], 'neo')
        self.assertEqual(response.data['url'], 'https://blob.example/documents/contract.pdf')
        self.assertRegex(response.data['storage_path'], r'^documents/\d+_contract\.pdf$')
        self.assertEqual(response.data['uploaded_by_email'], self.user.email)
        self.assertEqual(mock_upload.call_args[0][0], response.data['storage_path'])

    @patch('insync.core.storage.upload_file')
    def test_upload_failure_creates_nothing(self, mock_upload):
        mock_upload.side_effect = StorageError('File could not be uploaded.')
        upload = SimpleUploadedFile('contract.pdf', b'%PDF-1.4', content_type='application/pdf')
        response = self.client.post('/api/v1/documents/', {'file': upload, 'category': 'Legal'}, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['error'], 'File could not be uploaded.')
        self.assertEqual(Document.objects.count(), 0)

    @patch('insync.core.storage.delete_file')
    @patch('insync.core.storage.upload_file')
    def test_blob_removed_when_record_cannot_be_saved(self, mock_upload, mock_delete):
        mock_upload.return_value = 'https://blob.example/documents/contract.pdf'
        mock_delete.return_value = True
        upload = SimpleUploadedFile('contract.pdf', b'%PDF-1.4', content_type='application/pdf')
        with patch.object(Document.objects, 'create', side_effect=DatabaseError('disk full')):
            response = self.client.post('/api/v1/documents/', {'file': upload, 'category': 'Legal'},
                                        format='multipart')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(Document.objects.count(), 0)
        mock_delete.assert_called_once_with(mock_upload.call_args[0][0])

    def test_upload_requires_valid_category(self):
        upload = SimpleUploadedFile('contract.pdf', b'%PDF-1.4', content_type='application/pdf')
        response = self.client.post('/api/v1/documents/', {'file': upload, 'category': 'Gossip'}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @patch('insync.core.storage.delete_file')
    def test_delete_document(self, mock_delete):
        mock_delete.return_value = True
        document = TestDataFactory.create_document(workspace_id='neo')
        response = self.client.delete(f'/api/v1/documents/{document.id}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['blob_deleted'])
        self.assertFalse(Document.objects.filter(pk=document.id).exists())
        mock_delete.assert_called_once_with(document.storage_path)

    @patch('insync.core.storage.delete_file')
    def test_delete_other_workspace_document(self, mock_delete):
        document = TestDataFactory.create_document(workspace_id='homeworkers')
        response = self.client.delete(f'/api/v1/documents/{document.id}/')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Document.objects.filter(pk=document.id).exists())
        mock_delete.assert_not_called()

    @patch('insync.core.storage.delete_file')
    def test_bulk_delete_removes_records_even_when_blob_delete_fails(self, mock_delete):
        first = TestDataFactory.create_document(workspace_id='neo')
        second = TestDataFactory.create_document(workspace_id='neo')
        foreign = TestDataFactory.create_document(workspace_id='homeworkers')
        mock_delete.side_effect = lambda path: path != second.storage_path

        response = self.client.post('/api/v1/documents/bulk-delete/', {
            'ids': [first.id, second.id, foreign.id],
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(sorted(response.data['deleted']), sorted([first.id, second.id]))
        self.assertEqual(response.data['blob_failures'], [second.id])
        self.assertEqual(response.data['not_found'], [foreign.id])
        self.assertFalse(Document.objects.filter(pk__in=[first.id, second.id]).exists())
        self.assertTrue(Document.objects.filter(pk=foreign.id).exists())
        self.assertEqual(mock_delete.call_count, 2)

    def test_bulk_delete_requires_ids(self):
        response = self.client.post('/api/v1/documents/bulk-delete/', {'ids': []}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
