"""
Test suite for the Cash Flow module
Tests: listing and type filter, CFO-only mutations, validation, workspace scoping, summary totals
"""
from datetime import date
from decimal import Decimal

from django.test import TestCase
from rest_framework import status
from insync.core.roles import CFO, CEO
from insync.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from insync.cashflow.models import Transaction


class TransactionAPITests(TestCase):
    """Test Transaction API endpoints"""

    def setUp(self):
        self.cfo = TestDataFactory.create_user(email='cfo@neo.com', role=CFO, workspace_id='neo')
        self.member = TestDataFactory.create_user(workspace_id='neo')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.cfo)

    def transaction_data(self, **overrides):
        data = {
            'type': 'Expense',
            'amount': '2500000.00',
            'category': 'Marketing',
            'description': 'Social media campaign',
            'date': '2024-05-10',
        }
        data.update(overrides)
        return data

    def test_cfo_creates_transaction(self):
        response = self.client.post('/api/v1/transactions/', self.transaction_data(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['workspace_id'], 'neo')
        self.assertEqual(response.data['created_by'], self.cfo.id)
        self.assertEqual(Transaction.objects.get().amount, Decimal('2500000.00'))

    def test_non_cfo_cannot_create(self):
        self.client.authenticate_user(self.member)
        response = self.client.post('/api/v1/transactions/', self.transaction_data(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Only the CFO can add transactions')
        self.assertEqual(Transaction.objects.count(), 0)

    def test_ceo_cannot_delete(self):
        ceo = TestDataFactory.create_user(role=CEO, workspace_id='neo')
        transaction_obj = TestDataFactory.create_transaction(workspace_id='neo')
        self.client.authenticate_user(ceo)
        response = self.client.delete(f'/api/v1/transactions/{transaction_obj.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Transaction.objects.filter(pk=transaction_obj.id).exists())

    def test_amount_must_be_positive(self):
        response = self.client.post('/api/v1/transactions/', self.transaction_data(amount='0'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('amount', response.data)

    def test_description_is_required(self):
        response = self.client.post('/api/v1/transactions/', self.transaction_data(description='   '), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('description', response.data)

    def test_invalid_category(self):
        response = self.client.post('/api/v1/transactions/', self.transaction_data(category='Gambling'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_newest_first_with_type_filter(self):
        TestDataFactory.create_transaction(type='Income', workspace_id='neo', date=date(2024, 1, 5))
        TestDataFactory.create_transaction(type='Expense', workspace_id='neo', date=date(2024, 3, 1))
        TestDataFactory.create_transaction(type='Income', workspace_id='neo', date=date(2024, 2, 1))
        TestDataFactory.create_transaction(type='Income', workspace_id='homeworkers')

        self.client.authenticate_user(self.member)
        response = self.client.get('/api/v1/transactions/')
        self.assertEqual([t['date'] for t in response.data], ['2024-03-01', '2024-02-01', '2024-01-05'])

        response = self.client.get('/api/v1/transactions/', {'type': 'Income'})
        self.assertEqual([t['date'] for t in response.data], ['2024-02-01', '2024-01-05'])

    def test_cfo_updates_transaction(self):
        transaction_obj = TestDataFactory.create_transaction(workspace_id='neo')
        response = self.client.patch(f'/api/v1/transactions/{transaction_obj.id}/', {'amount': '750.50'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        transaction_obj.refresh_from_db()
        self.assertEqual(transaction_obj.amount, Decimal('750.50'))

    def test_cfo_cannot_touch_other_workspace(self):
        transaction_obj = TestDataFactory.create_transaction(workspace_id='homeworkers')
        response = self.client.delete(f'/api/v1/transactions/{transaction_obj.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Transaction.objects.filter(pk=transaction_obj.id).exists())

    def test_cfo_deletes_transaction(self):
        transaction_obj = TestDataFactory.create_transaction(workspace_id='neo')
        response = self.client.delete(f'/api/v1/transactions/{transaction_obj.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Transaction.objects.filter(pk=transaction_obj.id).exists())

    def test_missing_transaction(self):
        response = self.client.get('/api/v1/transactions/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class TransactionSummaryTests(TestCase):
    """Test the cash flow summary endpoint"""

    def setUp(self):
        self.user = TestDataFactory.create_user(workspace_id='mentorme')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_summary_totals(self):
        TestDataFactory.create_transaction(type='Income', amount=Decimal('1000.00'), workspace_id='mentorme')
        TestDataFactory.create_transaction(type='Income', amount=Decimal('500.00'), workspace_id=None)
        TestDataFactory.create_transaction(type='Expense', amount=Decimal('300.25'), workspace_id='mentorme')
        TestDataFactory.create_transaction(type='Expense', amount=Decimal('999.00'), workspace_id='neo')

        response = self.client.get('/api/v1/transactions/summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['total_income']), Decimal('1500.00'))
        self.assertEqual(Decimal(response.data['total_expense']), Decimal('300.25'))
        self.assertEqual(Decimal(response.data['balance']), Decimal('1199.75'))
        self.assertEqual(response.data['income_count'], 2)
        self.assertEqual(response.data['expense_count'], 1)

    def test_empty_summary(self):
        response = self.client.get('/api/v1/transactions/summary/')
        self.assertEqual(Decimal(response.data['balance']), Decimal('0.00'))
