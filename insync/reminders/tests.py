"""
Test suite for the Reminders module
Tests: gateway client, manual reminder sweep, task digest, cron endpoint, management command, reminder CRUD
"""
from datetime import date, datetime
from io import StringIO
from unittest.mock import patch, MagicMock

import requests
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from insync.core.models import User
from insync.core.roles import CEO, COO, CFO, MEMBER
from insync.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from insync.reminders import notifications
from insync.reminders.models import Reminder

TODAY = date(2024, 5, 10)


def local_dt(year, month, day, hour=12):
    return timezone.make_aware(datetime(year, month, day, hour, 0))


def ok_response():
    return MagicMock(ok=True, status_code=200, text='{"status": true}')


@override_settings(FONNTE_API_TOKEN='test-token', FONNTE_API_URL='https://gateway.test/send')
class SendMessageTests(TestCase):
    """Test the gateway client"""

    def test_format_target(self):
        self.assertEqual(notifications.format_target('08123456789'), '628123456789')
        self.assertEqual(notifications.format_target('628123456789'), '628123456789')

    @patch('insync.reminders.notifications.requests.post')
    def test_send_message_posts_to_gateway(self, mock_post):
        mock_post.return_value = ok_response()
        self.assertTrue(notifications.send_message('08123', 'Hello there'))
        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], 'https://gateway.test/send')
        self.assertEqual(kwargs['json'], {'target': '628123', 'message': 'Hello there'})
        self.assertEqual(kwargs['headers']['Authorization'], 'test-token')

    @patch('insync.reminders.notifications.requests.post')
    def test_gateway_error_returns_false(self, mock_post):
        mock_post.return_value = MagicMock(ok=False, status_code=500, text='error')
        self.assertFalse(notifications.send_message('08123', 'Hello there'))

    @patch('insync.reminders.notifications.requests.post')
    def test_network_error_returns_false(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError('down')
        self.assertFalse(notifications.send_message('08123', 'Hello there'))

    @override_settings(FONNTE_API_TOKEN='')
    @patch('insync.reminders.notifications.requests.post')
    def test_missing_token_skips_send(self, mock_post):
        self.assertFalse(notifications.send_message('08123', 'Hello there'))
        mock_post.assert_not_called()


@override_settings(FONNTE_API_TOKEN='test-token', TIME_ZONE='Asia/Jakarta')
class ManualReminderSweepTests(TestCase):
    """Test the manual reminder sweep"""

    def setUp(self):
        self.member_a = TestDataFactory.create_user(role=MEMBER, phone='0811111', workspace_id='neo')
        self.member_b = TestDataFactory.create_user(role=MEMBER, phone='0822222', workspace_id='neo')
        TestDataFactory.create_user(role=MEMBER, phone=None, workspace_id='neo')
        TestDataFactory.create_user(role=CFO, phone='0833333', workspace_id='neo')
        TestDataFactory.create_user(role=MEMBER, phone='0844444', workspace_id='homeworkers')

    @patch('insync.reminders.notifications.requests.post')
    def test_each_matching_user_gets_one_message(self, mock_post):
        mock_post.return_value = ok_response()
        reminder = TestDataFactory.create_reminder(target_role=MEMBER, reminder_date=local_dt(2024, 5, 10),
                                                   workspace_id='neo')

        summary = notifications.send_manual_reminders(today=TODAY)

        targets = sorted(call.kwargs['json']['target'] for call in mock_post.call_args_list)
        self.assertEqual(targets, ['62811111', '62822222', '62844444'])
        self.assertEqual(summary, {'reminders': 1, 'sent': 3, 'failed': 0})
        self.assertFalse(Reminder.objects.filter(pk=reminder.id).exists())

    @patch('insync.reminders.notifications.requests.post')
    def test_recipients_span_every_workspace(self, mock_post):
        mock_post.return_value = ok_response()
        User.objects.exclude(phone__in=['0811111', '0844444']).update(phone=None)
        TestDataFactory.create_reminder(target_role=MEMBER, reminder_date=local_dt(2024, 5, 10), workspace_id='neo')

        notifications.send_manual_reminders(today=TODAY)

        targets = sorted(call.kwargs['json']['target'] for call in mock_post.call_args_list)
        self.assertEqual(targets, ['62811111', '62844444'])

    @patch('insync.reminders.notifications.requests.post')
    def test_reminder_deleted_even_when_sends_fail(self, mock_post):
        mock_post.side_effect = requests.exceptions.Timeout('slow')
        reminder = TestDataFactory.create_reminder(target_role=MEMBER, reminder_date=local_dt(2024, 5, 10),
                                                   workspace_id='neo')

        summary = notifications.send_manual_reminders(today=TODAY)

        self.assertEqual(mock_post.call_count, 3)
        self.assertEqual(summary['failed'], 3)
        self.assertFalse(Reminder.objects.filter(pk=reminder.id).exists())

    @patch('insync.reminders.notifications.requests.post')
    def test_reminder_without_recipients_is_still_deleted(self, mock_post):
        reminder = TestDataFactory.create_reminder(target_role=CEO, reminder_date=local_dt(2024, 5, 10),
                                                   workspace_id='neo')
        notifications.send_manual_reminders(today=TODAY)
        mock_post.assert_not_called()
        self.assertFalse(Reminder.objects.filter(pk=reminder.id).exists())

    @patch('insync.reminders.notifications.requests.post')
    def test_other_days_are_left_alone(self, mock_post):
        tomorrow = TestDataFactory.create_reminder(reminder_date=local_dt(2024, 5, 11), workspace_id='neo')
        yesterday = TestDataFactory.create_reminder(reminder_date=local_dt(2024, 5, 9), workspace_id='neo')

        summary = notifications.send_manual_reminders(today=TODAY)

        mock_post.assert_not_called()
        self.assertEqual(summary['reminders'], 0)
        self.assertTrue(Reminder.objects.filter(pk__in=[tomorrow.id, yesterday.id]).count() == 2)

    @patch('insync.reminders.notifications.requests.post')
    def test_local_date_decides_today(self, mock_post):
        mock_post.return_value = ok_response()
        # 01:00 on the 10th in Jakarta is still the 9th in UTC
        early = TestDataFactory.create_reminder(reminder_date=local_dt(2024, 5, 10, hour=1), workspace_id='neo')
        notifications.send_manual_reminders(today=TODAY)
        self.assertFalse(Reminder.objects.filter(pk=early.id).exists())

    @patch('insync.reminders.notifications.requests.post')
    def test_unassigned_reminder_reaches_every_matching_user(self, mock_post):
        mock_post.return_value = ok_response()
        legacy_member = TestDataFactory.create_user(role=MEMBER, phone='0855555', workspace_id=None)
        inactive = TestDataFactory.create_user(role=MEMBER, phone='0866666', workspace_id='neo')
        inactive.is_active = False
        inactive.save()
        TestDataFactory.create_reminder(reminder_date=local_dt(2024, 5, 10), workspace_id=None)

        notifications.send_manual_reminders(today=TODAY)

        targets = [call.kwargs['json']['target'] for call in mock_post.call_args_list]
        self.assertEqual(sorted(targets), ['62811111', '62822222', '62844444',
                                           notifications.format_target(legacy_member.phone)])


@override_settings(FONNTE_API_TOKEN='test-token', TIME_ZONE='Asia/Jakarta')
class TaskReminderSweepTests(TestCase):
    """Test the automatic digest of tasks due tomorrow"""

    def setUp(self):
        self.ceo = TestDataFactory.create_user(role=CEO, phone='0811111', workspace_id='neo')
        self.coo = TestDataFactory.create_user(role=COO, phone='0822222', workspace_id='neo')
        TestDataFactory.create_user(role=MEMBER, phone='0833333', workspace_id='neo')

    def make_project(self, tasks, workspace_id='neo'):
        return TestDataFactory.create_project(workspace_id=workspace_id, milestones=[
            {'id': 'm1', 'name': 'Phase 1', 'tasks': tasks},
        ])

    @patch('insync.reminders.notifications.requests.post')
    def test_incomplete_tasks_due_tomorrow_go_to_managers(self, mock_post):
        mock_post.return_value = ok_response()
        self.make_project([
            {'id': 't1', 'name': 'Due tomorrow', 'completed': False,
             'due_date': local_dt(2024, 5, 11, hour=9).isoformat()},
            {'id': 't2', 'name': 'Done already', 'completed': True,
             'due_date': local_dt(2024, 5, 11, hour=9).isoformat(), 'completed_at': local_dt(2024, 5, 9).isoformat()},
            {'id': 't3', 'name': 'Due later', 'completed': False,
             'due_date': local_dt(2024, 5, 20).isoformat()},
            {'id': 't4', 'name': 'No due date', 'completed': False},
        ])

        summary = notifications.send_task_reminders(today=TODAY)

        self.assertEqual(summary, {'tasks': 1, 'sent': 2, 'failed': 0})
        targets = sorted(call.kwargs['json']['target'] for call in mock_post.call_args_list)
        self.assertEqual(targets, ['62811111', '62822222'])
        self.assertIn('Due tomorrow', mock_post.call_args.kwargs['json']['message'])

    @patch('insync.reminders.notifications.requests.post')
    def test_managers_of_every_workspace_get_the_digest(self, mock_post):
        mock_post.return_value = ok_response()
        TestDataFactory.create_user(role=CEO, phone='0844444', workspace_id='homeworkers')
        self.make_project([
            {'id': 't1', 'name': 'Due tomorrow', 'completed': False,
             'due_date': local_dt(2024, 5, 11).isoformat()},
        ], workspace_id='homeworkers')

        summary = notifications.send_task_reminders(today=TODAY)

        targets = sorted(call.kwargs['json']['target'] for call in mock_post.call_args_list)
        self.assertEqual(targets, ['62811111', '62822222', '62844444'])
        self.assertEqual(summary, {'tasks': 1, 'sent': 3, 'failed': 0})

    @patch('insync.reminders.notifications.requests.post')
    def test_no_managers_with_phone(self, mock_post):
        User.objects.filter(role__in=[CEO, COO]).update(phone='')
        self.make_project([
            {'id': 't1', 'name': 'Due tomorrow', 'completed': False,
             'due_date': local_dt(2024, 5, 11).isoformat()},
        ])

        summary = notifications.send_task_reminders(today=TODAY)

        mock_post.assert_not_called()
        self.assertEqual(summary['tasks'], 0)

    @patch('insync.reminders.notifications.send_task_reminders')
    @patch('insync.reminders.notifications.send_manual_reminders')
    def test_run_all_reminders(self, mock_manual, mock_tasks):
        mock_manual.return_value = {'reminders': 0, 'sent': 0, 'failed': 0}
        mock_tasks.return_value = {'tasks': 0, 'sent': 0, 'failed': 0}
        summary = notifications.run_all_reminders(TODAY)
        mock_manual.assert_called_once_with(TODAY)
        mock_tasks.assert_called_once_with(TODAY)
        self.assertEqual(set(summary), {'manual', 'tasks'})


class CronEndpointTests(TestCase):
    """Test the scheduler-facing endpoint"""

    summary = {
        'manual': {'reminders': 1, 'sent': 1, 'failed': 0},
        'tasks': {'tasks': 0, 'sent': 0, 'failed': 0},
    }

    @override_settings(CRON_SECRET='')
    @patch('insync.reminders.views.run_all_reminders')
    def test_cron_success(self, mock_run):
        mock_run.return_value = self.summary
        response = self.client.get('/api/v1/cron/reminders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()['message'], 'Cron job executed successfully.')
        self.assertEqual(response.json()['summary'], self.summary)

    @override_settings(CRON_SECRET='')
    @patch('insync.reminders.views.run_all_reminders')
    def test_cron_failure(self, mock_run):
        mock_run.side_effect = RuntimeError('database unavailable')
        response = self.client.get('/api/v1/cron/reminders/')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json(), {'message': 'Cron job failed.', 'error': 'database unavailable'})

    @override_settings(CRON_SECRET='s3cret')
    @patch('insync.reminders.views.run_all_reminders')
    def test_cron_secret(self, mock_run):
        mock_run.return_value = self.summary
        response = self.client.get('/api/v1/cron/reminders/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        mock_run.assert_not_called()

        response = self.client.get('/api/v1/cron/reminders/', HTTP_AUTHORIZATION='Bearer s3cret')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    @patch('insync.reminders.management.commands.send_reminders.run_all_reminders')
    def test_management_command(self, mock_run):
        mock_run.return_value = self.summary
        out = StringIO()
        call_command('send_reminders', '--date', '2024-05-10', stdout=out)
        mock_run.assert_called_once_with(TODAY)
        self.assertIn('Reminder sweep finished', out.getvalue())


class ReminderAPITests(TestCase):
    """Test reminder CRUD endpoints"""

    def setUp(self):
        self.coo = TestDataFactory.create_user(role=COO, workspace_id='neo')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.coo)

    def test_create_reminder(self):
        response = self.client.post('/api/v1/reminders/', {
            'message': 'Submit the monthly report',
            'target_role': MEMBER,
            'reminder_date': '2024-05-10T09:00:00+07:00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        reminder = Reminder.objects.get()
        self.assertEqual(reminder.workspace_id, 'neo')
        self.assertEqual(reminder.created_by, self.coo)

    def test_message_minimum_length(self):
        response = self.client.post('/api/v1/reminders/', {
            'message': 'Too short',
            'target_role': MEMBER,
            'reminder_date': '2024-05-10T09:00:00+07:00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('message', response.data)

    def test_members_cannot_manage_reminders(self):
        member = TestDataFactory.create_user(workspace_id='neo')
        self.client.authenticate_user(member)
        response = self.client.get('/api/v1/reminders/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_and_delete(self):
        mine = TestDataFactory.create_reminder(workspace_id='neo')
        TestDataFactory.create_reminder(workspace_id='homeworkers')

        response = self.client.get('/api/v1/reminders/')
        self.assertEqual([r['id'] for r in response.data], [mine.id])

        response = self.client.delete(f'/api/v1/reminders/{mine.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Reminder.objects.filter(pk=mine.id).exists())
