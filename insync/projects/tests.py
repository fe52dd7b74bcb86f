"""
Test suite for the Projects module
Tests: project CRUD, nested milestone/task updates, completion stamps, workspace ownership, concurrent writes
"""
from datetime import datetime

from django.db.models import F
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from insync.core.exceptions import ProjectConflictError, ProjectNotFoundError, WorkspaceMismatchError
from insync.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from insync.core.workspaces import LEGACY_WORKSPACE_ID, WorkspaceContext
from insync.projects import services
from insync.projects.models import Project


class CompactTests(TestCase):
    """Test removal of None values from write payloads"""

    def test_compact_drops_none_recursively(self):
        value = {
            'a': 1,
            'b': None,
            'tasks': [{'id': 'x', 'due_date': None, 'completed': False}],
        }
        self.assertEqual(services.compact(value), {
            'a': 1,
            'tasks': [{'id': 'x', 'completed': False}],
        })

    def test_compact_keeps_falsy_values(self):
        self.assertEqual(services.compact({'completed': False, 'name': ''}), {'completed': False, 'name': ''})


class TaskCompletionTests(TestCase):
    """Test the completed/completed_at rule"""

    def setUp(self):
        self.now = timezone.make_aware(datetime(2024, 5, 1, 9, 30))
        self.task = {'id': 't1', 'name': 'Write report', 'completed': False}

    def test_completing_stamps_completed_at(self):
        updated = services.apply_task_update(self.task, {'completed': True}, now=self.now)
        self.assertTrue(updated['completed'])
        self.assertEqual(updated['completed_at'], self.now.isoformat())

    def test_caller_supplied_completed_at_is_kept(self):
        supplied = timezone.make_aware(datetime(2024, 4, 30, 17, 0))
        updated = services.apply_task_update(
            self.task, {'completed': True, 'completed_at': supplied}, now=self.now
        )
        self.assertEqual(updated['completed_at'], supplied.isoformat())

    def test_uncompleting_removes_completed_at(self):
        done = services.apply_task_update(self.task, {'completed': True}, now=self.now)
        undone = services.apply_task_update(done, {'completed': False, 'completed_at': self.now})
        self.assertFalse(undone['completed'])
        self.assertNotIn('completed_at', undone)

    def test_completing_again_keeps_original_stamp(self):
        done = services.apply_task_update(self.task, {'completed': True}, now=self.now)
        later = timezone.make_aware(datetime(2024, 6, 1, 8, 0))
        again = services.apply_task_update(done, {'completed': True}, now=later)
        self.assertEqual(again['completed_at'], self.now.isoformat())

    def test_unknown_fields_are_ignored(self):
        updated = services.apply_task_update(self.task, {'id': 'other', 'owner': 'x'})
        self.assertEqual(updated['id'], 't1')
        self.assertNotIn('owner', updated)


class ProjectServiceTests(TestCase):
    """Test the nested update protocol on the service layer"""

    def setUp(self):
        self.user = TestDataFactory.create_user(workspace_id='neo')
        self.ctx = WorkspaceContext('neo', user=self.user)
        self.project = services.create_project(self.ctx, 'Website relaunch')

    def test_create_project_starts_empty(self):
        self.assertEqual(self.project.milestones, [])
        self.assertEqual(self.project.workspace_id, 'neo')
        self.assertEqual(self.project.created_by, self.user)

    def test_milestones_keep_insertion_order(self):
        first = services.add_milestone(self.ctx, self.project.id, 'Design')
        second = services.add_milestone(self.ctx, self.project.id, 'Build')
        third = services.add_milestone(self.ctx, self.project.id, 'Launch')
        services.delete_milestone(self.ctx, self.project.id, second['id'])

        self.project.refresh_from_db()
        self.assertEqual([m['id'] for m in self.project.milestones], [first['id'], third['id']])
        self.assertEqual(self.project.version, 4)

    def test_add_milestone_compacts_payload(self):
        milestone = services.add_milestone(self.ctx, self.project.id, 'Design')
        self.assertNotIn('due_date', milestone)
        self.assertNotIn('reminder', milestone)
        self.assertEqual(milestone['tasks'], [])

    def test_add_task_to_milestone(self):
        milestone = services.add_milestone(self.ctx, self.project.id, 'Design')
        due = timezone.make_aware(datetime(2024, 7, 1, 0, 0))
        task = services.add_task(self.ctx, self.project.id, milestone['id'], 'Wireframes', due_date=due)

        self.assertFalse(task['completed'])
        self.assertEqual(task['due_date'], due.isoformat())
        self.assertNotIn('description', task)

        self.project.refresh_from_db()
        self.assertEqual(self.project.milestones[0]['tasks'], [task])

    def test_update_and_delete_task(self):
        milestone = services.add_milestone(self.ctx, self.project.id, 'Design')
        task = services.add_task(self.ctx, self.project.id, milestone['id'], 'Wireframes')

        updated = services.update_task(self.ctx, self.project.id, milestone['id'], task['id'], {'completed': True})
        self.assertTrue(updated['completed'])
        self.assertIn('completed_at', updated)

        services.delete_task(self.ctx, self.project.id, milestone['id'], task['id'])
        self.project.refresh_from_db()
        self.assertEqual(self.project.milestones[0]['tasks'], [])

    def test_missing_milestone_is_a_noop(self):
        milestone = services.add_milestone(self.ctx, self.project.id, 'Design')
        self.assertIsNone(services.add_task(self.ctx, self.project.id, 'missing', 'Orphan'))
        result = services.update_task(self.ctx, self.project.id, milestone['id'], 'missing', {'name': 'x'})

        self.assertIsNone(result)
        self.project.refresh_from_db()
        self.assertEqual(self.project.milestones[0]['tasks'], [])

    def test_missing_project(self):
        with self.assertRaises(ProjectNotFoundError):
            services.add_milestone(self.ctx, 999999, 'Nope')

    def test_other_workspace_cannot_mutate(self):
        other = WorkspaceContext('homeworkers')
        with self.assertRaises(WorkspaceMismatchError):
            services.add_milestone(other, self.project.id, 'Intrusion')
        with self.assertRaises(WorkspaceMismatchError):
            services.delete_project(other, self.project.id)
        self.project.refresh_from_db()
        self.assertEqual(self.project.milestones, [])

    def test_legacy_workspace_can_mutate_unassigned_project(self):
        legacy_project = TestDataFactory.create_project(workspace_id=None)
        legacy_ctx = WorkspaceContext(LEGACY_WORKSPACE_ID)
        services.add_milestone(legacy_ctx, legacy_project.id, 'Kickoff')

        with self.assertRaises(WorkspaceMismatchError):
            services.add_milestone(self.ctx, legacy_project.id, 'Not mine')

    def test_concurrent_write_is_retried_without_losing_changes(self):
        calls = []

        def mutate(milestones):
            calls.append(len(milestones))
            if len(calls) == 1:
                # Another writer adds a milestone between our read and write
                Project.objects.filter(pk=self.project.id).update(
                    milestones=[{'id': 'theirs', 'name': 'Theirs', 'tasks': []}],
                    version=F('version') + 1,
                )
            return milestones + [{'id': 'mine', 'name': 'Mine', 'tasks': []}]

        services.run_project_transaction(self.ctx, self.project.id, mutate)

        self.project.refresh_from_db()
        self.assertEqual(calls, [0, 1])
        self.assertEqual([m['id'] for m in self.project.milestones], ['theirs', 'mine'])
        self.assertEqual(self.project.version, 2)

    def test_gives_up_after_repeated_conflicts(self):
        def mutate(milestones):
            Project.objects.filter(pk=self.project.id).update(version=F('version') + 1)
            return milestones

        with self.assertRaises(ProjectConflictError):
            services.run_project_transaction(self.ctx, self.project.id, mutate)

    def test_list_tasks_sorted_by_due_date(self):
        milestone = services.add_milestone(self.ctx, self.project.id, 'Design')
        services.add_task(self.ctx, self.project.id, milestone['id'], 'Undated')
        services.add_task(self.ctx, self.project.id, milestone['id'], 'Later',
                          due_date=timezone.make_aware(datetime(2024, 9, 1)))
        services.add_task(self.ctx, self.project.id, milestone['id'], 'Sooner',
                          due_date=timezone.make_aware(datetime(2024, 8, 1)))

        tasks = services.list_tasks(self.ctx)
        self.assertEqual([t['name'] for t in tasks], ['Sooner', 'Later', 'Undated'])
        self.assertEqual(tasks[0]['project_name'], 'Website relaunch')
        self.assertEqual(tasks[0]['milestone_name'], 'Design')


class ProjectAPITests(TestCase):
    """Test Project API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(workspace_id='neo')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_and_list_projects(self):
        response = self.client.post('/api/v1/projects/', {'name': 'Zeta'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['workspace_id'], 'neo')
        self.client.post('/api/v1/projects/', {'name': 'Alpha'}, format='json')
        TestDataFactory.create_project(name='Elsewhere', workspace_id='homeworkers')

        response = self.client.get('/api/v1/projects/')
        self.assertEqual([p['name'] for p in response.data], ['Alpha', 'Zeta'])

    def test_nested_endpoints(self):
        project = TestDataFactory.create_project(workspace_id='neo')
        response = self.client.post(f'/api/v1/projects/{project.id}/milestones/', {
            'name': 'Phase 1',
            'due_date': '2024-07-01T00:00:00+07:00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        milestone_id = response.data['id']

        response = self.client.post(f'/api/v1/projects/{project.id}/milestones/{milestone_id}/tasks/', {
            'name': 'Draft plan',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        task_id = response.data['id']

        response = self.client.patch(
            f'/api/v1/projects/{project.id}/milestones/{milestone_id}/tasks/{task_id}/',
            {'completed': True}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('completed_at', response.data)

        response = self.client.get(f'/api/v1/projects/{project.id}/')
        self.assertEqual(response.data['task_count'], 1)
        self.assertEqual(response.data['completed_task_count'], 1)

        response = self.client.get('/api/v1/tasks/')
        self.assertEqual(len(response.data), 1)

    def test_update_task_not_found(self):
        project = TestDataFactory.create_project(workspace_id='neo')
        response = self.client.patch(
            f'/api/v1/projects/{project.id}/milestones/none/tasks/none/',
            {'completed': True}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_add_task_to_missing_milestone_gets_404(self):
        project = TestDataFactory.create_project(workspace_id='neo')
        response = self.client.post(f'/api/v1/projects/{project.id}/milestones/nope/tasks/',
                                    {'name': 'Ghost'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Milestone not found')
        project.refresh_from_db()
        self.assertEqual(project.milestones, [])

    def test_other_workspace_gets_403(self):
        project = TestDataFactory.create_project(workspace_id='homeworkers')
        response = self.client.post(f'/api/v1/projects/{project.id}/milestones/', {'name': 'Phase 1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertIn('error', response.data)

    def test_missing_project_gets_404(self):
        response = self.client.delete('/api/v1/projects/999999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_rename_project(self):
        project = TestDataFactory.create_project(workspace_id='neo')
        response = self.client.patch(f'/api/v1/projects/{project.id}/', {'name': 'Renamed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        project.refresh_from_db()
        self.assertEqual(project.name, 'Renamed')
        self.assertEqual(project.version, 1)
