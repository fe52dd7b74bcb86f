"""
Project, milestone and task operations.

Milestones and tasks live inside the project's `milestones` JSON array, so
every change to them is a read-modify-write of the whole array:

    read project -> check it exists and belongs to the caller's workspace
    -> build the new array by mapping/filtering the old one -> write it back

The cycle runs in a transaction with the row locked, and the write is a
compare-and-swap on `version`. If another writer got in between the read and
the write, the attempt is thrown away and retried against the fresh array,
so concurrent edits to different milestones of one project never overwrite
each other.
"""
import copy
import logging
import uuid
from datetime import datetime, date, time

from django.db import transaction
from django.db.models import F
from django.utils import timezone
from django.utils.dateparse import parse_datetime, parse_date

from insync.core.exceptions import ProjectNotFoundError, ProjectConflictError
from .models import Project

logger = logging.getLogger('insync.projects')

MAX_TRANSACTION_ATTEMPTS = 5

TASK_FIELDS = ('name', 'description', 'due_date', 'completed', 'completed_at')


def compact(value):
    """Drop keys whose value is None, recursively through dicts and lists"""
    if isinstance(value, dict):
        return {key: compact(item) for key, item in value.items() if item is not None}
    if isinstance(value, list):
        return [compact(item) for item in value]
    return value


def to_storage_timestamp(value):
    """
    Convert a date/datetime (or ISO string) to the stored ISO-8601 form.
    Dates become local midnight; naive datetimes are taken as local time.
    """
    if value is None or value == '':
        return None
    if isinstance(value, str):
        parsed = parse_datetime(value)
        if parsed is None:
            parsed_date = parse_date(value)
            if parsed_date is None:
                raise ValueError(f'Invalid timestamp: {value}')
            parsed = datetime.combine(parsed_date, time.min)
        value = parsed
    elif not isinstance(value, datetime) and isinstance(value, date):
        value = datetime.combine(value, time.min)
    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    return value.isoformat()


def from_storage_timestamp(value):
    """Parse a stored timestamp back into an aware datetime (None if absent or invalid)"""
    if not value:
        return None
    parsed = parse_datetime(value)
    if parsed is not None and timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def new_id():
    return str(uuid.uuid4())


def run_project_transaction(ctx, project_id, mutate):
    """
    Apply `mutate(milestones) -> new_milestones` to a project atomically.

    Raises:
        ProjectNotFoundError: no project with this id
        WorkspaceMismatchError: project belongs to another workspace
        ProjectConflictError: still conflicting after MAX_TRANSACTION_ATTEMPTS
    """
    for attempt in range(1, MAX_TRANSACTION_ATTEMPTS + 1):
        with transaction.atomic():
            try:
                project = Project.objects.select_for_update().get(pk=project_id)
            except Project.DoesNotExist:
                raise ProjectNotFoundError()
            ctx.ensure_owns(project.workspace_id, 'project')

            read_version = project.version
            new_milestones = compact(mutate(copy.deepcopy(project.milestones or [])))
            updated = Project.objects.filter(pk=project_id, version=read_version).update(
                milestones=new_milestones,
                version=F('version') + 1,
                updated_at=timezone.now(),
            )
            if updated:
                project.milestones = new_milestones
                project.version = read_version + 1
                return project
        logger.warning(f"Project {project_id} changed during update (attempt {attempt}/{MAX_TRANSACTION_ATTEMPTS}), retrying")
    logger.error(f"Giving up on project {project_id} after {MAX_TRANSACTION_ATTEMPTS} conflicting attempts")
    raise ProjectConflictError()


# Projects

def list_projects(ctx):
    return ctx.filter(Project.objects.all()).order_by('name')


def get_project(ctx, project_id):
    try:
        project = Project.objects.get(pk=project_id)
    except Project.DoesNotExist:
        raise ProjectNotFoundError()
    ctx.ensure_owns(project.workspace_id, 'project')
    return project


def create_project(ctx, name):
    user = ctx.user if ctx.user is not None and ctx.user.is_authenticated else None
    project = Project.objects.create(
        name=name,
        workspace_id=ctx.workspace_id,
        milestones=[],
        created_by=user,
    )
    logger.info(f"Project '{project.name}' ({project.id}) created in workspace {ctx.workspace_id}")
    return project


def update_project(ctx, project_id, name):
    with transaction.atomic():
        try:
            project = Project.objects.select_for_update().get(pk=project_id)
        except Project.DoesNotExist:
            raise ProjectNotFoundError()
        ctx.ensure_owns(project.workspace_id, 'project')
        project.name = name
        project.version += 1
        project.save(update_fields=['name', 'version', 'updated_at'])
    logger.info(f"Project {project_id} renamed to '{name}'")
    return project


def delete_project(ctx, project_id):
    project = get_project(ctx, project_id)
    project.delete()
    logger.info(f"Project {project_id} deleted from workspace {ctx.workspace_id}")


# Milestones

def add_milestone(ctx, project_id, name, due_date=None, reminder=None):
    milestone = compact({
        'id': new_id(),
        'name': name,
        'due_date': to_storage_timestamp(due_date),
        'reminder': reminder,
        'tasks': [],
    })

    def mutate(milestones):
        return milestones + [milestone]

    run_project_transaction(ctx, project_id, mutate)
    logger.info(f"Milestone {milestone['id']} added to project {project_id}")
    return milestone


def delete_milestone(ctx, project_id, milestone_id):
    def mutate(milestones):
        return [m for m in milestones if m.get('id') != milestone_id]

    project = run_project_transaction(ctx, project_id, mutate)
    logger.info(f"Milestone {milestone_id} deleted from project {project_id}")
    return project


# Tasks

def apply_task_update(task, changes, now=None):
    """
    Merge `changes` into a task and keep `completed_at` consistent:

    - completed=True stamps completed_at with `now` unless the caller sent one
      or the task already has one
    - completed=False always removes completed_at
    - a None value clears the attribute
    """
    changes = {key: value for key, value in changes.items() if key in TASK_FIELDS}
    for key in ('due_date', 'completed_at'):
        if key in changes:
            changes[key] = to_storage_timestamp(changes[key])

    updated = {**task, **changes}
    if updated.get('completed'):
        if not updated.get('completed_at'):
            updated['completed_at'] = to_storage_timestamp(now or timezone.now())
    else:
        updated['completed'] = False
        updated.pop('completed_at', None)
    return compact(updated)


def _map_tasks(milestones, milestone_id, func):
    return [
        {**m, 'tasks': func(m.get('tasks', []))} if m.get('id') == milestone_id else m
        for m in milestones
    ]


def add_task(ctx, project_id, milestone_id, name, description=None, due_date=None):
    """Append a task to a milestone; returns the task, or None if the milestone is gone"""
    task = compact({
        'id': new_id(),
        'name': name,
        'description': description,
        'due_date': to_storage_timestamp(due_date),
        'completed': False,
    })

    result = {}

    def append(tasks):
        result['found'] = True
        return tasks + [task]

    def mutate(milestones):
        result.clear()
        return _map_tasks(milestones, milestone_id, append)

    run_project_transaction(ctx, project_id, mutate)
    if not result.get('found'):
        logger.warning(f"Milestone {milestone_id} not found in project {project_id}; task not added")
        return None
    logger.info(f"Task {task['id']} added to milestone {milestone_id} of project {project_id}")
    return task


def update_task(ctx, project_id, milestone_id, task_id, changes):
    """Update one task; returns the updated task, or None if the milestone/task is gone"""
    result = {}

    def update(tasks):
        new_tasks = []
        for t in tasks:
            if t.get('id') == task_id:
                t = apply_task_update(t, changes)
                result['task'] = t
            new_tasks.append(t)
        return new_tasks

    def mutate(milestones):
        result.clear()
        return _map_tasks(milestones, milestone_id, update)

    run_project_transaction(ctx, project_id, mutate)
    logger.info(f"Task {task_id} in project {project_id} updated ({sorted(changes)})")
    return result.get('task')


def delete_task(ctx, project_id, milestone_id, task_id):
    def mutate(milestones):
        return _map_tasks(milestones, milestone_id, lambda tasks: [t for t in tasks if t.get('id') != task_id])

    project = run_project_transaction(ctx, project_id, mutate)
    logger.info(f"Task {task_id} deleted from milestone {milestone_id} of project {project_id}")
    return project


def iter_tasks(projects):
    """Yield (project, milestone, task) for every task of the given projects"""
    for project in projects:
        for milestone in project.milestones or []:
            for task in milestone.get('tasks', []):
                yield project, milestone, task


def list_tasks(ctx):
    """All tasks of the workspace, flattened, soonest due date first (undated last)"""
    flat = [
        {
            **task,
            'project_id': project.id,
            'project_name': project.name,
            'milestone_id': milestone.get('id'),
            'milestone_name': milestone.get('name'),
        }
        for project, milestone, task in iter_tasks(list_projects(ctx))
    ]

    def sort_key(item):
        due = from_storage_timestamp(item.get('due_date'))
        return (due is None, due.timestamp() if due else 0)

    return sorted(flat, key=sort_key)
