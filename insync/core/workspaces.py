"""
Workspaces (tenants) and the per-request workspace context.

Every workspace-scoped row stores a `workspace_id`. Rows written before
workspaces existed have no id and belong to the legacy workspace; listing
for the legacy workspace merges them in, and the legacy workspace may modify
them. The `backfill_workspace` management command assigns the legacy id to
those rows.
"""
from django.db.models import Q

from .exceptions import WorkspaceMismatchError

LEGACY_WORKSPACE_ID = 'mentorme'

WORKSPACES = {
    'mentorme': 'MentorMe Up',
    'homeworkers': 'Home Workers Up',
    'neo': 'Neo Up',
}

WORKSPACE_CHOICES = list(WORKSPACES.items())


def is_valid_workspace(workspace_id):
    return workspace_id in WORKSPACES


def workspace_name(workspace_id):
    return WORKSPACES.get(workspace_id or LEGACY_WORKSPACE_ID, workspace_id)


def workspace_q(workspace_id, field='workspace_id'):
    """Q object selecting the rows visible to a workspace"""
    q = Q(**{field: workspace_id})
    if workspace_id == LEGACY_WORKSPACE_ID:
        q |= Q(**{f'{field}__isnull': True}) | Q(**{field: ''})
    return q


def filter_for_workspace(queryset, workspace_id, field='workspace_id'):
    return queryset.filter(workspace_q(workspace_id, field))


def can_mutate(record_workspace_id, caller_workspace_id):
    """
    Ownership rule for writes: the record must belong to the caller's
    workspace; the legacy workspace also owns records without a workspace.
    """
    if record_workspace_id == caller_workspace_id:
        return True
    return not record_workspace_id and caller_workspace_id == LEGACY_WORKSPACE_ID


class WorkspaceContext:
    """The caller's workspace and identity, passed explicitly to every service call"""

    def __init__(self, workspace_id, user=None):
        self.workspace_id = workspace_id or LEGACY_WORKSPACE_ID
        self.user = user

    @classmethod
    def from_request(cls, request):
        user = request.user
        return cls(getattr(user, 'workspace_id', None), user=user)

    @property
    def role(self):
        return getattr(self.user, 'role', None)

    @property
    def name(self):
        return workspace_name(self.workspace_id)

    def filter(self, queryset, field='workspace_id'):
        return filter_for_workspace(queryset, self.workspace_id, field)

    def ensure_owns(self, record_workspace_id, label='record'):
        if not can_mutate(record_workspace_id, self.workspace_id):
            raise WorkspaceMismatchError(f'This {label} belongs to another workspace')

    def __repr__(self):
        return f'WorkspaceContext({self.workspace_id!r})'
