import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from insync.core.exceptions import InSyncError
from insync.core.utils import error_response, unexpected_error
from insync.core.workspaces import WorkspaceContext
from . import services
from .serializers import (
    ProjectSerializer, ProjectWriteSerializer, MilestoneCreateSerializer,
    TaskCreateSerializer, TaskUpdateSerializer
)

logger = logging.getLogger('insync.projects')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def project_list_create(request):
    """List the workspace's projects or create a new one"""
    ctx = WorkspaceContext.from_request(request)
    try:
        if request.method == 'GET':
            projects = services.list_projects(ctx)
            return Response(ProjectSerializer(projects, many=True).data)

        serializer = ProjectWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        project = services.create_project(ctx, serializer.validated_data['name'])
        return Response(ProjectSerializer(project).data, status=status.HTTP_201_CREATED)
    except InSyncError as e:
        return error_response(e)
    except Exception as e:
        return unexpected_error('project_list_create', e)


@api_view(['GET', 'PATCH', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def project_detail(request, pk):
    """Retrieve, rename or delete a project"""
    ctx = WorkspaceContext.from_request(request)
    try:
        if request.method == 'GET':
            project = services.get_project(ctx, pk)
            return Response(ProjectSerializer(project).data)
        elif request.method in ('PUT', 'PATCH'):
            serializer = ProjectWriteSerializer(data=request.data)
            if not serializer.is_valid():
                return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
            project = services.update_project(ctx, pk, serializer.validated_data['name'])
            return Response(ProjectSerializer(project).data)
        else:  # DELETE
            services.delete_project(ctx, pk)
            return Response(status=status.HTTP_204_NO_CONTENT)
    except InSyncError as e:
        logger.warning(f"Project {pk} {request.method} rejected for {request.user.email}: {e.message}")
        return error_response(e)
    except Exception as e:
        return unexpected_error('project_detail', e)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def milestone_create(request, pk):
    ctx = WorkspaceContext.from_request(request)
    serializer = MilestoneCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        milestone = services.add_milestone(ctx, pk, **serializer.validated_data)
        return Response(milestone, status=status.HTTP_201_CREATED)
    except InSyncError as e:
        logger.warning(f"Adding milestone to project {pk} failed: {e.message}")
        return error_response(e)
    except Exception as e:
        return unexpected_error('milestone_create', e)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def milestone_delete(request, pk, milestone_id):
    ctx = WorkspaceContext.from_request(request)
    try:
        services.delete_milestone(ctx, pk, milestone_id)
        return Response(status=status.HTTP_204_NO_CONTENT)
    except InSyncError as e:
        logger.warning(f"Deleting milestone {milestone_id} of project {pk} failed: {e.message}")
        return error_response(e)
    except Exception as e:
        return unexpected_error('milestone_delete', e)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def task_create(request, pk, milestone_id):
    ctx = WorkspaceContext.from_request(request)
    serializer = TaskCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        task = services.add_task(ctx, pk, milestone_id, **serializer.validated_data)
        if task is None:
            return Response({'error': 'Milestone not found'}, status=status.HTTP_404_NOT_FOUND)
        return Response(task, status=status.HTTP_201_CREATED)
    except InSyncError as e:
        logger.warning(f"Adding task to milestone {milestone_id} of project {pk} failed: {e.message}")
        return error_response(e)
    except Exception as e:
        return unexpected_error('task_create', e)


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def task_detail(request, pk, milestone_id, task_id):
    """Update or delete a task inside a milestone"""
    ctx = WorkspaceContext.from_request(request)
    try:
        if request.method == 'PATCH':
            serializer = TaskUpdateSerializer(data=request.data)
            if not serializer.is_valid():
                return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
            task = services.update_task(ctx, pk, milestone_id, task_id, serializer.validated_data)
            if task is None:
                return Response({'error': 'Task not found'}, status=status.HTTP_404_NOT_FOUND)
            return Response(task)
        else:  # DELETE
            services.delete_task(ctx, pk, milestone_id, task_id)
            return Response(status=status.HTTP_204_NO_CONTENT)
    except InSyncError as e:
        logger.warning(f"Task {task_id} {request.method} in project {pk} failed: {e.message}")
        return error_response(e)
    except Exception as e:
        return unexpected_error('task_detail', e)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def task_list(request):
    """Every task of the workspace, flattened with its project and milestone names"""
    ctx = WorkspaceContext.from_request(request)
    try:
        return Response(services.list_tasks(ctx))
    except Exception as e:
        return unexpected_error('task_list', e)
