import logging

from django.conf import settings
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from insync.core.exceptions import InSyncError
from insync.core.roles import MANAGER_ROLES
from insync.core.utils import error_response, require_role
from insync.core.workspaces import WorkspaceContext
from .models import Reminder
from .notifications import run_all_reminders
from .serializers import ReminderSerializer

logger = logging.getLogger('insync.reminders')

MANAGERS_ONLY = 'Only the CEO or COO can manage reminders'


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def reminder_list_create(request):
    """List pending reminders or schedule a new one (CEO/COO only)"""
    denied = require_role(request, MANAGER_ROLES, MANAGERS_ONLY)
    if denied:
        return denied

    ctx = WorkspaceContext.from_request(request)
    if request.method == 'GET':
        queryset = ctx.filter(Reminder.objects.select_related('created_by')).order_by('reminder_date', 'id')
        return Response(ReminderSerializer(queryset, many=True).data)

    serializer = ReminderSerializer(data=request.data)
    if serializer.is_valid():
        reminder = serializer.save(workspace_id=ctx.workspace_id, created_by=request.user)
        logger.info(f"User {request.user.email} scheduled reminder {reminder.id} for {reminder.target_role} on {reminder.reminder_date}")
        return Response(ReminderSerializer(reminder).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def reminder_detail(request, pk):
    """Cancel a pending reminder (CEO/COO only)"""
    denied = require_role(request, MANAGER_ROLES, MANAGERS_ONLY)
    if denied:
        return denied

    ctx = WorkspaceContext.from_request(request)
    reminder = Reminder.objects.filter(pk=pk).first()
    if reminder is None:
        return Response({'error': 'Reminder not found'}, status=status.HTTP_404_NOT_FOUND)
    try:
        ctx.ensure_owns(reminder.workspace_id, 'reminder')
    except InSyncError as e:
        return error_response(e)

    reminder.delete()
    logger.info(f"User {request.user.email} deleted reminder {pk}")
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def cron_reminders(request):
    """
    Run the reminder sweep. Called by an external scheduler.

    When CRON_SECRET is set the scheduler must send `Authorization: Bearer <secret>`.
    """
    secret = getattr(settings, 'CRON_SECRET', '')
    if secret and request.headers.get('Authorization') != f'Bearer {secret}':
        logger.warning("Cron request rejected: bad or missing secret")
        return Response({'message': 'Unauthorized'}, status=status.HTTP_401_UNAUTHORIZED)

    try:
        logger.info("Cron job started via API")
        summary = run_all_reminders()
        logger.info("Cron job finished successfully")
        return Response({'message': 'Cron job executed successfully.', 'summary': summary})
    except Exception as e:
        logger.error(f"Error running cron job: {str(e)}", exc_info=True)
        return Response({'message': 'Cron job failed.', 'error': str(e)}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
