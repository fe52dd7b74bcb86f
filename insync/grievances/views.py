import logging

from django.core.paginator import Paginator
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser, JSONParser
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from insync.core import storage
from insync.core.exceptions import InSyncError, StorageError
from insync.core.roles import CEO, has_role
from insync.core.serializers import BulkIdsSerializer
from insync.core.utils import error_response, forbidden, require_role, unexpected_error
from insync.core.workspaces import WorkspaceContext
from .models import Grievance
from .serializers import GrievanceSerializer, GrievanceCreateSerializer, GrievanceStatusSerializer

logger = logging.getLogger('insync.grievances')

DEFAULT_PAGE_SIZE = 10


def visible_grievances(ctx):
    """The CEO reviews every grievance in the workspace; everybody else only sees their own"""
    queryset = ctx.filter(Grievance.objects.all())
    if ctx.role != CEO:
        queryset = queryset.filter(user=ctx.user)
    return queryset.order_by('-created_at', '-id')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser, JSONParser])
def grievance_list_create(request):
    """List grievances with pagination or submit a new one"""
    ctx = WorkspaceContext.from_request(request)
    if request.method == 'GET':
        try:
            page = int(request.query_params.get('page', 1))
            limit = int(request.query_params.get('limit', DEFAULT_PAGE_SIZE))
        except ValueError:
            return Response({'error': 'page and limit must be integers'}, status=status.HTTP_400_BAD_REQUEST)
        limit = max(limit, 1)

        paginator = Paginator(visible_grievances(ctx), limit)
        page_obj = paginator.get_page(page)

        serializer = GrievanceSerializer(page_obj, many=True)
        return Response({
            'results': serializer.data,
            'count': paginator.count,
            'next': page_obj.next_page_number() if page_obj.has_next() else None,
            'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
            'page': page_obj.number,
            'page_size': limit,
            'total_pages': paginator.num_pages,
        })

    if has_role(request.user, CEO):
        return forbidden('CEO cannot submit grievances')

    serializer = GrievanceCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    file_url = None
    file_path = None
    upload = data.get('file')
    try:
        if upload:
            file_path = storage.build_storage_path('grievances', upload.name)
            file_url = storage.upload_file(file_path, upload, content_type=getattr(upload, 'content_type', None))

        grievance = Grievance.objects.create(
            user=request.user,
            user_email=request.user.email,
            subject=data['subject'],
            description=data['description'],
            type=data['type'],
            file_url=file_url,
            file_path=file_path,
            workspace_id=ctx.workspace_id,
        )
    except StorageError as e:
        logger.error(f"Grievance attachment upload failed for {request.user.email}: {e.message}")
        return Response({'error': 'File could not be uploaded.'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    except Exception as e:
        if file_url:
            logger.warning(f"Saving grievance for {request.user.email} failed; removing uploaded attachment {file_path}")
            storage.delete_file(file_path)
        return unexpected_error('grievance_list_create', e)

    logger.info(f"Grievance {grievance.id} submitted by {request.user.email} in {ctx.workspace_id}")
    return Response(GrievanceSerializer(grievance).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def grievance_detail(request, pk):
    """Retrieve a grievance or change its status (CEO only)"""
    ctx = WorkspaceContext.from_request(request)
    grievance = visible_grievances(ctx).filter(pk=pk).first()
    if grievance is None:
        return Response({'error': 'Grievance not found'}, status=status.HTTP_404_NOT_FOUND)

    if request.method == 'GET':
        return Response(GrievanceSerializer(grievance).data)

    denied = require_role(request, [CEO], 'Only the CEO can update grievance status')
    if denied:
        return denied

    serializer = GrievanceStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        ctx.ensure_owns(grievance.workspace_id, 'grievance')
    except InSyncError as e:
        return error_response(e)

    grievance.status = serializer.validated_data['status']
    grievance.save(update_fields=['status'])
    logger.info(f"Grievance {pk} set to '{grievance.status}' by {request.user.email}")
    return Response(GrievanceSerializer(grievance).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def grievance_has_new(request):
    """Whether the workspace has grievances the CEO has not seen yet"""
    ctx = WorkspaceContext.from_request(request)
    if ctx.role != CEO:
        return Response({'has_new': False})
    has_new = ctx.filter(Grievance.objects.filter(seen_by_ceo=False)).exists()
    return Response({'has_new': has_new})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def grievance_mark_seen(request):
    """Mark every unseen grievance in the workspace as seen (CEO only)"""
    denied = require_role(request, [CEO], 'Only the CEO can mark grievances as seen')
    if denied:
        return denied

    ctx = WorkspaceContext.from_request(request)
    updated = ctx.filter(Grievance.objects.filter(seen_by_ceo=False)).update(seen_by_ceo=True)
    if updated:
        logger.info(f"CEO {request.user.email} marked {updated} grievances as seen in {ctx.workspace_id}")
    return Response({'updated': updated})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def grievance_bulk_delete(request):
    """Delete the selected grievances and their attachments (CEO only)"""
    denied = require_role(request, [CEO], 'Only the CEO can delete grievances')
    if denied:
        return denied

    serializer = BulkIdsSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    ctx = WorkspaceContext.from_request(request)
    grievances = list(ctx.filter(Grievance.objects.filter(pk__in=serializer.validated_data['ids'])))
    deleted = []
    for grievance in grievances:
        grievance_id = grievance.id
        file_path = grievance.file_path
        grievance.delete()
        if file_path and not storage.delete_file(file_path):
            logger.warning(f"Grievance {grievance_id} removed but attachment {file_path} could not be deleted")
        deleted.append(grievance_id)

    logger.info(f"CEO {request.user.email} deleted grievances {deleted}")
    return Response({'deleted': deleted})
