import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser, JSONParser
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from insync.core import storage
from insync.core.exceptions import InSyncError, StorageError
from insync.core.serializers import BulkIdsSerializer
from insync.core.utils import error_response, unexpected_error
from insync.core.workspaces import WorkspaceContext
from .filters import DocumentFilter
from .models import Document
from .serializers import DocumentSerializer, DocumentUploadSerializer

logger = logging.getLogger('insync.documents')


def delete_document(document):
    """
    Remove a document's record and then its blob.

    The two stores are not atomic: the record is gone even when the blob
    delete fails; the failure is logged and reported back.

    Returns:
        True if the blob was deleted (or already missing), False otherwise
    """
    document_id = document.id
    storage_path = document.storage_path
    document.delete()
    blob_deleted = storage.delete_file(storage_path)
    if not blob_deleted:
        logger.warning(f"Document {document_id} removed but blob {storage_path} could not be deleted")
    return blob_deleted


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser, JSONParser])
def document_list_create(request):
    """List documents (category tab + search) or upload a new one"""
    ctx = WorkspaceContext.from_request(request)
    try:
        if request.method == 'GET':
            queryset = ctx.filter(Document.objects.select_related('uploaded_by'))
            queryset = DocumentFilter(request.query_params, queryset=queryset).qs.order_by('-created_at')
            return Response(DocumentSerializer(queryset, many=True).data)

        serializer = DocumentUploadSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        upload = serializer.validated_data['file']
        storage_path = storage.build_storage_path('documents', upload.name)
        url = storage.upload_file(storage_path, upload, content_type=getattr(upload, 'content_type', None))

        try:
            document = Document.objects.create(
                name=upload.name,
                type=Document.infer_type(upload.name),
                category=serializer.validated_data['category'],
                url=url,
                storage_path=storage_path,
                workspace_id=ctx.workspace_id,
                uploaded_by=request.user,
            )
        except Exception:
            # Nothing references the blob without its record
            logger.warning(f"Saving document record for {storage_path} failed; removing uploaded blob")
            storage.delete_file(storage_path)
            raise
        logger.info(f"User {request.user.email} uploaded document '{document.name}' ({document.id}) to {storage_path}")
        return Response(DocumentSerializer(document).data, status=status.HTTP_201_CREATED)
    except StorageError as e:
        return error_response(e)
    except Exception as e:
        return unexpected_error('document_list_create', e)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def document_detail(request, pk):
    """Retrieve or delete a document (record and blob)"""
    ctx = WorkspaceContext.from_request(request)
    try:
        document = Document.objects.filter(pk=pk).first()
        if document is None:
            return Response({'error': 'Document not found'}, status=status.HTTP_404_NOT_FOUND)
        ctx.ensure_owns(document.workspace_id, 'document')

        if request.method == 'GET':
            return Response(DocumentSerializer(document).data)

        logger.info(f"User {request.user.email} deleting document {pk} ({document.name})")
        blob_deleted = delete_document(document)
        return Response({'deleted': pk, 'blob_deleted': blob_deleted})
    except InSyncError as e:
        logger.warning(f"Document {pk} {request.method} rejected for {request.user.email}: {e.message}")
        return error_response(e)
    except Exception as e:
        return unexpected_error('document_detail', e)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def document_bulk_delete(request):
    """Delete the selected documents; ids outside the workspace are reported as not found"""
    ctx = WorkspaceContext.from_request(request)
    serializer = BulkIdsSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    ids = serializer.validated_data['ids']
    try:
        documents = list(ctx.filter(Document.objects.filter(pk__in=ids)))
        deleted = []
        blob_failures = []
        for document in documents:
            document_id = document.id
            if not delete_document(document):
                blob_failures.append(document_id)
            deleted.append(document_id)

        not_found = [document_id for document_id in ids if document_id not in deleted]
        logger.info(f"User {request.user.email} bulk-deleted documents {deleted} (blob failures: {blob_failures})")
        return Response({
            'deleted': deleted,
            'blob_failures': blob_failures,
            'not_found': not_found,
        })
    except Exception as e:
        return unexpected_error('document_bulk_delete', e)
