import logging
from decimal import Decimal

from django.db.models import Sum
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from insync.core.exceptions import InSyncError
from insync.core.roles import CFO
from insync.core.utils import error_response, require_role, unexpected_error
from insync.core.workspaces import WorkspaceContext
from .models import Transaction
from .serializers import TransactionSerializer

logger = logging.getLogger('insync.cashflow')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def transaction_list_create(request):
    """List the workspace's transactions (newest first) or add one (CFO only)"""
    ctx = WorkspaceContext.from_request(request)
    if request.method == 'GET':
        queryset = ctx.filter(Transaction.objects.select_related('created_by'))
        type_filter = request.query_params.get('type')
        if type_filter and type_filter != 'all':
            queryset = queryset.filter(type=type_filter)
        queryset = queryset.order_by('-date', '-id')
        return Response(TransactionSerializer(queryset, many=True).data)

    denied = require_role(request, [CFO], 'Only the CFO can add transactions')
    if denied:
        return denied

    serializer = TransactionSerializer(data=request.data)
    if serializer.is_valid():
        transaction_obj = serializer.save(workspace_id=ctx.workspace_id, created_by=request.user)
        logger.info(f"User {request.user.email} added {transaction_obj.type} of {transaction_obj.amount} in {ctx.workspace_id}")
        return Response(TransactionSerializer(transaction_obj).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def transaction_detail(request, pk):
    """Retrieve, update or delete a transaction"""
    ctx = WorkspaceContext.from_request(request)
    transaction_obj = Transaction.objects.filter(pk=pk).first()
    if transaction_obj is None:
        return Response({'error': 'Transaction not found'}, status=status.HTTP_404_NOT_FOUND)

    try:
        ctx.ensure_owns(transaction_obj.workspace_id, 'transaction')
    except InSyncError as e:
        logger.warning(f"Transaction {pk} {request.method} rejected for {request.user.email}: {e.message}")
        return error_response(e)

    if request.method == 'GET':
        return Response(TransactionSerializer(transaction_obj).data)

    if request.method == 'DELETE':
        denied = require_role(request, [CFO], 'Only the CFO can delete transactions')
        if denied:
            return denied
        transaction_obj.delete()
        logger.info(f"User {request.user.email} deleted transaction {pk}")
        return Response(status=status.HTTP_204_NO_CONTENT)

    denied = require_role(request, [CFO], 'Only the CFO can update transactions')
    if denied:
        return denied

    serializer = TransactionSerializer(transaction_obj, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        # Records without a workspace are claimed by the legacy workspace on write
        transaction_obj = serializer.save(workspace_id=transaction_obj.workspace_id or ctx.workspace_id)
        logger.info(f"User {request.user.email} updated transaction {pk}")
        return Response(TransactionSerializer(transaction_obj).data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def transaction_summary(request):
    """Income, expense and balance totals for the workspace"""
    ctx = WorkspaceContext.from_request(request)
    try:
        base_queryset = ctx.filter(Transaction.objects.all())

        total_income = base_queryset.filter(type='Income').aggregate(
            total=Sum('amount')
        )['total'] or Decimal('0.00')

        total_expense = base_queryset.filter(type='Expense').aggregate(
            total=Sum('amount')
        )['total'] or Decimal('0.00')

        return Response({
            'total_income': str(total_income),
            'total_expense': str(total_expense),
            'balance': str(total_income - total_expense),
            'income_count': base_queryset.filter(type='Income').count(),
            'expense_count': base_queryset.filter(type='Expense').count(),
        })
    except Exception as e:
        return unexpected_error('transaction_summary', e)
