"""Helpers shared by the API views"""
import logging

from rest_framework import status
from rest_framework.response import Response

from .exceptions import InSyncError
from .roles import has_role

logger = logging.getLogger(__name__)


def error_response(exc: InSyncError) -> Response:
    """Turn a domain error into the JSON error body the client shows as a toast"""
    return Response({'error': exc.message}, status=exc.status_code)


def forbidden(message: str) -> Response:
    return Response({'error': message}, status=status.HTTP_403_FORBIDDEN)


def unexpected_error(where: str, exc: Exception) -> Response:
    logger.error(f"Unexpected error in {where}: {str(exc)}", exc_info=True)
    return Response({'error': 'An unexpected error occurred'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def require_role(request, roles, message):
    """
    Return a 403 response when the user holds none of the roles, else None.

    Usage:
        denied = require_role(request, [CFO], 'Only the CFO can add transactions')
        if denied:
            return denied
    """
    if has_role(request.user, *roles):
        return None
    logger.warning(f"User {request.user.email} denied: {message}")
    return forbidden(message)
