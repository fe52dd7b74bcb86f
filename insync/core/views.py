import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError, AuthenticationFailed
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.core.exceptions import ObjectDoesNotExist
from django.db.models import Q
from .model_cache import get_user_directory_cache_key, USER_DIRECTORY_CACHE_TTL
from .serializers import (
    UserSerializer, RegisterSerializer, ProfileUpdateSerializer, ChangePasswordSerializer
)
from .workspaces import WORKSPACES, LEGACY_WORKSPACE_ID

logger = logging.getLogger('insync.core')

User = get_user_model()


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        data['user'] = UserSerializer(self.user).data
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['email'] = user.email
        token['role'] = user.role
        token['workspace_id'] = user.workspace_id or LEGACY_WORKSPACE_ID
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that reports deleted users as an invalid token"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except (ObjectDoesNotExist, User.DoesNotExist):
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """Create a profile in a workspace; the role comes from the email lookup table"""
    serializer = RegisterSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save()
        logger.info(f"Registered {user.email} in workspace {user.workspace_id} as {user.role}")
        token = CustomTokenObtainPairSerializer.get_token(user)
        return Response({
            'user': UserSerializer(user).data,
            'access': str(token.access_token),
            'refresh': str(token),
        }, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get or update the current user's profile"""
    user = request.user
    if request.method == 'GET':
        return Response(UserSerializer(user).data)

    serializer = ProfileUpdateSerializer(user, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        logger.info(f"User {user.email} updated profile fields {sorted(serializer.validated_data)}")
        return Response(UserSerializer(user).data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def change_password(request):
    serializer = ChangePasswordSerializer(data=request.data, context={'request': request})
    if serializer.is_valid():
        request.user.set_password(serializer.validated_data['new_password'])
        request.user.save()
        logger.info(f"User {request.user.email} changed password")
        return Response({'message': 'Password updated successfully.'})
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_list(request):
    """Team directory across all workspaces, filterable by search text, role and workspace"""
    search = request.query_params.get('search', '').strip()
    role = request.query_params.get('role', '')
    workspace = request.query_params.get('workspace', '')
    if role == 'all':
        role = ''
    if workspace == 'all':
        workspace = ''

    cache_key = get_user_directory_cache_key(search, role, workspace)
    cached_data = cache.get(cache_key)
    if cached_data is not None:
        logger.debug(f"Cache hit for user directory ({cache_key})")
        return Response(cached_data)

    queryset = User.objects.filter(is_active=True)
    if search:
        queryset = queryset.filter(Q(display_name__icontains=search) | Q(email__icontains=search))
    if role:
        queryset = queryset.filter(role=role)
    if workspace:
        queryset = queryset.filter(workspace_id=workspace)

    response_data = UserSerializer(queryset.order_by('display_name'), many=True).data
    cache.set(cache_key, response_data, USER_DIRECTORY_CACHE_TTL)
    return Response(response_data)


@api_view(['GET'])
@permission_classes([AllowAny])
def workspace_list(request):
    """The hard-coded workspaces, for the workspace picker"""
    return Response([
        {'id': workspace_id, 'name': name, 'is_legacy': workspace_id == LEGACY_WORKSPACE_ID}
        for workspace_id, name in WORKSPACES.items()
    ])
