from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, IsAdminUser
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken, TokenError
from django.contrib.auth import get_user_model
from django.core.exceptions import ObjectDoesNotExist
from django.db.models import ProtectedError, Q
from django.shortcuts import get_object_or_404
import logging

from .models import UserType, AuditLog
from .permissions import is_finance_user, is_finance_manager
from .serializers import UserSerializer, UserCreateSerializer, UserTypeSerializer, AuditLogSerializer
from .tables import wants_table, table_response
from .utils import create_audit_log, parse_bool, parse_date, parse_id

logger = logging.getLogger('backoffice.core')

User = get_user_model()


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['user_type'] = user.user_type.slug if user.user_type_id else None
        token['groups'] = list(user.groups.values_list('name', flat=True))
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
        except ObjectDoesNotExist:
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    """Get current user with groups and access flags"""
    user = request.user
    user_data = UserSerializer(user).data
    user_data['groups'] = list(user.groups.values_list('name', flat=True))
    user_data['is_admin'] = 'Admin' in user_data['groups'] or user.is_superuser
    user_data['can_access_finance'] = is_finance_user(user)
    user_data['can_manage_finance'] = is_finance_manager(user)
    return Response(user_data)


# User views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def user_list_create(request):
    """List all users or create a new user"""
    if request.method == 'GET':
        users = User.objects.select_related('user_type').order_by('username')
        search = request.query_params.get('search')
        if search:
            users = users.filter(
                Q(username__icontains=search) | Q(first_name__icontains=search) |
                Q(last_name__icontains=search) | Q(email__icontains=search)
            )
        active = parse_bool(request.query_params.get('active'))
        if active is not None:
            users = users.filter(is_active=active)
        try:
            user_type = parse_id(request.query_params.get('user_type'))
        except ValueError:
            return Response({'error': 'Invalid user_type id'}, status=status.HTTP_400_BAD_REQUEST)
        if user_type:
            users = users.filter(user_type_id=user_type)
        serializer = UserSerializer(users, many=True)
        if wants_table(request):
            return table_response(serializer, User)
        return Response(serializer.data)
    else:
        serializer = UserCreateSerializer(data=request.data)
        if serializer.is_valid():
            user = serializer.save()
            create_audit_log(request=request, action='create', model_name='User',
                             object_id=user.id, object_name=user.username)
            return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def user_detail(request, pk):
    """Retrieve, update or delete a user"""
    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        serializer = UserSerializer(user)
        return Response(serializer.data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = UserSerializer(user, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='User',
                             object_id=user.id, object_name=user.username,
                             changes={k: v for k, v in request.data.items() if k != 'password'})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if user.pk == request.user.pk:
            return Response({'error': 'You cannot delete your own account'}, status=status.HTTP_400_BAD_REQUEST)
        try:
            user.delete()
        except ProtectedError:
            return Response(
                {'error': 'User is referenced by other records; deactivate it instead'},
                status=status.HTTP_400_BAD_REQUEST
            )
        create_audit_log(request=request, action='delete', model_name='User', object_id=pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


# UserType views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def user_type_list_create(request):
    """List user types or create one (admin only)"""
    if request.method == 'GET':
        user_types = UserType.objects.all()
        active = parse_bool(request.query_params.get('active'))
        if active is not None:
            user_types = user_types.filter(is_active=active)
        serializer = UserTypeSerializer(user_types, many=True)
        if wants_table(request):
            return table_response(serializer, UserType)
        return Response(serializer.data)
    else:
        if not request.user.is_staff:
            return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)
        serializer = UserTypeSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def user_type_detail(request, pk):
    """Retrieve, update or delete a user type"""
    user_type = get_object_or_404(UserType, pk=pk)

    if request.method == 'GET':
        return Response(UserTypeSerializer(user_type).data)
    if not request.user.is_staff:
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)
    if request.method in ('PUT', 'PATCH'):
        serializer = UserTypeSerializer(user_type, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        user_type.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# AuditLog views
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def audit_log_list(request):
    """List audit logs with filtering"""
    queryset = AuditLog.objects.select_related('user')

    action_filter = request.query_params.get('action')
    if action_filter:
        queryset = queryset.filter(action=action_filter)
    model_filter = request.query_params.get('model_name')
    if model_filter:
        queryset = queryset.filter(model_name=model_filter)
    object_filter = request.query_params.get('object_id')
    if object_filter:
        queryset = queryset.filter(object_id=object_filter)
    try:
        date_from = parse_date(request.query_params.get('date_from'))
        date_to = parse_date(request.query_params.get('date_to'))
    except ValueError:
        return Response({'error': 'Invalid date format. Use YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)
    if date_from:
        queryset = queryset.filter(created_at__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(created_at__date__lte=date_to)

    queryset = queryset.order_by('-created_at')[:500]
    serializer = AuditLogSerializer(queryset, many=True)
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminUser])
def audit_log_detail(request, pk):
    """Retrieve an audit log"""
    audit_log = get_object_or_404(AuditLog, pk=pk)
    return Response(AuditLogSerializer(audit_log).data)
