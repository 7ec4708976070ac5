from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
import logging

from backoffice.core.models import User
from backoffice.core.tables import wants_table, table_response
from backoffice.core.utils import create_audit_log, parse_bool, parse_date, parse_id
from .models import StaffProfile, StaffPayoutCollectionLog
from .serializers import StaffProfileSerializer, StaffPayoutCollectionLogSerializer

logger = logging.getLogger('backoffice.staff')

STAFF_TYPES = [choice for choice, _ in StaffProfile.STAFF_TYPE_CHOICES]


def normalize_staff_type(value):
    if not isinstance(value, str):
        return None
    normalized = value.strip().lower()
    return normalized if normalized in STAFF_TYPES else None


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def staff_profile_list_create(request):
    """List staff profiles (?active=, ?staff_type=) or create one for an existing user"""
    if request.method == 'GET':
        queryset = StaffProfile.objects.select_related('user').all()
        active = parse_bool(request.query_params.get('active'))
        if active is not None:
            queryset = queryset.filter(active=active)
        staff_type = request.query_params.get('staff_type')
        if staff_type:
            queryset = queryset.filter(staff_type=staff_type)
        serializer = StaffProfileSerializer(queryset, many=True)
        if wants_table(request):
            return table_response(serializer, StaffProfile)
        return Response(serializer.data)

    try:
        user_id = int(request.data.get('user_id'))
    except (TypeError, ValueError):
        user_id = 0
    if user_id <= 0:
        return Response({'error': 'A valid user_id is required.'}, status=status.HTTP_400_BAD_REQUEST)

    staff_type = normalize_staff_type(request.data.get('staff_type'))
    if staff_type is None:
        return Response({'error': f"staff_type must be one of: {', '.join(STAFF_TYPES)}"},
                        status=status.HTTP_400_BAD_REQUEST)

    user = User.objects.filter(pk=user_id).first()
    if user is None:
        return Response({'error': f'User {user_id} not found'}, status=status.HTTP_404_NOT_FOUND)

    if StaffProfile.objects.filter(user=user).exists():
        return Response({'error': f'Staff profile already exists for user {user_id}'},
                        status=status.HTTP_409_CONFLICT)

    data = {key: value for key, value in request.data.items() if key != 'user_id'}
    data['staff_type'] = staff_type
    serializer = StaffProfileSerializer(data=data)
    if serializer.is_valid():
        profile = serializer.save(user=user)
        create_audit_log(request=request, action='create', model_name='StaffProfile',
                         object_id=user.id, object_name=str(profile), changes=serializer.data)
        logger.info(f"Staff profile created for user {user.username} ({staff_type})")
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def staff_profile_detail(request, user_id):
    """Retrieve, update or delete the staff profile of a user"""
    profile = get_object_or_404(StaffProfile.objects.select_related('user'), pk=user_id)

    if request.method == 'GET':
        return Response(StaffProfileSerializer(profile).data)
    elif request.method in ('PUT', 'PATCH'):
        data = dict(request.data.items())
        if 'staff_type' in data:
            staff_type = normalize_staff_type(data['staff_type'])
            if staff_type is None:
                return Response({'error': f"staff_type must be one of: {', '.join(STAFF_TYPES)}"},
                                status=status.HTTP_400_BAD_REQUEST)
            data['staff_type'] = staff_type
        serializer = StaffProfileSerializer(profile, data=data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='StaffProfile',
                             object_id=user_id, object_name=str(profile), changes=data)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        object_name = str(profile)
        profile.delete()
        create_audit_log(request=request, action='delete', model_name='StaffProfile',
                         object_id=user_id, object_name=object_name)
        return Response(status=status.HTTP_204_NO_CONTENT)


# Staff payout views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def staff_payout_list_create(request):
    """
    List staff payouts or record one.

    GET filters: staff_profile (user id), direction, month (any date inside it).
    """
    if request.method == 'GET':
        queryset = StaffPayoutCollectionLog.objects.select_related('staff_profile__user', 'created_by').all()
        try:
            profile_id = parse_id(request.query_params.get('staff_profile'))
            month = parse_date(request.query_params.get('month'))
        except ValueError:
            return Response({'error': 'Invalid staff_profile id or month. Use YYYY-MM-DD for the month'},
                            status=status.HTTP_400_BAD_REQUEST)
        if profile_id:
            queryset = queryset.filter(staff_profile_id=profile_id)
        direction = request.query_params.get('direction')
        if direction:
            queryset = queryset.filter(direction=direction)
        if month:
            queryset = queryset.filter(range_start__lte=month, range_end__gte=month)
        serializer = StaffPayoutCollectionLogSerializer(queryset, many=True)
        if wants_table(request):
            return table_response(serializer, StaffPayoutCollectionLog)
        return Response(serializer.data)

    serializer = StaffPayoutCollectionLogSerializer(data=request.data)
    if serializer.is_valid():
        payout = serializer.save(created_by=request.user)
        create_audit_log(request=request, action='create', model_name='StaffPayoutCollectionLog',
                         object_id=payout.id, object_name=str(payout), changes=serializer.data)
        logger.info(f"Staff payout {payout.id} recorded for user {payout.staff_profile_id} "
                    f"({payout.direction} {payout.amount_minor} {payout.currency_code})")
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def staff_payout_detail(request, pk):
    payout = get_object_or_404(StaffPayoutCollectionLog.objects.select_related('staff_profile__user'), pk=pk)

    if request.method == 'GET':
        return Response(StaffPayoutCollectionLogSerializer(payout).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = StaffPayoutCollectionLogSerializer(payout, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='StaffPayoutCollectionLog',
                             object_id=payout.id, object_name=str(payout), changes=request.data)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        object_name = str(payout)
        payout.delete()
        create_audit_log(request=request, action='delete', model_name='StaffPayoutCollectionLog',
                         object_id=pk, object_name=object_name)
        return Response(status=status.HTTP_204_NO_CONTENT)
