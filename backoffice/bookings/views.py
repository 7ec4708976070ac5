from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q
from django.shortcuts import get_object_or_404
from django.utils import timezone
import logging

from backoffice.core.tables import wants_table, table_response
from backoffice.core.utils import create_audit_log, parse_date, store_today
from .filters import BookingFilter
from .models import Guest, Booking, BookingEvent
from .serializers import GuestSerializer, BookingSerializer, BookingEventSerializer
from .services import resolve_range, unified_orders, build_manifest

logger = logging.getLogger('backoffice.bookings')


def record_event(booking, event_type, user=None, payload=None):
    now = timezone.now()
    return BookingEvent.objects.create(
        booking=booking,
        event_type=event_type,
        platform=booking.platform,
        status_after=booking.status,
        payload=payload or {},
        occurred_at=now,
        processed_at=now,
        created_by=user if user and user.is_authenticated else None,
    )


# Booking views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def booking_list_create(request):
    """
    List bookings as unified orders or create a booking.

    GET accepts ?date= or ?pickup_from=/&pickup_to= for the experience date window,
    plus platform, status, payment_status, channel, product and search filters.
    ?view=table returns the raw booking rows in the table envelope instead.
    """
    if request.method == 'GET':
        try:
            start, end = resolve_range(
                request.query_params.get('date'),
                request.query_params.get('pickup_from'),
                request.query_params.get('pickup_to'),
            )
        except ValueError:
            return Response({'error': 'Invalid date format. Use YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)

        queryset = Booking.objects.select_related('product', 'channel').all()
        if start and end:
            queryset = queryset.filter(experience_date__range=(start, end))
        queryset = BookingFilter(request.query_params, queryset=queryset).qs
        queryset = queryset.order_by('experience_date', 'experience_start_at', 'id')

        if wants_table(request):
            return table_response(BookingSerializer(queryset, many=True), Booking)
        return Response(unified_orders(queryset))
    else:
        serializer = BookingSerializer(data=request.data)
        if serializer.is_valid():
            booking = serializer.save(created_by=request.user, updated_by=request.user)
            record_event(booking, 'created', request.user, {'source': 'api'})
            create_audit_log(request=request, action='create', model_name='Booking',
                             object_id=booking.id, object_name=str(booking), changes=serializer.data)
            logger.info(f"Booking {booking} created for {booking.experience_date}")
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def booking_manifest(request):
    """Bookings of a day grouped by product and timeslot (?date=, ?product_id=, ?time=)"""
    try:
        target_date = parse_date(request.query_params.get('date')) or store_today()
    except ValueError:
        return Response({'error': 'Invalid date provided'}, status=status.HTTP_400_BAD_REQUEST)

    bookings = (
        Booking.objects.select_related('product')
        .filter(experience_date=target_date)
        .exclude(status='cancelled')
        .order_by('experience_start_at', 'id')
    )
    return Response(build_manifest(
        bookings,
        target_date,
        product_id=request.query_params.get('product_id'),
        time=request.query_params.get('time'),
    ))


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def booking_detail(request, pk):
    """Retrieve, update or delete a booking"""
    booking = get_object_or_404(Booking.objects.select_related('product', 'channel'), pk=pk)

    if request.method == 'GET':
        return Response(BookingSerializer(booking).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = BookingSerializer(booking, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save(updated_by=request.user)
            changed_fields = sorted(serializer.validated_data.keys())
            record_event(booking, 'amended', request.user, {'fields': changed_fields})
            create_audit_log(request=request, action='update', model_name='Booking',
                             object_id=booking.id, object_name=str(booking), changes=serializer.data)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        create_audit_log(request=request, action='delete', model_name='Booking',
                         object_id=pk, object_name=str(booking))
        booking.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def booking_cancel(request, pk):
    """Cancel a booking"""
    booking = get_object_or_404(Booking, pk=pk)
    if booking.status == 'cancelled':
        return Response({'error': 'Booking is already cancelled'}, status=status.HTTP_400_BAD_REQUEST)

    booking.status = 'cancelled'
    booking.cancelled_at = timezone.now()
    booking.updated_by = request.user
    booking.save(update_fields=['status', 'cancelled_at', 'updated_by', 'updated_at'])
    reason = request.data.get('reason', '')
    record_event(booking, 'cancelled', request.user, {'reason': reason} if reason else {})
    create_audit_log(request=request, action='cancel', model_name='Booking',
                     object_id=booking.id, object_name=str(booking), changes={'reason': reason})
    logger.info(f"Booking {booking} cancelled")
    return Response(BookingSerializer(booking).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def booking_event_list_create(request, pk):
    """List a booking's history or add a note to it"""
    booking = get_object_or_404(Booking, pk=pk)

    if request.method == 'GET':
        events = booking.events.select_related('created_by').all()
        return Response(BookingEventSerializer(events, many=True).data)
    else:
        note = (request.data.get('note') or '').strip()
        if not note:
            return Response({'note': ['This field is required.']}, status=status.HTTP_400_BAD_REQUEST)
        event = record_event(booking, 'note', request.user, {'note': note})
        return Response(BookingEventSerializer(event).data, status=status.HTTP_201_CREATED)


# Guest views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def guest_list_create(request):
    """List guests (?search=) or create a guest"""
    if request.method == 'GET':
        queryset = Guest.objects.all()
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(first_name__icontains=search) | Q(last_name__icontains=search) |
                Q(email__icontains=search) | Q(phone__icontains=search)
            )
        serializer = GuestSerializer(queryset, many=True)
        if wants_table(request):
            return table_response(serializer, Guest)
        return Response(serializer.data)
    else:
        serializer = GuestSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def guest_detail(request, pk):
    """Retrieve, update or delete a guest"""
    guest = get_object_or_404(Guest, pk=pk)

    if request.method == 'GET':
        return Response(GuestSerializer(guest).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = GuestSerializer(guest, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        guest.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
