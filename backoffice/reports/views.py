from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from backoffice.core.utils import parse_date, store_today
from .services import channel_numbers, bookings_summary, month_window, default_summary_window


def _window(request, start_key, end_key, default):
    start = parse_date(request.query_params.get(start_key))
    end = parse_date(request.query_params.get(end_key))
    default_start, default_end = default(store_today())
    return start or default_start, end or default_end


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def channel_numbers_report(request):
    """Bookings, people and money per channel (?start_date=&end_date=, default this month)"""
    try:
        start, end = _window(request, 'start_date', 'end_date', month_window)
    except ValueError:
        return Response({'error': 'Invalid date format. Use YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)
    if end < start:
        return Response({'error': 'end_date cannot be before start_date'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(channel_numbers(start, end))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def bookings_summary_report(request):
    """Per-day and per-platform booking counts (?date_from=&date_to=, default last 30 days)"""
    try:
        date_from, date_to = _window(request, 'date_from', 'date_to', default_summary_window)
    except ValueError:
        return Response({'error': 'Invalid date format. Use YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)
    if date_to < date_from:
        return Response({'error': 'date_to cannot be before date_from'}, status=status.HTTP_400_BAD_REQUEST)
    return Response(bookings_summary(date_from, date_to))
