from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import ProtectedError
from django.shortcuts import get_object_or_404
import logging

from backoffice.core.tables import wants_table, table_response
from backoffice.core.utils import create_audit_log, parse_bool, parse_date, parse_id
from .models import Venue, VenueCompensationTerm, NightReport, VenueCompensationCollectionLog
from .serializers import (
    VenueSerializer, VenueCompensationTermSerializer, NightReportSerializer,
    VenueCompensationCollectionLogSerializer
)
from .services import submit_night_report, venue_numbers_summary

logger = logging.getLogger('backoffice.venues')


# Venue views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def venue_list_create(request):
    """List venues (?active=, ?open_bar=) or create one"""
    if request.method == 'GET':
        queryset = Venue.objects.select_related('finance_vendor', 'finance_client').all()
        active = parse_bool(request.query_params.get('active'))
        if active is not None:
            queryset = queryset.filter(is_active=active)
        open_bar = parse_bool(request.query_params.get('open_bar'))
        if open_bar is not None:
            queryset = queryset.filter(allows_open_bar=open_bar)
        queryset = queryset.order_by('-is_active', 'sort_order', 'name')
        serializer = VenueSerializer(queryset, many=True)
        if wants_table(request):
            return table_response(serializer, Venue)
        return Response(serializer.data)
    else:
        serializer = VenueSerializer(data=request.data)
        if serializer.is_valid():
            venue = serializer.save()
            create_audit_log(request=request, action='create', model_name='Venue',
                             object_id=venue.id, object_name=venue.name, changes=serializer.data)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def venue_detail(request, pk):
    venue = get_object_or_404(Venue, pk=pk)

    if request.method == 'GET':
        return Response(VenueSerializer(venue).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = VenueSerializer(venue, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='Venue',
                             object_id=venue.id, object_name=venue.name, changes=dict(request.data))
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        venue_id, venue_name = venue.id, venue.name
        try:
            venue.delete()
        except ProtectedError:
            return Response({'error': 'Venue is still referenced'}, status=status.HTTP_400_BAD_REQUEST)
        create_audit_log(request=request, action='delete', model_name='Venue',
                         object_id=venue_id, object_name=venue_name)
        return Response(status=status.HTTP_204_NO_CONTENT)


# Compensation term views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def compensation_term_list_create(request):
    """List terms (?venue=, ?type=, ?active=) or create one"""
    if request.method == 'GET':
        queryset = VenueCompensationTerm.objects.select_related('venue').all()
        try:
            venue_id = parse_id(request.query_params.get('venue'))
        except ValueError:
            return Response({'error': 'Invalid venue id'}, status=status.HTTP_400_BAD_REQUEST)
        if venue_id:
            queryset = queryset.filter(venue_id=venue_id)
        compensation_type = request.query_params.get('type')
        if compensation_type:
            queryset = queryset.filter(compensation_type=compensation_type)
        active = parse_bool(request.query_params.get('active'))
        if active is not None:
            queryset = queryset.filter(is_active=active)
        serializer = VenueCompensationTermSerializer(queryset, many=True)
        if wants_table(request):
            return table_response(serializer, VenueCompensationTerm)
        return Response(serializer.data)
    else:
        serializer = VenueCompensationTermSerializer(data=request.data)
        if serializer.is_valid():
            term = serializer.save(created_by=request.user, updated_by=request.user)
            create_audit_log(request=request, action='create', model_name='VenueCompensationTerm',
                             object_id=term.id, object_name=str(term), changes=serializer.data)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def compensation_term_detail(request, pk):
    term = get_object_or_404(VenueCompensationTerm.objects.select_related('venue'), pk=pk)

    if request.method == 'GET':
        return Response(VenueCompensationTermSerializer(term).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = VenueCompensationTermSerializer(term, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save(updated_by=request.user)
            create_audit_log(request=request, action='update', model_name='VenueCompensationTerm',
                             object_id=term.id, object_name=str(term), changes=dict(request.data))
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        term.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Night report views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def night_report_list_create(request):
    """
    List night reports or create a draft with its venue lines.

    GET filters: status, leader, date_from, date_to.
    """
    if request.method == 'GET':
        queryset = NightReport.objects.select_related('leader').prefetch_related('venues').all()
        report_status = request.query_params.get('status')
        if report_status:
            queryset = queryset.filter(status=report_status)
        try:
            leader = parse_id(request.query_params.get('leader'))
            date_from = parse_date(request.query_params.get('date_from'))
            date_to = parse_date(request.query_params.get('date_to'))
        except ValueError:
            return Response({'error': 'Invalid leader id or date. Use YYYY-MM-DD for dates'},
                            status=status.HTTP_400_BAD_REQUEST)
        if leader:
            queryset = queryset.filter(leader_id=leader)
        if date_from:
            queryset = queryset.filter(activity_date__gte=date_from)
        if date_to:
            queryset = queryset.filter(activity_date__lte=date_to)
        return Response(NightReportSerializer(queryset, many=True).data)
    else:
        serializer = NightReportSerializer(data=request.data, context={'request': request})
        if serializer.is_valid():
            report = serializer.save()
            create_audit_log(request=request, action='create', model_name='NightReport',
                             object_id=report.id, object_name=str(report), changes=serializer.data)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def night_report_detail(request, pk):
    report = get_object_or_404(NightReport.objects.select_related('leader'), pk=pk)

    if request.method == 'GET':
        return Response(NightReportSerializer(report).data)
    elif request.method in ('PUT', 'PATCH'):
        if report.status == 'submitted':
            return Response({'error': 'Submitted reports cannot be edited'}, status=status.HTTP_400_BAD_REQUEST)
        serializer = NightReportSerializer(report, data=request.data, partial=request.method == 'PATCH',
                                           context={'request': request})
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='NightReport',
                             object_id=report.id, object_name=str(report), changes=dict(request.data))
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        report_id, report_name = report.id, str(report)
        report.delete()
        create_audit_log(request=request, action='delete', model_name='NightReport',
                         object_id=report_id, object_name=report_name)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def night_report_submit(request, pk):
    """Price every venue line from its compensation term and lock the report"""
    report = get_object_or_404(NightReport, pk=pk)
    submit_night_report(report, user=request.user, request=request)
    report.refresh_from_db()
    return Response(NightReportSerializer(report).data)


# Collection log views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def collection_log_list_create(request):
    if request.method == 'GET':
        queryset = VenueCompensationCollectionLog.objects.select_related('venue', 'created_by').all()
        try:
            venue_id = parse_id(request.query_params.get('venue'))
        except ValueError:
            return Response({'error': 'Invalid venue id'}, status=status.HTTP_400_BAD_REQUEST)
        if venue_id:
            queryset = queryset.filter(venue_id=venue_id)
        return Response(VenueCompensationCollectionLogSerializer(queryset, many=True).data)
    else:
        serializer = VenueCompensationCollectionLogSerializer(data=request.data)
        if serializer.is_valid():
            log = serializer.save(created_by=request.user)
            create_audit_log(request=request, action='create', model_name='VenueCompensationCollectionLog',
                             object_id=log.id, object_name=str(log), changes=serializer.data)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def collection_log_detail(request, pk):
    log = get_object_or_404(VenueCompensationCollectionLog, pk=pk)

    if request.method == 'GET':
        return Response(VenueCompensationCollectionLogSerializer(log).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = VenueCompensationCollectionLogSerializer(log, data=request.data,
                                                              partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        log.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def venue_numbers_summary_view(request):
    """Receivable/payable per venue over a window (?period=this_month|last_month|custom, ?start_date=, ?end_date=)"""
    summary = venue_numbers_summary(
        request.query_params.get('period'),
        request.query_params.get('start_date'),
        request.query_params.get('end_date'),
    )
    return Response(summary)
