from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
import logging

from backoffice.core.model_cache import get_cached_channel_compact, cache_channel_compact
from backoffice.core.tables import wants_table, table_response
from backoffice.core.utils import create_audit_log, parse_date, parse_id, store_today
from .models import PaymentMethod, Channel, ChannelCommission, ChannelProductPrice, ChannelCashCollectionLog
from .serializers import (
    PaymentMethodSerializer, ChannelSerializer, ChannelCompactSerializer,
    ChannelCommissionSerializer, ChannelProductPriceSerializer, ChannelCashCollectionLogSerializer
)
from .services import get_effective_commission

logger = logging.getLogger('backoffice.sales_channels')


# PaymentMethod views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def payment_method_list_create(request):
    """List all payment methods or create a new one"""
    if request.method == 'GET':
        serializer = PaymentMethodSerializer(PaymentMethod.objects.all(), many=True)
        if wants_table(request):
            return table_response(serializer, PaymentMethod)
        return Response(serializer.data)
    else:
        serializer = PaymentMethodSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def payment_method_detail(request, pk):
    """Retrieve, update or delete a payment method"""
    payment_method = get_object_or_404(PaymentMethod, pk=pk)

    if request.method == 'GET':
        return Response(PaymentMethodSerializer(payment_method).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = PaymentMethodSerializer(payment_method, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        payment_method.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Channel views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def channel_list_create(request):
    """List channels (plain, ?view=table or ?view=compact) or create a channel"""
    if request.method == 'GET':
        queryset = Channel.objects.select_related('payment_method').all()
        if request.query_params.get('view') == 'compact':
            cached_data = get_cached_channel_compact()
            if cached_data is not None:
                return Response(cached_data)
            data = ChannelCompactSerializer(queryset, many=True).data
            cache_channel_compact(data)
            return Response(data)

        serializer = ChannelSerializer(queryset, many=True)
        if wants_table(request):
            return table_response(serializer, Channel)
        return Response(serializer.data)
    else:
        serializer = ChannelSerializer(data=request.data)
        if serializer.is_valid():
            channel = serializer.save(created_by=request.user, updated_by=request.user)
            create_audit_log(request=request, action='create', model_name='Channel',
                             object_id=channel.id, object_name=channel.name, changes=serializer.data)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def channel_detail(request, pk):
    """Retrieve, update or delete a channel"""
    channel = get_object_or_404(Channel, pk=pk)

    if request.method == 'GET':
        return Response(ChannelSerializer(channel).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ChannelSerializer(channel, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save(updated_by=request.user)
            create_audit_log(request=request, action='update', model_name='Channel',
                             object_id=channel.id, object_name=channel.name, changes=serializer.data)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        channel.delete()
        create_audit_log(request=request, action='delete', model_name='Channel', object_id=pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def channel_commission_rate(request, pk):
    """Commission rate in force for a channel on ?date= (default today)"""
    channel = get_object_or_404(Channel, pk=pk)
    try:
        on_date = parse_date(request.query_params.get('date')) or store_today()
    except ValueError:
        return Response({'error': 'Invalid date format. Use YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)

    commission = get_effective_commission(channel, on_date)
    return Response({
        'channel_id': channel.id,
        'date': on_date.isoformat(),
        'rate': str(commission.rate) if commission else '0',
        'commission_id': commission.id if commission else None,
    })


# ChannelCommission views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def channel_commission_list_create(request):
    """List commission rows (filter by ?channel=) or create one"""
    if request.method == 'GET':
        queryset = ChannelCommission.objects.select_related('channel', 'created_by', 'updated_by').all()
        try:
            channel_id = parse_id(request.query_params.get('channel'))
        except ValueError:
            return Response({'error': 'Invalid channel id'}, status=status.HTTP_400_BAD_REQUEST)
        if channel_id:
            queryset = queryset.filter(channel_id=channel_id)
        queryset = queryset.order_by('channel_id', '-valid_from', '-id')
        serializer = ChannelCommissionSerializer(queryset, many=True)
        if wants_table(request):
            return table_response(serializer, ChannelCommission)
        return Response(serializer.data)
    else:
        serializer = ChannelCommissionSerializer(data=request.data)
        if serializer.is_valid():
            commission = serializer.save(created_by=request.user, updated_by=request.user)
            logger.info(f"Commission {commission.rate} for channel {commission.channel_id} from {commission.valid_from} created")
            create_audit_log(request=request, action='create', model_name='ChannelCommission',
                             object_id=commission.id, object_name=commission.channel.name, changes=serializer.data)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def channel_commission_detail(request, pk):
    """Retrieve, update or delete a commission row"""
    commission = get_object_or_404(ChannelCommission, pk=pk)

    if request.method == 'GET':
        return Response(ChannelCommissionSerializer(commission).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ChannelCommissionSerializer(commission, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save(updated_by=request.user)
            create_audit_log(request=request, action='update', model_name='ChannelCommission',
                             object_id=commission.id, object_name=commission.channel.name, changes=serializer.data)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        commission.delete()
        create_audit_log(request=request, action='delete', model_name='ChannelCommission', object_id=pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ChannelProductPrice views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def channel_product_price_list_create(request):
    """List channel prices (filter by ?channel= and ?product=) or create one"""
    if request.method == 'GET':
        queryset = ChannelProductPrice.objects.select_related('channel', 'product').all()
        try:
            channel_id = parse_id(request.query_params.get('channel'))
            product_id = parse_id(request.query_params.get('product'))
        except ValueError:
            return Response({'error': 'Invalid channel or product id'}, status=status.HTTP_400_BAD_REQUEST)
        if channel_id:
            queryset = queryset.filter(channel_id=channel_id)
        if product_id:
            queryset = queryset.filter(product_id=product_id)
        serializer = ChannelProductPriceSerializer(queryset, many=True)
        if wants_table(request):
            return table_response(serializer, ChannelProductPrice)
        return Response(serializer.data)
    else:
        serializer = ChannelProductPriceSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save(created_by=request.user)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def channel_product_price_detail(request, pk):
    """Retrieve, update or delete a channel price"""
    price = get_object_or_404(ChannelProductPrice, pk=pk)

    if request.method == 'GET':
        return Response(ChannelProductPriceSerializer(price).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ChannelProductPriceSerializer(price, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        price.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# ChannelCashCollectionLog views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def channel_cash_collection_list_create(request):
    """List cash collections (filter by ?channel= and ?month=) or record one"""
    if request.method == 'GET':
        queryset = ChannelCashCollectionLog.objects.select_related('channel', 'created_by').all()
        try:
            channel_id = parse_id(request.query_params.get('channel'))
            month = parse_date(request.query_params.get('month'))
        except ValueError:
            return Response({'error': 'Invalid channel id or month. Use YYYY-MM-DD for the month'},
                            status=status.HTTP_400_BAD_REQUEST)
        if channel_id:
            queryset = queryset.filter(channel_id=channel_id)
        if month:
            queryset = queryset.filter(range_start__lte=month, range_end__gte=month)
        serializer = ChannelCashCollectionLogSerializer(queryset, many=True)
        if wants_table(request):
            return table_response(serializer, ChannelCashCollectionLog)
        return Response(serializer.data)
    else:
        serializer = ChannelCashCollectionLogSerializer(data=request.data)
        if serializer.is_valid():
            collection = serializer.save(created_by=request.user)
            logger.info(f"Cash collection {collection.id} recorded for channel {collection.channel_id} "
                        f"({collection.amount_minor} {collection.currency_code})")
            create_audit_log(request=request, action='create', model_name='ChannelCashCollectionLog',
                             object_id=collection.id, object_name=str(collection), changes=serializer.data)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def channel_cash_collection_detail(request, pk):
    """Retrieve, update or delete a cash collection"""
    collection = get_object_or_404(ChannelCashCollectionLog.objects.select_related('channel'), pk=pk)

    if request.method == 'GET':
        return Response(ChannelCashCollectionLogSerializer(collection).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ChannelCashCollectionLogSerializer(collection, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request=request, action='update', model_name='ChannelCashCollectionLog',
                             object_id=collection.id, object_name=str(collection), changes=dict(request.data))
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        object_name = str(collection)
        collection.delete()
        create_audit_log(request=request, action='delete', model_name='ChannelCashCollectionLog',
                         object_id=pk, object_name=object_name)
        return Response(status=status.HTTP_204_NO_CONTENT)
