from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import ProtectedError
from django.shortcuts import get_object_or_404
import logging

from backoffice.core.model_cache import get_cached_product_compact, cache_product_compact
from backoffice.core.tables import wants_table, table_response
from backoffice.core.utils import create_audit_log, parse_bool, parse_date, parse_id, store_today
from backoffice.sales_channels.models import Channel
from .filters import ProductFilter
from .models import ProductType, Product, Addon, ProductAddon, ProductPrice, ProductAlias
from .serializers import (
    ProductTypeSerializer, ProductSerializer, AddonSerializer,
    ProductAddonSerializer, ProductPriceSerializer, ProductAliasSerializer
)
from .services import resolve_product_price, compact_products

logger = logging.getLogger('backoffice.catalog')


# ProductType views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def product_type_list_create(request):
    """List all product types or create a new one"""
    if request.method == 'GET':
        serializer = ProductTypeSerializer(ProductType.objects.all(), many=True)
        if wants_table(request):
            return table_response(serializer, ProductType)
        return Response(serializer.data)
    else:
        serializer = ProductTypeSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def product_type_detail(request, pk):
    """Retrieve, update or delete a product type"""
    product_type = get_object_or_404(ProductType, pk=pk)

    if request.method == 'GET':
        return Response(ProductTypeSerializer(product_type).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProductTypeSerializer(product_type, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            product_type.delete()
        except ProtectedError:
            return Response(
                {'error': 'Product type is still used by products'},
                status=status.HTTP_400_BAD_REQUEST
            )
        return Response(status=status.HTTP_204_NO_CONTENT)


# Product views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def product_list_create(request):
    """List products (plain, ?view=table or ?view=compact) or create a product"""
    if request.method == 'GET':
        if request.query_params.get('view') == 'compact':
            cached_data = get_cached_product_compact()
            if cached_data is not None:
                return Response(cached_data)
            data = compact_products()
            cache_product_compact(data)
            return Response(data)

        queryset = Product.objects.select_related('product_type').all()
        queryset = ProductFilter(request.query_params, queryset=queryset).qs
        serializer = ProductSerializer(queryset, many=True)
        if wants_table(request):
            return table_response(serializer, Product)
        return Response(serializer.data)
    else:
        serializer = ProductSerializer(data=request.data)
        if serializer.is_valid():
            product = serializer.save(created_by=request.user, updated_by=request.user)
            create_audit_log(request=request, action='create', model_name='Product',
                             object_id=product.id, object_name=product.name, changes=serializer.data)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_active_list(request):
    """Active products only"""
    queryset = Product.objects.select_related('product_type').filter(status=True)
    serializer = ProductSerializer(queryset, many=True)
    return Response(serializer.data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def product_detail(request, pk):
    """Retrieve, update or delete a product"""
    product = get_object_or_404(Product, pk=pk)

    if request.method == 'GET':
        return Response(ProductSerializer(product).data)
    elif request.method in ('PUT', 'PATCH'):
        old_price = product.price
        serializer = ProductSerializer(product, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save(updated_by=request.user)
            changes = dict(request.data)
            if product.price != old_price:
                changes['price'] = {'old': str(old_price), 'new': str(product.price)}
            create_audit_log(request=request, action='update', model_name='Product',
                             object_id=product.id, object_name=product.name, changes=changes)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            product.delete()
        except ProtectedError:
            return Response(
                {'error': 'Product is referenced by bookings; deactivate it instead'},
                status=status.HTTP_400_BAD_REQUEST
            )
        create_audit_log(request=request, action='delete', model_name='Product', object_id=pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_price_lookup(request, pk):
    """Price of a product on a date, optionally for a sales channel"""
    product = get_object_or_404(Product, pk=pk)
    try:
        on_date = parse_date(request.query_params.get('date')) or store_today()
    except ValueError:
        return Response({'error': 'Invalid date format. Use YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)

    try:
        channel_id = parse_id(request.query_params.get('channel'))
    except ValueError:
        return Response({'error': 'Invalid channel id'}, status=status.HTTP_400_BAD_REQUEST)
    channel = get_object_or_404(Channel, pk=channel_id) if channel_id else None

    price, source = resolve_product_price(product, on_date, channel=channel)
    return Response({
        'product_id': product.id,
        'date': on_date.isoformat(),
        'channel_id': channel.id if channel else None,
        'price': str(price),
        'source': source,
    })


# Addon views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def addon_list_create(request):
    """List all add-ons or create a new add-on"""
    if request.method == 'GET':
        queryset = Addon.objects.all()
        active = parse_bool(request.query_params.get('active'))
        if active is not None:
            queryset = queryset.filter(is_active=active)
        serializer = AddonSerializer(queryset, many=True)
        if wants_table(request):
            return table_response(serializer, Addon)
        return Response(serializer.data)
    else:
        serializer = AddonSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def addon_detail(request, pk):
    """Retrieve, update or delete an add-on"""
    addon = get_object_or_404(Addon, pk=pk)

    if request.method == 'GET':
        return Response(AddonSerializer(addon).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = AddonSerializer(addon, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        addon.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# ProductAddon views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def product_addon_list_create(request):
    """List product add-on links (filter by ?product=) or create one"""
    if request.method == 'GET':
        queryset = ProductAddon.objects.select_related('product', 'addon').all()
        try:
            product_id = parse_id(request.query_params.get('product'))
        except ValueError:
            return Response({'error': 'Invalid product id'}, status=status.HTTP_400_BAD_REQUEST)
        if product_id:
            queryset = queryset.filter(product_id=product_id)
        serializer = ProductAddonSerializer(queryset, many=True)
        if wants_table(request):
            return table_response(serializer, ProductAddon)
        return Response(serializer.data)
    else:
        serializer = ProductAddonSerializer(data=request.data)
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def product_addon_detail(request, pk):
    """Retrieve, update or delete a product add-on link"""
    product_addon = get_object_or_404(ProductAddon, pk=pk)

    if request.method == 'GET':
        return Response(ProductAddonSerializer(product_addon).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProductAddonSerializer(product_addon, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        product_addon.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# ProductPrice views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def product_price_list_create(request):
    """List dated product prices (filter by ?product=) or create one"""
    if request.method == 'GET':
        queryset = ProductPrice.objects.select_related('product').all()
        try:
            product_id = parse_id(request.query_params.get('product'))
        except ValueError:
            return Response({'error': 'Invalid product id'}, status=status.HTTP_400_BAD_REQUEST)
        if product_id:
            queryset = queryset.filter(product_id=product_id)
        serializer = ProductPriceSerializer(queryset, many=True)
        if wants_table(request):
            return table_response(serializer, ProductPrice)
        return Response(serializer.data)
    else:
        serializer = ProductPriceSerializer(data=request.data)
        if serializer.is_valid():
            price = serializer.save(created_by=request.user)
            create_audit_log(request=request, action='create', model_name='ProductPrice',
                             object_id=price.id, object_name=price.product.name, changes=serializer.data)
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def product_price_detail(request, pk):
    """Retrieve, update or delete a dated product price"""
    price = get_object_or_404(ProductPrice, pk=pk)

    if request.method == 'GET':
        return Response(ProductPriceSerializer(price).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProductPriceSerializer(price, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        price.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# ProductAlias views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def product_alias_list_create(request):
    """List product aliases (?status=pending|assigned, ?active=true) or create one"""
    if request.method == 'GET':
        queryset = ProductAlias.objects.select_related('product').order_by('priority', 'id')
        alias_status = (request.query_params.get('status') or '').lower()
        if alias_status == 'pending':
            queryset = queryset.filter(product__isnull=True)
        elif alias_status == 'assigned':
            queryset = queryset.filter(product__isnull=False)
        if parse_bool(request.query_params.get('active')):
            queryset = queryset.filter(active=True)
        serializer = ProductAliasSerializer(queryset, many=True)
        if wants_table(request):
            return table_response(serializer, ProductAlias)
        return Response(serializer.data)
    else:
        serializer = ProductAliasSerializer(data=request.data)
        if serializer.is_valid():
            alias = serializer.save(created_by=request.user, updated_by=request.user)
            create_audit_log(request=request, action='create', model_name='ProductAlias',
                             object_id=alias.id, object_name=alias.label, changes=serializer.data)
            logger.info(f"Product alias '{alias.label}' created by {request.user.username}")
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def product_alias_detail(request, pk):
    """Retrieve, update or delete a product alias"""
    alias = get_object_or_404(ProductAlias.objects.select_related('product'), pk=pk)

    if request.method == 'GET':
        return Response(ProductAliasSerializer(alias).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProductAliasSerializer(alias, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save(updated_by=request.user)
            create_audit_log(request=request, action='update', model_name='ProductAlias',
                             object_id=alias.id, object_name=alias.label, changes=dict(request.data))
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        alias.delete()
        create_audit_log(request=request, action='delete', model_name='ProductAlias', object_id=pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
