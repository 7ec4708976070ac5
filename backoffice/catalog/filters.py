import django_filters
from django.db.models import Q
from backoffice.core.utils import parse_bool
from .models import Product


class ProductFilter(django_filters.FilterSet):
    """Filter for Product lists"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    product_type = django_filters.NumberFilter(field_name='product_type_id', lookup_expr='exact')
    status = django_filters.CharFilter(method='filter_status', label='Active')

    class Meta:
        model = Product
        fields = ['search', 'product_type', 'status']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(Q(name__icontains=value) | Q(product_type__name__icontains=value))

    def filter_status(self, queryset, name, value):
        active = parse_bool(value)
        if active is None:
            return queryset
        return queryset.filter(status=active)
