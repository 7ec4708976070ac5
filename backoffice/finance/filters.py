import django_filters
from django.db.models import Q
from .models import Transaction


class TransactionFilter(django_filters.FilterSet):
    """Filter for the transaction ledger"""
    status = django_filters.CharFilter(field_name='status', lookup_expr='exact')
    kind = django_filters.CharFilter(field_name='kind', lookup_expr='exact')
    account = django_filters.NumberFilter(field_name='account_id', lookup_expr='exact')
    category = django_filters.NumberFilter(field_name='category_id', lookup_expr='exact')
    counterparty = django_filters.NumberFilter(field_name='counterparty_id', lookup_expr='exact')
    counterparty_type = django_filters.CharFilter(field_name='counterparty_type', lookup_expr='exact')
    date_from = django_filters.DateFilter(field_name='date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='date', lookup_expr='lte')
    search = django_filters.CharFilter(method='filter_search', label='Search')

    class Meta:
        model = Transaction
        fields = ['status', 'kind', 'account', 'category', 'counterparty', 'counterparty_type',
                  'date_from', 'date_to', 'search']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(Q(description__icontains=value) | Q(payment_method__icontains=value))
