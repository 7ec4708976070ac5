import django_filters
from django.db.models import Q
from .models import Booking


class BookingFilter(django_filters.FilterSet):
    """Filter for booking lists; the date window is applied by the view"""
    search = django_filters.CharFilter(method='filter_search', label='Search')
    platform = django_filters.CharFilter(field_name='platform', lookup_expr='exact')
    status = django_filters.CharFilter(field_name='status', lookup_expr='exact')
    payment_status = django_filters.CharFilter(field_name='payment_status', lookup_expr='exact')
    channel = django_filters.NumberFilter(field_name='channel_id', lookup_expr='exact')
    product = django_filters.NumberFilter(field_name='product_id', lookup_expr='exact')

    class Meta:
        model = Booking
        fields = ['search', 'platform', 'status', 'payment_status', 'channel', 'product']

    def filter_search(self, queryset, name, value):
        value = (value or '').strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(platform_booking_id__icontains=value) |
            Q(platform_order_id__icontains=value) |
            Q(guest_first_name__icontains=value) |
            Q(guest_last_name__icontains=value) |
            Q(guest_email__icontains=value) |
            Q(guest_phone__icontains=value)
        )
