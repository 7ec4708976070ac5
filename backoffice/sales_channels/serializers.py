from django.conf import settings
from rest_framework import serializers
from backoffice.core.serializers import OptionalDateField, ValidityWindowMixin
from backoffice.core.utils import is_full_month
from .models import PaymentMethod, Channel, ChannelCommission, ChannelProductPrice, ChannelCashCollectionLog


class PaymentMethodSerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentMethod
        fields = ['id', 'name', 'description', 'created_at', 'updated_at']


class ChannelSerializer(serializers.ModelSerializer):
    payment_method_name = serializers.CharField(source='payment_method.name', read_only=True, default=None)
    late_booking_allowed = serializers.BooleanField(read_only=True)

    class Meta:
        model = Channel
        fields = [
            'id', 'name', 'description', 'api_key', 'api_secret', 'payment_method', 'payment_method_name',
            'late_booking_allowed', 'created_by', 'updated_by', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_by', 'updated_by', 'created_at', 'updated_at']
        extra_kwargs = {
            'api_key': {'write_only': True},
            'api_secret': {'write_only': True},
        }


class ChannelCompactSerializer(serializers.ModelSerializer):
    payment_method_name = serializers.CharField(source='payment_method.name', read_only=True, default=None)
    late_booking_allowed = serializers.BooleanField(read_only=True)

    class Meta:
        model = Channel
        fields = ['id', 'name', 'payment_method_name', 'late_booking_allowed']


class ChannelCommissionSerializer(ValidityWindowMixin, serializers.ModelSerializer):
    channel_name = serializers.CharField(source='channel.name', read_only=True)
    created_by_name = serializers.CharField(source='created_by.full_name', read_only=True, default=None)
    updated_by_name = serializers.CharField(source='updated_by.full_name', read_only=True, default=None)
    valid_to = OptionalDateField()

    class Meta:
        model = ChannelCommission
        fields = [
            'id', 'channel', 'channel_name', 'rate', 'valid_from', 'valid_to',
            'created_by', 'created_by_name', 'updated_by', 'updated_by_name', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_by', 'updated_by', 'created_at', 'updated_at']


class ChannelProductPriceSerializer(ValidityWindowMixin, serializers.ModelSerializer):
    channel_name = serializers.CharField(source='channel.name', read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)
    valid_to = OptionalDateField()

    class Meta:
        model = ChannelProductPrice
        fields = [
            'id', 'channel', 'channel_name', 'product', 'product_name', 'price',
            'valid_from', 'valid_to', 'created_by', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_by', 'created_at', 'updated_at']


class ChannelCashCollectionLogSerializer(serializers.ModelSerializer):
    channel_name = serializers.CharField(source='channel.name', read_only=True)
    currency_code = serializers.CharField(max_length=3, required=False, allow_blank=True)
    created_by_name = serializers.CharField(source='created_by.full_name', read_only=True, default=None)

    class Meta:
        model = ChannelCashCollectionLog
        fields = [
            'id', 'channel', 'channel_name', 'currency_code', 'amount_minor', 'range_start', 'range_end',
            'finance_transaction', 'note', 'created_by', 'created_by_name', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def validate_channel(self, value):
        if value.payment_method is None or value.payment_method.name.strip().lower() != 'cash':
            raise serializers.ValidationError('This channel is not configured for cash payments')
        return value

    def validate_currency_code(self, value):
        return value.strip().upper() or settings.FINANCE_BASE_CURRENCY

    def validate_amount_minor(self, value):
        if value <= 0:
            raise serializers.ValidationError('Amount must be greater than zero')
        return value

    def validate_note(self, value):
        if value is None:
            return None
        return value.strip() or None

    def validate(self, attrs):
        if self.instance is None and 'currency_code' not in attrs:
            attrs['currency_code'] = settings.FINANCE_BASE_CURRENCY
        start = attrs.get('range_start', getattr(self.instance, 'range_start', None))
        end = attrs.get('range_end', getattr(self.instance, 'range_end', None))
        if start and end and not is_full_month(start, end):
            raise serializers.ValidationError({'range_end': 'Collections can only be recorded for full calendar months'})
        return attrs
