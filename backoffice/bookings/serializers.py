from rest_framework import serializers
from backoffice.catalog.services import match_product_alias
from .models import Guest, Booking, BookingEvent
from .services import apply_pricing, PRICING_COMPONENTS, COMMISSION_INPUTS


class GuestSerializer(serializers.ModelSerializer):
    class Meta:
        model = Guest
        fields = ['id', 'first_name', 'last_name', 'email', 'phone', 'notes', 'created_at', 'updated_at']


class BookingSerializer(serializers.ModelSerializer):
    channel_name = serializers.CharField(source='channel.name', read_only=True, default=None)
    product_display_name = serializers.CharField(source='product.name', read_only=True, default=None)

    class Meta:
        model = Booking
        fields = [
            'id', 'platform', 'platform_booking_id', 'platform_order_id', 'channel', 'channel_name',
            'guest', 'status', 'payment_status', 'payment_method',
            'experience_date', 'experience_start_at', 'experience_end_at',
            'product', 'product_display_name', 'product_name', 'product_variant',
            'guest_first_name', 'guest_last_name', 'guest_email', 'guest_phone',
            'pickup_location', 'hotel_name',
            'party_size_total', 'party_size_adults', 'party_size_children',
            'currency', 'base_amount', 'addons_amount', 'discount_amount',
            'price_gross', 'price_net', 'commission_amount', 'commission_rate',
            'addons_snapshot', 'notes', 'cancelled_at',
            'created_by', 'updated_by', 'created_at', 'updated_at'
        ]
        read_only_fields = ['price_net', 'cancelled_at', 'created_by', 'updated_by', 'created_at', 'updated_at']

    def validate_currency(self, value):
        return value.upper()

    def validate(self, attrs):
        start = attrs.get('experience_start_at', getattr(self.instance, 'experience_start_at', None))
        end = attrs.get('experience_end_at', getattr(self.instance, 'experience_end_at', None))
        if start and end and end < start:
            raise serializers.ValidationError({'experience_end_at': 'End time cannot be before start time'})
        return attrs

    def create(self, validated_data):
        if validated_data.get('product') is None and validated_data.get('product_name'):
            alias = match_product_alias(validated_data['product_name'])
            if alias:
                validated_data['product'] = alias.product
        booking = Booking(**validated_data)
        apply_pricing(
            booking,
            recompute_gross='price_gross' not in validated_data,
            recompute_commission='commission_amount' not in validated_data,
        )
        booking.save()
        return booking

    def update(self, instance, validated_data):
        components_changed = any(field in validated_data for field in PRICING_COMPONENTS)
        rate_inputs_changed = any(field in validated_data for field in COMMISSION_INPUTS)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        recompute_gross = 'price_gross' not in validated_data and components_changed
        refresh_rate = 'commission_rate' not in validated_data and rate_inputs_changed
        recompute_commission = 'commission_amount' not in validated_data and (
            recompute_gross or refresh_rate or 'commission_rate' in validated_data or 'price_gross' in validated_data
        )
        apply_pricing(
            instance,
            recompute_gross=recompute_gross,
            recompute_commission=recompute_commission,
            refresh_rate=refresh_rate,
        )
        instance.save()
        return instance


class BookingEventSerializer(serializers.ModelSerializer):
    created_by_name = serializers.CharField(source='created_by.full_name', read_only=True, default=None)

    class Meta:
        model = BookingEvent
        fields = [
            'id', 'booking', 'event_type', 'platform', 'status_after', 'payload',
            'occurred_at', 'processed_at', 'created_by', 'created_by_name', 'created_at'
        ]
        read_only_fields = fields
