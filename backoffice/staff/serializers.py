from django.conf import settings
from rest_framework import serializers
from backoffice.core.utils import is_full_month
from .models import StaffProfile, StaffPayoutCollectionLog


class StaffProfileSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(source='user.id', read_only=True)
    user_name = serializers.SerializerMethodField()
    user_email = serializers.EmailField(source='user.email', read_only=True, default=None)
    user_status = serializers.BooleanField(source='user.is_active', read_only=True, default=None)

    class Meta:
        model = StaffProfile
        fields = [
            'user_id', 'staff_type', 'lives_in_accom', 'active',
            'finance_vendor', 'finance_client', 'guiding_category', 'review_category',
            'user_name', 'user_email', 'user_status', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']

    def get_user_name(self, obj):
        return obj.user.full_name or None


class StaffPayoutCollectionLogSerializer(serializers.ModelSerializer):
    """
    Payout or collection recorded against a staff member for one full calendar month.

    Payables need the profile's finance vendor, receivables its finance client.
    """
    staff_profile = serializers.PrimaryKeyRelatedField(
        queryset=StaffProfile.objects.filter(active=True),
        error_messages={'does_not_exist': 'Staff profile not found.'}
    )
    staff_name = serializers.SerializerMethodField()
    currency_code = serializers.CharField(max_length=3, required=False, allow_blank=True)
    created_by_name = serializers.CharField(source='created_by.full_name', read_only=True, default=None)

    class Meta:
        model = StaffPayoutCollectionLog
        fields = [
            'id', 'staff_profile', 'staff_name', 'direction', 'currency_code', 'amount_minor',
            'range_start', 'range_end', 'finance_transaction', 'note',
            'created_by', 'created_by_name', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_by', 'created_at', 'updated_at']

    def get_staff_name(self, obj):
        return obj.staff_profile.user.full_name

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
            raise serializers.ValidationError({'range_end': 'Payouts can only be recorded for full calendar months.'})

        profile = attrs.get('staff_profile', getattr(self.instance, 'staff_profile', None))
        direction = attrs.get('direction', getattr(self.instance, 'direction', 'payable'))
        if profile is not None:
            if direction == 'payable' and not profile.finance_vendor_id:
                raise serializers.ValidationError(
                    {'staff_profile': 'This staff profile is not linked to a finance vendor.'}
                )
            if direction == 'receivable' and not profile.finance_client_id:
                raise serializers.ValidationError(
                    {'staff_profile': 'This staff profile is not linked to a finance client.'}
                )
        return attrs
