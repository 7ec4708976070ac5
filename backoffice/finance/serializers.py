from rest_framework import serializers
from decimal import Decimal
from .models import Account, Category, Vendor, Client, Transaction, RecurringRule, ManagementRequest, Budget
from . import services


class AccountSerializer(serializers.ModelSerializer):
    class Meta:
        model = Account
        fields = ['id', 'name', 'type', 'currency', 'opening_balance_minor', 'is_active', 'created_at', 'updated_at']

    def validate_currency(self, value):
        return value.upper()


class CategorySerializer(serializers.ModelSerializer):
    parent_name = serializers.CharField(source='parent.name', read_only=True, default=None)

    class Meta:
        model = Category
        fields = ['id', 'kind', 'name', 'parent', 'parent_name', 'is_active', 'created_at', 'updated_at']

    def validate_parent(self, value):
        if value is not None and self.instance is not None and value.pk == self.instance.pk:
            raise serializers.ValidationError('A category cannot be its own parent')
        return value


class VendorSerializer(serializers.ModelSerializer):
    default_category_name = serializers.CharField(source='default_category.name', read_only=True, default=None)

    class Meta:
        model = Vendor
        fields = [
            'id', 'name', 'tax_id', 'email', 'phone', 'default_category', 'default_category_name',
            'notes', 'is_active', 'created_at', 'updated_at'
        ]


class ClientSerializer(serializers.ModelSerializer):
    default_category_name = serializers.CharField(source='default_category.name', read_only=True, default=None)

    class Meta:
        model = Client
        fields = [
            'id', 'name', 'tax_id', 'email', 'phone', 'default_category', 'default_category_name',
            'notes', 'is_active', 'created_at', 'updated_at'
        ]


class TransactionSerializer(serializers.ModelSerializer):
    """Creation and updates go through the finance services (counterparty rules, paid lock, audit)"""
    account_name = serializers.CharField(source='account.name', read_only=True)
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    counterparty_name = serializers.SerializerMethodField()
    base_amount_minor = serializers.IntegerField(required=False, allow_null=True)
    fx_rate = serializers.DecimalField(max_digits=18, decimal_places=6, required=False, allow_null=True)
    counterparty_type = serializers.ChoiceField(choices=Transaction.COUNTERPARTY_TYPE_CHOICES, required=False, allow_null=True)
    tags = serializers.JSONField(required=False)
    meta = serializers.JSONField(required=False)

    class Meta:
        model = Transaction
        fields = [
            'id', 'kind', 'date', 'account', 'account_name', 'currency', 'amount_minor', 'fx_rate',
            'base_amount_minor', 'category', 'category_name', 'counterparty_type', 'counterparty_id',
            'counterparty_name', 'payment_method', 'status', 'description', 'tags', 'meta',
            'created_by', 'approved_by', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_by', 'approved_by', 'created_at', 'updated_at']

    def get_counterparty_name(self, obj):
        if not obj.counterparty_id:
            return None
        model = {'vendor': Vendor, 'client': Client}.get(obj.counterparty_type)
        if model is None:
            return None
        counterparty = model.objects.filter(pk=obj.counterparty_id).only('name').first()
        return counterparty.name if counterparty else None

    def validate_currency(self, value):
        return value.upper()

    def validate_amount_minor(self, value):
        if value <= 0:
            raise serializers.ValidationError('Amount must be a positive number of minor units')
        return value

    def validate_fx_rate(self, value):
        if value is not None and value <= Decimal('0'):
            raise serializers.ValidationError('Invalid fx_rate value')
        return value

    def _actor(self):
        user = self.context.get('user')
        if user is None and self.context.get('request') is not None:
            user = self.context['request'].user
        return user

    def create(self, validated_data):
        return services.create_transaction(validated_data, user=self._actor(), request=self.context.get('request'))

    def update(self, instance, validated_data):
        return services.update_transaction(instance, validated_data, user=self._actor(), request=self.context.get('request'))


class TransferSerializer(serializers.Serializer):
    from_account_id = serializers.PrimaryKeyRelatedField(queryset=Account.objects.all(), source='from_account')
    to_account_id = serializers.PrimaryKeyRelatedField(queryset=Account.objects.all(), source='to_account')
    amount_minor = serializers.IntegerField()
    currency = serializers.CharField(max_length=3, required=False)
    fx_rate = serializers.DecimalField(max_digits=18, decimal_places=6, required=False, allow_null=True)
    date = serializers.DateField()
    status = serializers.ChoiceField(choices=Transaction.STATUS_CHOICES, required=False)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    tags = serializers.JSONField(required=False, allow_null=True)
    meta = serializers.JSONField(required=False, allow_null=True)


class BudgetSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True)

    class Meta:
        model = Budget
        fields = ['id', 'period', 'category', 'category_name', 'amount_minor', 'currency', 'created_at', 'updated_at']

    def validate_currency(self, value):
        return value.upper()


class RecurringRuleSerializer(serializers.ModelSerializer):
    class Meta:
        model = RecurringRule
        fields = [
            'id', 'frequency', 'interval', 'by_month_day', 'start_date', 'end_date', 'timezone',
            'next_run_date', 'last_run_at', 'template_json', 'status', 'created_by', 'created_at', 'updated_at'
        ]
        read_only_fields = ['last_run_at', 'created_by', 'created_at', 'updated_at']

    def validate_timezone(self, value):
        from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise serializers.ValidationError(f'Unknown timezone: {value}')
        return value

    def validate_template_json(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError('Template must be an object')
        missing = [field for field in ('kind', 'account', 'currency', 'amount_minor') if field not in value]
        if missing:
            raise serializers.ValidationError(f"Template is missing: {', '.join(missing)}")
        return value

    def validate(self, attrs):
        start = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start and end and end < start:
            raise serializers.ValidationError({'end_date': 'end_date cannot be before start_date'})
        return attrs

    def create(self, validated_data):
        if not validated_data.get('next_run_date'):
            validated_data['next_run_date'] = validated_data['start_date']
        user = self.context.get('user')
        if user is None and self.context.get('request') is not None:
            user = self.context['request'].user
        if user is not None and user.is_authenticated:
            validated_data['created_by'] = user
        return super().create(validated_data)


class ManagementRequestSerializer(serializers.ModelSerializer):
    requested_by_name = serializers.CharField(source='requested_by.full_name', read_only=True)
    manager_name = serializers.CharField(source='manager.full_name', read_only=True, default=None)

    class Meta:
        model = ManagementRequest
        fields = [
            'id', 'type', 'target_entity', 'target_id', 'payload', 'requested_by', 'requested_by_name',
            'status', 'manager', 'manager_name', 'decision_note', 'priority', 'due_at', 'created_at', 'updated_at'
        ]
        read_only_fields = ['requested_by', 'status', 'manager', 'decision_note', 'created_at', 'updated_at']

    def validate_target_entity(self, value):
        supported = [choice for choice, _ in ManagementRequest.TARGET_CHOICES]
        if value not in supported:
            raise serializers.ValidationError(f"target_entity must be one of: {', '.join(supported)}")
        return value


class DecisionSerializer(serializers.Serializer):
    decision_note = serializers.CharField(required=False, allow_blank=True, allow_null=True)
