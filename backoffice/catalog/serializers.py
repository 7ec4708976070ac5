from rest_framework import serializers
import re
from backoffice.core.serializers import OptionalDateField, ValidityWindowMixin
from .models import ProductType, Product, Addon, ProductAddon, ProductPrice, ProductAlias


class ProductTypeSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductType
        fields = ['id', 'name', 'description', 'created_at', 'updated_at']


class ProductSerializer(serializers.ModelSerializer):
    product_type_name = serializers.CharField(source='product_type.name', read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'product_type', 'product_type_name', 'price', 'status',
            'created_by', 'updated_by', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_by', 'updated_by', 'created_at', 'updated_at']


class AddonSerializer(serializers.ModelSerializer):
    class Meta:
        model = Addon
        fields = ['id', 'name', 'base_price', 'tax_rate', 'is_active', 'sort_order', 'created_at', 'updated_at']


class ProductAddonSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    addon_name = serializers.CharField(source='addon.name', read_only=True)
    effective_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = ProductAddon
        fields = [
            'id', 'product', 'product_name', 'addon', 'addon_name', 'max_per_attendee',
            'price_override', 'effective_price', 'sort_order', 'created_at', 'updated_at'
        ]


class ProductPriceSerializer(ValidityWindowMixin, serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    valid_to = OptionalDateField()

    class Meta:
        model = ProductPrice
        fields = [
            'id', 'product', 'product_name', 'price', 'valid_from', 'valid_to',
            'created_by', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_by', 'created_at', 'updated_at']


class ProductAliasSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True, default=None)

    class Meta:
        model = ProductAlias
        fields = [
            'id', 'product', 'product_name', 'label', 'normalized_label', 'match_type',
            'priority', 'active', 'source', 'created_by', 'updated_by', 'created_at', 'updated_at'
        ]
        read_only_fields = ['normalized_label', 'created_by', 'updated_by', 'created_at', 'updated_at']

    def validate(self, attrs):
        label = attrs.get('label', getattr(self.instance, 'label', ''))
        match_type = attrs.get('match_type', getattr(self.instance, 'match_type', 'contains'))
        if match_type == 'regex':
            try:
                re.compile(label)
            except re.error as e:
                raise serializers.ValidationError({'label': f'Invalid regular expression: {e}'})
        return attrs
