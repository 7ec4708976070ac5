from django.contrib import admin
from .models import ProductType, Product, Addon, ProductAddon, ProductPrice, ProductAlias


class ProductAddonInline(admin.TabularInline):
    model = ProductAddon
    extra = 0


class ProductPriceInline(admin.TabularInline):
    model = ProductPrice
    extra = 0
    fields = ['price', 'valid_from', 'valid_to']


@admin.register(ProductType)
class ProductTypeAdmin(admin.ModelAdmin):
    list_display = ['name', 'created_at']
    search_fields = ['name']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'product_type', 'price', 'status', 'updated_at']
    list_filter = ['status', 'product_type']
    search_fields = ['name']
    inlines = [ProductAddonInline, ProductPriceInline]


@admin.register(Addon)
class AddonAdmin(admin.ModelAdmin):
    list_display = ['name', 'base_price', 'tax_rate', 'is_active', 'sort_order']
    list_filter = ['is_active']
    search_fields = ['name']


@admin.register(ProductAlias)
class ProductAliasAdmin(admin.ModelAdmin):
    list_display = ['label', 'product', 'match_type', 'priority', 'active', 'source']
    list_filter = ['match_type', 'active', 'source']
    search_fields = ['label', 'normalized_label']
