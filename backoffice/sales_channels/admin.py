from django.contrib import admin
from .models import PaymentMethod, Channel, ChannelCommission, ChannelProductPrice, ChannelCashCollectionLog


class ChannelCommissionInline(admin.TabularInline):
    model = ChannelCommission
    extra = 0
    fields = ['rate', 'valid_from', 'valid_to']


@admin.register(PaymentMethod)
class PaymentMethodAdmin(admin.ModelAdmin):
    list_display = ['name', 'created_at']
    search_fields = ['name']


@admin.register(Channel)
class ChannelAdmin(admin.ModelAdmin):
    list_display = ['name', 'payment_method', 'updated_at']
    search_fields = ['name']
    exclude = ['api_secret']
    inlines = [ChannelCommissionInline]


@admin.register(ChannelProductPrice)
class ChannelProductPriceAdmin(admin.ModelAdmin):
    list_display = ['channel', 'product', 'price', 'valid_from', 'valid_to']
    list_filter = ['channel']


@admin.register(ChannelCashCollectionLog)
class ChannelCashCollectionLogAdmin(admin.ModelAdmin):
    list_display = ['channel', 'currency_code', 'amount_minor', 'range_start', 'range_end', 'created_by']
    list_filter = ['channel', 'currency_code']
