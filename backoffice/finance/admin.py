from django.contrib import admin
from .models import Account, Category, Vendor, Client, Transaction, RecurringRule, ManagementRequest, Budget


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ['name', 'type', 'currency', 'opening_balance_minor', 'is_active']
    list_filter = ['type', 'is_active']
    search_fields = ['name']


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'kind', 'parent', 'is_active']
    list_filter = ['kind', 'is_active']
    search_fields = ['name']


@admin.register(Vendor, Client)
class CounterpartyAdmin(admin.ModelAdmin):
    list_display = ['name', 'tax_id', 'email', 'default_category', 'is_active']
    list_filter = ['is_active']
    search_fields = ['name', 'tax_id', 'email']


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ['date', 'kind', 'account', 'amount_minor', 'currency', 'status', 'category']
    list_filter = ['kind', 'status', 'account']
    search_fields = ['description']
    date_hierarchy = 'date'
    readonly_fields = ['created_by', 'approved_by', 'created_at', 'updated_at']


@admin.register(RecurringRule)
class RecurringRuleAdmin(admin.ModelAdmin):
    list_display = ['id', 'frequency', 'interval', 'next_run_date', 'last_run_at', 'status']
    list_filter = ['frequency', 'status']


@admin.register(ManagementRequest)
class ManagementRequestAdmin(admin.ModelAdmin):
    list_display = ['id', 'type', 'target_entity', 'target_id', 'status', 'priority', 'requested_by', 'created_at']
    list_filter = ['status', 'priority', 'target_entity']


@admin.register(Budget)
class BudgetAdmin(admin.ModelAdmin):
    list_display = ['period', 'category', 'amount_minor', 'currency']
    list_filter = ['period']
