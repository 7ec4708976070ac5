from django.contrib import admin
from .models import StaffProfile, StaffPayoutCollectionLog


@admin.register(StaffProfile)
class StaffProfileAdmin(admin.ModelAdmin):
    list_display = ['user', 'staff_type', 'lives_in_accom', 'active', 'finance_vendor', 'finance_client']
    list_filter = ['staff_type', 'active', 'lives_in_accom']
    search_fields = ['user__username', 'user__first_name', 'user__last_name', 'user__email']


@admin.register(StaffPayoutCollectionLog)
class StaffPayoutCollectionLogAdmin(admin.ModelAdmin):
    list_display = ['staff_profile', 'direction', 'amount_minor', 'currency_code', 'range_start', 'range_end']
    list_filter = ['direction', 'currency_code']
    search_fields = ['staff_profile__user__username', 'note']
