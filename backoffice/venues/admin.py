from django.contrib import admin
from .models import Venue, VenueCompensationTerm, NightReport, NightReportVenue, VenueCompensationCollectionLog


class VenueCompensationTermInline(admin.TabularInline):
    model = VenueCompensationTerm
    extra = 0
    fields = ['compensation_type', 'direction', 'rate_amount', 'rate_unit', 'currency_code',
              'valid_from', 'valid_to', 'is_active']


class NightReportVenueInline(admin.TabularInline):
    model = NightReportVenue
    extra = 0
    readonly_fields = ['compensation_term', 'compensation_type', 'direction', 'rate_amount',
                       'rate_unit', 'payout_amount', 'currency_code']


@admin.register(Venue)
class VenueAdmin(admin.ModelAdmin):
    list_display = ['name', 'is_active', 'allows_open_bar', 'sort_order', 'finance_vendor', 'finance_client']
    list_filter = ['is_active', 'allows_open_bar']
    search_fields = ['name']
    inlines = [VenueCompensationTermInline]


@admin.register(NightReport)
class NightReportAdmin(admin.ModelAdmin):
    list_display = ['activity_date', 'leader', 'status', 'submitted_at']
    list_filter = ['status']
    date_hierarchy = 'activity_date'
    inlines = [NightReportVenueInline]


@admin.register(VenueCompensationCollectionLog)
class VenueCompensationCollectionLogAdmin(admin.ModelAdmin):
    list_display = ['venue', 'direction', 'amount_minor', 'currency_code', 'range_start', 'range_end']
    list_filter = ['direction', 'currency_code']
