from django.contrib import admin
from .models import Guest, Booking, BookingEvent


class BookingEventInline(admin.TabularInline):
    model = BookingEvent
    extra = 0
    readonly_fields = ['event_type', 'status_after', 'payload', 'occurred_at', 'created_by']
    can_delete = False


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ['platform_booking_id', 'platform', 'experience_date', 'product_name', 'status', 'payment_status', 'price_gross']
    list_filter = ['platform', 'status', 'payment_status', 'experience_date']
    search_fields = ['platform_booking_id', 'guest_first_name', 'guest_last_name', 'guest_email']
    date_hierarchy = 'experience_date'
    inlines = [BookingEventInline]


@admin.register(Guest)
class GuestAdmin(admin.ModelAdmin):
    list_display = ['first_name', 'last_name', 'email', 'phone']
    search_fields = ['first_name', 'last_name', 'email', 'phone']
