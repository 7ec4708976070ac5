from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal


class Guest(models.Model):
    first_name = models.CharField(max_length=120, blank=True)
    last_name = models.CharField(max_length=120, blank=True)
    email = models.EmailField(blank=True, null=True)
    phone = models.CharField(max_length=40, blank=True, null=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.email or self.phone or f"Guest #{self.pk}"

    class Meta:
        db_table = 'guests'
        ordering = ['last_name', 'first_name', 'id']


class Booking(models.Model):
    """A booking for an experience, from any sales platform"""
    PLATFORM_CHOICES = [
        ('fareharbor', 'FareHarbor'),
        ('ecwid', 'Ecwid'),
        ('viator', 'Viator'),
        ('getyourguide', 'GetYourGuide'),
        ('freetour', 'FreeTour'),
        ('xperiencepoland', 'XperiencePoland'),
        ('airbnb', 'Airbnb'),
        ('manual', 'Manual'),
        ('unknown', 'Unknown'),
    ]

    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('confirmed', 'Confirmed'),
        ('amended', 'Amended'),
        ('cancelled', 'Cancelled'),
        ('completed', 'Completed'),
        ('no_show', 'No Show'),
        ('rebooked', 'Rebooked'),
        ('unknown', 'Unknown'),
    ]

    PAYMENT_STATUS_CHOICES = [
        ('unknown', 'Unknown'),
        ('unpaid', 'Unpaid'),
        ('deposit', 'Deposit'),
        ('partial', 'Partial'),
        ('paid', 'Paid'),
        ('refunded', 'Refunded'),
    ]

    platform = models.CharField(max_length=30, choices=PLATFORM_CHOICES, default='manual')
    platform_booking_id = models.CharField(max_length=120)
    platform_order_id = models.CharField(max_length=120, blank=True, null=True)
    channel = models.ForeignKey('sales_channels.Channel', on_delete=models.SET_NULL, null=True, blank=True, related_name='bookings')
    guest = models.ForeignKey(Guest, on_delete=models.SET_NULL, null=True, blank=True, related_name='bookings')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default='unknown')
    payment_method = models.CharField(max_length=60, blank=True, null=True)

    experience_date = models.DateField(null=True, blank=True)
    experience_start_at = models.DateTimeField(null=True, blank=True)
    experience_end_at = models.DateTimeField(null=True, blank=True)

    product = models.ForeignKey('catalog.Product', on_delete=models.PROTECT, null=True, blank=True, related_name='bookings')
    product_name = models.CharField(max_length=255, blank=True, null=True)
    product_variant = models.CharField(max_length=255, blank=True, null=True)

    guest_first_name = models.CharField(max_length=120, blank=True, null=True)
    guest_last_name = models.CharField(max_length=120, blank=True, null=True)
    guest_email = models.EmailField(blank=True, null=True)
    guest_phone = models.CharField(max_length=40, blank=True, null=True)
    pickup_location = models.CharField(max_length=255, blank=True, null=True)
    hotel_name = models.CharField(max_length=255, blank=True, null=True)

    party_size_total = models.PositiveIntegerField(null=True, blank=True)
    party_size_adults = models.PositiveIntegerField(null=True, blank=True)
    party_size_children = models.PositiveIntegerField(null=True, blank=True)

    currency = models.CharField(max_length=3, default='PLN')
    base_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    addons_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    price_gross = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    price_net = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    commission_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    commission_rate = models.DecimalField(max_digits=6, decimal_places=4, null=True, blank=True,
                                          validators=[MinValueValidator(Decimal('0'))])
    addons_snapshot = models.JSONField(default=dict, blank=True)

    notes = models.TextField(blank=True, null=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='created_bookings')
    updated_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='updated_bookings')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.platform}:{self.platform_booking_id}"

    class Meta:
        db_table = 'bookings'
        ordering = ['experience_date', 'experience_start_at', 'id']
        unique_together = [['platform', 'platform_booking_id']]
        indexes = [
            models.Index(fields=['experience_date'], name='bookings_experience_date_idx'),
            models.Index(fields=['status'], name='bookings_status_idx'),
        ]


class BookingEvent(models.Model):
    """History entry for a booking"""
    EVENT_TYPE_CHOICES = [
        ('created', 'Created'),
        ('amended', 'Amended'),
        ('cancelled', 'Cancelled'),
        ('replayed', 'Replayed'),
        ('note', 'Note'),
    ]

    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name='events')
    event_type = models.CharField(max_length=20, choices=EVENT_TYPE_CHOICES)
    platform = models.CharField(max_length=30, choices=Booking.PLATFORM_CHOICES, default='manual')
    status_after = models.CharField(max_length=20, choices=Booking.STATUS_CHOICES, blank=True, null=True)
    payload = models.JSONField(default=dict, blank=True)
    occurred_at = models.DateTimeField()
    processed_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='booking_events')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.event_type} for booking {self.booking_id}"

    class Meta:
        db_table = 'booking_events'
        ordering = ['-occurred_at', '-id']
