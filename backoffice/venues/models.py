from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal

COMPENSATION_TYPE_CHOICES = [
    ('open_bar', 'Open bar'),
    ('commission', 'Commission'),
]

DIRECTION_CHOICES = [
    ('payable', 'Payable'),
    ('receivable', 'Receivable'),
]


class Venue(models.Model):
    """Bar or club visited on tours"""
    name = models.CharField(max_length=255, unique=True)
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)
    allows_open_bar = models.BooleanField(default=False)
    finance_vendor = models.ForeignKey('finance.Vendor', on_delete=models.SET_NULL, null=True, blank=True,
                                       related_name='venues')
    finance_client = models.ForeignKey('finance.Client', on_delete=models.SET_NULL, null=True, blank=True,
                                       related_name='venues')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'venues'
        ordering = ['-is_active', 'sort_order', 'name']


class VenueCompensationTerm(models.Model):
    """What a venue pays us (commission) or we pay it (open bar) over a date range"""
    RATE_UNIT_CHOICES = [
        ('per_person', 'Per person'),
        ('flat', 'Flat'),
    ]

    venue = models.ForeignKey(Venue, on_delete=models.CASCADE, related_name='compensation_terms')
    compensation_type = models.CharField(max_length=20, choices=COMPENSATION_TYPE_CHOICES)
    direction = models.CharField(max_length=20, choices=DIRECTION_CHOICES)
    rate_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'),
                                      validators=[MinValueValidator(Decimal('0.00'))])
    rate_unit = models.CharField(max_length=20, choices=RATE_UNIT_CHOICES, default='per_person')
    currency_code = models.CharField(max_length=3, default='USD')
    valid_from = models.DateField()
    valid_to = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    notes = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='created_venue_terms')
    updated_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='updated_venue_terms')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.venue.name} {self.compensation_type} {self.rate_amount} {self.currency_code}"

    class Meta:
        db_table = 'venue_compensation_terms'
        ordering = ['venue_id', 'compensation_type', '-valid_from', '-id']
        indexes = [
            models.Index(fields=['venue', 'compensation_type', 'valid_from'], name='venue_terms_window_idx'),
        ]


class NightReport(models.Model):
    """A tour leader's account of the venues visited on one night"""
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('submitted', 'Submitted'),
    ]

    leader = models.ForeignKey('core.User', on_delete=models.PROTECT, related_name='night_reports')
    activity_date = models.DateField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft')
    notes = models.TextField(blank=True, null=True)
    submitted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Night report {self.activity_date} ({self.status})"

    class Meta:
        db_table = 'night_reports'
        ordering = ['-activity_date', '-id']


class NightReportVenue(models.Model):
    """One venue on a night report; payout fields are filled when the report is submitted"""
    report = models.ForeignKey(NightReport, on_delete=models.CASCADE, related_name='venues')
    order_index = models.PositiveIntegerField(default=1)
    venue = models.ForeignKey(Venue, on_delete=models.SET_NULL, null=True, blank=True, related_name='report_lines')
    venue_name = models.CharField(max_length=255)
    total_people = models.PositiveIntegerField(default=0)
    is_open_bar = models.BooleanField(default=False)
    compensation_term = models.ForeignKey(VenueCompensationTerm, on_delete=models.SET_NULL, null=True, blank=True,
                                          related_name='report_lines')
    compensation_type = models.CharField(max_length=20, choices=COMPENSATION_TYPE_CHOICES, null=True, blank=True)
    direction = models.CharField(max_length=20, choices=DIRECTION_CHOICES, null=True, blank=True)
    rate_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    rate_unit = models.CharField(max_length=20, null=True, blank=True)
    payout_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    currency_code = models.CharField(max_length=3, null=True, blank=True)

    def __str__(self):
        return f"{self.venue_name} ({self.total_people})"

    class Meta:
        db_table = 'night_report_venues'
        ordering = ['report_id', 'order_index', 'id']


class VenueCompensationCollectionLog(models.Model):
    """Money actually collected from or paid to a venue for a summary window"""
    venue = models.ForeignKey(Venue, on_delete=models.CASCADE, related_name='collection_logs')
    direction = models.CharField(max_length=20, choices=DIRECTION_CHOICES)
    currency_code = models.CharField(max_length=3, default='USD')
    amount_minor = models.BigIntegerField(validators=[MinValueValidator(1)])
    range_start = models.DateField()
    range_end = models.DateField()
    finance_transaction = models.ForeignKey('finance.Transaction', on_delete=models.SET_NULL, null=True, blank=True,
                                            related_name='venue_collections')
    note = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='venue_collection_logs')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.venue.name} {self.direction} {self.amount_minor} {self.currency_code}"

    class Meta:
        db_table = 'venue_compensation_collection_logs'
        ordering = ['-range_start', '-id']
        indexes = [
            models.Index(fields=['range_start', 'range_end'], name='venue_collections_range_idx'),
        ]
