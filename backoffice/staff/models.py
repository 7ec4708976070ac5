from django.core.validators import MinValueValidator
from django.db import models


class StaffProfile(models.Model):
    """Employment details of a user who works tours or venues"""
    STAFF_TYPE_CHOICES = [
        ('volunteer', 'Volunteer'),
        ('long_term', 'Long term'),
    ]

    user = models.OneToOneField('core.User', on_delete=models.CASCADE, primary_key=True, related_name='staff_profile')
    staff_type = models.CharField(max_length=20, choices=STAFF_TYPE_CHOICES)
    lives_in_accom = models.BooleanField(default=False)
    active = models.BooleanField(default=True)
    finance_vendor = models.ForeignKey('finance.Vendor', on_delete=models.SET_NULL, null=True, blank=True,
                                       related_name='staff_profiles')
    finance_client = models.ForeignKey('finance.Client', on_delete=models.SET_NULL, null=True, blank=True,
                                       related_name='staff_profiles')
    guiding_category = models.ForeignKey('finance.Category', on_delete=models.SET_NULL, null=True, blank=True,
                                         related_name='guiding_staff_profiles')
    review_category = models.ForeignKey('finance.Category', on_delete=models.SET_NULL, null=True, blank=True,
                                        related_name='review_staff_profiles')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user.username} ({self.staff_type})"

    class Meta:
        db_table = 'staff_profiles'
        ordering = ['user_id']


class StaffPayoutCollectionLog(models.Model):
    """Money paid to or collected from a staff member for one calendar month"""
    DIRECTION_CHOICES = [
        ('payable', 'Payable'),
        ('receivable', 'Receivable'),
    ]

    staff_profile = models.ForeignKey(StaffProfile, on_delete=models.CASCADE, related_name='payout_logs')
    direction = models.CharField(max_length=20, choices=DIRECTION_CHOICES, default='payable')
    currency_code = models.CharField(max_length=3)
    amount_minor = models.BigIntegerField(validators=[MinValueValidator(1)])
    range_start = models.DateField()
    range_end = models.DateField()
    finance_transaction = models.ForeignKey('finance.Transaction', on_delete=models.SET_NULL, null=True, blank=True,
                                            related_name='staff_payouts')
    note = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='staff_payout_logs')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.staff_profile.user.username} {self.direction} {self.amount_minor} {self.currency_code}"

    class Meta:
        db_table = 'staff_payout_collection_logs'
        ordering = ['-range_start', '-id']
        indexes = [
            models.Index(fields=['staff_profile', 'range_start'], name='staff_payouts_profile_idx'),
        ]
