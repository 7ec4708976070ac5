from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
from decimal import Decimal

# Channels that may still take bookings after the cut-off
LATE_BOOKING_CHANNELS = {'Ecwid', 'Walk-In'}


class PaymentMethod(models.Model):
    name = models.CharField(max_length=120, unique=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'payment_methods'
        ordering = ['name']


class Channel(models.Model):
    """A sales channel (booking platform, reseller, walk-in desk)"""
    name = models.CharField(max_length=120, unique=True)
    description = models.TextField(blank=True)
    api_key = models.CharField(max_length=255, blank=True)
    api_secret = models.CharField(max_length=255, blank=True)
    payment_method = models.ForeignKey(PaymentMethod, on_delete=models.SET_NULL, null=True, blank=True, related_name='channels')
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='created_channels')
    updated_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='updated_channels')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def late_booking_allowed(self):
        return self.name in LATE_BOOKING_CHANNELS

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'channels'
        ordering = ['name']


class ChannelCommission(models.Model):
    """Commission rate (fraction of gross) a channel keeps, valid over a date window"""
    channel = models.ForeignKey(Channel, on_delete=models.CASCADE, related_name='commissions')
    rate = models.DecimalField(max_digits=6, decimal_places=4,
                               validators=[MinValueValidator(Decimal('0')), MaxValueValidator(Decimal('1'))])
    valid_from = models.DateField()
    valid_to = models.DateField(null=True, blank=True)
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='created_channel_commissions')
    updated_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='updated_channel_commissions')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.channel.name} {self.rate} from {self.valid_from}"

    class Meta:
        db_table = 'channel_commissions'
        ordering = ['channel_id', '-valid_from', '-id']
        indexes = [
            models.Index(fields=['channel', 'valid_from'], name='channel_comm_window_idx'),
        ]


class ChannelProductPrice(models.Model):
    """Channel-specific product price, valid over a date window"""
    channel = models.ForeignKey(Channel, on_delete=models.CASCADE, related_name='product_prices')
    product = models.ForeignKey('catalog.Product', on_delete=models.CASCADE, related_name='channel_prices')
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    valid_from = models.DateField()
    valid_to = models.DateField(null=True, blank=True)
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='created_channel_prices')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.channel.name} / {self.product.name}: {self.price}"

    class Meta:
        db_table = 'channel_product_prices'
        ordering = ['channel_id', 'product_id', '-valid_from', '-id']
        indexes = [
            models.Index(fields=['channel', 'product', 'valid_from'], name='channel_price_window_idx'),
        ]


class ChannelCashCollectionLog(models.Model):
    """Cash handed over by a cash-paid channel for one full calendar month"""
    channel = models.ForeignKey(Channel, on_delete=models.CASCADE, related_name='cash_collections')
    currency_code = models.CharField(max_length=3)
    amount_minor = models.BigIntegerField(validators=[MinValueValidator(1)])
    range_start = models.DateField()
    range_end = models.DateField()
    finance_transaction = models.ForeignKey('finance.Transaction', on_delete=models.SET_NULL, null=True, blank=True, related_name='channel_cash_collections')
    note = models.TextField(blank=True, null=True)
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='channel_cash_collections')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.channel.name} {self.amount_minor} {self.currency_code} for {self.range_start:%Y-%m}"

    class Meta:
        db_table = 'channel_cash_collection_logs'
        ordering = ['-range_start', '-id']
        indexes = [
            models.Index(fields=['channel', 'range_start', 'range_end'], name='channel_cash_window_idx'),
        ]
