from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal
import html
import re

ALIAS_NOISE = re.compile(r'#+|(?:Cancelled|Canceled|Rebooked)\s*:?|New\s+order|Booking\s+note:?', re.IGNORECASE)


def normalize_label(value):
    """Lowercased product label with booking-email noise removed"""
    value = html.unescape(value or '')
    value = ALIAS_NOISE.sub(' ', value)
    return ' '.join(value.split()).lower()


class ProductType(models.Model):
    """Experience family (pub crawl, boat party, ...)"""
    name = models.CharField(max_length=120, unique=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'product_types'
        ordering = ['name']


class Product(models.Model):
    """A sellable experience"""
    name = models.CharField(max_length=255)
    product_type = models.ForeignKey(ProductType, on_delete=models.PROTECT, related_name='products')
    price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'),
                                validators=[MinValueValidator(Decimal('0.00'))])
    status = models.BooleanField(default=True, help_text="Active products are offered to booking forms")
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='created_products')
    updated_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='updated_products')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'products'
        ordering = ['name']


class Addon(models.Model):
    """Extra sold alongside a product (t-shirt, cocktail, photos)"""
    name = models.CharField(max_length=120, unique=True)
    base_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'),
                                     validators=[MinValueValidator(Decimal('0.00'))])
    tax_rate = models.DecimalField(max_digits=5, decimal_places=4, default=Decimal('0.0000'),
                                   validators=[MinValueValidator(Decimal('0.0000'))])
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'addons'
        ordering = ['sort_order', 'name']


class ProductAddon(models.Model):
    """Add-on offered with a product, with optional per-product price and limit"""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='product_addons')
    addon = models.ForeignKey(Addon, on_delete=models.CASCADE, related_name='product_addons')
    max_per_attendee = models.PositiveIntegerField(null=True, blank=True)
    price_override = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True,
                                         validators=[MinValueValidator(Decimal('0.00'))])
    sort_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def effective_price(self):
        if self.price_override is not None:
            return self.price_override
        return self.addon.base_price

    def __str__(self):
        return f"{self.product.name} - {self.addon.name}"

    class Meta:
        db_table = 'product_addons'
        ordering = ['product', 'sort_order', 'id']
        unique_together = [['product', 'addon']]


class ProductPrice(models.Model):
    """Dated list price of a product"""
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='prices')
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    valid_from = models.DateField()
    valid_to = models.DateField(null=True, blank=True)
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='created_product_prices')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.product.name} {self.price} from {self.valid_from}"

    class Meta:
        db_table = 'product_prices'
        ordering = ['product', '-valid_from', '-id']
        indexes = [
            models.Index(fields=['product', 'valid_from'], name='product_prices_window_idx'),
        ]


class ProductAlias(models.Model):
    """Free-text product label from booking sources, mapped onto a catalog product"""
    MATCH_TYPE_CHOICES = [
        ('exact', 'Exact'),
        ('contains', 'Contains'),
        ('regex', 'Regex'),
    ]

    product = models.ForeignKey(Product, on_delete=models.SET_NULL, null=True, blank=True, related_name='aliases')
    label = models.CharField(max_length=255)
    normalized_label = models.CharField(max_length=255, editable=False)
    match_type = models.CharField(max_length=20, choices=MATCH_TYPE_CHOICES, default='contains')
    priority = models.PositiveIntegerField(default=100, help_text="Lower numbers are tried first")
    active = models.BooleanField(default=True)
    source = models.CharField(max_length=50, default='manual')
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='created_product_aliases')
    updated_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='updated_product_aliases')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        self.label = (self.label or '').strip()
        self.normalized_label = normalize_label(self.label)
        super().save(*args, **kwargs)

    def __str__(self):
        return self.label

    class Meta:
        db_table = 'product_aliases'
        ordering = ['priority', 'id']
        indexes = [
            models.Index(fields=['active', 'priority'], name='product_aliases_match_idx'),
        ]
