from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator, RegexValidator
from decimal import Decimal


class Account(models.Model):
    """Money container (cash box, bank account, payment processor balance)"""
    TYPE_CHOICES = [
        ('cash', 'Cash'),
        ('bank', 'Bank'),
        ('stripe', 'Stripe'),
        ('revolut', 'Revolut'),
        ('other', 'Other'),
    ]

    name = models.CharField(max_length=120, unique=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    currency = models.CharField(max_length=3)
    opening_balance_minor = models.BigIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'finance_accounts'
        ordering = ['name']


class Category(models.Model):
    KIND_CHOICES = [
        ('income', 'Income'),
        ('expense', 'Expense'),
    ]

    kind = models.CharField(max_length=10, choices=KIND_CHOICES)
    name = models.CharField(max_length=160)
    parent = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='children')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'finance_categories'
        ordering = ['kind', 'parent_id', 'name']
        verbose_name_plural = 'categories'


class Counterparty(models.Model):
    name = models.CharField(max_length=200)
    tax_id = models.CharField(max_length=64, blank=True, null=True)
    email = models.EmailField(blank=True, null=True)
    phone = models.CharField(max_length=40, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        abstract = True
        ordering = ['name']


class Vendor(Counterparty):
    """Someone the business pays"""
    default_category = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True, related_name='default_for_vendors')

    class Meta(Counterparty.Meta):
        db_table = 'finance_vendors'


class Client(Counterparty):
    """Someone who pays the business"""
    default_category = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True, related_name='default_for_clients')

    class Meta(Counterparty.Meta):
        db_table = 'finance_clients'


class Transaction(models.Model):
    """A ledger movement; amounts are integers in the minor unit of the currency"""
    KIND_CHOICES = [
        ('income', 'Income'),
        ('expense', 'Expense'),
        ('transfer', 'Transfer'),
        ('refund', 'Refund'),
    ]

    STATUS_CHOICES = [
        ('planned', 'Planned'),
        ('approved', 'Approved'),
        ('paid', 'Paid'),
        ('reimbursed', 'Reimbursed'),
        ('void', 'Void'),
    ]

    COUNTERPARTY_TYPE_CHOICES = [
        ('vendor', 'Vendor'),
        ('client', 'Client'),
        ('none', 'None'),
    ]

    kind = models.CharField(max_length=10, choices=KIND_CHOICES)
    date = models.DateField()
    account = models.ForeignKey(Account, on_delete=models.PROTECT, related_name='transactions')
    currency = models.CharField(max_length=3)
    amount_minor = models.BigIntegerField()
    fx_rate = models.DecimalField(max_digits=18, decimal_places=6, default=Decimal('1'))
    base_amount_minor = models.BigIntegerField()
    category = models.ForeignKey(Category, on_delete=models.SET_NULL, null=True, blank=True, related_name='transactions')
    counterparty_type = models.CharField(max_length=10, choices=COUNTERPARTY_TYPE_CHOICES, default='none')
    counterparty_id = models.BigIntegerField(null=True, blank=True)
    payment_method = models.CharField(max_length=60, blank=True, null=True)
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default='planned')
    description = models.TextField(blank=True, null=True)
    tags = models.JSONField(default=list, blank=True)
    meta = models.JSONField(default=dict, blank=True)
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='finance_transactions_created')
    approved_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='finance_transactions_approved')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.kind} {self.amount_minor} {self.currency} on {self.date}"

    class Meta:
        db_table = 'finance_transactions'
        ordering = ['-date', '-id']
        indexes = [
            models.Index(fields=['date'], name='finance_tx_date_idx'),
            models.Index(fields=['account', 'date'], name='finance_tx_account_date_idx'),
            models.Index(fields=['counterparty_type', 'counterparty_id'], name='finance_tx_counterparty_idx'),
        ]


class RecurringRule(models.Model):
    """Schedule that materialises a transaction template on a fixed cadence"""
    FREQUENCY_CHOICES = [
        ('daily', 'Daily'),
        ('weekly', 'Weekly'),
        ('monthly', 'Monthly'),
        ('quarterly', 'Quarterly'),
        ('yearly', 'Yearly'),
    ]

    STATUS_CHOICES = [
        ('active', 'Active'),
        ('paused', 'Paused'),
    ]

    frequency = models.CharField(max_length=10, choices=FREQUENCY_CHOICES)
    interval = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    by_month_day = models.PositiveSmallIntegerField(null=True, blank=True,
                                                    validators=[MinValueValidator(1), MaxValueValidator(31)])
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    timezone = models.CharField(max_length=64, default='UTC')
    next_run_date = models.DateField(null=True, blank=True)
    last_run_at = models.DateTimeField(null=True, blank=True)
    template_json = models.JSONField(default=dict)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='active')
    created_by = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='finance_recurring_rules')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.frequency} rule #{self.pk}"

    class Meta:
        db_table = 'finance_recurring_rules'
        ordering = ['next_run_date', 'id']


class ManagementRequest(models.Model):
    """A change to finance data that needs a manager's decision"""
    STATUS_CHOICES = [
        ('open', 'Open'),
        ('approved', 'Approved'),
        ('returned', 'Returned'),
        ('rejected', 'Rejected'),
    ]

    PRIORITY_CHOICES = [
        ('low', 'Low'),
        ('normal', 'Normal'),
        ('high', 'High'),
    ]

    TARGET_CHOICES = [
        ('transaction', 'Transaction'),
        ('recurring_rule', 'Recurring rule'),
        ('account', 'Account'),
        ('category', 'Category'),
        ('vendor', 'Vendor'),
        ('client', 'Client'),
        ('budget', 'Budget'),
    ]

    type = models.CharField(max_length=60)
    target_entity = models.CharField(max_length=60)
    target_id = models.BigIntegerField(null=True, blank=True)
    payload = models.JSONField(default=dict, blank=True)
    requested_by = models.ForeignKey('core.User', on_delete=models.PROTECT, related_name='finance_requests')
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='open')
    manager = models.ForeignKey('core.User', on_delete=models.SET_NULL, null=True, blank=True, related_name='finance_requests_decided')
    decision_note = models.TextField(blank=True, null=True)
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='normal')
    due_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.type} on {self.target_entity} ({self.status})"

    class Meta:
        db_table = 'finance_management_requests'
        ordering = ['-created_at']


class Budget(models.Model):
    period = models.CharField(max_length=7, validators=[RegexValidator(r'^\d{4}-(0[1-9]|1[0-2])$', 'Period must be YYYY-MM')])
    category = models.ForeignKey(Category, on_delete=models.CASCADE, related_name='budgets')
    amount_minor = models.BigIntegerField()
    currency = models.CharField(max_length=3)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.category.name} {self.period}"

    class Meta:
        db_table = 'finance_budgets'
        ordering = ['period', 'category_id']
        unique_together = [['period', 'category']]
