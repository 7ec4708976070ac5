# Generated manually

import django.core.validators
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models

COMPENSATION_TYPES = [('open_bar', 'Open bar'), ('commission', 'Commission')]
DIRECTIONS = [('payable', 'Payable'), ('receivable', 'Receivable')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('finance', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Venue',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255, unique=True)),
                ('is_active', models.BooleanField(default=True)),
                ('sort_order', models.PositiveIntegerField(default=0)),
                ('allows_open_bar', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('finance_client', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='venues', to='finance.client')),
                ('finance_vendor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='venues', to='finance.vendor')),
            ],
            options={
                'db_table': 'venues',
                'ordering': ['-is_active', 'sort_order', 'name'],
            },
        ),
        migrations.CreateModel(
            name='VenueCompensationTerm',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('compensation_type', models.CharField(choices=COMPENSATION_TYPES, max_length=20)),
                ('direction', models.CharField(choices=DIRECTIONS, max_length=20)),
                ('rate_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('rate_unit', models.CharField(choices=[('per_person', 'Per person'), ('flat', 'Flat')], default='per_person', max_length=20)),
                ('currency_code', models.CharField(default='USD', max_length=3)),
                ('valid_from', models.DateField()),
                ('valid_to', models.DateField(blank=True, null=True)),
                ('is_active', models.BooleanField(default=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('venue', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='compensation_terms', to='venues.venue')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_venue_terms', to=settings.AUTH_USER_MODEL)),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='updated_venue_terms', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'venue_compensation_terms',
                'ordering': ['venue_id', 'compensation_type', '-valid_from', '-id'],
                'indexes': [models.Index(fields=['venue', 'compensation_type', 'valid_from'], name='venue_terms_window_idx')],
            },
        ),
        migrations.CreateModel(
            name='NightReport',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('activity_date', models.DateField()),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('submitted', 'Submitted')], default='draft', max_length=20)),
                ('notes', models.TextField(blank=True, null=True)),
                ('submitted_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('leader', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='night_reports', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'night_reports',
                'ordering': ['-activity_date', '-id'],
            },
        ),
        migrations.CreateModel(
            name='NightReportVenue',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('order_index', models.PositiveIntegerField(default=1)),
                ('venue_name', models.CharField(max_length=255)),
                ('total_people', models.PositiveIntegerField(default=0)),
                ('is_open_bar', models.BooleanField(default=False)),
                ('compensation_type', models.CharField(blank=True, choices=COMPENSATION_TYPES, max_length=20, null=True)),
                ('direction', models.CharField(blank=True, choices=DIRECTIONS, max_length=20, null=True)),
                ('rate_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('rate_unit', models.CharField(blank=True, max_length=20, null=True)),
                ('payout_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('currency_code', models.CharField(blank=True, max_length=3, null=True)),
                ('report', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='venues', to='venues.nightreport')),
                ('venue', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='report_lines', to='venues.venue')),
                ('compensation_term', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='report_lines', to='venues.venuecompensationterm')),
            ],
            options={
                'db_table': 'night_report_venues',
                'ordering': ['report_id', 'order_index', 'id'],
            },
        ),
        migrations.CreateModel(
            name='VenueCompensationCollectionLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('direction', models.CharField(choices=DIRECTIONS, max_length=20)),
                ('currency_code', models.CharField(default='USD', max_length=3)),
                ('amount_minor', models.BigIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('range_start', models.DateField()),
                ('range_end', models.DateField()),
                ('note', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('venue', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='collection_logs', to='venues.venue')),
                ('finance_transaction', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='venue_collections', to='finance.transaction')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='venue_collection_logs', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'venue_compensation_collection_logs',
                'ordering': ['-range_start', '-id'],
                'indexes': [models.Index(fields=['range_start', 'range_end'], name='venue_collections_range_idx')],
            },
        ),
    ]
