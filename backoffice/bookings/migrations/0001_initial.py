# Generated manually

import django.core.validators
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models

PLATFORM_CHOICES = [('fareharbor', 'FareHarbor'), ('ecwid', 'Ecwid'), ('viator', 'Viator'), ('getyourguide', 'GetYourGuide'), ('freetour', 'FreeTour'), ('xperiencepoland', 'XperiencePoland'), ('airbnb', 'Airbnb'), ('manual', 'Manual'), ('unknown', 'Unknown')]
STATUS_CHOICES = [('pending', 'Pending'), ('confirmed', 'Confirmed'), ('amended', 'Amended'), ('cancelled', 'Cancelled'), ('completed', 'Completed'), ('no_show', 'No Show'), ('rebooked', 'Rebooked'), ('unknown', 'Unknown')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        ('sales_channels', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Guest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('first_name', models.CharField(blank=True, max_length=120)),
                ('last_name', models.CharField(blank=True, max_length=120)),
                ('email', models.EmailField(blank=True, max_length=254, null=True)),
                ('phone', models.CharField(blank=True, max_length=40, null=True)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'guests',
                'ordering': ['last_name', 'first_name', 'id'],
            },
        ),
        migrations.CreateModel(
            name='Booking',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('platform', models.CharField(choices=PLATFORM_CHOICES, default='manual', max_length=30)),
                ('platform_booking_id', models.CharField(max_length=120)),
                ('platform_order_id', models.CharField(blank=True, max_length=120, null=True)),
                ('status', models.CharField(choices=STATUS_CHOICES, default='pending', max_length=20)),
                ('payment_status', models.CharField(choices=[('unknown', 'Unknown'), ('unpaid', 'Unpaid'), ('deposit', 'Deposit'), ('partial', 'Partial'), ('paid', 'Paid'), ('refunded', 'Refunded')], default='unknown', max_length=20)),
                ('payment_method', models.CharField(blank=True, max_length=60, null=True)),
                ('experience_date', models.DateField(blank=True, null=True)),
                ('experience_start_at', models.DateTimeField(blank=True, null=True)),
                ('experience_end_at', models.DateTimeField(blank=True, null=True)),
                ('product_name', models.CharField(blank=True, max_length=255, null=True)),
                ('product_variant', models.CharField(blank=True, max_length=255, null=True)),
                ('guest_first_name', models.CharField(blank=True, max_length=120, null=True)),
                ('guest_last_name', models.CharField(blank=True, max_length=120, null=True)),
                ('guest_email', models.EmailField(blank=True, max_length=254, null=True)),
                ('guest_phone', models.CharField(blank=True, max_length=40, null=True)),
                ('pickup_location', models.CharField(blank=True, max_length=255, null=True)),
                ('hotel_name', models.CharField(blank=True, max_length=255, null=True)),
                ('party_size_total', models.PositiveIntegerField(blank=True, null=True)),
                ('party_size_adults', models.PositiveIntegerField(blank=True, null=True)),
                ('party_size_children', models.PositiveIntegerField(blank=True, null=True)),
                ('currency', models.CharField(default='PLN', max_length=3)),
                ('base_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('addons_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('discount_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('price_gross', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('price_net', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('commission_amount', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('commission_rate', models.DecimalField(blank=True, decimal_places=4, max_digits=6, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('addons_snapshot', models.JSONField(blank=True, default=dict)),
                ('notes', models.TextField(blank=True, null=True)),
                ('cancelled_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('channel', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='bookings', to='sales_channels.channel')),
                ('guest', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='bookings', to='bookings.guest')),
                ('product', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='bookings', to='catalog.product')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_bookings', to=settings.AUTH_USER_MODEL)),
                ('updated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='updated_bookings', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'bookings',
                'ordering': ['experience_date', 'experience_start_at', 'id'],
                'unique_together': {('platform', 'platform_booking_id')},
                'indexes': [models.Index(fields=['experience_date'], name='bookings_experience_date_idx'), models.Index(fields=['status'], name='bookings_status_idx')],
            },
        ),
        migrations.CreateModel(
            name='BookingEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('event_type', models.CharField(choices=[('created', 'Created'), ('amended', 'Amended'), ('cancelled', 'Cancelled'), ('replayed', 'Replayed'), ('note', 'Note')], max_length=20)),
                ('platform', models.CharField(choices=PLATFORM_CHOICES, default='manual', max_length=30)),
                ('status_after', models.CharField(blank=True, choices=STATUS_CHOICES, max_length=20, null=True)),
                ('payload', models.JSONField(blank=True, default=dict)),
                ('occurred_at', models.DateTimeField()),
                ('processed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('booking', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='events', to='bookings.booking')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='booking_events', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'booking_events',
                'ordering': ['-occurred_at', '-id'],
            },
        ),
    ]
