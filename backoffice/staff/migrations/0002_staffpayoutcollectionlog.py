# Generated manually

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('finance', '0001_initial'),
        ('staff', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='StaffPayoutCollectionLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('direction', models.CharField(choices=[('payable', 'Payable'), ('receivable', 'Receivable')], default='payable', max_length=20)),
                ('currency_code', models.CharField(max_length=3)),
                ('amount_minor', models.BigIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('range_start', models.DateField()),
                ('range_end', models.DateField()),
                ('note', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('staff_profile', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payout_logs', to='staff.staffprofile')),
                ('finance_transaction', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='staff_payouts', to='finance.transaction')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='staff_payout_logs', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'staff_payout_collection_logs',
                'ordering': ['-range_start', '-id'],
                'indexes': [models.Index(fields=['staff_profile', 'range_start'], name='staff_payouts_profile_idx')],
            },
        ),
    ]
