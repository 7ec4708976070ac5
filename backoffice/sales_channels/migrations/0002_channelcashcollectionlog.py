# Generated manually

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('finance', '0001_initial'),
        ('sales_channels', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='ChannelCashCollectionLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('currency_code', models.CharField(max_length=3)),
                ('amount_minor', models.BigIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('range_start', models.DateField()),
                ('range_end', models.DateField()),
                ('note', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('channel', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='cash_collections', to='sales_channels.channel')),
                ('finance_transaction', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='channel_cash_collections', to='finance.transaction')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='channel_cash_collections', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'channel_cash_collection_logs',
                'ordering': ['-range_start', '-id'],
                'indexes': [models.Index(fields=['channel', 'range_start', 'range_end'], name='channel_cash_window_idx')],
            },
        ),
    ]
