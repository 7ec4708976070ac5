"""
Test suite for the sales_channels module
Tests: channels, commission windows and rate lookup, channel prices, cash collections
"""
from django.core.cache import cache
from django.test import TestCase, override_settings
from rest_framework import status
from decimal import Decimal
from datetime import date
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.core.models import AuditLog
from backoffice.sales_channels.models import Channel, ChannelCommission, ChannelCashCollectionLog
from backoffice.sales_channels.services import get_effective_commission, get_commission_rate


class CommissionLookupTests(TestCase):
    """Test commission window resolution"""

    def setUp(self):
        self.channel = TestDataFactory.create_channel(name='GetYourGuide')

    def test_no_commission_is_zero(self):
        """Test a channel without commission rows costs nothing"""
        self.assertIsNone(get_effective_commission(self.channel, date(2024, 1, 1)))
        self.assertEqual(get_commission_rate(self.channel, date(2024, 1, 1)), Decimal('0'))
        self.assertEqual(get_commission_rate(None, date(2024, 1, 1)), Decimal('0'))

    def test_latest_window_wins(self):
        """Test the most recent valid_from covering the date is used"""
        TestDataFactory.create_commission(self.channel, '0.20', date(2023, 1, 1))
        TestDataFactory.create_commission(self.channel, '0.25', date(2024, 1, 1), date(2024, 12, 31))
        self.assertEqual(get_commission_rate(self.channel, date(2023, 6, 1)), Decimal('0.20'))
        self.assertEqual(get_commission_rate(self.channel, date(2024, 6, 1)), Decimal('0.25'))
        self.assertEqual(get_commission_rate(self.channel, date(2025, 2, 1)), Decimal('0.20'))

    def test_late_booking_channels(self):
        """Test only walk-in style channels accept late bookings"""
        walk_in = TestDataFactory.create_channel(name='Walk-In')
        self.assertTrue(walk_in.late_booking_allowed)
        self.assertFalse(self.channel.late_booking_allowed)


class ChannelAPITests(TestCase):
    """Test channel endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_channel_hides_credentials(self):
        """Test API credentials are accepted but never returned"""
        data = {'name': 'Viator', 'api_key': 'key-123', 'api_secret': 'secret-456'}
        response = self.client.post('/api/v1/channels/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertNotIn('api_key', response.data)
        self.assertNotIn('api_secret', response.data)
        channel = Channel.objects.get(name='Viator')
        self.assertEqual(channel.api_secret, 'secret-456')
        self.assertEqual(channel.created_by, self.user)

        response = self.client.get('/api/v1/channels/', {'view': 'table'})
        accessors = [c['accessorKey'] for c in response.data[0]['columns']]
        self.assertNotIn('api_secret', accessors)

    def test_compact_channels(self):
        """Test the compact channel list and its invalidation"""
        payment = TestDataFactory.create_payment_method(name='Card')
        channel = TestDataFactory.create_channel(name='Ecwid', payment_method=payment)
        response = self.client.get('/api/v1/channels/', {'view': 'compact'})
        self.assertEqual(response.data[0]['payment_method_name'], 'Card')
        self.assertTrue(response.data[0]['late_booking_allowed'])

        channel.name = 'Website'
        channel.save()
        response = self.client.get('/api/v1/channels/', {'view': 'compact'})
        self.assertEqual(response.data[0]['name'], 'Website')
        self.assertFalse(response.data[0]['late_booking_allowed'])

    def test_commission_rate_endpoint(self):
        """Test the rate lookup for a date"""
        channel = TestDataFactory.create_channel()
        commission = TestDataFactory.create_commission(channel, '0.15', date(2024, 1, 1))
        response = self.client.get(f'/api/v1/channels/{channel.id}/commission-rate/', {'date': '2024-03-01'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['rate']), Decimal('0.15'))
        self.assertEqual(response.data['commission_id'], commission.id)
        self.assertEqual(response.data['date'], '2024-03-01')

    def test_commission_rate_defaults_to_zero(self):
        """Test a date before any window reports a zero rate"""
        channel = TestDataFactory.create_channel()
        TestDataFactory.create_commission(channel, '0.15', date(2024, 1, 1))
        response = self.client.get(f'/api/v1/channels/{channel.id}/commission-rate/', {'date': '2023-03-01'})
        self.assertEqual(response.data['rate'], '0')
        self.assertIsNone(response.data['commission_id'])

    def test_commission_rate_bad_date(self):
        """Test an invalid date is rejected"""
        channel = TestDataFactory.create_channel()
        response = self.client.get(f'/api/v1/channels/{channel.id}/commission-rate/', {'date': '01/03/2024'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ChannelCommissionAPITests(TestCase):
    """Test commission row endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(first_name='Ola', last_name='Nowak')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.channel = TestDataFactory.create_channel()

    def test_create_commission(self):
        """Test creating a commission window records the author"""
        data = {'channel': self.channel.id, 'rate': '0.1800', 'valid_from': '2024-01-01', 'valid_to': ''}
        response = self.client.post('/api/v1/channel-commissions/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        commission = ChannelCommission.objects.get(pk=response.data['id'])
        self.assertEqual(commission.created_by, self.user)
        self.assertIsNone(commission.valid_to)

    def test_rate_above_one_rejected(self):
        """Test the rate is a fraction of gross"""
        data = {'channel': self.channel.id, 'rate': '1.5', 'valid_from': '2024-01-01'}
        response = self.client.post('/api/v1/channel-commissions/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_inverted_window_rejected(self):
        """Test valid_to before valid_from is rejected"""
        data = {'channel': self.channel.id, 'rate': '0.1', 'valid_from': '2024-02-01', 'valid_to': '2024-01-01'}
        response = self.client.post('/api/v1/channel-commissions/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filter_by_channel(self):
        """Test the ?channel= filter"""
        other = TestDataFactory.create_channel()
        TestDataFactory.create_commission(self.channel, '0.1', date(2024, 1, 1))
        TestDataFactory.create_commission(other, '0.2', date(2024, 1, 1))
        response = self.client.get('/api/v1/channel-commissions/', {'channel': self.channel.id})
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['channel'], self.channel.id)

    def test_malformed_channel_filter(self):
        """Test a non-numeric ?channel= is a 400"""
        response = self.client.get('/api/v1/channel-commissions/', {'channel': 'x'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'Invalid channel id'})
        response = self.client.get('/api/v1/channel-product-prices/', {'product': '0'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ChannelProductPriceAPITests(TestCase):
    """Test channel price endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.channel = TestDataFactory.create_channel()
        self.product = TestDataFactory.create_product()

    def test_create_and_lookup_channel_price(self):
        """Test a channel price feeds the product price lookup"""
        data = {'channel': self.channel.id, 'product': self.product.id, 'price': '75.00', 'valid_from': '2024-01-01'}
        response = self.client.post('/api/v1/channel-product-prices/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.get(f'/api/v1/products/{self.product.id}/price/',
                                   {'date': '2024-06-01', 'channel': self.channel.id})
        self.assertEqual(response.data['price'], '75.00')
        self.assertEqual(response.data['source'], 'channel_price')
        self.assertEqual(response.data['channel_id'], self.channel.id)


class ChannelCashCollectionAPITests(TestCase):
    """Test cash collections logged against cash-paid channels"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.walk_in = TestDataFactory.create_channel(
            name='Walk-In', payment_method=TestDataFactory.create_payment_method('CASH')
        )
        self.viator = TestDataFactory.create_channel(
            name='Viator', payment_method=TestDataFactory.create_payment_method('Card')
        )

    def _payload(self, **overrides):
        data = {
            'channel': self.walk_in.id,
            'amount_minor': 125000,
            'range_start': '2024-02-01',
            'range_end': '2024-02-29',
        }
        data.update(overrides)
        return data

    @override_settings(FINANCE_BASE_CURRENCY='PLN')
    def test_record_collection(self):
        """Test a collection defaults to the base currency and is audited"""
        response = self.client.post('/api/v1/channel-cash-collections/', self._payload(note='  till 2 '),
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['currency_code'], 'PLN')
        self.assertEqual(response.data['channel_name'], 'Walk-In')
        self.assertEqual(response.data['note'], 'till 2')
        collection = ChannelCashCollectionLog.objects.get(pk=response.data['id'])
        self.assertEqual(collection.created_by, self.user)
        self.assertTrue(AuditLog.objects.filter(model_name='ChannelCashCollectionLog', action='create',
                                                object_id=str(collection.id)).exists())

    def test_only_cash_channels(self):
        """Test channels paid by other methods are rejected"""
        response = self.client.post('/api/v1/channel-cash-collections/', self._payload(channel=self.viator.id),
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(str(response.data['channel'][0]), 'This channel is not configured for cash payments')
        no_method = TestDataFactory.create_channel(name='Ecwid')
        response = self.client.post('/api/v1/channel-cash-collections/', self._payload(channel=no_method.id),
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_full_month_and_positive_amount(self):
        """Test partial months and non-positive amounts are rejected"""
        response = self.client.post('/api/v1/channel-cash-collections/', self._payload(range_end='2024-02-28'),
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(str(response.data['range_end'][0]), 'Collections can only be recorded for full calendar months')
        response = self.client.post('/api/v1/channel-cash-collections/', self._payload(amount_minor=0),
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('amount_minor', response.data)

    def test_list_filters_and_delete(self):
        """Test the channel and month filters, then delete"""
        feb = ChannelCashCollectionLog.objects.create(channel=self.walk_in, currency_code='EUR',
                                                      amount_minor=5000, range_start=date(2024, 2, 1),
                                                      range_end=date(2024, 2, 29))
        ChannelCashCollectionLog.objects.create(channel=self.walk_in, currency_code='PLN', amount_minor=7000,
                                                range_start=date(2024, 3, 1), range_end=date(2024, 3, 31))

        response = self.client.get('/api/v1/channel-cash-collections/',
                                   {'channel': self.walk_in.id, 'month': '2024-02-15'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c['id'] for c in response.data], [feb.id])
        response = self.client.get('/api/v1/channel-cash-collections/', {'channel': 'walk-in'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.delete(f'/api/v1/channel-cash-collections/{feb.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(ChannelCashCollectionLog.objects.count(), 1)
