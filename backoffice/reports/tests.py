"""
Test suite for the reports module
Tests: channel numbers, cash collections and the bookings summary
"""
from django.test import TestCase
from rest_framework import status
from decimal import Decimal
from datetime import date
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.reports.services import channel_numbers, bookings_summary, month_window, default_summary_window
from backoffice.sales_channels.models import ChannelCashCollectionLog


class WindowTests(TestCase):
    """Test default report windows"""

    def test_month_window(self):
        """Test the current calendar month"""
        self.assertEqual(month_window(date(2024, 2, 10)), (date(2024, 2, 1), date(2024, 2, 29)))

    def test_default_summary_window(self):
        """Test the last thirty days including today"""
        self.assertEqual(default_summary_window(date(2024, 3, 30)), (date(2024, 3, 1), date(2024, 3, 30)))


class ChannelNumbersTests(TestCase):
    """Test per-channel booking money"""

    def setUp(self):
        self.viator = TestDataFactory.create_channel(name='Viator')
        self.airbnb = TestDataFactory.create_channel(name='Airbnb')
        TestDataFactory.create_commission(self.viator, '0.20', date(2024, 1, 1))

    def test_channel_numbers(self):
        """Test grouping, cancelled exclusion and the unassigned bucket"""
        TestDataFactory.create_booking(channel=self.viator, experience_date=date(2024, 5, 1))
        TestDataFactory.create_booking(channel=self.viator, experience_date=date(2024, 5, 2), party_size_total=3)
        TestDataFactory.create_booking(channel=self.viator, experience_date=date(2024, 5, 3), status='cancelled')
        TestDataFactory.create_booking(channel=self.airbnb, experience_date=date(2024, 5, 4),
                                       base_amount=Decimal('80.00'))
        TestDataFactory.create_booking(experience_date=date(2024, 5, 5), base_amount=Decimal('50.00'))
        TestDataFactory.create_booking(channel=self.viator, experience_date=date(2024, 6, 1))

        result = channel_numbers(date(2024, 5, 1), date(2024, 5, 31))
        self.assertEqual([c['channel_name'] for c in result['channels']], ['Airbnb', 'Viator', 'No channel'])
        viator = result['channels'][1]
        self.assertEqual(viator['bookings'], 2)
        self.assertEqual(viator['people'], 5)
        self.assertEqual(viator['gross'], 200.0)
        self.assertEqual(viator['commission'], 40.0)
        self.assertEqual(viator['net'], 160.0)
        self.assertIsNone(result['channels'][2]['channel_id'])
        self.assertEqual(result['totals'], {
            'bookings': 4, 'people': 9, 'gross': 330.0, 'commission': 40.0, 'net': 290.0
        })

    def test_empty_window(self):
        """Test a window without bookings"""
        result = channel_numbers(date(2024, 5, 1), date(2024, 5, 31))
        self.assertEqual(result['cash_collections'], {'channels': [], 'totals': []})
        self.assertEqual(result['channels'], [])
        self.assertEqual(result['totals']['gross'], 0.0)

    def test_cash_collections(self):
        """Test cash due per channel and currency against collections logged for the window"""
        walk_in = TestDataFactory.create_channel(name='Walk-In',
                                                 payment_method=TestDataFactory.create_payment_method('Cash'))
        TestDataFactory.create_booking(channel=walk_in, experience_date=date(2024, 5, 1))
        TestDataFactory.create_booking(channel=walk_in, experience_date=date(2024, 5, 9))
        TestDataFactory.create_booking(channel=walk_in, experience_date=date(2024, 5, 10), status='cancelled')
        TestDataFactory.create_booking(channel=walk_in, experience_date=date(2024, 5, 11),
                                       base_amount=Decimal('40.00'), currency='EUR')
        TestDataFactory.create_booking(channel=self.viator, experience_date=date(2024, 5, 1))
        ChannelCashCollectionLog.objects.create(channel=walk_in, currency_code='PLN', amount_minor=15000,
                                                range_start=date(2024, 5, 1), range_end=date(2024, 5, 31))
        ChannelCashCollectionLog.objects.create(channel=walk_in, currency_code='PLN', amount_minor=9900,
                                                range_start=date(2024, 4, 1), range_end=date(2024, 4, 30))

        cash = channel_numbers(date(2024, 5, 1), date(2024, 5, 31))['cash_collections']
        self.assertEqual(cash['channels'], [
            {'channel_id': walk_in.id, 'channel_name': 'Walk-In', 'currency': 'EUR',
             'due': 40.0, 'collected': 0.0, 'outstanding': 40.0},
            {'channel_id': walk_in.id, 'channel_name': 'Walk-In', 'currency': 'PLN',
             'due': 200.0, 'collected': 150.0, 'outstanding': 50.0},
        ])
        self.assertEqual([t['currency'] for t in cash['totals']], ['EUR', 'PLN'])

        ChannelCashCollectionLog.objects.create(channel=walk_in, currency_code='PLN', amount_minor=10000,
                                                range_start=date(2024, 5, 1), range_end=date(2024, 5, 31))
        cash = channel_numbers(date(2024, 5, 1), date(2024, 5, 31))['cash_collections']
        self.assertEqual(cash['totals'][1], {'currency': 'PLN', 'due': 200.0, 'collected': 250.0, 'outstanding': 0.0})


class BookingsSummaryTests(TestCase):
    """Test booking volumes per day and platform"""

    def test_bookings_summary(self):
        """Test day, platform and status breakdowns"""
        TestDataFactory.create_booking(experience_date=date(2024, 5, 1), platform='viator', party_size_total=4)
        TestDataFactory.create_booking(experience_date=date(2024, 5, 1), platform='ecwid', party_size_total=2)
        TestDataFactory.create_booking(experience_date=date(2024, 5, 2), platform='viator', party_size_total=1,
                                       status='cancelled')
        TestDataFactory.create_booking(experience_date=date(2024, 5, 9), platform='viator')

        result = bookings_summary(date(2024, 5, 1), date(2024, 5, 2))
        self.assertEqual(result['total_bookings'], 3)
        self.assertEqual(result['total_people'], 7)
        self.assertEqual(result['by_day'], [
            {'date': '2024-05-01', 'bookings': 2, 'people': 6},
            {'date': '2024-05-02', 'bookings': 1, 'people': 1},
        ])
        self.assertEqual(result['by_platform'], [
            {'platform': 'ecwid', 'bookings': 1, 'people': 2},
            {'platform': 'viator', 'bookings': 2, 'people': 5},
        ])
        self.assertEqual(result['status_breakdown'], {'cancelled': 1, 'confirmed': 2})


class ReportAPITests(TestCase):
    """Test report endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_channel_numbers_endpoint(self):
        """Test explicit dates and validation"""
        channel = TestDataFactory.create_channel(name='Walk-In')
        TestDataFactory.create_booking(channel=channel, experience_date=date(2024, 5, 1))
        response = self.client.get('/api/v1/reports/channel-numbers/',
                                   {'start_date': '2024-05-01', 'end_date': '2024-05-31'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['channels'][0]['channel_name'], 'Walk-In')

        response = self.client.get('/api/v1/reports/channel-numbers/',
                                   {'start_date': '2024-05-31', 'end_date': '2024-05-01'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get('/api/v1/reports/channel-numbers/', {'start_date': 'May'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_bookings_summary_default_window(self):
        """Test the default window covers the last thirty days"""
        response = self.client.get('/api/v1/reports/bookings-summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        start = date.fromisoformat(response.data['range']['date_from'])
        end = date.fromisoformat(response.data['range']['date_to'])
        self.assertEqual((end - start).days, 29)

    def test_requires_authentication(self):
        """Test anonymous callers are rejected"""
        self.client.logout()
        response = self.client.get('/api/v1/reports/bookings-summary/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
