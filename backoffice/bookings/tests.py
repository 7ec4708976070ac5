"""
Test suite for the bookings module
Tests: pricing, unified orders, manifest grouping, cancellation and history
"""
from django.test import TestCase
from rest_framework import status
from decimal import Decimal
from datetime import date, datetime, timezone as dt_timezone
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.bookings.models import Booking, BookingEvent
from backoffice.catalog.models import ProductAlias
from backoffice.bookings.services import apply_pricing, derive_product_id, build_customer_name, normalize_extras


class PricingTests(TestCase):
    """Test derived money fields"""

    def setUp(self):
        self.channel = TestDataFactory.create_channel()
        TestDataFactory.create_commission(self.channel, '0.20', date(2024, 1, 1))

    def test_gross_commission_and_net(self):
        """Test gross is base + add-ons - discount and commission follows the channel rate"""
        booking = Booking(platform='manual', platform_booking_id='X1', channel=self.channel,
                          experience_date=date(2024, 7, 1), base_amount=Decimal('100.00'),
                          addons_amount=Decimal('20.00'), discount_amount=Decimal('10.00'))
        apply_pricing(booking)
        self.assertEqual(booking.price_gross, Decimal('110.00'))
        self.assertEqual(booking.commission_rate, Decimal('0.20'))
        self.assertEqual(booking.commission_amount, Decimal('22.00'))
        self.assertEqual(booking.price_net, Decimal('88.00'))

    def test_no_channel_no_commission(self):
        """Test bookings without a channel keep the full gross"""
        booking = Booking(platform='manual', platform_booking_id='X2', experience_date=date(2024, 7, 1),
                          base_amount=Decimal('50.00'))
        apply_pricing(booking)
        self.assertEqual(booking.commission_amount, Decimal('0.00'))
        self.assertEqual(booking.price_net, Decimal('50.00'))

    def test_half_up_rounding(self):
        """Test commission rounds half up to the cent"""
        channel = TestDataFactory.create_channel()
        TestDataFactory.create_commission(channel, '0.125', date(2024, 1, 1))
        booking = Booking(platform='manual', platform_booking_id='X3', channel=channel,
                          experience_date=date(2024, 7, 1), base_amount=Decimal('0.20'))
        apply_pricing(booking)
        self.assertEqual(booking.commission_amount, Decimal('0.03'))
        self.assertEqual(booking.price_net, Decimal('0.17'))

    def test_party_size_total_from_parts(self):
        """Test a missing total is summed from adults and children"""
        booking = Booking(platform='manual', platform_booking_id='X4', party_size_adults=3, party_size_children=2)
        apply_pricing(booking)
        self.assertEqual(booking.party_size_total, 5)


class OrderProjectionTests(TestCase):
    """Test the unified order helpers"""

    def test_derive_product_id(self):
        """Test product key falls back to a slug of the name, then the platform"""
        product = TestDataFactory.create_product()
        self.assertEqual(derive_product_id(Booking(product=product)), str(product.id))
        self.assertEqual(derive_product_id(Booking(product_name='  Boat  Party ')), 'boat-party')
        self.assertEqual(derive_product_id(Booking(id=7, platform='viator')), 'viator-7')

    def test_customer_name_fallbacks(self):
        """Test name, then email, then phone, then booking number"""
        self.assertEqual(build_customer_name(Booking(guest_first_name='Anna', guest_last_name='Kowalska')),
                         'Anna Kowalska')
        self.assertEqual(build_customer_name(Booking(guest_email='a@example.com')), 'a@example.com')
        self.assertEqual(build_customer_name(Booking(guest_phone='+48 600')), '+48 600')
        self.assertEqual(build_customer_name(Booking(id=12)), 'Booking #12')

    def test_normalize_extras(self):
        """Test extras are coerced to integers with zero defaults"""
        self.assertEqual(normalize_extras({'extras': {'tshirts': '2', 'photos': 'many'}}),
                         {'tshirts': 2, 'cocktails': 0, 'photos': 0})
        self.assertEqual(normalize_extras(None), {'tshirts': 0, 'cocktails': 0, 'photos': 0})


class BookingAPITests(TestCase):
    """Test booking endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.product = TestDataFactory.create_product(name='Pub Crawl')
        self.channel = TestDataFactory.create_channel(name='Viator')
        TestDataFactory.create_commission(self.channel, '0.20', date(2024, 1, 1))

    def test_create_booking_prices_and_records_event(self):
        """Test creation fills prices and writes a created event"""
        data = {
            'platform': 'viator',
            'platform_booking_id': 'V-100',
            'channel': self.channel.id,
            'product': self.product.id,
            'experience_date': '2024-07-01',
            'base_amount': '100.00',
            'addons_amount': '20.00',
            'discount_amount': '10.00',
            'currency': 'pln',
        }
        response = self.client.post('/api/v1/bookings/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['price_gross'], '110.00')
        self.assertEqual(response.data['commission_amount'], '22.00')
        self.assertEqual(response.data['price_net'], '88.00')
        self.assertEqual(response.data['currency'], 'PLN')
        booking = Booking.objects.get(pk=response.data['id'])
        self.assertEqual(booking.events.get().event_type, 'created')

    def test_explicit_gross_kept(self):
        """Test a supplied gross is not recomputed"""
        data = {
            'platform': 'manual',
            'platform_booking_id': 'M-1',
            'channel': self.channel.id,
            'experience_date': '2024-07-01',
            'base_amount': '100.00',
            'price_gross': '95.00',
        }
        response = self.client.post('/api/v1/bookings/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['price_gross'], '95.00')
        self.assertEqual(response.data['commission_amount'], '19.00')

    def test_product_name_resolved_through_alias(self):
        """Test a booking with only a product label is linked through an active alias"""
        ProductAlias.objects.create(product=self.product, label='krawl through krakow')
        ProductAlias.objects.create(product=None, label='krakow', priority=1)
        data = {
            'platform': 'fareharbor',
            'platform_booking_id': 'FH-7',
            'experience_date': '2024-07-01',
            'product_name': 'Rebooked: Krawl Through  KRAKOW Pub Crawl',
        }
        response = self.client.post('/api/v1/bookings/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['product'], self.product.id)
        self.assertEqual(response.data['product_display_name'], 'Pub Crawl')

        data.update(platform_booking_id='FH-8', product_name='Food Tour')
        response = self.client.post('/api/v1/bookings/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['product'])

    def test_duplicate_platform_booking_id(self):
        """Test platform booking ids are unique per platform"""
        TestDataFactory.create_booking(platform='viator', platform_booking_id='V-1')
        data = {'platform': 'viator', 'platform_booking_id': 'V-1', 'experience_date': '2024-07-01'}
        response = self.client.post('/api/v1/bookings/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_end_before_start_rejected(self):
        """Test the experience window must not be inverted"""
        data = {
            'platform': 'manual',
            'platform_booking_id': 'M-2',
            'experience_start_at': '2024-07-01T20:00:00Z',
            'experience_end_at': '2024-07-01T18:00:00Z',
        }
        response = self.client.post('/api/v1/bookings/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('experience_end_at', response.data)

    def test_changing_channel_refreshes_commission(self):
        """Test moving a booking to another channel re-reads the rate"""
        booking = TestDataFactory.create_booking(product=self.product, channel=self.channel,
                                                 experience_date=date(2024, 7, 1))
        self.assertEqual(booking.commission_amount, Decimal('20.00'))
        cheaper = TestDataFactory.create_channel()
        TestDataFactory.create_commission(cheaper, '0.10', date(2024, 1, 1))

        response = self.client.patch(f'/api/v1/bookings/{booking.id}/', {'channel': cheaper.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['commission_amount'], '10.00')
        self.assertEqual(response.data['price_net'], '90.00')
        self.assertTrue(booking.events.filter(event_type='amended').exists())

    def test_unified_orders(self):
        """Test the list returns unified orders for the date, cancelled ones included"""
        TestDataFactory.create_booking(
            product=self.product, channel=self.channel, experience_date=date(2024, 7, 1),
            platform='viator', party_size_total=None, party_size_adults=3, party_size_children=1,
            guest_first_name='Anna', experience_start_at=datetime(2024, 7, 1, 18, 0, tzinfo=dt_timezone.utc),
            addons_snapshot={'extras': {'tshirts': 2}}
        )
        TestDataFactory.create_booking(product=self.product, experience_date=date(2024, 7, 1), platform='viator',
                                       status='cancelled')
        TestDataFactory.create_booking(product=self.product, experience_date=date(2024, 7, 2))

        response = self.client.get('/api/v1/bookings/', {'date': '2024-07-01'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 2)
        self.assertEqual(response.data['products'], [
            {'id': str(self.product.id), 'name': 'Pub Crawl'}
        ])
        orders = {o['status']: o for o in response.data['orders']}
        order = orders['confirmed']
        self.assertEqual(order['timeslot'], '20:00')
        self.assertEqual(order['quantity'], 4)
        self.assertEqual(order['men'], 3)
        self.assertEqual(order['women'], 1)
        self.assertEqual(order['customer_name'], 'Anna')
        self.assertEqual(order['extras'], {'tshirts': 2, 'cocktails': 0, 'photos': 0})
        self.assertEqual(orders['cancelled']['timeslot'], '--:--')

    def test_pickup_window_and_filters(self):
        """Test the pickup bounds and platform filter"""
        TestDataFactory.create_booking(experience_date=date(2024, 7, 1), platform='viator')
        TestDataFactory.create_booking(experience_date=date(2024, 7, 3), platform='ecwid')
        TestDataFactory.create_booking(experience_date=date(2024, 7, 9), platform='viator')
        response = self.client.get('/api/v1/bookings/', {'pickup_from': '2024-07-01', 'pickup_to': '2024-07-05'})
        self.assertEqual(response.data['total'], 2)
        response = self.client.get('/api/v1/bookings/', {'pickup_from': '2024-07-01', 'pickup_to': '2024-07-05',
                                                         'platform': 'ecwid'})
        self.assertEqual(response.data['total'], 1)

    def test_invalid_date(self):
        """Test a malformed date is rejected"""
        response = self.client.get('/api/v1/bookings/', {'date': '2024-13-45'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_table_view(self):
        """Test raw rows in the table envelope"""
        TestDataFactory.create_booking(experience_date=date(2024, 7, 1))
        response = self.client.get('/api/v1/bookings/', {'view': 'table'})
        self.assertEqual(len(response.data[0]['data']), 1)
        columns = {c['accessorKey']: c['type'] for c in response.data[0]['columns']}
        self.assertEqual(columns['experience_date'], 'date')

    def test_manifest_groups_and_excludes_cancelled(self):
        """Test manifest groups by product and timeslot and skips cancelled bookings"""
        start = datetime(2024, 7, 1, 18, 0, tzinfo=dt_timezone.utc)
        TestDataFactory.create_booking(product=self.product, experience_date=date(2024, 7, 1), platform='viator',
                                       party_size_total=None, party_size_adults=2, party_size_children=1,
                                       experience_start_at=start, addons_snapshot={'extras': {'cocktails': 1}})
        TestDataFactory.create_booking(product=self.product, experience_date=date(2024, 7, 1), platform='ecwid',
                                       party_size_total=2, experience_start_at=start)
        TestDataFactory.create_booking(product=self.product, experience_date=date(2024, 7, 1),
                                       experience_start_at=start, status='cancelled')

        response = self.client.get('/api/v1/bookings/manifest/', {'date': '2024-07-01'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['orders']), 2)
        self.assertEqual(len(response.data['manifest']), 1)
        group = response.data['manifest'][0]
        self.assertEqual(group['time'], '20:00')
        self.assertEqual(group['total_people'], 5)
        self.assertEqual(group['extras']['cocktails'], 1)
        summary = response.data['summary']
        self.assertEqual(summary['total_orders'], 2)
        self.assertEqual(summary['total_people'], 5)
        self.assertEqual([entry['platform'] for entry in summary['platform_breakdown']], ['ecwid', 'viator'])

    def test_manifest_time_filter(self):
        """Test narrowing the manifest to a timeslot"""
        TestDataFactory.create_booking(experience_date=date(2024, 7, 1),
                                       experience_start_at=datetime(2024, 7, 1, 18, 0, tzinfo=dt_timezone.utc))
        TestDataFactory.create_booking(experience_date=date(2024, 7, 1),
                                       experience_start_at=datetime(2024, 7, 1, 19, 0, tzinfo=dt_timezone.utc))
        response = self.client.get('/api/v1/bookings/manifest/', {'date': '2024-07-01', 'time': '21:00'})
        self.assertEqual(len(response.data['orders']), 1)
        self.assertEqual(response.data['filters'], {'product_id': None, 'time': '21:00'})

    def test_cancel_booking(self):
        """Test cancelling records the time and an event; a second cancel fails"""
        booking = TestDataFactory.create_booking()
        response = self.client.post(f'/api/v1/bookings/{booking.id}/cancel/', {'reason': 'Weather'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'cancelled')
        self.assertIsNotNone(response.data['cancelled_at'])
        event = BookingEvent.objects.get(booking=booking, event_type='cancelled')
        self.assertEqual(event.payload, {'reason': 'Weather'})

        response = self.client.post(f'/api/v1/bookings/{booking.id}/cancel/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_booking_notes(self):
        """Test adding a note to the booking history"""
        booking = TestDataFactory.create_booking()
        response = self.client.post(f'/api/v1/bookings/{booking.id}/events/', {'note': 'Called guest'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['event_type'], 'note')
        response = self.client.post(f'/api/v1/bookings/{booking.id}/events/', {'note': ' '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get(f'/api/v1/bookings/{booking.id}/events/')
        self.assertEqual(len(response.data), 1)
