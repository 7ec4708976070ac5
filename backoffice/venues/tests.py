"""
Test suite for the venues module
Tests: venue directory, compensation terms, night report submission and the numbers summary
"""
from django.test import TestCase
from rest_framework import status
from rest_framework.exceptions import ValidationError
from decimal import Decimal
from datetime import date
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.venues.models import NightReport, VenueCompensationCollectionLog
from backoffice.venues.services import resolve_summary_range, venue_numbers_summary


class SummaryRangeTests(TestCase):
    """Test summary window resolution"""

    def test_this_month_default(self):
        """Test unknown periods fall back to the current month"""
        self.assertEqual(resolve_summary_range('fortnight', today=date(2024, 2, 10)),
                         ('this_month', date(2024, 2, 1), date(2024, 2, 29)))

    def test_last_month(self):
        """Test the previous calendar month"""
        self.assertEqual(resolve_summary_range('last_month', today=date(2024, 1, 10)),
                         ('last_month', date(2023, 12, 1), date(2023, 12, 31)))

    def test_explicit_bound_overrides(self):
        """Test a given date overrides the matching bound"""
        self.assertEqual(resolve_summary_range('this_month', start_param='2024-02-15', today=date(2024, 2, 10)),
                         ('this_month', date(2024, 2, 15), date(2024, 2, 29)))

    def test_custom_needs_both_dates(self):
        """Test custom windows require both bounds in order"""
        with self.assertRaises(ValidationError):
            resolve_summary_range('custom', start_param='2024-02-01', today=date(2024, 2, 10))
        with self.assertRaises(ValidationError):
            resolve_summary_range('custom', '2024-02-10', '2024-02-01', today=date(2024, 2, 10))
        with self.assertRaises(ValidationError):
            resolve_summary_range('this_month', start_param='02/01/2024', today=date(2024, 2, 10))


class VenueAPITests(TestCase):
    """Test venue directory and term endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_and_filter_venues(self):
        """Test venue creation and the open bar filter"""
        response = self.client.post('/api/v1/venues/', {'name': 'Cosmo Club', 'allows_open_bar': True},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        TestDataFactory.create_venue(name='Quiet Bar')
        response = self.client.get('/api/v1/venues/', {'open_bar': 'true'})
        self.assertEqual([v['name'] for v in response.data], ['Cosmo Club'])

    def test_inactive_venues_listed_last(self):
        """Test active venues come first, then by sort order"""
        TestDataFactory.create_venue(name='Closed', sort_order=0, is_active=False)
        TestDataFactory.create_venue(name='Second', sort_order=2)
        TestDataFactory.create_venue(name='First', sort_order=1)
        response = self.client.get('/api/v1/venues/')
        self.assertEqual([v['name'] for v in response.data], ['First', 'Second', 'Closed'])

    def test_create_term(self):
        """Test a term records its author and upper-cases the currency"""
        venue = TestDataFactory.create_venue()
        data = {'venue': venue.id, 'compensation_type': 'commission', 'direction': 'receivable',
                'rate_amount': '4.50', 'rate_unit': 'per_person', 'currency_code': 'pln',
                'valid_from': '2024-01-01', 'valid_to': ''}
        response = self.client.post('/api/v1/venue-compensation-terms/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['currency_code'], 'PLN')
        self.assertEqual(response.data['created_by'], self.user.id)
        self.assertIsNone(response.data['valid_to'])

        data['valid_to'] = '2023-12-31'
        response = self.client.post('/api/v1/venue-compensation-terms/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_malformed_venue_filter(self):
        """Test non-numeric venue and leader filters are a 400"""
        for url in ('/api/v1/venue-compensation-terms/', '/api/v1/venue-collections/'):
            response = self.client.get(url, {'venue': 'abc'})
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(response.data, {'error': 'Invalid venue id'})
        response = self.client.get('/api/v1/night-reports/', {'leader': 'me'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class NightReportAPITests(TestCase):
    """Test night reports and their submission"""

    def setUp(self):
        self.user = TestDataFactory.create_user(first_name='Kuba', last_name='Lis')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.club = TestDataFactory.create_venue(name='Cosmo Club', allows_open_bar=True)
        self.bar = TestDataFactory.create_venue(name='Vodka Bar')
        TestDataFactory.create_compensation_term(self.bar, 'commission', rate_amount=Decimal('5.00'))
        TestDataFactory.create_compensation_term(self.club, 'open_bar', rate_amount=Decimal('150.00'),
                                                 rate_unit='flat')
        TestDataFactory.create_compensation_term(self.club, 'commission', rate_amount=Decimal('2.50'))

    def test_create_report_with_lines(self):
        """Test a draft is stored with its lines and led by the caller"""
        data = {
            'activity_date': '2024-05-10',
            'venues': [
                {'venue': self.bar.id, 'total_people': 20},
                {'venue': self.club.id, 'total_people': 25, 'is_open_bar': True},
            ],
        }
        response = self.client.post('/api/v1/night-reports/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['leader'], self.user.id)
        self.assertEqual(response.data['leader_name'], 'Kuba Lis')
        self.assertEqual(response.data['status'], 'draft')
        self.assertEqual(response.data['total_people'], 45)
        self.assertEqual([line['venue_name'] for line in response.data['venues']], ['Vodka Bar', 'Cosmo Club'])
        self.assertEqual([line['order_index'] for line in response.data['venues']], [1, 2])

    def test_line_needs_venue_or_name(self):
        """Test a line without venue or name is rejected"""
        data = {'activity_date': '2024-05-10', 'venues': [{'total_people': 3}]}
        response = self.client.post('/api/v1/night-reports/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_submit_prices_lines(self):
        """Test submission prices per-person and flat terms and locks the report"""
        report = TestDataFactory.create_night_report(self.user, date(2024, 5, 10), lines=[
            (self.bar, 20, False),
            (self.club, 25, True),
            (self.club, 10, False),
        ])
        response = self.client.post(f'/api/v1/night-reports/{report.id}/submit/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'submitted')
        self.assertIsNotNone(response.data['submitted_at'])
        bar_line, open_bar_line, club_line = response.data['venues']
        self.assertEqual(bar_line['payout_amount'], '100.00')
        self.assertEqual(bar_line['direction'], 'receivable')
        self.assertEqual(bar_line['compensation_type'], 'commission')
        self.assertEqual(open_bar_line['payout_amount'], '150.00')
        self.assertEqual(open_bar_line['direction'], 'payable')
        self.assertEqual(open_bar_line['rate_unit'], 'flat')
        self.assertEqual(club_line['payout_amount'], '25.00')
        self.assertEqual(club_line['currency_code'], 'USD')

        response = self.client.post(f'/api/v1/night-reports/{report.id}/submit/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Report is already submitted')

        response = self.client.patch(f'/api/v1/night-reports/{report.id}/', {'notes': 'late'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Submitted reports cannot be edited')

    def test_missing_term(self):
        """Test a venue without an active term blocks submission"""
        venue = TestDataFactory.create_venue(name='New Pub')
        report = TestDataFactory.create_night_report(self.user, date(2024, 5, 10), lines=[(venue, 5, False)])
        response = self.client.post(f'/api/v1/night-reports/{report.id}/submit/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'],
                         'No active commission term is configured for New Pub on 2024-05-10')
        report.refresh_from_db()
        self.assertEqual(report.status, 'draft')

    def test_term_outside_window(self):
        """Test a term whose dates miss the report date is called out"""
        venue = TestDataFactory.create_venue(name='Old Pub')
        TestDataFactory.create_compensation_term(venue, 'commission', valid_from=date(2020, 1, 1),
                                                 valid_to=date(2020, 12, 31))
        report = TestDataFactory.create_night_report(self.user, date(2024, 5, 10), lines=[(venue, 5, False)])
        response = self.client.post(f'/api/v1/night-reports/{report.id}/submit/', {}, format='json')
        self.assertEqual(response.data['error'],
                         'A commission term exists for Old Pub but its date range does not cover 2024-05-10')

    def test_open_bar_not_allowed(self):
        """Test only eligible venues may host the open bar"""
        report = TestDataFactory.create_night_report(self.user, date(2024, 5, 10), lines=[(self.bar, 30, True)])
        response = self.client.post(f'/api/v1/night-reports/{report.id}/submit/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Venue "Vodka Bar" is not eligible to host the open bar')

    def test_unknown_venue_line(self):
        """Test lines typed by name only cannot be priced"""
        report = NightReport.objects.create(leader=self.user, activity_date=date(2024, 5, 10))
        report.venues.create(order_index=1, venue_name='Ghost Bar', total_people=4)
        response = self.client.post(f'/api/v1/night-reports/{report.id}/submit/', {}, format='json')
        self.assertEqual(response.data['error'], 'Venue "Ghost Bar" is not part of the directory')

    def test_named_line_matches_directory(self):
        """Test a line typed by name is matched to the directory ignoring case and spaces"""
        report = NightReport.objects.create(leader=self.user, activity_date=date(2024, 5, 10))
        line = report.venues.create(order_index=1, venue_name=' vodka bar ', total_people=4)
        response = self.client.post(f'/api/v1/night-reports/{report.id}/submit/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['venues'][0]['venue'], self.bar.id)
        self.assertEqual(response.data['venues'][0]['payout_amount'], '20.00')
        line.refresh_from_db()
        self.assertEqual(line.venue, self.bar)
        self.assertEqual(line.direction, 'receivable')

    def test_list_filters(self):
        """Test status and date filters"""
        TestDataFactory.create_night_report(self.user, date(2024, 5, 1))
        TestDataFactory.create_night_report(self.user, date(2024, 5, 20))
        response = self.client.get('/api/v1/night-reports/', {'date_from': '2024-05-10'})
        self.assertEqual([r['activity_date'] for r in response.data], ['2024-05-20'])
        response = self.client.get('/api/v1/night-reports/', {'status': 'submitted'})
        self.assertEqual(response.data, [])


class CollectionAndSummaryTests(TestCase):
    """Test collection logs and the venue numbers summary"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.club = TestDataFactory.create_venue(name='Cosmo Club', allows_open_bar=True)
        self.bar = TestDataFactory.create_venue(name='Vodka Bar')
        TestDataFactory.create_compensation_term(self.bar, 'commission', rate_amount=Decimal('5.00'))
        TestDataFactory.create_compensation_term(self.club, 'open_bar', rate_amount=Decimal('150.00'),
                                                 rate_unit='flat')

    def _submit(self, activity_date, lines):
        report = TestDataFactory.create_night_report(self.user, activity_date, lines=lines)
        response = self.client.post(f'/api/v1/night-reports/{report.id}/submit/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_collection_validation(self):
        """Test collections need a positive amount and an ordered range"""
        data = {'venue': self.bar.id, 'direction': 'receivable', 'currency_code': 'usd', 'amount_minor': 0,
                'range_start': '2024-05-01', 'range_end': '2024-05-31'}
        response = self.client.post('/api/v1/venue-collections/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        data.update(amount_minor=4000, range_end='2024-04-30')
        response = self.client.post('/api/v1/venue-collections/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        data['range_end'] = '2024-05-31'
        response = self.client.post('/api/v1/venue-collections/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['currency_code'], 'USD')
        self.assertEqual(response.data['created_by'], self.user.id)

    def test_summary(self):
        """Test per-venue figures, collections, daily rows and currency totals"""
        self._submit(date(2024, 5, 10), [(self.bar, 20, False), (self.club, 25, True)])
        self._submit(date(2024, 5, 11), [(self.bar, 10, False)])
        self._submit(date(2024, 6, 2), [(self.bar, 99, False)])
        TestDataFactory.create_night_report(self.user, date(2024, 5, 12), lines=[(self.bar, 50, False)])
        VenueCompensationCollectionLog.objects.create(
            venue=self.bar, direction='receivable', currency_code='USD', amount_minor=4000,
            range_start=date(2024, 5, 1), range_end=date(2024, 5, 31)
        )

        summary = venue_numbers_summary('custom', '2024-05-01', '2024-05-31')
        self.assertEqual(summary['range'], {'start_date': '2024-05-01', 'end_date': '2024-05-31'})
        bar, club = summary['venues']
        self.assertEqual(bar['venue_name'], 'Vodka Bar')
        self.assertEqual(bar['receivable'], 150.0)
        self.assertEqual(bar['receivable_collected'], 40.0)
        self.assertEqual(bar['receivable_outstanding'], 110.0)
        self.assertEqual(bar['total_people'], 30)
        self.assertEqual([d['date'] for d in bar['daily']], ['2024-05-10', '2024-05-11'])
        self.assertEqual(club['payable'], 150.0)
        self.assertEqual(club['net'], -150.0)
        self.assertEqual(summary['totals_by_currency'], [{
            'currency': 'USD',
            'receivable': 150.0,
            'receivable_collected': 40.0,
            'receivable_outstanding': 110.0,
            'payable': 150.0,
            'payable_collected': 0.0,
            'payable_outstanding': 150.0,
            'net': 0.0,
        }])

    def test_summary_endpoint_validation(self):
        """Test the custom period needs both dates"""
        response = self.client.get('/api/v1/venue-numbers/summary/', {'period': 'custom', 'start_date': '2024-05-01'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Provide start_date and end_date when using the custom period')

        response = self.client.get('/api/v1/venue-numbers/summary/', {'period': 'last_month'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['period'], 'last_month')

    def test_summary_merges_venue_aliases(self):
        """Test lines naming one venue differently share a row and its collections"""
        report = NightReport.objects.create(leader=self.user, activity_date=date(2024, 5, 10))
        report.venues.create(order_index=1, venue=self.bar, venue_name='Vodka Bar', total_people=10)
        report.venues.create(order_index=2, venue=self.bar, venue_name='Vodka Bar (late)', total_people=6)
        response = self.client.post(f'/api/v1/night-reports/{report.id}/submit/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        VenueCompensationCollectionLog.objects.create(
            venue=self.bar, direction='receivable', currency_code='USD', amount_minor=5000,
            range_start=date(2024, 5, 1), range_end=date(2024, 5, 31)
        )

        summary = venue_numbers_summary('custom', '2024-05-01', '2024-05-31')
        self.assertEqual(len(summary['venues']), 1)
        row = summary['venues'][0]
        self.assertEqual(row['venue_name'], 'Vodka Bar')
        self.assertEqual(row['receivable'], 80.0)
        self.assertEqual(row['receivable_collected'], 50.0)
        self.assertEqual(row['receivable_outstanding'], 30.0)
        self.assertEqual(row['total_people'], 16)
        self.assertEqual(summary['totals_by_currency'][0]['receivable_outstanding'], 30.0)
