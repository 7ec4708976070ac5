"""
Test suite for the staff module
Tests: staff profile creation rules, filters and updates
"""
from django.test import TestCase, override_settings
from rest_framework import status
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.core.models import AuditLog
from backoffice.staff.models import StaffProfile, StaffPayoutCollectionLog


class StaffProfileAPITests(TestCase):
    """Test staff profile endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(is_staff=True)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.guide = TestDataFactory.create_user(username='guide', email='guide@example.com',
                                                 first_name='Marta', last_name='Zielinska')

    def test_create_profile(self):
        """Test creating a profile returns the user details"""
        vendor = TestDataFactory.create_vendor(name='Marta payouts')
        data = {'user_id': self.guide.id, 'staff_type': ' Long_Term ', 'lives_in_accom': True,
                'finance_vendor': vendor.id}
        response = self.client.post('/api/v1/staff-profiles/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user_id'], self.guide.id)
        self.assertEqual(response.data['staff_type'], 'long_term')
        self.assertEqual(response.data['user_name'], 'Marta Zielinska')
        self.assertEqual(response.data['user_email'], 'guide@example.com')
        self.assertTrue(response.data['user_status'])
        self.assertTrue(response.data['lives_in_accom'])
        self.assertEqual(response.data['finance_vendor'], vendor.id)
        self.assertTrue(AuditLog.objects.filter(model_name='StaffProfile', object_id=str(self.guide.id)).exists())

    def test_user_id_required(self):
        """Test a missing or invalid user id is a bad request"""
        for user_id in (None, 'abc', 0, -3):
            response = self.client.post('/api/v1/staff-profiles/', {'user_id': user_id, 'staff_type': 'volunteer'},
                                        format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(response.data['error'], 'A valid user_id is required.')

    def test_invalid_staff_type(self):
        """Test only known staff types are accepted"""
        response = self.client.post('/api/v1/staff-profiles/', {'user_id': self.guide.id, 'staff_type': 'intern'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'staff_type must be one of: volunteer, long_term')

    def test_unknown_user(self):
        """Test a profile for a missing user is not found"""
        response = self.client.post('/api/v1/staff-profiles/', {'user_id': 999999, 'staff_type': 'volunteer'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'User 999999 not found')

    def test_duplicate_profile(self):
        """Test a user can only have one profile"""
        StaffProfile.objects.create(user=self.guide, staff_type='volunteer')
        response = self.client.post('/api/v1/staff-profiles/', {'user_id': self.guide.id, 'staff_type': 'volunteer'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], f'Staff profile already exists for user {self.guide.id}')

    def test_list_filters(self):
        """Test the active and staff_type filters"""
        other = TestDataFactory.create_user()
        StaffProfile.objects.create(user=self.guide, staff_type='volunteer')
        StaffProfile.objects.create(user=other, staff_type='long_term', active=False)
        response = self.client.get('/api/v1/staff-profiles/', {'active': 'true'})
        self.assertEqual([p['user_id'] for p in response.data], [self.guide.id])
        response = self.client.get('/api/v1/staff-profiles/', {'staff_type': 'long_term'})
        self.assertEqual([p['user_id'] for p in response.data], [other.id])

    def test_table_view(self):
        """Test the table envelope for profiles"""
        StaffProfile.objects.create(user=self.guide, staff_type='volunteer')
        response = self.client.get('/api/v1/staff-profiles/', {'view': 'table'})
        self.assertEqual(len(response.data[0]['data']), 1)
        columns = {c['accessorKey']: c['type'] for c in response.data[0]['columns']}
        self.assertEqual(columns['active'], 'boolean')

    def test_update_and_delete(self):
        """Test patching the staff type and removing the profile"""
        StaffProfile.objects.create(user=self.guide, staff_type='volunteer')
        response = self.client.patch(f'/api/v1/staff-profiles/{self.guide.id}/', {'staff_type': 'LONG_TERM'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['staff_type'], 'long_term')

        response = self.client.patch(f'/api/v1/staff-profiles/{self.guide.id}/', {'staff_type': 'boss'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.delete(f'/api/v1/staff-profiles/{self.guide.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(StaffProfile.objects.filter(pk=self.guide.id).exists())

    def test_missing_profile(self):
        """Test reading a profile that does not exist"""
        response = self.client.get(f'/api/v1/staff-profiles/{self.guide.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class StaffPayoutAPITests(TestCase):
    """Test monthly staff payouts and collections"""

    def setUp(self):
        self.user = TestDataFactory.create_user(is_staff=True)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.guide = TestDataFactory.create_user(username='guide', first_name='Marta', last_name='Zielinska')
        self.vendor = TestDataFactory.create_vendor(name='Marta payouts')
        self.profile = StaffProfile.objects.create(user=self.guide, staff_type='long_term', finance_vendor=self.vendor)

    def _payload(self, **overrides):
        data = {'staff_profile': self.guide.id, 'direction': 'payable', 'amount_minor': 150000,
                'range_start': '2024-02-01', 'range_end': '2024-02-29'}
        data.update(overrides)
        return data

    @override_settings(FINANCE_BASE_CURRENCY='PLN')
    def test_record_payout(self):
        """Test a payable month is recorded in the base currency by the caller"""
        response = self.client.post('/api/v1/staff-payouts/', self._payload(note='  February shifts '),
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['staff_profile'], self.guide.id)
        self.assertEqual(response.data['staff_name'], 'Marta Zielinska')
        self.assertEqual(response.data['currency_code'], 'PLN')
        self.assertEqual(response.data['note'], 'February shifts')
        self.assertEqual(response.data['created_by'], self.user.id)
        self.assertIsNone(response.data['finance_transaction'])
        self.assertTrue(AuditLog.objects.filter(model_name='StaffPayoutCollectionLog', action='create').exists())

    def test_full_month_required(self):
        """Test partial or multi-month ranges are refused"""
        for start, end in (('2024-02-02', '2024-02-29'), ('2024-02-01', '2024-02-28'), ('2024-02-01', '2024-03-31')):
            response = self.client.post('/api/v1/staff-payouts/', self._payload(range_start=start, range_end=end),
                                        format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(str(response.data['range_end'][0]), 'Payouts can only be recorded for full calendar months.')

    def test_amount_must_be_positive(self):
        """Test zero amounts are refused"""
        response = self.client.post('/api/v1/staff-payouts/', self._payload(amount_minor=0), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('amount_minor', response.data)

    def test_direction_needs_finance_link(self):
        """Test payables need a vendor link and receivables a client link"""
        response = self.client.post('/api/v1/staff-payouts/', self._payload(direction='receivable', currency_code='eur'),
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(str(response.data['staff_profile'][0]), 'This staff profile is not linked to a finance client.')

        self.profile.finance_client = TestDataFactory.create_client(name='Marta rent')
        self.profile.finance_vendor = None
        self.profile.save()
        response = self.client.post('/api/v1/staff-payouts/', self._payload(), format='json')
        self.assertEqual(str(response.data['staff_profile'][0]), 'This staff profile is not linked to a finance vendor.')
        response = self.client.post('/api/v1/staff-payouts/', self._payload(direction='receivable', currency_code='eur'),
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['currency_code'], 'EUR')

    def test_inactive_profile_rejected(self):
        """Test payouts are only recorded for active profiles"""
        self.profile.active = False
        self.profile.save()
        response = self.client.post('/api/v1/staff-payouts/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(str(response.data['staff_profile'][0]), 'Staff profile not found.')

    def test_linked_transaction(self):
        """Test an optional finance transaction can be attached"""
        account = TestDataFactory.create_account()
        tx = TestDataFactory.create_transaction(account, counterparty=self.vendor, amount_minor=150000)
        response = self.client.post('/api/v1/staff-payouts/', self._payload(finance_transaction=tx.id), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['finance_transaction'], tx.id)
        self.assertEqual(tx.staff_payouts.count(), 1)

    def test_list_filters_and_delete(self):
        """Test the month and profile filters, then deletion"""
        self.client.post('/api/v1/staff-payouts/', self._payload(), format='json')
        self.client.post('/api/v1/staff-payouts/', self._payload(range_start='2024-03-01', range_end='2024-03-31'),
                         format='json')
        response = self.client.get('/api/v1/staff-payouts/', {'month': '2024-03-15'})
        self.assertEqual([p['range_start'] for p in response.data], ['2024-03-01'])
        response = self.client.get('/api/v1/staff-payouts/', {'staff_profile': self.guide.id})
        self.assertEqual(len(response.data), 2)
        response = self.client.get('/api/v1/staff-payouts/', {'staff_profile': 'marta'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        payout_id = self.client.get('/api/v1/staff-payouts/').data[0]['id']
        response = self.client.delete(f'/api/v1/staff-payouts/{payout_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(StaffPayoutCollectionLog.objects.count(), 1)
