"""
Test suite for the core module
Tests: authentication, user administration, permissions, audit logs, table envelope
"""
from io import StringIO
from django.contrib.auth.models import Group
from django.core.management import call_command
from django.test import TestCase
from rest_framework import status
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.core.models import AuditLog, User
from backoffice.core.permissions import is_finance_user, is_finance_manager
from backoffice.core.utils import create_audit_log, parse_bool, parse_date, parse_id, effective_on
from backoffice.core.tables import table_response
from backoffice.sales_channels.models import Channel, ChannelCommission
from backoffice.sales_channels.serializers import ChannelSerializer
from datetime import date


class AuthTests(TestCase):
    """Test JWT login, refresh and the current user endpoint"""

    def setUp(self):
        self.user = TestDataFactory.create_user(username='alice', password='testpass123', groups=['Finance'])
        self.client = AuthenticatedAPIClient()

    def test_login_returns_tokens(self):
        """Test logging in with valid credentials"""
        response = self.client.post('/api/v1/auth/login/', {'username': 'alice', 'password': 'testpass123'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_login_rejects_wrong_password(self):
        """Test logging in with a wrong password"""
        response = self.client.post('/api/v1/auth/login/', {'username': 'alice', 'password': 'nope'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_login_rejects_inactive_user(self):
        """Test that disabled accounts cannot log in"""
        self.user.is_active = False
        self.user.save()
        response = self.client.post('/api/v1/auth/login/', {'username': 'alice', 'password': 'testpass123'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_token(self):
        """Test exchanging a refresh token for a new access token"""
        login = self.client.post('/api/v1/auth/login/', {'username': 'alice', 'password': 'testpass123'},
                                 format='json')
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': login.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_me_reports_access_flags(self):
        """Test the current user payload carries groups and finance flags"""
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], 'alice')
        self.assertEqual(response.data['groups'], ['Finance'])
        self.assertTrue(response.data['can_access_finance'])
        self.assertFalse(response.data['can_manage_finance'])
        self.assertFalse(response.data['is_admin'])

    def test_me_requires_authentication(self):
        """Test anonymous requests are rejected"""
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class UserAPITests(TestCase):
    """Test user administration endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(is_staff=True)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_create_user(self):
        """Test creating a user with matching passwords"""
        data = {
            'username': 'newguide',
            'email': 'guide@test.com',
            'password': 'Str0ng-Passw0rd!',
            'password_confirm': 'Str0ng-Passw0rd!',
            'first_name': 'New',
            'last_name': 'Guide',
        }
        response = self.client.post('/api/v1/users/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['full_name'], 'New Guide')
        self.assertNotIn('password', response.data)
        self.assertTrue(User.objects.get(username='newguide').check_password('Str0ng-Passw0rd!'))
        self.assertTrue(AuditLog.objects.filter(model_name='User', action='create').exists())

    def test_create_user_password_mismatch(self):
        """Test password confirmation must match"""
        data = {
            'username': 'mismatch',
            'password': 'Str0ng-Passw0rd!',
            'password_confirm': 'Different-Passw0rd!',
        }
        response = self.client.post('/api/v1/users/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data)

    def test_list_users_search(self):
        """Test searching users by name"""
        TestDataFactory.create_user(username='zofia_guide', first_name='Zofia')
        response = self.client.get('/api/v1/users/', {'search': 'zofia'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([u['username'] for u in response.data], ['zofia_guide'])

    def test_list_users_table_view(self):
        """Test the table envelope for users"""
        response = self.client.get('/api/v1/users/', {'view': 'table'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        columns = {c['accessorKey']: c['type'] for c in response.data[0]['columns']}
        self.assertEqual(columns['is_active'], 'boolean')
        self.assertEqual(columns['created_at'], 'date')
        self.assertEqual(columns['username'], 'text')
        self.assertNotIn('password', columns)

    def test_cannot_delete_self(self):
        """Test an admin cannot delete their own account"""
        response = self.client.delete(f'/api/v1/users/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_user(self):
        """Test deleting another user"""
        other = TestDataFactory.create_user()
        response = self.client.delete(f'/api/v1/users/{other.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(User.objects.filter(pk=other.id).exists())

    def test_non_admin_cannot_list_users(self):
        """Test user administration needs staff rights"""
        regular = TestDataFactory.create_user()
        self.client.authenticate_user(regular)
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class UserTypeAPITests(TestCase):
    """Test user type endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_regular_user_can_list_but_not_create(self):
        """Test writes on user types need staff rights"""
        TestDataFactory.create_user_type(name='Guide')
        response = self.client.get('/api/v1/user-types/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        response = self.client.post('/api/v1/user-types/', {'name': 'Manager', 'slug': 'manager'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_staff_creates_user_type(self):
        """Test staff can create user types"""
        self.client.authenticate_user(TestDataFactory.create_user(is_staff=True))
        response = self.client.post('/api/v1/user-types/', {'name': 'Manager', 'slug': 'manager'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)


class PermissionTests(TestCase):
    """Test finance access helpers"""

    def test_finance_user(self):
        """Test staff and finance group members can use finance"""
        self.assertTrue(is_finance_user(TestDataFactory.create_user(is_staff=True)))
        self.assertTrue(is_finance_user(TestDataFactory.create_user(groups=['Finance'])))
        self.assertFalse(is_finance_user(TestDataFactory.create_user()))

    def test_finance_manager(self):
        """Test only superusers and Admin/FinanceManager members decide requests"""
        self.assertTrue(is_finance_manager(TestDataFactory.create_user(is_superuser=True)))
        self.assertTrue(is_finance_manager(TestDataFactory.create_user(groups=['FinanceManager'])))
        self.assertTrue(is_finance_manager(TestDataFactory.create_user(groups=['Admin'])))
        self.assertFalse(is_finance_manager(TestDataFactory.create_user(groups=['Finance'])))
        self.assertFalse(is_finance_manager(TestDataFactory.create_user(is_staff=True)))


class UtilsTests(TestCase):
    """Test shared helpers"""

    def test_parse_bool(self):
        """Test query flag parsing"""
        self.assertTrue(parse_bool('true'))
        self.assertTrue(parse_bool('1'))
        self.assertFalse(parse_bool('false'))
        self.assertIsNone(parse_bool(None))
        self.assertIsNone(parse_bool('maybe'))

    def test_parse_date(self):
        """Test date parsing accepts ISO datetimes and rejects garbage"""
        self.assertEqual(parse_date('2024-05-01'), date(2024, 5, 1))
        self.assertEqual(parse_date('2024-05-01T10:00:00Z'), date(2024, 5, 1))
        self.assertIsNone(parse_date(''))
        with self.assertRaises(ValueError):
            parse_date('01/05/2024')

    def test_parse_id(self):
        """Test id parsing accepts positive integers only"""
        self.assertEqual(parse_id(' 12 '), 12)
        self.assertIsNone(parse_id(''))
        for value in ('abc', '0', '-3', '1.5'):
            with self.assertRaises(ValueError):
                parse_id(value)

    def test_effective_on_prefers_latest_window(self):
        """Test the most recently started window wins"""
        channel = TestDataFactory.create_channel()
        older = TestDataFactory.create_commission(channel, '0.10', date(2024, 1, 1))
        newer = TestDataFactory.create_commission(channel, '0.15', date(2024, 3, 1))
        TestDataFactory.create_commission(channel, '0.20', date(2024, 1, 1), valid_to=date(2024, 1, 31))

        queryset = ChannelCommission.objects.filter(channel=channel)
        self.assertEqual(effective_on(queryset, date(2024, 4, 1)).first(), newer)
        self.assertEqual(effective_on(queryset, date(2024, 2, 15)).first(), older)
        self.assertIsNone(effective_on(queryset, date(2023, 12, 31)).first())

    def test_create_audit_log(self):
        """Test audit entries store the acting user and changes"""
        user = TestDataFactory.create_user()
        log = create_audit_log(action='update', model_name='Product', object_id=7, user=user,
                               object_name='Pub crawl', changes={'price': {'old': '10', 'new': '12'}})
        self.assertIsNotNone(log)
        self.assertEqual(log.user, user)
        self.assertEqual(log.object_id, '7')
        self.assertEqual(log.changes['price']['new'], '12')

    def test_table_response_columns(self):
        """Test column typing, hidden write-only fields and appended columns"""
        TestDataFactory.create_channel(name='Viator')
        serializer = ChannelSerializer(Channel.objects.all(), many=True)
        response = table_response(serializer, Channel,
                                  extra_columns=[{'header': 'Orders', 'accessorKey': 'orders', 'type': 'text'}])
        columns = {c['accessorKey']: c for c in response.data[0]['columns']}
        self.assertEqual(columns['name']['header'], 'Name')
        self.assertEqual(columns['late_booking_allowed']['type'], 'boolean')
        self.assertEqual(columns['created_at']['type'], 'date')
        self.assertNotIn('api_secret', columns)
        self.assertEqual(response.data[0]['columns'][-1]['accessorKey'], 'orders')
        self.assertEqual(response.data[0]['data'][0]['name'], 'Viator')


class AuditLogAPITests(TestCase):
    """Test audit log listing"""

    def setUp(self):
        self.admin = TestDataFactory.create_user(is_staff=True)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_filter_by_model_name(self):
        """Test filtering audit logs by model"""
        create_audit_log(action='create', model_name='Product', object_id=1, user=self.admin)
        create_audit_log(action='create', model_name='Channel', object_id=1, user=self.admin)
        response = self.client.get('/api/v1/audit-logs/', {'model_name': 'Channel'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['model_name'], 'Channel')

    def test_filter_by_date(self):
        """Test date filters are validated and applied"""
        create_audit_log(action='create', model_name='Product', object_id=1, user=self.admin)
        response = self.client.get('/api/v1/audit-logs/', {'date_from': 'yesterday'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'Invalid date format. Use YYYY-MM-DD'})
        response = self.client.get('/api/v1/audit-logs/', {'date_to': '2000-01-01'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [])
        response = self.client.get('/api/v1/audit-logs/', {'date_from': '2000-01-01'})
        self.assertEqual(len(response.data), 1)


class CreateUserGroupsCommandTests(TestCase):
    """Test the create_user_groups management command"""

    def test_creates_groups_idempotently(self):
        """Test groups are created once and finance permissions attached"""
        out = StringIO()
        call_command('create_user_groups', stdout=out)
        call_command('create_user_groups', stdout=out)
        self.assertEqual(
            sorted(Group.objects.values_list('name', flat=True)),
            ['Admin', 'Finance', 'FinanceManager']
        )
        finance_labels = set(
            Group.objects.get(name='Finance').permissions.values_list('content_type__app_label', flat=True)
        )
        self.assertEqual(finance_labels, {'finance'})
        self.assertIn('3 groups already existed', out.getvalue())

    def test_finance_group_grants_finance_access(self):
        """Test a user in the created Finance group passes the finance check"""
        call_command('create_user_groups', stdout=StringIO())
        user = TestDataFactory.create_user()
        user.groups.add(Group.objects.get(name='Finance'))
        self.assertTrue(is_finance_user(user))
        self.assertFalse(is_finance_manager(user))
