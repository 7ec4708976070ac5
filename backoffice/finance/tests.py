"""
Test suite for the finance module
Tests: transactions, transfers, balances, recurring rules, management requests and the summary report
"""
from io import StringIO
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from rest_framework import status
from rest_framework.exceptions import ValidationError
from decimal import Decimal
from datetime import date, datetime, timezone as dt_timezone
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.core.models import AuditLog
from backoffice.core.utils import store_today
from backoffice.finance.models import Transaction, RecurringRule, ManagementRequest, Vendor, Budget
from backoffice.finance import services
from backoffice.finance.reports import build_summary, resolve_window


class BaseAmountTests(TestCase):
    """Test base currency conversion"""

    def test_rounds_half_up(self):
        """Test conversion rounds half up to a whole minor unit"""
        self.assertEqual(services.calculate_base_amount(1000, Decimal('4.3215')), 4322)
        self.assertEqual(services.calculate_base_amount(1000, '1'), 1000)

    def test_rejects_bad_rates(self):
        """Test zero, negative and non-numeric rates are refused"""
        for rate in ('0', '-1', 'abc', None):
            with self.assertRaises(ValidationError) as ctx:
                services.calculate_base_amount(1000, rate)
            self.assertEqual(ctx.exception.detail, {'error': 'Invalid fx_rate value'})


class RecurringScheduleTests(TestCase):
    """Test next run computation"""

    def test_monthly_keeps_start_day(self):
        """Test month-end rules clamp without drifting"""
        rule = RecurringRule(frequency='monthly', interval=1, start_date=date(2024, 1, 31))
        self.assertEqual(services.compute_next_run(rule, date(2024, 1, 31)), date(2024, 2, 29))
        self.assertEqual(services.compute_next_run(rule, date(2024, 2, 29)), date(2024, 3, 31))

    def test_by_month_day_wins(self):
        """Test an explicit day of month overrides the start day"""
        rule = RecurringRule(frequency='monthly', interval=2, by_month_day=15, start_date=date(2024, 1, 31))
        self.assertEqual(services.compute_next_run(rule, date(2024, 1, 31)), date(2024, 3, 15))

    def test_other_cadences(self):
        """Test daily, weekly, quarterly and yearly steps"""
        start = date(2024, 2, 29)
        self.assertEqual(services.compute_next_run(RecurringRule(frequency='daily', interval=3, start_date=start),
                                                   start), date(2024, 3, 3))
        self.assertEqual(services.compute_next_run(RecurringRule(frequency='weekly', interval=2, start_date=start),
                                                   start), date(2024, 3, 14))
        self.assertEqual(services.compute_next_run(RecurringRule(frequency='quarterly', interval=1, start_date=start),
                                                   start), date(2024, 5, 29))
        self.assertEqual(services.compute_next_run(RecurringRule(frequency='yearly', interval=1, start_date=start),
                                                   start), date(2025, 2, 28))

    def test_rule_today_uses_rule_timezone(self):
        """Test 'today' is evaluated in the rule's timezone"""
        now = datetime(2024, 3, 1, 23, 30, tzinfo=dt_timezone.utc)
        self.assertEqual(services.rule_today(RecurringRule(timezone='UTC'), now), date(2024, 3, 1))
        self.assertEqual(services.rule_today(RecurringRule(timezone='Europe/Warsaw'), now), date(2024, 3, 2))


class RecurringExecutionTests(TestCase):
    """Test materialising recurring rules"""

    def setUp(self):
        self.user = TestDataFactory.create_user(groups=['Finance'])
        self.account = TestDataFactory.create_account(currency='PLN')
        self.vendor = TestDataFactory.create_vendor(name='Landlord')
        self.now = datetime(2024, 2, 1, 12, 0, tzinfo=dt_timezone.utc)

    def _rule(self, **kwargs):
        template = {
            'kind': 'expense',
            'account': self.account.id,
            'currency': 'PLN',
            'amount_minor': 250000,
            'counterparty_id': self.vendor.id,
            'description': 'Office rent',
        }
        defaults = {
            'frequency': 'monthly',
            'interval': 1,
            'start_date': date(2024, 1, 31),
            'timezone': 'UTC',
            'template_json': template,
            'created_by': self.user,
        }
        defaults.update(kwargs)
        rule = RecurringRule.objects.create(**defaults)
        if rule.next_run_date is None:
            rule.next_run_date = rule.start_date
            rule.save()
        return rule

    def test_creates_one_occurrence_and_advances(self):
        """Test a due rule creates its transaction and moves to the next month"""
        rule = self._rule()
        result = services.execute_recurring_rules(now=self.now)
        self.assertEqual(result['processed'], 1)
        self.assertEqual(result['created_transactions'], 1)
        self.assertEqual(len(result['transaction_ids']), 1)
        tx = Transaction.objects.get(pk=result['transaction_ids'][0])
        self.assertEqual(tx.date, date(2024, 1, 31))
        self.assertEqual(tx.counterparty_type, 'vendor')
        self.assertEqual(tx.status, 'planned')
        self.assertEqual(tx.meta['recurring_rule_id'], rule.id)
        self.assertEqual(tx.created_by, self.user)
        rule.refresh_from_db()
        self.assertEqual(rule.next_run_date, date(2024, 2, 29))
        self.assertIsNotNone(rule.last_run_at)
        log = AuditLog.objects.get(model_name='finance_recurring_rule', action='execute')
        self.assertEqual(log.object_id, str(rule.id))
        self.assertEqual(log.metadata, {'run_date': '2024-01-31', 'transaction_id': tx.id})
        self.assertEqual(log.user, self.user)

        result = services.execute_recurring_rules(now=self.now)
        self.assertEqual(result['processed'], 0)

    def test_existing_occurrence_is_not_duplicated(self):
        """Test an occurrence already on the ledger is skipped and the rule advanced"""
        rule = self._rule()
        TestDataFactory.create_transaction(self.account, counterparty=self.vendor, tx_date=date(2024, 1, 31),
                                           meta={'recurring_rule_id': rule.id})
        result = services.execute_recurring_rules(now=self.now)
        self.assertEqual(result['skipped'], 1)
        self.assertEqual(result['created_transactions'], 0)
        self.assertEqual(Transaction.objects.count(), 1)
        rule.refresh_from_db()
        self.assertEqual(rule.next_run_date, date(2024, 2, 29))

    def test_past_end_date_is_skipped(self):
        """Test a run date after the end date creates nothing"""
        rule = self._rule(start_date=date(2024, 1, 1), end_date=date(2024, 1, 15), next_run_date=date(2024, 1, 20))
        result = services.execute_recurring_rules(now=self.now)
        self.assertEqual(result['skipped'], 1)
        self.assertFalse(Transaction.objects.exists())
        rule.refresh_from_db()
        self.assertEqual(rule.next_run_date, date(2024, 1, 20))

    def test_paused_and_future_rules_ignored(self):
        """Test only active, due rules are processed"""
        self._rule(status='paused')
        self._rule(start_date=date(2024, 3, 1))
        result = services.execute_recurring_rules(now=self.now)
        self.assertEqual(result['processed'], 0)

    def test_invalid_template_reports_error(self):
        """Test a template that breaks a ledger rule is reported, not raised"""
        rule = self._rule()
        rule.template_json = {'kind': 'expense', 'account': self.account.id, 'currency': 'PLN', 'amount_minor': 100}
        rule.save()
        result = services.execute_recurring_rules(now=self.now)
        self.assertEqual(result['created_transactions'], 0)
        self.assertEqual(len(result['errors']), 1)
        self.assertEqual(result['errors'][0]['rule_id'], rule.id)
        self.assertEqual(result['errors'][0]['error']['error'], 'Expense transactions require a vendor counterparty')
        rule.refresh_from_db()
        self.assertEqual(rule.next_run_date, date(2024, 1, 31))

    def test_management_command(self):
        """Test the cron command runs due rules and honours --dry-run"""
        self._rule(start_date=date(2020, 1, 1), frequency='yearly')
        out = StringIO()
        call_command('execute_recurring_rules', '--dry-run', stdout=out)
        self.assertIn('Dry run: 1 rule(s) due', out.getvalue())
        self.assertFalse(Transaction.objects.exists())

        out = StringIO()
        call_command('execute_recurring_rules', '--user', self.user.username, stdout=out)
        self.assertIn('created 1 transaction(s)', out.getvalue())
        self.assertEqual(Transaction.objects.count(), 1)

    def test_management_command_unknown_user(self):
        """Test an unknown --user is refused"""
        with self.assertRaises(CommandError):
            call_command('execute_recurring_rules', '--user', 'nobody', stdout=StringIO())


class FinanceAPITestCase(TestCase):
    """Shared fixtures for finance endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(groups=['Finance'])
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.account = TestDataFactory.create_account(name='Main bank', currency='PLN', opening_balance_minor=100000)
        self.vendor = TestDataFactory.create_vendor(name='Printer')
        self.customer = TestDataFactory.create_client(name='Hostel')


class FinancePermissionTests(FinanceAPITestCase):
    """Test who may use the finance endpoints"""

    def test_plain_user_forbidden(self):
        """Test users outside the finance groups are refused"""
        outsider = TestDataFactory.create_user()
        self.client.authenticate_user(outsider)
        response = self.client.get('/api/v1/finance/accounts/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_staff_allowed(self):
        """Test staff accounts may use finance"""
        self.client.authenticate_user(TestDataFactory.create_user(is_staff=True))
        response = self.client.get('/api/v1/finance/accounts/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_anonymous_rejected(self):
        """Test unauthenticated calls are rejected"""
        self.client.logout()
        response = self.client.get('/api/v1/finance/accounts/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class ReferenceDataAPITests(FinanceAPITestCase):
    """Test accounts, categories and counterparties"""

    def test_account_currency_upper_cased(self):
        """Test account currencies are stored upper case"""
        data = {'name': 'Cash box', 'type': 'cash', 'currency': 'eur'}
        response = self.client.post('/api/v1/finance/accounts/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['currency'], 'EUR')
        self.assertTrue(AuditLog.objects.filter(model_name='finance_account', action='create').exists())

    def test_account_with_transactions_cannot_be_deleted(self):
        """Test accounts on the ledger are protected"""
        TestDataFactory.create_transaction(self.account, counterparty=self.vendor)
        response = self.client.delete(f'/api/v1/finance/accounts/{self.account.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_category_cannot_parent_itself(self):
        """Test a category cannot be its own parent"""
        category = TestDataFactory.create_category(name='Rent')
        response = self.client.patch(f'/api/v1/finance/categories/{category.id}/', {'parent': category.id},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_category_filters_and_search(self):
        """Test the kind filter and the name search"""
        TestDataFactory.create_category(name='Rent', kind='expense')
        TestDataFactory.create_category(name='Tours', kind='income')
        response = self.client.get('/api/v1/finance/categories/', {'kind': 'income'})
        self.assertEqual([c['name'] for c in response.data], ['Tours'])
        response = self.client.get('/api/v1/finance/categories/search/', {'q': 'ren'})
        self.assertEqual([c['name'] for c in response.data], ['Rent'])

    def test_vendor_default_category(self):
        """Test vendors expose their default category name"""
        category = TestDataFactory.create_category(name='Printing')
        data = {'name': 'Copy shop', 'default_category': category.id}
        response = self.client.post('/api/v1/finance/vendors/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['default_category_name'], 'Printing')

    def test_counterparty_on_ledger_cannot_be_deleted(self):
        """Test vendors and clients referenced by transactions stay, unused ones go"""
        TestDataFactory.create_transaction(self.account, counterparty=self.vendor)
        TestDataFactory.create_transaction(self.account, kind='income', counterparty=self.customer)
        response = self.client.delete(f'/api/v1/finance/vendors/{self.vendor.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'Vendor is still in use'})
        response = self.client.delete(f'/api/v1/finance/clients/{self.customer.id}/')
        self.assertEqual(response.data, {'error': 'Client is still in use'})
        self.assertTrue(Vendor.objects.filter(pk=self.vendor.id).exists())

        unused = TestDataFactory.create_vendor(name='Florist')
        response = self.client.delete(f'/api/v1/finance/vendors/{unused.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)


class TransactionAPITests(FinanceAPITestCase):
    """Test ledger endpoints"""

    def _post(self, **overrides):
        data = {
            'kind': 'expense',
            'date': '2024-05-10',
            'account': self.account.id,
            'currency': 'pln',
            'amount_minor': 12345,
            'counterparty_id': self.vendor.id,
        }
        data.update(overrides)
        return self.client.post('/api/v1/finance/transactions/', data, format='json')

    def test_create_expense(self):
        """Test an expense is tied to its vendor with a computed base amount"""
        response = self._post(fx_rate='1.5')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['counterparty_type'], 'vendor')
        self.assertEqual(response.data['counterparty_name'], 'Printer')
        self.assertEqual(response.data['currency'], 'PLN')
        self.assertEqual(response.data['base_amount_minor'], 18518)
        self.assertEqual(response.data['status'], 'planned')
        self.assertEqual(response.data['created_by'], self.user.id)

    def test_expense_requires_vendor(self):
        """Test expenses without a vendor are refused"""
        response = self._post(counterparty_id=None)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Expense transactions require a vendor counterparty')

    def test_income_requires_existing_client(self):
        """Test income must reference a client that exists"""
        response = self._post(kind='income', counterparty_id=self.vendor.id + 999)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self._post(kind='income', counterparty_id=self.customer.id)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['counterparty_type'], 'client')

    def test_refund_counterparty_optional(self):
        """Test refunds may have no counterparty but a named one must exist"""
        response = self._post(kind='refund', counterparty_id=None)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['counterparty_type'], 'none')
        response = self._post(kind='refund', counterparty_type='client', counterparty_id=self.customer.id + 999)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_amount_and_fx_validation(self):
        """Test non-positive amounts and rates are refused"""
        response = self._post(amount_minor=0)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('amount_minor', response.data)
        response = self._post(fx_rate='0')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(str(response.data['fx_rate'][0]), 'Invalid fx_rate value')

    def test_approved_status_records_approver(self):
        """Test creating an approved transaction records who approved it"""
        response = self._post(status='approved')
        self.assertEqual(response.data['approved_by'], self.user.id)

    def test_paid_transaction_locks_amount(self):
        """Test amount, currency and rate cannot change once paid"""
        tx = TestDataFactory.create_transaction(self.account, counterparty=self.vendor, status='paid')
        response = self.client.patch(f'/api/v1/finance/transactions/{tx.id}/', {'amount_minor': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Cannot modify amount, currency, or fx_rate once transaction is paid')

        response = self.client.patch(f'/api/v1/finance/transactions/{tx.id}/', {'description': 'Toner'},
                                     format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['description'], 'Toner')

    def test_update_recomputes_base(self):
        """Test changing the rate recomputes the base amount"""
        tx = TestDataFactory.create_transaction(self.account, counterparty=self.vendor, status='planned',
                                                amount_minor=1000)
        response = self.client.patch(f'/api/v1/finance/transactions/{tx.id}/', {'fx_rate': '2'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['base_amount_minor'], 2000)

    def test_list_pagination_and_filters(self):
        """Test paging metadata, ordering and filters"""
        TestDataFactory.create_transaction(self.account, counterparty=self.vendor, tx_date=date(2024, 1, 1))
        TestDataFactory.create_transaction(self.account, counterparty=self.vendor, tx_date=date(2024, 2, 1))
        TestDataFactory.create_transaction(self.account, kind='income', counterparty=self.customer,
                                           tx_date=date(2024, 3, 1))
        response = self.client.get('/api/v1/finance/transactions/', {'limit': 2})
        self.assertEqual(response.data['meta'], {'count': 3, 'limit': 2, 'offset': 0})
        self.assertEqual([t['date'] for t in response.data['data']], ['2024-03-01', '2024-02-01'])

        response = self.client.get('/api/v1/finance/transactions/', {'kind': 'expense', 'date_from': '2024-02-01'})
        self.assertEqual(response.data['meta']['count'], 1)

    def test_list_bad_limit(self):
        """Test non-numeric paging is refused"""
        response = self.client.get('/api/v1/finance/transactions/', {'limit': 'lots'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_transfer_creates_two_legs(self):
        """Test a transfer writes linked outgoing and incoming legs; deleting one removes both"""
        savings = TestDataFactory.create_account(name='Savings', currency='PLN')
        data = {'from_account_id': self.account.id, 'to_account_id': savings.id, 'amount_minor': 5000,
                'date': '2024-05-01', 'status': 'paid'}
        response = self.client.post('/api/v1/finance/transactions/transfer/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        debit, credit = response.data['debit'], response.data['credit']
        self.assertEqual(debit['meta']['direction'], 'out')
        self.assertEqual(credit['meta']['direction'], 'in')
        self.assertEqual(debit['meta']['transfer_group_id'], credit['meta']['transfer_group_id'])
        self.assertEqual(debit['counterparty_type'], 'none')

        response = self.client.delete(f"/api/v1/finance/transactions/{debit['id']}/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Transaction.objects.filter(kind='transfer').exists())

    def test_transfer_same_account(self):
        """Test a transfer needs two different accounts"""
        data = {'from_account_id': self.account.id, 'to_account_id': self.account.id, 'amount_minor': 5000,
                'date': '2024-05-01'}
        response = self.client.post('/api/v1/finance/transactions/transfer/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Transfer accounts must be different')

    def test_account_balance(self):
        """Test settled and projected balances"""
        savings = TestDataFactory.create_account(name='Savings')
        TestDataFactory.create_transaction(self.account, kind='income', counterparty=self.customer,
                                           amount_minor=50000, status='paid')
        TestDataFactory.create_transaction(self.account, counterparty=self.vendor, amount_minor=20000, status='paid')
        TestDataFactory.create_transaction(self.account, counterparty=self.vendor, amount_minor=5000,
                                           status='planned')
        TestDataFactory.create_transaction(self.account, counterparty=self.vendor, amount_minor=9999, status='void')
        services.create_transfer({'from_account': self.account, 'to_account': savings, 'amount_minor': 10000,
                                  'date': date.today(), 'status': 'paid'}, user=self.user)

        response = self.client.get(f'/api/v1/finance/accounts/{self.account.id}/balance/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['balance_minor'], 120000)
        self.assertEqual(response.data['projected_balance_minor'], 115000)
        response = self.client.get(f'/api/v1/finance/accounts/{savings.id}/balance/')
        self.assertEqual(response.data['balance_minor'], 10000)

    def test_recurring_rule_api(self):
        """Test creating a rule defaults its next run and checks the template"""
        data = {
            'frequency': 'monthly',
            'start_date': '2024-01-15',
            'timezone': 'Europe/Warsaw',
            'template_json': {'kind': 'expense', 'account': self.account.id, 'currency': 'PLN',
                              'amount_minor': 1000, 'counterparty_id': self.vendor.id},
        }
        response = self.client.post('/api/v1/finance/recurring-rules/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['next_run_date'], '2024-01-15')
        self.assertEqual(response.data['created_by'], self.user.id)

        data['template_json'] = {'kind': 'expense'}
        response = self.client.post('/api/v1/finance/recurring-rules/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        data['template_json'] = {'kind': 'expense', 'account': 1, 'currency': 'PLN', 'amount_minor': 1}
        data['timezone'] = 'Mars/Olympus'
        response = self.client.post('/api/v1/finance/recurring-rules/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('timezone', response.data)

    def test_execute_endpoint(self):
        """Test the execute endpoint returns the run summary"""
        RecurringRule.objects.create(
            frequency='monthly', start_date=date(2020, 1, 1), next_run_date=date(2020, 1, 1),
            template_json={'kind': 'expense', 'account': self.account.id, 'currency': 'PLN',
                           'amount_minor': 1000, 'counterparty_id': self.vendor.id}
        )
        response = self.client.post('/api/v1/finance/recurring-rules/execute/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['processed'], 1)
        self.assertEqual(response.data['created_transactions'], 1)
        self.assertEqual(response.data['transaction_ids'], [Transaction.objects.get().id])
        self.assertEqual(Transaction.objects.get().created_by, self.user)


class ManagementRequestAPITests(FinanceAPITestCase):
    """Test the request and decision workflow"""

    def setUp(self):
        super().setUp()
        self.manager = TestDataFactory.create_user(groups=['FinanceManager'])
        self.manager_client = AuthenticatedAPIClient()
        self.manager_client.authenticate_user(self.manager)

    def _submit(self, **overrides):
        data = {'type': 'create', 'target_entity': 'vendor', 'payload': {'name': 'New Caterer'}}
        data.update(overrides)
        return self.client.post('/api/v1/finance/management-requests/', data, format='json')

    def test_submit_request(self):
        """Test submitting records the requester and an audit entry"""
        response = self._submit()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'open')
        self.assertEqual(response.data['requested_by'], self.user.id)
        self.assertTrue(AuditLog.objects.filter(model_name='finance_management_request', action='submit').exists())

    def test_unknown_target_rejected(self):
        """Test the target entity must be supported"""
        response = self._submit(target_entity='payroll')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_approve_applies_payload(self):
        """Test approval creates the target and stamps the manager"""
        request_id = self._submit().data['id']
        response = self.manager_client.post(f'/api/v1/finance/management-requests/{request_id}/approve/',
                                            {'decision_note': 'ok'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'approved')
        self.assertEqual(response.data['manager'], self.manager.id)
        self.assertTrue(Vendor.objects.filter(name='New Caterer').exists())

        response = self.manager_client.post(f'/api/v1/finance/management-requests/{request_id}/reject/',
                                            {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_approve_updates_existing_target(self):
        """Test approval with a target id patches that row"""
        budget = Budget.objects.create(period='2024-05', category=TestDataFactory.create_category(),
                                       amount_minor=1000, currency='PLN')
        request_id = self._submit(type='update', target_entity='budget', target_id=budget.id,
                                  payload={'amount_minor': 5000}).data['id']
        response = self.manager_client.post(f'/api/v1/finance/management-requests/{request_id}/approve/',
                                            {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        budget.refresh_from_db()
        self.assertEqual(budget.amount_minor, 5000)

    def test_invalid_payload_leaves_request_open(self):
        """Test a payload that fails validation is not approved"""
        request_id = self._submit(target_entity='transaction', payload={'kind': 'expense'}).data['id']
        response = self.manager_client.post(f'/api/v1/finance/management-requests/{request_id}/approve/',
                                            {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(ManagementRequest.objects.get(pk=request_id).status, 'open')

    def test_finance_user_cannot_decide(self):
        """Test only managers may decide"""
        request_id = self._submit().data['id']
        response = self.client.post(f'/api/v1/finance/management-requests/{request_id}/approve/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_return_edit_and_reject(self):
        """Test a returned request reopens on edit and can still be rejected"""
        request_id = self._submit().data['id']
        response = self.manager_client.post(f'/api/v1/finance/management-requests/{request_id}/return/',
                                            {'decision_note': 'Add tax id'}, format='json')
        self.assertEqual(response.data['status'], 'returned')
        self.assertEqual(response.data['decision_note'], 'Add tax id')

        response = self.manager_client.post(f'/api/v1/finance/management-requests/{request_id}/return/',
                                            {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.patch(f'/api/v1/finance/management-requests/{request_id}/',
                                     {'payload': {'name': 'New Caterer', 'tax_id': 'PL123'}}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'open')

        response = self.manager_client.post(f'/api/v1/finance/management-requests/{request_id}/reject/',
                                            {}, format='json')
        self.assertEqual(response.data['status'], 'rejected')
        response = self.client.patch(f'/api/v1/finance/management-requests/{request_id}/',
                                     {'priority': 'high'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_orders_by_priority(self):
        """Test high priority requests come first"""
        self._submit(priority='low')
        self._submit(priority='high')
        self._submit(priority='normal')
        response = self.client.get('/api/v1/finance/management-requests/')
        self.assertEqual([r['priority'] for r in response.data], ['high', 'normal', 'low'])
        response = self.client.get('/api/v1/finance/management-requests/', {'status': 'approved'})
        self.assertEqual(response.data, [])


class SummaryReportTests(FinanceAPITestCase):
    """Test the finance summary"""

    def test_window_snaps_to_months(self):
        """Test explicit and default windows cover whole months"""
        self.assertEqual(resolve_window(date(2024, 1, 10), date(2024, 2, 15)), (date(2024, 1, 1), date(2024, 2, 29)))
        self.assertEqual(resolve_window(today=date(2024, 6, 10)), (date(2024, 1, 1), date(2024, 6, 30)))
        self.assertEqual(resolve_window(), resolve_window(today=store_today()))

    def test_summary(self):
        """Test P&L, cash flow and budget variance"""
        rent = TestDataFactory.create_category(name='Rent')
        TestDataFactory.create_transaction(self.account, kind='income', counterparty=self.customer,
                                           amount_minor=100000, tx_date=date(2024, 1, 20))
        TestDataFactory.create_transaction(self.account, counterparty=self.vendor, amount_minor=30000,
                                           category=rent, tx_date=date(2024, 2, 5))
        TestDataFactory.create_transaction(self.account, counterparty=self.vendor, amount_minor=5000,
                                           tx_date=date(2024, 2, 6))
        TestDataFactory.create_transaction(self.account, counterparty=self.vendor, amount_minor=77700,
                                           status='void', tx_date=date(2024, 2, 7))
        Budget.objects.create(period='2024-02', category=rent, amount_minor=25000, currency='PLN')

        summary = build_summary(date(2024, 1, 1), date(2024, 2, 15))
        self.assertEqual(summary['period'], {'start': '2024-01-01', 'end': '2024-02-29'})
        self.assertEqual(summary['profit_and_loss']['totals'], {'income': 1000.0, 'expense': 350.0, 'net': 650.0})
        self.assertEqual([m['label'] for m in summary['profit_and_loss']['monthly']], ['Jan 2024', 'Feb 2024'])
        self.assertEqual(summary['cash_flow']['timeline'][1]['outflow'], 350.0)
        self.assertEqual([c['category_name'] for c in summary['profit_and_loss']['top_categories']],
                         ['Rent', 'Uncategorized'])
        rows = summary['budgets_vs_actual']['rows']
        self.assertEqual(rows[0]['category_name'], 'Rent')
        self.assertEqual(rows[0]['variance'], 50.0)
        self.assertEqual(summary['budgets_vs_actual']['totals'], {'budget': 250.0, 'actual': 350.0, 'variance': 100.0})

    def test_summary_endpoint(self):
        """Test the endpoint and its date validation"""
        response = self.client.get('/api/v1/finance/reports/summary/', {'start_date': '2024-01-01',
                                                                         'end_date': '2024-03-31'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['cash_flow']['timeline']), 3)
        response = self.client.get('/api/v1/finance/reports/summary/', {'start_date': 'January'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
