"""
Finance domain rules: transaction normalisation, transfers, recurring rules
and management-request decisions.

Rule violations raise rest_framework ValidationError so API views answer 400.
"""
import calendar
import logging
import uuid
from datetime import date as date_cls, timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from django.db import transaction as db_transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from backoffice.core.utils import create_audit_log
from .models import Transaction, Vendor, Client, RecurringRule

logger = logging.getLogger('backoffice.finance')

LOCKED_STATUSES = ('paid',)
LOCKED_FIELDS = ('amount_minor', 'currency', 'fx_rate')
APPROVED_STATUSES = ('approved', 'paid', 'reimbursed')


def fail(message):
    raise ValidationError({'error': message})


# ==================== TRANSACTIONS ====================

def calculate_base_amount(amount_minor, fx_rate):
    """Amount converted to the base currency, rounded half-up to a whole minor unit"""
    try:
        rate = Decimal(str(fx_rate))
    except (InvalidOperation, TypeError, ValueError):
        fail('Invalid fx_rate value')
    if not rate.is_finite() or rate <= 0:
        fail('Invalid fx_rate value')
    return int((Decimal(int(amount_minor)) * rate).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def normalize_counterparty(kind, counterparty_type=None, counterparty_id=None):
    """
    Force the counterparty shape each kind requires.

    expense -> vendor (required), income -> client (required), transfer -> none,
    refund keeps whatever was given.
    """
    if kind == 'expense':
        if not counterparty_id:
            fail('Expense transactions require a vendor counterparty')
        if not Vendor.objects.filter(pk=counterparty_id).exists():
            fail(f'Vendor {counterparty_id} not found')
        return 'vendor', counterparty_id
    if kind == 'income':
        if not counterparty_id:
            fail('Income transactions require a client counterparty')
        if not Client.objects.filter(pk=counterparty_id).exists():
            fail(f'Client {counterparty_id} not found')
        return 'client', counterparty_id
    if kind == 'transfer':
        return 'none', None

    counterparty_type = counterparty_type or ('none' if not counterparty_id else None)
    if counterparty_type == 'none' or not counterparty_id:
        return 'none', None
    if counterparty_type == 'vendor' and not Vendor.objects.filter(pk=counterparty_id).exists():
        fail(f'Vendor {counterparty_id} not found')
    if counterparty_type == 'client' and not Client.objects.filter(pk=counterparty_id).exists():
        fail(f'Client {counterparty_id} not found')
    if counterparty_type not in ('vendor', 'client'):
        fail('Refund counterparty type must be vendor, client or none')
    return counterparty_type, counterparty_id


def _actor(user):
    return user if user is not None and user.is_authenticated else None


def _snapshot(tx):
    return {
        'kind': tx.kind,
        'date': tx.date,
        'account_id': tx.account_id,
        'currency': tx.currency,
        'amount_minor': tx.amount_minor,
        'fx_rate': tx.fx_rate,
        'base_amount_minor': tx.base_amount_minor,
        'category_id': tx.category_id,
        'counterparty_type': tx.counterparty_type,
        'counterparty_id': tx.counterparty_id,
        'status': tx.status,
    }


def create_transaction(data, user=None, request=None):
    """Create a transaction from validated data"""
    data = dict(data)
    data['fx_rate'] = data.get('fx_rate') or Decimal('1')
    data['counterparty_type'], data['counterparty_id'] = normalize_counterparty(
        data['kind'], data.get('counterparty_type'), data.get('counterparty_id')
    )
    if data.get('base_amount_minor') is None:
        data['base_amount_minor'] = calculate_base_amount(data['amount_minor'], data['fx_rate'])
    else:
        calculate_base_amount(data['amount_minor'], data['fx_rate'])
    data.setdefault('status', 'planned')
    data['meta'] = data.get('meta') or {}
    data['tags'] = data.get('tags') or []

    actor = _actor(user)
    if data['status'] in APPROVED_STATUSES and not data.get('approved_by'):
        data['approved_by'] = actor

    tx = Transaction.objects.create(created_by=actor, **data)
    create_audit_log(request=request, user=actor, action='create', model_name='finance_transaction',
                     object_id=tx.id, object_name=str(tx), changes=_snapshot(tx))
    logger.info(f"Finance transaction {tx.id} created ({tx.kind} {tx.amount_minor} {tx.currency})")
    return tx


def update_transaction(tx, data, user=None, request=None):
    """Apply validated changes to a transaction, enforcing the paid lock"""
    if tx.status in LOCKED_STATUSES:
        for field in LOCKED_FIELDS:
            if field in data and data[field] != getattr(tx, field):
                fail('Cannot modify amount, currency, or fx_rate once transaction is paid')

    before = _snapshot(tx)
    data = dict(data)

    if any(field in data for field in ('kind', 'counterparty_type', 'counterparty_id')):
        kind = data.get('kind', tx.kind)
        data['counterparty_type'], data['counterparty_id'] = normalize_counterparty(
            kind,
            data.get('counterparty_type', tx.counterparty_type),
            data.get('counterparty_id', tx.counterparty_id),
        )

    if 'fx_rate' in data and data['fx_rate'] is None:
        data['fx_rate'] = tx.fx_rate

    for attr, value in data.items():
        setattr(tx, attr, value)

    if data.get('base_amount_minor') is None and any(f in data for f in ('amount_minor', 'fx_rate', 'base_amount_minor')):
        tx.base_amount_minor = calculate_base_amount(tx.amount_minor, tx.fx_rate)

    actor = _actor(user)
    if tx.status in APPROVED_STATUSES and tx.approved_by_id is None:
        tx.approved_by = actor

    tx.save()
    after = _snapshot(tx)
    changes = {key: {'old': before[key], 'new': after[key]} for key in after if before[key] != after[key]}
    create_audit_log(request=request, user=actor, action='update', model_name='finance_transaction',
                     object_id=tx.id, object_name=str(tx), changes=changes)
    return tx


def delete_transaction(tx, user=None, request=None):
    """Delete a transaction; both legs of a transfer go together"""
    group_id = (tx.meta or {}).get('transfer_group_id') if tx.kind == 'transfer' else None
    with db_transaction.atomic():
        if group_id:
            legs = list(Transaction.objects.filter(kind='transfer', meta__transfer_group_id=group_id))
        else:
            legs = [tx]
        for leg in legs:
            create_audit_log(request=request, user=_actor(user), action='delete', model_name='finance_transaction',
                             object_id=leg.id, object_name=str(leg), changes=_snapshot(leg))
            leg.delete()
    return len(legs)


def create_transfer(data, user=None, request=None):
    """
    Move money between two accounts: one outgoing and one incoming 'transfer'
    transaction sharing a transfer_group_id. Returns (debit, credit).
    """
    from_account = data['from_account']
    to_account = data['to_account']
    if from_account.pk == to_account.pk:
        fail('Transfer accounts must be different')

    amount_minor = int(data['amount_minor'])
    if amount_minor <= 0:
        fail('Transfer amount must be positive')

    fx_rate = data.get('fx_rate') or Decimal('1')
    base_amount_minor = calculate_base_amount(amount_minor, fx_rate)
    transfer_group_id = str(uuid.uuid4())
    currency = (data.get('currency') or from_account.currency).upper()
    extra_meta = data.get('meta') or {}

    common = {
        'kind': 'transfer',
        'date': data['date'],
        'currency': currency,
        'amount_minor': amount_minor,
        'fx_rate': fx_rate,
        'base_amount_minor': base_amount_minor,
        'category': None,
        'counterparty_type': 'none',
        'counterparty_id': None,
        'status': data.get('status') or 'planned',
        'description': data.get('description'),
        'tags': data.get('tags') or [],
    }

    with db_transaction.atomic():
        debit = create_transaction(dict(
            common,
            account=from_account,
            meta={**extra_meta, 'direction': 'out', 'transfer_group_id': transfer_group_id,
                  'counter_account_id': to_account.pk},
        ), user=user, request=request)
        credit = create_transaction(dict(
            common,
            account=to_account,
            meta={**extra_meta, 'direction': 'in', 'transfer_group_id': transfer_group_id,
                  'counter_account_id': from_account.pk},
        ), user=user, request=request)

    create_audit_log(request=request, user=_actor(user), action='transfer', model_name='finance_transaction',
                     object_id=debit.id, object_name=f'{from_account.name} -> {to_account.name}',
                     metadata={'transfer_group_id': transfer_group_id, 'credit_id': credit.id})
    logger.info(f"Transfer {transfer_group_id}: {amount_minor} {currency} from {from_account.name} to {to_account.name}")
    return debit, credit


SETTLED_STATUSES = ('paid', 'reimbursed')
PROJECTED_STATUSES = ('planned', 'approved', 'paid', 'reimbursed')


def _ledger_total(account, as_of, statuses):
    total = account.opening_balance_minor
    queryset = account.transactions.filter(status__in=statuses)
    if as_of:
        queryset = queryset.filter(date__lte=as_of)
    for kind, amount, meta in queryset.values_list('kind', 'amount_minor', 'meta'):
        if kind in ('income', 'refund'):
            total += amount
        elif kind == 'expense':
            total -= amount
        elif kind == 'transfer':
            if (meta or {}).get('direction') == 'in':
                total += amount
            else:
                total -= amount
    return total


def account_balance(account, as_of=None):
    """Settled and projected balance of an account in its own currency"""
    return {
        'account_id': account.id,
        'currency': account.currency,
        'as_of': as_of.isoformat() if as_of else None,
        'opening_balance_minor': account.opening_balance_minor,
        'balance_minor': _ledger_total(account, as_of, SETTLED_STATUSES),
        'projected_balance_minor': _ledger_total(account, as_of, PROJECTED_STATUSES),
    }


# ==================== RECURRING RULES ====================

def _add_months(value, months, day):
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date_cls(year, month, min(day, last_day))


def compute_next_run(rule, previous_run):
    """
    Date following previous_run for the rule's cadence.

    Month-based cadences land on by_month_day (or the start date's day),
    clamped to the length of the target month.
    """
    interval = max(int(rule.interval or 1), 1)
    if rule.frequency == 'daily':
        return previous_run + timedelta(days=interval)
    if rule.frequency == 'weekly':
        return previous_run + timedelta(weeks=interval)

    day = rule.by_month_day or (rule.start_date.day if rule.start_date else previous_run.day)
    if rule.frequency == 'monthly':
        return _add_months(previous_run, interval, day)
    if rule.frequency == 'quarterly':
        return _add_months(previous_run, 3 * interval, day)
    if rule.frequency == 'yearly':
        return _add_months(previous_run, 12 * interval, day)
    raise ValueError(f'Unsupported frequency: {rule.frequency}')


def rule_today(rule, now=None):
    """Current date in the rule's timezone (UTC when the zone is unknown)"""
    now = now or timezone.now()
    try:
        tz = ZoneInfo(rule.timezone or 'UTC')
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Recurring rule {rule.pk} has unknown timezone {rule.timezone!r}, using UTC")
        tz = ZoneInfo('UTC')
    return timezone.localtime(now, tz).date()


def _advance(rule, run_date, now):
    rule.next_run_date = compute_next_run(rule, run_date)
    rule.last_run_at = now
    rule.save(update_fields=['next_run_date', 'last_run_at', 'updated_at'])


def execute_recurring_rules(user=None, now=None, request=None):
    """
    Materialise one occurrence for every due active rule.

    A rule whose occurrence already exists is advanced without creating a
    duplicate. Returns {processed, created_transactions (a count), transaction_ids,
    skipped, errors}.
    """
    from .serializers import TransactionSerializer

    now = now or timezone.now()
    processed = 0
    skipped = 0
    created = []
    errors = []

    rules = RecurringRule.objects.filter(status='active').order_by('id')
    for rule in rules:
        today = rule_today(rule, now)
        run_date = rule.next_run_date or rule.start_date
        if run_date > today:
            continue
        processed += 1

        if rule.end_date and run_date > rule.end_date:
            skipped += 1
            continue

        exists = Transaction.objects.filter(date=run_date, meta__recurring_rule_id=rule.id).exists()
        if exists:
            skipped += 1
            _advance(rule, run_date, now)
            continue

        template = dict(rule.template_json or {})
        template['date'] = run_date.isoformat()
        template.setdefault('status', 'planned')
        template['meta'] = {
            **(template.get('meta') or {}),
            'recurring_rule_id': rule.id,
            'recurring_scheduled_for': run_date.isoformat(),
        }
        try:
            with db_transaction.atomic():
                serializer = TransactionSerializer(
                    data=template, context={'user': user or rule.created_by, 'request': request}
                )
                serializer.is_valid(raise_exception=True)
                tx = serializer.save()
                _advance(rule, run_date, now)
        except ValidationError as exc:
            logger.error(f"Recurring rule {rule.id} could not create its {run_date} transaction: {exc.detail}")
            errors.append({'rule_id': rule.id, 'scheduled_for': run_date.isoformat(), 'error': exc.detail})
            continue
        created.append(tx.id)
        create_audit_log(request=request, user=_actor(user or rule.created_by), action='execute',
                         model_name='finance_recurring_rule', object_id=rule.id, object_name=str(rule),
                         metadata={'run_date': run_date.isoformat(), 'transaction_id': tx.id})
        logger.info(f"Recurring rule {rule.id} created transaction {tx.id} for {run_date}")

    return {
        'processed': processed,
        'created_transactions': len(created),
        'transaction_ids': created,
        'skipped': skipped,
        'errors': errors,
    }


# ==================== MANAGEMENT REQUESTS ====================

def _target_serializers():
    from .serializers import (
        TransactionSerializer, RecurringRuleSerializer, AccountSerializer, CategorySerializer,
        VendorSerializer, ClientSerializer, BudgetSerializer
    )
    from .models import Account, Category, Budget
    return {
        'transaction': (Transaction, TransactionSerializer),
        'recurring_rule': (RecurringRule, RecurringRuleSerializer),
        'account': (Account, AccountSerializer),
        'category': (Category, CategorySerializer),
        'vendor': (Vendor, VendorSerializer),
        'client': (Client, ClientSerializer),
        'budget': (Budget, BudgetSerializer),
    }


def apply_request_payload(management_request, manager, request=None):
    """Create or update the request's target with its payload"""
    targets = _target_serializers()
    if management_request.target_entity not in targets:
        fail(f'Unsupported target entity: {management_request.target_entity}')

    model, serializer_class = targets[management_request.target_entity]
    context = {'user': manager, 'request': request}
    if management_request.target_id:
        instance = model.objects.filter(pk=management_request.target_id).first()
        if instance is None:
            fail(f'{management_request.target_entity} {management_request.target_id} not found')
        serializer = serializer_class(instance, data=management_request.payload, partial=True, context=context)
    else:
        serializer = serializer_class(data=management_request.payload, context=context)
    serializer.is_valid(raise_exception=True)
    return serializer.save()


def approve_request(management_request, manager, note=None, request=None):
    if management_request.status not in ('open', 'returned'):
        fail('Request already processed')

    with db_transaction.atomic():
        target = apply_request_payload(management_request, manager, request=request)
        management_request.status = 'approved'
        management_request.manager = manager
        management_request.decision_note = note
        management_request.save(update_fields=['status', 'manager', 'decision_note', 'updated_at'])

    create_audit_log(request=request, user=manager, action='approve', model_name='finance_management_request',
                     object_id=management_request.id, object_name=str(management_request),
                     metadata={'target_entity': management_request.target_entity, 'target_id': target.pk})
    logger.info(f"Management request {management_request.id} approved by {manager}")
    return management_request, target


def return_request(management_request, manager, note=None, request=None):
    if management_request.status != 'open':
        fail('Only open requests can be returned')
    return _decide(management_request, 'returned', 'return', manager, note, request)


def reject_request(management_request, manager, note=None, request=None):
    if management_request.status not in ('open', 'returned'):
        fail('Request already processed')
    return _decide(management_request, 'rejected', 'reject', manager, note, request)


def _decide(management_request, new_status, action, manager, note, request):
    management_request.status = new_status
    management_request.manager = manager
    management_request.decision_note = note
    management_request.save(update_fields=['status', 'manager', 'decision_note', 'updated_at'])
    create_audit_log(request=request, user=manager, action=action, model_name='finance_management_request',
                     object_id=management_request.id, object_name=str(management_request),
                     changes={'status': new_status, 'decision_note': note})
    return management_request
