"""
Finance summary report: profit and loss, cash flow and budgets vs actual.

Amounts are reported in the base currency as major units
(base_amount_minor / 100).
"""
import calendar
from datetime import date as date_cls

from django.conf import settings
from django.db.models import Sum

from backoffice.core.utils import store_today
from .models import Transaction, Budget

DEFAULT_MONTH_WINDOW = 6
PNL_KINDS = ['income', 'expense', 'refund']
UNCATEGORIZED = 'Uncategorized'


def month_start(value):
    return value.replace(day=1)


def month_end(value):
    return value.replace(day=calendar.monthrange(value.year, value.month)[1])


def shift_months(value, months):
    index = value.year * 12 + value.month - 1 + months
    return date_cls(index // 12, index % 12 + 1, 1)


def resolve_window(start=None, end=None, today=None):
    """Snap the requested window to whole months; default is the last six months"""
    today = today or store_today()
    end_date = month_end(end or today)
    if start:
        start_date = month_start(start)
    else:
        start_date = shift_months(end_date, -(DEFAULT_MONTH_WINDOW - 1))
    if start_date > end_date:
        start_date = month_start(end_date)
    return start_date, end_date


def month_keys(start_date, end_date):
    keys = []
    cursor = month_start(start_date)
    while cursor <= end_date:
        keys.append((cursor.strftime('%Y-%m'), cursor.strftime('%b %Y')))
        cursor = shift_months(cursor, 1)
    return keys


def to_major(minor):
    return round((minor or 0) / 100, 2)


def build_summary(start=None, end=None, today=None):
    start_date, end_date = resolve_window(start, end, today)
    months = month_keys(start_date, end_date)

    pnl = {key: {'income': 0, 'expense': 0} for key, _ in months}
    transactions = (
        Transaction.objects
        .filter(date__gte=start_date, date__lte=end_date, kind__in=PNL_KINDS)
        .exclude(status='void')
        .select_related('category')
        .order_by('date', 'id')
    )

    expense_by_category = {}
    for tx in transactions:
        bucket = pnl[tx.date.strftime('%Y-%m')]
        amount = tx.base_amount_minor or 0
        if tx.kind in ('income', 'refund'):
            bucket['income'] += amount
        else:
            bucket['expense'] += amount
            entry = expense_by_category.setdefault(tx.category_id, {
                'category_id': tx.category_id,
                'category_name': tx.category.name if tx.category else UNCATEGORIZED,
                'total': 0,
            })
            entry['total'] += amount

    income_total = sum(bucket['income'] for bucket in pnl.values())
    expense_total = sum(bucket['expense'] for bucket in pnl.values())

    top_categories = sorted(expense_by_category.values(), key=lambda e: e['total'], reverse=True)[:5]

    budget_by_category = {}
    budgets = (
        Budget.objects
        .filter(period__in=[key for key, _ in months])
        .values('category_id', 'category__name')
        .annotate(total=Sum('amount_minor'))
    )
    for row in budgets:
        budget_by_category[row['category_id']] = {
            'category_name': row['category__name'] or UNCATEGORIZED,
            'budget': row['total'] or 0,
        }

    budget_rows = []
    for category_id in set(budget_by_category) | set(expense_by_category):
        budget_entry = budget_by_category.get(category_id)
        actual_entry = expense_by_category.get(category_id)
        budget = budget_entry['budget'] if budget_entry else 0
        actual = actual_entry['total'] if actual_entry else 0
        name = (budget_entry or actual_entry).get('category_name') or UNCATEGORIZED
        budget_rows.append({
            'category_id': category_id,
            'category_name': name,
            'budget': budget,
            'actual': actual,
            'variance': actual - budget,
        })
    budget_rows.sort(key=lambda r: (-abs(r['variance']), r['category_name']))

    budget_total = sum(r['budget'] for r in budget_rows)
    actual_total = sum(r['actual'] for r in budget_rows)

    return {
        'period': {'start': start_date.isoformat(), 'end': end_date.isoformat()},
        'currency': settings.FINANCE_BASE_CURRENCY,
        'profit_and_loss': {
            'totals': {
                'income': to_major(income_total),
                'expense': to_major(expense_total),
                'net': to_major(income_total - expense_total),
            },
            'monthly': [
                {
                    'month': key,
                    'label': label,
                    'income': to_major(pnl[key]['income']),
                    'expense': to_major(pnl[key]['expense']),
                    'net': to_major(pnl[key]['income'] - pnl[key]['expense']),
                }
                for key, label in months
            ],
            'top_categories': [
                {'category_id': e['category_id'], 'category_name': e['category_name'], 'total': to_major(e['total'])}
                for e in top_categories
            ],
        },
        'cash_flow': {
            'totals': {
                'inflow': to_major(income_total),
                'outflow': to_major(expense_total),
                'net': to_major(income_total - expense_total),
            },
            'timeline': [
                {
                    'month': key,
                    'label': label,
                    'inflow': to_major(pnl[key]['income']),
                    'outflow': to_major(pnl[key]['expense']),
                    'net': to_major(pnl[key]['income'] - pnl[key]['expense']),
                }
                for key, label in months
            ],
        },
        'budgets_vs_actual': {
            'rows': [
                {
                    'category_id': r['category_id'],
                    'category_name': r['category_name'],
                    'budget': to_major(r['budget']),
                    'actual': to_major(r['actual']),
                    'variance': to_major(r['variance']),
                }
                for r in budget_rows
            ],
            'totals': {
                'budget': to_major(budget_total),
                'actual': to_major(actual_total),
                'variance': to_major(actual_total - budget_total),
            },
        },
    }
