"""
Night report submission and the venue numbers summary.
"""
import calendar
import logging
from datetime import date as date_cls, timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction as db_transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from backoffice.core.utils import create_audit_log, effective_on, parse_date, store_today
from .models import NightReportVenue, Venue, VenueCompensationTerm, VenueCompensationCollectionLog

logger = logging.getLogger('backoffice.venues')

CENTS = Decimal('0.01')
SUMMARY_PERIODS = ('this_month', 'last_month', 'custom')
TERM_LABELS = {'open_bar': 'open bar payout', 'commission': 'commission'}


def fail(message):
    raise ValidationError({'error': message})


def to_cents(value):
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


# ==================== SUBMISSION ====================

def resolve_term(venue, compensation_type, on_date):
    """Active term of a venue and type in force on a date, with a message saying why none applies"""
    active_terms = VenueCompensationTerm.objects.filter(venue=venue, compensation_type=compensation_type,
                                                        is_active=True)
    term = effective_on(active_terms, on_date).first()
    if term is not None:
        return term

    label = TERM_LABELS[compensation_type]
    if not active_terms.exists():
        fail(f'No active {label} term is configured for {venue.name} on {on_date.isoformat()}')
    fail(f'A {label} term exists for {venue.name} but its date range does not cover {on_date.isoformat()}')


def price_line(line, activity_date):
    """Fill the compensation fields of a report line from its venue's term"""
    venue = line.venue
    if venue is None and (line.venue_name or '').strip():
        venue = Venue.objects.filter(name__iexact=line.venue_name.strip()).first()
        line.venue = venue
    if venue is None:
        fail(f'Venue "{line.venue_name}" is not part of the directory')
    if line.is_open_bar and not venue.allows_open_bar:
        fail(f'Venue "{venue.name}" is not eligible to host the open bar')

    compensation_type = 'open_bar' if line.is_open_bar else 'commission'
    term = resolve_term(venue, compensation_type, activity_date)

    rate = to_cents(term.rate_amount)
    units = 1 if term.rate_unit == 'flat' else max(line.total_people, 0)

    line.compensation_term = term
    line.compensation_type = compensation_type
    line.direction = 'payable' if line.is_open_bar else 'receivable'
    line.rate_amount = rate
    line.rate_unit = term.rate_unit
    line.payout_amount = to_cents(rate * units)
    line.currency_code = (term.currency_code or 'USD').upper()
    return line


def submit_night_report(report, user=None, request=None):
    if report.status == 'submitted':
        fail('Report is already submitted')

    with db_transaction.atomic():
        lines = list(report.venues.select_related('venue').order_by('order_index', 'id'))
        for line in lines:
            price_line(line, report.activity_date)
            line.save()

        report.status = 'submitted'
        report.submitted_at = timezone.now()
        report.save(update_fields=['status', 'submitted_at', 'updated_at'])

    create_audit_log(request=request, user=user, action='submit', model_name='NightReport',
                     object_id=report.id, object_name=str(report),
                     metadata={'lines': len(lines), 'activity_date': report.activity_date.isoformat()})
    logger.info(f"Night report {report.id} for {report.activity_date} submitted with {len(lines)} venue(s)")
    return report


# ==================== SUMMARY ====================

def _month_bounds(year, month):
    return date_cls(year, month, 1), date_cls(year, month, calendar.monthrange(year, month)[1])


def resolve_summary_range(period=None, start_param=None, end_param=None, today=None):
    """
    Window of the venue numbers summary.

    Unknown periods fall back to this_month. custom needs both dates; for the
    other periods explicit dates override the matching bound.
    """
    today = today or store_today()
    period = period if period in SUMMARY_PERIODS else 'this_month'

    try:
        start_override = parse_date(start_param)
        end_override = parse_date(end_param)
    except ValueError:
        fail('Invalid start_date or end_date. Use YYYY-MM-DD')

    if period == 'custom':
        if not start_override or not end_override:
            fail('Provide start_date and end_date when using the custom period')
        start, end = start_override, end_override
    else:
        if period == 'last_month':
            previous = today.replace(day=1) - timedelta(days=1)
            start, end = _month_bounds(previous.year, previous.month)
        else:
            start, end = _month_bounds(today.year, today.month)
        start = start_override or start
        end = end_override or end

    if end < start:
        fail('Provide a valid date range')
    return period, start, end


def _money(value):
    return float(to_cents(value))


def _figures(receivable, payable, collected):
    receivable_collected = collected.get('receivable', Decimal('0'))
    payable_collected = collected.get('payable', Decimal('0'))
    return {
        'receivable': _money(receivable),
        'receivable_collected': _money(receivable_collected),
        'receivable_outstanding': _money(max(receivable - receivable_collected, Decimal('0'))),
        'payable': _money(payable),
        'payable_collected': _money(payable_collected),
        'payable_outstanding': _money(max(payable - payable_collected, Decimal('0'))),
        'net': _money(receivable - payable),
    }


def venue_numbers_summary(period=None, start_param=None, end_param=None, today=None):
    period, start, end = resolve_summary_range(period, start_param, end_param, today)

    lines = (
        NightReportVenue.objects
        .filter(report__status='submitted', report__activity_date__range=(start, end))
        .select_related('report', 'venue')
        .order_by('report__activity_date', 'id')
    )

    collected_by_venue = {}
    collected_by_currency = {}
    collections = VenueCompensationCollectionLog.objects.filter(range_start=start, range_end=end)
    for log in collections:
        currency = log.currency_code.upper()
        amount = Decimal(log.amount_minor) / 100
        venue_bucket = collected_by_venue.setdefault((log.venue_id, currency), {})
        venue_bucket[log.direction] = venue_bucket.get(log.direction, Decimal('0')) + amount
        currency_bucket = collected_by_currency.setdefault(currency, {})
        currency_bucket[log.direction] = currency_bucket.get(log.direction, Decimal('0')) + amount

    venues = {}
    totals = {}
    for line in lines:
        currency = (line.currency_code or 'USD').upper()
        direction = 'receivable' if line.direction == 'receivable' else 'payable'
        amount = line.payout_amount or Decimal('0')
        if line.venue_id:
            # keyed like the collection logs
            name = line.venue.name
            key = (line.venue_id, currency)
        else:
            name = (line.venue_name or '').strip() or 'Unspecified Venue'
            key = (None, name, currency)

        entry = venues.setdefault(key, {
            'venue_id': line.venue_id,
            'venue_name': name,
            'currency': currency,
            'receivable': Decimal('0'),
            'payable': Decimal('0'),
            'total_people': 0,
            'daily': {},
        })
        entry[direction] += amount
        entry['total_people'] += line.total_people

        day = line.report.activity_date.isoformat()
        daily = entry['daily'].setdefault(day, {'date': day, 'receivable': Decimal('0'),
                                                'payable': Decimal('0'), 'total_people': 0})
        daily[direction] += amount
        daily['total_people'] += line.total_people

        currency_totals = totals.setdefault(currency, {'receivable': Decimal('0'), 'payable': Decimal('0')})
        currency_totals[direction] += amount

    rows = []
    for entry in venues.values():
        collected = collected_by_venue.get((entry['venue_id'], entry['currency']), {})
        row = {
            'venue_id': entry['venue_id'],
            'venue_name': entry['venue_name'],
            'currency': entry['currency'],
            **_figures(entry['receivable'], entry['payable'], collected),
            'total_people': entry['total_people'],
            'daily': [
                {
                    'date': day['date'],
                    'receivable': _money(day['receivable']),
                    'payable': _money(day['payable']),
                    'total_people': day['total_people'],
                }
                for day in sorted(entry['daily'].values(), key=lambda d: d['date'])
            ],
        }
        rows.append(row)
    rows.sort(key=lambda r: (-r['net'], r['venue_name']))

    totals_by_currency = [
        {'currency': currency, **_figures(sums['receivable'], sums['payable'], collected_by_currency.get(currency, {}))}
        for currency, sums in sorted(totals.items())
    ]

    return {
        'period': period,
        'range': {'start_date': start.isoformat(), 'end_date': end.isoformat()},
        'totals_by_currency': totals_by_currency,
        'venues': rows,
    }
