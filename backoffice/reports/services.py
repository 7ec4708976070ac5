"""
Booking numbers: per-channel money and per-day/platform volumes.
"""
import calendar
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.db.models import Count, Sum, Value, DecimalField, IntegerField
from django.db.models.functions import Coalesce

from backoffice.bookings.models import Booking
from backoffice.sales_channels.models import ChannelCashCollectionLog

CENT = Decimal('0.01')
ZERO = Decimal('0.00')
NO_CHANNEL = 'No channel'
MONEY_FIELD = DecimalField(max_digits=14, decimal_places=2)
SUMMARY_WINDOW_DAYS = 30


def money(value):
    return float(Decimal(value or 0).quantize(CENT, rounding=ROUND_HALF_UP))


def month_window(today):
    return today.replace(day=1), today.replace(day=calendar.monthrange(today.year, today.month)[1])


def default_summary_window(today):
    return today - timedelta(days=SUMMARY_WINDOW_DAYS - 1), today


def channel_numbers(start, end):
    """Non-cancelled bookings in [start, end] grouped by channel, plus totals"""
    rows = (
        Booking.objects
        .filter(experience_date__range=(start, end))
        .exclude(status='cancelled')
        .values('channel_id', 'channel__name')
        .annotate(
            bookings=Count('id'),
            people=Coalesce(Sum('party_size_total'), Value(0), output_field=IntegerField()),
            gross=Coalesce(Sum('price_gross'), Value(ZERO), output_field=MONEY_FIELD),
            commission=Coalesce(Sum('commission_amount'), Value(ZERO), output_field=MONEY_FIELD),
            net=Coalesce(Sum('price_net'), Value(ZERO), output_field=MONEY_FIELD),
        )
        .order_by('channel__name')
    )

    channels = []
    totals = {'bookings': 0, 'people': 0, 'gross': ZERO, 'commission': ZERO, 'net': ZERO}
    for row in rows:
        channels.append({
            'channel_id': row['channel_id'],
            'channel_name': row['channel__name'] or NO_CHANNEL,
            'bookings': row['bookings'],
            'people': row['people'],
            'gross': money(row['gross']),
            'commission': money(row['commission']),
            'net': money(row['net']),
        })
        for key in totals:
            totals[key] += row[key]

    # The unassigned bucket goes last
    channels.sort(key=lambda c: (c['channel_id'] is None, c['channel_name']))
    totals.update({key: money(totals[key]) for key in ('gross', 'commission', 'net')})

    return {
        'range': {'start_date': start.isoformat(), 'end_date': end.isoformat()},
        'channels': channels,
        'totals': totals,
        'cash_collections': cash_collections(start, end),
    }


def cash_collections(start, end):
    """
    Cash owed by cash-paid channels against what was handed over.

    Due is the gross of non-cancelled bookings in the window. Collected
    counts only logs recorded for exactly this window.
    """
    rows = {}

    def row_for(channel_id, channel_name, currency):
        key = (channel_id, currency)
        if key not in rows:
            rows[key] = {'channel_id': channel_id, 'channel_name': channel_name, 'currency': currency,
                         'due': ZERO, 'collected': ZERO}
        return rows[key]

    due = (
        Booking.objects
        .filter(experience_date__range=(start, end), channel__payment_method__name__iexact='cash')
        .exclude(status='cancelled')
        .values('channel_id', 'channel__name', 'currency')
        .annotate(gross=Coalesce(Sum('price_gross'), Value(ZERO), output_field=MONEY_FIELD))
        .order_by()
    )
    for row in due:
        row_for(row['channel_id'], row['channel__name'], (row['currency'] or '').upper())['due'] += row['gross']

    collected = (
        ChannelCashCollectionLog.objects
        .filter(range_start=start, range_end=end)
        .values('channel_id', 'channel__name', 'currency_code')
        .annotate(amount_minor=Sum('amount_minor'))
        .order_by()
    )
    for row in collected:
        entry = row_for(row['channel_id'], row['channel__name'], row['currency_code'])
        entry['collected'] += Decimal(row['amount_minor']) / 100

    channels = sorted(rows.values(), key=lambda r: (r['channel_name'], r['currency']))
    totals = {}
    for row in channels:
        total = totals.setdefault(row['currency'], {'currency': row['currency'], 'due': ZERO, 'collected': ZERO})
        total['due'] += row['due']
        total['collected'] += row['collected']
    for row in channels + list(totals.values()):
        row['outstanding'] = money(max(ZERO, row['due'] - row['collected']))
        row['due'] = money(row['due'])
        row['collected'] = money(row['collected'])

    return {
        'channels': channels,
        'totals': [totals[currency] for currency in sorted(totals)],
    }


def bookings_summary(date_from, date_to):
    queryset = Booking.objects.filter(experience_date__range=(date_from, date_to))
    people = Coalesce(Sum('party_size_total'), Value(0), output_field=IntegerField())

    by_day = (
        queryset.values('experience_date')
        .annotate(bookings=Count('id'), people=people)
        .order_by('experience_date')
    )
    by_platform = (
        queryset.values('platform')
        .annotate(bookings=Count('id'), people=people)
        .order_by('platform')
    )
    by_status = queryset.values('status').annotate(bookings=Count('id')).order_by('status')

    return {
        'range': {'date_from': date_from.isoformat(), 'date_to': date_to.isoformat()},
        'total_bookings': queryset.count(),
        'total_people': queryset.aggregate(total=people)['total'],
        'by_day': [
            {'date': row['experience_date'].isoformat(), 'bookings': row['bookings'], 'people': row['people']}
            for row in by_day
        ],
        'by_platform': [
            {'platform': row['platform'], 'bookings': row['bookings'], 'people': row['people']}
            for row in by_platform
        ],
        'status_breakdown': {row['status']: row['bookings'] for row in by_status},
    }
