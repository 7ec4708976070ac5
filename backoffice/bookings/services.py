"""
Booking pricing, unified order projection and manifest grouping.

Unified orders are the flattened shape the front desk works with: one row per
booking with a product key, local timeslot, head counts and extras.
"""
import re
from decimal import Decimal, ROUND_HALF_UP

from django.utils import timezone

from backoffice.core.utils import parse_date, store_timezone
from backoffice.sales_channels.services import get_commission_rate

CENT = Decimal('0.01')
EXTRA_KEYS = ('tshirts', 'cocktails', 'photos')
PRICING_COMPONENTS = ('base_amount', 'addons_amount', 'discount_amount')
COMMISSION_INPUTS = ('channel', 'experience_date')
NO_TIMESLOT = '--:--'


def quantize_money(value):
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def apply_pricing(booking, recompute_gross=True, recompute_commission=True, refresh_rate=False):
    """
    Fill the derived money fields of a booking in place.

    gross defaults to base + add-ons - discount, the commission rate to the
    channel's rate on the experience date, and net is always gross - commission.
    """
    if booking.party_size_total is None and (
        booking.party_size_adults is not None or booking.party_size_children is not None
    ):
        booking.party_size_total = (booking.party_size_adults or 0) + (booking.party_size_children or 0)

    if recompute_gross or booking.price_gross is None:
        booking.price_gross = quantize_money(
            (booking.base_amount or 0) + (booking.addons_amount or 0) - (booking.discount_amount or 0)
        )

    if refresh_rate or booking.commission_rate is None:
        if booking.channel_id and booking.experience_date:
            booking.commission_rate = get_commission_rate(booking.channel, booking.experience_date)
            recompute_commission = True
        elif refresh_rate:
            booking.commission_rate = None
            recompute_commission = True

    if recompute_commission or booking.commission_amount is None:
        rate = booking.commission_rate or Decimal('0')
        booking.commission_amount = quantize_money(booking.price_gross * rate)

    booking.price_net = quantize_money(booking.price_gross - booking.commission_amount)
    return booking


def derive_product_id(booking):
    if booking.product_id:
        return str(booking.product_id)
    if booking.product_name:
        return re.sub(r'\s+', '-', booking.product_name.strip().lower())
    return f"{booking.platform}-{booking.id}"


def build_customer_name(booking):
    name_parts = [part for part in (booking.guest_first_name, booking.guest_last_name) if part]
    if name_parts:
        return ' '.join(name_parts)
    if booking.guest_email:
        return booking.guest_email
    if booking.guest_phone:
        return booking.guest_phone
    return f"Booking #{booking.id}"


def normalize_extras(snapshot):
    extras = snapshot.get('extras') if isinstance(snapshot, dict) else None
    if not isinstance(extras, dict):
        return {key: 0 for key in EXTRA_KEYS}
    normalized = {}
    for key in EXTRA_KEYS:
        try:
            normalized[key] = int(extras.get(key) or 0)
        except (TypeError, ValueError):
            normalized[key] = 0
    return normalized


def booking_to_order(booking, tz=None):
    """Project a booking into a unified order; None when it has no date at all"""
    tz = tz or store_timezone()
    start_local = timezone.localtime(booking.experience_start_at, tz) if booking.experience_start_at else None
    experience_date = booking.experience_date or (start_local.date() if start_local else None)
    if experience_date is None:
        return None

    if booking.product_name:
        product_name = booking.product_name
    elif booking.product_id:
        product_name = booking.product.name
    else:
        product_name = 'Unassigned product'

    adults = booking.party_size_adults
    total = booking.party_size_total
    return {
        'id': str(booking.id),
        'platform': booking.platform,
        'product_id': derive_product_id(booking),
        'product_name': product_name,
        'date': experience_date.isoformat(),
        'timeslot': start_local.strftime('%H:%M') if start_local else NO_TIMESLOT,
        'customer_name': build_customer_name(booking),
        'customer_phone': booking.guest_phone,
        'quantity': total if total is not None else (adults or 0),
        'men': adults if adults is not None else (total or 0),
        'women': booking.party_size_children or 0,
        'status': booking.status,
        'extras': normalize_extras(booking.addons_snapshot),
        'pickup_at': start_local.isoformat() if start_local else None,
    }


def collect_products(orders):
    products = {}
    for order in orders:
        products.setdefault(order['product_id'], {
            'id': order['product_id'],
            'name': order['product_name'],
        })
    return sorted(products.values(), key=lambda product: product['name'].lower())


def resolve_range(date=None, pickup_from=None, pickup_to=None):
    """
    Date window for the booking list. A single date wins over pickup bounds;
    a lone bound makes a one-day window. Raises ValueError on bad dates.
    """
    start = parse_date(date or pickup_from)
    end = parse_date(date or pickup_to)
    if start and not end:
        end = start
    if end and not start:
        start = end
    return start, end


def unified_orders(bookings):
    tz = store_timezone()
    orders = [order for order in (booking_to_order(booking, tz) for booking in bookings) if order]
    return {
        'total': len(orders),
        'count': len(orders),
        'products': collect_products(orders),
        'orders': orders,
    }


def _add_platform(breakdown, platform, men, women, order_count=1):
    key = platform or 'unknown'
    for entry in breakdown:
        if entry['platform'] == key:
            entry['total_people'] += men + women
            entry['men'] += men
            entry['women'] += women
            entry['order_count'] += order_count
            return
    breakdown.append({
        'platform': key,
        'total_people': men + women,
        'men': men,
        'women': women,
        'order_count': order_count,
    })


def group_orders_for_manifest(orders):
    """Group orders by product, date and timeslot"""
    groups = {}
    for order in orders:
        men = order['men']
        women = order['women']
        key = f"{order['product_id']}|{order['date']}|{order['timeslot']}"
        group = groups.get(key)
        if group is None:
            group = groups[key] = {
                'product_id': order['product_id'],
                'product_name': order['product_name'],
                'date': order['date'],
                'time': order['timeslot'],
                'total_people': 0,
                'men': 0,
                'women': 0,
                'extras': {extra: 0 for extra in EXTRA_KEYS},
                'orders': [],
                'platform_breakdown': [],
            }
        group['total_people'] += men + women
        group['men'] += men
        group['women'] += women
        for extra in EXTRA_KEYS:
            group['extras'][extra] += order['extras'][extra]
        group['orders'].append(order)
        _add_platform(group['platform_breakdown'], order['platform'], men, women)

    return sorted(groups.values(), key=lambda g: (g['date'], g['time'], g['product_name']))


def summarize_manifest(groups):
    summary = {
        'total_orders': 0,
        'total_people': 0,
        'men': 0,
        'women': 0,
        'extras': {extra: 0 for extra in EXTRA_KEYS},
        'platform_breakdown': [],
    }
    for group in groups:
        summary['total_orders'] += len(group['orders'])
        summary['total_people'] += group['total_people']
        summary['men'] += group['men']
        summary['women'] += group['women']
        for extra in EXTRA_KEYS:
            summary['extras'][extra] += group['extras'][extra]
        for entry in group['platform_breakdown']:
            _add_platform(summary['platform_breakdown'], entry['platform'], entry['men'],
                          entry['women'], order_count=entry['order_count'])
    summary['platform_breakdown'].sort(key=lambda entry: entry['platform'])
    return summary


def build_manifest(bookings, target_date, product_id=None, time=None):
    tz = store_timezone()
    target = target_date.isoformat()
    orders = []
    for booking in bookings:
        order = booking_to_order(booking, tz)
        if order is None or order['date'] != target:
            continue
        if product_id and order['product_id'] != product_id:
            continue
        if time and order['timeslot'] != time:
            continue
        orders.append(order)

    groups = group_orders_for_manifest(orders)
    return {
        'date': target,
        'filters': {'product_id': product_id or None, 'time': time or None},
        'orders': orders,
        'manifest': groups,
        'summary': summarize_manifest(groups),
    }
