from decimal import Decimal

from backoffice.core.utils import effective_on
from .models import ChannelCommission


def get_effective_commission(channel, on_date):
    """Commission row in force for a channel on a date, or None"""
    if channel is None or on_date is None:
        return None
    return effective_on(ChannelCommission.objects.filter(channel=channel), on_date).first()


def get_commission_rate(channel, on_date):
    commission = get_effective_commission(channel, on_date)
    return commission.rate if commission else Decimal('0')
