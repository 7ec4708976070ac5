"""Price resolution and alias matching for products"""
import logging
import re
from .models import Product, ProductPrice, ProductAlias, normalize_label
from backoffice.core.utils import effective_on

logger = logging.getLogger('backoffice.catalog')


def resolve_product_price(product, on_date, channel=None):
    """
    Price of a product on a date.

    A channel-specific price wins, then the dated product price, then the
    product's list price. Returns (price, source).
    """
    if channel is not None:
        from backoffice.sales_channels.models import ChannelProductPrice
        channel_price = effective_on(
            ChannelProductPrice.objects.filter(channel=channel, product=product), on_date
        ).first()
        if channel_price:
            return channel_price.price, 'channel_price'

    product_price = effective_on(ProductPrice.objects.filter(product=product), on_date).first()
    if product_price:
        return product_price.price, 'product_price'

    return product.price, 'product'


def compact_products():
    """Active products with the add-ons booking forms may offer"""
    products = Product.objects.filter(status=True).prefetch_related('product_addons__addon').order_by('name')
    data = []
    for product in products:
        addons = []
        for product_addon in sorted(product.product_addons.all(), key=lambda pa: (pa.sort_order, pa.id)):
            if not product_addon.addon.is_active:
                continue
            addons.append({
                'addon_id': product_addon.addon_id,
                'name': product_addon.addon.name,
                'max_per_attendee': product_addon.max_per_attendee,
                'price': str(product_addon.effective_price),
            })
        data.append({
            'id': product.id,
            'name': product.name,
            'price': str(product.price),
            'addons': addons,
        })
    return data


def match_product_alias(text):
    """
    First active alias matching a free-text product label.

    Aliases are tried by priority, then id. Exact and contains aliases
    compare normalized labels; regex aliases run against the raw text,
    case-insensitively. Aliases still waiting for a product are skipped.
    """
    normalized = normalize_label(text)
    if not normalized:
        return None
    aliases = ProductAlias.objects.select_related('product').filter(active=True, product__isnull=False)
    for alias in aliases.order_by('priority', 'id'):
        if alias.match_type == 'exact':
            matched = normalized == alias.normalized_label
        elif alias.match_type == 'contains':
            matched = bool(alias.normalized_label) and alias.normalized_label in normalized
        else:
            try:
                matched = re.search(alias.label, text, re.IGNORECASE) is not None
            except re.error:
                logger.warning(f"Skipping product alias {alias.id} with invalid pattern {alias.label!r}")
                continue
        if matched:
            return alias
    return None
