"""
Caching for the compact lists used by booking forms (products with add-ons, channels).

Entries are invalidated by model signals whenever a row feeding them changes.
"""
from django.core.cache import cache
from django.db.models.signals import post_save, post_delete
import logging

logger = logging.getLogger(__name__)

PRODUCT_COMPACT_KEY = 'catalog:products:compact'
CHANNEL_COMPACT_KEY = 'sales_channels:channels:compact'

# Catalog changes more often than channel setup
PRODUCT_COMPACT_CACHE_TTL = 300  # 5 minutes
CHANNEL_COMPACT_CACHE_TTL = 900  # 15 minutes


def get_cached_product_compact():
    data = cache.get(PRODUCT_COMPACT_KEY)
    if data is not None:
        logger.debug("Cache hit for compact product list")
    return data


def cache_product_compact(data):
    cache.set(PRODUCT_COMPACT_KEY, data, PRODUCT_COMPACT_CACHE_TTL)


def invalidate_product_compact(**kwargs):
    cache.delete(PRODUCT_COMPACT_KEY)
    logger.debug("Invalidated compact product list cache")


def get_cached_channel_compact():
    data = cache.get(CHANNEL_COMPACT_KEY)
    if data is not None:
        logger.debug("Cache hit for compact channel list")
    return data


def cache_channel_compact(data):
    cache.set(CHANNEL_COMPACT_KEY, data, CHANNEL_COMPACT_CACHE_TTL)


def invalidate_channel_compact(**kwargs):
    cache.delete(CHANNEL_COMPACT_KEY)
    logger.debug("Invalidated compact channel list cache")


def connect_cache_signals():
    """Wire invalidation to the models feeding the cached lists"""
    from backoffice.catalog.models import Product, Addon, ProductAddon
    from backoffice.sales_channels.models import Channel, PaymentMethod

    for model in (Product, Addon, ProductAddon):
        post_save.connect(invalidate_product_compact, sender=model, dispatch_uid=f'product_compact_save_{model.__name__}')
        post_delete.connect(invalidate_product_compact, sender=model, dispatch_uid=f'product_compact_delete_{model.__name__}')

    for model in (Channel, PaymentMethod):
        post_save.connect(invalidate_channel_compact, sender=model, dispatch_uid=f'channel_compact_save_{model.__name__}')
        post_delete.connect(invalidate_channel_compact, sender=model, dispatch_uid=f'channel_compact_delete_{model.__name__}')
