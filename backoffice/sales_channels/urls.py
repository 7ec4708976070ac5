from django.urls import path
from .views import (
    payment_method_list_create, payment_method_detail,
    channel_list_create, channel_detail, channel_commission_rate,
    channel_commission_list_create, channel_commission_detail,
    channel_product_price_list_create, channel_product_price_detail,
    channel_cash_collection_list_create, channel_cash_collection_detail,
)

urlpatterns = [
    # PaymentMethod endpoints
    path('payment-methods/', payment_method_list_create, name='payment-method-list-create'),
    path('payment-methods/<int:pk>/', payment_method_detail, name='payment-method-detail'),

    # Channel endpoints
    path('channels/', channel_list_create, name='channel-list-create'),
    path('channels/<int:pk>/', channel_detail, name='channel-detail'),
    path('channels/<int:pk>/commission-rate/', channel_commission_rate, name='channel-commission-rate'),

    # ChannelCommission endpoints
    path('channel-commissions/', channel_commission_list_create, name='channel-commission-list-create'),
    path('channel-commissions/<int:pk>/', channel_commission_detail, name='channel-commission-detail'),

    # ChannelProductPrice endpoints
    path('channel-product-prices/', channel_product_price_list_create, name='channel-product-price-list-create'),
    path('channel-product-prices/<int:pk>/', channel_product_price_detail, name='channel-product-price-detail'),

    # ChannelCashCollectionLog endpoints
    path('channel-cash-collections/', channel_cash_collection_list_create, name='channel-cash-collection-list-create'),
    path('channel-cash-collections/<int:pk>/', channel_cash_collection_detail, name='channel-cash-collection-detail'),
]
