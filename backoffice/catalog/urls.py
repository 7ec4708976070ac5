from django.urls import path
from .views import (
    product_type_list_create, product_type_detail,
    product_list_create, product_active_list, product_detail, product_price_lookup,
    addon_list_create, addon_detail,
    product_addon_list_create, product_addon_detail,
    product_price_list_create, product_price_detail,
    product_alias_list_create, product_alias_detail,
)

urlpatterns = [
    # ProductType endpoints
    path('product-types/', product_type_list_create, name='product-type-list-create'),
    path('product-types/<int:pk>/', product_type_detail, name='product-type-detail'),

    # Product endpoints
    path('products/', product_list_create, name='product-list-create'),
    path('products/active/', product_active_list, name='product-active-list'),
    path('products/<int:pk>/', product_detail, name='product-detail'),
    path('products/<int:pk>/price/', product_price_lookup, name='product-price-lookup'),

    # Addon endpoints
    path('addons/', addon_list_create, name='addon-list-create'),
    path('addons/<int:pk>/', addon_detail, name='addon-detail'),

    # ProductAddon endpoints
    path('product-addons/', product_addon_list_create, name='product-addon-list-create'),
    path('product-addons/<int:pk>/', product_addon_detail, name='product-addon-detail'),

    # ProductPrice endpoints
    path('product-prices/', product_price_list_create, name='product-price-list-create'),
    path('product-prices/<int:pk>/', product_price_detail, name='product-price-detail'),

    # ProductAlias endpoints
    path('product-aliases/', product_alias_list_create, name='product-alias-list-create'),
    path('product-aliases/<int:pk>/', product_alias_detail, name='product-alias-detail'),
]
