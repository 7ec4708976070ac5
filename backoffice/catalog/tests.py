"""
Test suite for the catalog module
Tests: products, add-ons, dated prices, price resolution, the compact list cache and product aliases
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from decimal import Decimal
from datetime import date
from backoffice.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backoffice.core.models import AuditLog
from backoffice.catalog.models import Product, ProductPrice, ProductAlias, normalize_label
from backoffice.catalog.services import resolve_product_price, match_product_alias
from backoffice.sales_channels.models import ChannelProductPrice


class ProductModelTests(TestCase):
    """Test catalog model helpers"""

    def test_product_addon_effective_price(self):
        """Test the per-product override wins over the add-on base price"""
        product = TestDataFactory.create_product()
        addon = TestDataFactory.create_addon(base_price=Decimal('20.00'))
        link = TestDataFactory.create_product_addon(product, addon)
        self.assertEqual(link.effective_price, Decimal('20.00'))
        link.price_override = Decimal('15.00')
        self.assertEqual(link.effective_price, Decimal('15.00'))


class PriceResolutionTests(TestCase):
    """Test resolve_product_price precedence"""

    def setUp(self):
        self.product = TestDataFactory.create_product(price=Decimal('100.00'))
        self.channel = TestDataFactory.create_channel()

    def test_falls_back_to_list_price(self):
        """Test the product list price is used when nothing is dated"""
        price, source = resolve_product_price(self.product, date(2024, 6, 1))
        self.assertEqual(price, Decimal('100.00'))
        self.assertEqual(source, 'product')

    def test_dated_product_price(self):
        """Test a dated product price applies inside its window only"""
        ProductPrice.objects.create(product=self.product, price=Decimal('120.00'),
                                    valid_from=date(2024, 6, 1), valid_to=date(2024, 8, 31))
        self.assertEqual(resolve_product_price(self.product, date(2024, 7, 1)),
                         (Decimal('120.00'), 'product_price'))
        self.assertEqual(resolve_product_price(self.product, date(2024, 9, 1)),
                         (Decimal('100.00'), 'product'))

    def test_channel_price_wins(self):
        """Test a channel-specific price beats the dated product price"""
        ProductPrice.objects.create(product=self.product, price=Decimal('120.00'), valid_from=date(2024, 1, 1))
        ChannelProductPrice.objects.create(channel=self.channel, product=self.product,
                                           price=Decimal('90.00'), valid_from=date(2024, 1, 1))
        self.assertEqual(resolve_product_price(self.product, date(2024, 7, 1), channel=self.channel),
                         (Decimal('90.00'), 'channel_price'))
        self.assertEqual(resolve_product_price(self.product, date(2024, 7, 1)),
                         (Decimal('120.00'), 'product_price'))


class ProductAPITests(TestCase):
    """Test product endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.product_type = TestDataFactory.create_product_type(name='Pub Crawl')

    def test_create_product(self):
        """Test creating a product records the author and an audit entry"""
        data = {'name': 'Krakow Pub Crawl', 'product_type': self.product_type.id, 'price': '89.00'}
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['product_type_name'], 'Pub Crawl')
        product = Product.objects.get(pk=response.data['id'])
        self.assertEqual(product.created_by, self.user)
        self.assertTrue(AuditLog.objects.filter(model_name='Product', object_id=str(product.id)).exists())

    def test_create_product_negative_price(self):
        """Test prices cannot be negative"""
        data = {'name': 'Broken', 'product_type': self.product_type.id, 'price': '-1.00'}
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filter_products(self):
        """Test search and status filters"""
        TestDataFactory.create_product(name='Vodka Tasting', product_type=self.product_type)
        TestDataFactory.create_product(name='Boat Party', product_type=self.product_type, status=False)
        response = self.client.get('/api/v1/products/', {'search': 'vodka'})
        self.assertEqual([p['name'] for p in response.data], ['Vodka Tasting'])
        response = self.client.get('/api/v1/products/', {'status': 'false'})
        self.assertEqual([p['name'] for p in response.data], ['Boat Party'])

    def test_active_products(self):
        """Test only active products are listed"""
        TestDataFactory.create_product(name='Active', product_type=self.product_type)
        TestDataFactory.create_product(name='Retired', product_type=self.product_type, status=False)
        response = self.client.get('/api/v1/products/active/')
        self.assertEqual([p['name'] for p in response.data], ['Active'])

    def test_compact_products_include_active_addons(self):
        """Test the compact list carries active add-ons only"""
        product = TestDataFactory.create_product(name='Pub Crawl', product_type=self.product_type)
        shirt = TestDataFactory.create_addon(name='T-shirt', base_price=Decimal('25.00'))
        retired = TestDataFactory.create_addon(name='Old Photo', is_active=False)
        TestDataFactory.create_product_addon(product, shirt, max_per_attendee=1)
        TestDataFactory.create_product_addon(product, retired)

        response = self.client.get('/api/v1/products/', {'view': 'compact'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['price'], '100.00')
        self.assertEqual(response.data[0]['addons'], [
            {'addon_id': shirt.id, 'name': 'T-shirt', 'max_per_attendee': 1, 'price': '25.00'}
        ])

    def test_compact_cache_invalidated_on_save(self):
        """Test saving a product refreshes the cached compact list"""
        product = TestDataFactory.create_product(name='Pub Crawl', product_type=self.product_type)
        self.client.get('/api/v1/products/', {'view': 'compact'})
        product.name = 'Pub Crawl Deluxe'
        product.save()
        response = self.client.get('/api/v1/products/', {'view': 'compact'})
        self.assertEqual(response.data[0]['name'], 'Pub Crawl Deluxe')

    def test_delete_product_type_in_use(self):
        """Test a product type with products cannot be deleted"""
        TestDataFactory.create_product(product_type=self.product_type)
        response = self.client.delete(f'/api/v1/product-types/{self.product_type.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_product_table_view(self):
        """Test the table envelope for products"""
        TestDataFactory.create_product(product_type=self.product_type)
        response = self.client.get('/api/v1/products/', {'view': 'table'})
        self.assertEqual(len(response.data[0]['data']), 1)
        columns = {c['accessorKey']: c['type'] for c in response.data[0]['columns']}
        self.assertEqual(columns['status'], 'boolean')
        self.assertEqual(columns['updated_at'], 'date')


class ProductPriceAPITests(TestCase):
    """Test dated product price endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.product = TestDataFactory.create_product(price=Decimal('100.00'))

    def test_create_price_window(self):
        """Test an open-ended price from an empty valid_to"""
        data = {'product': self.product.id, 'price': '110.00', 'valid_from': '2024-01-01', 'valid_to': ''}
        response = self.client.post('/api/v1/product-prices/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['valid_to'])

    def test_reject_inverted_window(self):
        """Test valid_to before valid_from is rejected"""
        data = {'product': self.product.id, 'price': '110.00', 'valid_from': '2024-02-01', 'valid_to': '2024-01-01'}
        response = self.client.post('/api/v1/product-prices/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('valid_to', response.data)

    def test_price_lookup(self):
        """Test the price lookup endpoint reports the source"""
        ProductPrice.objects.create(product=self.product, price=Decimal('130.00'), valid_from=date(2024, 5, 1))
        response = self.client.get(f'/api/v1/products/{self.product.id}/price/', {'date': '2024-05-10'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['price'], '130.00')
        self.assertEqual(response.data['source'], 'product_price')
        self.assertIsNone(response.data['channel_id'])

    def test_price_lookup_bad_date(self):
        """Test an invalid date is rejected"""
        response = self.client.get(f'/api/v1/products/{self.product.id}/price/', {'date': 'soon'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_malformed_ids_rejected(self):
        """Test non-numeric channel and product ids give 400 instead of a server error"""
        response = self.client.get(f'/api/v1/products/{self.product.id}/price/', {'channel': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'Invalid channel id'})
        response = self.client.get(f'/api/v1/products/{self.product.id}/price/', {'channel': 999999})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        for url in ('/api/v1/product-prices/', '/api/v1/product-addons/'):
            response = self.client.get(url, {'product': 'abc'})
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(response.data, {'error': 'Invalid product id'})


class ProductAliasTests(TestCase):
    """Test product alias matching and endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.crawl = TestDataFactory.create_product(name='Pub Crawl')
        self.boat = TestDataFactory.create_product(name='Boat Party')

    def test_normalize_label(self):
        """Test booking-email noise is stripped from labels"""
        self.assertEqual(normalize_label('Cancelled: ##Pub&nbsp;Crawl &amp; Shots '), 'pub crawl & shots')
        self.assertEqual(normalize_label(None), '')

    def test_match_order_and_types(self):
        """Test aliases are tried by priority and inactive or unassigned ones are skipped"""
        ProductAlias.objects.create(product=self.crawl, label='Krakow', priority=50)
        ProductAlias.objects.create(product=self.boat, label='boat', match_type='exact', priority=10)
        ProductAlias.objects.create(product=self.boat, label=r'vistula\s+cruise', match_type='regex', priority=20)
        ProductAlias.objects.create(product=self.boat, label='krakow night', priority=1, active=False)
        ProductAlias.objects.create(product=None, label='krakow', priority=2)

        self.assertEqual(match_product_alias('Krakow Night Crawl').product, self.crawl)
        self.assertEqual(match_product_alias('  BOAT ').product, self.boat)
        self.assertIsNone(match_product_alias('boat trip'))
        self.assertEqual(match_product_alias('Vistula   Cruise at dusk').product, self.boat)
        self.assertIsNone(match_product_alias(''))

    def test_invalid_stored_pattern_skipped(self):
        """Test a regex alias that does not compile is skipped"""
        ProductAlias.objects.create(product=self.boat, label='boat(', match_type='regex', priority=1)
        ProductAlias.objects.create(product=self.crawl, label='boat', priority=2)
        self.assertEqual(match_product_alias('boat( party').product, self.crawl)

    def test_create_alias(self):
        """Test creating an alias stores the normalized label and an audit entry"""
        data = {'label': '  Rebooked: Pub Crawl ', 'product': self.crawl.id}
        response = self.client.post('/api/v1/product-aliases/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['label'], 'Rebooked: Pub Crawl')
        self.assertEqual(response.data['normalized_label'], 'pub crawl')
        self.assertEqual(response.data['match_type'], 'contains')
        self.assertEqual(response.data['priority'], 100)
        self.assertEqual(response.data['product_name'], 'Pub Crawl')
        alias = ProductAlias.objects.get(pk=response.data['id'])
        self.assertEqual(alias.created_by, self.user)
        self.assertTrue(AuditLog.objects.filter(model_name='ProductAlias', action='create').exists())

    def test_create_alias_validation(self):
        """Test blank labels, unknown match types and broken patterns are rejected"""
        response = self.client.post('/api/v1/product-aliases/', {'label': '   '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('label', response.data)
        response = self.client.post('/api/v1/product-aliases/', {'label': 'crawl', 'match_type': 'fuzzy'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('match_type', response.data)
        response = self.client.post('/api/v1/product-aliases/', {'label': 'crawl(', 'match_type': 'regex'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('label', response.data)

    def test_list_filters(self):
        """Test the status and active filters"""
        ProductAlias.objects.create(product=self.crawl, label='crawl')
        ProductAlias.objects.create(product=None, label='mystery tour')
        ProductAlias.objects.create(product=self.boat, label='old boat', active=False)

        response = self.client.get('/api/v1/product-aliases/', {'status': 'pending'})
        self.assertEqual([a['label'] for a in response.data], ['mystery tour'])
        response = self.client.get('/api/v1/product-aliases/', {'status': 'assigned', 'active': 'true'})
        self.assertEqual([a['label'] for a in response.data], ['crawl'])
        response = self.client.get('/api/v1/product-aliases/', {'view': 'table'})
        self.assertEqual(len(response.data[0]['data']), 3)

    def test_assign_and_delete(self):
        """Test assigning a pending alias renormalizes its label, then deleting it"""
        alias = ProductAlias.objects.create(product=None, label='mystery tour')
        response = self.client.patch(f'/api/v1/product-aliases/{alias.id}/',
                                     {'product': self.boat.id, 'label': 'Mystery  Boat'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['normalized_label'], 'mystery boat')
        alias.refresh_from_db()
        self.assertEqual(alias.product, self.boat)
        self.assertEqual(alias.updated_by, self.user)

        response = self.client.delete(f'/api/v1/product-aliases/{alias.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(ProductAlias.objects.filter(pk=alias.id).exists())
