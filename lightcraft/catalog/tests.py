"""
Test suite for the catalog app
Tests: product form validation, stock status, sorting, inventory pages, POS product lookup
"""
from decimal import Decimal
from urllib.parse import parse_qs, urlparse

import responses
from django.core.cache import cache
from django.core.exceptions import ValidationError
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from rest_framework import status

from lightcraft.core.test_utils import AuthenticatedAPIClient, AuthenticatedClient, TestDataFactory, api_url
from .filters import alert_level, next_sort_direction, sort_products, stock_status
from .forms import ProductForm
from .validators import validate_image_size, validate_sku


def product_form_data(**overrides):
    data = {
        'name': 'LED Bulb 12W',
        'sku': 'led-12w-001',
        'description': 'Cool white',
        'cost_price': '100',
        'selling_price': '150.50',
        'stock': '40',
        'low_stock_threshold': '',
    }
    data.update(overrides)
    return data


class ProductFormTests(TestCase):
    """Test product form validation"""

    def test_valid_form_maps_to_api_fields(self):
        """Test cleaned data and API field names"""
        form = ProductForm(product_form_data())
        self.assertTrue(form.is_valid(), form.errors)
        fields = form.api_fields()
        self.assertEqual(fields['sku'], 'LED-12W-001')
        self.assertEqual(fields['costPrice'], Decimal('100'))
        self.assertEqual(fields['sellingPrice'], Decimal('150.50'))
        self.assertEqual(fields['stock'], 40)
        self.assertEqual(fields['lowStockThreshold'], 20)

    def test_sku_format(self):
        """Test SKU allows letters, numbers and hyphens only"""
        form = ProductForm(product_form_data(sku='LED 12W!'))
        self.assertFalse(form.is_valid())
        self.assertEqual(form.errors['sku'], ['SKU can only contain letters, numbers, and hyphens'])

    def test_name_required_and_length(self):
        """Test product name rules"""
        form = ProductForm(product_form_data(name=''))
        self.assertEqual(form.errors['name'], ['Product name is required'])
        form = ProductForm(product_form_data(name='x' * 101))
        self.assertEqual(form.errors['name'], ['Product name must be less than 100 characters'])

    def test_non_numeric_prices(self):
        """Test prices must be numbers"""
        form = ProductForm(product_form_data(cost_price='abc', selling_price='12a'))
        self.assertFalse(form.is_valid())
        self.assertEqual(form.errors['cost_price'], ['Cost price must be a number'])
        self.assertEqual(form.errors['selling_price'], ['Selling price must be a number'])

    def test_negative_price(self):
        """Test prices cannot be negative"""
        form = ProductForm(product_form_data(selling_price='-1'))
        self.assertEqual(form.errors['selling_price'], ['Selling price cannot be negative'])

    def test_negative_quantity(self):
        """Test quantity cannot be negative"""
        form = ProductForm(product_form_data(stock='-5'))
        self.assertEqual(form.errors['stock'], ['Quantity cannot be negative'])

    def test_fractional_quantity(self):
        """Test quantity must be a whole number"""
        form = ProductForm(product_form_data(stock='2.5'))
        self.assertEqual(form.errors['stock'], ['Quantity must be a whole number'])

    def test_explicit_threshold_kept(self):
        """Test a given low stock threshold is used"""
        form = ProductForm(product_form_data(low_stock_threshold='5'))
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.api_fields()['lowStockThreshold'], 5)

    def test_labels_differ_for_edit(self):
        """Test quantity label on add vs edit"""
        self.assertEqual(ProductForm().fields['stock'].label, 'Starting Quantity')
        self.assertEqual(ProductForm(editing=True).fields['stock'].label, 'Stock Quantity')

    def test_valid_image_accepted(self):
        """Test a small image passes"""
        form = ProductForm(product_form_data(), {'image': TestDataFactory.create_image()})
        self.assertTrue(form.is_valid(), form.errors)

    def test_image_too_large(self):
        """Test image size limit"""
        with self.settings(PRODUCT_IMAGE_MAX_BYTES=10):
            form = ProductForm(product_form_data(), {'image': TestDataFactory.create_image()})
            self.assertFalse(form.is_valid())
            self.assertIn('image', form.errors)

    def test_image_size_validator(self):
        """Test the 5MB limit directly"""
        big = SimpleUploadedFile('big.png', b'0' * (5 * 1024 * 1024 + 1))
        with self.assertRaisesMessage(ValidationError, 'Image must be less than 5MB'):
            validate_image_size(big)
        validate_image_size(SimpleUploadedFile('small.png', b'0' * 1024))

    def test_sku_validator(self):
        """Test SKU validator accepts mixed case with hyphens"""
        validate_sku('Led-12w-001')
        with self.assertRaises(ValidationError):
            validate_sku('LED_12W')


class StockFilterTests(TestCase):
    """Test stock classification and sorting"""

    def test_stock_status(self):
        """Test critical/low/sufficient thresholds"""
        self.assertEqual(stock_status(10, 20), 'critical')
        self.assertEqual(stock_status(0, 20), 'critical')
        self.assertEqual(stock_status(15, 20), 'low')
        self.assertEqual(stock_status(20, 20), 'low')
        self.assertEqual(stock_status(21, 20), 'sufficient')
        self.assertEqual(stock_status(11, None), 'low')

    def test_alert_level(self):
        """Test dashboard alert badges"""
        self.assertEqual(alert_level(0), 'out')
        self.assertEqual(alert_level(-2), 'out')
        self.assertEqual(alert_level(5), 'warning')
        self.assertEqual(alert_level(6), 'muted')

    def test_sort_strings_case_insensitive(self):
        """Test name sort ignores case"""
        products = [{'name': 'bulb'}, {'name': 'Alpha'}, {'name': 'Chandelier'}]
        self.assertEqual([p['name'] for p in sort_products(products, 'name', 'asc')],
                         ['Alpha', 'bulb', 'Chandelier'])
        self.assertEqual([p['name'] for p in sort_products(products, 'name', 'desc')],
                         ['Chandelier', 'bulb', 'Alpha'])

    def test_sort_numbers(self):
        """Test numeric sort"""
        products = [{'stock': 5}, {'stock': 50}, {'stock': 0}]
        self.assertEqual([p['stock'] for p in sort_products(products, 'stock', 'desc')], [50, 5, 0])

    def test_unknown_sort_falls_back_to_name(self):
        """Test invalid sort field"""
        products = [{'name': 'b'}, {'name': 'a'}]
        self.assertEqual([p['name'] for p in sort_products(products, 'password', 'sideways')], ['a', 'b'])

    def test_next_sort_direction(self):
        """Test header click toggles"""
        self.assertEqual(next_sort_direction('name', 'asc', 'name'), 'desc')
        self.assertEqual(next_sort_direction('name', 'desc', 'name'), 'asc')
        self.assertEqual(next_sort_direction('name', 'desc', 'stock'), 'asc')


class ProductListViewTests(TestCase):
    """Test the inventory list page"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedClient()
        self.client.authenticate_user()

    @responses.activate
    def test_keyword_and_page_sent_to_api(self):
        """Test search and pagination parameters"""
        responses.add(responses.GET, api_url('/products'),
                      json=TestDataFactory.create_product_page([], page=2, pages=3), status=200)
        response = self.client.get('/inventory/?keyword=led&page=2')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        product_call = [c for c in responses.calls if '/products' in c.request.url][0]
        query = parse_qs(urlparse(product_call.request.url).query)
        self.assertEqual(query['keyword'], ['led'])
        self.assertEqual(query['pageNumber'], ['2'])
        self.assertEqual(response.context['pages'], 3)

    @responses.activate
    def test_local_sort_and_status(self):
        """Test the current page is sorted locally with stock badges"""
        products = [
            TestDataFactory.create_product(name='Bulb', stock=100),
            TestDataFactory.create_product(name='Lamp', stock=5),
            TestDataFactory.create_product(name='Strip', stock=15),
        ]
        responses.add(responses.GET, api_url('/products'),
                      json=TestDataFactory.create_product_page(products), status=200)

        response = self.client.get('/inventory/?sort=stock&dir=asc')

        listed = response.context['products']
        self.assertEqual([p['name'] for p in listed], ['Lamp', 'Strip', 'Bulb'])
        self.assertEqual([p['stock_status'] for p in listed], ['critical', 'low', 'sufficient'])
        stock_column = [c for c in response.context['columns'] if c['field'] == 'stock'][0]
        self.assertTrue(stock_column['active'])
        self.assertEqual(stock_column['dir'], 'desc')

    @responses.activate
    def test_search_box_is_debounced(self):
        """Test the search input carries the debounce delay"""
        responses.add(responses.GET, api_url('/products'),
                      json=TestDataFactory.create_product_page([]), status=200)
        response = self.client.get('/inventory/')
        self.assertContains(response, 'data-debounce="300"')
        self.assertContains(response, 'data-autosubmit')

    @responses.activate
    def test_api_failure_shows_message(self):
        """Test fetch failure renders an empty list with a notification"""
        responses.add(responses.GET, api_url('/products'), body='oops', status=500)
        response = self.client.get('/inventory/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertContains(response, 'Failed to fetch products')
        self.assertEqual(list(response.context['products']), [])

    @responses.activate
    def test_bare_list_response(self):
        """Test a plain list of products is accepted"""
        responses.add(responses.GET, api_url('/products'),
                      json=[TestDataFactory.create_product(name='Bulb')], status=200)
        response = self.client.get('/inventory/')
        self.assertEqual(len(response.context['products']), 1)


class ProductCrudViewTests(TestCase):
    """Test add, edit and delete product pages"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedClient()
        self.client.authenticate_user()

    def _post_calls(self, method):
        return [c for c in responses.calls if c.request.method == method and '/products' in c.request.url]

    @responses.activate
    def test_create_product(self):
        """Test adding a product"""
        responses.add(responses.POST, api_url('/products'),
                      json=TestDataFactory.create_product(sku='LED-12W-001'), status=201)
        response = self.client.post('/inventory/add/', product_form_data())
        self.assertRedirects(response, '/inventory/', fetch_redirect_response=False)
        body = self._post_calls('POST')[0].request.body
        self.assertIn(b'name="sku"', body)
        self.assertIn(b'LED-12W-001', body)
        self.assertIn(b'name="lowStockThreshold"', body)

    @responses.activate
    def test_create_product_with_image(self):
        """Test the image is uploaded with the product"""
        responses.add(responses.POST, api_url('/products'),
                      json=TestDataFactory.create_product(), status=201)
        data = product_form_data()
        data['image'] = TestDataFactory.create_image('bulb.png')
        response = self.client.post('/inventory/add/', data)
        self.assertRedirects(response, '/inventory/', fetch_redirect_response=False)
        body = self._post_calls('POST')[0].request.body
        self.assertIn(b'name="image"; filename="bulb.png"', body)

    @responses.activate
    def test_invalid_form_not_sent(self):
        """Test validation errors stay local"""
        response = self.client.post('/inventory/add/', product_form_data(sku='bad sku'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertContains(response, 'SKU can only contain letters, numbers, and hyphens')
        self.assertFalse(self._post_calls('POST'))

    @responses.activate
    def test_create_backend_error(self):
        """Test backend rejection re-renders the form"""
        responses.add(responses.POST, api_url('/products'),
                      json={'message': 'Product with this SKU already exists'}, status=400)
        response = self.client.post('/inventory/add/', product_form_data())
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertContains(response, 'Product with this SKU already exists')

    @responses.activate
    def test_edit_form_prefilled(self):
        """Test edit page loads the product"""
        product = TestDataFactory.create_product(name='Panel Light', sku='PNL-01', product_id='p1')
        responses.add(responses.GET, api_url('/products/p1'), json=product, status=200)
        response = self.client.get('/inventory/p1/edit/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.context['form'].initial['sku'], 'PNL-01')
        self.assertContains(response, 'Stock Quantity')

    @responses.activate
    def test_edit_product(self):
        """Test updating a product"""
        responses.add(responses.GET, api_url('/products/p1'),
                      json=TestDataFactory.create_product(product_id='p1'), status=200)
        responses.add(responses.PUT, api_url('/products/p1'),
                      json=TestDataFactory.create_product(product_id='p1'), status=200)
        response = self.client.post('/inventory/p1/edit/', product_form_data(name='Renamed'))
        self.assertRedirects(response, '/inventory/', fetch_redirect_response=False)
        self.assertIn(b'Renamed', self._post_calls('PUT')[0].request.body)

    @responses.activate
    def test_edit_missing_product(self):
        """Test unknown product redirects to the list"""
        responses.add(responses.GET, api_url('/products/nope'), json={'message': 'Product not found'}, status=404)
        response = self.client.get('/inventory/nope/edit/')
        self.assertRedirects(response, '/inventory/', fetch_redirect_response=False)

    @responses.activate
    def test_delete_product(self):
        """Test deleting a product"""
        responses.add(responses.DELETE, api_url('/products/p1'), json={'message': 'Product removed'}, status=200)
        response = self.client.post('/inventory/p1/delete/', {'name': 'Bulb'})
        self.assertRedirects(response, '/inventory/', fetch_redirect_response=False)
        self.assertEqual(len(self._post_calls('DELETE')), 1)

    def test_delete_requires_post(self):
        """Test GET cannot delete"""
        response = self.client.get('/inventory/p1/delete/')
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)


class ProductSearchTests(TestCase):
    """Test the POS product lookup endpoint"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user()

    @responses.activate
    def test_empty_query(self):
        """Test empty query returns nothing"""
        response = self.client.get('/api/products/search/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, [])
        self.assertEqual(len(responses.calls), 0)

    @responses.activate
    def test_matches_name_or_sku(self):
        """Test lookup by keyword"""
        products = [
            TestDataFactory.create_product(name='LED Bulb', sku='BLB-1', selling_price=250, stock=3),
            TestDataFactory.create_product(name='Ceiling Fan', sku='FAN-LED-2'),
            TestDataFactory.create_product(name='Switch', sku='SW-1'),
        ]
        responses.add(responses.GET, api_url('/products'),
                      json=TestDataFactory.create_product_page(products), status=200)

        response = self.client.get('/api/products/search/?q=led')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['name'] for p in response.data], ['LED Bulb', 'Ceiling Fan'])
        self.assertEqual(response.data[0]['selling_price'], '250.00')
        self.assertEqual(response.data[0]['stock'], 3)
