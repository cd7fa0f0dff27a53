"""
Test suite for the POS app
Tests: cart math, invoice numbering & payload, date filters, cart API, checkout, invoice pages
"""
import json
import re
from datetime import date, datetime, time, timezone as dt_timezone
from decimal import Decimal
from urllib.parse import parse_qs, urlparse

import responses
from django.core.cache import cache
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status

from lightcraft.core.test_utils import AuthenticatedAPIClient, AuthenticatedClient, TestDataFactory, api_url
from .cart import Cart, CartError, CartItemNotFound, InsufficientStock
from .filters import invoice_date_range, to_api_datetime
from .forms import InvoiceFilterForm
from .utils import build_invoice_payload, generate_invoice_number


def product(product_id='p1', name='LED Bulb', sku='LED-1', selling_price='150.00', stock=10):
    """A product as the cart receives it (already normalised)"""
    return {'id': product_id, 'name': name, 'sku': sku, 'selling_price': Decimal(selling_price), 'stock': stock}


class CartTests(TestCase):
    """Test cart editing and totals"""

    def setUp(self):
        self.cart = Cart()

    def test_line_totals_and_subtotal(self):
        """Test line total is price x quantity"""
        self.cart.add(product('p1', selling_price='150.00'), 2)
        self.cart.add(product('p2', selling_price='99.99'), 3)
        self.assertEqual([item.line_total for item in self.cart.items], [Decimal('300.00'), Decimal('299.97')])
        self.assertEqual(self.cart.subtotal, Decimal('599.97'))
        self.assertEqual(self.cart.total_items, 5)

    def test_adding_same_product_merges(self):
        """Test a repeated product increases quantity"""
        self.cart.add(product('p1'))
        self.cart.add(product('p1'), 2)
        self.assertEqual(len(self.cart.items), 1)
        self.assertEqual(self.cart.items[0].quantity, 3)

    def test_add_beyond_stock(self):
        """Test stock limit on add"""
        self.cart.add(product('p1', stock=2), 2)
        with self.assertRaises(InsufficientStock):
            self.cart.add(product('p1', stock=2))
        self.assertEqual(self.cart.items[0].quantity, 2)

    def test_quantity_must_be_positive(self):
        """Test quantity below 1 is rejected"""
        with self.assertRaises(CartError):
            self.cart.add(product('p1'), 0)
        item = self.cart.add(product('p1'))
        with self.assertRaises(CartError):
            self.cart.update_quantity(item.id, 0)

    def test_update_quantity_checks_stock(self):
        """Test stock limit on update"""
        item = self.cart.add(product('p1', stock=4))
        self.cart.update_quantity(item.id, 4)
        with self.assertRaises(InsufficientStock):
            self.cart.update_quantity(item.id, 5)

    def test_negative_price_clamped(self):
        """Test price override cannot go below zero"""
        item = self.cart.add(product('p1'))
        self.cart.update_price(item.id, '-10')
        self.assertEqual(item.price, Decimal('0.00'))
        self.cart.update_price(item.id, '120.5')
        self.assertEqual(item.price, Decimal('120.50'))

    def test_remove_and_missing_item(self):
        """Test removing lines"""
        item = self.cart.add(product('p1'))
        self.cart.remove(item.id)
        self.assertTrue(self.cart.is_empty)
        with self.assertRaises(CartItemNotFound):
            self.cart.remove(item.id)

    def test_grand_total_is_subtotal_minus_discount(self):
        """Test grand total without tax"""
        self.cart.add(product('p1', selling_price='150.00'), 2)
        self.cart.add(product('p2', selling_price='50.00'), 1)
        totals = self.cart.totals(discount='30')
        self.assertEqual(totals.subtotal, Decimal('350.00'))
        self.assertEqual(totals.grand_total, Decimal('320.00'))
        self.assertTrue(totals.can_save)

    def test_tax_on_discounted_amount(self):
        """Test tax is charged after discount"""
        self.cart.add(product('p1', selling_price='150.00'), 2)
        totals = self.cart.totals(discount='50', tax_rate='10')
        self.assertEqual(totals.tax, Decimal('25.00'))
        self.assertEqual(totals.grand_total, Decimal('275.00'))

    def test_negative_discount_treated_as_zero(self):
        """Test discount floor"""
        self.cart.add(product('p1', selling_price='100.00'))
        totals = self.cart.totals(discount='-20')
        self.assertEqual(totals.discount, Decimal('0.00'))
        self.assertEqual(totals.grand_total, Decimal('100.00'))

    def test_discount_exceeding_subtotal_blocks_save(self):
        """Test discount above subtotal"""
        self.cart.add(product('p1', selling_price='100.00'))
        totals = self.cart.totals(discount='150')
        self.assertTrue(totals.discount_exceeds_subtotal)
        self.assertFalse(totals.can_save)
        self.assertEqual(totals.applied_discount, Decimal('100.00'))
        self.assertEqual(totals.grand_total, Decimal('0.00'))

    def test_tax_rate_clamped(self):
        """Test tax rate stays within 0-100"""
        self.cart.add(product('p1', selling_price='100.00'))
        self.assertEqual(self.cart.totals(tax_rate='250').tax_rate, Decimal('100'))
        self.assertEqual(self.cart.totals(tax_rate='-5').tax, Decimal('0.00'))

    def test_empty_or_processing_cannot_save(self):
        """Test save disabled for empty cart or while saving"""
        self.assertFalse(self.cart.totals().can_save)
        self.cart.add(product('p1'))
        self.assertTrue(self.cart.totals().can_save)
        self.assertFalse(self.cart.totals(processing=True).can_save)

    def test_session_round_trip(self):
        """Test cart survives the session"""
        session = self.client.session
        self.cart.add(product('p1', selling_price='12.50'), 2)
        self.cart.save(session)
        loaded = Cart.load(session)
        self.assertEqual(loaded.cart_number, self.cart.cart_number)
        self.assertEqual(loaded.items[0].price, Decimal('12.50'))
        self.assertEqual(loaded.items[0].quantity, 2)

    def test_clear_starts_new_cart_number(self):
        """Test clearing issues a new number"""
        number = self.cart.cart_number
        self.cart.add(product('p1'))
        self.cart.clear()
        self.assertTrue(self.cart.is_empty)
        self.assertNotEqual(self.cart.cart_number, number)


class InvoiceUtilsTests(TestCase):
    """Test invoice numbering and payload"""

    def test_invoice_number_format(self):
        """Test INV-YYYYMMDD-NNN"""
        number = generate_invoice_number(date(2024, 1, 5))
        self.assertRegex(number, r'^INV-20240105-\d{3}$')

    def test_payload_defaults_walk_in_customer(self):
        """Test blank customer name"""
        cart = Cart()
        cart.add(product('p1', selling_price='150.00'), 2)
        totals = cart.totals(discount='20', tax_rate='5')
        payload = build_invoice_payload(cart, totals, '  ', '', 'Card', 'Paid', invoice_number='INV-1')
        self.assertEqual(payload['customerName'], 'Walk-in Customer')
        self.assertEqual(payload['invoiceNumber'], 'INV-1')
        self.assertEqual(payload['items'], [
            {'product': 'p1', 'name': 'LED Bulb', 'sku': 'LED-1', 'price': 150.0, 'quantity': 2},
        ])
        self.assertEqual(payload['subTotal'], 300.0)
        self.assertEqual(payload['discountAmount'], 20.0)
        self.assertEqual(payload['taxAmount'], 14.0)
        self.assertEqual(payload['grandTotal'], 294.0)
        self.assertEqual(payload['paymentMethod'], 'Card')


class DateFilterTests(TestCase):
    """Test invoice date range filters"""

    def test_all_has_no_bounds(self):
        """Test all time"""
        self.assertEqual(invoice_date_range('all'), (None, None))
        self.assertEqual(invoice_date_range('bogus'), (None, None))

    def test_today(self):
        """Test today runs start to end of day"""
        start, end = invoice_date_range('today', today=date(2024, 3, 10))
        self.assertEqual(timezone.localtime(start).date(), date(2024, 3, 10))
        self.assertEqual(timezone.localtime(start).time(), time.min)
        self.assertEqual(timezone.localtime(end).date(), date(2024, 3, 10))
        self.assertEqual(timezone.localtime(end).time(), time.max)

    def test_presets(self):
        """Test 7/30/90 day windows"""
        for key, first_day in (('7days', date(2024, 3, 3)), ('30days', date(2024, 2, 9)), ('90days', date(2023, 12, 11))):
            start, end = invoice_date_range(key, today=date(2024, 3, 10))
            self.assertEqual(timezone.localtime(start).date(), first_day, key)
            self.assertEqual(timezone.localtime(end).date(), date(2024, 3, 10), key)

    def test_custom_range_inclusive(self):
        """Test custom dates cover whole days"""
        start, end = invoice_date_range('custom', start=date(2024, 1, 1), end=date(2024, 1, 31))
        self.assertEqual(timezone.localtime(start).time(), time.min)
        self.assertEqual(timezone.localtime(end).date(), date(2024, 1, 31))
        self.assertEqual(timezone.localtime(end).time(), time.max)

    def test_custom_range_open_ended(self):
        """Test custom range with only a start"""
        start, end = invoice_date_range('custom', start=date(2024, 1, 1))
        self.assertIsNotNone(start)
        self.assertIsNone(end)

    @override_settings(TIME_ZONE='UTC')
    def test_api_datetime_format(self):
        """Test UTC ISO format with Z"""
        value = datetime(2024, 3, 3, 0, 0, tzinfo=dt_timezone.utc)
        self.assertEqual(to_api_datetime(value), '2024-03-03T00:00:00.000Z')
        self.assertIsNone(to_api_datetime(None))

    def test_filter_form_rejects_reversed_range(self):
        """Test start after end"""
        form = InvoiceFilterForm({'date_filter': 'custom', 'start': '2024-02-01', 'end': '2024-01-01'})
        self.assertFalse(form.is_valid())
        form = InvoiceFilterForm({'q': 'ali'})
        self.assertTrue(form.is_valid())
        self.assertEqual(form.cleaned_data['date_filter'], 'all')


class CartApiTests(TestCase):
    """Test the cart JSON endpoints"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user()

    def _mock_product(self, product_id='p1', **kwargs):
        responses.add(responses.GET, api_url(f'/products/{product_id}'),
                      json=TestDataFactory.create_product(product_id=product_id, **kwargs), status=200)

    def _add(self, product_id='p1', quantity=1, query=''):
        return self.client.post(f'/api/pos/cart/items/{query}',
                                {'product_id': product_id, 'quantity': quantity}, format='json')

    def test_empty_cart(self):
        """Test a new cart"""
        response = self.client.get('/api/pos/cart/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['items'], [])
        self.assertTrue(response.data['cart_number'].startswith('CART-'))
        self.assertFalse(response.data['totals']['can_save'])

    @responses.activate
    def test_add_item_and_merge(self):
        """Test adding products"""
        self._mock_product('p1', selling_price=150, stock=10)
        response = self._add('p1')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['items'][0]['quantity'], 1)
        self.assertEqual(response.data['items'][0]['price'], '150.00')

        response = self._add('p1', 2)
        self.assertEqual(len(response.data['items']), 1)
        self.assertEqual(response.data['items'][0]['quantity'], 3)
        self.assertEqual(response.data['totals']['subtotal'], '450.00')

    @responses.activate
    def test_add_beyond_stock(self):
        """Test stock check on add"""
        self._mock_product('p1', stock=1)
        response = self._add('p1', 2)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('in stock', response.data['message'])

    @responses.activate
    def test_add_unknown_product(self):
        """Test backend 404 is passed through"""
        responses.add(responses.GET, api_url('/products/zzz'), json={'message': 'Product not found'}, status=404)
        response = self._add('zzz')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Product not found')

    @responses.activate
    def test_totals_with_discount_and_tax(self):
        """Test totals query parameters"""
        self._mock_product('p1', selling_price=150)
        self._add('p1', 2)
        response = self.client.get('/api/pos/cart/?discount=50&tax_rate=10')
        totals = response.data['totals']
        self.assertEqual(totals['subtotal'], '300.00')
        self.assertEqual(totals['tax'], '25.00')
        self.assertEqual(totals['grand_total'], '275.00')
        self.assertTrue(totals['can_save'])

        response = self.client.get('/api/pos/cart/?discount=500')
        self.assertTrue(response.data['totals']['discount_exceeds_subtotal'])
        self.assertFalse(response.data['totals']['can_save'])

    @responses.activate
    def test_invalid_totals_query_leaves_cart_unchanged(self):
        """Test a bad discount/tax query is rejected before the cart changes"""
        self._mock_product('p1', selling_price=150, stock=10)
        response = self._add('p1', query='?discount=abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('discount', response.data)
        self.assertEqual(self.client.get('/api/pos/cart/').data['items'], [])

        item_id = self._add('p1').data['items'][0]['id']
        response = self.client.patch(f'/api/pos/cart/items/{item_id}/?tax_rate=abc', {'quantity': 3}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.delete('/api/pos/cart/?discount=abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        cart = self.client.get('/api/pos/cart/').data
        self.assertEqual(len(cart['items']), 1)
        self.assertEqual(cart['items'][0]['quantity'], 1)

    @responses.activate
    def test_extra_decimal_places_are_rounded(self):
        """Test amounts with more than two decimals round half-up to cents"""
        self._mock_product('p1', selling_price=150, stock=10)
        item_id = self._add('p1', 2).data['items'][0]['id']

        response = self.client.get('/api/pos/cart/?discount=1.005&tax_rate=17.125')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        totals = response.data['totals']
        self.assertEqual(totals['discount'], '1.01')
        self.assertEqual(totals['tax_rate'], '17.13')
        self.assertEqual(totals['tax'], '51.22')
        self.assertEqual(totals['grand_total'], '350.21')

        response = self.client.patch(f'/api/pos/cart/items/{item_id}/', {'price': '120.555'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['items'][0]['price'], '120.56')

    @responses.activate
    def test_update_and_remove_item(self):
        """Test quantity/price changes and removal"""
        self._mock_product('p1', selling_price=150, stock=10)
        item_id = self._add('p1').data['items'][0]['id']

        response = self.client.patch(f'/api/pos/cart/items/{item_id}/', {'quantity': 4, 'price': '120'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['items'][0]['quantity'], 4)
        self.assertEqual(response.data['items'][0]['line_total'], '480.00')

        response = self.client.patch(f'/api/pos/cart/items/{item_id}/', {'quantity': 0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.patch(f'/api/pos/cart/items/{item_id}/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.delete(f'/api/pos/cart/items/{item_id}/')
        self.assertEqual(response.data['items'], [])

    def test_update_missing_item(self):
        """Test unknown cart line"""
        response = self.client.patch('/api/pos/cart/items/cart-nope/', {'quantity': 2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    @responses.activate
    def test_clear_cart(self):
        """Test DELETE empties the cart"""
        self._mock_product('p1')
        number = self._add('p1').data['cart_number']
        response = self.client.delete('/api/pos/cart/')
        self.assertEqual(response.data['items'], [])
        self.assertNotEqual(response.data['cart_number'], number)

    def test_requires_authentication(self):
        """Test anonymous access"""
        self.client.logout()
        response = self.client.get('/api/pos/cart/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class CheckoutTests(TestCase):
    """Test saving a cart as an invoice"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user()

    def _fill_cart(self, selling_price=150, quantity=2):
        responses.add(responses.GET, api_url('/products/p1'),
                      json=TestDataFactory.create_product(product_id='p1', selling_price=selling_price, stock=50),
                      status=200)
        response = self.client.post('/api/pos/cart/items/', {'product_id': 'p1', 'quantity': quantity}, format='json')
        return response.data['cart_number']

    def _checkout(self, cart_number, **data):
        data.setdefault('cart_number', cart_number)
        return self.client.post('/api/pos/checkout/', data, format='json')

    @responses.activate
    def test_checkout_saves_invoice(self):
        """Test successful checkout"""
        number = self._fill_cart()
        saved = TestDataFactory.create_invoice(invoice_id='inv1', invoice_number='INV-20240101-001')
        responses.add(responses.POST, api_url('/invoices'), json=saved, status=201)

        response = self._checkout(number, customer_name='', discount='20', tax_rate='5',
                                  payment_method='Card', print=True)

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['print_url'], '/invoices/inv1/print/')
        self.assertNotEqual(response.data['cart_number'], number)
        self.assertEqual(response.data['invoice']['invoice_number'], 'INV-20240101-001')

        sent = json.loads(responses.calls[-1].request.body)
        self.assertRegex(sent['invoiceNumber'], r'^INV-\d{8}-\d{3}$')
        self.assertEqual(sent['customerName'], 'Walk-in Customer')
        self.assertEqual(sent['paymentMethod'], 'Card')
        self.assertEqual(sent['subTotal'], 300.0)
        self.assertEqual(sent['discountAmount'], 20.0)
        self.assertEqual(sent['taxAmount'], 14.0)
        self.assertEqual(sent['grandTotal'], 294.0)

        cart = self.client.get('/api/pos/cart/').data
        self.assertEqual(cart['items'], [])

    @responses.activate
    def test_save_only_has_no_print_url(self):
        """Test print flag off"""
        number = self._fill_cart()
        responses.add(responses.POST, api_url('/invoices'), json=TestDataFactory.create_invoice(), status=201)
        response = self._checkout(number)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['print_url'])

    @responses.activate
    def test_repeat_submit_rejected(self):
        """Test the same cart cannot be saved twice"""
        number = self._fill_cart()
        responses.add(responses.POST, api_url('/invoices'), json=TestDataFactory.create_invoice(), status=201)
        self.assertEqual(self._checkout(number).status_code, status.HTTP_201_CREATED)

        response = self._checkout(number)

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        invoice_posts = [c for c in responses.calls if c.request.method == 'POST' and c.request.url.endswith('/invoices')]
        self.assertEqual(len(invoice_posts), 1)

    def test_empty_cart_rejected(self):
        """Test checkout of an empty cart"""
        number = self.client.get('/api/pos/cart/').data['cart_number']
        response = self._checkout(number)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Cart is empty')

    @responses.activate
    def test_discount_above_subtotal_rejected(self):
        """Test discount larger than the subtotal"""
        number = self._fill_cart(selling_price=100, quantity=1)
        response = self._checkout(number, discount='150')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse([c for c in responses.calls if c.request.url.endswith('/invoices')])

    @responses.activate
    def test_checkout_rounds_extra_decimal_places(self):
        """Test a discount typed with three decimals is saved rounded"""
        number = self._fill_cart()
        responses.add(responses.POST, api_url('/invoices'), json=TestDataFactory.create_invoice(), status=201)

        response = self._checkout(number, discount='10.005', tax_rate='5')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        sent = json.loads(responses.calls[-1].request.body)
        self.assertEqual(sent['discountAmount'], 10.01)
        self.assertEqual(sent['taxAmount'], 14.5)
        self.assertEqual(sent['grandTotal'], 304.49)

    @responses.activate
    def test_invalid_payment_method(self):
        """Test payment method choices"""
        number = self._fill_cart()
        response = self._checkout(number, payment_method='Bitcoin')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('payment_method', response.data)

    @responses.activate
    def test_backend_failure_keeps_cart(self):
        """Test a failed save leaves the cart intact"""
        number = self._fill_cart()
        responses.add(responses.POST, api_url('/invoices'), json={'message': 'Stock update failed'}, status=500)

        response = self._checkout(number)

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['message'], 'Stock update failed')
        cart = self.client.get('/api/pos/cart/').data
        self.assertEqual(cart['cart_number'], number)
        self.assertEqual(len(cart['items']), 1)


class InvoicePageTests(TestCase):
    """Test the POS and invoice pages"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedClient()
        self.client.authenticate_user()

    @responses.activate
    def test_new_invoice_uses_company_tax_rate(self):
        """Test default tax rate from settings"""
        responses.add(responses.GET, api_url('/settings'),
                      json=TestDataFactory.create_company_settings(tax_rate=5), status=200)
        response = self.client.get('/pos/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.context['default_tax_rate'], Decimal('5.00'))
        self.assertContains(response, 'data-cart-number="CART-')
        self.assertContains(response, 'id="pos-search"')
        self.assertContains(response, 'Save &amp; Print')

    def _save_buttons(self, response):
        return re.findall(r'<button[^>]*save-invoice[^>]*>', response.content.decode())

    @responses.activate
    def test_save_buttons_follow_cart(self):
        """Test save buttons are disabled for an empty cart and enabled once it has items"""
        buttons = self._save_buttons(self.client.get('/pos/'))
        self.assertEqual(len(buttons), 2)
        self.assertTrue(all('disabled' in button for button in buttons))

        cart = Cart()
        cart.add(product('p1'))
        session = self.client.session
        cart.save(session)
        session.save()

        buttons = self._save_buttons(self.client.get('/pos/'))
        self.assertFalse(any('disabled' in button for button in buttons))

    @responses.activate
    def test_invoice_list_filters(self):
        """Test date and customer filters go to the API"""
        invoices = [
            TestDataFactory.create_invoice(customer_name='Ali'),
            TestDataFactory.create_invoice(customer_name='Ali', discount=50),
        ]
        responses.add(responses.GET, api_url('/invoices'), json=invoices, status=200)

        response = self.client.get('/invoices/?q=Ali&date_filter=7days')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        call = [c for c in responses.calls if '/invoices' in c.request.url][0]
        query = parse_qs(urlparse(call.request.url).query)
        self.assertEqual(query['customerName'], ['Ali'])
        self.assertTrue(re.match(r'^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$', query['startDate'][0]))
        self.assertIn('endDate', query)
        self.assertEqual(response.context['invoice_count'], 2)
        self.assertEqual(response.context['invoice_total'], Decimal('550.00'))

    @responses.activate
    def test_invoice_list_all_time_has_no_dates(self):
        """Test no date params for all time"""
        responses.add(responses.GET, api_url('/invoices'), json={'invoices': []}, status=200)
        self.client.get('/invoices/?date_filter=all')
        call = [c for c in responses.calls if '/invoices' in c.request.url][0]
        self.assertEqual(urlparse(call.request.url).query, '')

    @responses.activate
    def test_invoice_list_reversed_custom_range(self):
        """Test invalid custom range shows an error"""
        responses.add(responses.GET, api_url('/invoices'), json=[], status=200)
        response = self.client.get('/invoices/?date_filter=custom&start=2024-02-01&end=2024-01-01')
        self.assertContains(response, 'Start date must be on or before the end date')

    @responses.activate
    def test_invoice_detail(self):
        """Test invoice detail page"""
        invoice = TestDataFactory.create_invoice(invoice_id='inv1', customer_name='Bilal', customer_phone='0300')
        responses.add(responses.GET, api_url('/invoices/inv1'), json=invoice, status=200)
        response = self.client.get('/invoices/inv1/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertContains(response, 'Bilal')
        self.assertContains(response, '/invoices/inv1/print/')
        self.assertEqual(response.context['invoice']['items'][0]['line_total'], Decimal('300.00'))

    @responses.activate
    def test_invoice_detail_not_found(self):
        """Test unknown invoice"""
        responses.add(responses.GET, api_url('/invoices/nope'), json={'message': 'Invoice not found'}, status=404)
        response = self.client.get('/invoices/nope/', follow=True)
        self.assertRedirects(response, '/invoices/')
        self.assertContains(response, 'Invoice not found')

    @responses.activate
    def test_print_view(self):
        """Test print document with company header"""
        responses.add(responses.GET, api_url('/invoices/inv1'),
                      json=TestDataFactory.create_invoice(invoice_id='inv1', invoice_number='INV-20240101-007'),
                      status=200)
        responses.add(responses.GET, api_url('/settings'),
                      json=TestDataFactory.create_company_settings(name='Light Craft Lahore'), status=200)
        response = self.client.get('/invoices/inv1/print/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertContains(response, 'Light Craft Lahore')
        self.assertContains(response, 'INV-20240101-007')
        self.assertContains(response, 'window.print()')
        self.assertContains(response, 'Sold To')
