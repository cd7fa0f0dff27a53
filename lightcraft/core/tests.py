"""
Test suite for the core app
Tests: API client, login/logout, session expiry, settings & users, global search, caching
"""
from decimal import Decimal
from urllib.parse import parse_qs, urlparse

import responses
from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.settings import api_settings

from .api_client import ApiClient
from .auth import SESSION_TOKEN_KEY, SESSION_USER_KEY
from .cache_utils import company_settings_key, get_company_settings
from .exception_handlers import api_exception_handler
from .exceptions import ApiError, SessionExpired
from .templatetags.shop_tags import money
from .test_utils import AuthenticatedAPIClient, AuthenticatedClient, TestDataFactory, api_url


class ApiClientTests(TestCase):
    """Test the shop API client"""

    def setUp(self):
        self.client_api = ApiClient(token='abc123')

    @responses.activate
    def test_sends_bearer_token_and_json_headers(self):
        """Test authorization and content headers"""
        responses.add(responses.GET, api_url('/auth/users'), json=[], status=200)
        self.client_api.list_users()
        headers = responses.calls[0].request.headers
        self.assertEqual(headers['Authorization'], 'Bearer abc123')
        self.assertEqual(headers['Content-Type'], 'application/json')

    @responses.activate
    def test_no_authorization_header_without_token(self):
        """Test login requests carry no bearer token"""
        responses.add(responses.POST, api_url('/auth/login'),
                      json=TestDataFactory.create_login_response(), status=200)
        ApiClient().login('admin@test.com', 'secret')
        self.assertNotIn('Authorization', responses.calls[0].request.headers)

    @responses.activate
    def test_error_uses_backend_message(self):
        """Test backend error message is surfaced"""
        responses.add(responses.POST, api_url('/auth/create-user'),
                      json={'message': 'User already exists'}, status=400)
        with self.assertRaises(ApiError) as ctx:
            self.client_api.create_user('Ali', 'ali@test.com', 'secret1', 'user')
        self.assertEqual(ctx.exception.message, 'User already exists')
        self.assertEqual(ctx.exception.status_code, 400)

    @responses.activate
    def test_error_falls_back_when_body_is_not_json(self):
        """Test fallback message on a non-JSON error body"""
        responses.add(responses.GET, api_url('/products'), body='Internal Server Error', status=500)
        with self.assertRaises(ApiError) as ctx:
            self.client_api.list_products()
        self.assertEqual(str(ctx.exception), 'Failed to fetch products')
        self.assertEqual(ctx.exception.status_code, 500)

    @responses.activate
    def test_transport_failure_raises_api_error(self):
        """Test connection failures become ApiError without a status"""
        # Nothing registered: responses refuses the connection
        with self.assertRaises(ApiError) as ctx:
            self.client_api.get_dashboard_stats()
        self.assertEqual(ctx.exception.message, 'Failed to fetch dashboard stats')
        self.assertIsNone(ctx.exception.status_code)

    @responses.activate
    def test_unauthorized_with_token_raises_session_expired(self):
        """Test 401 on an authenticated request"""
        responses.add(responses.GET, api_url('/settings'),
                      json={'message': 'Not authorized, token failed'}, status=401)
        with self.assertRaises(SessionExpired):
            self.client_api.get_company_settings()

    @responses.activate
    def test_unauthorized_login_is_plain_api_error(self):
        """Test bad credentials are not treated as an expired session"""
        responses.add(responses.POST, api_url('/auth/login'),
                      json={'message': 'Invalid email or password'}, status=401)
        with self.assertRaises(ApiError) as ctx:
            ApiClient().login('admin@test.com', 'wrong')
        self.assertEqual(ctx.exception.message, 'Invalid email or password')

    @responses.activate
    def test_list_products_query_params(self):
        """Test keyword and page are sent as keyword/pageNumber"""
        responses.add(responses.GET, api_url('/products'),
                      json=TestDataFactory.create_product_page([]), status=200)
        self.client_api.list_products(keyword='led', page=3)
        query = parse_qs(urlparse(responses.calls[0].request.url).query)
        self.assertEqual(query['keyword'], ['led'])
        self.assertEqual(query['pageNumber'], ['3'])

    @responses.activate
    def test_create_product_sends_multipart(self):
        """Test product fields go out as multipart form data"""
        responses.add(responses.POST, api_url('/products'),
                      json=TestDataFactory.create_product(), status=201)
        self.client_api.create_product({'name': 'Bulb', 'costPrice': Decimal('10.50')})
        request = responses.calls[0].request
        self.assertIn('multipart/form-data', request.headers['Content-Type'])
        self.assertIn(b'name="costPrice"', request.body)
        self.assertIn(b'10.50', request.body)

    @responses.activate
    def test_delete_with_empty_body(self):
        """Test 204 responses return an empty dict"""
        responses.add(responses.DELETE, api_url('/products/p1'), status=204)
        self.assertEqual(self.client_api.delete_product('p1'), {})


class LoginTests(TestCase):
    """Test login, logout and access control"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedClient()

    def test_login_page_renders(self):
        """Test login page"""
        response = self.client.get('/login/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertContains(response, 'Sign In')

    def test_login_requires_both_fields(self):
        """Test blank login form"""
        response = self.client.post('/login/', {'email': '', 'password': ''})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertContains(response, 'Please enter both email and password')

    @responses.activate
    def test_login_stores_token_and_user(self):
        """Test successful login"""
        payload = TestDataFactory.create_login_response(role='admin', token='tok-1', email='admin@test.com')
        responses.add(responses.POST, api_url('/auth/login'), json=payload, status=200)

        response = self.client.post('/login/', {'email': 'admin@test.com', 'password': 'secret'})

        self.assertRedirects(response, '/', fetch_redirect_response=False)
        session = self.client.session
        self.assertEqual(session[SESSION_TOKEN_KEY], 'tok-1')
        self.assertEqual(session[SESSION_USER_KEY]['email'], 'admin@test.com')
        self.assertEqual(session[SESSION_USER_KEY]['role'], 'admin')

    @responses.activate
    def test_login_redirects_to_next(self):
        """Test login honours ?next"""
        responses.add(responses.POST, api_url('/auth/login'),
                      json=TestDataFactory.create_login_response(), status=200)
        response = self.client.post('/login/?next=/inventory/', {'email': 'a@test.com', 'password': 'x'})
        self.assertRedirects(response, '/inventory/', fetch_redirect_response=False)

    @responses.activate
    def test_login_ignores_offsite_next(self):
        """Test open redirects are refused"""
        responses.add(responses.POST, api_url('/auth/login'),
                      json=TestDataFactory.create_login_response(), status=200)
        response = self.client.post('/login/', {
            'email': 'a@test.com', 'password': 'x', 'next': 'https://evil.example.com/',
        })
        self.assertRedirects(response, '/', fetch_redirect_response=False)

    @responses.activate
    def test_login_rejected_shows_backend_message(self):
        """Test rejected credentials"""
        responses.add(responses.POST, api_url('/auth/login'),
                      json={'message': 'Invalid email or password'}, status=401)
        response = self.client.post('/login/', {'email': 'a@test.com', 'password': 'bad'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertContains(response, 'Invalid email or password')
        self.assertNotIn(SESSION_TOKEN_KEY, self.client.session)

    def test_anonymous_redirected_to_login(self):
        """Test pages require a session token"""
        response = self.client.get('/inventory/')
        self.assertRedirects(response, '/login/?next=/inventory/', fetch_redirect_response=False)

    def test_logout_flushes_session(self):
        """Test logout"""
        self.client.authenticate_user()
        response = self.client.post('/logout/')
        self.assertRedirects(response, '/login/', fetch_redirect_response=False)
        self.assertNotIn(SESSION_TOKEN_KEY, self.client.session)

    def test_logout_requires_post(self):
        """Test logout via GET is refused"""
        self.client.authenticate_user()
        response = self.client.get('/logout/')
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)

    @responses.activate
    def test_expired_token_signs_out(self):
        """Test a 401 from the API sends the user back to login"""
        self.client.authenticate_user()
        responses.add(responses.GET, api_url('/dashboard/stats'),
                      json={'message': 'Not authorized, token failed'}, status=401)

        response = self.client.get('/')

        self.assertRedirects(response, '/login/?next=/', fetch_redirect_response=False)
        self.assertNotIn(SESSION_TOKEN_KEY, self.client.session)


class SettingsViewTests(TestCase):
    """Test company settings and user management"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedClient()
        self.admin = self.client.authenticate_user(TestDataFactory.create_session_user(role='admin'))

    def _mock_settings_page(self, users=None):
        responses.add(responses.GET, api_url('/settings'),
                      json=TestDataFactory.create_company_settings(name='Light Craft Lahore', tax_rate=5),
                      status=200)
        responses.add(responses.GET, api_url('/auth/users'), json=users or [], status=200)

    @responses.activate
    def test_settings_page_lists_users(self):
        """Test settings page"""
        other = TestDataFactory.create_user(name='Sara Khan', email='sara@test.com')
        self._mock_settings_page(users=[other])
        response = self.client.get('/settings/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertContains(response, 'sara@test.com')
        self.assertContains(response, 'Light Craft Lahore')
        self.assertEqual(response.context['company_form'].initial['tax_rate'], Decimal('5.00'))

    @responses.activate
    def test_non_admin_redirected(self):
        """Test settings are admin only"""
        self.client.authenticate_user(TestDataFactory.create_session_user(role='user'))
        response = self.client.get('/settings/', follow=True)
        self.assertRedirects(response, '/')
        self.assertContains(response, 'Only administrators can access settings')

    @responses.activate
    def test_update_settings_invalidates_cache(self):
        """Test saving settings drops the cached copy"""
        responses.add(responses.GET, api_url('/settings'),
                      json=TestDataFactory.create_company_settings(), status=200)
        responses.add(responses.PUT, api_url('/settings'),
                      json=TestDataFactory.create_company_settings(name='New Name'), status=200)
        get_company_settings(ApiClient(token='test-token'))
        self.assertIsNotNone(cache.get(company_settings_key()))

        response = self.client.post('/settings/', {
            'name': 'New Name',
            'address': 'Lahore',
            'phone': '',
            'email': '',
            'tax_rate': '7.5',
            'currency_symbol': 'Rs.',
        })

        self.assertRedirects(response, '/settings/', fetch_redirect_response=False)
        self.assertIsNone(cache.get(company_settings_key()))
        put_call = [c for c in responses.calls if c.request.method == 'PUT'][0]
        self.assertIn(b'name="taxRate"', put_call.request.body)
        self.assertIn(b'7.5', put_call.request.body)

    @responses.activate
    def test_update_settings_rejects_tax_over_100(self):
        """Test tax rate range"""
        self._mock_settings_page()
        response = self.client.post('/settings/', {'name': 'Shop', 'tax_rate': '150'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.context['company_form'].is_valid())
        self.assertFalse([c for c in responses.calls if c.request.method == 'PUT'])

    @responses.activate
    def test_update_settings_rejects_large_logo(self):
        """Test logo size limit"""
        self._mock_settings_page()
        with self.settings(PRODUCT_IMAGE_MAX_BYTES=10):
            logo = TestDataFactory.create_image('logo.png')
            response = self.client.post('/settings/', {'name': 'Shop', 'logo': logo})
        self.assertIn('Image must be less than', response.context['company_form'].errors['logo'][0])

    @responses.activate
    def test_update_settings_rejects_non_image_logo(self):
        """Test logo must be an image"""
        self._mock_settings_page()
        logo = SimpleUploadedFile('logo.png', b'not an image', content_type='image/png')
        response = self.client.post('/settings/', {'name': 'Shop', 'logo': logo})
        self.assertIn('logo', response.context['company_form'].errors)

    @responses.activate
    def test_create_user(self):
        """Test creating a user"""
        responses.add(responses.POST, api_url('/auth/create-user'),
                      json=TestDataFactory.create_user(email='new@test.com'), status=201)
        response = self.client.post('/settings/users/', {
            'name': 'New User', 'email': 'new@test.com', 'password': 'secret1', 'role': 'user',
        })
        self.assertRedirects(response, '/settings/', fetch_redirect_response=False)
        self.assertEqual(len(responses.calls), 1)

    @responses.activate
    def test_create_user_requires_all_fields(self):
        """Test missing user fields"""
        self._mock_settings_page()
        response = self.client.post('/settings/users/', {'name': '', 'email': '', 'password': '', 'role': 'user'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertContains(response, 'Please fill in all fields')

    @responses.activate
    def test_create_user_duplicate_email(self):
        """Test backend duplicate email error surfaces"""
        self._mock_settings_page()
        responses.add(responses.POST, api_url('/auth/create-user'),
                      json={'message': 'User already exists'}, status=400)
        response = self.client.post('/settings/users/', {
            'name': 'Dup', 'email': 'dup@test.com', 'password': 'secret1', 'role': 'user',
        })
        self.assertContains(response, 'User already exists')

    @responses.activate
    def test_cannot_delete_self(self):
        """Test deleting your own account is refused without calling the API"""
        response = self.client.post(f"/settings/users/{self.admin['id']}/delete/", follow=True)
        self.assertContains(response, 'You cannot delete your own account')
        self.assertFalse([c for c in responses.calls if c.request.method == 'DELETE'])

    @responses.activate
    def test_delete_user(self):
        """Test deleting another user"""
        responses.add(responses.DELETE, api_url('/auth/users/u2'), json={'message': 'User removed'}, status=200)
        response = self.client.post('/settings/users/u2/delete/')
        self.assertRedirects(response, '/settings/', fetch_redirect_response=False)
        self.assertEqual(responses.calls[0].request.method, 'DELETE')


class GlobalSearchTests(TestCase):
    """Test the header search endpoint"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user()

    @responses.activate
    def test_blank_query_returns_empty_lists(self):
        """Test blank query does not hit the API"""
        response = self.client.get('/api/search/?q=%20')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'products': [], 'invoices': []})
        self.assertEqual(len(responses.calls), 0)

    @responses.activate
    def test_results_are_limited_to_five(self):
        """Test at most five products and five invoices"""
        products = [TestDataFactory.create_product(name=f'LED {i}') for i in range(7)]
        invoices = [TestDataFactory.create_invoice(customer_name='Ahmed') for _ in range(6)]
        responses.add(responses.GET, api_url('/products'),
                      json=TestDataFactory.create_product_page(products), status=200)
        responses.add(responses.GET, api_url('/invoices'), json=invoices, status=200)

        response = self.client.get('/api/search/?q=ahmed')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['products']), 5)
        self.assertEqual(len(response.data['invoices']), 5)
        self.assertEqual(response.data['invoices'][0]['url'], f"/invoices/{invoices[0]['_id']}/")
        self.assertEqual(response.data['products'][0]['url'], f"/inventory/{products[0]['_id']}/edit/")
        invoice_query = parse_qs(urlparse(responses.calls[1].request.url).query)
        self.assertEqual(invoice_query['customerName'], ['ahmed'])

    @responses.activate
    def test_backend_failure_returns_message(self):
        """Test API errors come back as JSON"""
        responses.add(responses.GET, api_url('/products'), json={'message': 'Database down'}, status=503)
        response = self.client.get('/api/search/?q=led')
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(response.data['message'], 'Database down')

    @responses.activate
    def test_unreachable_backend_is_bad_gateway(self):
        """Test 502 when the API never answers"""
        response = self.client.get('/api/search/?q=led')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(response.data['message'], 'Failed to fetch products')

    def test_requires_authentication(self):
        """Test anonymous access"""
        self.client.logout()
        response = self.client.get('/api/search/?q=led')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class CompanySettingsCacheTests(TestCase):
    """Test company settings caching"""

    def setUp(self):
        cache.clear()

    @responses.activate
    def test_settings_fetched_once_while_cached(self):
        """Test cache hit skips the API"""
        responses.add(responses.GET, api_url('/settings'),
                      json=TestDataFactory.create_company_settings(currency_symbol='PKR'), status=200)
        client = ApiClient(token='t')
        first = get_company_settings(client)
        second = get_company_settings(client)
        self.assertEqual(first['currency_symbol'], 'PKR')
        self.assertEqual(first, second)
        self.assertEqual(len(responses.calls), 1)

    @responses.activate
    def test_defaults_for_missing_fields(self):
        """Test defaults fill in what the API leaves out"""
        responses.add(responses.GET, api_url('/settings'), json={}, status=200)
        company = get_company_settings(ApiClient(token='t'))
        self.assertEqual(company['name'], 'Light Craft')
        self.assertEqual(company['currency_symbol'], 'Rs.')
        self.assertEqual(company['tax_rate'], Decimal('0.00'))


class TemplateTagTests(TestCase):
    """Test template filters"""

    def test_money_format(self):
        """Test currency formatting"""
        self.assertEqual(money(Decimal('1234.5'), 'Rs.'), 'Rs. 1,234.50')
        self.assertEqual(money(0, 'Rs.'), 'Rs. 0.00')
        self.assertEqual(money(Decimal('-20'), '$'), '-$ 20.00')

    def test_money_invalid_value(self):
        """Test non-numeric input renders blank"""
        self.assertEqual(money(None), '')
        self.assertEqual(money('abc'), '')


class ExceptionHandlerTests(TestCase):
    """Test how API failures are reported by the JSON endpoints"""

    def test_configured_for_rest_framework(self):
        """Test DRF uses the shop handler"""
        self.assertIs(api_settings.EXCEPTION_HANDLER, api_exception_handler)

    def test_backend_status_passed_through(self):
        """Test 4xx and 5xx from the API keep their status"""
        for code in (404, 409, 500, 503):
            response = api_exception_handler(ApiError('Backend said no', code), {})
            self.assertEqual(response.status_code, code)
            self.assertEqual(response.data, {'message': 'Backend said no'})

    def test_missing_status_is_bad_gateway(self):
        """Test 502 when there was no response"""
        response = api_exception_handler(ApiError('Failed to fetch products'), {})
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)

    def test_other_errors_use_default_handler(self):
        """Test validation errors still return 400"""
        response = api_exception_handler(ValidationError({'q': ['Required']}), {})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'q': ['Required']})
