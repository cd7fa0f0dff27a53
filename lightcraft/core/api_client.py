"""
HTTP client for the remote shop API.

The API owns every product, invoice, user and the company settings. This
module only maps operations onto HTTP calls and turns failures into
:class:`ApiError`; normalising the JSON for templates is left to the
serializers.
"""
import logging

import requests
from django.conf import settings

from .exceptions import ApiError, SessionExpired

logger = logging.getLogger(__name__)


class ApiClient:
    """Thin wrapper around a ``requests.Session`` bound to one bearer token"""

    def __init__(self, base_url=None, token=None, timeout=None):
        self.base_url = (base_url or settings.LIGHTCRAFT_API_URL).rstrip('/')
        self.token = token
        self.timeout = timeout or settings.LIGHTCRAFT_API_TIMEOUT
        self.session = requests.Session()

    # ============ Plumbing ============

    def _headers(self, multipart=False):
        headers = {'Accept': 'application/json'}
        if not multipart:
            headers['Content-Type'] = 'application/json'
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'
        return headers

    @staticmethod
    def _multipart(fields, file_field=None, upload=None):
        """
        Build a ``files`` mapping so requests always sends multipart/form-data,
        even when no file is attached.
        """
        parts = {
            key: (None, '' if value is None else str(value))
            for key, value in fields.items()
        }
        if upload is not None:
            parts[file_field] = (
                upload.name,
                upload,
                getattr(upload, 'content_type', None) or 'application/octet-stream',
            )
        return parts

    @staticmethod
    def _error_message(response):
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            return body.get('message') or None
        return None

    def _request(self, method, path, fallback, params=None, json=None, files=None):
        url = f'{self.base_url}{path}'
        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json,
                files=files,
                headers=self._headers(multipart=files is not None),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"{method} {path} failed before a response: {e}")
            raise ApiError(fallback) from e

        if not response.ok:
            message = self._error_message(response) or fallback
            logger.warning(f"{method} {path} returned {response.status_code}: {message}")
            if response.status_code == 401 and self.token:
                raise SessionExpired(message, response.status_code)
            raise ApiError(message, response.status_code)

        if response.status_code == 204 or not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            logger.warning(f"{method} {path} returned a non-JSON body")
            raise ApiError(fallback, response.status_code) from e

    # ============ Auth API ============

    def login(self, email, password):
        return self._request('POST', '/auth/login', 'Login failed',
                             json={'email': email, 'password': password})

    def list_users(self):
        return self._request('GET', '/auth/users', 'Failed to fetch users')

    def create_user(self, name, email, password, role):
        return self._request('POST', '/auth/create-user', 'Failed to create user', json={
            'name': name,
            'email': email,
            'password': password,
            'role': role,
        })

    def delete_user(self, user_id):
        return self._request('DELETE', f'/auth/users/{user_id}', 'Failed to delete user')

    # ============ Product API ============

    def list_products(self, keyword=None, page=None):
        params = {}
        if keyword:
            params['keyword'] = keyword
        if page:
            params['pageNumber'] = page
        return self._request('GET', '/products', 'Failed to fetch products', params=params)

    def get_product(self, product_id):
        return self._request('GET', f'/products/{product_id}', 'Product not found')

    def create_product(self, fields, image=None):
        return self._request('POST', '/products', 'Failed to create product',
                             files=self._multipart(fields, 'image', image))

    def update_product(self, product_id, fields, image=None):
        return self._request('PUT', f'/products/{product_id}', 'Failed to update product',
                             files=self._multipart(fields, 'image', image))

    def delete_product(self, product_id):
        return self._request('DELETE', f'/products/{product_id}', 'Failed to delete product')

    # ============ Invoice API ============

    def create_invoice(self, payload):
        return self._request('POST', '/invoices', 'Failed to save invoice', json=payload)

    def list_invoices(self, start_date=None, end_date=None, customer_name=None):
        params = {}
        if start_date:
            params['startDate'] = start_date
        if end_date:
            params['endDate'] = end_date
        if customer_name:
            params['customerName'] = customer_name
        return self._request('GET', '/invoices', 'Failed to fetch invoices', params=params)

    def get_invoice(self, invoice_id):
        return self._request('GET', f'/invoices/{invoice_id}', 'Invoice not found')

    # ============ Dashboard & Settings API ============

    def get_dashboard_stats(self):
        return self._request('GET', '/dashboard/stats', 'Failed to fetch dashboard stats')

    def get_company_settings(self):
        return self._request('GET', '/settings', 'Failed to fetch settings')

    def update_company_settings(self, fields, logo=None):
        return self._request('PUT', '/settings', 'Failed to update settings',
                             files=self._multipart(fields, 'logo', logo))
