"""
Test utilities and factories for creating test data
"""
from http.cookies import SimpleCookie
from io import BytesIO
import random
import string
import uuid

from django.conf import settings
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import Client
from django.utils import timezone
from PIL import Image
from rest_framework.test import APIClient

from .auth import SESSION_TOKEN_KEY, SESSION_USER_KEY


def api_url(path):
    """Absolute shop API URL for ``path``, for registering ``responses`` mocks"""
    return f"{settings.LIGHTCRAFT_API_URL}{path}"


class TestDataFactory:
    """Factory class for shop API payloads, shaped the way the backend sends them"""
    __test__ = False

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def object_id():
        """24-character hex id like the backend's"""
        return uuid.uuid4().hex[:24]

    @staticmethod
    def create_user(name=None, email=None, role='user', user_id=None):
        """User as returned by ``GET /auth/users``"""
        if not name:
            name = f'User {TestDataFactory.random_string(6)}'
        if not email:
            email = f'{TestDataFactory.random_string(8).lower()}@test.com'
        return {
            '_id': user_id or TestDataFactory.object_id(),
            'name': name,
            'email': email,
            'role': role,
        }

    @staticmethod
    def create_login_response(role='admin', token=None, **kwargs):
        """``POST /auth/login`` success body: user fields plus the token"""
        payload = TestDataFactory.create_user(role=role, **kwargs)
        payload['token'] = token or f'token-{TestDataFactory.random_string(16)}'
        return payload

    @staticmethod
    def create_product(name=None, sku=None, cost_price=100, selling_price=150, stock=50,
                       low_stock_threshold=20, product_id=None, image_url=None):
        """Product as returned by ``GET /products/<id>``"""
        if not name:
            name = f'Product {TestDataFactory.random_string(6)}'
        if not sku:
            sku = f'SKU-{TestDataFactory.random_string(6).upper()}'
        product = {
            '_id': product_id or TestDataFactory.object_id(),
            'name': name,
            'sku': sku,
            'description': f'Test description for {name}',
            'costPrice': cost_price,
            'sellingPrice': selling_price,
            'stock': stock,
            'lowStockThreshold': low_stock_threshold,
            'createdAt': timezone.now().isoformat(),
        }
        if image_url:
            product['image'] = {'url': image_url, 'public_id': TestDataFactory.random_string(8)}
        return product

    @staticmethod
    def create_product_page(products, page=1, pages=1):
        """``GET /products`` body"""
        return {'products': products, 'page': page, 'pages': pages}

    @staticmethod
    def create_invoice(items=None, customer_name='Walk-in Customer', customer_phone='',
                       discount=0, tax_rate=0, invoice_id=None, invoice_number=None,
                       payment_method='Cash', payment_status='Paid'):
        """Invoice as returned by ``GET /invoices/<id>``; totals are worked out from the items"""
        if items is None:
            items = [{
                'product': TestDataFactory.object_id(),
                'name': 'LED Bulb 12W',
                'sku': 'LED-12W',
                'price': 150,
                'quantity': 2,
            }]
        subtotal = sum(item['price'] * item['quantity'] for item in items)
        tax = round((subtotal - discount) * tax_rate / 100, 2)
        if not invoice_number:
            invoice_number = f"INV-{timezone.now().strftime('%Y%m%d')}-{random.randint(0, 999):03d}"
        return {
            '_id': invoice_id or TestDataFactory.object_id(),
            'invoiceNumber': invoice_number,
            'customerName': customer_name,
            'customerPhone': customer_phone,
            'items': items,
            'subTotal': subtotal,
            'discountAmount': discount,
            'taxRate': tax_rate,
            'taxAmount': tax,
            'grandTotal': subtotal - discount + tax,
            'paymentMethod': payment_method,
            'paymentStatus': payment_status,
            'creator': {'name': 'Test Admin'},
            'createdAt': timezone.now().isoformat(),
        }

    @staticmethod
    def create_company_settings(name='Light Craft', tax_rate=0, currency_symbol='Rs.', logo_url=None):
        """``GET /settings`` body"""
        data = {
            'name': name,
            'address': '12 Hall Road, Lahore',
            'phone': '042-1234567',
            'email': 'info@lightcraft.test',
            'taxRate': tax_rate,
            'currencySymbol': currency_symbol,
        }
        if logo_url:
            data['logo'] = {'url': logo_url}
        return data

    @staticmethod
    def create_dashboard_stats(low_stock_products=None, recent_invoices=None, total_sales_today=0,
                               items_sold_today=0, invoices_today=0):
        """``GET /dashboard/stats`` body"""
        low_stock_products = low_stock_products or []
        return {
            'totalSalesToday': total_sales_today,
            'itemsSoldToday': items_sold_today,
            'invoicesToday': invoices_today,
            'lowStockCount': len(low_stock_products),
            'lowStockProducts': low_stock_products,
            'recentInvoices': recent_invoices or [],
        }

    @staticmethod
    def create_image(name='image.png', size=(20, 20), color='white'):
        """A real PNG upload"""
        buffer = BytesIO()
        Image.new('RGB', size, color).save(buffer, format='PNG')
        return SimpleUploadedFile(name, buffer.getvalue(), content_type='image/png')

    @staticmethod
    def create_session_user(role='admin', **kwargs):
        """The ``{id, name, email, role}`` dict kept in the session after login"""
        user = TestDataFactory.create_user(role=role, **kwargs)
        return {'id': user['_id'], 'name': user['name'], 'email': user['email'], 'role': user['role']}


class SessionTokenClientMixin:
    """Signs a test client in by writing the API token into its session"""

    def authenticate_user(self, user=None, token='test-token'):
        """Store ``user`` (a session user dict) and ``token``; returns the user"""
        user = user or TestDataFactory.create_session_user()
        session = self.session
        session[SESSION_TOKEN_KEY] = token
        session[SESSION_USER_KEY] = user
        session.save()
        return user

    def logout(self):
        """Drop the session cookie"""
        self.cookies = SimpleCookie()


class AuthenticatedClient(SessionTokenClientMixin, Client):
    """Django test client for page views"""


class AuthenticatedAPIClient(SessionTokenClientMixin, APIClient):
    """DRF test client for the JSON endpoints"""
