"""
Test suite for the dashboard
"""
from decimal import Decimal

import responses
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status

from lightcraft.core.test_utils import AuthenticatedClient, TestDataFactory, api_url
from .serializers import DashboardStatsSerializer, empty_dashboard_stats


class DashboardStatsSerializerTests(TestCase):
    """Test normalising the stats payload"""

    def test_low_stock_alert_levels(self):
        """Test out / warning / muted badges"""
        products = [
            TestDataFactory.create_product(name='Out', stock=0),
            TestDataFactory.create_product(name='Few', stock=4),
            TestDataFactory.create_product(name='Some', stock=12),
        ]
        data = DashboardStatsSerializer(TestDataFactory.create_dashboard_stats(low_stock_products=products)).data
        self.assertEqual([p['alert_level'] for p in data['low_stock_products']], ['out', 'warning', 'muted'])
        self.assertEqual(data['low_stock_count'], 3)

    def test_empty_stats(self):
        """Test fallback figures"""
        stats = empty_dashboard_stats()
        self.assertEqual(stats['total_sales_today'], Decimal('0.00'))
        self.assertEqual(stats['low_stock_products'], [])
        self.assertEqual(stats['recent_invoices'], [])


class DashboardViewTests(TestCase):
    """Test the dashboard page"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedClient()
        self.user = self.client.authenticate_user(TestDataFactory.create_session_user(name='Sana'))

    @responses.activate
    def test_dashboard_figures(self):
        """Test today's figures and lists"""
        stats = TestDataFactory.create_dashboard_stats(
            low_stock_products=[TestDataFactory.create_product(name='Panel Light', sku='PNL-1', stock=3)],
            recent_invoices=[TestDataFactory.create_invoice(invoice_id='inv9', customer_name='Hamza')],
            total_sales_today=1250,
            items_sold_today=7,
            invoices_today=2,
        )
        responses.add(responses.GET, api_url('/dashboard/stats'), json=stats, status=200)

        response = self.client.get('/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.context['stats']['total_sales_today'], Decimal('1250.00'))
        self.assertContains(response, 'Rs. 1,250.00')
        self.assertContains(response, 'Welcome back, Sana')
        self.assertContains(response, 'stat-card-urgent')
        self.assertContains(response, 'Panel Light')
        self.assertContains(response, 'alert-warning')
        self.assertContains(response, '/invoices/inv9/')
        self.assertContains(response, 'Hamza')

    @responses.activate
    def test_dashboard_all_stocked(self):
        """Test no alerts"""
        responses.add(responses.GET, api_url('/dashboard/stats'),
                      json=TestDataFactory.create_dashboard_stats(), status=200)
        response = self.client.get('/')
        self.assertNotContains(response, 'stat-card-urgent')
        self.assertContains(response, 'All products are well stocked')
        self.assertContains(response, 'No invoices yet')

    @responses.activate
    def test_dashboard_api_failure(self):
        """Test fallback when the stats call fails"""
        responses.add(responses.GET, api_url('/dashboard/stats'), body='down', status=503)
        response = self.client.get('/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertContains(response, 'Failed to fetch dashboard stats')
        self.assertEqual(response.context['stats']['low_stock_count'], 0)

    @responses.activate
    def test_expired_token_signs_out(self):
        """Test 401 from the API sends the user to login"""
        responses.add(responses.GET, api_url('/dashboard/stats'), json={'message': 'Not authorized'}, status=401)
        response = self.client.get('/')
        self.assertRedirects(response, '/login/?next=/', fetch_redirect_response=False)

    def test_requires_login(self):
        """Test anonymous users are redirected"""
        self.client.logout()
        response = self.client.get('/')
        self.assertRedirects(response, '/login/?next=/', fetch_redirect_response=False)
