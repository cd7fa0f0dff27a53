from decimal import Decimal

from rest_framework import serializers

from lightcraft.catalog.filters import alert_level
from lightcraft.catalog.serializers import ProductSerializer
from lightcraft.core.serializers import MoneyField
from lightcraft.pos.serializers import InvoiceSerializer


class LowStockProductSerializer(ProductSerializer):
    alert_level = serializers.SerializerMethodField()

    def get_alert_level(self, obj):
        return alert_level(obj.get('stock'))


class DashboardStatsSerializer(serializers.Serializer):
    total_sales_today = MoneyField(source='totalSalesToday', default=Decimal('0.00'))
    items_sold_today = serializers.IntegerField(source='itemsSoldToday', default=0)
    invoices_today = serializers.IntegerField(source='invoicesToday', default=0)
    low_stock_count = serializers.IntegerField(source='lowStockCount', default=0)
    low_stock_products = LowStockProductSerializer(source='lowStockProducts', many=True, default=list)
    recent_invoices = InvoiceSerializer(source='recentInvoices', many=True, default=list)


def empty_dashboard_stats():
    return dict(DashboardStatsSerializer({}).data)
