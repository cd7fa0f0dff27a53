from decimal import Decimal

from django.conf import settings
from rest_framework import serializers

from lightcraft.core.serializers import ImageSerializer, MoneyField, RemoteDateTimeField
from .filters import stock_status


class ProductSerializer(serializers.Serializer):
    id = serializers.CharField(source='_id', default='')
    name = serializers.CharField(default='')
    sku = serializers.CharField(default='')
    description = serializers.CharField(default='')
    cost_price = MoneyField(source='costPrice', default=Decimal('0.00'))
    selling_price = MoneyField(source='sellingPrice', default=Decimal('0.00'))
    stock = serializers.IntegerField(default=0)
    low_stock_threshold = serializers.IntegerField(
        source='lowStockThreshold', default=settings.DEFAULT_LOW_STOCK_THRESHOLD
    )
    image = ImageSerializer(required=False, allow_null=True)
    created_at = RemoteDateTimeField(source='createdAt', required=False, allow_null=True)
    updated_at = RemoteDateTimeField(source='updatedAt', required=False, allow_null=True)
    stock_status = serializers.SerializerMethodField()

    def get_stock_status(self, obj):
        return stock_status(obj.get('stock'), obj.get('lowStockThreshold'))


class ProductPageSerializer(serializers.Serializer):
    products = ProductSerializer(many=True, default=list)
    page = serializers.IntegerField(default=1)
    pages = serializers.IntegerField(default=1)


def normalize_product_page(raw):
    """``GET /products`` answers with a page object; older deployments send a bare list"""
    if isinstance(raw, list):
        raw = {'products': raw, 'page': 1, 'pages': 1}
    return ProductPageSerializer(raw).data


class ProductSearchResultSerializer(serializers.Serializer):
    """What the POS search box needs to show and add a product"""
    id = serializers.CharField()
    name = serializers.CharField()
    sku = serializers.CharField()
    selling_price = serializers.DecimalField(max_digits=14, decimal_places=2)
    stock = serializers.IntegerField()
    image_url = serializers.SerializerMethodField()

    def get_image_url(self, obj):
        image = obj.get('image') or {}
        return image.get('url') or None
