"""
Serializers that turn shop API JSON (camelCase, ``_id``) into the
snake_case dictionaries the templates and JSON endpoints use.
"""
from decimal import Decimal

from django.conf import settings
from django.utils.dateparse import parse_datetime
from rest_framework import serializers


class RemoteDateTimeField(serializers.Field):
    """ISO-8601 string from the API -> aware ``datetime`` (None if unparseable)"""

    def to_representation(self, value):
        if hasattr(value, 'isoformat'):
            return value
        try:
            return parse_datetime(str(value))
        except ValueError:
            return None


class MoneyField(serializers.DecimalField):
    def __init__(self, **kwargs):
        kwargs.setdefault('max_digits', 14)
        kwargs.setdefault('decimal_places', 2)
        kwargs.setdefault('coerce_to_string', False)
        super().__init__(**kwargs)


class ImageSerializer(serializers.Serializer):
    url = serializers.CharField(default='')
    public_id = serializers.CharField(default='')


class UserSerializer(serializers.Serializer):
    id = serializers.CharField(source='_id', default='')
    name = serializers.CharField(default='')
    email = serializers.CharField(default='')
    role = serializers.CharField(default='user')


class CompanySettingsSerializer(serializers.Serializer):
    name = serializers.CharField(default='Light Craft')
    address = serializers.CharField(default='')
    phone = serializers.CharField(default='')
    email = serializers.CharField(default='')
    logo = ImageSerializer(required=False, allow_null=True)
    tax_rate = MoneyField(source='taxRate', default=Decimal('0.00'))
    currency_symbol = serializers.CharField(source='currencySymbol', default=settings.DEFAULT_CURRENCY_SYMBOL)


def default_company_settings():
    """Company settings to fall back on while the API is unreachable"""
    return dict(CompanySettingsSerializer({}).data)
