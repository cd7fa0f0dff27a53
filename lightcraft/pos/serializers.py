from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from rest_framework import serializers

from lightcraft.core.serializers import MoneyField, RemoteDateTimeField
from .cart import to_decimal
from .utils import WALK_IN_CUSTOMER

PAYMENT_METHOD_CHOICES = ['Cash', 'Card', 'Bank Transfer']
PAYMENT_STATUS_CHOICES = ['Paid', 'Pending']


# ============ Shop API invoices ============

class InvoiceItemSerializer(serializers.Serializer):
    product = serializers.CharField(default='')
    name = serializers.CharField(default='')
    sku = serializers.CharField(default='')
    price = MoneyField(default=Decimal('0.00'))
    quantity = serializers.IntegerField(default=0)
    line_total = serializers.SerializerMethodField()

    def get_line_total(self, obj):
        return to_decimal(obj.get('price')) * int(obj.get('quantity') or 0)


class CreatorSerializer(serializers.Serializer):
    name = serializers.CharField(default='')


class InvoiceSerializer(serializers.Serializer):
    id = serializers.CharField(source='_id', default='')
    invoice_number = serializers.CharField(source='invoiceNumber', default='')
    customer_name = serializers.CharField(source='customerName', default=WALK_IN_CUSTOMER)
    customer_phone = serializers.CharField(source='customerPhone', default='')
    items = InvoiceItemSerializer(many=True, default=list)
    subtotal = MoneyField(source='subTotal', default=Decimal('0.00'))
    discount = MoneyField(source='discountAmount', default=Decimal('0.00'))
    tax_rate = MoneyField(source='taxRate', default=Decimal('0.00'))
    tax = MoneyField(source='taxAmount', default=Decimal('0.00'))
    grand_total = MoneyField(source='grandTotal', default=Decimal('0.00'))
    payment_method = serializers.CharField(source='paymentMethod', default='Cash')
    payment_status = serializers.CharField(source='paymentStatus', default='Paid')
    creator = CreatorSerializer(required=False, allow_null=True)
    created_at = RemoteDateTimeField(source='createdAt', required=False, allow_null=True)
    item_count = serializers.SerializerMethodField()

    def get_item_count(self, obj):
        return len(obj.get('items') or [])


def normalize_invoice_list(raw):
    """``GET /invoices`` returns a list; some deployments wrap it as ``{"invoices": [...]}``"""
    if isinstance(raw, dict):
        raw = raw.get('invoices', [])
    return InvoiceSerializer(raw, many=True).data


# ============ Cart API ============

class AmountField(serializers.DecimalField):
    """Decimal input rounded half-up to cents rather than rejected for extra places"""

    def __init__(self, **kwargs):
        kwargs.setdefault('max_digits', 14)
        kwargs.setdefault('decimal_places', 2)
        kwargs.setdefault('rounding', ROUND_HALF_UP)
        super().__init__(**kwargs)

    def validate_precision(self, value):
        try:
            value = self.quantize(value)
        except InvalidOperation:
            pass
        return super().validate_precision(value)


class CartItemSerializer(serializers.Serializer):
    id = serializers.CharField()
    product_id = serializers.CharField()
    name = serializers.CharField()
    sku = serializers.CharField()
    price = serializers.DecimalField(max_digits=14, decimal_places=2)
    quantity = serializers.IntegerField()
    stock = serializers.IntegerField(allow_null=True)
    line_total = serializers.DecimalField(max_digits=14, decimal_places=2)


class CartTotalsSerializer(serializers.Serializer):
    subtotal = serializers.DecimalField(max_digits=14, decimal_places=2)
    discount = serializers.DecimalField(max_digits=14, decimal_places=2)
    applied_discount = serializers.DecimalField(max_digits=14, decimal_places=2)
    tax_rate = serializers.DecimalField(max_digits=5, decimal_places=2)
    tax = serializers.DecimalField(max_digits=14, decimal_places=2)
    grand_total = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_items = serializers.IntegerField()
    discount_exceeds_subtotal = serializers.BooleanField()
    can_save = serializers.BooleanField()


class CartQuerySerializer(serializers.Serializer):
    """Discount and tax rate the totals should be worked out with"""
    discount = AmountField(default=Decimal('0.00'))
    tax_rate = AmountField(max_digits=5, default=Decimal('0.00'))


class AddCartItemSerializer(serializers.Serializer):
    product_id = serializers.CharField()
    quantity = serializers.IntegerField(min_value=1, default=1)


class UpdateCartItemSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1, required=False)
    price = AmountField(required=False)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('Provide a quantity or a price.')
        return attrs


class CheckoutSerializer(serializers.Serializer):
    cart_number = serializers.CharField()
    customer_name = serializers.CharField(max_length=100, allow_blank=True, default='')
    customer_phone = serializers.CharField(max_length=30, allow_blank=True, default='')
    payment_method = serializers.ChoiceField(choices=PAYMENT_METHOD_CHOICES, default='Cash')
    payment_status = serializers.ChoiceField(choices=PAYMENT_STATUS_CHOICES, default='Paid')
    discount = AmountField(default=Decimal('0.00'))
    tax_rate = AmountField(
        max_digits=5, min_value=Decimal('0'), max_value=Decimal('100'),
        default=Decimal('0.00'),
    )
    print = serializers.BooleanField(default=False)

    def validate_customer_name(self, value):
        return value.strip() or WALK_IN_CUSTOMER
