"""
Utility functions for invoice creation
"""
import random

from django.utils import timezone

WALK_IN_CUSTOMER = 'Walk-in Customer'


def generate_invoice_number(today=None):
    """``INV-YYYYMMDD-NNN`` with a random three-digit suffix"""
    today = today or timezone.localdate()
    return f"INV-{today:%Y%m%d}-{random.randint(0, 999):03d}"


def build_invoice_payload(cart, totals, customer_name, customer_phone,
                          payment_method, payment_status, invoice_number=None):
    """Shape a checked-out cart the way ``POST /invoices`` expects it"""
    return {
        'invoiceNumber': invoice_number or generate_invoice_number(),
        'customerName': (customer_name or '').strip() or WALK_IN_CUSTOMER,
        'customerPhone': (customer_phone or '').strip(),
        'items': [
            {
                'product': item.product_id,
                'name': item.name,
                'sku': item.sku,
                'price': float(item.price),
                'quantity': item.quantity,
            }
            for item in cart.items
        ],
        'subTotal': float(totals.subtotal),
        'discountAmount': float(totals.applied_discount),
        'taxRate': float(totals.tax_rate),
        'taxAmount': float(totals.tax),
        'grandTotal': float(totals.grand_total),
        'paymentMethod': payment_method,
        'paymentStatus': payment_status,
    }
