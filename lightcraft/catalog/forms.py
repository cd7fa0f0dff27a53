from django import forms
from django.conf import settings

from .validators import validate_image_size, validate_sku


class ProductForm(forms.Form):
    """Add/edit product. ``stock`` is labelled "Starting Quantity" when adding."""
    name = forms.CharField(
        max_length=100,
        error_messages={
            'required': 'Product name is required',
            'max_length': 'Product name must be less than 100 characters',
        },
    )
    sku = forms.CharField(
        max_length=50,
        validators=[validate_sku],
        error_messages={'required': 'SKU is required'},
    )
    description = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 3}))
    cost_price = forms.DecimalField(
        min_value=0, decimal_places=2,
        error_messages={
            'required': 'Cost price is required',
            'invalid': 'Cost price must be a number',
            'min_value': 'Cost price cannot be negative',
        },
    )
    selling_price = forms.DecimalField(
        min_value=0, decimal_places=2,
        error_messages={
            'required': 'Selling price is required',
            'invalid': 'Selling price must be a number',
            'min_value': 'Selling price cannot be negative',
        },
    )
    stock = forms.IntegerField(
        min_value=0, label='Starting Quantity',
        error_messages={
            'required': 'Quantity is required',
            'invalid': 'Quantity must be a whole number',
            'min_value': 'Quantity cannot be negative',
        },
    )
    low_stock_threshold = forms.IntegerField(
        min_value=0, required=False,
        error_messages={
            'invalid': 'Low stock threshold must be a whole number',
            'min_value': 'Low stock threshold cannot be negative',
        },
    )
    image = forms.ImageField(required=False, validators=[validate_image_size])

    def __init__(self, *args, editing=False, **kwargs):
        super().__init__(*args, **kwargs)
        self.editing = editing
        if editing:
            self.fields['stock'].label = 'Stock Quantity'
        self.fields['low_stock_threshold'].widget.attrs['placeholder'] = settings.DEFAULT_LOW_STOCK_THRESHOLD

    @classmethod
    def initial_from(cls, product):
        return {
            'name': product.get('name', ''),
            'sku': product.get('sku', ''),
            'description': product.get('description', ''),
            'cost_price': product.get('cost_price'),
            'selling_price': product.get('selling_price'),
            'stock': product.get('stock'),
            'low_stock_threshold': product.get('low_stock_threshold'),
        }

    def clean_name(self):
        return self.cleaned_data['name'].strip()

    def clean_sku(self):
        return self.cleaned_data['sku'].strip().upper()

    def clean_low_stock_threshold(self):
        value = self.cleaned_data.get('low_stock_threshold')
        return settings.DEFAULT_LOW_STOCK_THRESHOLD if value is None else value

    def api_fields(self):
        """Cleaned data under the names ``POST/PUT /products`` expects"""
        data = self.cleaned_data
        return {
            'name': data['name'],
            'sku': data['sku'],
            'description': data['description'],
            'costPrice': data['cost_price'],
            'sellingPrice': data['selling_price'],
            'stock': data['stock'],
            'lowStockThreshold': data['low_stock_threshold'],
        }
