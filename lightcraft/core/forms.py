from django import forms
from django.conf import settings

from lightcraft.catalog.validators import validate_image_size

ROLE_CHOICES = [
    ('user', 'User'),
    ('admin', 'Admin'),
]


class LoginForm(forms.Form):
    email = forms.EmailField(error_messages={'required': 'Please enter both email and password'})
    password = forms.CharField(
        widget=forms.PasswordInput,
        strip=False,
        error_messages={'required': 'Please enter both email and password'},
    )


class CompanySettingsForm(forms.Form):
    name = forms.CharField(max_length=200, error_messages={'required': 'Company name is required'})
    address = forms.CharField(max_length=500, required=False, widget=forms.Textarea(attrs={'rows': 2}))
    phone = forms.CharField(max_length=50, required=False)
    email = forms.EmailField(required=False)
    tax_rate = forms.DecimalField(
        min_value=0, max_value=100, decimal_places=2, required=False,
        error_messages={'invalid': 'Enter a valid tax rate'},
    )
    currency_symbol = forms.CharField(max_length=10, required=False)
    logo = forms.ImageField(required=False, validators=[validate_image_size])

    @classmethod
    def initial_from(cls, company):
        return {
            'name': company.get('name', ''),
            'address': company.get('address', ''),
            'phone': company.get('phone', ''),
            'email': company.get('email', ''),
            'tax_rate': company.get('tax_rate'),
            'currency_symbol': company.get('currency_symbol', ''),
        }

    def api_fields(self):
        data = self.cleaned_data
        return {
            'name': data['name'],
            'address': data['address'],
            'phone': data['phone'],
            'email': data['email'],
            'taxRate': data['tax_rate'] if data['tax_rate'] is not None else 0,
            'currencySymbol': data['currency_symbol'] or settings.DEFAULT_CURRENCY_SYMBOL,
        }


class UserCreateForm(forms.Form):
    name = forms.CharField(max_length=100, error_messages={'required': 'Please fill in all fields'})
    email = forms.EmailField(error_messages={'required': 'Please fill in all fields'})
    password = forms.CharField(
        widget=forms.PasswordInput, strip=False, min_length=6,
        error_messages={'required': 'Please fill in all fields'},
    )
    role = forms.ChoiceField(choices=ROLE_CHOICES, initial='user')
