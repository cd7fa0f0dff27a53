from decimal import Decimal, InvalidOperation

from django import template
from django.contrib.humanize.templatetags.humanize import intcomma

register = template.Library()


@register.filter
def money(value, symbol='Rs.'):
    """``1234.5|money:"Rs."`` -> ``Rs. 1,234.50``"""
    try:
        amount = Decimal(str(value)).quantize(Decimal('0.01'))
    except (InvalidOperation, TypeError, ValueError):
        return ''
    sign = '-' if amount < 0 else ''
    return f"{sign}{symbol} {intcomma(f'{abs(amount):.2f}', use_l10n=False)}"


@register.simple_tag(takes_context=True)
def query_string(context, **kwargs):
    """Current GET parameters with ``kwargs`` replaced; empty values are dropped"""
    params = context['request'].GET.copy()
    for key, value in kwargs.items():
        if value in (None, ''):
            params.pop(key, None)
        else:
            params[key] = value
    encoded = params.urlencode()
    return f'?{encoded}' if encoded else ''
