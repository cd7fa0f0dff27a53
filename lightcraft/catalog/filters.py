"""
Local filtering and sorting of product lists.

The API pages and keyword-searches products; ordering within a page and the
stock status badges are worked out here.
"""
from django.conf import settings

SORT_FIELDS = ('name', 'sku', 'cost_price', 'selling_price', 'stock')
SORT_DIRECTIONS = ('asc', 'desc')


def stock_status(stock, threshold=None):
    """
    Classify stock against the product's low stock threshold.

    - ``critical``: at or below half the threshold
    - ``low``: at or below the threshold
    - ``sufficient``: above it
    """
    threshold = threshold or settings.DEFAULT_LOW_STOCK_THRESHOLD
    stock = stock or 0
    if stock <= threshold * 0.5:
        return 'critical'
    if stock <= threshold:
        return 'low'
    return 'sufficient'


def alert_level(stock):
    """Badge level used by the dashboard's low stock alerts"""
    stock = stock or 0
    if stock <= 0:
        return 'out'
    if stock <= 5:
        return 'warning'
    return 'muted'


def search_products(products, query):
    """Case-insensitive substring match on name or SKU"""
    query = (query or '').strip().lower()
    if not query:
        return list(products)
    return [
        product for product in products
        if query in (product.get('name') or '').lower()
        or query in (product.get('sku') or '').lower()
    ]


def clean_sort(field, direction):
    """Fall back to name/asc for anything unknown"""
    if field not in SORT_FIELDS:
        field = 'name'
    if direction not in SORT_DIRECTIONS:
        direction = 'asc'
    return field, direction


def sort_products(products, field='name', direction='asc'):
    """Sort normalised products; strings compare case-insensitively"""
    field, direction = clean_sort(field, direction)

    def sort_key(product):
        value = product.get(field)
        if isinstance(value, str):
            return value.lower()
        return value if value is not None else 0

    return sorted(products, key=sort_key, reverse=direction == 'desc')


def next_sort_direction(current_field, current_direction, field):
    """Clicking the active column flips it; any other column starts ascending"""
    if field == current_field:
        return 'desc' if current_direction == 'asc' else 'asc'
    return 'asc'
