"""
Point-of-sale cart.

The cart lives in the Django session for as long as the cashier is on the
New Invoice screen. Nothing here talks to the API: products come in already
fetched, and checkout hands the cart and its totals to the invoice payload
builder.
"""
import uuid
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

ZERO = Decimal('0.00')
CENT = Decimal('0.01')
HUNDRED = Decimal('100')


def to_decimal(value, default=ZERO):
    if value is None or value == '':
        return default
    try:
        return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        return default


def new_cart_number():
    return f"CART-{uuid.uuid4().hex[:8].upper()}"


class CartError(Exception):
    """A cart operation that the cashier has to correct"""


class CartItemNotFound(CartError):
    pass


class InsufficientStock(CartError):
    pass


class CartItem:
    def __init__(self, id, product_id, name, sku, price, quantity, stock=None):
        self.id = id
        self.product_id = product_id
        self.name = name
        self.sku = sku
        self.price = to_decimal(price)
        self.quantity = int(quantity)
        self.stock = stock

    @property
    def line_total(self):
        return (self.price * self.quantity).quantize(CENT)

    def to_session(self):
        return {
            'id': self.id,
            'product_id': self.product_id,
            'name': self.name,
            'sku': self.sku,
            'price': str(self.price),
            'quantity': self.quantity,
            'stock': self.stock,
        }

    @classmethod
    def from_session(cls, data):
        return cls(**data)


class CartTotals:
    """Invoice summary figures for a cart at a given discount and tax rate"""

    def __init__(self, subtotal, discount, applied_discount, tax_rate, tax,
                 total_items, has_items, processing=False):
        self.subtotal = subtotal
        self.discount = discount
        self.applied_discount = applied_discount
        self.tax_rate = tax_rate
        self.tax = tax
        self.grand_total = subtotal - applied_discount + tax
        self.total_items = total_items
        self.discount_exceeds_subtotal = discount > subtotal
        self.can_save = has_items and not self.discount_exceeds_subtotal and not processing


class Cart:
    SESSION_KEY = 'pos_cart'

    def __init__(self, items=None, cart_number=None):
        self.items = list(items or [])
        self.cart_number = cart_number or new_cart_number()

    # ============ Session ============

    @classmethod
    def load(cls, session):
        data = session.get(cls.SESSION_KEY)
        if not data:
            return cls()
        return cls(
            items=[CartItem.from_session(item) for item in data.get('items', [])],
            cart_number=data.get('cart_number'),
        )

    def save(self, session):
        session[self.SESSION_KEY] = {
            'cart_number': self.cart_number,
            'items': [item.to_session() for item in self.items],
        }
        session.modified = True

    # ============ Editing ============

    def get(self, item_id):
        for item in self.items:
            if item.id == item_id:
                return item
        raise CartItemNotFound('Item is no longer in the cart')

    def find_product(self, product_id):
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None

    @staticmethod
    def _check_stock(name, stock, quantity):
        if stock is not None and quantity > stock:
            raise InsufficientStock(f"Only {stock} of {name} in stock")

    def add(self, product, quantity=1):
        """
        Add ``quantity`` of a normalised product. A product already in the
        cart gets its quantity increased instead of a second line.
        """
        quantity = int(quantity)
        if quantity < 1:
            raise CartError('Quantity must be at least 1')

        existing = self.find_product(product['id'])
        if existing:
            new_quantity = existing.quantity + quantity
            self._check_stock(existing.name, product.get('stock'), new_quantity)
            existing.quantity = new_quantity
            existing.stock = product.get('stock')
            return existing

        self._check_stock(product['name'], product.get('stock'), quantity)
        item = CartItem(
            id=f"cart-{uuid.uuid4().hex[:12]}",
            product_id=product['id'],
            name=product['name'],
            sku=product.get('sku', ''),
            price=product.get('selling_price'),
            quantity=quantity,
            stock=product.get('stock'),
        )
        self.items.append(item)
        return item

    def update_quantity(self, item_id, quantity):
        quantity = int(quantity)
        if quantity < 1:
            raise CartError('Quantity must be at least 1')
        item = self.get(item_id)
        self._check_stock(item.name, item.stock, quantity)
        item.quantity = quantity
        return item

    def update_price(self, item_id, price):
        """Manual price override; negative prices become zero"""
        item = self.get(item_id)
        item.price = max(to_decimal(price), ZERO)
        return item

    def remove(self, item_id):
        item = self.get(item_id)
        self.items.remove(item)
        return item

    def clear(self):
        """Empty the cart and start a new cart number"""
        self.items = []
        self.cart_number = new_cart_number()

    # ============ Figures ============

    @property
    def is_empty(self):
        return not self.items

    @property
    def subtotal(self):
        return sum((item.line_total for item in self.items), ZERO)

    @property
    def total_items(self):
        return sum(item.quantity for item in self.items)

    def totals(self, discount=ZERO, tax_rate=ZERO, processing=False):
        """
        Work out the invoice summary.

        The discount is never applied beyond the subtotal, so the grand total
        cannot go negative; ``discount_exceeds_subtotal`` reports when the
        entered figure is too high and ``can_save`` is False while it is.
        Tax is charged on the discounted amount.
        """
        subtotal = self.subtotal
        discount = max(to_decimal(discount), ZERO)
        tax_rate = min(max(to_decimal(tax_rate), ZERO), HUNDRED)
        applied_discount = min(discount, subtotal)
        tax = ((subtotal - applied_discount) * tax_rate / HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)
        return CartTotals(
            subtotal=subtotal,
            discount=discount,
            applied_discount=applied_discount,
            tax_rate=tax_rate,
            tax=tax,
            total_items=self.total_items,
            has_items=not self.is_empty,
            processing=processing,
        )
