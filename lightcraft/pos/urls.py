from django.urls import path
from .views import (
    new_invoice, invoice_list, invoice_detail, invoice_print,
    cart_detail, cart_items, cart_item_detail, cart_checkout,
)

app_name = 'pos'

urlpatterns = [
    # Pages
    path('pos/', new_invoice, name='new-invoice'),
    path('invoices/', invoice_list, name='invoice-list'),
    path('invoices/<str:pk>/', invoice_detail, name='invoice-detail'),
    path('invoices/<str:pk>/print/', invoice_print, name='invoice-print'),

    # Cart endpoints
    path('api/pos/cart/', cart_detail, name='cart-detail'),
    path('api/pos/cart/items/', cart_items, name='cart-items'),
    path('api/pos/cart/items/<str:item_id>/', cart_item_detail, name='cart-item-detail'),
    path('api/pos/checkout/', cart_checkout, name='cart-checkout'),
]
