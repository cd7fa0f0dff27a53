import logging
from decimal import Decimal

from django.contrib import messages
from django.shortcuts import redirect, render
from django.urls import reverse
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from lightcraft.catalog.serializers import ProductSerializer
from lightcraft.core.auth import client_for, login_required
from lightcraft.core.cache_utils import get_company_settings
from lightcraft.core.exceptions import ApiError
from lightcraft.core.serializers import default_company_settings
from lightcraft.core.utils import log_action
from .cart import Cart, CartError, CartItemNotFound
from .filters import invoice_date_range, to_api_datetime
from .forms import InvoiceFilterForm
from .serializers import (
    AddCartItemSerializer, CartItemSerializer, CartQuerySerializer, CartTotalsSerializer,
    CheckoutSerializer, InvoiceSerializer, PAYMENT_METHOD_CHOICES, UpdateCartItemSerializer,
    normalize_invoice_list,
)
from .utils import build_invoice_payload

logger = logging.getLogger(__name__)


def _company_or_defaults(request):
    try:
        return get_company_settings(client_for(request))
    except ApiError as e:
        logger.warning(f"Company settings unavailable: {e}")
        return default_company_settings()


# ============ Pages ============

@login_required
def new_invoice(request):
    """POS screen; the cart itself is driven through the cart API"""
    company = _company_or_defaults(request)
    cart = Cart.load(request.session)
    cart.save(request.session)
    totals = cart.totals(tax_rate=company.get('tax_rate'))
    return render(request, 'pos/new_invoice.html', {
        'cart': cart,
        'totals': totals,
        'default_tax_rate': company.get('tax_rate') or Decimal('0.00'),
        'payment_methods': PAYMENT_METHOD_CHOICES,
    })


@login_required
def invoice_list(request):
    """Invoice history with customer search and date range filters"""
    form = InvoiceFilterForm(request.GET or None)
    query = ''
    start = end = None
    if form.is_bound:
        if form.is_valid():
            query = form.cleaned_data['q'].strip()
            start, end = invoice_date_range(
                form.cleaned_data['date_filter'],
                start=form.cleaned_data['start'],
                end=form.cleaned_data['end'],
            )
        else:
            for error in form.non_field_errors():
                messages.error(request, error)

    invoices = []
    try:
        raw = client_for(request).list_invoices(
            start_date=to_api_datetime(start),
            end_date=to_api_datetime(end),
            customer_name=query or None,
        )
        invoices = normalize_invoice_list(raw)
    except ApiError as e:
        messages.error(request, e.message)

    return render(request, 'pos/invoice_list.html', {
        'form': form,
        'invoices': invoices,
        'invoice_count': len(invoices),
        'invoice_total': sum((invoice['grand_total'] for invoice in invoices), Decimal('0.00')),
    })


def _get_invoice(request, pk):
    invoice = InvoiceSerializer(client_for(request).get_invoice(pk)).data
    invoice['id'] = invoice['id'] or pk
    return invoice


@login_required
def invoice_detail(request, pk):
    try:
        invoice = _get_invoice(request, pk)
    except ApiError as e:
        messages.error(request, e.message)
        return redirect('pos:invoice-list')
    return render(request, 'pos/invoice_detail.html', {'invoice': invoice})


@login_required
def invoice_print(request, pk):
    """Standalone print document; the page opens the print dialog on load"""
    try:
        invoice = _get_invoice(request, pk)
    except ApiError as e:
        messages.error(request, e.message)
        return redirect('pos:invoice-list')
    return render(request, 'pos/invoice_print.html', {
        'invoice': invoice,
        'company': _company_or_defaults(request),
    })


# ============ Cart API ============

def _cart_query(request):
    """Validated ``discount``/``tax_rate`` for the totals; checked before the cart is touched"""
    query = CartQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    return query.validated_data


def _cart_response(cart, query, response_status=status.HTTP_200_OK):
    totals = cart.totals(**query)
    return Response({
        'cart_number': cart.cart_number,
        'items': CartItemSerializer(cart.items, many=True).data,
        'totals': CartTotalsSerializer(totals).data,
    }, status=response_status)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def cart_detail(request):
    """Get the cart with totals, or clear it"""
    query = _cart_query(request)
    cart = Cart.load(request.session)
    if request.method == 'DELETE':
        cart.clear()
    cart.save(request.session)
    return _cart_response(cart, query)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cart_items(request):
    """Add a product to the cart; the product is fetched fresh for its price and stock"""
    query = _cart_query(request)
    serializer = AddCartItemSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    raw = client_for(request).get_product(serializer.validated_data['product_id'])
    product = ProductSerializer(raw).data
    if not product['id']:
        product['id'] = serializer.validated_data['product_id']

    cart = Cart.load(request.session)
    try:
        cart.add(product, serializer.validated_data['quantity'])
    except CartError as e:
        return Response({'message': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    cart.save(request.session)
    return _cart_response(cart, query, status.HTTP_201_CREATED)


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def cart_item_detail(request, item_id):
    """Change a line's quantity or price, or remove it"""
    query = _cart_query(request)
    cart = Cart.load(request.session)
    try:
        if request.method == 'DELETE':
            cart.remove(item_id)
        else:
            serializer = UpdateCartItemSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            if 'quantity' in serializer.validated_data:
                cart.update_quantity(item_id, serializer.validated_data['quantity'])
            if 'price' in serializer.validated_data:
                cart.update_price(item_id, serializer.validated_data['price'])
    except CartItemNotFound as e:
        return Response({'message': str(e)}, status=status.HTTP_404_NOT_FOUND)
    except CartError as e:
        return Response({'message': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    cart.save(request.session)
    return _cart_response(cart, query)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cart_checkout(request):
    """
    Save the cart as an invoice.

    The request must quote the cart's current ``cart_number``; it changes once
    the invoice is saved, so a second submit of the same cart is rejected.
    """
    serializer = CheckoutSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    cart = Cart.load(request.session)
    if data['cart_number'] != cart.cart_number:
        return Response(
            {'message': 'This cart has already been saved or replaced'},
            status=status.HTTP_409_CONFLICT
        )
    if cart.is_empty:
        return Response({'message': 'Cart is empty'}, status=status.HTTP_400_BAD_REQUEST)

    totals = cart.totals(discount=data['discount'], tax_rate=data['tax_rate'])
    if totals.discount_exceeds_subtotal:
        return Response(
            {'message': 'Discount cannot exceed the subtotal'},
            status=status.HTTP_400_BAD_REQUEST
        )

    payload = build_invoice_payload(
        cart, totals,
        customer_name=data['customer_name'],
        customer_phone=data['customer_phone'],
        payment_method=data['payment_method'],
        payment_status=data['payment_status'],
    )
    raw = client_for(request).create_invoice(payload)
    invoice = InvoiceSerializer(raw).data

    log_action(
        request, 'invoice_create', 'Invoice',
        object_id=invoice['id'],
        object_name=invoice['invoice_number'] or payload['invoiceNumber'],
        changes={'grand_total': str(totals.grand_total), 'items': totals.total_items},
    )

    cart.clear()
    cart.save(request.session)

    print_url = None
    if data['print'] and invoice['id']:
        print_url = reverse('pos:invoice-print', args=[invoice['id']])
    return Response({
        'invoice': invoice,
        'cart_number': cart.cart_number,
        'print_url': print_url,
    }, status=status.HTTP_201_CREATED)
