import logging

from django.contrib import messages
from django.shortcuts import redirect, render
from django.views.decorators.http import require_POST
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from lightcraft.core.auth import client_for, login_required
from lightcraft.core.exceptions import ApiError
from lightcraft.core.utils import log_action
from .filters import clean_sort, next_sort_direction, search_products, sort_products
from .forms import ProductForm
from .serializers import ProductSearchResultSerializer, ProductSerializer, normalize_product_page

logger = logging.getLogger(__name__)

SORT_COLUMNS = [
    ('name', 'Name'),
    ('sku', 'SKU'),
    ('cost_price', 'Cost Price'),
    ('selling_price', 'Selling Price'),
    ('stock', 'Stock'),
]


def _page_number(value):
    try:
        page = int(value)
    except (TypeError, ValueError):
        return 1
    return max(page, 1)


@login_required
def product_list(request):
    """
    Inventory list.

    ``keyword`` and ``page`` are passed to the API; ``sort``/``dir`` order
    the returned page locally.
    """
    keyword = request.GET.get('keyword', '').strip()
    page = _page_number(request.GET.get('page'))
    sort_field, sort_dir = clean_sort(request.GET.get('sort'), request.GET.get('dir'))

    product_page = {'products': [], 'page': 1, 'pages': 1}
    try:
        raw = client_for(request).list_products(keyword=keyword or None, page=page)
        product_page = normalize_product_page(raw)
    except ApiError as e:
        messages.error(request, e.message)

    columns = [
        {
            'field': field,
            'label': label,
            'active': field == sort_field,
            'dir': next_sort_direction(sort_field, sort_dir, field),
        }
        for field, label in SORT_COLUMNS
    ]

    return render(request, 'catalog/product_list.html', {
        'products': sort_products(product_page['products'], sort_field, sort_dir),
        'keyword': keyword,
        'sort': sort_field,
        'dir': sort_dir,
        'columns': columns,
        'page': product_page['page'],
        'pages': product_page['pages'],
        'page_range': range(1, product_page['pages'] + 1),
    })


@login_required
def product_create(request):
    form = ProductForm(request.POST or None, request.FILES or None)
    if request.method == 'POST' and form.is_valid():
        fields = form.api_fields()
        try:
            raw = client_for(request).create_product(fields, form.cleaned_data.get('image'))
        except ApiError as e:
            messages.error(request, e.message)
        else:
            log_action(request, 'create', 'Product', object_id=raw.get('_id'),
                       object_name=fields['name'], changes=fields)
            messages.success(request, 'Product added successfully')
            return redirect('catalog:product-list')

    return render(request, 'catalog/product_form.html', {
        'form': form,
        'product': None,
        'title': 'Add New Product',
        'submit_label': 'Add Product',
    })


@login_required
def product_edit(request, pk):
    client = client_for(request)
    try:
        product = ProductSerializer(client.get_product(pk)).data
    except ApiError as e:
        messages.error(request, e.message)
        return redirect('catalog:product-list')

    if request.method == 'POST':
        form = ProductForm(request.POST, request.FILES, editing=True)
        if form.is_valid():
            fields = form.api_fields()
            try:
                client.update_product(pk, fields, form.cleaned_data.get('image'))
            except ApiError as e:
                messages.error(request, e.message)
            else:
                log_action(request, 'update', 'Product', object_id=pk,
                           object_name=fields['name'], changes=fields)
                messages.success(request, 'Product updated successfully')
                return redirect('catalog:product-list')
    else:
        form = ProductForm(initial=ProductForm.initial_from(product), editing=True)

    return render(request, 'catalog/product_form.html', {
        'form': form,
        'product': product,
        'title': 'Edit Product',
        'submit_label': 'Update Product',
    })


@login_required
@require_POST
def product_delete(request, pk):
    name = request.POST.get('name', '')
    try:
        client_for(request).delete_product(pk)
    except ApiError as e:
        messages.error(request, e.message)
    else:
        log_action(request, 'delete', 'Product', object_id=pk, object_name=name)
        messages.success(request, 'Product deleted')
    return redirect('catalog:product-list')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_search(request):
    """Product lookup for the POS search box: name or SKU match"""
    query = request.query_params.get('q', '').strip()
    if not query:
        return Response([])

    raw = client_for(request).list_products(keyword=query)
    products = search_products(normalize_product_page(raw)['products'], query)
    logger.debug(f"Product search '{query}': {len(products)} matches")
    return Response(ProductSearchResultSerializer(products, many=True).data)
