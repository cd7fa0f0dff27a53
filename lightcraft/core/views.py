import logging

from django.conf import settings
from django.contrib import messages
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_POST
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from lightcraft.catalog.serializers import ProductSearchResultSerializer, normalize_product_page
from lightcraft.pos.serializers import normalize_invoice_list
from .api_client import ApiClient
from .auth import admin_required, client_for, get_current_user, login_user, logout_user
from .cache_utils import invalidate_company_settings
from .exceptions import ApiError
from .forms import CompanySettingsForm, LoginForm, UserCreateForm
from .serializers import CompanySettingsSerializer, UserSerializer, default_company_settings
from .utils import log_action

logger = logging.getLogger(__name__)


# ============ Login ============

def login_view(request):
    if get_current_user(request) is not None:
        return redirect('reports:dashboard')

    next_url = request.POST.get('next') or request.GET.get('next') or ''
    form = LoginForm(request.POST or None)
    if request.method == 'POST' and form.is_valid():
        try:
            payload = ApiClient().login(form.cleaned_data['email'], form.cleaned_data['password'])
            user = login_user(request, payload)
        except ApiError as e:
            messages.error(request, e.message)
        else:
            messages.success(request, f'Welcome back, {user.name or user.email}')
            if url_has_allowed_host_and_scheme(next_url, allowed_hosts={request.get_host()}):
                return redirect(next_url)
            return redirect('reports:dashboard')

    return render(request, 'core/login.html', {'form': form, 'next': next_url})


@require_POST
def logout_view(request):
    logout_user(request)
    messages.info(request, 'You have been signed out')
    return redirect('core:login')


# ============ Settings & users ============

def _settings_page(request, client, company_form=None, user_form=None):
    company = default_company_settings()
    users = []
    try:
        company = CompanySettingsSerializer(client.get_company_settings()).data
    except ApiError as e:
        messages.error(request, e.message)
    try:
        users = UserSerializer(client.list_users(), many=True).data
    except ApiError as e:
        messages.error(request, e.message)

    return render(request, 'core/settings.html', {
        'company_form': company_form or CompanySettingsForm(initial=CompanySettingsForm.initial_from(company)),
        'user_form': user_form or UserCreateForm(),
        'settings_company': company,
        'users': users,
    })


@admin_required
def settings_view(request):
    """Company profile form and user management, admins only"""
    client = client_for(request)
    if request.method != 'POST':
        return _settings_page(request, client)

    form = CompanySettingsForm(request.POST, request.FILES)
    if form.is_valid():
        fields = form.api_fields()
        try:
            client.update_company_settings(fields, form.cleaned_data.get('logo'))
        except ApiError as e:
            messages.error(request, e.message)
        else:
            invalidate_company_settings(client.base_url)
            log_action(request, 'update', 'CompanySettings', object_name=fields['name'], changes=fields)
            messages.success(request, 'Settings updated successfully')
            return redirect('core:settings')
    return _settings_page(request, client, company_form=form)


@admin_required
@require_POST
def user_create(request):
    client = client_for(request)
    form = UserCreateForm(request.POST)
    if not form.is_valid():
        return _settings_page(request, client, user_form=form)

    data = form.cleaned_data
    try:
        raw = client.create_user(data['name'], data['email'], data['password'], data['role'])
    except ApiError as e:
        messages.error(request, e.message)
        return _settings_page(request, client, user_form=form)

    log_action(request, 'create', 'User', object_id=raw.get('_id'), object_name=data['email'],
               changes={'name': data['name'], 'role': data['role']})
    messages.success(request, 'User created successfully')
    return redirect('core:settings')


@admin_required
@require_POST
def user_delete(request, pk):
    if pk == request.shop_user.id:
        messages.error(request, 'You cannot delete your own account')
        return redirect('core:settings')

    try:
        client_for(request).delete_user(pk)
    except ApiError as e:
        messages.error(request, e.message)
    else:
        log_action(request, 'delete', 'User', object_id=pk, object_name=request.POST.get('email'))
        messages.success(request, 'User deleted successfully')
    return redirect('core:settings')


# ============ Global search ============

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def global_search(request):
    """Header search: products by keyword and invoices by customer name"""
    query = request.query_params.get('q', '').strip()
    if not query:
        return Response({'products': [], 'invoices': []})

    limit = settings.GLOBAL_SEARCH_LIMIT
    client = client_for(request)
    products = normalize_product_page(client.list_products(keyword=query))['products'][:limit]
    invoices = normalize_invoice_list(client.list_invoices(customer_name=query))[:limit]

    product_results = []
    for product in ProductSearchResultSerializer(products, many=True).data:
        product['url'] = reverse('catalog:product-edit', args=[product['id']]) if product['id'] else None
        product_results.append(product)

    invoice_results = [
        {
            'id': invoice['id'],
            'invoice_number': invoice['invoice_number'],
            'customer_name': invoice['customer_name'],
            'grand_total': invoice['grand_total'],
            'url': reverse('pos:invoice-detail', args=[invoice['id']]) if invoice['id'] else None,
        }
        for invoice in invoices
    ]
    return Response({'products': product_results, 'invoices': invoice_results})
