from django.urls import path
from .views import product_list, product_create, product_edit, product_delete, product_search

app_name = 'catalog'

urlpatterns = [
    path('inventory/', product_list, name='product-list'),
    path('inventory/add/', product_create, name='product-create'),
    path('inventory/<str:pk>/edit/', product_edit, name='product-edit'),
    path('inventory/<str:pk>/delete/', product_delete, name='product-delete'),
    path('api/products/search/', product_search, name='product-search'),
]
