"""
URL configuration for the Light Craft shop manager.

Pages are rendered by the app views; everything under ``api/`` is JSON for
the browser scripts (search boxes and the POS cart).
"""
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

urlpatterns = [
    path('', include('lightcraft.reports.urls')),
    path('', include('lightcraft.core.urls')),
    path('', include('lightcraft.catalog.urls')),
    path('', include('lightcraft.pos.urls')),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
