import logging

from django.contrib import messages
from django.shortcuts import render

from lightcraft.core.auth import client_for, login_required
from lightcraft.core.exceptions import ApiError
from .serializers import DashboardStatsSerializer, empty_dashboard_stats

logger = logging.getLogger(__name__)


@login_required
def dashboard(request):
    """Today's sales summary, low stock alerts and recent invoices"""
    try:
        stats = DashboardStatsSerializer(client_for(request).get_dashboard_stats()).data
    except ApiError as e:
        messages.error(request, e.message)
        stats = empty_dashboard_stats()
    return render(request, 'reports/dashboard.html', {'stats': stats})
