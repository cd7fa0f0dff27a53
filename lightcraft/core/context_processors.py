import logging

from django.conf import settings

from .auth import client_for, get_current_user
from .cache_utils import get_company_settings
from .exceptions import ApiError
from .serializers import default_company_settings

logger = logging.getLogger(__name__)


def shop(request):
    """Signed-in user, company settings and search tuning for every template"""
    user = get_current_user(request)
    company = default_company_settings()
    if user is not None:
        try:
            company = get_company_settings(client_for(request))
        except ApiError as e:
            # Pages still render with defaults; the page's own request reports errors.
            logger.warning(f"Company settings unavailable: {e}")
    return {
        'shop_user': user,
        'company': company,
        'currency': company.get('currency_symbol') or settings.DEFAULT_CURRENCY_SYMBOL,
        'search_debounce_ms': settings.SEARCH_DEBOUNCE_MS,
    }
