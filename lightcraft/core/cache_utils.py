"""
Caching for the company settings.

Almost every page shows the company name and currency, and the print view
needs the full header, so the settings are kept in Django's cache for a few
minutes instead of being fetched on each render.
"""
import hashlib
import logging

from django.conf import settings
from django.core.cache import cache

from .serializers import CompanySettingsSerializer

logger = logging.getLogger(__name__)


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def company_settings_key(base_url=None):
    return make_cache_key('company_settings', base_url or settings.LIGHTCRAFT_API_URL)


def get_company_settings(client):
    """Company settings for ``client``'s API, served from cache when fresh"""
    cache_key = company_settings_key(client.base_url)
    cached_data = cache.get(cache_key)
    if cached_data is not None:
        logger.debug(f"Cache HIT for company settings: {cache_key}")
        return cached_data

    logger.debug(f"Cache MISS for company settings: {cache_key}")
    data = dict(CompanySettingsSerializer(client.get_company_settings()).data)
    cache.set(cache_key, data, settings.COMPANY_SETTINGS_CACHE_TTL)
    return data


def invalidate_company_settings(base_url=None):
    cache.delete(company_settings_key(base_url))
