"""
Field validators shared by the product and company settings forms
"""
import re

from django.conf import settings
from django.core.exceptions import ValidationError

SKU_PATTERN = re.compile(r'^[A-Za-z0-9-]+$')


def validate_sku(value: str):
    """SKUs are letters, digits and hyphens only, e.g. ``LED-12W-001``"""
    if not SKU_PATTERN.match(value or ''):
        raise ValidationError(
            'SKU can only contain letters, numbers, and hyphens',
            code='invalid_sku',
        )


def validate_image_size(upload):
    """Reject uploads larger than ``PRODUCT_IMAGE_MAX_BYTES``"""
    limit = settings.PRODUCT_IMAGE_MAX_BYTES
    if upload is not None and upload.size > limit:
        raise ValidationError(
            f'Image must be less than {limit // (1024 * 1024)}MB',
            code='image_too_large',
        )
