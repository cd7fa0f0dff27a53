"""Utility functions for audit logging"""
import logging

audit_logger = logging.getLogger('lightcraft.audit')


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def log_action(request, action, model_name, object_id=None, object_name=None, changes=None):
    """
    Record a change made through the shop API.

    The API keeps the data; this only leaves a trail of who asked for what
    from which address.

    Args:
        request: Django request (for the signed-in user and client IP)
        action: create, update, delete, invoice_create, ...
        model_name: Product, Invoice, User or CompanySettings
        object_id: API id of the object, when known
        object_name: Human-readable name (product name, invoice number, email)
        changes: Optional dictionary of submitted values
    """
    user = getattr(request, 'shop_user', None) or getattr(request, 'user', None)
    email = getattr(user, 'email', None) or 'anonymous'
    audit_logger.info(
        f"{action} {model_name} id={object_id or '-'} name={object_name or '-'} "
        f"by={email} ip={get_client_ip(request) or '-'} changes={changes or {}}"
    )
