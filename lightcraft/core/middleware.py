import logging

from django.conf import settings
from django.contrib import messages
from django.contrib.auth.views import redirect_to_login
from django.shortcuts import resolve_url

from .exceptions import SessionExpired

logger = logging.getLogger(__name__)


class SessionExpiredMiddleware:
    """Send the user back to the login page when the API rejects their token"""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if not isinstance(exception, SessionExpired):
            return None
        logger.info(f"API token rejected on {request.path}; signing out")
        request.session.flush()
        messages.warning(request, 'Your session has expired. Please sign in again.')
        return redirect_to_login(request.get_full_path(), resolve_url(settings.LOGIN_URL))
