"""
Session-backed login state.

The shop API issues a bearer token at login; it is kept in the Django
session together with the user it belongs to, and every view that talks
to the API builds its client from there.
"""
import logging
from functools import wraps

from django.conf import settings
from django.contrib import messages
from django.contrib.auth.views import redirect_to_login
from django.shortcuts import redirect, resolve_url

from .api_client import ApiClient
from .exceptions import ApiError
from .serializers import UserSerializer

logger = logging.getLogger(__name__)

SESSION_TOKEN_KEY = 'api_token'
SESSION_USER_KEY = 'api_user'


class RemoteUser:
    """The signed-in shop API user. Not a Django model."""
    is_authenticated = True
    is_anonymous = False

    def __init__(self, id, name='', email='', role='user'):
        self.id = id
        self.name = name
        self.email = email
        self.role = role

    def __str__(self):
        return self.name or self.email

    @property
    def is_admin(self):
        return self.role == 'admin'

    def as_dict(self):
        return {'id': self.id, 'name': self.name, 'email': self.email, 'role': self.role}


def get_token(request):
    return request.session.get(SESSION_TOKEN_KEY)


def get_current_user(request):
    """Return the :class:`RemoteUser` stored in the session, or None"""
    data = request.session.get(SESSION_USER_KEY)
    if not data or not get_token(request):
        return None
    return RemoteUser(**data)


def login_user(request, payload):
    """Store the API login response (user fields plus ``token``) in the session"""
    token = payload.get('token')
    if not token:
        raise ApiError('Login failed')
    user = RemoteUser(**UserSerializer(payload).data)
    request.session.cycle_key()
    request.session[SESSION_TOKEN_KEY] = token
    request.session[SESSION_USER_KEY] = user.as_dict()
    logger.info(f"User {user.email} signed in")
    return user


def logout_user(request):
    user = get_current_user(request)
    request.session.flush()
    if user:
        logger.info(f"User {user.email} signed out")


def client_for(request):
    """An :class:`ApiClient` carrying the session's bearer token"""
    return ApiClient(token=get_token(request))


def login_required(view_func):
    """Redirect to the login page unless the session holds an API token"""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        user = get_current_user(request)
        if user is None:
            return redirect_to_login(request.get_full_path(), resolve_url(settings.LOGIN_URL))
        request.shop_user = user
        return view_func(request, *args, **kwargs)
    return wrapper


def admin_required(view_func):
    """Like :func:`login_required` but only for users with the admin role"""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not request.shop_user.is_admin:
            messages.error(request, 'Only administrators can access settings')
            return redirect('reports:dashboard')
        return view_func(request, *args, **kwargs)
    return login_required(wrapper)
