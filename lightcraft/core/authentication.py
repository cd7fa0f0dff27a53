from rest_framework.authentication import SessionAuthentication

from .auth import get_current_user, get_token


class SessionTokenAuthentication(SessionAuthentication):
    """
    Authenticate JSON requests from the browser against the API token held
    in the Django session. CSRF is enforced the same way DRF does it for
    session authentication.
    """

    def authenticate(self, request):
        user = get_current_user(request._request)
        if user is None:
            return None
        self.enforce_csrf(request)
        return (user, get_token(request._request))

    def authenticate_header(self, request):
        return 'Bearer realm="api"'
