"""How the JSON endpoints report shop API failures"""
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .exceptions import ApiError, SessionExpired


def api_exception_handler(exc, context):
    """
    DRF exception handler that also understands :class:`ApiError`.

    The backend's status is passed through; 502 stands in when the request
    never got a response.
    """
    if isinstance(exc, SessionExpired):
        request = context.get('request')
        if request is not None:
            request.session.flush()
        return Response({'message': exc.message}, status=status.HTTP_401_UNAUTHORIZED)

    if isinstance(exc, ApiError):
        code = exc.status_code or status.HTTP_502_BAD_GATEWAY
        return Response({'message': exc.message}, status=code)

    return exception_handler(exc, context)
