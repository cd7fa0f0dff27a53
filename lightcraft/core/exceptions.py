"""Errors raised by the shop API client"""


class ApiError(Exception):
    """A rejected or failed request to the shop API.

    ``message`` is what the user sees: the backend's own message when it sent
    one, otherwise the fallback of the operation that failed.
    """

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self):
        return self.message


class SessionExpired(Exception):
    """The shop API no longer accepts the bearer token held in the session.

    Not an :class:`ApiError`: views that turn ``ApiError`` into a notification
    let this one through to ``SessionExpiredMiddleware``.
    """

    def __init__(self, message='Your session has expired. Please sign in again.', status_code=401):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self):
        return self.message
