"""Exceptions raised by the repository and service layer.

Pages catch BackendError and turn it into a toast; nothing below the UI
talks to Streamlit.
"""


class BackendError(Exception):
    """A request to the backend (database, storage, SMTP) failed."""


class NotFoundError(BackendError):
    pass


class ValidationError(BackendError):
    """Input rejected before it reached the backend."""


class AuthError(BackendError):
    pass


class PermissionDenied(BackendError):
    pass


class ConnectionFailed(BackendError):
    pass


class EmailDeliveryError(BackendError):
    pass
