"""Custom exceptions for the school bookstore backend."""

class BookstoreError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv

class BusinessLogicError(BookstoreError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)

class NotFoundError(BookstoreError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)

class DraftLockedError(BusinessLogicError):
    """Raised when the draft status does not allow the requested action."""
    def __init__(self, message, draft_id=None, status=None):
        payload = {}
        if draft_id is not None:
            payload['draft_id'] = draft_id
        if status is not None:
            payload['draft_status'] = status
        super().__init__(message, status_code=409, payload=payload)

class AuthenticationRequiredError(BookstoreError):
    """Raised when no API token is available for the current request."""
    def __init__(self, message="Authentication required"):
        super().__init__(message, 401)

class UnauthorizedError(BookstoreError):
    """Raised when a user lacks permission for an action."""
    def __init__(self, message="Unauthorized access"):
        super().__init__(message, 403)

class RemoteServiceError(BookstoreError):
    """
    Raised when the remote bookstore API fails or rejects a request.

    remote_status is the HTTP status returned by the API (None for
    connection errors). The message is the server's plain-text body when it
    sent one, otherwise the caller's fallback message.
    """
    def __init__(self, message, remote_status=None, operation=None, server_message=None):
        status_code = remote_status if remote_status and 400 <= remote_status < 500 else 502
        payload = {'remote_status': remote_status} if remote_status else None
        super().__init__(server_message or message, status_code, payload)
        self.remote_status = remote_status
        self.operation = operation
        self.server_message = server_message
