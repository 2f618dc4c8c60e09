"""Middleware for the API token and the per-request bookstore client."""
from functools import wraps
from flask import current_app, g, request, session

from bookstore.exceptions import AuthenticationRequiredError

BEARER_PREFIX = 'Bearer '


def load_api_session():
    """
    Load the caller's API token into g.

    The token comes from the Authorization header when present, else from
    the Flask session (set by POST /session). Sets g.api_token (or None).
    """
    g.api_token = None

    auth_header = request.headers.get('Authorization', '')
    if auth_header.startswith(BEARER_PREFIX):
        token = auth_header[len(BEARER_PREFIX):].strip()
        if token:
            g.api_token = token
            return

    g.api_token = session.get('token') or None


def require_token(f):
    """
    Decorator: Require an API token for the request.

    Raises AuthenticationRequiredError (401 JSON) when none is available.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not g.get('api_token'):
            raise AuthenticationRequiredError('Please sign in to continue.')
        return f(*args, **kwargs)

    return decorated_function


def get_api_client():
    """
    Bookstore API client for the current request, bound to g.api_token.

    Built once per request through app.extensions['api_client_factory'].
    """
    if 'api_client' not in g:
        factory = current_app.extensions['api_client_factory']
        g.api_client = factory(g.get('api_token'))
    return g.api_client
