import pytest
import os
from unittest.mock import MagicMock

# Force test configuration ONLY if not already set (e.g. by Docker)
os.environ.setdefault('CACHE_ENABLED', 'false')
os.environ.setdefault('BOOKSTORE_API_BASE', 'http://bookstore.test')

from bookstore import create_app


@pytest.fixture(scope='function')
def api_client():
    """Stand-in for BookstoreApiClient; every test configures the calls it needs."""
    api = MagicMock(name='BookstoreApiClient')
    api.list_my_drafts.return_value = []
    api.list_submitted.return_value = []
    api.get_all_orders.return_value = []
    api.get_orders_by_customer.return_value = []
    api.get_me.return_value = {'id': 7, 'firstName': 'Ana'}
    api.get_books.return_value = []
    api.ping.return_value = True
    return api


@pytest.fixture(scope='function')
def app(api_client):
    """Create application instance for testing, wired to the mock API client."""
    app = create_app('config.Config')
    app.config['TESTING'] = True
    app.config['BOOKSTORE_API_BASE'] = 'http://bookstore.test'
    app.config['CURRENCY_SYMBOL'] = '$'
    app.config['PUBLIC_ASSET_BASE'] = ''
    app.extensions['api_client_factory'] = lambda token: api_client
    return app


@pytest.fixture(scope='function')
def app_context(app):
    """Application context for services that log through current_app."""
    with app.app_context():
        yield app


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def authenticated_client(client):
    """Test client whose session already carries an API token."""
    with client.session_transaction() as sess:
        sess['token'] = 'test-token'
    return client
