"""
Unit tests for the Redis cache service (Redis client mocked).
"""

from decimal import Decimal
from unittest.mock import MagicMock

from redis.exceptions import ConnectionError

from bookstore.services.cache_service import CacheService, get_cache


def _service(client=None):
    cache = CacheService()
    cache._enabled = True
    cache._prefix = 'bookstore'
    cache.client = client or MagicMock()
    return cache


class TestCacheService:

    def test_disabled_cache_is_a_no_op(self):
        cache = CacheService()
        assert cache.is_available() is False
        assert cache.get('catalog', 'books') is None
        assert cache.set('catalog', 'books', [1]) is False
        assert cache.delete('catalog', 'books') is False

    def test_key_pattern(self):
        assert _service()._build_key('catalog', 'books') == 'bookstore:catalog:books'

    def test_set_and_get_keep_decimals(self, app_context):
        store = {}
        client = MagicMock()
        client.setex.side_effect = lambda key, ttl, value: store.__setitem__(key, value)
        client.get.side_effect = store.get
        cache = _service(client)

        assert cache.set('catalog', 'books', [{'price': Decimal('12.50')}], ttl=30) is True
        assert cache.get('catalog', 'books') == [{'price': Decimal('12.50')}]
        client.setex.assert_called_once()
        assert client.setex.call_args[0][1] == 30

    def test_memoize_loads_once_on_miss(self, app_context):
        client = MagicMock()
        client.get.return_value = None
        cache = _service(client)
        loader = MagicMock(return_value=[{'id': 1}])

        assert cache.memoize('catalog', 'books', loader, ttl=10) == [{'id': 1}]
        loader.assert_called_once()

    def test_memoize_uses_cached_value(self):
        client = MagicMock()
        client.get.return_value = '[{"id": 2}]'
        loader = MagicMock()

        assert _service(client).memoize('catalog', 'books', loader) == [{'id': 2}]
        loader.assert_not_called()

    def test_redis_down_degrades(self):
        client = MagicMock()
        client.ping.side_effect = ConnectionError('down')

        cache = _service(client)
        assert cache.is_available() is False
        assert cache.get('catalog', 'books') is None

    def test_delete(self):
        client = MagicMock()
        assert _service(client).delete('catalog', 'books') is True
        client.delete.assert_called_once_with('bookstore:catalog:books')

    def test_unreachable_redis_disables_cache(self, app, mocker):
        client = MagicMock()
        client.ping.side_effect = ConnectionError('refused')
        mocker.patch('bookstore.services.cache_service.redis.from_url', return_value=client)
        app.config['CACHE_ENABLED'] = True

        cache = CacheService(app)

        assert cache.is_available() is False
        assert cache.memoize('catalog', 'books', lambda: ['fresh']) == ['fresh']

    def test_app_cache_is_registered(self, app_context, app):
        assert get_cache() is app.extensions['cache']
