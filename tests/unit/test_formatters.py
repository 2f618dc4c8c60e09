"""
Unit tests for view formatting helpers and cover image resolution.
"""

import pytest
from datetime import datetime, timezone

from bookstore.utils.formatters import (
    EPOCH, format_date, full_name, normalize_query, parse_timestamp, search_haystack
)
from bookstore.services.catalog_service import pick_image, resolve_image_url, to_array


class TestFormatDate:

    @pytest.mark.parametrize('value, expected', [
        ('2025-03-07T10:15:00Z', '07/03/2025'),
        ('2024-12-31', '31/12/2024'),
        (datetime(2025, 1, 2, 23, 0), '02/01/2025'),
        (None, '-'),
        ('', '-'),
        ('garbage', '-'),
    ])
    def test_format_date(self, value, expected):
        assert format_date(value) == expected

    def test_placeholder(self):
        assert format_date(None, placeholder='N/A') == 'N/A'


class TestParseTimestamp:

    def test_zulu_timestamp(self):
        assert parse_timestamp('2025-03-07T10:15:00Z') == datetime(2025, 3, 7, 10, 15, tzinfo=timezone.utc)

    def test_naive_timestamp_is_utc(self):
        assert parse_timestamp('2025-03-07T10:15:00').tzinfo is timezone.utc

    def test_invalid_sorts_as_epoch(self):
        assert parse_timestamp('nope') == EPOCH
        assert parse_timestamp(None) == EPOCH


class TestNamesAndSearch:

    def test_full_name(self):
        assert full_name('Ana', 'Diaz') == 'Ana Diaz'
        assert full_name('Ana', None) == 'Ana'
        assert full_name(None, None, fallback=42) == '42'
        assert full_name(None, None) == ''

    def test_search_haystack_skips_none(self):
        assert search_haystack([12, None, 'DRAFT']) == '12 draft'

    def test_normalize_query(self):
        assert normalize_query('  Math ') == 'math'
        assert normalize_query(None) == ''


class TestImages:
    """Tests for cover image URL resolution."""

    @pytest.mark.parametrize('url, base, expected', [
        ('https://cdn.test/a.png', 'http://api.test', 'https://cdn.test/a.png'),
        ('//cdn.test/a.png', '', '//cdn.test/a.png'),
        ('data:image/png;base64,xx', 'http://api.test', 'data:image/png;base64,xx'),
        ('uploads/a.png', '', '/uploads/a.png'),
        ('uploads/a.png', 'http://api.test/', 'http://api.test/uploads/a.png'),
        ('covers/a.png', 'http://api.test', 'http://api.test/covers/a.png'),
        ('/covers/a.png', '', '/covers/a.png'),
        ('', 'http://api.test', ''),
        (None, '', ''),
    ])
    def test_resolve_image_url(self, url, base, expected):
        assert resolve_image_url(url, base=base) == expected

    def test_resolve_image_url_reads_config(self, app_context):
        app_context.config['PUBLIC_ASSET_BASE'] = 'http://assets.test'
        assert resolve_image_url('images/x.jpg') == 'http://assets.test/images/x.jpg'

    def test_pick_image_field_order(self):
        assert pick_image({'coverUrl': 'c', 'bookImageUrl': 'b'}) == 'b'
        assert pick_image({'book': {'coverUrl': 'n'}}) == 'n'
        assert pick_image(None) == ''

    def test_to_array(self):
        assert to_array([1]) == [1]
        assert to_array({'content': [2]}) == [2]
        assert to_array({'x': 1}) == []
        assert to_array(None) == []
