"""Catalog Service - cover image URLs and joining missing images from the book catalog."""
import re
from typing import Any, Dict, List, Optional

from flask import current_app

from bookstore.exceptions import RemoteServiceError
from bookstore.services.cache_service import get_cache

ABSOLUTE_URL_PATTERN = re.compile(r'^(?:https?:)?//', re.IGNORECASE)
RELATIVE_UPLOAD_PREFIXES = ('uploads/', 'images/', 'files/')
IMAGE_FIELDS = ('imageUrl', 'bookImageUrl', 'coverUrl', 'imagePath')


def to_array(value: Any) -> list:
    """Normalize an API payload to a list (plain list or pageable `content`)."""
    if isinstance(value, list):
        return value
    if isinstance(value, dict) and isinstance(value.get('content'), list):
        return value['content']
    return []


def resolve_image_url(url: Any, base: Optional[str] = None) -> str:
    """
    Resolve a possibly relative image URL so it can be used as an <img src>.

    - Empty input gives ''.
    - Absolute (http/https, protocol-relative) and data: URLs are returned as-is.
    - 'uploads/...', 'images/...' and 'files/...' become root-relative.
    - Relative paths are prefixed with base when one is configured.
    """
    if not url:
        return ''
    s = str(url).strip()
    if ABSOLUTE_URL_PATTERN.match(s) or s.startswith('data:'):
        return s

    if base is None:
        base = current_app.config.get('PUBLIC_ASSET_BASE', '')

    if s.startswith(RELATIVE_UPLOAD_PREFIXES):
        s = f"/{s}"

    if base:
        b = base[:-1] if base.endswith('/') else base
        p = s if s.startswith('/') else f"/{s}"
        return f"{b}{p}"
    return s


def pick_image(book: Optional[Dict[str, Any]]) -> str:
    """First image field present on a catalog entry (or its nested book)."""
    if not book:
        return ''
    for field in IMAGE_FIELDS:
        if book.get(field):
            return book[field]
    nested = book.get('book')
    if isinstance(nested, dict):
        return nested.get('imageUrl') or nested.get('coverUrl') or ''
    return ''


def _title_key(value: Any) -> str:
    return str(value or '').lower().strip()


def catalog_books(api) -> List[Dict[str, Any]]:
    """Full book catalog, cached for CACHE_CATALOG_TTL seconds."""
    ttl = current_app.config.get('CACHE_CATALOG_TTL', 300)
    return get_cache().memoize('catalog', 'books', lambda: to_array(api.get_books()), ttl)


def enrich_item_images(items: List[Dict[str, Any]], api) -> List[Dict[str, Any]]:
    """
    Fill in `imageUrl` for items that have none, joining the catalog by bookId
    and then by case-insensitive title.

    Returns a new list; items that already have an image are untouched. A
    catalog failure leaves the items as they were.
    """
    items = list(items or [])
    needs = any(not it.get('imageUrl') and not (it.get('book') or {}).get('imageUrl') for it in items)
    if not needs:
        return items

    try:
        catalog = catalog_books(api)
    except RemoteServiceError as e:
        current_app.logger.warning(f"[CATALOG] Could not load catalog for image enrichment: {e.message}")
        return items

    by_id = {str(b.get('id')): b for b in catalog if isinstance(b, dict)}
    by_title = {_title_key(b.get('title')): b for b in catalog if isinstance(b, dict)}

    enriched = []
    for it in items:
        if it.get('imageUrl'):
            enriched.append(it)
            continue
        match = by_id.get(str(it.get('bookId'))) or by_title.get(_title_key(it.get('bookTitle') or it.get('title')))
        img = pick_image(match)
        enriched.append({**it, 'imageUrl': img} if img else it)
    return enriched
