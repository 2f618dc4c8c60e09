"""Admin Draft Service - review queue of submitted drafts."""
import re
from typing import Any, Dict, List

from flask import current_app

from bookstore.exceptions import RemoteServiceError
from bookstore.models.draft import draft_items
from bookstore.services.catalog_service import enrich_item_images, resolve_image_url
from bookstore.services.pricing_service import price_order
from bookstore.utils.formatters import format_date, full_name, normalize_query, search_haystack

DIGITS_ONLY = re.compile(r'^\d+$')


def customer_name(draft: Dict[str, Any]) -> str:
    return full_name(draft.get('customerFirstName'), draft.get('customerLastName'),
                     fallback=draft.get('customerId'))


def draft_row(draft: Dict[str, Any]) -> Dict[str, Any]:
    """Queue row of a submitted draft."""
    return {
        'id': draft.get('id'),
        'customer_name': customer_name(draft),
        'status': draft.get('status'),
        'created_at': format_date(draft.get('createdAt')),
        'updated_at': draft.get('updatedAt'),
        'items_count': len(draft_items(draft)),
    }


def _needs_name(row: Dict[str, Any]) -> bool:
    name = row.get('customer_name')
    return not name or bool(DIGITS_ONLY.match(name))


def list_submitted_rows(api) -> List[Dict[str, Any]]:
    """
    Submitted drafts as queue rows.

    Rows whose customer name is missing or just the customer id are looked
    up in the draft detail; a failing lookup leaves that row unchanged.
    """
    rows = [draft_row(d) for d in api.list_submitted()]

    for row in rows:
        if not _needs_name(row):
            continue
        try:
            detail = api.get_draft(row['id'])
        except RemoteServiceError as e:
            current_app.logger.warning(f"[ADMIN] Could not resolve customer of draft {row['id']}: {e.message}")
            continue
        name = full_name(detail.get('customerFirstName'), detail.get('customerLastName'))
        if name:
            row['customer_name'] = name

    return rows


def filter_rows(rows: List[Dict[str, Any]], query: Any) -> List[Dict[str, Any]]:
    """Case-insensitive match on id, customer, status, created date and item count."""
    q = normalize_query(query)
    if not q:
        return list(rows)
    return [
        r for r in rows
        if q in search_haystack([r.get('id'), r.get('customer_name'), r.get('status'),
                                 r.get('created_at'), r.get('items_count')])
    ]


def draft_detail(api, draft_id: Any, symbol: str = '$') -> Dict[str, Any]:
    """Draft with priced lines, total and cover images."""
    draft = api.get_draft(draft_id)
    items = enrich_item_images(draft_items(draft), api)
    priced = price_order(items, symbol)
    for line, item in zip(priced['lines'], items):
        line['image_url'] = resolve_image_url(item.get('imageUrl'))

    return {
        'id': draft.get('id'),
        'status': draft.get('status') or 'PENDING',
        'customer_name': customer_name(draft) or 'N/A',
        'created_at': format_date(draft.get('createdAt'), placeholder='N/A'),
        'lines': priced['lines'],
        'items_count': priced['items_count'],
        'total': priced['total'],
        'total_display': priced['total_display'],
    }


def approve_draft(api, draft_id: Any) -> str:
    """Approve a submitted draft; the API enforces the SUBMITTED precondition."""
    api.approve(draft_id)
    current_app.logger.info(f"[ADMIN] Draft {draft_id} approved")
    return 'Order approved.'
