"""Customer Order Service - admin history of finalized customer orders."""
from typing import Any, Dict, List

from flask import current_app

from bookstore.models.draft import draft_items
from bookstore.services.catalog_service import enrich_item_images, resolve_image_url
from bookstore.services.pricing_service import compute_order_total, format_money, price_order
from bookstore.utils.formatters import format_date, full_name, normalize_query, search_haystack

SEARCH_FIELDS = ('id', 'customer', 'school', 'class', 'year', 'created_at', 'books', 'authors')


def order_row(order: Dict[str, Any], symbol: str = '$') -> Dict[str, Any]:
    """
    Table row of an order.

    School, class and year are taken from the first line; books and authors
    are the comma-joined titles and authors of all lines.
    """
    items = draft_items(order)
    first = items[0] if items else {}
    created_raw = order.get('orderDate') or order.get('createdAt') or ''
    total = compute_order_total(items)

    return {
        'id': order.get('id'),
        'customer': full_name(order.get('customerFirstName'), order.get('customerLastName')),
        'school': first.get('schoolName') or '',
        'class': first.get('className') or '',
        'year': str(first['year']) if first.get('year') else '',
        'created_at': format_date(created_raw, placeholder=''),
        'created_at_raw': created_raw,
        'books': ', '.join(str(it.get('bookTitle') or '') for it in items),
        'authors': ', '.join(str(it.get('bookAuthor') or '') for it in items),
        'items_count': len(items),
        'total': total,
        'total_display': format_money(total, symbol),
    }


def list_order_rows(api, symbol: str = '$') -> List[Dict[str, Any]]:
    return [order_row(o, symbol) for o in api.get_all_orders()]


def filter_order_rows(rows: List[Dict[str, Any]], query: Any) -> List[Dict[str, Any]]:
    q = normalize_query(query)
    if not q:
        return list(rows)
    return [r for r in rows if q in search_haystack(r.get(f) for f in SEARCH_FIELDS)]


def order_detail(api, order_id: Any, symbol: str = '$') -> Dict[str, Any]:
    """Order row plus priced lines with cover images."""
    order = api.get_order(order_id)
    items = enrich_item_images(draft_items(order), api)
    priced = price_order(items, symbol)
    for line, item in zip(priced['lines'], items):
        line['image_url'] = resolve_image_url(item.get('imageUrl'))

    return {
        **order_row(order, symbol),
        'lines': priced['lines'],
        'total': priced['total'],
        'total_display': priced['total_display'],
    }


def delete_order(api, order_id: Any) -> str:
    api.delete_order(order_id)
    current_app.logger.info(f"[ADMIN] Customer order {order_id} deleted")
    return 'Order deleted.'
