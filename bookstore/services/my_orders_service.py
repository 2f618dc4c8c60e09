"""My Orders Service - customer order history and draft editing."""

from typing import Any, Dict, List, Optional

from flask import current_app

from bookstore.exceptions import BusinessLogicError, NotFoundError
from bookstore.models.draft import DraftStatus, draft_items
from bookstore.models.order_item import ConditionType
from bookstore.services import draft_lifecycle_service as lifecycle
from bookstore.services.item_order_service import ItemOrderBook
from bookstore.services.pricing_service import compute_order_total, price_order
from bookstore.utils.formatters import (
    format_date, normalize_query, parse_timestamp, search_haystack
)

SORT_OPTIONS = ('date_desc', 'date_asc', 'total_desc', 'total_asc')
DEFAULT_SORT = 'date_desc'
EDITABLE_FIELDS = ('quantity', 'conditionType')


class MyOrdersState:
    """
    Per-session view state for the customer's drafts.

    Holds the remembered item order of every draft (ItemOrderBook) and the
    last status seen for each draft, so lifecycle guards can run before any
    request is sent.
    """

    def __init__(self, item_orders: Optional[Dict[str, list]] = None,
                 statuses: Optional[Dict[str, str]] = None):
        self.book = ItemOrderBook(item_orders)
        self.statuses: Dict[str, str] = dict(statuses or {})

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'MyOrdersState':
        data = data or {}
        return cls(data.get('item_orders'), data.get('statuses'))

    def to_dict(self) -> Dict[str, Any]:
        return {'item_orders': self.book.to_dict(), 'statuses': dict(self.statuses)}

    def remember_status(self, draft: Dict[str, Any]) -> None:
        if draft and draft.get('id') is not None and draft.get('status'):
            self.statuses[str(draft['id'])] = str(draft['status'])

    def known_draft(self, draft_id: Any) -> Optional[Dict[str, Any]]:
        """Minimal draft record from the last status seen, or None."""
        status = self.statuses.get(str(draft_id))
        if status is None:
            return None
        return {'id': draft_id, 'status': status}

    def forget(self, draft_id: Any) -> None:
        self.book.forget(draft_id)
        self.statuses.pop(str(draft_id), None)

    def prune(self, drafts: List[Dict[str, Any]]) -> None:
        """Drop every tracked draft missing from a full listing of the customer's drafts."""
        live = {str(d.get('id')) for d in drafts or [] if d.get('id') is not None}
        for draft_id in set(self.book.draft_ids()) | set(self.statuses):
            if draft_id not in live:
                self.forget(draft_id)


def normalize_approved_orders(orders: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Finalized orders: items from `orderItems` when present, status defaults to APPROVED."""
    return [
        {**o, 'items': draft_items(o), 'status': o.get('status') or DraftStatus.APPROVED.value}
        for o in (orders or [])
    ]


def order_total(order: Dict[str, Any]):
    return compute_order_total(draft_items(order))


def matches_query(order: Dict[str, Any], query: str) -> bool:
    """Case-insensitive match on id, status, date and item titles/authors."""
    item_text = ' '.join(
        ' '.join(str(v) for v in (it.get('title'), it.get('bookTitle'), it.get('author'), it.get('bookAuthor')) if v)
        for it in draft_items(order)
    )
    hay = search_haystack([
        order.get('id') or '',
        order.get('status') or '',
        order.get('orderDate') or order.get('createdAt') or '',
        item_text,
    ])
    return query in hay


def filter_orders(orders: List[Dict[str, Any]], query: Any) -> List[Dict[str, Any]]:
    q = normalize_query(query)
    if not q:
        return list(orders or [])
    return [o for o in (orders or []) if matches_query(o, q)]


def sort_orders(orders: List[Dict[str, Any]], sort_by: str = DEFAULT_SORT) -> List[Dict[str, Any]]:
    """Sort by order date or by total, ascending or descending."""
    if sort_by not in SORT_OPTIONS:
        raise BusinessLogicError(f"Unknown sort option: {sort_by}")

    if sort_by.startswith('date'):
        key = lambda o: parse_timestamp(o.get('orderDate') or o.get('createdAt'))
    else:
        key = order_total
    return sorted(orders or [], key=key, reverse=sort_by.endswith('_desc'))


def summarize_order(order: Dict[str, Any], symbol: str = '$') -> Dict[str, Any]:
    """Card view of an order or draft: status, counts, priced lines and total."""
    status = order.get('status') or DraftStatus.DRAFT.value
    priced = price_order(draft_items(order), symbol)
    return {
        'id': order.get('id'),
        'status': status,
        'ordered_on': format_date(order.get('orderDate') or order.get('createdAt'), placeholder='N/A'),
        'items_count': priced['items_count'],
        'lines': priced['lines'],
        'total': priced['total'],
        'total_display': priced['total_display'],
        'can_edit': lifecycle.can_edit(order),
        'can_delete': lifecycle.can_delete(order),
        'items': draft_items(order),
    }


def load_my_orders(api, state: MyOrdersState) -> Dict[str, List[Dict[str, Any]]]:
    """
    Approved orders plus all drafts of the current customer.

    Drafts that already carry items start being tracked for stable ordering;
    drafts tracked earlier keep their remembered order.
    """
    me = api.get_me()
    orders = normalize_approved_orders(api.get_orders_by_customer(me.get('id')))
    drafts = api.list_my_drafts()
    state.prune(drafts)

    ordered_drafts = []
    for draft in drafts:
        if draft.get('id') in state.book:
            draft = state.book.reconcile(draft)
        else:
            state.book.remember(draft)
        state.remember_status(draft)
        ordered_drafts.append(draft)

    current_app.logger.info(
        f"[ORDERS] Loaded {len(orders)} orders and {len(ordered_drafts)} drafts for customer {me.get('id')}"
    )
    return {'orders': orders, 'drafts': ordered_drafts}


def find_my_draft(api, draft_id: Any) -> Dict[str, Any]:
    """The customer's draft with this id, via the customer-accessible listing ({} if absent)."""
    for draft in api.list_my_drafts():
        if str(draft.get('id')) == str(draft_id):
            return draft
    return {}


def refresh_draft(api, state: MyOrdersState, draft_id: Any) -> Dict[str, Any]:
    """Re-fetch a draft after a mutation and reconcile it against the remembered order."""
    fresh = find_my_draft(api, draft_id)
    ordered = state.book.reconcile(fresh, draft_id=draft_id)
    state.remember_status(ordered)
    return ordered


def get_draft_detail(api, state: MyOrdersState, draft_id: Any) -> Dict[str, Any]:
    """
    Draft with its items for the expanded card.

    A draft seen for the first time (or tracked without items) has its
    remembered order reset to the server order.
    """
    fresh = find_my_draft(api, draft_id)
    if not fresh:
        raise NotFoundError('Draft not found.')

    if state.book.order_for(draft_id):
        draft = state.book.reconcile(fresh, draft_id=draft_id)
    else:
        state.book.reset(fresh)
        draft = fresh
    state.remember_status(draft)
    return draft


def _guard_draft(api, state: MyOrdersState, draft_id: Any) -> Dict[str, Any]:
    """Draft record to run lifecycle guards on: last status seen, else fetched."""
    known = state.known_draft(draft_id)
    if known is not None:
        return known
    draft = find_my_draft(api, draft_id)
    if not draft:
        raise NotFoundError('Draft not found.')
    state.remember_status(draft)
    return draft


def clean_item_patch(patch: Dict[str, Any]) -> Dict[str, Any]:
    """Validate an item edit: positive integer quantity and/or NEW/USED condition."""
    cleaned = {}
    for field in EDITABLE_FIELDS:
        if field in (patch or {}):
            cleaned[field] = patch[field]

    if not cleaned:
        raise BusinessLogicError('Nothing to update: send quantity and/or conditionType.')

    if 'quantity' in cleaned:
        try:
            qty = int(str(cleaned['quantity']).strip())
        except ValueError:
            raise BusinessLogicError('Quantity must be a whole number.')
        if qty < 1:
            raise BusinessLogicError('Quantity must be at least 1.')
        cleaned['quantity'] = qty

    if 'conditionType' in cleaned:
        condition = str(cleaned['conditionType'] or '').strip().upper()
        if condition not in (ConditionType.NEW.value, ConditionType.USED.value):
            raise BusinessLogicError('Condition must be NEW or USED.')
        cleaned['conditionType'] = condition

    return cleaned


def update_draft_item(api, state: MyOrdersState, draft_id: Any, item_id: Any,
                      patch: Dict[str, Any]) -> Dict[str, Any]:
    """Update one line of an open draft and return the reconciled draft."""
    cleaned = clean_item_patch(patch)
    lifecycle.ensure_editable(_guard_draft(api, state, draft_id))

    api.update_item(item_id, cleaned)
    current_app.logger.info(f"[ORDERS] Updated item {item_id} of draft {draft_id}: {cleaned}")
    return refresh_draft(api, state, draft_id)


def remove_draft_item(api, state: MyOrdersState, draft_id: Any, item_id: Any) -> Dict[str, Any]:
    """Remove one line of an open draft and return the reconciled draft."""
    lifecycle.ensure_editable(_guard_draft(api, state, draft_id))

    api.remove_item(item_id)
    current_app.logger.info(f"[ORDERS] Removed item {item_id} from draft {draft_id}")
    return refresh_draft(api, state, draft_id)


def delete_draft(api, state: MyOrdersState, draft_id: Any) -> List[Dict[str, Any]]:
    """
    Cancel a customer draft and return the refreshed draft list.

    Approved drafts are rejected before the cancel request is sent.
    """
    lifecycle.ensure_deletable(_guard_draft(api, state, draft_id))

    api.cancel(draft_id)
    state.forget(draft_id)
    current_app.logger.info(f"[ORDERS] Draft {draft_id} deleted by customer")

    drafts = api.list_my_drafts()
    state.prune(drafts)
    for draft in drafts:
        state.remember_status(draft)
    return drafts
