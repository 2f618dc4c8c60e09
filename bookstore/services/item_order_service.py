"""
Item Order Service - keeps draft items in a stable display order.

After any mutation the API returns the draft's items in whatever order it
likes. Rows the customer was looking at must not move: items still present
keep the position last shown, and items never seen before go to the end in
the order the server returned them.
"""

from typing import Any, Dict, Iterable, List, Optional, Union

OrderRef = Union[Dict[str, Any], Iterable[Any], None]


def _key(item_id: Any) -> Optional[str]:
    """Lookup key for an item id; ids compare by their string form."""
    if item_id is None:
        return None
    return str(item_id)


def _remembered_ids(previous_order: OrderRef) -> List[Any]:
    if previous_order is None:
        return []
    if isinstance(previous_order, dict):
        return list(previous_order.get('order') or [])
    return list(previous_order)


def reconcile(previous_order: OrderRef, fresh_draft: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge a freshly fetched draft into the previously displayed order.

    Args:
        previous_order: {'id': draft_id, 'order': [item ids]} or just the id list
        fresh_draft: draft as returned by the API

    Returns:
        Copy of fresh_draft whose items are the remembered ids still present
        (remembered order) followed by the unseen items (server order).
        Items removed on the server drop out silently.
    """
    fresh_draft = fresh_draft or {}
    fresh_items = list(fresh_draft.get('items') or [])
    order = _remembered_ids(previous_order)

    by_id = {}
    for item in fresh_items:
        key = _key(item.get('id'))
        if key is not None:
            by_id[key] = item

    remembered = set()
    kept = []
    for item_id in order:
        key = _key(item_id)
        remembered.add(key)
        if key in by_id:
            kept.append(by_id[key])

    extras = [item for item in fresh_items if _key(item.get('id')) not in remembered]

    return {**fresh_draft, 'items': kept + extras}


def item_ids(draft: Dict[str, Any]) -> List[Any]:
    """Ids of the draft's items in their current order."""
    return [item.get('id') for item in (draft or {}).get('items') or []]


class ItemOrderBook:
    """
    Remembered item order per draft: draft_id -> [item ids].

    Each draft is tracked independently; reconciling one never touches
    another. The book round-trips through to_dict() so it can be stored in
    the user's session between requests.
    """

    def __init__(self, orders: Optional[Dict[Any, Iterable[Any]]] = None):
        self._orders: Dict[str, List[Any]] = {
            str(draft_id): list(ids) for draft_id, ids in (orders or {}).items()
        }

    def __contains__(self, draft_id: Any) -> bool:
        return str(draft_id) in self._orders

    def __len__(self) -> int:
        return len(self._orders)

    def draft_ids(self) -> List[str]:
        return list(self._orders)

    def order_for(self, draft_id: Any) -> List[Any]:
        """Remembered order for a draft (empty list when untracked)."""
        return list(self._orders.get(str(draft_id), []))

    def remember(self, draft: Dict[str, Any]) -> bool:
        """
        Start tracking a draft that already has items.

        Drafts already tracked or without items are left alone.
        Returns True when the draft was seeded.
        """
        draft_id = (draft or {}).get('id')
        if draft_id is None or draft_id in self:
            return False
        ids = item_ids(draft)
        if not ids:
            return False
        self._orders[str(draft_id)] = ids
        return True

    def reset(self, draft: Dict[str, Any]) -> None:
        """Replace the remembered order with the draft's current item order."""
        draft_id = (draft or {}).get('id')
        if draft_id is None:
            return
        self._orders[str(draft_id)] = item_ids(draft)

    def reconcile(self, draft: Dict[str, Any], draft_id: Any = None) -> Dict[str, Any]:
        """
        Reconcile a fresh draft against its remembered order and remember the result.

        draft_id defaults to the draft's own id; pass it explicitly when the
        fresh record may be empty (e.g. the draft vanished from a listing).
        """
        if draft_id is None:
            draft_id = (draft or {}).get('id')
        ordered = reconcile({'id': draft_id, 'order': self.order_for(draft_id)}, draft)
        if draft_id is not None:
            self._orders[str(draft_id)] = item_ids(ordered)
        return ordered

    def forget(self, draft_id: Any) -> None:
        self._orders.pop(str(draft_id), None)

    def to_dict(self) -> Dict[str, List[Any]]:
        return {draft_id: list(ids) for draft_id, ids in self._orders.items()}
