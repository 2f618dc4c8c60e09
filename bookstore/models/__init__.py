"""Models package - order and draft records as returned by the bookstore API."""
from bookstore.models.draft import DraftStatus, draft_status, draft_items
from bookstore.models.order_item import (
    ConditionType, item_condition, is_used, item_title, item_author, first_present
)

__all__ = [
    'DraftStatus', 'draft_status', 'draft_items',
    'ConditionType', 'item_condition', 'is_used', 'item_title', 'item_author', 'first_present',
]
