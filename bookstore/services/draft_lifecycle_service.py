"""Draft Lifecycle Service - which customer/admin actions a draft status allows."""

from typing import Any, Dict

from bookstore.exceptions import DraftLockedError
from bookstore.models.draft import DraftStatus, draft_status


def can_edit(draft: Dict[str, Any]) -> bool:
    """Items may be updated or removed while DRAFT or SUBMITTED."""
    status = draft_status(draft)
    return status is not None and status.is_open


def can_delete(draft: Dict[str, Any]) -> bool:
    """Customer may delete the whole draft while DRAFT or SUBMITTED."""
    status = draft_status(draft)
    return status is not None and status.is_open


def can_submit(draft: Dict[str, Any]) -> bool:
    return draft_status(draft) is DraftStatus.DRAFT


def can_approve(draft: Dict[str, Any]) -> bool:
    return draft_status(draft) is DraftStatus.SUBMITTED


def can_transition(current: Any, target: Any) -> bool:
    """Forward-only check: DRAFT -> SUBMITTED -> APPROVED, one step at a time."""
    current_status = DraftStatus.parse(current)
    target_status = DraftStatus.parse(target)
    if current_status is None or target_status is None:
        return False
    return target_status.rank == current_status.rank + 1


def ensure_editable(draft: Dict[str, Any]) -> None:
    """Raise DraftLockedError unless the draft's items can still be changed."""
    if not can_edit(draft):
        raise DraftLockedError(
            'Only Draft or Submitted orders can be modified.',
            draft_id=(draft or {}).get('id'),
            status=(draft or {}).get('status'),
        )


def ensure_deletable(draft: Dict[str, Any]) -> None:
    """
    Raise DraftLockedError when the customer may not delete this draft.

    Must be called before the cancel request is sent: the API forbids
    deleting approved drafts as well, so this fails fast.
    """
    status = draft_status(draft)
    if status is DraftStatus.APPROVED:
        raise DraftLockedError(
            'Approved orders cannot be deleted by customer.',
            draft_id=(draft or {}).get('id'),
            status=status.value,
        )
    if status is None or not status.is_open:
        raise DraftLockedError(
            'Only Draft or Submitted orders can be deleted.',
            draft_id=(draft or {}).get('id'),
            status=(draft or {}).get('status'),
        )
