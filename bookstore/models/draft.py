"""Draft (temp order) status model."""
import enum
from typing import Any, Dict, Optional


class DraftStatus(str, enum.Enum):
    """
    Draft lifecycle status.

    Forward only: DRAFT -> SUBMITTED -> APPROVED.
    """
    DRAFT = 'DRAFT'
    SUBMITTED = 'SUBMITTED'
    APPROVED = 'APPROVED'

    @classmethod
    def parse(cls, value: Any, default: Optional['DraftStatus'] = None) -> Optional['DraftStatus']:
        """Parse a status string case-insensitively; unknown values return default."""
        if isinstance(value, cls):
            return value
        if value is None:
            return default
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return default

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    @property
    def is_open(self) -> bool:
        """Customer may still edit items or delete the draft."""
        return self in (DraftStatus.DRAFT, DraftStatus.SUBMITTED)


_STATUS_RANK = {
    DraftStatus.DRAFT: 0,
    DraftStatus.SUBMITTED: 1,
    DraftStatus.APPROVED: 2,
}


def draft_status(draft: Dict[str, Any], default: Optional[DraftStatus] = None) -> Optional[DraftStatus]:
    """Status of a draft record as returned by the API."""
    return DraftStatus.parse((draft or {}).get('status'), default)


def draft_items(draft: Dict[str, Any]) -> list:
    """Items of a draft or order record, accepting the `orderItems` alias."""
    draft = draft or {}
    if isinstance(draft.get('orderItems'), list):
        return draft['orderItems']
    if isinstance(draft.get('items'), list):
        return draft['items']
    return []
