"""Order item model: readers for the several shapes the API returns."""
import enum
from typing import Any, Dict


class ConditionType(str, enum.Enum):
    """Book condition for an order line."""
    NEW = 'NEW'
    USED = 'USED'


# Alias field names accepted on input, in precedence order.
PRICE_FIELDS = ('price', 'bookPrice')
CONDITION_FIELDS = ('conditionType', 'condition', 'bookCondition')
TITLE_FIELDS = ('bookTitle', 'title')
AUTHOR_FIELDS = ('bookAuthor', 'author')


def first_present(item: Dict[str, Any], fields) -> Any:
    """Return the first field value that is not None (JS `??` chain)."""
    for field in fields:
        value = item.get(field)
        if value is not None:
            return value
    return None


def item_condition(item: Dict[str, Any]) -> ConditionType:
    """Condition of an item; anything other than USED reads as NEW."""
    raw = first_present(item or {}, CONDITION_FIELDS)
    if raw is not None and str(raw).strip().upper() == ConditionType.USED.value:
        return ConditionType.USED
    return ConditionType.NEW


def is_used(item: Dict[str, Any]) -> bool:
    return item_condition(item) is ConditionType.USED


def _first_truthy(item: Dict[str, Any], fields) -> Any:
    for field in fields:
        value = item.get(field)
        if value:
            return value
    return None


def item_title(item: Dict[str, Any], placeholder: str = '-') -> str:
    value = _first_truthy(item or {}, TITLE_FIELDS)
    return str(value) if value else placeholder


def item_author(item: Dict[str, Any], placeholder: str = '-') -> str:
    value = _first_truthy(item or {}, AUTHOR_FIELDS)
    return str(value) if value else placeholder
