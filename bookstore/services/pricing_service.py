"""
Pricing Service - unit price, subtotal and total resolution for order lines.

Every screen that shows money for an order or draft goes through this module.
Items are raw dicts from the bookstore API and come in several shapes: the
price may be `price` or `bookPrice`, the condition `conditionType`,
`condition` or `bookCondition`, and the server may already have committed a
`unitPrice` and/or `subtotal`. Committed values are trusted verbatim; the
condition-based price is only derived when they are missing.

All functions are pure. Amounts are Decimals and are never rounded here;
rounding happens once, in format_money.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional

from bookstore.models.order_item import (
    PRICE_FIELDS, ConditionType, first_present, item_condition, item_title, item_author
)

USED_DISCOUNT_RATE = Decimal('0.5')
ZERO = Decimal('0')
ONE = Decimal('1')
CENT = Decimal('0.01')


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Coerce a JSON value to a finite Decimal.

    Returns None for None, booleans, blank strings, unparseable values,
    NaN and infinities.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        num = value
    else:
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return None
        try:
            num = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError):
            return None
    if not num.is_finite():
        return None
    return num


def resolve_base_price(item: Dict[str, Any]) -> Decimal:
    """Catalog list price of the item; missing or invalid reads as 0."""
    base = to_decimal(first_present(item or {}, PRICE_FIELDS))
    return base if base is not None else ZERO


def committed_unit_price(item: Dict[str, Any]) -> Optional[Decimal]:
    """Server-committed unit price, or None when absent or invalid."""
    return to_decimal((item or {}).get('unitPrice'))


def committed_subtotal(item: Dict[str, Any]) -> Optional[Decimal]:
    """Server-committed line subtotal, or None when absent or invalid."""
    return to_decimal((item or {}).get('subtotal'))


def resolve_quantity(item: Dict[str, Any]) -> Decimal:
    """Quantity used for pricing: never below 1."""
    qty = to_decimal((item or {}).get('quantity'))
    if qty is None or qty < ONE:
        return ONE
    return qty


def derive_unit_price(item: Dict[str, Any]) -> Decimal:
    """Condition-based unit price, ignoring any committed value."""
    base = resolve_base_price(item)
    if item_condition(item) is ConditionType.USED:
        return base * USED_DISCOUNT_RATE
    return base


def resolve_unit_price(item: Dict[str, Any]) -> Decimal:
    """
    Unit price of an order line.

    A valid committed `unitPrice` is returned as-is. Otherwise USED books
    cost half the base price and NEW books the full base price.
    """
    committed = committed_unit_price(item)
    if committed is not None:
        return committed
    return derive_unit_price(item)


def resolve_subtotal(item: Dict[str, Any]) -> Decimal:
    """Line subtotal: committed `subtotal` if valid, else unit price * quantity."""
    committed = committed_subtotal(item)
    if committed is not None:
        return committed
    return resolve_unit_price(item) * resolve_quantity(item)


def compute_order_total(items: Optional[Iterable[Dict[str, Any]]]) -> Decimal:
    """Sum of the resolved line subtotals; an empty order totals 0."""
    return sum((resolve_subtotal(item) for item in (items or [])), ZERO)


def resolve_display_base_price(item: Dict[str, Any]) -> Decimal:
    """
    Pre-discount price shown struck through next to a USED line.

    When the server committed the unit price the list price is back-computed
    as twice that price, since the stored base price may be stale relative
    to what was charged. Derived USED prices and NEW lines show the base
    price.
    """
    if item_condition(item) is ConditionType.USED:
        committed = committed_unit_price(item)
        if committed is not None:
            return committed * 2
    return resolve_base_price(item)


def round_money(value: Any) -> Decimal:
    """Round to cents, half-up. Invalid values round to 0.00."""
    num = to_decimal(value)
    if num is None:
        num = ZERO
    return num.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value: Any, symbol: str = '$') -> str:
    """
    Format an amount for display: currency symbol plus exactly two decimals.

    Examples:
        format_money(Decimal('12.3')) -> "$12.30"
        format_money(Decimal('0.125')) -> "$0.13"
        format_money(None) -> "$0.00"
    """
    return f"{symbol}{round_money(value):f}"


def price_line(item: Dict[str, Any], symbol: str = '$') -> Dict[str, Any]:
    """Priced view of one order line, as shown in the order tables."""
    unit_price = resolve_unit_price(item)
    subtotal = resolve_subtotal(item)
    condition = item_condition(item)
    used = condition is ConditionType.USED
    display_base = resolve_display_base_price(item)
    quantity = resolve_quantity(item)
    if quantity == quantity.to_integral_value():
        quantity = int(quantity)

    return {
        'id': item.get('id'),
        'book_id': item.get('bookId'),
        'title': item_title(item),
        'author': item_author(item),
        'condition': condition.value,
        'is_used': used,
        'quantity': quantity,
        'unit_price': unit_price,
        'subtotal': subtotal,
        'display_base_price': display_base if used else None,
        'unit_price_display': format_money(unit_price, symbol),
        'subtotal_display': format_money(subtotal, symbol),
        'display_base_price_display': format_money(display_base, symbol) if used else None,
        'discount_label': '(50% off)' if used else None,
    }


def price_order(items: Optional[Iterable[Dict[str, Any]]], symbol: str = '$') -> Dict[str, Any]:
    """Priced lines plus total for an order or draft."""
    items = list(items or [])
    lines: List[Dict[str, Any]] = [price_line(item, symbol) for item in items]
    total = compute_order_total(items)
    return {
        'lines': lines,
        'items_count': len(items),
        'total': total,
        'total_display': format_money(total, symbol),
    }
