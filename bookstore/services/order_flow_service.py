"""
Order Flow Service - official list lookup, order-builder cart and submission.

The cart lives in the user's session between requests (see
bookstore.blueprints.order_flow); this module only works on plain lists of
line dicts so it stays independent of Flask's request context.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional

from flask import current_app

from bookstore.exceptions import BusinessLogicError, NotFoundError, RemoteServiceError
from bookstore.models.order_item import ConditionType
from bookstore.services import draft_lifecycle_service as lifecycle
from bookstore.services.catalog_service import to_array
from bookstore.services.my_orders_service import find_my_draft
from bookstore.services.pricing_service import (
    derive_unit_price, format_money, resolve_quantity, ZERO
)

LIST_ERROR_MESSAGES = {
    403: 'You do not have permission to view lists. Please sign in as a customer.',
    404: 'No official list found for this class/year.',
    400: 'Invalid selection. Please reselect school/class/year.',
}

SUBMIT_ERROR_MESSAGES = {
    400: 'Invalid order data. Please review your selections.',
    404: 'Official list or one of the books was not found.',
    409: 'Book already exists in this draft. You can modify the quantity instead.',
}
SUBMIT_FALLBACK_MESSAGE = 'Error submitting draft order.'

LINE_FIELDS = ('quantity', 'conditionType')


def row_key(row: Dict[str, Any]) -> str:
    """Stable key of a list book regardless of payload shape."""
    row = row or {}
    for value in (row.get('bookId'), row.get('id'), (row.get('book') or {}).get('id'), row.get('listBookId')):
        if value is not None:
            return str(value)
    return ''


def _same_class_year(entry: Dict[str, Any], class_id: int, year: int) -> bool:
    try:
        return int(entry.get('classId')) == class_id and int(entry.get('year')) == year
    except (TypeError, ValueError):
        return False


def _match_list(lists: List[Dict[str, Any]], class_id: int, year: int) -> Optional[Dict[str, Any]]:
    return next((entry for entry in lists if isinstance(entry, dict) and _same_class_year(entry, class_id, year)), None)


def _list_error(error: RemoteServiceError, class_id: Any, year: Any) -> BusinessLogicError:
    if error.server_message:
        message = error.server_message
    else:
        message = LIST_ERROR_MESSAGES.get(
            error.remote_status,
            f"No official list found for this class/year (classId={class_id}, year={year}).",
        )
    return BusinessLogicError(message, status_code=error.status_code)


def find_official_list_books(api, class_id: Any, year: Any) -> List[Dict[str, Any]]:
    """
    Books of the official list for a class and academic year.

    The lists endpoint answers in several shapes: an array of lists, a
    pageable `content` page, a single list with embedded `listBooks`, or a
    single list without books. When none of them yields books every list is
    scanned for a class/year match.

    Raises:
        BusinessLogicError: when no list (or no books) can be found
    """
    try:
        cid, yr = int(class_id), int(year)
    except (TypeError, ValueError):
        raise BusinessLogicError(LIST_ERROR_MESSAGES[400])

    try:
        data = api.get_official_list(cid, yr)
        books: List[Dict[str, Any]] = []

        if isinstance(data, list) or (isinstance(data, dict) and isinstance(data.get('content'), list)):
            match = _match_list(to_array(data), cid, yr)
            if match and match.get('id'):
                books = api.get_list_books(match['id'])
        if isinstance(data, dict):
            if isinstance(data.get('listBooks'), list):
                books = data['listBooks']
            elif data.get('id'):
                books = api.get_list_books(data['id'])
    except RemoteServiceError as e:
        current_app.logger.warning(f"[ORDER] Official list lookup failed for class {cid}, year {yr}: {e.message}")
        raise _list_error(e, cid, yr)

    if not books:
        try:
            match = _match_list(to_array(api.get_lists()), cid, yr)
            if match:
                books = api.get_list_books(match.get('id'))
        except RemoteServiceError as e:
            current_app.logger.warning(f"[ORDER] Fallback list scan failed: {e.message}")

    if not books:
        raise BusinessLogicError(
            f"No official list found for this class/year (classId={cid}, year={yr}).",
            status_code=404,
        )
    return books


def build_line_items(books: List[Dict[str, Any]], school_id: Any, class_id: Any, year: Any,
                     school_name: Optional[str] = None, class_name: Optional[str] = None) -> List[Dict[str, Any]]:
    """List books as editable order lines: quantity 1, NEW, with school/class context."""
    lines = []
    for book in books or []:
        lines.append({
            'id': book.get('bookId') if book.get('bookId') is not None else book.get('id'),
            **book,
            'quantity': 1,
            'conditionType': ConditionType.NEW.value,
            'schoolId': school_id,
            'classId': class_id,
            'schoolName': school_name or str(school_id),
            'className': class_name or str(class_id),
            'year': int(year),
        })
    return lines


def parse_quantity(value: Any) -> int:
    """
    Quantity sent by the user for a line: a whole number of at least 1.

    Raises:
        BusinessLogicError: for None, booleans, fractions, text and values below 1
    """
    if value is None or isinstance(value, bool):
        raise BusinessLogicError('Quantity must be a whole number.')
    try:
        qty = int(str(value).strip())
    except ValueError:
        raise BusinessLogicError('Quantity must be a whole number.')
    if qty < 1:
        raise BusinessLogicError('Quantity must be at least 1.')
    return qty


def price_cart_line(line: Dict[str, Any]) -> Dict[str, Any]:
    """Re-derive unitPrice and subtotal from the line's base price, condition and quantity."""
    unit = derive_unit_price(line)
    return {**line, 'unitPrice': unit, 'subtotal': unit * resolve_quantity(line)}


class OrderCart:
    """
    Accumulated selections of the order builder.

    `current` holds the lines of the loaded official list, `lines` the
    selections added so far. Both are lists of plain dicts; prices are
    Decimals and are stringified by to_dict() for session storage.
    """

    def __init__(self, lines: Optional[List[Dict[str, Any]]] = None,
                 current: Optional[List[Dict[str, Any]]] = None):
        self.lines: List[Dict[str, Any]] = [self._load(line) for line in (lines or [])]
        self.current: List[Dict[str, Any]] = list(current or [])

    @staticmethod
    def _load(line: Dict[str, Any]) -> Dict[str, Any]:
        line = dict(line)
        for field in ('unitPrice', 'subtotal'):
            if line.get(field) is not None:
                line[field] = Decimal(str(line[field]))
        return line

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'OrderCart':
        data = data or {}
        return cls(data.get('lines'), data.get('current'))

    def to_dict(self) -> Dict[str, Any]:
        lines = []
        for line in self.lines:
            stored = dict(line)
            for field in ('unitPrice', 'subtotal'):
                if isinstance(stored.get(field), Decimal):
                    stored[field] = str(stored[field])
            lines.append(stored)
        return {'lines': lines, 'current': list(self.current)}

    def load_list(self, lines: List[Dict[str, Any]]) -> None:
        self.current = list(lines)

    def add_selection(self, selected_keys: Optional[List[Any]] = None, add_all: bool = False) -> int:
        """
        Move lines of the loaded list into the cart.

        Args:
            selected_keys: book keys (see row_key) of the chosen lines
            add_all: add the whole loaded list, ignoring selected_keys

        Returns:
            Number of lines added
        """
        if not self.current:
            raise BusinessLogicError('Load a list first before adding.')

        if add_all:
            chosen = self.current
        else:
            if not selected_keys:
                raise BusinessLogicError('Select at least one book using the checkboxes.')
            keys = {str(k) for k in selected_keys}
            chosen = [line for line in self.current if row_key(line) in keys]
            if not chosen:
                raise BusinessLogicError('No books selected.')

        self.lines.extend(price_cart_line(line) for line in chosen)
        self.current = []
        return len(chosen)

    def _line_at(self, index: int) -> Dict[str, Any]:
        if not isinstance(index, int) or index < 0 or index >= len(self.lines):
            raise BusinessLogicError(f"No cart line at position {index}.", status_code=404)
        return self.lines[index]

    def update_line(self, index: int, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Change quantity and/or condition of a cart line and re-price it."""
        line = self._line_at(index)
        updated = dict(line)
        for field in LINE_FIELDS:
            if field in (changes or {}):
                updated[field] = changes[field]

        if 'conditionType' in updated:
            condition = str(updated['conditionType'] or '').strip().upper()
            if condition not in (ConditionType.NEW.value, ConditionType.USED.value):
                raise BusinessLogicError('Condition must be NEW or USED.')
            updated['conditionType'] = condition

        if 'quantity' in (changes or {}):
            updated['quantity'] = parse_quantity(changes['quantity'])
        elif updated.get('quantity') is None:
            updated['quantity'] = 1

        self.lines[index] = price_cart_line(updated)
        return self.lines[index]

    def remove_line(self, index: int) -> Dict[str, Any]:
        self._line_at(index)
        return self.lines.pop(index)

    def clear(self) -> None:
        self.lines = []

    def total(self) -> Decimal:
        return sum((line.get('subtotal') or ZERO for line in self.lines), ZERO)

    def view(self, symbol: str = '$') -> Dict[str, Any]:
        total = self.total()
        return {
            'lines': [
                {**line,
                 'unit_price_display': format_money(line.get('unitPrice'), symbol),
                 'subtotal_display': format_money(line.get('subtotal'), symbol)}
                for line in self.lines
            ],
            'current': self.current,
            'items_count': len(self.lines),
            'total': total,
            'total_display': format_money(total, symbol),
        }


def build_items_payload(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Draft item payload expected by the temp-orders API."""
    payload = []
    for item in items:
        try:
            quantity = int(item.get('quantity') or 1)
        except (TypeError, ValueError):
            quantity = 1
        payload.append({
            'bookId': item.get('bookId'),
            'quantity': quantity,
            'conditionType': item.get('conditionType'),
            'officialListId': item.get('listId'),
            'schoolId': item.get('schoolId'),
            'classId': item.get('classId'),
            'year': int(item['year']) if item.get('year') is not None else None,
        })
    return payload


def _submit_error(error: RemoteServiceError) -> BusinessLogicError:
    message = SUBMIT_ERROR_MESSAGES.get(error.remote_status) or error.server_message or SUBMIT_FALLBACK_MESSAGE
    return BusinessLogicError(message, status_code=error.status_code)


def submit_order(api, items: List[Dict[str, Any]], target_draft_id: Any = None) -> str:
    """
    Send the cart to the API.

    With a target draft the items are appended to it and it is left as is
    (it may already be SUBMITTED); the target must still be open. Otherwise
    the customer's own draft is fetched (or created), filled and submitted
    for approval.

    Returns:
        Success message for the user
    """
    if not items:
        raise BusinessLogicError('Your order is empty. Add at least one selection.')

    payload = build_items_payload(items)
    try:
        if target_draft_id:
            target = find_my_draft(api, target_draft_id)
            if not target:
                raise NotFoundError('Draft not found.')
            lifecycle.ensure_editable(target)
            api.add_items_to(target_draft_id, payload)
            current_app.logger.info(f"[ORDER] Added {len(payload)} items to draft {target_draft_id}")
            return 'Items added to your draft.'

        draft = api.get_my_draft() or {}
        draft_id = draft.get('id')
        if draft_id is None:
            raise BusinessLogicError('Could not open a draft order. Please try again.')
        api.add_items(payload)
        api.submit(draft_id)
    except RemoteServiceError as e:
        current_app.logger.error(f"[ORDER] Submit failed ({e.operation}): {e.message}")
        raise _submit_error(e)

    current_app.logger.info(f"[ORDER] Draft {draft_id} submitted with {len(payload)} items")
    return 'Draft submitted for approval!'
