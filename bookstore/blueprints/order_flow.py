"""Order builder blueprint - official lists, session cart and submission."""
from flask import Blueprint, current_app, jsonify, request, session

from bookstore.exceptions import BusinessLogicError
from bookstore.middleware import get_api_client, require_token
from bookstore.services.catalog_service import to_array
from bookstore.services.order_flow_service import (
    OrderCart, build_line_items, find_official_list_books, submit_order
)

order_flow_bp = Blueprint('order_flow', __name__, url_prefix='/order')


def get_cart() -> OrderCart:
    """Get the order-builder cart from session."""
    return OrderCart.from_dict(session.get('order_cart'))


def save_cart(cart: OrderCart) -> None:
    """Save cart to session (Decimals are stored as strings)."""
    session['order_cart'] = cart.to_dict()
    session.modified = True


def _symbol() -> str:
    return current_app.config.get('CURRENCY_SYMBOL', '$')


@order_flow_bp.route('/schools')
@require_token
def schools():
    """Schools for the picker; ?q= searches by name."""
    api = get_api_client()
    q = request.args.get('q', '').strip()
    data = api.search_schools(q) if q else api.get_schools()
    return jsonify({'schools': to_array(data)})


@order_flow_bp.route('/schools/<int:school_id>/classes')
@require_token
def classes(school_id):
    return jsonify({'classes': to_array(get_api_client().get_classes_by_school(school_id))})


@order_flow_bp.route('/list', methods=['POST'])
@require_token
def load_list():
    """
    Load the official list of a class/year as editable lines.

    Body: {schoolId, classId, year, schoolName?, className?}
    """
    data = request.get_json(silent=True) or {}
    for field in ('schoolId', 'classId', 'year'):
        if data.get(field) in (None, ''):
            raise BusinessLogicError('Invalid selection. Please reselect school/class/year.')

    cart = get_cart()
    cart.load_list([])
    save_cart(cart)

    books = find_official_list_books(get_api_client(), data['classId'], data['year'])
    lines = build_line_items(books, data['schoolId'], data['classId'], data['year'],
                             school_name=data.get('schoolName'), class_name=data.get('className'))
    cart.load_list(lines)
    save_cart(cart)

    current_app.logger.info(f"[ORDER] Loaded {len(lines)} books for class {data['classId']}, year {data['year']}")
    return jsonify({'status': 'success', 'current': lines})


@order_flow_bp.route('/cart')
@require_token
def view_cart():
    return jsonify(get_cart().view(_symbol()))


@order_flow_bp.route('/cart', methods=['POST'])
@require_token
def add_to_cart():
    """Add the chosen books ({keys: [...]}) or the whole list ({all: true}) to the cart."""
    data = request.get_json(silent=True) or {}
    cart = get_cart()
    add_all = bool(data.get('all'))
    added = cart.add_selection(data.get('keys'), add_all=add_all)
    save_cart(cart)

    message = 'Entire list added to order.' if add_all else 'Selected books added to order.'
    return jsonify({'status': 'success', 'message': message, 'added': added, **cart.view(_symbol())})


@order_flow_bp.route('/cart/<int:index>', methods=['PATCH'])
@require_token
def update_cart_line(index):
    cart = get_cart()
    cart.update_line(index, request.get_json(silent=True) or {})
    save_cart(cart)
    return jsonify({'status': 'success', **cart.view(_symbol())})


@order_flow_bp.route('/cart/<int:index>', methods=['DELETE'])
@require_token
def remove_cart_line(index):
    cart = get_cart()
    cart.remove_line(index)
    save_cart(cart)
    return jsonify({'status': 'success', **cart.view(_symbol())})


@order_flow_bp.route('/cart', methods=['DELETE'])
@require_token
def clear_cart():
    cart = get_cart()
    cart.clear()
    save_cart(cart)
    return jsonify({'status': 'success', **cart.view(_symbol())})


@order_flow_bp.route('/submit', methods=['POST'])
@require_token
def submit():
    """
    Submit the cart (or, when empty, the loaded list).

    With {draftId} the items are added to that draft instead of the
    customer's own draft being submitted.
    """
    data = request.get_json(silent=True) or {}
    cart = get_cart()
    items = cart.lines or cart.current

    message = submit_order(get_api_client(), items, target_draft_id=data.get('draftId'))

    cart.clear()
    cart.load_list([])
    save_cart(cart)
    return jsonify({'status': 'success', 'message': message})
