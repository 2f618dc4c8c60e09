"""Customer order history blueprint - approved orders, drafts and draft editing."""
from flask import Blueprint, current_app, jsonify, request, session

from bookstore.middleware import get_api_client, require_token
from bookstore.services import my_orders_service as svc

my_orders_bp = Blueprint('my_orders', __name__, url_prefix='/my-orders')


def get_state() -> svc.MyOrdersState:
    """Remembered draft item order and statuses from session."""
    return svc.MyOrdersState.from_dict(session.get('my_orders'))


def save_state(state: svc.MyOrdersState) -> None:
    session['my_orders'] = state.to_dict()
    session.modified = True


def _symbol() -> str:
    return current_app.config.get('CURRENCY_SYMBOL', '$')


@my_orders_bp.route('')
@require_token
def index():
    """
    Approved orders and drafts of the customer.

    Query params: q (search), sort (date_desc, date_asc, total_desc, total_asc).
    """
    q = request.args.get('q', '')
    sort_by = request.args.get('sort', svc.DEFAULT_SORT)

    state = get_state()
    data = svc.load_my_orders(get_api_client(), state)
    save_state(state)

    orders = svc.sort_orders(svc.filter_orders(data['orders'], q), sort_by)
    drafts = svc.sort_orders(svc.filter_orders(data['drafts'], q), sort_by)
    symbol = _symbol()

    return jsonify({
        'orders': [svc.summarize_order(o, symbol) for o in orders],
        'drafts': [svc.summarize_order(d, symbol) for d in drafts],
        'sort': sort_by,
        'q': q,
    })


@my_orders_bp.route('/drafts/<int:draft_id>')
@require_token
def draft_detail(draft_id):
    state = get_state()
    draft = svc.get_draft_detail(get_api_client(), state, draft_id)
    save_state(state)
    return jsonify(svc.summarize_order(draft, _symbol()))


@my_orders_bp.route('/drafts/<int:draft_id>/items/<int:item_id>', methods=['PATCH'])
@require_token
def update_item(draft_id, item_id):
    """Body: {quantity?, conditionType?}"""
    state = get_state()
    draft = svc.update_draft_item(get_api_client(), state, draft_id, item_id,
                                  request.get_json(silent=True) or {})
    save_state(state)
    return jsonify({'status': 'success', 'message': 'Item updated.', 'draft': svc.summarize_order(draft, _symbol())})


@my_orders_bp.route('/drafts/<int:draft_id>/items/<int:item_id>', methods=['DELETE'])
@require_token
def remove_item(draft_id, item_id):
    state = get_state()
    draft = svc.remove_draft_item(get_api_client(), state, draft_id, item_id)
    save_state(state)
    return jsonify({'status': 'success', 'message': 'Item removed.', 'draft': svc.summarize_order(draft, _symbol())})


@my_orders_bp.route('/drafts/<int:draft_id>', methods=['DELETE'])
@require_token
def delete_draft(draft_id):
    state = get_state()
    drafts = svc.delete_draft(get_api_client(), state, draft_id)
    save_state(state)

    symbol = _symbol()
    return jsonify({
        'status': 'success',
        'message': 'Draft deleted.',
        'drafts': [svc.summarize_order(d, symbol) for d in drafts],
    })
