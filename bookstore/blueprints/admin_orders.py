"""Admin blueprint for finalized customer orders."""
from flask import Blueprint, current_app, jsonify, request

from bookstore.middleware import get_api_client, require_token
from bookstore.services import customer_order_service as svc

admin_orders_bp = Blueprint('admin_orders', __name__, url_prefix='/admin/orders')


def _symbol() -> str:
    return current_app.config.get('CURRENCY_SYMBOL', '$')


@admin_orders_bp.route('')
@require_token
def index():
    """All customer orders as table rows; ?q= searches id, customer, school, class, year, date, books and authors."""
    rows = svc.list_order_rows(get_api_client(), _symbol())
    return jsonify({'orders': svc.filter_order_rows(rows, request.args.get('q', ''))})


@admin_orders_bp.route('/<int:order_id>')
@require_token
def detail(order_id):
    return jsonify(svc.order_detail(get_api_client(), order_id, _symbol()))


@admin_orders_bp.route('/<int:order_id>', methods=['DELETE'])
@require_token
def delete(order_id):
    message = svc.delete_order(get_api_client(), order_id)
    return jsonify({'status': 'success', 'message': message})
