"""Admin blueprint for reviewing and approving submitted drafts."""
from flask import Blueprint, current_app, jsonify, request

from bookstore.middleware import get_api_client, require_token
from bookstore.services import admin_draft_service as svc

admin_drafts_bp = Blueprint('admin_drafts', __name__, url_prefix='/admin/temp-orders')


@admin_drafts_bp.route('')
@require_token
def index():
    """Submitted drafts awaiting approval; ?q= filters the rows."""
    rows = svc.list_submitted_rows(get_api_client())
    return jsonify({'drafts': svc.filter_rows(rows, request.args.get('q', ''))})


@admin_drafts_bp.route('/<int:draft_id>')
@require_token
def detail(draft_id):
    symbol = current_app.config.get('CURRENCY_SYMBOL', '$')
    return jsonify(svc.draft_detail(get_api_client(), draft_id, symbol))


@admin_drafts_bp.route('/<int:draft_id>/approve', methods=['POST'])
@require_token
def approve(draft_id):
    api = get_api_client()
    message = svc.approve_draft(api, draft_id)
    return jsonify({'status': 'success', 'message': message, 'drafts': svc.list_submitted_rows(api)})
