"""Main blueprint with health check and session endpoints."""
from flask import Blueprint, current_app, jsonify, request, session

from bookstore.exceptions import BusinessLogicError
from bookstore.middleware import get_api_client
from bookstore.services.cache_service import get_cache

main_bp = Blueprint('main', __name__)


@main_bp.route('/health')
def health():
    """
    Health check endpoint that validates the remote bookstore API is reachable.

    Returns:
        200: Healthy (API answered)
        503: Unhealthy (API unreachable)
    """
    client = get_api_client()
    if client.ping():
        return jsonify({
            'status': 'healthy',
            'api': 'reachable',
            'message': 'Bookstore API reachable'
        }), 200

    return jsonify({
        'status': 'unhealthy',
        'api': 'unreachable',
        'message': 'Could not reach the bookstore API'
    }), 503


@main_bp.route('/health/cache')
def health_cache():
    """
    Cache health check endpoint.

    Never returns 500: the cache is optional and the app keeps working
    without it, so a broken Redis only reports "degraded".
    """
    cache = get_cache()

    if not cache.is_available():
        return jsonify({
            'status': 'degraded',
            'cache': 'unavailable',
            'message': 'Cache disabled or Redis unavailable (app continues without cache)'
        }), 200

    cache.set('system', 'health_check', {'test': 'ok'}, ttl=10)
    result = cache.get('system', 'health_check')
    if result and result.get('test') == 'ok':
        return jsonify({'status': 'ok', 'cache': 'connected', 'message': 'Cache is working correctly'}), 200

    return jsonify({
        'status': 'degraded',
        'cache': 'error',
        'message': 'Redis connected but operations failing'
    }), 200


@main_bp.route('/session', methods=['POST'])
def start_session():
    """Store the caller's API token in the session cookie."""
    data = request.get_json(silent=True) or {}
    token = str(data.get('token') or '').strip()
    if not token:
        raise BusinessLogicError('A token is required.')

    session.clear()
    session['token'] = token
    session.permanent = bool(data.get('remember'))
    current_app.logger.info('[AUTH] API token stored in session')
    return jsonify({'status': 'success'}), 200


@main_bp.route('/session', methods=['DELETE'])
def end_session():
    """Drop the token together with the cart and remembered draft state."""
    session.clear()
    return jsonify({'status': 'success'}), 200
